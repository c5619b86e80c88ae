from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from .. import messages, room_service, schemas
from ..auth import get_current_admin
from ..database import get_db

router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


@router.get("", response_model=schemas.ApiResponse[List[schemas.RoomResponse]])
def get_rooms(db: Session = Depends(get_db)):
    """Danh sách phòng"""
    return {"data": room_service.list_rooms(db), "message": messages.ROOMS_LOADED}


@router.get("/{room_id}", response_model=schemas.ApiResponse[schemas.RoomResponse])
def get_room(room_id: int, db: Session = Depends(get_db)):
    """Thông tin phòng"""
    return {"data": room_service.get_room(db, room_id), "message": messages.ROOM_FOUND}


@router.post("", response_model=schemas.ApiResponse[schemas.RoomResponse], status_code=status.HTTP_201_CREATED)
def create_room(
    room: schemas.RoomCreate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Tạo phòng mới (chỉ quản trị viên)"""
    created = room_service.create_room(
        db,
        name=room.name,
        type=room.type,
        price_per_hour=room.price_per_hour,
        capacity=room.capacity,
    )
    return {"data": created, "message": messages.ROOM_CREATED}


@router.put("/{room_id}", response_model=schemas.ApiResponse[schemas.RoomResponse])
def update_room(
    room_id: int,
    changes: schemas.RoomUpdate,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Cập nhật giá, sức chứa hoặc tên phòng (chỉ quản trị viên)"""
    room = room_service.update_room(db, room_id, **changes.model_dump(exclude_unset=True))
    return {"data": room, "message": messages.ROOM_UPDATED}


@router.delete("/{room_id}", response_model=schemas.ApiResponse[dict])
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Xóa phòng chưa có đặt phòng (chỉ quản trị viên)"""
    room_service.delete_room(db, room_id)
    return {"data": {"id": room_id}, "message": messages.ROOM_DELETED}
