from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import booking_service, messages, schemas
from ..database import get_db

router = APIRouter(prefix="/api/booking-rooms", tags=["Booking rooms"])


@router.put("/{booking_room_id}/confirm", response_model=schemas.ApiResponse[schemas.BookingRoomResponse])
def confirm_booking_room(booking_room_id: int, db: Session = Depends(get_db)):
    """Xác nhận một phòng trong đặt phòng"""
    line = booking_service.confirm_booking_room(db, booking_room_id)
    return {"data": line, "message": messages.BOOKING_ROOM_CONFIRMED.format(id=booking_room_id)}


@router.put("/{booking_room_id}/cancel", response_model=schemas.ApiResponse[schemas.BookingRoomResponse])
def cancel_booking_room(booking_room_id: int, db: Session = Depends(get_db)):
    """Hủy một phòng trong đặt phòng"""
    line = booking_service.cancel_booking_room(db, booking_room_id)
    return {"data": line, "message": messages.BOOKING_ROOM_CANCELLED.format(id=booking_room_id)}


@router.put("/{booking_room_id}/check-in", response_model=schemas.ApiResponse[schemas.BookingRoomResponse])
def check_in_booking_room(booking_room_id: int, db: Session = Depends(get_db)):
    """Nhận phòng"""
    line = booking_service.check_in_booking_room(db, booking_room_id)
    return {"data": line, "message": messages.BOOKING_ROOM_CHECKED_IN.format(id=booking_room_id)}


@router.put("/{booking_room_id}/check-out", response_model=schemas.ApiResponse[schemas.BookingRoomResponse])
def check_out_booking_room(booking_room_id: int, db: Session = Depends(get_db)):
    """Trả phòng"""
    line = booking_service.check_out_booking_room(db, booking_room_id)
    return {"data": line, "message": messages.BOOKING_ROOM_CHECKED_OUT.format(id=booking_room_id)}
