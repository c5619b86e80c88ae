from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import booking_service, messages, models, payment_service, schemas
from ..auth import get_current_admin
from ..availability_service import find_available_rooms
from ..database import get_db
from ..telegram_service import telegram_notifier

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def booking_payload(db: Session, booking: models.Booking) -> schemas.BookingResponse:
    """Booking with its lines and derived payment coverage"""
    data = schemas.BookingResponse.model_validate(booking)
    return data.model_copy(update=payment_service.coverage_summary(db, booking.id))


@router.post("/available", response_model=schemas.ApiResponse[List[schemas.RoomResponse]])
def available_rooms(request: schemas.TimeRangeRequest, db: Session = Depends(get_db)):
    """Tìm phòng trống trong khoảng thời gian"""
    rooms = find_available_rooms(db, request.start_time, request.end_time)
    return {
        "data": rooms,
        "message": messages.AVAILABLE_ROOMS_FOUND,
        "meta": {
            "start_time": request.start_time.isoformat(),
            "end_time": request.end_time.isoformat(),
            "total_rooms": len(rooms),
        },
    }


@router.post("", response_model=schemas.ApiResponse[schemas.BookingResponse], status_code=status.HTTP_201_CREATED)
def create_booking(
    booking: schemas.BookingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Tạo đặt phòng mới (trạng thái pending)"""
    created = booking_service.create_booking(
        db,
        customer_id=booking.customer_id,
        rooms=[room.model_dump() for room in booking.rooms],
        notes=booking.notes,
        total_amount=booking.total_amount,
    )

    # Notify staff in the background
    background_tasks.add_task(
        telegram_notifier.send_new_booking_notification,
        booking_id=created.id,
        customer_name=created.customer.name,
        rooms=[(line.room_name, line.start_time, line.end_time) for line in created.rooms],
        total_amount=created.total_amount,
    )

    return {"data": booking_payload(db, created), "message": messages.BOOKING_CREATED}


@router.get("", response_model=schemas.ApiResponse[List[schemas.BookingResponse]])
def get_bookings(
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    db: Session = Depends(get_db)
):
    """Danh sách đặt phòng kèm tình trạng thanh toán"""
    bookings = booking_service.list_bookings(db, status=status, customer_id=customer_id)
    return {
        "data": [booking_payload(db, booking) for booking in bookings],
        "message": messages.BOOKINGS_LOADED,
    }


@router.post("/status-sweep", response_model=schemas.ApiResponse[dict])
def status_sweep(db: Session = Depends(get_db), admin: dict = Depends(get_current_admin)):
    """Hoàn tất các đặt phòng đã quá giờ kết thúc (chỉ quản trị viên)"""
    count = booking_service.update_booking_status_by_time(db)
    return {"data": {"completed": count}, "message": messages.STATUS_SWEEP_DONE.format(count=count)}


@router.get("/{booking_id}", response_model=schemas.ApiResponse[schemas.BookingResponse])
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    """Chi tiết đặt phòng"""
    booking = booking_service.get_booking(db, booking_id)
    return {"data": booking_payload(db, booking), "message": messages.BOOKING_FOUND}


@router.put("/{booking_id}", response_model=schemas.ApiResponse[schemas.BookingResponse])
def update_booking(booking_id: int, changes: schemas.BookingUpdate, db: Session = Depends(get_db)):
    """Cập nhật ghi chú hoặc tổng tiền"""
    booking = booking_service.update_booking(
        db, booking_id, notes=changes.notes, total_amount=changes.total_amount
    )
    return {"data": booking_payload(db, booking), "message": messages.BOOKING_UPDATED}


@router.delete("/{booking_id}", response_model=schemas.ApiResponse[dict])
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    admin: dict = Depends(get_current_admin)
):
    """Xóa đặt phòng (chỉ quản trị viên)"""
    booking_service.delete_booking(db, booking_id)
    return {"data": {"id": booking_id}, "message": messages.BOOKING_DELETED}


@router.put("/{booking_id}/confirm", response_model=schemas.ApiResponse[schemas.BookingResponse])
def confirm_booking(booking_id: int, db: Session = Depends(get_db)):
    """Xác nhận đặt phòng"""
    booking = booking_service.confirm_booking(db, booking_id)
    return {"data": booking_payload(db, booking), "message": messages.BOOKING_CONFIRMED}


@router.put("/{booking_id}/cancel", response_model=schemas.ApiResponse[schemas.BookingResponse])
def cancel_booking(
    booking_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Hủy đặt phòng và toàn bộ phòng trong đó"""
    booking = booking_service.cancel_booking(db, booking_id)

    background_tasks.add_task(
        telegram_notifier.send_booking_cancelled_notification,
        booking_id=booking.id,
        customer_name=booking.customer.name,
    )

    return {"data": booking_payload(db, booking), "message": messages.BOOKING_CANCELLED}


@router.put("/{booking_id}/complete", response_model=schemas.ApiResponse[schemas.BookingResponse])
def complete_booking(booking_id: int, db: Session = Depends(get_db)):
    """Hoàn tất đặt phòng đã xác nhận"""
    booking = booking_service.complete_booking(db, booking_id)
    return {"data": booking_payload(db, booking), "message": messages.BOOKING_COMPLETED}


@router.put("/{booking_id}/extend", response_model=schemas.ApiResponse[schemas.BookingResponse])
def extend_booking(booking_id: int, request: schemas.BookingExtend, db: Session = Depends(get_db)):
    """Gia hạn thời gian kết thúc"""
    booking = booking_service.extend_booking(db, booking_id, request.end_time)
    return {"data": booking_payload(db, booking), "message": messages.BOOKING_EXTENDED}


@router.post("/{booking_id}/complete-with-payment", response_model=schemas.ApiResponse[schemas.CheckoutResponse])
def complete_booking_with_payment(
    booking_id: int,
    request: schemas.CompleteWithPaymentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Trả phòng và thanh toán"""
    booking, payments = booking_service.complete_booking_with_payment(
        db,
        booking_id,
        end_time=request.end_time,
        total_amount=request.total_amount,
        payment_method=request.payment_method,
        notes=request.notes,
    )

    if payments:
        background_tasks.add_task(
            telegram_notifier.send_payment_notification,
            payment_id=payments[0].id,
            amount=sum(payment.amount for payment in payments),
            payment_method=payments[0].payment_method,
            booking_id=booking.id,
        )

    return {
        "data": {
            "booking": booking_payload(db, booking),
            "payment": payments[0] if payments else None,
            "payments": payments,
        },
        "message": messages.CHECKOUT_COMPLETED,
    }
