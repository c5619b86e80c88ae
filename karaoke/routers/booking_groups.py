from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from .. import booking_service, messages, models, schemas
from ..database import get_db
from ..telegram_service import telegram_notifier
from .bookings import booking_payload

router = APIRouter(prefix="/api/booking-groups", tags=["Booking groups"])


def group_payload(db: Session, group: models.BookingGroup) -> schemas.BookingGroupResponse:
    data = schemas.BookingGroupResponse.model_validate(group)
    return data.model_copy(update={"bookings": [booking_payload(db, booking) for booking in group.bookings]})


@router.post("", response_model=schemas.ApiResponse[schemas.BookingGroupResponse], status_code=status.HTTP_201_CREATED)
def create_booking_group(
    request: schemas.BookingGroupCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Đặt nhiều phòng cùng lúc"""
    group = booking_service.create_booking_group(
        db,
        customer_id=request.customer_id,
        bookings=[booking.model_dump() for booking in request.bookings],
        notes=request.notes,
    )

    for booking in group.bookings:
        background_tasks.add_task(
            telegram_notifier.send_new_booking_notification,
            booking_id=booking.id,
            customer_name=booking.customer.name,
            rooms=[(line.room_name, line.start_time, line.end_time) for line in booking.rooms],
            total_amount=booking.total_amount,
        )

    return {"data": group_payload(db, group), "message": messages.BOOKING_GROUP_CREATED}


@router.get("/{group_id}", response_model=schemas.ApiResponse[schemas.BookingGroupResponse])
def get_booking_group(group_id: int, db: Session = Depends(get_db)):
    """Chi tiết nhóm đặt phòng"""
    group = booking_service.get_booking_group(db, group_id)
    return {"data": group_payload(db, group), "message": messages.BOOKING_GROUP_FOUND}


@router.post("/{group_id}/complete", response_model=schemas.ApiResponse[schemas.CheckoutResponse])
def complete_booking_group(
    group_id: int,
    request: schemas.BookingGroupComplete,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Trả phòng và thanh toán cho cả nhóm"""
    group, payment = booking_service.complete_booking_group(
        db,
        group_id,
        end_time=request.end_time,
        total_amount=request.total_amount,
        payment_method=request.payment_method,
        notes=request.notes,
    )

    if payment is not None:
        background_tasks.add_task(
            telegram_notifier.send_payment_notification,
            payment_id=payment.id,
            amount=payment.amount,
            payment_method=payment.payment_method,
        )

    return {
        "data": {
            "booking_group": group_payload(db, group),
            "payment": payment,
            "payments": [payment] if payment is not None else [],
        },
        "message": messages.BOOKING_GROUP_COMPLETED,
    }


@router.put("/{group_id}/cancel", response_model=schemas.ApiResponse[schemas.BookingGroupResponse])
def cancel_booking_group(group_id: int, db: Session = Depends(get_db)):
    """Hủy cả nhóm đặt phòng"""
    group = booking_service.cancel_booking_group(db, group_id)
    return {"data": group_payload(db, group), "message": messages.BOOKING_GROUP_CANCELLED}
