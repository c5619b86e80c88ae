from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import List

from .. import messages, payment_service, schemas
from ..database import get_db
from ..telegram_service import telegram_notifier

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.get("/unpaid-bookings", response_model=schemas.ApiResponse[List[schemas.UnpaidBookingResponse]])
def get_unpaid_bookings(db: Session = Depends(get_db)):
    """Danh sách đặt phòng đã xác nhận còn phòng chưa thanh toán"""
    return {"data": payment_service.get_unpaid_bookings(db), "message": messages.UNPAID_BOOKINGS_LOADED}


@router.post("", response_model=schemas.ApiResponse[schemas.PaymentResponse])
def process_payment(
    payment: schemas.PaymentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Ghi nhận một khoản thanh toán"""
    created = payment_service.process_payment(db, payment.model_dump())

    background_tasks.add_task(
        telegram_notifier.send_payment_notification,
        payment_id=created.id,
        amount=created.amount,
        payment_method=created.payment_method,
        booking_id=created.booking_id,
    )

    return {"data": created, "message": messages.PAYMENT_SUCCESS}


@router.post("/multiple", response_model=schemas.ApiResponse[schemas.MultiplePaymentResponse])
def process_multiple_payment(
    request: schemas.MultiplePaymentRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """Thanh toán nhiều phòng trong một giao dịch"""
    result = payment_service.process_multiple_payment(
        db,
        [item.model_dump() for item in request.payment_items],
        request.payment_method,
        request.notes,
    )

    for payment in result["payments"]:
        background_tasks.add_task(
            telegram_notifier.send_payment_notification,
            payment_id=payment.id,
            amount=payment.amount,
            payment_method=payment.payment_method,
            booking_id=payment.booking_id,
        )

    return {"data": result, "message": result["message"]}


@router.get("/history", response_model=schemas.ApiResponse[schemas.PaymentHistoryResponse])
def get_payment_history(
    page: int = Query(1),
    limit: int = Query(10),
    db: Session = Depends(get_db)
):
    """Lịch sử thanh toán"""
    history = payment_service.get_payment_history(db, page=page, limit=limit)
    return {"data": history, "message": messages.PAYMENT_HISTORY_LOADED}


@router.get("/history/{customer_id}", response_model=schemas.ApiResponse[schemas.PaymentHistoryResponse])
def get_customer_payment_history(
    customer_id: int,
    page: int = Query(1),
    limit: int = Query(10),
    db: Session = Depends(get_db)
):
    """Lịch sử thanh toán của một khách hàng"""
    history = payment_service.get_payment_history(db, customer_id=customer_id, page=page, limit=limit)
    return {"data": history, "message": messages.PAYMENT_HISTORY_LOADED}


@router.get("/{payment_id}", response_model=schemas.ApiResponse[schemas.PaymentResponse])
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    """Chi tiết thanh toán"""
    return {"data": payment_service.get_payment(db, payment_id), "message": messages.PAYMENT_DETAILS_LOADED}
