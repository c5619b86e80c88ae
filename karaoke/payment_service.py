"""
Payment recording and coverage reconciliation.

A booking counts as fully paid once every non-cancelled line has at least one
payment row. Amounts are not reconciled against line prices.
"""
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import messages, models
from .database import transaction
from .exceptions import NotFoundError, ValidationError
from .timezone_utils import to_naive_utc, utc_now, whole_hours

logger = logging.getLogger(__name__)

PAYMENT_METHODS = tuple(method.value for method in models.PaymentMethod)


def validate_amount(amount, message=messages.INVALID_PAYMENT_AMOUNT) -> float:
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(message)
    if amount <= 0:
        raise ValidationError(message)
    return amount


def validate_payment_method(method) -> str:
    if hasattr(method, "value"):
        method = method.value
    if method not in PAYMENT_METHODS:
        raise ValidationError(messages.INVALID_PAYMENT_METHOD)
    return method


def validate_payment_data(data: dict) -> dict:
    """Normalise a single payment request, raising ValidationError on bad input"""
    if not any(data.get(key) for key in ("booking_id", "booking_group_id", "booking_room_id")):
        raise ValidationError(messages.PAYMENT_REFERENCE_REQUIRED)

    payment_date = data.get("payment_date")
    return {
        "booking_id": data.get("booking_id"),
        "booking_group_id": data.get("booking_group_id"),
        "booking_room_id": data.get("booking_room_id"),
        "customer_id": data.get("customer_id"),
        "amount": validate_amount(data.get("amount")),
        "payment_method": validate_payment_method(data.get("payment_method") or "cash"),
        "transaction_id": data.get("transaction_id"),
        "payment_date": to_naive_utc(payment_date) if payment_date else None,
        "notes": data.get("notes") or "",
    }


def payment_status_for(total_rooms: int, paid_rooms: int) -> str:
    if total_rooms > 0 and paid_rooms >= total_rooms:
        return models.PaymentStatus.PAID.value
    if paid_rooms > 0:
        return models.PaymentStatus.PARTIALLY_PAID.value
    return models.PaymentStatus.UNPAID.value


def coverage(db: Session, booking_id: int) -> Tuple[int, int]:
    """(total non-cancelled lines, lines with at least one payment)"""
    total = db.query(func.count(models.BookingRoom.id)).filter(
        models.BookingRoom.booking_id == booking_id,
        models.BookingRoom.status != models.BookingStatus.CANCELLED.value,
    ).scalar() or 0

    paid = db.query(func.count(func.distinct(models.Payment.booking_room_id))).join(
        models.BookingRoom, models.Payment.booking_room_id == models.BookingRoom.id
    ).filter(
        models.BookingRoom.booking_id == booking_id,
        models.BookingRoom.status != models.BookingStatus.CANCELLED.value,
    ).scalar() or 0

    return total, paid


def coverage_summary(db: Session, booking_id: int) -> Dict[str, object]:
    total, paid = coverage(db, booking_id)
    return {
        "total_rooms": total,
        "paid_rooms": paid,
        "payment_status": payment_status_for(total, paid),
    }


def update_booking_status_if_fully_paid(db: Session, booking_id: int) -> bool:
    """Mark the booking completed when every line has a payment.

    Runs inside the caller's transaction. Only pending/confirmed bookings move,
    so completed stays completed and cancelled is never revived.
    """
    total, paid = coverage(db, booking_id)
    if total == 0 or paid < total:
        return False

    updated = db.query(models.Booking).filter(
        models.Booking.id == booking_id,
        models.Booking.status.in_(models.ACTIVE_STATUSES),
    ).update(
        {"status": models.BookingStatus.COMPLETED.value},
        synchronize_session="fetch",
    )
    if updated:
        logger.info("Booking %s fully paid (%d/%d rooms), marked completed", booking_id, paid, total)
    return bool(updated)


def insert_payment(db: Session, **fields) -> models.Payment:
    """Add a payment row and flush it; the caller owns the transaction"""
    if fields.get("payment_date") is None:
        fields["payment_date"] = utc_now()
    payment = models.Payment(**fields)
    db.add(payment)
    db.flush()
    return payment


def _record(db: Session, data: dict) -> models.Payment:
    """Resolve references for one validated payment and insert it"""
    booking = None
    line = None

    if data["booking_room_id"]:
        line = db.query(models.BookingRoom).filter(
            models.BookingRoom.id == data["booking_room_id"]
        ).first()
        if not line:
            raise NotFoundError(messages.BOOKING_ROOM_NOT_FOUND)
        if data["booking_id"] and data["booking_id"] != line.booking_id:
            raise ValidationError(messages.PAYMENT_ROOM_MISMATCH)
        data["booking_id"] = line.booking_id

    if data["booking_id"]:
        booking = db.query(models.Booking).filter(models.Booking.id == data["booking_id"]).first()
        if not booking:
            raise NotFoundError(messages.BOOKING_NOT_FOUND)
        if not data["customer_id"]:
            data["customer_id"] = booking.customer_id

    if data["booking_group_id"]:
        group = db.query(models.BookingGroup).filter(
            models.BookingGroup.id == data["booking_group_id"]
        ).first()
        if not group:
            raise NotFoundError(messages.BOOKING_GROUP_NOT_FOUND)
        if not data["customer_id"]:
            data["customer_id"] = group.customer_id

    payment = insert_payment(db, **data)
    if line is not None:
        line.payment_status = models.PaymentStatus.PAID.value
    return payment


def process_payment(db: Session, payment_data: dict) -> models.Payment:
    """Record one payment and run the coverage check in the same transaction"""
    data = validate_payment_data(payment_data)

    with transaction(db, "process payment"):
        payment = _record(db, data)
        if payment.booking_id:
            update_booking_status_if_fully_paid(db, payment.booking_id)

    db.refresh(payment)
    logger.info(
        "Payment %s recorded: %.0f via %s (booking %s, room line %s)",
        payment.id, payment.amount, payment.payment_method,
        payment.booking_id, payment.booking_room_id,
    )
    return payment


def process_multiple_payment(
    db: Session,
    items: List[dict],
    payment_method,
    notes: Optional[str] = None,
) -> dict:
    """Record a batch of payments atomically.

    Every item is validated before the first insert; any failure afterwards
    rolls back the whole batch.
    """
    if not items:
        raise ValidationError(messages.INVALID_PAYMENT_ITEMS)
    method = validate_payment_method(payment_method)

    prepared = []
    for item in items:
        if not item.get("booking_id"):
            raise ValidationError(messages.INVALID_PAYMENT_ITEM)
        prepared.append(validate_payment_data({
            "booking_id": item.get("booking_id"),
            "booking_room_id": item.get("booking_room_id"),
            "amount": item.get("amount"),
            "payment_method": method,
            "notes": item.get("notes") or notes,
        }))

    payments = []
    completed = []
    with transaction(db, "process multiple payment"):
        for data in prepared:
            payments.append(_record(db, data))

        touched = []
        for payment in payments:
            if payment.booking_id not in touched:
                touched.append(payment.booking_id)
        for booking_id in touched:
            if update_booking_status_if_fully_paid(db, booking_id):
                completed.append(booking_id)

    for payment in payments:
        db.refresh(payment)
    logger.info("Batch payment: %d rows, bookings completed: %s", len(payments), completed)
    return {
        "payments": payments,
        "completed_booking_ids": completed,
        "total_amount": sum(p.amount for p in payments),
        "message": messages.MULTIPLE_PAYMENT_SUCCESS.format(count=len(payments)),
    }


def get_unpaid_bookings(db: Session) -> List[dict]:
    """Confirmed bookings that still have at least one line without a payment.

    Subtotals are recomputed from the line window and price, not read from the
    stored total.
    """
    bookings = db.query(models.Booking).filter(
        models.Booking.status == models.BookingStatus.CONFIRMED.value
    ).order_by(models.Booking.start_time, models.Booking.id).all()
    if not bookings:
        return []

    booking_ids = [booking.id for booking in bookings]
    paid_line_ids = {
        line_id for (line_id,) in db.query(models.Payment.booking_room_id).join(
            models.BookingRoom, models.Payment.booking_room_id == models.BookingRoom.id
        ).filter(models.BookingRoom.booking_id.in_(booking_ids)).distinct()
    }

    result = []
    for booking in bookings:
        rooms = []
        for line in booking.rooms:
            if line.status == models.BookingStatus.CANCELLED.value or line.id in paid_line_ids:
                continue
            hours = whole_hours(line.start_time, line.end_time)
            rooms.append({
                "booking_room_id": line.id,
                "room_id": line.room_id,
                "room_name": line.room_name,
                "room_type": line.room_type,
                "start_time": line.start_time,
                "end_time": line.end_time,
                "hours": hours,
                "price_per_hour": line.price_per_hour,
                "subtotal": hours * line.price_per_hour,
            })
        if not rooms:
            continue

        result.append({
            "booking_id": booking.id,
            "customer_id": booking.customer_id,
            "customer_name": booking.customer.name if booking.customer else None,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "status": booking.status,
            "notes": booking.notes,
            "rooms": rooms,
            "total_unpaid": sum(room["subtotal"] for room in rooms),
        })
    return result


def get_payment_history(
    db: Session,
    customer_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    if page < 1 or limit < 1:
        raise ValidationError(messages.INVALID_PAGINATION)

    query = db.query(models.Payment)
    if customer_id:
        query = query.filter(models.Payment.customer_id == customer_id)

    total = query.count()
    payments = query.order_by(
        models.Payment.payment_date.desc(), models.Payment.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {"items": payments, "total": total, "page": page, "limit": limit}


def get_payment(db: Session, payment_id: int) -> models.Payment:
    payment = db.query(models.Payment).filter(models.Payment.id == payment_id).first()
    if not payment:
        raise NotFoundError(messages.PAYMENT_NOT_FOUND)
    return payment
