"""
Booking lifecycle: creation, status transitions, checkout and extension.

Line and booking states:

    pending --confirm--> confirmed --check-out/complete--> completed
    pending/confirmed --cancel--> cancelled

Transitions are conditional updates on the expected previous status, so a
confirm racing a cancel fails with ConflictError instead of overwriting it.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import messages, models
from .availability_service import find_conflicting_room_ids, lock_rooms, overlaps
from .database import transaction
from .exceptions import ConflictError, NotFoundError, ValidationError
from .payment_service import insert_payment, validate_payment_method
from .timezone_utils import billable_hours, to_naive_utc, utc_now, validate_time_range

logger = logging.getLogger(__name__)

PENDING = models.BookingStatus.PENDING.value
CONFIRMED = models.BookingStatus.CONFIRMED.value
COMPLETED = models.BookingStatus.COMPLETED.value
CANCELLED = models.BookingStatus.CANCELLED.value


# ---------------------------------------------------------------------------
# Lookups and amounts
# ---------------------------------------------------------------------------

def get_booking(db: Session, booking_id: int) -> models.Booking:
    booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
    if not booking:
        raise NotFoundError(messages.BOOKING_NOT_FOUND)
    return booking


def get_booking_room(db: Session, booking_room_id: int) -> models.BookingRoom:
    line = db.query(models.BookingRoom).filter(models.BookingRoom.id == booking_room_id).first()
    if not line:
        raise NotFoundError(messages.BOOKING_ROOM_NOT_FOUND)
    return line


def get_booking_group(db: Session, group_id: int) -> models.BookingGroup:
    group = db.query(models.BookingGroup).filter(models.BookingGroup.id == group_id).first()
    if not group:
        raise NotFoundError(messages.BOOKING_GROUP_NOT_FOUND)
    return group


def list_bookings(
    db: Session,
    status: Optional[str] = None,
    customer_id: Optional[int] = None,
) -> List[models.Booking]:
    query = db.query(models.Booking)
    if status:
        query = query.filter(models.Booking.status == status)
    if customer_id:
        query = query.filter(models.Booking.customer_id == customer_id)
    return query.order_by(models.Booking.created_at.desc(), models.Booking.id.desc()).all()


def line_amount(line: models.BookingRoom, end=None) -> float:
    return billable_hours(line.start_time, end or line.end_time) * line.price_per_hour


def calculate_total(booking: models.Booking, checkout=None) -> float:
    """Sum of billed hours x price over non-cancelled lines.

    With ``checkout`` the lines still in use are billed up to that instant.
    """
    if not booking.rooms and booking.room is not None:
        end = checkout or booking.end_time
        return billable_hours(booking.start_time, end) * booking.room.price_per_hour

    total = 0.0
    for line in booking.rooms:
        if line.status == CANCELLED:
            continue
        if checkout is not None and line.status in models.ACTIVE_STATUSES:
            total += line_amount(line, checkout)
        else:
            total += line_amount(line, line.check_out_time)
    return total


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def _validate_lines(rooms) -> List[dict]:
    if not rooms:
        raise ValidationError(messages.EMPTY_ROOM_LIST)

    lines = []
    for room in rooms:
        room_id = room.get("room_id")
        if not room_id or not room.get("start_time") or not room.get("end_time"):
            raise ValidationError(messages.MISSING_ROOM_FIELDS)
        start, end = validate_time_range(room["start_time"], room["end_time"])

        price = room.get("price_per_hour")
        if price is not None:
            try:
                price = float(price)
            except (TypeError, ValueError):
                raise ValidationError(messages.INVALID_PRICE)
            if price < 0:
                raise ValidationError(messages.INVALID_PRICE)

        lines.append({
            "room_id": int(room_id),
            "start_time": start,
            "end_time": end,
            "price_per_hour": price,
            "notes": room.get("notes"),
        })
    return lines


def _require_customer(db: Session, customer_id) -> models.Customer:
    customer = db.query(models.Customer).filter(models.Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError(messages.CUSTOMER_NOT_FOUND)
    return customer


def _reserve(db: Session, lines: List[dict]) -> None:
    """Check-then-reserve: resolve rooms and reject any overlap.

    The requested rooms are locked first, then the lines are checked against
    each other and against stored active reservations.
    """
    rooms = lock_rooms(db, [line["room_id"] for line in lines])
    for line in lines:
        room = rooms.get(line["room_id"])
        if room is None:
            raise NotFoundError(messages.ROOM_NOT_FOUND)
        line["room"] = room
        if line["price_per_hour"] is None:
            line["price_per_hour"] = room.price_per_hour

    for index, line in enumerate(lines):
        for other in lines[index + 1:]:
            if other["room_id"] == line["room_id"] and overlaps(
                line["start_time"], line["end_time"], other["start_time"], other["end_time"]
            ):
                raise ConflictError(messages.ROOM_NOT_AVAILABLE.format(room=line["room"].name))

        busy = find_conflicting_room_ids(
            db, line["start_time"], line["end_time"], room_ids=[line["room_id"]], lock=True
        )
        if busy:
            logger.warning(
                "Room %s already reserved for %s - %s",
                line["room_id"], line["start_time"], line["end_time"],
            )
            raise ConflictError(messages.ROOM_NOT_AVAILABLE.format(room=line["room"].name))


def _insert_booking(
    db: Session,
    customer_id: int,
    lines: List[dict],
    notes: Optional[str] = None,
    total_amount: Optional[float] = None,
    booking_group_id: Optional[int] = None,
) -> models.Booking:
    booking = models.Booking(
        customer_id=customer_id,
        booking_group_id=booking_group_id,
        start_time=min(line["start_time"] for line in lines),
        end_time=max(line["end_time"] for line in lines),
        status=PENDING,
        total_amount=0,
        notes=notes or "",
    )
    db.add(booking)
    db.flush()

    computed = 0.0
    for line in lines:
        booking_room = models.BookingRoom(
            booking_id=booking.id,
            room_id=line["room_id"],
            start_time=line["start_time"],
            end_time=line["end_time"],
            price_per_hour=line["price_per_hour"],
            status=PENDING,
            payment_status=models.PaymentStatus.UNPAID.value,
            notes=line.get("notes"),
        )
        booking.rooms.append(booking_room)
        computed += line_amount(booking_room)

    # A zero or missing total means "work it out from the lines"
    booking.total_amount = total_amount if total_amount else computed
    db.flush()
    return booking


def create_booking(
    db: Session,
    customer_id: int,
    rooms: List[dict],
    notes: Optional[str] = None,
    total_amount: Optional[float] = None,
) -> models.Booking:
    """Create a pending booking with one line per requested room"""
    if not customer_id:
        raise ValidationError(messages.MISSING_REQUIRED_FIELDS)
    if total_amount is not None and total_amount < 0:
        raise ValidationError(messages.INVALID_PAYMENT_AMOUNT)
    lines = _validate_lines(rooms)

    with transaction(db, "create booking"):
        _require_customer(db, customer_id)
        _reserve(db, lines)
        booking = _insert_booking(db, customer_id, lines, notes, total_amount)

    db.refresh(booking)
    logger.info(
        "Booking %s created for customer %s: %d room(s), total %.0f",
        booking.id, customer_id, len(booking.rooms), booking.total_amount,
    )
    return booking


# ---------------------------------------------------------------------------
# Line transitions
# ---------------------------------------------------------------------------

def _transition_line(db: Session, booking_room_id: int, expected, target: str, **values):
    values["status"] = target
    with transaction(db, f"booking room {booking_room_id} -> {target}"):
        updated = db.query(models.BookingRoom).filter(
            models.BookingRoom.id == booking_room_id,
            models.BookingRoom.status.in_(expected),
        ).update(values, synchronize_session="fetch")
        if not updated:
            line = get_booking_room(db, booking_room_id)
            logger.warning(
                "Rejected booking room %s transition %s -> %s", booking_room_id, line.status, target
            )
            raise ConflictError(
                messages.INVALID_STATUS_TRANSITION.format(current=line.status, target=target)
            )

    line = get_booking_room(db, booking_room_id)
    db.refresh(line)
    logger.info("Booking room %s is now %s", booking_room_id, target)
    return line


def confirm_booking_room(db: Session, booking_room_id: int) -> models.BookingRoom:
    return _transition_line(db, booking_room_id, (PENDING,), CONFIRMED)


def cancel_booking_room(db: Session, booking_room_id: int) -> models.BookingRoom:
    return _transition_line(db, booking_room_id, models.ACTIVE_STATUSES, CANCELLED)


def check_in_booking_room(db: Session, booking_room_id: int, at=None) -> models.BookingRoom:
    at = to_naive_utc(at) if at else utc_now()
    return _transition_line(db, booking_room_id, (CONFIRMED,), CONFIRMED, check_in_time=at)


def check_out_booking_room(db: Session, booking_room_id: int, at=None) -> models.BookingRoom:
    at = to_naive_utc(at) if at else utc_now()
    return _transition_line(db, booking_room_id, (CONFIRMED,), COMPLETED, check_out_time=at)


# ---------------------------------------------------------------------------
# Booking transitions
# ---------------------------------------------------------------------------

def _transition_booking(db: Session, booking_id: int, expected, target: str, **values) -> None:
    """Conditional update of the booking row; call inside a transaction"""
    values["status"] = target
    updated = db.query(models.Booking).filter(
        models.Booking.id == booking_id,
        models.Booking.status.in_(expected),
    ).update(values, synchronize_session="fetch")
    if not updated:
        booking = get_booking(db, booking_id)
        logger.warning("Rejected booking %s transition %s -> %s", booking_id, booking.status, target)
        raise ConflictError(
            messages.INVALID_STATUS_TRANSITION.format(current=booking.status, target=target)
        )


def _update_lines(db: Session, booking_ids, values, only_statuses=None) -> int:
    query = db.query(models.BookingRoom).filter(models.BookingRoom.booking_id.in_(booking_ids))
    if only_statuses is not None:
        query = query.filter(models.BookingRoom.status.in_(only_statuses))
    return query.update(values, synchronize_session="fetch")


def confirm_booking(db: Session, booking_id: int) -> models.Booking:
    with transaction(db, f"confirm booking {booking_id}"):
        _transition_booking(db, booking_id, (PENDING,), CONFIRMED)
        _update_lines(db, [booking_id], {"status": CONFIRMED}, only_statuses=(PENDING,))

    logger.info("Booking %s confirmed", booking_id)
    return _reload(db, booking_id)


def cancel_booking(db: Session, booking_id: int) -> models.Booking:
    """Cancel the booking and every one of its lines.

    Lines already completed are cancelled too.
    """
    with transaction(db, f"cancel booking {booking_id}"):
        _transition_booking(db, booking_id, models.ACTIVE_STATUSES, CANCELLED)
        _update_lines(db, [booking_id], {"status": CANCELLED})

    logger.info("Booking %s cancelled", booking_id)
    return _reload(db, booking_id)


def complete_booking(db: Session, booking_id: int) -> models.Booking:
    now = utc_now()
    with transaction(db, f"complete booking {booking_id}"):
        _transition_booking(db, booking_id, (CONFIRMED,), COMPLETED)
        _update_lines(
            db, [booking_id], {"status": COMPLETED, "check_out_time": now}, only_statuses=(CONFIRMED,)
        )

    logger.info("Booking %s completed", booking_id)
    return _reload(db, booking_id)


def complete_booking_with_payment(
    db: Session,
    booking_id: int,
    end_time=None,
    total_amount: Optional[float] = None,
    payment_method="cash",
    notes: Optional[str] = None,
):
    """Check out a confirmed booking and take its payment in one transaction.

    Every unpaid line gets its own payment row, so coverage and room revenue
    see the checkout. A supplied ``total_amount`` is shared across those
    lines in proportion to their subtotals.

    Returns ``(booking, payments)``; ``payments`` is empty when nothing is owed.
    """
    method = validate_payment_method(payment_method or "cash")
    checkout = to_naive_utc(end_time) if end_time else None
    if total_amount is not None and total_amount < 0:
        raise ValidationError(messages.INVALID_PAYMENT_AMOUNT)

    with transaction(db, f"complete booking {booking_id} with payment"):
        booking = get_booking(db, booking_id)
        if booking.status != CONFIRMED:
            raise ConflictError(
                messages.INVALID_STATUS_TRANSITION.format(current=booking.status, target=COMPLETED)
            )
        if checkout is None:
            checkout = utc_now()
        if checkout <= booking.start_time:
            raise ValidationError(messages.INVALID_TIME_RANGE)

        booking_total = total_amount if total_amount else calculate_total(booking, checkout)

        owed = []
        for line in booking.rooms:
            if line.status == CONFIRMED:
                line.status = COMPLETED
                line.check_out_time = checkout
            if line.status == COMPLETED and line.payment_status != models.PaymentStatus.PAID.value:
                owed.append((line, line_amount(line, line.check_out_time)))

        if total_amount:
            shares = split_amount(total_amount, [subtotal for _, subtotal in owed])
        else:
            shares = [subtotal for _, subtotal in owed]

        booking.status = COMPLETED
        booking.end_time = checkout
        booking.total_amount = booking_total

        fields = dict(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            payment_method=method,
            notes=notes or "",
            payment_date=checkout,
        )
        payments = []
        if booking.rooms:
            for (line, _), share in zip(owed, shares):
                if share <= 0:
                    continue
                payments.append(insert_payment(db, booking_room_id=line.id, amount=share, **fields))
                line.payment_status = models.PaymentStatus.PAID.value
        elif booking_total > 0:
            # Legacy single-room booking: nothing to attach the payment to but the booking
            payments.append(insert_payment(db, amount=booking_total, **fields))

    db.refresh(booking)
    for payment in payments:
        db.refresh(payment)
    logger.info(
        "Booking %s checked out at %s, charged %.0f in %d payment(s) via %s",
        booking_id, checkout, sum(p.amount for p in payments), len(payments), method,
    )
    return booking, payments


def split_amount(total: float, weights: List[float]) -> List[float]:
    """Share ``total`` in proportion to ``weights``; the last share absorbs rounding"""
    if not weights:
        return []
    base = sum(weights)
    if base <= 0:
        weights = [1] * len(weights)
        base = len(weights)
    shares = [round(total * weight / base, 2) for weight in weights[:-1]]
    shares.append(round(total - sum(shares), 2))
    return shares


def extend_booking(db: Session, booking_id: int, new_end_time) -> models.Booking:
    """Push the end of the booking (and the lines that run to it) later"""
    new_end = to_naive_utc(new_end_time)

    with transaction(db, f"extend booking {booking_id}"):
        booking = get_booking(db, booking_id)
        if booking.status not in models.ACTIVE_STATUSES:
            raise ConflictError(
                messages.INVALID_STATUS_TRANSITION.format(current=booking.status, target=booking.status)
            )
        old_end = booking.end_time
        if new_end <= old_end:
            raise ValidationError(messages.INVALID_EXTEND_TIME)

        extending = [
            line for line in booking.rooms
            if line.status != CANCELLED and line.end_time == old_end
        ]
        room_ids = [line.room_id for line in extending]
        if not booking.rooms and booking.room_id is not None:
            room_ids = [booking.room_id]

        rooms = lock_rooms(db, room_ids)
        busy = find_conflicting_room_ids(
            db, old_end, new_end,
            room_ids=room_ids,
            exclude_line_ids=[line.id for line in extending],
            lock=True,
        )
        if busy:
            room = rooms.get(sorted(busy)[0])
            logger.warning("Cannot extend booking %s: rooms %s are taken", booking_id, sorted(busy))
            raise ConflictError(messages.ROOM_NOT_AVAILABLE.format(room=room.name if room else ""))

        for line in extending:
            line.end_time = new_end
        booking.end_time = new_end
        booking.total_amount = calculate_total(booking)

    db.refresh(booking)
    logger.info("Booking %s extended to %s, total %.0f", booking_id, new_end, booking.total_amount)
    return booking


def update_booking_status_by_time(db: Session, now=None) -> int:
    """Complete confirmed bookings whose end time has passed.

    Safe to re-run: only confirmed bookings are picked up.
    """
    now = to_naive_utc(now) if now else utc_now()

    with transaction(db, "booking status sweep"):
        booking_ids = [
            booking_id for (booking_id,) in db.query(models.Booking.id).filter(
                models.Booking.status == CONFIRMED,
                models.Booking.end_time < now,
            )
        ]
        if booking_ids:
            db.query(models.Booking).filter(
                models.Booking.id.in_(booking_ids),
                models.Booking.status == CONFIRMED,
            ).update({"status": COMPLETED}, synchronize_session="fetch")
            _update_lines(db, booking_ids, {"status": COMPLETED}, only_statuses=(CONFIRMED,))

    if booking_ids:
        logger.info("Status sweep completed %d booking(s): %s", len(booking_ids), booking_ids)
    return len(booking_ids)


def update_booking(
    db: Session,
    booking_id: int,
    notes: Optional[str] = None,
    total_amount: Optional[float] = None,
) -> models.Booking:
    if notes is None and total_amount is None:
        raise ValidationError(messages.NO_FIELDS_TO_UPDATE)
    if total_amount is not None and total_amount < 0:
        raise ValidationError(messages.INVALID_PAYMENT_AMOUNT)

    with transaction(db, f"update booking {booking_id}"):
        booking = get_booking(db, booking_id)
        if notes is not None:
            booking.notes = notes
        if total_amount is not None:
            booking.total_amount = total_amount

    db.refresh(booking)
    return booking


def delete_booking(db: Session, booking_id: int) -> None:
    with transaction(db, f"delete booking {booking_id}"):
        booking = get_booking(db, booking_id)
        line_ids = [line.id for line in booking.rooms]
        if line_ids:
            db.query(models.Payment).filter(
                models.Payment.booking_room_id.in_(line_ids)
            ).delete(synchronize_session=False)
        db.query(models.Payment).filter(
            models.Payment.booking_id == booking_id
        ).delete(synchronize_session=False)
        db.delete(booking)

    logger.info("Booking %s deleted", booking_id)


def _reload(db: Session, booking_id: int) -> models.Booking:
    booking = get_booking(db, booking_id)
    db.refresh(booking)
    return booking


# ---------------------------------------------------------------------------
# Booking groups
# ---------------------------------------------------------------------------

def create_booking_group(
    db: Session,
    customer_id: int,
    bookings: List[dict],
    notes: Optional[str] = None,
) -> models.BookingGroup:
    """Create a group holding one single-room booking per entry"""
    if not customer_id:
        raise ValidationError(messages.MISSING_REQUIRED_FIELDS)
    lines = _validate_lines(bookings)

    with transaction(db, "create booking group"):
        _require_customer(db, customer_id)
        _reserve(db, lines)

        group = models.BookingGroup(
            customer_id=customer_id,
            status=PENDING,
            total_amount=0,
            payment_status=models.PaymentStatus.UNPAID.value,
        )
        db.add(group)
        db.flush()

        total = 0.0
        for line in lines:
            booking = _insert_booking(
                db, customer_id, [line], line.get("notes") or notes, booking_group_id=group.id
            )
            total += booking.total_amount
        group.total_amount = total

    db.refresh(group)
    logger.info("Booking group %s created with %d booking(s)", group.id, len(group.bookings))
    return group


def complete_booking_group(
    db: Session,
    group_id: int,
    end_time,
    total_amount,
    payment_method="cash",
    notes: Optional[str] = None,
):
    """Check out every member booking and take one group payment.

    Returns ``(group, payment)``.
    """
    if not end_time or total_amount is None:
        raise ValidationError(messages.MISSING_REQUIRED_FIELDS)
    checkout = to_naive_utc(end_time)
    method = validate_payment_method(payment_method or "cash")
    if total_amount < 0:
        raise ValidationError(messages.INVALID_PAYMENT_AMOUNT)

    with transaction(db, f"complete booking group {group_id}"):
        group = get_booking_group(db, group_id)
        if group.status in models.TERMINAL_STATUSES:
            raise ConflictError(
                messages.INVALID_STATUS_TRANSITION.format(current=group.status, target=COMPLETED)
            )

        for booking in group.bookings:
            if booking.status == CANCELLED:
                continue
            booking.status = COMPLETED
            if checkout > booking.start_time:
                booking.end_time = checkout
            for line in booking.rooms:
                if line.status in models.ACTIVE_STATUSES:
                    line.status = COMPLETED
                    line.check_out_time = checkout
                    line.payment_status = models.PaymentStatus.PAID.value

        group.status = COMPLETED
        group.payment_status = models.PaymentStatus.PAID.value
        if total_amount:
            group.total_amount = total_amount

        payment = None
        if total_amount > 0:
            payment = insert_payment(
                db,
                booking_group_id=group.id,
                customer_id=group.customer_id,
                amount=total_amount,
                payment_method=method,
                notes=notes or "",
            )

    db.refresh(group)
    logger.info("Booking group %s completed, charged %.0f via %s", group_id, total_amount, method)
    return group, payment


def cancel_booking_group(db: Session, group_id: int) -> models.BookingGroup:
    with transaction(db, f"cancel booking group {group_id}"):
        group = get_booking_group(db, group_id)
        if group.status not in models.ACTIVE_STATUSES:
            raise ConflictError(
                messages.INVALID_STATUS_TRANSITION.format(current=group.status, target=CANCELLED)
            )
        group.status = CANCELLED

        member_ids = [
            booking.id for booking in group.bookings if booking.status in models.ACTIVE_STATUSES
        ]
        if member_ids:
            db.query(models.Booking).filter(
                models.Booking.id.in_(member_ids)
            ).update({"status": CANCELLED}, synchronize_session="fetch")
            _update_lines(db, member_ids, {"status": CANCELLED})

    db.refresh(group)
    logger.info("Booking group %s cancelled", group_id)
    return group
