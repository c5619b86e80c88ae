"""
Room availability: which rooms are free for a half-open window [start, end).
"""
import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from . import models
from .timezone_utils import validate_time_range

logger = logging.getLogger(__name__)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    """Half-open intervals overlap; touching at a boundary does not count"""
    return start_a < end_b and end_a > start_b


def _conflicting_lines_query(db: Session, start, end):
    return db.query(models.BookingRoom).join(
        models.Booking, models.BookingRoom.booking_id == models.Booking.id
    ).filter(
        models.BookingRoom.status.in_(models.ACTIVE_STATUSES),
        models.Booking.status.in_(models.ACTIVE_STATUSES),
        models.BookingRoom.start_time < end,
        models.BookingRoom.end_time > start,
    )


def _conflicting_legacy_query(db: Session, start, end):
    return db.query(models.Booking).filter(
        models.Booking.room_id.isnot(None),
        models.Booking.status.in_(models.ACTIVE_STATUSES),
        models.Booking.start_time < end,
        models.Booking.end_time > start,
    )


def lock_rooms(db: Session, room_ids: Iterable[int]) -> Dict[int, models.Room]:
    """Select the rooms FOR UPDATE in id order.

    Reservations for the same room queue up here, so the conflict check that
    follows sees every committed line even when the window is still empty.
    """
    room_ids = sorted(set(room_ids))
    if not room_ids:
        return {}
    rooms = db.query(models.Room).filter(
        models.Room.id.in_(room_ids)
    ).order_by(models.Room.id).with_for_update().all()
    return {room.id: room for room in rooms}


def find_conflicting_room_ids(
    db: Session,
    start,
    end,
    room_ids: Optional[Iterable[int]] = None,
    exclude_line_ids: Optional[Iterable[int]] = None,
    lock: bool = False,
) -> Set[int]:
    """Room ids holding an active reservation that overlaps [start, end).

    With ``lock`` the conflicting rows are selected FOR UPDATE, so a caller
    inside a transaction can check and reserve in one step.
    """
    lines = _conflicting_lines_query(db, start, end)
    legacy = _conflicting_legacy_query(db, start, end)

    if room_ids is not None:
        room_ids = list(room_ids)
        lines = lines.filter(models.BookingRoom.room_id.in_(room_ids))
        legacy = legacy.filter(models.Booking.room_id.in_(room_ids))
    if exclude_line_ids:
        lines = lines.filter(models.BookingRoom.id.notin_(list(exclude_line_ids)))
    if lock:
        lines = lines.with_for_update()
        legacy = legacy.with_for_update()

    conflicting = {line.room_id for line in lines.all()}
    conflicting.update(booking.room_id for booking in legacy.all())
    return conflicting


def find_available_rooms(db: Session, start, end) -> List[models.Room]:
    """All rooms minus the ones with a conflicting reservation, ordered by name"""
    start, end = validate_time_range(start, end)

    rooms = db.query(models.Room).order_by(models.Room.name).all()
    busy = find_conflicting_room_ids(db, start, end)

    available = [room for room in rooms if room.id not in busy]
    logger.debug(
        "Availability %s - %s: %d of %d rooms free", start, end, len(available), len(rooms)
    )
    return available
