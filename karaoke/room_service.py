"""
Room catalogue management
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from . import messages, models
from .database import transaction
from .exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ROOM_TYPES = tuple(room_type.value for room_type in models.RoomType)
UPDATABLE_FIELDS = ("name", "type", "price_per_hour", "capacity")


def normalize_room_type(room_type: Optional[str]) -> str:
    """Lenient type handling for new rooms: 'Normal' and unknown types become Standard"""
    if not room_type:
        return models.RoomType.STANDARD.value
    if room_type == "Normal":
        return models.RoomType.STANDARD.value
    if room_type not in ROOM_TYPES:
        logger.warning("Invalid room type: %s. Using default 'Standard'", room_type)
        return models.RoomType.STANDARD.value
    return room_type


def _validate_numbers(price_per_hour=None, capacity=None):
    if price_per_hour is not None and price_per_hour < 0:
        raise ValidationError(messages.INVALID_PRICE)
    if capacity is not None and capacity < 1:
        raise ValidationError(messages.INVALID_CAPACITY)


def is_room_name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(models.Room).filter(models.Room.name == name)
    if exclude_id:
        query = query.filter(models.Room.id != exclude_id)
    return db.query(query.exists()).scalar()


def list_rooms(db: Session) -> List[models.Room]:
    return db.query(models.Room).order_by(models.Room.name).all()


def get_room(db: Session, room_id: int) -> models.Room:
    room = db.query(models.Room).filter(models.Room.id == room_id).first()
    if not room:
        raise NotFoundError(messages.ROOM_NOT_FOUND)
    return room


def create_room(db: Session, name: str, price_per_hour: float, capacity: int, type: Optional[str] = None) -> models.Room:
    name = (name or "").strip()
    if not name:
        raise ValidationError(messages.INVALID_ROOM_NAME)
    _validate_numbers(price_per_hour, capacity)

    with transaction(db, "create room"):
        if is_room_name_taken(db, name):
            raise ConflictError(messages.ROOM_NAME_EXISTS)
        room = models.Room(
            name=name,
            type=normalize_room_type(type),
            price_per_hour=price_per_hour,
            capacity=capacity,
        )
        db.add(room)

    db.refresh(room)
    logger.info("Room %s created: %s (%s)", room.id, room.name, room.type)
    return room


def update_room(db: Session, room_id: int, **changes) -> models.Room:
    updates = {
        key: value for key, value in changes.items()
        if key in UPDATABLE_FIELDS and value is not None
    }
    if not updates:
        raise ValidationError(messages.NO_FIELDS_TO_UPDATE)
    if "name" in updates:
        updates["name"] = updates["name"].strip()
        if not updates["name"]:
            raise ValidationError(messages.INVALID_ROOM_NAME)
    if "type" in updates and updates["type"] not in ROOM_TYPES:
        raise ValidationError(messages.INVALID_ROOM_TYPE.format(types=", ".join(ROOM_TYPES)))
    _validate_numbers(updates.get("price_per_hour"), updates.get("capacity"))

    with transaction(db, f"update room {room_id}"):
        room = get_room(db, room_id)
        if "name" in updates and is_room_name_taken(db, updates["name"], exclude_id=room_id):
            raise ConflictError(messages.ROOM_NAME_EXISTS)
        for key, value in updates.items():
            setattr(room, key, value)

    db.refresh(room)
    logger.info("Room %s updated: %s", room_id, sorted(updates))
    return room


def delete_room(db: Session, room_id: int) -> None:
    with transaction(db, f"delete room {room_id}"):
        room = get_room(db, room_id)
        referenced = db.query(models.BookingRoom.id).filter(
            models.BookingRoom.room_id == room_id
        ).first() or db.query(models.Booking.id).filter(
            models.Booking.room_id == room_id
        ).first()
        if referenced:
            raise ConflictError(messages.ROOM_HAS_BOOKINGS)
        db.delete(room)

    logger.info("Room %s deleted", room_id)
