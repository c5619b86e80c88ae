"""
Database models for the karaoke booking system
"""
import enum

from sqlalchemy import (
    Column, Integer, String, Float, Text, ForeignKey, DateTime, func, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from .database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that still hold a room
ACTIVE_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)
TERMINAL_STATUSES = (BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value)


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    E_WALLET = "e_wallet"


class RoomType(str, enum.Enum):
    STANDARD = "Standard"
    VIP = "VIP"
    PREMIUM = "Premium"
    SUITE = "Suite"


class Room(Base):
    """Karaoke room"""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    type = Column(String(20), nullable=False, default=RoomType.STANDARD.value)
    price_per_hour = Column(Float, nullable=False)
    capacity = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking_rooms = relationship("BookingRoom", back_populates="room")

    __table_args__ = (
        CheckConstraint("price_per_hour >= 0", name="check_room_price_non_negative"),
        CheckConstraint("capacity >= 1", name="check_room_capacity_positive"),
    )


class Customer(Base):
    """Customer model"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    phone_number = Column(String(20), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    bookings = relationship("Booking", back_populates="customer")


class BookingGroup(Base):
    """Several bookings created together"""
    __tablename__ = "booking_groups"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    total_amount = Column(Float, nullable=False, default=0)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="booking_group")


class Booking(Base):
    """Booking aggregating one or more room lines"""
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    booking_group_id = Column(Integer, ForeignKey("booking_groups.id"), nullable=True, index=True)
    # Legacy single-room bookings reference the room directly and have no lines
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    # pending - created, awaiting staff confirmation
    # confirmed - confirmed by staff
    # completed - used and checked out (or fully paid)
    # cancelled - voided
    total_amount = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True, default="")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="bookings")
    booking_group = relationship("BookingGroup", back_populates="bookings")
    room = relationship("Room")
    rooms = relationship(
        "BookingRoom",
        back_populates="booking",
        order_by="BookingRoom.id",
        cascade="all, delete-orphan",
    )
    payments = relationship("Payment", back_populates="booking", order_by="Payment.id")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="check_booking_time_range"),
    )


class BookingRoom(Base):
    """One room reserved within a booking"""
    __tablename__ = "booking_rooms"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    price_per_hour = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value)
    check_in_time = Column(DateTime, nullable=True)
    check_out_time = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    booking = relationship("Booking", back_populates="rooms")
    room = relationship("Room", back_populates="booking_rooms")

    @property
    def room_name(self):
        return self.room.name if self.room else None

    @property
    def room_type(self):
        return self.room.type if self.room else None

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="check_booking_room_time_range"),
        # Overlap lookups go by room and window
        Index("ix_booking_rooms_room_window", "room_id", "start_time", "end_time"),
    )


class Payment(Base):
    """Immutable payment record"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    booking_group_id = Column(Integer, ForeignKey("booking_groups.id"), nullable=True, index=True)
    booking_room_id = Column(Integer, ForeignKey("booking_rooms.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    transaction_id = Column(String(100), nullable=True)
    payment_date = Column(DateTime, nullable=False, server_default=func.now())
    notes = Column(Text, nullable=True, default="")
    created_at = Column(DateTime, server_default=func.now())

    booking = relationship("Booking", back_populates="payments")
    booking_room = relationship("BookingRoom")

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        CheckConstraint(
            "booking_id IS NOT NULL OR booking_group_id IS NOT NULL OR booking_room_id IS NOT NULL",
            name="check_payment_has_reference",
        ),
    )
