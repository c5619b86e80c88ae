from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    meta: Optional[dict] = None


# Rooms
class RoomBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: Optional[str] = "Standard"
    price_per_hour: float
    capacity: int

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError('Tên phòng là bắt buộc')
        return v.strip()

class RoomCreate(RoomBase):
    pass

class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    type: Optional[str] = None
    price_per_hour: Optional[float] = None
    capacity: Optional[int] = None

class RoomResponse(BaseModel):
    id: int
    name: str
    type: str
    price_per_hour: float
    capacity: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Customers
class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone_number: str = Field(..., min_length=9, max_length=20)
    email: Optional[EmailStr] = None

class CustomerResponse(CustomerCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Bookings
class TimeRangeRequest(BaseModel):
    start_time: datetime
    end_time: datetime

class BookingRoomCreate(BaseModel):
    room_id: int
    start_time: datetime
    end_time: datetime
    price_per_hour: Optional[float] = None
    notes: Optional[str] = None

class BookingCreate(BaseModel):
    customer_id: int
    rooms: List[BookingRoomCreate]
    total_amount: Optional[float] = None
    notes: Optional[str] = None

class BookingUpdate(BaseModel):
    notes: Optional[str] = None
    total_amount: Optional[float] = None

class BookingExtend(BaseModel):
    end_time: datetime

class CompleteWithPaymentRequest(BaseModel):
    end_time: Optional[datetime] = None
    total_amount: Optional[float] = None
    payment_method: str = "cash"
    notes: Optional[str] = None

class BookingRoomResponse(BaseModel):
    id: int
    booking_id: int
    room_id: int
    room_name: Optional[str] = None
    room_type: Optional[str] = None
    start_time: datetime
    end_time: datetime
    price_per_hour: float
    status: str
    payment_status: str
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    class Config:
        from_attributes = True

class BookingResponse(BaseModel):
    id: int
    customer_id: int
    booking_group_id: Optional[int] = None
    room_id: Optional[int] = None
    start_time: datetime
    end_time: datetime
    status: str
    total_amount: float
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    rooms: List[BookingRoomResponse] = []
    # Derived from payment coverage
    total_rooms: int = 0
    paid_rooms: int = 0
    payment_status: str = "unpaid"

    class Config:
        from_attributes = True


# Booking groups
class BookingGroupCreate(BaseModel):
    customer_id: int
    bookings: List[BookingRoomCreate]
    notes: Optional[str] = None

class BookingGroupComplete(BaseModel):
    end_time: datetime
    total_amount: float
    payment_method: str = "cash"
    notes: Optional[str] = None

class BookingGroupResponse(BaseModel):
    id: int
    customer_id: int
    status: str
    total_amount: float
    payment_status: str
    created_at: Optional[datetime] = None
    bookings: List[BookingResponse] = []

    class Config:
        from_attributes = True


# Payments
class PaymentCreate(BaseModel):
    booking_id: Optional[int] = None
    booking_group_id: Optional[int] = None
    booking_room_id: Optional[int] = None
    customer_id: Optional[int] = None
    amount: float
    payment_method: str = "cash"
    transaction_id: Optional[str] = None
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None

class PaymentItem(BaseModel):
    booking_id: int
    booking_room_id: Optional[int] = None
    amount: float

class MultiplePaymentRequest(BaseModel):
    payment_items: List[PaymentItem]
    payment_method: str
    notes: Optional[str] = None

class PaymentResponse(BaseModel):
    id: int
    booking_id: Optional[int] = None
    booking_group_id: Optional[int] = None
    booking_room_id: Optional[int] = None
    customer_id: Optional[int] = None
    amount: float
    payment_method: str
    transaction_id: Optional[str] = None
    payment_date: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class MultiplePaymentResponse(BaseModel):
    payments: List[PaymentResponse]
    completed_booking_ids: List[int]
    total_amount: float

class PaymentHistoryResponse(BaseModel):
    items: List[PaymentResponse]
    total: int
    page: int
    limit: int

class CheckoutResponse(BaseModel):
    """Booking (or group) after checkout with the payments taken.

    ``payment`` is the first row, ``payments`` holds one row per paid room.
    """
    booking: Optional[BookingResponse] = None
    booking_group: Optional[BookingGroupResponse] = None
    payment: Optional[PaymentResponse] = None
    payments: List[PaymentResponse] = []

class UnpaidRoomResponse(BaseModel):
    booking_room_id: int
    room_id: int
    room_name: Optional[str] = None
    room_type: Optional[str] = None
    start_time: datetime
    end_time: datetime
    hours: int
    price_per_hour: float
    subtotal: float

class UnpaidBookingResponse(BaseModel):
    booking_id: int
    customer_id: int
    customer_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: str
    notes: Optional[str] = None
    rooms: List[UnpaidRoomResponse]
    total_unpaid: float


# Reports
class RevenueResponse(BaseModel):
    period: str
    year: int
    month: Optional[int] = None
    quarter: Optional[int] = None
    revenue: float
    payments: int

class TopRoomResponse(BaseModel):
    room_id: int
    room_name: str
    room_type: str
    revenue: float
    bookings: int


# Admin schemas
class LoginRequest(BaseModel):
    password: str

class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
