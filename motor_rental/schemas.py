"""Pydantic schemas for request/response validation and serialization."""

import uuid
from datetime import date, datetime, time

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import settings


DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
STAMP_TIME_FORMAT = "%H:%M:%S"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Integer columns and paging values are 32-bit in the database
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


# ==================== Error Schemas ====================

class ErrorResponse(BaseModel):
    """Standardized error response with code and message."""
    error: str
    message: str
    details: dict | None = None


class ErrorCode:
    """Centralized error codes for API responses."""
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_ID = "INVALID_ID"
    NO_FIELDS_TO_UPDATE = "NO_FIELDS_TO_UPDATE"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    MOTOR_NOT_FOUND = "MOTOR_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    DUPLICATE_USER = "DUPLICATE_USER"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class MessageResponse(BaseModel):
    message: str


class ActionResponse(BaseModel):
    success: bool = True
    message: str


# ==================== Auth / User Schemas ====================

class UserRegister(BaseModel):
    """Schema for account registration."""
    full_name: str = Field(..., min_length=1, max_length=settings.USER_NAME_MAX_LENGTH)
    username: str = Field(..., min_length=1, max_length=settings.USER_USERNAME_MAX_LENGTH)
    email: EmailStr = Field(..., max_length=settings.USER_EMAIL_MAX_LENGTH)
    phone: str = Field(..., min_length=1, max_length=settings.USER_PHONE_MAX_LENGTH)
    password: str = Field(
        ...,
        min_length=settings.PASSWORD_MIN_LENGTH,
        max_length=settings.PASSWORD_MAX_LENGTH,
        description=f"Account password (min {settings.PASSWORD_MIN_LENGTH} characters)",
    )

    @field_validator('full_name', 'username', 'phone')
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject values that are only whitespace."""
        if not v.strip():
            raise ValueError("Value cannot be empty or only whitespace")
        return v.strip()

    @field_validator('username')
    @classmethod
    def validate_username(cls, v: str) -> str:
        if any(ch.isspace() for ch in v):
            raise ValueError("Username cannot contain whitespace")
        return v


class UserLogin(BaseModel):
    """Schema for login credentials."""
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Bearer credential returned by login."""
    token: str
    token_type: str = "bearer"


class UserOut(BaseModel):
    """User output schema without password."""
    id: uuid.UUID
    username: str
    full_name: str
    email: str
    phone: str
    created_at: str


# ==================== Motor Schemas ====================

class MotorCreate(BaseModel):
    motor_slug: str = Field(..., min_length=1, max_length=100)
    motor_name: str = Field(..., min_length=1, max_length=100)
    motor_type: str = Field(..., min_length=1, max_length=50)
    price_per_day: int = Field(..., ge=0, le=INT32_MAX)
    description: str | None = None
    image_url: str | None = None
    available: bool | None = None
    branch: str | None = Field(None, max_length=100)


class MotorUpdate(BaseModel):
    """Partial motor update; fields left out (or null) keep their stored value."""
    motor_slug: str | None = Field(None, min_length=1, max_length=100)
    motor_name: str | None = Field(None, min_length=1, max_length=100)
    motor_type: str | None = Field(None, min_length=1, max_length=50)
    price_per_day: int | None = Field(None, ge=0, le=INT32_MAX)
    description: str | None = None
    image_url: str | None = None
    available: bool | None = None
    branch: str | None = Field(None, max_length=100)


class MotorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    motor_id: int
    motor_slug: str
    motor_name: str
    motor_type: str
    price_per_day: int
    description: str | None = None
    image_url: str | None = None
    available: bool | None = None
    branch: str | None = None


class MotorListResponse(BaseModel):
    """One page of motors plus paging metadata."""
    motors: list[MotorOut]
    total: int
    page: int
    limit: int


# ==================== Booking Schemas ====================

class CamelModel(BaseModel):
    """Booking payloads use camelCase Indonesian field names on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingCreate(CamelModel):
    """Booking form submitted by the rental page.

    Dates must be YYYY-MM-DD and times HH:MM. Unknown keys are ignored.
    """
    tanggal_peminjaman: date
    jam_peminjaman: time
    alamat_pengantaran: str
    tanggal_pengembalian: date
    jam_pengembalian: time
    alamat_pengembalian: str
    pilih_cabang: str
    pilih_motor: str
    booking_id: str | None = None
    motor_price: str | None = None

    @field_validator('booking_id', 'motor_price', mode='before')
    @classmethod
    def optional_text(cls, v):
        """Anything but a string (number, object, null) falls back to the generated default."""
        return v if isinstance(v, str) else None

    @field_validator('tanggal_peminjaman', 'tanggal_pengembalian', mode='before')
    @classmethod
    def parse_date(cls, v):
        if isinstance(v, date):
            return v
        if not isinstance(v, str):
            raise ValueError("expected a date string in YYYY-MM-DD format")
        try:
            return datetime.strptime(v, DATE_FORMAT).date()
        except ValueError:
            raise ValueError("expected a date string in YYYY-MM-DD format") from None

    @field_validator('jam_peminjaman', 'jam_pengembalian', mode='before')
    @classmethod
    def parse_time(cls, v):
        if isinstance(v, time):
            return v
        if not isinstance(v, str):
            raise ValueError("expected a time string in HH:MM format")
        try:
            return datetime.strptime(v, TIME_FORMAT).time()
        except ValueError:
            raise ValueError("expected a time string in HH:MM format") from None


class BookingStatusUpdate(BaseModel):
    # Omitting status resets the booking to the default status
    status: str = Field(settings.BOOKING_DEFAULT_STATUS, min_length=1, max_length=30)


class BookingData(CamelModel):
    """Echo of the stored booking returned by the create call."""
    id: uuid.UUID
    booking_id: str
    tanggal_peminjaman: str
    jam_peminjaman: str
    alamat_pengantaran: str
    tanggal_pengembalian: str
    jam_pengembalian: str
    alamat_pengembalian: str
    pilih_cabang: str
    pilih_motor: str
    motor_price: str
    status: str


class BookingCreatedResponse(BaseModel):
    success: bool = True
    message: str
    booking_id: str
    order_id: uuid.UUID
    data: BookingData


class OrderOut(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID = Field(alias="user_id")
    booking_id: str
    tanggal_peminjaman: str
    jam_peminjaman: str
    alamat_pengantaran: str
    tanggal_pengembalian: str
    jam_pengembalian: str
    alamat_pengembalian: str
    pilih_cabang: str
    pilih_motor: str
    motor_price: str
    status: str
    tanggal_booking: str
    waktu_booking: str


class AdminOrderOut(OrderOut):
    username: str


class OrderListResponse(BaseModel):
    success: bool = True
    data: list[OrderOut]
    total: int
    user_id: uuid.UUID


class AdminOrderListResponse(BaseModel):
    success: bool = True
    data: list[AdminOrderOut]
    total: int
    type: str = "admin_view"


# ==================== Profile Schemas ====================

class ProfilCreate(BaseModel):
    """Profile form. ``user_id`` is accepted for compatibility but identity always comes from the token."""
    user_id: str | int | None = None
    nama: str = Field(..., min_length=1, max_length=settings.USER_NAME_MAX_LENGTH)
    email: EmailStr = Field(..., max_length=settings.USER_EMAIL_MAX_LENGTH)
    no_hp: str = Field(..., min_length=1, max_length=settings.USER_PHONE_MAX_LENGTH)


class ProfilUpdate(BaseModel):
    nama: str | None = Field(None, min_length=1, max_length=settings.USER_NAME_MAX_LENGTH)
    email: EmailStr | None = Field(None, max_length=settings.USER_EMAIL_MAX_LENGTH)
    no_hp: str | None = Field(None, min_length=1, max_length=settings.USER_PHONE_MAX_LENGTH)


class ProfilOut(BaseModel):
    id: str
    nama: str
    email: str
    no_hp: str
    username: str | None = None
    created_at: str
    updated_at: str


class ProfilListResponse(BaseModel):
    profils: list[ProfilOut]
    total: int
