"""SQLAlchemy ORM models for database tables."""

import uuid

from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Time, Uuid
from sqlalchemy.sql import func
from .db import Base
from .config import settings


ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """Account row; profiles are a projection of this table."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(settings.USER_NAME_MAX_LENGTH), nullable=False)
    username = Column(String(settings.USER_USERNAME_MAX_LENGTH), nullable=False, unique=True, index=True)
    email = Column(String(settings.USER_EMAIL_MAX_LENGTH), nullable=False, unique=True, index=True)
    phone = Column(String(settings.USER_PHONE_MAX_LENGTH), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER, server_default=ROLE_USER)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class Motor(Base):
    """Vehicle listing mapped to 'motors'."""

    __tablename__ = "motors"

    motor_id = Column(Integer, primary_key=True, autoincrement=True)
    motor_slug = Column(String(100), nullable=False)
    motor_name = Column(String(100), nullable=False)
    motor_type = Column(String(50), nullable=False, index=True)
    price_per_day = Column(Integer, nullable=False)
    description = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    available = Column(Boolean, nullable=True)
    branch = Column(String(100), nullable=True)


class Order(Base):
    """Rental booking mapped to 'orders'.

    pilih_motor is the display name of the motor, not a key into 'motors'.
    """

    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    tanggal_peminjaman = Column(Date, nullable=False)
    jam_peminjaman = Column(Time, nullable=False)
    alamat_pengantaran = Column(String, nullable=False)

    tanggal_pengembalian = Column(Date, nullable=False)
    jam_pengembalian = Column(Time, nullable=False)
    alamat_pengembalian = Column(String, nullable=False)

    pilih_cabang = Column(String(100), nullable=False)
    pilih_motor = Column(String(100), nullable=False)
    motor_price = Column(String(50), nullable=False)
    status = Column(String(30), nullable=False, server_default=settings.BOOKING_DEFAULT_STATUS)

    tanggal_booking = Column(Date, nullable=False, server_default=func.current_date())
    waktu_booking = Column(Time, nullable=False, server_default=func.current_time())
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())
