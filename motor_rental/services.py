"""Business logic layer for accounts, motors, bookings and profiles.

Services translate between wire schemas and ORM rows, apply pagination and
authorization rules, and raise HTTPException with the standard error body.
Storage errors are not caught here; the application-level handler turns
them into a generic 500.
"""

import uuid
from datetime import datetime, timezone

from fastapi import HTTPException

from .schemas import (
    ErrorCode,
    MessageResponse,
    ActionResponse,
    UserRegister,
    UserLogin,
    TokenResponse,
    UserOut,
    MotorCreate,
    MotorUpdate,
    MotorOut,
    MotorListResponse,
    BookingCreate,
    BookingStatusUpdate,
    BookingData,
    BookingCreatedResponse,
    OrderOut,
    AdminOrderOut,
    OrderListResponse,
    AdminOrderListResponse,
    ProfilCreate,
    ProfilUpdate,
    ProfilOut,
    ProfilListResponse,
    DATE_FORMAT,
    TIME_FORMAT,
    STAMP_TIME_FORMAT,
    TIMESTAMP_FORMAT,
)
from .crud import (
    insert_user,
    select_user,
    select_user_by_username,
    update_user_profile,
    delete_user as crud_delete_user,
    list_recent_users,
    insert_motor,
    select_motor,
    list_motors as crud_list_motors,
    update_motor as crud_update_motor,
    delete_motor as crud_delete_motor,
    insert_order,
    select_order,
    update_order_status,
    delete_order,
    list_orders_for_user,
    list_all_orders,
)
from .auth import hash_password, verify_password, issue_token
from .dependencies import ensure_owner_or_admin
from .config import settings
from .models import User, Motor, Order, ROLE_ADMIN, ROLE_USER
from .utils import (
    normalize_email,
    derive_username,
    generate_booking_reference,
    display_booking_id,
    build_update_values,
)
from .logger import logger

PLACEHOLDER_ID = "default-id"

# ==================== Helper Functions ====================


def _error(status_code: int, code: str, message: str, details: dict | None = None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"error": code, "message": message, "details": details or {}},
    )


def _format_timestamp(value: datetime | None) -> str:
    return (value or datetime.now(timezone.utc)).strftime(TIMESTAMP_FORMAT)


def _parse_uuid(value: str, label: str) -> uuid.UUID:
    """Parse a path id, rejecting the frontend's placeholder id before trying."""
    if value == PLACEHOLDER_ID or not value.strip():
        logger.warning(f"Rejected placeholder {label} ID: {value!r}")
        raise _error(
            400,
            ErrorCode.INVALID_ID,
            f"Invalid {label} ID format. Please provide a valid UUID.",
            {"id": value},
        )
    try:
        return uuid.UUID(value)
    except ValueError:
        logger.warning(f"Rejected malformed {label} ID: {value!r}")
        raise _error(400, ErrorCode.INVALID_ID, f"Invalid {label} ID format", {"id": value}) from None


def _validate_pagination(page: int | None, limit: int | None) -> tuple[int, int, int]:
    """Floor page at 1 and clamp limit into [1, MAX_LIMIT].

    Returns:
        tuple: (page, limit, skip) normalized values
    """
    page = max(page if page is not None else settings.DEFAULT_PAGE, 1)
    limit = limit if limit is not None else settings.DEFAULT_LIMIT
    limit = min(max(limit, 1), settings.MAX_LIMIT)
    skip = (page - 1) * limit
    return page, limit, skip


def _convert_to_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        full_name=user.full_name,
        email=user.email,
        phone=user.phone,
        created_at=_format_timestamp(user.created_at),
    )


def _convert_to_profil_out(user: User, include_username: bool = False, updated_at: datetime | None = None) -> ProfilOut:
    """Project a user row onto the profile shape the frontend expects."""
    created = _format_timestamp(user.created_at)
    return ProfilOut(
        id=str(user.id),
        nama=user.full_name,
        email=user.email,
        no_hp=user.phone,
        username=user.username if include_username else None,
        created_at=created,
        updated_at=_format_timestamp(updated_at) if updated_at else created,
    )


def _convert_to_motor_out(motor: Motor) -> MotorOut:
    return MotorOut.model_validate(motor)


def _convert_to_order_out(order: Order, booking_id: str) -> OrderOut:
    return OrderOut(
        id=order.id,
        user_id=order.user_id,
        booking_id=booking_id,
        tanggal_peminjaman=order.tanggal_peminjaman.strftime(DATE_FORMAT),
        jam_peminjaman=order.jam_peminjaman.strftime(TIME_FORMAT),
        alamat_pengantaran=order.alamat_pengantaran,
        tanggal_pengembalian=order.tanggal_pengembalian.strftime(DATE_FORMAT),
        jam_pengembalian=order.jam_pengembalian.strftime(TIME_FORMAT),
        alamat_pengembalian=order.alamat_pengembalian,
        pilih_cabang=order.pilih_cabang,
        pilih_motor=order.pilih_motor,
        motor_price=order.motor_price,
        status=order.status,
        tanggal_booking=order.tanggal_booking.strftime(DATE_FORMAT),
        waktu_booking=order.waktu_booking.strftime(STAMP_TIME_FORMAT),
    )


# ==================== Authentication ====================


async def register_user(data: UserRegister) -> UserOut:
    """Create an account with a bcrypt-hashed password."""
    email = normalize_email(data.email)
    role = ROLE_ADMIN if data.username.lower() in settings.get_admin_usernames() else ROLE_USER
    logger.info(f"Registering new user: username={data.username} email={email}")

    try:
        user = await insert_user(
            full_name=data.full_name,
            username=data.username,
            email=email,
            phone=data.phone,
            password_hash=hash_password(data.password),
            role=role,
        )
    except ValueError as e:
        logger.warning(f"Registration failed - username or email already taken: {data.username} / {email}")
        raise _error(
            409,
            ErrorCode.DUPLICATE_USER,
            "Username or email is already registered",
            {"username": data.username, "email": email},
        ) from e

    logger.info(f"User registered successfully: id={user.id} role={user.role}")
    return _convert_to_user_out(user)


async def authenticate_user(data: UserLogin) -> TokenResponse:
    """Check credentials and issue a signed bearer token."""
    logger.info(f"Login attempt for user: {data.username}")

    user = await select_user_by_username(data.username)
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"Login failed for user: {data.username}")
        raise _error(401, ErrorCode.UNAUTHORIZED, "Invalid username or password")

    logger.info(f"Login successful for user: {data.username} (id={user.id})")
    return TokenResponse(token=issue_token(user.id))


# ==================== Motors ====================


async def list_motors(
    page: int | None = None,
    limit: int | None = None,
    motor_type: str | None = None,
    available_only: bool = False,
) -> MotorListResponse:
    page, limit, skip = _validate_pagination(page, limit)
    logger.debug(
        f"Listing motors: page={page} limit={limit} "
        f"filters=(motor_type={motor_type}, available_only={available_only})"
    )
    motors, total = await crud_list_motors(skip, limit, motor_type=motor_type, available_only=available_only)
    return MotorListResponse(
        motors=[_convert_to_motor_out(m) for m in motors],
        total=total,
        page=page,
        limit=limit,
    )


async def get_motor(motor_id: int) -> MotorOut:
    motor = await select_motor(motor_id)
    if not motor:
        logger.warning(f"Motor not found: id={motor_id}")
        raise _error(404, ErrorCode.MOTOR_NOT_FOUND, "Motor not found", {"motor_id": motor_id})
    return _convert_to_motor_out(motor)


async def create_motor(data: MotorCreate) -> MotorOut:
    """Store a new motor; availability defaults to true."""
    values = data.model_dump()
    if values["available"] is None:
        values["available"] = True
    motor = await insert_motor(values)
    logger.info(f"Motor created: id={motor.motor_id} slug={motor.motor_slug}")
    return _convert_to_motor_out(motor)


async def update_motor(motor_id: int, data: MotorUpdate) -> MotorOut:
    """Write only the supplied fields; an empty update is rejected without touching the row."""
    values = build_update_values(data)
    if not values:
        logger.warning(f"Motor update rejected - no fields supplied: id={motor_id}")
        raise _error(400, ErrorCode.NO_FIELDS_TO_UPDATE, "No valid fields to update", {"motor_id": motor_id})

    motor = await crud_update_motor(motor_id, values)
    if not motor:
        logger.warning(f"Cannot update - motor not found: id={motor_id}")
        raise _error(404, ErrorCode.MOTOR_NOT_FOUND, "Motor not found", {"motor_id": motor_id})

    logger.info(f"Motor updated: id={motor_id} fields={list(values)}")
    return _convert_to_motor_out(motor)


async def delete_motor(motor_id: int) -> MessageResponse:
    if not await crud_delete_motor(motor_id):
        logger.warning(f"Cannot delete - motor not found: id={motor_id}")
        raise _error(404, ErrorCode.MOTOR_NOT_FOUND, "Motor not found", {"motor_id": motor_id})
    logger.info(f"Motor deleted: id={motor_id}")
    return MessageResponse(message="Motor deleted successfully")


# ==================== Bookings ====================


async def create_booking(current_user: User, data: BookingCreate) -> BookingCreatedResponse:
    """Store a booking for the caller. Status starts at the default; booking date/time are stamped by the database."""
    booking_ref = data.booking_id or generate_booking_reference(settings.BOOKING_REFERENCE_PREFIX)
    motor_price = data.motor_price or settings.BOOKING_DEFAULT_PRICE

    order = await insert_order(
        current_user.id,
        {
            "tanggal_peminjaman": data.tanggal_peminjaman,
            "jam_peminjaman": data.jam_peminjaman,
            "alamat_pengantaran": data.alamat_pengantaran,
            "tanggal_pengembalian": data.tanggal_pengembalian,
            "jam_pengembalian": data.jam_pengembalian,
            "alamat_pengembalian": data.alamat_pengembalian,
            "pilih_cabang": data.pilih_cabang,
            "pilih_motor": data.pilih_motor,
            "motor_price": motor_price,
        },
    )
    logger.info(
        f"Booking created: id={order.id} ref={booking_ref} user={current_user.id} "
        f"motor={order.pilih_motor} branch={order.pilih_cabang}"
    )

    stored = _convert_to_order_out(order, booking_ref)
    return BookingCreatedResponse(
        message="Booking created successfully",
        booking_id=booking_ref,
        order_id=order.id,
        data=BookingData(**stored.model_dump(include=set(BookingData.model_fields))),
    )


async def _get_owned_order(current_user: User, booking_id: str) -> Order:
    order_id = _parse_uuid(booking_id, "booking")
    order = await select_order(order_id)
    if not order:
        logger.warning(f"Booking not found: id={order_id}")
        raise _error(404, ErrorCode.BOOKING_NOT_FOUND, "Booking not found", {"booking_id": booking_id})
    ensure_owner_or_admin(current_user, order.user_id)
    return order


async def get_booking(current_user: User, booking_id: str) -> OrderOut:
    order = await _get_owned_order(current_user, booking_id)
    return _convert_to_order_out(order, str(order.id))


async def update_booking(current_user: User, booking_id: str, data: BookingStatusUpdate) -> ActionResponse:
    """Set the booking status. A payload without status resets it to the default."""
    order = await _get_owned_order(current_user, booking_id)
    if not await update_order_status(order.id, data.status):
        raise _error(404, ErrorCode.BOOKING_NOT_FOUND, "Booking not found", {"booking_id": booking_id})
    logger.info(f"Booking status updated: id={order.id} status={data.status} by user={current_user.id}")
    return ActionResponse(message="Booking status updated successfully")


async def delete_booking(current_user: User, booking_id: str) -> ActionResponse:
    order = await _get_owned_order(current_user, booking_id)
    if not await delete_order(order.id):
        raise _error(404, ErrorCode.BOOKING_NOT_FOUND, "Booking not found", {"booking_id": booking_id})
    logger.info(f"Booking deleted: id={order.id} by user={current_user.id}")
    return ActionResponse(message="Booking deleted successfully")


async def list_own_bookings(current_user: User) -> OrderListResponse:
    orders = await list_orders_for_user(current_user.id)
    logger.debug(f"Found {len(orders)} bookings for user {current_user.id}")
    items = [
        _convert_to_order_out(o, display_booking_id(settings.BOOKING_REFERENCE_PREFIX, o.id))
        for o in orders
    ]
    return OrderListResponse(data=items, total=len(items), user_id=current_user.id)


async def list_all_bookings() -> AdminOrderListResponse:
    rows = await list_all_orders()
    logger.info(f"Admin booking listing: {len(rows)} bookings")
    items = [
        AdminOrderOut(
            **_convert_to_order_out(o, display_booking_id(settings.BOOKING_REFERENCE_PREFIX, o.id)).model_dump(),
            username=username,
        )
        for o, username in rows
    ]
    return AdminOrderListResponse(data=items, total=len(items))


# ==================== Profiles ====================


async def upsert_profile(current_user: User | None, data: ProfilCreate) -> ProfilOut:
    """Create or update the caller's profile (their user row).

    Anonymous callers are refused unless PROFILE_ANONYMOUS_CREATE is on, in
    which case they get a brand new account with a derived username and the
    default password.
    """
    email = normalize_email(data.email)

    if current_user is None:
        if not settings.PROFILE_ANONYMOUS_CREATE:
            logger.warning("Anonymous profile creation refused")
            raise HTTPException(
                status_code=401,
                detail={"error": ErrorCode.UNAUTHORIZED, "message": "Authentication required", "details": {}},
                headers={"WWW-Authenticate": "Bearer"},
            )
        user_id = uuid.uuid4()
        logger.info(f"Anonymous profile creation: assigning new identity {user_id}")
    else:
        user_id = current_user.id
        updated = await _write_profile(user_id, data.nama, email, data.no_hp)
        if updated:
            logger.info(f"Profile updated through create endpoint: id={user_id}")
            return _convert_to_profil_out(updated)

    try:
        user = await insert_user(
            full_name=data.nama,
            username=derive_username(data.nama, settings.USER_USERNAME_MAX_LENGTH),
            email=email,
            phone=data.no_hp,
            password_hash=hash_password(settings.PROFILE_DEFAULT_PASSWORD),
            user_id=user_id,
        )
    except ValueError as e:
        raise _error(
            409,
            ErrorCode.DUPLICATE_USER,
            "Username or email is already registered",
            {"username": derive_username(data.nama, settings.USER_USERNAME_MAX_LENGTH), "email": email},
        ) from e

    logger.info(f"Profile created with new user row: id={user.id}")
    return _convert_to_profil_out(user)


async def _write_profile(user_id: uuid.UUID, full_name: str, email: str, phone: str) -> User | None:
    try:
        return await update_user_profile(user_id, full_name, email, phone)
    except ValueError as e:
        raise _error(409, ErrorCode.DUPLICATE_USER, "Email is already registered", {"email": email}) from e


async def get_my_profile(current_user: User) -> ProfilOut:
    user = await select_user(current_user.id)
    if not user:
        raise _error(404, ErrorCode.USER_NOT_FOUND, "User not found", {"user_id": str(current_user.id)})
    return _convert_to_profil_out(user, include_username=True)


async def get_profile(current_user: User, profil_id: str, label: str = "profil") -> ProfilOut:
    """Look up a profile by id; profile ids and user ids are the same identity space."""
    user_id = _parse_uuid(profil_id, label)
    ensure_owner_or_admin(current_user, user_id)
    user = await select_user(user_id)
    if not user:
        logger.warning(f"Profile not found: id={user_id}")
        raise _error(404, ErrorCode.PROFILE_NOT_FOUND, "Profil not found", {"id": profil_id})
    return _convert_to_profil_out(user)


async def update_profile(current_user: User, profil_id: str, data: ProfilUpdate) -> ProfilOut:
    """Merge supplied fields over the stored profile and write it back."""
    user_id = _parse_uuid(profil_id, "profil")
    ensure_owner_or_admin(current_user, user_id)

    current = await select_user(user_id)
    if not current:
        raise _error(404, ErrorCode.PROFILE_NOT_FOUND, "Profil not found", {"id": profil_id})

    full_name = data.nama if data.nama is not None else current.full_name
    email = normalize_email(data.email) if data.email is not None else current.email
    phone = data.no_hp if data.no_hp is not None else current.phone

    updated = await _write_profile(user_id, full_name, email, phone)
    if not updated:
        raise _error(404, ErrorCode.PROFILE_NOT_FOUND, "Profil not found", {"id": profil_id})

    logger.info(f"Profile updated: id={user_id} by user={current_user.id}")
    return _convert_to_profil_out(updated, updated_at=datetime.now(timezone.utc))


async def delete_profile(current_user: User, profil_id: str) -> MessageResponse:
    user_id = _parse_uuid(profil_id, "profil")
    ensure_owner_or_admin(current_user, user_id)
    if not await crud_delete_user(user_id):
        raise _error(404, ErrorCode.PROFILE_NOT_FOUND, "Profil not found", {"id": profil_id})
    logger.info(f"Profile deleted: id={user_id} by user={current_user.id}")
    return MessageResponse(message="Profil deleted successfully")


async def list_profiles() -> ProfilListResponse:
    users = await list_recent_users(settings.PROFILE_LIST_LIMIT)
    profils = [_convert_to_profil_out(u) for u in users]
    return ProfilListResponse(profils=profils, total=len(profils))


# ==================== Users ====================


async def get_user(current_user: User, user_id: str) -> UserOut:
    target_id = _parse_uuid(user_id, "user")
    ensure_owner_or_admin(current_user, target_id)
    user = await select_user(target_id)
    if not user:
        logger.warning(f"User not found: id={target_id}")
        raise _error(404, ErrorCode.USER_NOT_FOUND, "User not found", {"user_id": user_id})
    return _convert_to_user_out(user)
