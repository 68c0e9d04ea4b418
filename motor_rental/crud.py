"""Database CRUD operations for users, motors and bookings."""

import uuid

from sqlalchemy import select, func, update, delete
from sqlalchemy.exc import IntegrityError

from . import db
from .models import User, Motor, Order, ROLE_USER
from .logger import logger


# ==================== User Operations ====================


async def insert_user(
    full_name: str,
    username: str,
    email: str,
    phone: str,
    password_hash: str,
    role: str = ROLE_USER,
    user_id: uuid.UUID | None = None,
) -> User:
    """Insert a new user. Raises ValueError on duplicate username or email."""
    async with db.async_session() as session:
        try:
            async with session.begin():
                user = User(
                    id=user_id or uuid.uuid4(),
                    full_name=full_name,
                    username=username,
                    email=email,
                    phone=phone,
                    password_hash=password_hash,
                    role=role,
                )
                session.add(user)
            await session.refresh(user)  # Load server-side created_at
            return user
        except IntegrityError as e:
            await session.rollback()
            logger.debug(f"Duplicate user rejected: username={username} email={email}")
            raise ValueError("duplicate user") from e


async def select_user(user_id: uuid.UUID) -> User | None:
    """Retrieve a user by ID."""
    async with db.async_session() as session:
        return await session.get(User, user_id)


async def select_user_by_username(username: str) -> User | None:
    async with db.async_session() as session:
        result = await session.execute(select(User).where(User.username == username))
        return result.scalars().first()


async def update_user_profile(user_id: uuid.UUID, full_name: str, email: str, phone: str) -> User | None:
    """Overwrite the profile columns of a user. Returns None if the user does not exist.

    Raises ValueError when the new email belongs to another account.
    """
    async with db.async_session() as session:
        try:
            async with session.begin():
                user = await session.get(User, user_id)
                if user is None:
                    return None
                user.full_name = full_name
                user.email = email
                user.phone = phone
            return user
        except IntegrityError as e:
            await session.rollback()
            logger.debug(f"Profile update rejected for user id={user_id}: duplicate email {email}")
            raise ValueError("duplicate user") from e


async def delete_user(user_id: uuid.UUID) -> bool:
    """Delete a user (their bookings cascade). Returns False when no row matched."""
    async with db.async_session() as session:
        try:
            async with session.begin():
                result = await session.execute(delete(User).where(User.id == user_id))
            return result.rowcount > 0
        except Exception:
            logger.error(f"Failed to delete user id={user_id}", exc_info=True)
            raise


async def list_recent_users(limit: int) -> list[User]:
    """Most recently created users first."""
    async with db.async_session() as session:
        result = await session.execute(
            select(User).order_by(User.created_at.desc(), User.id).limit(limit)
        )
        return list(result.scalars().all())


# ==================== Motor Operations ====================


def _motor_conditions(motor_type: str | None, available_only: bool) -> list:
    conditions: list = []
    if motor_type:
        conditions.append(Motor.motor_type == motor_type)
    if available_only:
        conditions.append(Motor.available.is_(True))
    return conditions


async def insert_motor(values: dict) -> Motor:
    """Insert a motor and return it with its database-assigned id."""
    async with db.async_session() as session:
        try:
            async with session.begin():
                motor = Motor(**values)
                session.add(motor)
            await session.refresh(motor)
            return motor
        except Exception:
            logger.error(f"Failed to insert motor slug={values.get('motor_slug')}", exc_info=True)
            raise


async def select_motor(motor_id: int) -> Motor | None:
    async with db.async_session() as session:
        return await session.get(Motor, motor_id)


async def list_motors(
    skip: int,
    limit: int,
    motor_type: str | None = None,
    available_only: bool = False,
) -> tuple[list[Motor], int]:
    """List motors with optional filters and pagination. Returns the page and the total count.

    The count and the page are two separate statements.
    """
    async with db.async_session() as session:
        conditions = _motor_conditions(motor_type, available_only)

        count_stmt = select(func.count()).select_from(Motor)
        if conditions:
            count_stmt = count_stmt.where(*conditions)
        total = (await session.execute(count_stmt)).scalar() or 0

        stmt = select(Motor)
        if conditions:
            stmt = stmt.where(*conditions)
        stmt = stmt.order_by(Motor.motor_id.asc()).offset(skip).limit(limit)
        motors = list((await session.execute(stmt)).scalars().all())
        logger.debug(f"Motor query returned {len(motors)} rows out of {total} total")
        return motors, total


async def update_motor(motor_id: int, values: dict) -> Motor | None:
    """Apply the given column values to one motor. Returns None if it does not exist."""
    async with db.async_session() as session:
        async with session.begin():
            stmt = (
                update(Motor)
                .where(Motor.motor_id == motor_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                return None
        return await session.get(Motor, motor_id, populate_existing=True)


async def delete_motor(motor_id: int) -> bool:
    async with db.async_session() as session:
        async with session.begin():
            result = await session.execute(delete(Motor).where(Motor.motor_id == motor_id))
        return result.rowcount > 0


# ==================== Booking Operations ====================


async def insert_order(user_id: uuid.UUID, values: dict) -> Order:
    """Insert a booking; status and booking date/time come from column defaults."""
    async with db.async_session() as session:
        async with session.begin():
            order = Order(id=uuid.uuid4(), user_id=user_id, **values)
            session.add(order)
        await session.refresh(order)
        return order


async def select_order(order_id: uuid.UUID) -> Order | None:
    async with db.async_session() as session:
        return await session.get(Order, order_id)


async def update_order_status(order_id: uuid.UUID, status: str) -> bool:
    async with db.async_session() as session:
        async with session.begin():
            result = await session.execute(
                update(Order)
                .where(Order.id == order_id)
                .values(status=status)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount > 0


async def delete_order(order_id: uuid.UUID) -> bool:
    async with db.async_session() as session:
        async with session.begin():
            result = await session.execute(delete(Order).where(Order.id == order_id))
        return result.rowcount > 0


async def list_orders_for_user(user_id: uuid.UUID) -> list[Order]:
    """Bookings owned by one user, newest booking stamp first."""
    async with db.async_session() as session:
        result = await session.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.tanggal_booking.desc(), Order.waktu_booking.desc(), Order.created_at.desc())
        )
        return list(result.scalars().all())


async def list_all_orders() -> list[tuple[Order, str]]:
    """Every booking paired with its owner's username, newest first."""
    async with db.async_session() as session:
        result = await session.execute(
            select(Order, User.username)
            .join(User, Order.user_id == User.id)
            .order_by(Order.tanggal_booking.desc(), Order.waktu_booking.desc(), Order.created_at.desc())
        )
        return [(order, username) for order, username in result.all()]
