# API route definitions (HTTP layer)
# One router per resource; main.py mounts them all

import os
from datetime import datetime, timezone
from typing import Annotated
from fastapi import APIRouter, HTTPException, Request, Depends, Path, Query
from fastapi.responses import Response
from .schemas import (
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
    BookingCreatedResponse,
    OrderOut,
    OrderListResponse,
    AdminOrderListResponse,
    ProfilCreate,
    ProfilUpdate,
    ProfilOut,
    ProfilListResponse,
    INT32_MIN,
    INT32_MAX,
)
from .models import User
from .dependencies import get_current_user, get_optional_user, require_admin
from . import db
from . import services
from .config import settings
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Helper to conditionally apply rate limiting (skip in tests)
def conditional_limit(limit_string):
    """Apply rate limit only if not in test mode."""
    if os.getenv('TEST_MODE'):
        def decorator(func):
            return func
        return decorator
    return limiter.limit(limit_string)


# Out-of-range values are rejected as bad input before they reach a 32-bit column
MotorId = Annotated[int, Path(ge=INT32_MIN, le=INT32_MAX)]
PagingValue = Annotated[int | None, Query(ge=INT32_MIN, le=INT32_MAX)]


def liveness(area: str) -> dict:
    """Per-router liveness payload used by the /test endpoints."""
    return {
        "status": "ok",
        "message": f"{area} API is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ============================================================================
# Service Endpoints
# ============================================================================

system_router = APIRouter(tags=["system"])


@system_router.get("/health")
async def health_check():
    """Health check endpoint for load balancers and monitoring.

    Returns:
        - 200 OK if the service and database are healthy
        - 503 Service Unavailable if the database is unreachable
    """
    health_status = {
        "status": "healthy",
        "service": settings.APP_NAME,
        "environment": settings.APP_ENV,
    }
    if await db.check_db_connection():
        health_status["database"] = "connected"
        return health_status

    health_status["status"] = "unhealthy"
    health_status["database"] = "disconnected"
    raise HTTPException(status_code=503, detail=health_status)


@system_router.get("/api/hello")
async def hello():
    return {"message": f"Hello from {settings.APP_NAME}!"}


@system_router.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


# ============================================================================
# Authentication Endpoints
# ============================================================================

auth_router = APIRouter(prefix="/api", tags=["auth"])


@auth_router.post("/register", response_model=UserOut, status_code=201)
@conditional_limit(settings.RATE_LIMIT_AUTH)
async def register(user: UserRegister, request: Request):
    """Register a new account.

    Raises:
        409: Username or email already exists
    """
    return await services.register_user(user)


@auth_router.post("/login", response_model=TokenResponse)
@conditional_limit(settings.RATE_LIMIT_AUTH)
async def login(credentials: UserLogin, request: Request):
    """Exchange username and password for a bearer token.

    Raises:
        401: Invalid credentials
    """
    return await services.authenticate_user(credentials)


# ============================================================================
# Motor Endpoints
# ============================================================================

motor_router = APIRouter(prefix="/api/motors", tags=["motors"])


@motor_router.get("/test")
async def motors_liveness():
    return liveness("Motors")


@motor_router.get("", response_model=MotorListResponse)
async def list_motors(
    page: PagingValue = None,
    limit: PagingValue = None,
    motor_type: str | None = None,  # filter by type
    available_only: bool = False,  # only motors flagged available
):
    return await services.list_motors(
        page=page,
        limit=limit,
        motor_type=motor_type,
        available_only=available_only,
    )


@motor_router.post("", response_model=MotorOut, status_code=201)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def create_motor(motor: MotorCreate, request: Request):
    return await services.create_motor(motor)


@motor_router.get("/{motor_id}", response_model=MotorOut)
async def get_motor(motor_id: MotorId):
    return await services.get_motor(motor_id)


@motor_router.put("/{motor_id}", response_model=MotorOut)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def update_motor(motor_id: MotorId, changes: MotorUpdate, request: Request):
    return await services.update_motor(motor_id, changes)


@motor_router.delete("/{motor_id}", response_model=MessageResponse)
async def delete_motor(motor_id: MotorId):
    return await services.delete_motor(motor_id)


# ============================================================================
# Booking Endpoints
# ============================================================================

order_router = APIRouter(prefix="/api/orders", tags=["orders"])


@order_router.get("/test")
async def orders_liveness():
    return liveness("Orders")


@order_router.post("", response_model=BookingCreatedResponse, status_code=201)
@conditional_limit(settings.RATE_LIMIT_WRITE)
async def create_booking(
    booking: BookingCreate,
    request: Request,
    current_user: User = Depends(get_current_user),
):
    """Create a booking for the authenticated user.

    Raises:
        400: A required field is missing or a date/time does not parse
        401: Missing or invalid token
    """
    return await services.create_booking(current_user, booking)


@order_router.get("", response_model=OrderListResponse)
async def list_own_bookings(current_user: User = Depends(get_current_user)):
    return await services.list_own_bookings(current_user)


@order_router.get("/all", response_model=AdminOrderListResponse)
async def list_all_bookings(admin: User = Depends(require_admin)):
    return await services.list_all_bookings()


@order_router.get("/{booking_id}", response_model=OrderOut)
async def get_booking(booking_id: str, current_user: User = Depends(get_current_user)):
    return await services.get_booking(current_user, booking_id)


@order_router.put("/{booking_id}", response_model=ActionResponse)
async def update_booking(
    booking_id: str,
    changes: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
):
    return await services.update_booking(current_user, booking_id, changes)


@order_router.delete("/{booking_id}", response_model=ActionResponse)
async def delete_booking(booking_id: str, current_user: User = Depends(get_current_user)):
    return await services.delete_booking(current_user, booking_id)


# ============================================================================
# Profile Endpoints
# ============================================================================

profil_router = APIRouter(prefix="/api/profils", tags=["profils"])


@profil_router.get("/test")
async def profils_liveness():
    return liveness("Profils")


@profil_router.post("", response_model=ProfilOut)
async def create_profil(
    profil: ProfilCreate,
    current_user: User | None = Depends(get_optional_user),
):
    """Create or update the caller's profile."""
    return await services.upsert_profile(current_user, profil)


@profil_router.get("", response_model=ProfilListResponse)
async def list_profils(admin: User = Depends(require_admin)):
    return await services.list_profiles()


@profil_router.get("/me", response_model=ProfilOut)
async def get_my_profil(current_user: User = Depends(get_current_user)):
    return await services.get_my_profile(current_user)


@profil_router.get("/user/{user_id}", response_model=ProfilOut)
async def get_profil_by_user_id(user_id: str, current_user: User = Depends(get_current_user)):
    return await services.get_profile(current_user, user_id, label="user")


@profil_router.get("/{profil_id}", response_model=ProfilOut)
async def get_profil(profil_id: str, current_user: User = Depends(get_current_user)):
    return await services.get_profile(current_user, profil_id)


@profil_router.put("/{profil_id}", response_model=ProfilOut)
async def update_profil(
    profil_id: str,
    changes: ProfilUpdate,
    current_user: User = Depends(get_current_user),
):
    return await services.update_profile(current_user, profil_id, changes)


@profil_router.delete("/{profil_id}", response_model=MessageResponse)
async def delete_profil(profil_id: str, current_user: User = Depends(get_current_user)):
    return await services.delete_profile(current_user, profil_id)


# ============================================================================
# User Endpoints
# ============================================================================

users_router = APIRouter(prefix="/api/users", tags=["users"])


@users_router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, current_user: User = Depends(get_current_user)):
    return await services.get_user(current_user, user_id)


routers = [system_router, auth_router, motor_router, order_router, profil_router, users_router]
