"""
Authentication router.

Endpoints:
- POST /auth/register - Create a student account
- POST /auth/verify-email - Confirm the emailed code
- POST /auth/resend-code - Send a new code
- POST /auth/login - Exchange credentials for JWT tokens
- POST /auth/login-mobile - Same, using the registered phone number
- POST /auth/change-password - Change the signed-in user's password
- GET  /auth/me - Current user
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.auth import CurrentUser, get_current_user
from admission_portal.core.database import get_db
from admission_portal.core.rate_limit import rate_limit
from admission_portal.core.redis import get_redis
from admission_portal.modules.admissions.notifications import dispatch_notifications
from admission_portal.modules.auth import service
from admission_portal.modules.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PhoneLoginRequest,
    RegisterRequest,
    RegisterResponse,
    ResendCodeRequest,
    UserResponse,
    VerifyEmailRequest,
)
from admission_portal.modules.auth.service import AuthServiceError
from admission_portal.modules.users.models import User

logger = logging.getLogger(__name__)

router = APIRouter()


def _raise(e: AuthServiceError) -> NoReturn:
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=str(user.id),
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        role=user.role.value,
        is_active=user.is_active,
        is_verified=user.is_verified,
        created_at=user.created_at.isoformat(),
        updated_at=user.updated_at.isoformat(),
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
@rate_limit(limit=5, window_seconds=3600)
async def register(
    request: Request,
    data: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> RegisterResponse:
    """
    Register a student account.

    A 6-digit verification code is emailed to the student and expires in
    10 minutes. The admissions office is notified of the new account.

    Raises:
        HTTPException 409: Email or phone already registered
        HTTPException 429: Too many registrations from this client
    """
    try:
        user, pending = await service.register(db, redis, data)
    except AuthServiceError as e:
        _raise(e)

    background_tasks.add_task(dispatch_notifications, pending)
    return RegisterResponse(
        id=user.id,
        email=user.email,
        message="Registration successful. Check your email for the verification code.",
    )


@router.post("/verify-email", response_model=UserResponse)
@rate_limit(limit=10, window_seconds=600)
async def verify_email(
    request: Request,
    data: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> UserResponse:
    try:
        user = await service.verify_email(db, redis, data.email, data.code)
    except AuthServiceError as e:
        _raise(e)
    return _user_response(user)


@router.post("/resend-code", response_model=MessageResponse)
@rate_limit(limit=3, window_seconds=600)
async def resend_code(
    request: Request,
    data: ResendCodeRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> MessageResponse:
    try:
        pending = await service.resend_verification_code(db, redis, data.email)
    except AuthServiceError as e:
        _raise(e)

    background_tasks.add_task(dispatch_notifications, pending)
    return MessageResponse(
        message="If the account exists and is unverified, a new code has been sent."
    )


@router.post("/login", response_model=LoginResponse)
@rate_limit(limit=10, window_seconds=60)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive or unverified
    """
    try:
        user, access_token, refresh_token = await service.login(
            db, credentials.email, credentials.password
        )
    except AuthServiceError as e:
        _raise(e)

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=_user_response(user),
    )


@router.post("/login-mobile", response_model=LoginResponse)
@rate_limit(limit=10, window_seconds=60)
async def login_mobile(
    request: Request,
    credentials: PhoneLoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    try:
        user, access_token, refresh_token = await service.login_with_phone(
            db, credentials.phone, credentials.password
        )
    except AuthServiceError as e:
        _raise(e)

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=_user_response(user),
    )


@router.post("/change-password", response_model=MessageResponse)
@rate_limit(limit=5, window_seconds=600)
async def change_password(
    request: Request,
    data: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """
    Change the password of the signed-in user. A confirmation email is sent.

    Raises:
        HTTPException 400: Current password is wrong or the new one is unchanged
    """
    try:
        _, pending = await service.change_password(
            db, current_user.id, data.current_password, data.new_password
        )
    except AuthServiceError as e:
        _raise(e)

    background_tasks.add_task(dispatch_notifications, pending)
    return MessageResponse(message="Password changed successfully.")


@router.get("/me", response_model=UserResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> UserResponse:
    try:
        user = await service.get_user(db, current_user.id)
    except AuthServiceError as e:
        _raise(e)
    return _user_response(user)
