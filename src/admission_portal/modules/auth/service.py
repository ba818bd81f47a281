"""
Authentication Service

Student registration with email verification, password login by email or
phone, and password changes for signed-in users.

Verification codes live in Redis under ``email_verification:{email}`` and
expire after ten minutes. A user cannot log in until the code is confirmed.
"""

import logging

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from admission_portal.core.security import (
    create_access_token,
    create_refresh_token,
    generate_verification_code,
    hash_password,
    verify_password,
)
from admission_portal.modules.admissions import notifications
from admission_portal.modules.admissions.notifications import Notification
from admission_portal.modules.auth.schemas import RegisterRequest
from admission_portal.modules.users.models import User, UserRole
from admission_portal.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

VERIFICATION_CODE_TTL_SECONDS = 600
VERIFICATION_KEY_PREFIX = "email_verification"


class AuthServiceError(Exception):
    """Base exception for authentication errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidCredentialsError(AuthServiceError):
    def __init__(self):
        super().__init__("Invalid email or password.", "INVALID_CREDENTIALS", 401)


class VerificationUnavailableError(AuthServiceError):
    def __init__(self):
        super().__init__(
            "Email verification is temporarily unavailable. Please try again later.",
            "VERIFICATION_UNAVAILABLE",
            503,
        )


def _verification_key(email: str) -> str:
    return f"{VERIFICATION_KEY_PREFIX}:{email.lower()}"


async def _issue_code(redis: Redis, user: User) -> Notification:
    code = generate_verification_code()
    await redis.set(_verification_key(user.email), code, ex=VERIFICATION_CODE_TTL_SECONDS)
    logger.info(f"Issued verification code for {user.email}")
    return notifications.verification_code(
        email=user.email, first_name=user.first_name, code=code
    )


async def register(
    db: AsyncSession,
    redis: Redis | None,
    data: RegisterRequest,
) -> tuple[User, list[Notification]]:
    """
    Create an unverified student account and issue a verification code.

    Raises:
        AuthServiceError 409: If the email or phone is already registered
        VerificationUnavailableError: If Redis is not connected
    """
    if redis is None:
        raise VerificationUnavailableError()

    existing = await UserRepository.find_conflicting(db, email=data.email, phone=data.phone)
    if existing is not None:
        if existing.email.lower() == data.email.lower():
            raise AuthServiceError(
                "An account with this email already exists.", "EMAIL_ALREADY_REGISTERED", 409
            )
        raise AuthServiceError(
            "An account with this phone number already exists.", "PHONE_ALREADY_REGISTERED", 409
        )

    user = await UserRepository.create(
        db,
        email=data.email,
        password_hash=hash_password(data.password),
        first_name=data.first_name.strip(),
        last_name=data.last_name.strip(),
        phone=data.phone,
        role=UserRole.STUDENT,
    )
    await db.commit()

    pending = [
        await _issue_code(redis, user),
        notifications.student_registered(email=user.email, name=user.full_name),
    ]
    logger.info(f"Registered student {user.id} ({user.email})")
    return user, pending


async def resend_verification_code(
    db: AsyncSession,
    redis: Redis | None,
    email: str,
) -> list[Notification]:
    """
    Issue a fresh code for an unverified account.

    Unknown or already verified addresses get no email and no error, so the
    endpoint cannot be used to discover which accounts exist.
    """
    if redis is None:
        raise VerificationUnavailableError()

    user = await UserRepository.get_by_email(db, email)
    if user is None or user.is_verified:
        return []
    return [await _issue_code(redis, user)]


async def verify_email(
    db: AsyncSession,
    redis: Redis | None,
    email: str,
    code: str,
) -> User:
    """
    Confirm the code sent at registration and mark the account verified.

    Raises:
        AuthServiceError 400: If the code is wrong, expired or the account is unknown
    """
    if redis is None:
        raise VerificationUnavailableError()

    user = await UserRepository.get_by_email(db, email)
    if user is None:
        raise AuthServiceError("Invalid or expired verification code.", "INVALID_CODE", 400)
    if user.is_verified:
        return user

    key = _verification_key(user.email)
    stored = await redis.get(key)
    if stored is None or stored != code:
        logger.warning(f"Failed verification attempt for {user.email}")
        raise AuthServiceError("Invalid or expired verification code.", "INVALID_CODE", 400)

    await redis.delete(key)
    user = await UserRepository.mark_verified(db, user)
    logger.info(f"Verified email for user {user.id}")
    return user


def _check_login(user: User | None, password: str, identifier: str) -> User:
    """
    Raises:
        InvalidCredentialsError: Unknown account or wrong password
        AuthServiceError 403: Account inactive or email not verified
    """
    if not user:
        logger.warning(f"Login attempt for unknown account: {identifier}")
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash):
        logger.warning(f"Invalid password for user: {identifier}")
        raise InvalidCredentialsError()

    if not user.is_active:
        logger.warning(f"Login attempt for inactive account: {identifier}")
        raise AuthServiceError("Your account has been deactivated.", "ACCOUNT_INACTIVE", 403)

    if not user.is_verified:
        raise AuthServiceError(
            "Please verify your email address before logging in.", "EMAIL_NOT_VERIFIED", 403
        )
    return user


def _issue_tokens(user: User) -> tuple[str, str]:
    access_token = create_access_token(
        subject=str(user.id),
        additional_claims={
            "email": user.email,
            "role": user.role.value,
            "name": user.full_name,
        },
    )
    refresh_token = create_refresh_token(subject=str(user.id))
    logger.info(f"User logged in: {user.email} (role: {user.role.value})")
    return access_token, refresh_token


async def login(db: AsyncSession, email: str, password: str) -> tuple[User, str, str]:
    """
    Authenticate by email and issue tokens.

    Returns:
        Tuple of (user, access_token, refresh_token)

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        AuthServiceError 403: Account inactive or email not verified
    """
    user = _check_login(await UserRepository.get_by_email(db, email), password, email)
    return user, *_issue_tokens(user)


async def login_with_phone(db: AsyncSession, phone: str, password: str) -> tuple[User, str, str]:
    """Same as login, keyed by the registered phone number."""
    user = _check_login(await UserRepository.get_by_phone(db, phone), password, phone)
    return user, *_issue_tokens(user)


async def change_password(
    db: AsyncSession,
    user_id,
    current_password: str,
    new_password: str,
) -> tuple[User, list[Notification]]:
    """
    Replace the signed-in user's password and email them a notice.

    Raises:
        AuthServiceError 400: Current password wrong or new password unchanged
    """
    user = await get_user(db, user_id)

    if not verify_password(current_password, user.password_hash):
        logger.warning(f"Wrong current password on change for user {user.id}")
        raise AuthServiceError("Current password is incorrect.", "INVALID_PASSWORD", 400)
    if current_password == new_password:
        raise AuthServiceError(
            "New password must differ from the current one.", "PASSWORD_UNCHANGED", 400
        )

    user = await UserRepository.update_password(db, user, hash_password(new_password))
    logger.info(f"Password changed for user {user.id}")
    return user, [notifications.password_changed(email=user.email, first_name=user.first_name)]


async def get_user(db: AsyncSession, user_id) -> User:
    user = await UserRepository.get_by_id(db, user_id)
    if user is None or not user.is_active:
        raise AuthServiceError("User not found.", "USER_NOT_FOUND", 404)
    return user
