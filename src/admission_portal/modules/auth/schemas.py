"""Authentication schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Student self-registration."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, min_length=7, max_length=20)
    password: str = Field(..., min_length=8, max_length=128)


class RegisterResponse(BaseModel):
    id: UUID
    email: str
    message: str


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., pattern=r"^\d{6}$", description="6-digit code sent by email")


class ResendCodeRequest(BaseModel):
    email: EmailStr


class MessageResponse(BaseModel):
    message: str


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str


class PhoneLoginRequest(BaseModel):
    phone: str = Field(..., min_length=7, max_length=20)
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8, max_length=128)


class UserResponse(BaseModel):
    """User response schema for login and /me."""

    id: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    role: str
    is_active: bool
    is_verified: bool
    created_at: str
    updated_at: str


class LoginResponse(BaseModel):
    """Login response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse
