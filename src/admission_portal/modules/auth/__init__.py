"""Authentication module."""

from admission_portal.modules.auth.router import router
from admission_portal.modules.auth.schemas import LoginRequest, LoginResponse, RegisterRequest

__all__ = ["router", "LoginRequest", "LoginResponse", "RegisterRequest"]
