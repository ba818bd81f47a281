"""
Users module - User management and authentication.
"""

from admission_portal.modules.users.models import User, UserRole
from admission_portal.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
