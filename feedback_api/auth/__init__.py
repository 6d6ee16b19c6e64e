"""Authentication package for the application."""
from .models import User, RefreshToken, LoginAttempt
from .service import (
    AuthService, get_current_user, get_current_active_user, require_roles
)
from .router import router as auth_router

__all__ = [
    'User',
    'RefreshToken',
    'LoginAttempt',
    'AuthService',
    'get_current_user',
    'get_current_active_user',
    'require_roles',
    'auth_router'
]
