"""User administration package."""
from .router import router as users_router

__all__ = ['users_router']
