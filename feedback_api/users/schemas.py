"""Request schemas for user administration."""
from typing import Optional

from pydantic import BaseModel, Field

from feedback_api.models.enums import UserRole


class UserUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=100)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class ProfileUpdate(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
