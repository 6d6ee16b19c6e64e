"""Request/response schemas for authentication."""
import string
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from feedback_api.models.enums import UserRole

PASSWORD_RULES = [
    (lambda v: any(c.isdigit() for c in v), "one number"),
    (lambda v: any(c.isupper() for c in v), "one uppercase letter"),
    (lambda v: any(c.islower() for c in v), "one lowercase letter"),
    (lambda v: any(c in string.punctuation for c in v), "one special character"),
]


def check_password_complexity(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    missing = [label for rule, label in PASSWORD_RULES if not rule(value)]
    if missing:
        raise ValueError(f"Password must contain at least {', '.join(missing)}")
    return value


Password = Annotated[str, Field(min_length=8), AfterValidator(check_password_complexity)]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    refresh_token: str


class TokenData(BaseModel):
    email: Optional[str] = None
    user_id: Optional[int] = None
    roles: list[str] = []


class UserCreate(BaseModel):
    email: EmailStr
    password: Password
    full_name: Optional[str] = None
    role: UserRole = UserRole.student

    @field_validator("role")
    @classmethod
    def no_self_service_admin(cls, v: UserRole) -> UserRole:
        if v == UserRole.admin:
            raise ValueError("Admin accounts cannot be self-registered")
        return v


class ChangePassword(BaseModel):
    current_password: str
    new_password: Password


class UserResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str]
    role: UserRole
    is_active: bool
    is_verified: bool
    oauth_provider: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
