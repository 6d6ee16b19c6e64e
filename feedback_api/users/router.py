"""User administration endpoints."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from feedback_api.auth.models import User
from feedback_api.auth.schemas import UserResponse
from feedback_api.auth.service import get_current_active_user, require_roles
from feedback_api.database import get_db
from feedback_api.models.enums import UserRole
from .schemas import UserUpdate, ProfileUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = require_roles(UserRole.admin)


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _: User = Depends(admin_only),
):
    """List users, optionally filtered by role."""
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.id).offset(skip).limit(limit).all()


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
):
    """Update the current user's own profile."""
    current_user.full_name = profile.full_name
    db.commit()
    db.refresh(current_user)
    return current_user


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(admin_only),
):
    return _get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    changes: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_only),
):
    """Change a user's role, active flag or name."""
    user = _get_user_or_404(db, user_id)
    if user.id == admin.id and (changes.role not in (None, UserRole.admin) or changes.is_active is False):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Administrators cannot demote or deactivate themselves"
        )

    for field, value in changes.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} updated by admin {admin.id}")
    return user
