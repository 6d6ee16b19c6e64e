"""Accounts, credentials and token lifecycle."""
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from feedback_api.config import (
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES, REFRESH_TOKEN_EXPIRE_DAYS,
    MAX_FAILED_LOGINS, LOCKOUT_MINUTES,
)
from feedback_api.database import get_db, utcnow
from feedback_api.models.enums import UserRole
from .models import User, RefreshToken, LoginAttempt
from .schemas import Token, TokenData, UserCreate

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login")


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def _find_user(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    # Tokens

    def create_access_token_for(self, user: User, lifetime: Optional[timedelta] = None) -> str:
        """Signed JWT carrying the user's email, id and role."""
        expire = datetime.now(UTC) + (lifetime or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
        claims = {
            "sub": user.email,
            "user_id": user.id,
            "roles": [user.role.value],
            "type": "access",
            "exp": expire,
        }
        return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> TokenData:
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            raise _credentials_error()
        # Refresh tokens are opaque, so anything else here is not an access token
        if payload.get("type") != "access" or payload.get("sub") is None or payload.get("user_id") is None:
            raise _credentials_error()
        return TokenData(email=payload["sub"], user_id=payload["user_id"], roles=payload.get("roles", []))

    def issue_tokens(self, user: User, user_agent: str = None, ip_address: str = None) -> Token:
        """Access token plus a freshly stored refresh token."""
        refresh = RefreshToken(
            token=RefreshToken.generate_token(),
            user_id=user.id,
            expires_at=RefreshToken.expiry_from_now(REFRESH_TOKEN_EXPIRE_DAYS),
            user_agent=user_agent,
            ip_address=ip_address,
        )
        self.db.add(refresh)
        self.db.commit()
        return Token(access_token=self.create_access_token_for(user), refresh_token=refresh.token)

    def refresh_tokens(self, refresh_token: str) -> Token:
        stored = self.db.query(RefreshToken).filter(RefreshToken.token == refresh_token).first()
        if stored is None or not stored.is_usable:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token"
            )
        user = stored.user
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )
        return Token(access_token=self.create_access_token_for(user), refresh_token=stored.token)

    def revoke_refresh_token(self, token: str) -> None:
        revoked = self.db.query(RefreshToken).filter(RefreshToken.token == token).update(
            {RefreshToken.revoked: True}
        )
        self.db.commit()
        if revoked:
            logger.info("Refresh token revoked")

    # Password accounts

    def register_user(self, user_data: UserCreate) -> User:
        if self._find_user(user_data.email):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )
        user = User(email=user_data.email, full_name=user_data.full_name, role=user_data.role)
        user.set_password(user_data.password)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Registered {user.role.value} account {user.id}")
        return user

    def login(self, email: str, password: str, user_agent: str = None, ip_address: str = None) -> Token:
        """Check a password login, record the attempt and issue tokens.

        Locked accounts get 403 even with the right password. Wrong
        credentials count towards the lockout and give 401.
        """
        user = self._find_user(email)
        if user is not None and user.is_locked():
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Account is temporarily locked due to too many failed login attempts"
            )

        success = user is not None and user.verify_password(password)
        if success and not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
        if user is not None:
            self._record_attempt(user, success, user_agent, ip_address)
        if not success:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return self.issue_tokens(user, user_agent=user_agent, ip_address=ip_address)

    def _record_attempt(self, user: User, success: bool, user_agent: str, ip_address: str) -> None:
        self.db.add(LoginAttempt(user_id=user.id, ip_address=ip_address, user_agent=user_agent, success=success))
        if success:
            user.failed_login_attempts = 0
            user.locked_until = None
            user.last_login = utcnow()
        else:
            user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
            if user.failed_login_attempts >= MAX_FAILED_LOGINS:
                user.locked_until = utcnow() + timedelta(minutes=LOCKOUT_MINUTES)
                logger.warning(f"Account {user.id} locked after {user.failed_login_attempts} failed logins")
        self.db.commit()

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        if not user.verify_password(current_password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )
        user.set_password(new_password)
        self.db.commit()

    # OAuth accounts

    def upsert_oauth_user(self, email: str, full_name: Optional[str], provider: str) -> User:
        """Return the account for an OAuth identity, creating a verified student account on first sign-in."""
        user = self._find_user(email)
        if user is None:
            user = User(email=email, full_name=full_name, role=UserRole.student, oauth_provider=provider)
            # OAuth accounts never sign in with this password
            user.set_password(RefreshToken.generate_token(32))
            self.db.add(user)
            logger.info(f"Created {provider} account for {email}")
        elif not user.oauth_provider:
            user.oauth_provider = provider
        user.is_verified = True
        user.last_login = utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Dependency to get the current user from the JWT token."""
    token_data = AuthService(db).verify_token(token)
    user = db.get(User, token_data.user_id)
    if user is None:
        raise _credentials_error()
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return current_user


def require_roles(*roles: UserRole):
    """Dependency factory restricting an endpoint to the given roles."""
    def checker(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return current_user
    return checker
