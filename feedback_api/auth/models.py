"""Session and audit tables owned by the auth layer."""
import secrets
import string
from datetime import timedelta

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from feedback_api.database import Base, utcnow
from feedback_api.models.user import User

TOKEN_ALPHABET = string.ascii_letters + string.digits


class RefreshToken(Base):
    """Opaque long-lived token exchanged for new access tokens until revoked."""
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(255), unique=True, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    revoked = Column(Boolean, default=False)
    # Client details captured at issue time
    user_agent = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)

    user = relationship("User", back_populates="refresh_tokens")

    @classmethod
    def generate_token(cls, length: int = 64) -> str:
        return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))

    @classmethod
    def expiry_from_now(cls, days: int):
        return utcnow() + timedelta(days=days)

    def is_expired(self) -> bool:
        return utcnow() > self.expires_at

    @property
    def is_usable(self) -> bool:
        return not self.revoked and not self.is_expired()


class LoginAttempt(Base):
    """One row per password login, successful or not."""
    __tablename__ = "login_attempts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(255), nullable=True)
    success = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User", back_populates="login_attempts")


__all__ = ["User", "RefreshToken", "LoginAttempt"]
