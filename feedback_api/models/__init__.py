"""SQLAlchemy models for the AI Feedback System."""

from .enums import UserRole, ExtractionStatus, FeedbackStatus
from .user import User
from .assignment import Assignment
from .submission import Submission
from .feedback import Feedback, AIActionLog

__all__ = [
    "User",
    "UserRole",
    "Assignment",
    "Submission",
    "ExtractionStatus",
    "Feedback",
    "FeedbackStatus",
    "AIActionLog",
]
