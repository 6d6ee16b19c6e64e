"""Shared enums for models and auth."""
import enum


class UserRole(enum.Enum):
    student = "student"
    professor = "professor"
    admin = "admin"


class ExtractionStatus(enum.Enum):
    """Extraction status enumeration."""
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class FeedbackStatus(enum.Enum):
    """Feedback lifecycle enumeration."""
    pending = "pending"
    generated = "generated"
    failed = "failed"
    released = "released"
