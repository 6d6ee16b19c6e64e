"""Submission model."""

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from ..database import Base, utcnow
from .enums import ExtractionStatus, FeedbackStatus


class Submission(Base):
    """A student's work for one assignment."""
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id = Column(String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text)
    file_path = Column(String(500))
    original_filename = Column(String(255))
    mime_type = Column(String(100))
    extraction_status = Column(SQLEnum(ExtractionStatus), default=ExtractionStatus.pending)
    submission_metadata = Column(JSON, default=dict)
    is_late = Column(Boolean, default=False)
    submitted_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    student = relationship("User", back_populates="submissions")
    assignment = relationship("Assignment", back_populates="submissions")
    feedback = relationship(
        "Feedback",
        back_populates="submission",
        uselist=False,
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Submission(id={self.id}, assignment_id={self.assignment_id}, student_id={self.student_id})>"

    @property
    def is_processed(self):
        """Check if the submission text is available."""
        return self.extraction_status == ExtractionStatus.completed

    @property
    def has_failed(self):
        return self.extraction_status == ExtractionStatus.failed

    @property
    def has_released_feedback(self) -> bool:
        return self.feedback is not None and self.feedback.status == FeedbackStatus.released

    @property
    def feedback_status(self):
        return self.feedback.status if self.feedback is not None else None

    @property
    def student_name(self):
        return self.student.full_name if self.student is not None else None

    @property
    def word_count(self) -> int:
        return len(self.content.split()) if self.content else 0

    def get_metadata_value(self, key: str, default=None):
        """Get a specific metadata value."""
        if not self.submission_metadata:
            return default
        return self.submission_metadata.get(key, default)
