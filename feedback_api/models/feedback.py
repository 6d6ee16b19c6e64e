"""Feedback and AI action log models."""

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from ..database import Base, utcnow
from .enums import FeedbackStatus


class Feedback(Base):
    """Feedback on a single submission, drafted by the AI and reviewed by a professor."""
    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(
        String(36),
        ForeignKey("submissions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    status = Column(SQLEnum(FeedbackStatus), nullable=False, default=FeedbackStatus.pending)
    summary = Column(Text)
    strengths = Column(JSON, default=list)
    improvements = Column(JSON, default=list)
    criteria_scores = Column(JSON, default=list)
    score = Column(Float, nullable=True)
    ai_model = Column(String(100))
    ai_generated = Column(Boolean, default=True)
    edited_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    error_message = Column(Text)
    generated_at = Column(DateTime, nullable=True)
    released_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    submission = relationship("Submission", back_populates="feedback")
    editor = relationship("User")

    def __repr__(self):
        return f"<Feedback(id={self.id}, submission_id={self.submission_id}, status={self.status})>"

    @property
    def is_released(self) -> bool:
        return self.status == FeedbackStatus.released

    def score_percent(self, total_points: float):
        """Score as a percentage of the available points, or None when ungraded."""
        if self.score is None or not total_points:
            return None
        return round(100.0 * self.score / total_points, 2)


class AIActionLog(Base):
    """One row per call to the language model."""
    __tablename__ = "ai_action_logs"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(String(36), ForeignKey("submissions.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), nullable=False)
    model = Column(String(100))
    prompt_tokens = Column(Integer)
    completion_tokens = Column(Integer)
    latency_ms = Column(Integer)
    success = Column(Boolean, default=False)
    error = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<AIActionLog(id={self.id}, action='{self.action}', success={self.success})>"
