"""Assignment model."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
import uuid

from ..database import Base, utcnow


class Assignment(Base):
    """Assignment model."""
    __tablename__ = "assignments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    instructions = Column(Text)
    subject = Column(String(100))
    due_date = Column(DateTime, nullable=True)
    max_score = Column(Float, nullable=False, default=100.0)
    rubric = Column(JSON, default=list)
    is_published = Column(Boolean, default=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    created_by_user = relationship("User", back_populates="assignments")
    submissions = relationship(
        "Submission",
        back_populates="assignment",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def submission_count(self):
        """Get count of submissions for this assignment."""
        return len(self.submissions)

    @property
    def total_points(self) -> float:
        """Points available: the rubric total, or max_score without a rubric."""
        if not self.rubric:
            return float(self.max_score or 0)
        return float(sum(criterion.get('points', 0) for criterion in self.rubric))

    @property
    def criterion_count(self):
        return len(self.rubric) if self.rubric else 0

    def is_past_due(self, at=None) -> bool:
        if self.due_date is None:
            return False
        return (at or utcnow()) > self.due_date

    def get_criterion_by_name(self, name: str):
        """Get a specific rubric criterion by name."""
        if not self.rubric:
            return None
        for criterion in self.rubric:
            if criterion.get('name') == name:
                return criterion
        return None
