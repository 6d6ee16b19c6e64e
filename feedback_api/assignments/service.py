"""Assignment management service."""
import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from feedback_api.extraction import ContentProcessor
from feedback_api.models import Assignment, FeedbackStatus, User, UserRole
from .schemas import AssignmentCreate, AssignmentUpdate

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, data: AssignmentCreate, owner: User) -> Assignment:
        payload = data.model_dump()
        payload["rubric"] = [criterion.model_dump() for criterion in data.rubric]
        assignment = Assignment(**payload, created_by=owner.id)
        self.db.add(assignment)
        self.db.commit()
        self.db.refresh(assignment)
        logger.info(f"Assignment {assignment.id} created by user {owner.id}")
        return assignment

    def list_for(self, user: User) -> List[Assignment]:
        """Students see published work, professors their own, admins everything."""
        query = self.db.query(Assignment)
        if user.role == UserRole.student:
            query = query.filter(Assignment.is_published == True)  # noqa: E712
        elif user.role == UserRole.professor:
            query = query.filter(Assignment.created_by == user.id)
        return query.order_by(Assignment.due_date.is_(None), Assignment.due_date, Assignment.created_at).all()

    def get_visible(self, assignment_id: str, user: User) -> Assignment:
        """Fetch an assignment the user may read; unpublished ones are hidden from students."""
        assignment = self.db.query(Assignment).filter(Assignment.id == assignment_id).first()
        if not assignment or (user.role == UserRole.student and not assignment.is_published):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
        return assignment

    def get_managed(self, assignment_id: str, user: User) -> Assignment:
        """Fetch an assignment the user may change: its professor or an admin."""
        assignment = self.get_visible(assignment_id, user)
        if not can_manage(user, assignment):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
        return assignment

    def update(self, assignment: Assignment, data: AssignmentUpdate) -> Assignment:
        changes = data.model_dump(exclude_unset=True)
        if ("rubric" in changes or "max_score" in changes) and has_scored_feedback(assignment):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Rubric and max score are fixed once feedback has been scored",
            )
        if "rubric" in changes:
            changes["rubric"] = [criterion.model_dump() for criterion in data.rubric or []]
        for field, value in changes.items():
            if value is None and field in ("title", "max_score", "is_published"):
                continue
            setattr(assignment, field, value)
        self.db.commit()
        self.db.refresh(assignment)
        return assignment

    def delete(self, assignment: Assignment, processor: ContentProcessor) -> None:
        """Delete the assignment with its submissions, feedback and stored files."""
        for submission in assignment.submissions:
            processor.delete_file(submission.file_path)
        self.db.delete(assignment)
        self.db.commit()
        logger.info(f"Assignment {assignment.id} deleted")


def has_scored_feedback(assignment: Assignment) -> bool:
    return any(
        submission.feedback is not None
        and submission.feedback.status in (FeedbackStatus.generated, FeedbackStatus.released)
        for submission in assignment.submissions
    )


def can_manage(user: User, assignment: Assignment) -> bool:
    return user.role == UserRole.admin or (
        user.role == UserRole.professor and assignment.created_by == user.id
    )
