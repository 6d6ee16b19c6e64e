"""Submission management service."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from feedback_api.assignments.service import can_manage
from feedback_api.database import utcnow
from feedback_api.extraction import ContentProcessor
from feedback_api.models import Assignment, ExtractionStatus, Submission, User, UserRole
from .schemas import SubmissionResponse

logger = logging.getLogger(__name__)


class SubmissionService:
    def __init__(self, db: Session):
        self.db = db

    def existing_for(self, assignment: Assignment, student: User) -> Optional[Submission]:
        """Return the student's current submission, refusing when feedback is already released."""
        if not assignment.is_published:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
        existing = self.db.query(Submission).filter(
            Submission.assignment_id == assignment.id,
            Submission.student_id == student.id,
        ).first()
        if existing is not None and existing.has_released_feedback:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Feedback has already been released for this submission"
            )
        return existing

    def submit(
        self,
        assignment: Assignment,
        student: User,
        content: str,
        processor: ContentProcessor,
        file_path: Optional[str] = None,
        original_filename: Optional[str] = None,
        mime_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Submission:
        """Create the student's submission or replace its content on resubmission."""
        submission = self.existing_for(assignment, student)
        now = utcnow()
        extraction_status = ExtractionStatus.completed if content.strip() else ExtractionStatus.failed

        if submission is None:
            submission = Submission(assignment_id=assignment.id, student_id=student.id)
            self.db.add(submission)
        else:
            if submission.file_path and submission.file_path != file_path:
                processor.delete_file(submission.file_path)
            if submission.feedback is not None:
                # Drafted feedback no longer matches the new content
                submission.feedback = None
            logger.info(f"Submission {submission.id} replaced by student {student.id}")

        submission.content = content
        submission.file_path = file_path
        submission.original_filename = original_filename
        submission.mime_type = mime_type or "text/plain"
        submission.extraction_status = extraction_status
        submission.submission_metadata = metadata or {}
        submission.is_late = assignment.is_past_due(now)
        submission.submitted_at = now

        self.db.commit()
        self.db.refresh(submission)
        return submission

    def list_for_assignment(self, assignment: Assignment) -> List[Submission]:
        return self.db.query(Submission).filter(
            Submission.assignment_id == assignment.id
        ).order_by(Submission.submitted_at).all()

    def list_for_student(self, student: User) -> List[Submission]:
        return self.db.query(Submission).filter(
            Submission.student_id == student.id
        ).order_by(Submission.submitted_at.desc()).all()

    def get_visible(self, submission_id: str, user: User) -> Submission:
        """Fetch a submission readable by its student, the assignment's professor, or an admin."""
        submission = self.db.query(Submission).filter(Submission.id == submission_id).first()
        if submission is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
        if submission.student_id == user.id or can_manage(user, submission.assignment):
            return submission
        if user.role == UserRole.student:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

    def get_managed(self, submission_id: str, user: User) -> Submission:
        """Fetch a submission the user grades: the assignment's professor or an admin."""
        submission = self.get_visible(submission_id, user)
        if not can_manage(user, submission.assignment):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
        return submission

    def delete(self, submission: Submission, user: User, processor: ContentProcessor) -> None:
        if user.role != UserRole.admin:
            if submission.student_id != user.id:
                raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
            if submission.has_released_feedback:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Submissions with released feedback cannot be withdrawn"
                )
        processor.delete_file(submission.file_path)
        self.db.delete(submission)
        self.db.commit()
        logger.info(f"Submission {submission.id} deleted by user {user.id}")


def to_response(submission: Submission, viewer: User) -> SubmissionResponse:
    """Serialize a submission, hiding unreleased feedback state from students."""
    response = SubmissionResponse.model_validate(submission)
    if viewer.role == UserRole.student and not submission.has_released_feedback:
        response.feedback_status = None
    return response
