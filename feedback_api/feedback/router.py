"""Feedback endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedback_api.ai import FeedbackGenerator, get_feedback_generator
from feedback_api.auth.service import get_current_active_user, require_roles
from feedback_api.database import get_db
from feedback_api.models import User, UserRole
from feedback_api.submissions.service import SubmissionService
from .schemas import FeedbackResponse, FeedbackUpdate
from .service import FeedbackService, to_response

router = APIRouter(prefix="/submissions/{submission_id}/feedback", tags=["Feedback"])

graders = require_roles(UserRole.professor, UserRole.admin)


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)


@router.post("", response_model=FeedbackResponse)
async def generate_feedback(
    submission_id: str,
    current_user: User = Depends(graders),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
    generator: FeedbackGenerator = Depends(get_feedback_generator),
):
    """Draft AI feedback for a submission."""
    submission = SubmissionService(db).get_managed(submission_id, current_user)
    feedback = await service.generate(submission, current_user, generator)
    return to_response(feedback)


@router.get("", response_model=FeedbackResponse)
async def get_feedback(
    submission_id: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    submission = SubmissionService(db).get_visible(submission_id, current_user)
    return to_response(service.get_for_viewer(submission, current_user))


@router.patch("", response_model=FeedbackResponse)
async def update_feedback(
    submission_id: str,
    changes: FeedbackUpdate,
    current_user: User = Depends(graders),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Edit drafted feedback before or after release."""
    submission = SubmissionService(db).get_managed(submission_id, current_user)
    return to_response(service.update(submission, current_user, changes))


@router.post("/release", response_model=FeedbackResponse)
async def release_feedback(
    submission_id: str,
    current_user: User = Depends(graders),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Make feedback visible to the student."""
    submission = SubmissionService(db).get_managed(submission_id, current_user)
    return to_response(service.release(submission))
