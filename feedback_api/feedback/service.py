"""Feedback generation and review service."""
import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from feedback_api.ai import AIProviderNotConfiguredError, FeedbackGenerationError, FeedbackGenerator
from feedback_api.database import utcnow
from feedback_api.models import AIActionLog, Feedback, FeedbackStatus, Submission, User, UserRole
from .schemas import FeedbackResponse, FeedbackUpdate

logger = logging.getLogger(__name__)

GENERATE_ACTION = "generate_feedback"


class FeedbackService:
    def __init__(self, db: Session):
        self.db = db

    async def generate(self, submission: Submission, user: User, generator: FeedbackGenerator) -> Feedback:
        """Draft feedback for the submission with the language model."""
        if submission.has_released_feedback:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Released feedback cannot be regenerated"
            )
        if not (submission.content or "").strip():
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Submission has no text to give feedback on"
            )

        assignment = submission.assignment
        feedback = submission.feedback
        if feedback is None:
            feedback = Feedback(submission_id=submission.id, status=FeedbackStatus.pending)
            submission.feedback = feedback

        try:
            result = await generator.generate(
                title=assignment.title,
                instructions=assignment.instructions or assignment.description,
                rubric=assignment.rubric,
                max_score=assignment.max_score,
                submission_text=submission.content,
            )
        except AIProviderNotConfiguredError as e:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
        except FeedbackGenerationError as e:
            feedback.status = FeedbackStatus.failed
            feedback.error_message = e.message
            feedback.ai_model = e.model
            self._log_action(submission, user, success=False, model=e.model, latency_ms=e.latency_ms,
                             prompt_tokens=e.prompt_tokens, completion_tokens=e.completion_tokens,
                             error=e.message)
            self.db.commit()
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)

        feedback.status = FeedbackStatus.generated
        feedback.summary = result.summary
        feedback.strengths = result.strengths
        feedback.improvements = result.improvements
        feedback.criteria_scores = [c.model_dump() for c in result.criteria_scores]
        feedback.score = result.score
        feedback.ai_model = result.model
        feedback.ai_generated = True
        feedback.edited_by = None
        feedback.error_message = None
        feedback.generated_at = utcnow()
        self._log_action(submission, user, success=True, model=result.model, latency_ms=result.latency_ms,
                         prompt_tokens=result.prompt_tokens, completion_tokens=result.completion_tokens)
        self.db.commit()
        self.db.refresh(feedback)
        logger.info(f"Feedback generated for submission {submission.id}")
        return feedback

    def _log_action(self, submission: Submission, user: User, success: bool, error: str = None, **usage):
        self.db.add(AIActionLog(
            submission_id=submission.id,
            user_id=user.id,
            action=GENERATE_ACTION,
            success=success,
            error=error,
            **usage,
        ))

    def get_for_viewer(self, submission: Submission, user: User) -> Feedback:
        """Students only ever see released feedback."""
        feedback = submission.feedback
        if feedback is None or (user.role == UserRole.student and not feedback.is_released):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
        return feedback

    def update(self, submission: Submission, user: User, changes: FeedbackUpdate) -> Feedback:
        """Apply a professor's edits, keeping scores within the rubric totals."""
        feedback = submission.feedback
        if feedback is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")

        assignment = submission.assignment
        data = changes.model_dump(exclude_unset=True)

        if changes.criteria_scores is not None:
            if not assignment.rubric:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="Assignment has no rubric"
                )
            edits = {}
            for entry in changes.criteria_scores:
                criterion = assignment.get_criterion_by_name(entry.criterion)
                if criterion is None:
                    raise HTTPException(
                        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                        detail=f"Unknown rubric criterion: {entry.criterion}"
                    )
                if criterion["name"] in edits:
                    raise HTTPException(
                        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                        detail=f"Criterion {entry.criterion} given more than once"
                    )
                if entry.score > criterion["points"]:
                    raise HTTPException(
                        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                        detail=f"Score for {entry.criterion} exceeds {criterion['points']:g} points"
                    )
                edits[criterion["name"]] = entry

            # Unedited criteria keep their current score
            current = {s.get("criterion"): s for s in feedback.criteria_scores or []}
            scores = []
            for criterion in assignment.rubric:
                name = criterion["name"]
                if name in edits:
                    score, comment = edits[name].score, edits[name].comment
                elif name in current:
                    score, comment = current[name].get("score", 0.0), current[name].get("comment", "")
                else:
                    score, comment = 0.0, "Not assessed."
                scores.append({
                    "criterion": name,
                    "score": score,
                    "max_points": float(criterion["points"]),
                    "comment": comment,
                })
            data["criteria_scores"] = scores
            if changes.score is None:
                data["score"] = round(sum(s["score"] for s in scores), 2)

        if data.get("score") is not None and data["score"] > assignment.total_points:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Score exceeds the {assignment.total_points:g} points available"
            )

        for field, value in data.items():
            if value is not None:
                setattr(feedback, field, value)

        if feedback.status in (FeedbackStatus.pending, FeedbackStatus.failed):
            if not feedback.summary:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="Feedback needs a summary"
                )
            feedback.status = FeedbackStatus.generated
            feedback.error_message = None
            feedback.generated_at = utcnow()

        feedback.edited_by = user.id
        self.db.commit()
        self.db.refresh(feedback)
        return feedback

    def release(self, submission: Submission) -> Feedback:
        feedback = submission.feedback
        if feedback is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Feedback not found")
        if feedback.status != FeedbackStatus.generated:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Feedback in status '{feedback.status.value}' cannot be released"
            )
        feedback.status = FeedbackStatus.released
        feedback.released_at = utcnow()
        self.db.commit()
        self.db.refresh(feedback)
        logger.info(f"Feedback released for submission {submission.id}")
        return feedback


def to_response(feedback: Feedback) -> FeedbackResponse:
    total_points = feedback.submission.assignment.total_points
    return FeedbackResponse(
        id=feedback.id,
        submission_id=feedback.submission_id,
        status=feedback.status,
        summary=feedback.summary,
        strengths=feedback.strengths or [],
        improvements=feedback.improvements or [],
        criteria_scores=feedback.criteria_scores or [],
        score=feedback.score,
        max_score=total_points,
        score_percent=feedback.score_percent(total_points),
        ai_model=feedback.ai_model,
        ai_generated=bool(feedback.ai_generated),
        error_message=feedback.error_message,
        generated_at=feedback.generated_at,
        released_at=feedback.released_at,
        updated_at=feedback.updated_at,
    )
