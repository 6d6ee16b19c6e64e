"""Request/response schemas for feedback."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from feedback_api.ai import CriterionScore
from feedback_api.models.enums import FeedbackStatus


class CriterionScoreUpdate(BaseModel):
    criterion: str = Field(..., min_length=1)
    score: float = Field(..., ge=0)
    comment: str = ""


class FeedbackUpdate(BaseModel):
    summary: Optional[str] = Field(default=None, min_length=1)
    strengths: Optional[List[str]] = None
    improvements: Optional[List[str]] = None
    criteria_scores: Optional[List[CriterionScoreUpdate]] = None
    score: Optional[float] = Field(default=None, ge=0)


class FeedbackResponse(BaseModel):
    id: int
    submission_id: str
    status: FeedbackStatus
    summary: Optional[str]
    strengths: List[str]
    improvements: List[str]
    criteria_scores: List[CriterionScore]
    score: Optional[float]
    max_score: float
    score_percent: Optional[float]
    ai_model: Optional[str]
    ai_generated: bool
    error_message: Optional[str]
    generated_at: Optional[datetime]
    released_at: Optional[datetime]
    updated_at: datetime
