"""Request/response schemas for submissions."""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from feedback_api.models.enums import ExtractionStatus, FeedbackStatus


class SubmissionCreate(BaseModel):
    content: str = Field(..., max_length=200_000)

    @field_validator('content')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Submission content must not be empty')
        return v


class SubmissionResponse(BaseModel):
    id: str
    assignment_id: str
    student_id: int
    student_name: Optional[str] = None
    content: Optional[str]
    original_filename: Optional[str]
    mime_type: Optional[str]
    extraction_status: ExtractionStatus
    submission_metadata: Optional[Dict[str, Any]] = None
    is_late: bool
    word_count: int
    feedback_status: Optional[FeedbackStatus] = None
    submitted_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
