"""Request/response schemas for assignments."""
from datetime import datetime, UTC
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are taken as UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class RubricCriterion(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    points: float = Field(..., gt=0)
    description: str = Field(..., min_length=1)


def _check_rubric(criteria: Optional[List[RubricCriterion]]):
    if criteria:
        names = [c.name.strip().lower() for c in criteria]
        if len(names) != len(set(names)):
            raise ValueError("Rubric criterion names must be unique")
    return criteria


class AssignmentCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    instructions: Optional[str] = None
    subject: Optional[str] = Field(default=None, max_length=100)
    due_date: Optional[datetime] = None
    max_score: float = Field(default=100.0, gt=0)
    rubric: List[RubricCriterion] = []
    is_published: bool = False

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v):
        return to_naive_utc(v)

    @field_validator("rubric")
    @classmethod
    def rubric_unique(cls, v):
        return _check_rubric(v)


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    instructions: Optional[str] = None
    subject: Optional[str] = Field(default=None, max_length=100)
    due_date: Optional[datetime] = None
    max_score: Optional[float] = Field(default=None, gt=0)
    rubric: Optional[List[RubricCriterion]] = None
    is_published: Optional[bool] = None

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v):
        return to_naive_utc(v)

    @field_validator("rubric")
    @classmethod
    def rubric_unique(cls, v):
        return _check_rubric(v)


class AssignmentResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    instructions: Optional[str]
    subject: Optional[str]
    due_date: Optional[datetime]
    max_score: float
    rubric: List[RubricCriterion]
    is_published: bool
    created_by: int
    total_points: float
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
