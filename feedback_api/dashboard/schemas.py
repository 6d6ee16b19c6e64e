"""Dashboard response schemas."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


class RecentFeedback(BaseModel):
    submission_id: str
    assignment_id: str
    assignment_title: str
    score_percent: Optional[float]
    released_at: Optional[datetime]


class StudentDashboard(BaseModel):
    published_assignments: int
    submitted: int
    pending: int
    overdue: int
    late_submissions: int
    feedback_received: int
    average_score_percent: Optional[float]
    recent_feedback: List[RecentFeedback]


class AssignmentSummary(BaseModel):
    assignment_id: str
    title: str
    is_published: bool
    due_date: Optional[datetime]
    submission_count: int
    late_count: int
    feedback_generated: int
    feedback_released: int
    average_score_percent: Optional[float]


class ProfessorDashboard(BaseModel):
    assignment_count: int
    submission_count: int
    awaiting_feedback: int
    assignments: List[AssignmentSummary]


class AdminDashboard(BaseModel):
    users_by_role: Dict[str, int]
    active_users: int
    assignments: int
    published_assignments: int
    submissions: int
    feedback_by_status: Dict[str, int]
    ai_requests: int
    ai_failures: int
    average_ai_latency_ms: Optional[float]


class AssignmentAnalytics(BaseModel):
    assignment_id: str
    title: str
    submission_count: int
    graded_count: int
    late_count: int
    mean: Optional[float]
    median: Optional[float]
    minimum: Optional[float]
    maximum: Optional[float]
    distribution: Dict[str, int]
