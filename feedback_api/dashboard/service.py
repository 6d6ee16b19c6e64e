"""Dashboard aggregates."""
import statistics
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from feedback_api.database import utcnow
from feedback_api.models import (
    AIActionLog, Assignment, Feedback, FeedbackStatus, Submission, User, UserRole,
)
from .schemas import (
    AdminDashboard, AssignmentAnalytics, AssignmentSummary, ProfessorDashboard,
    RecentFeedback, StudentDashboard,
)

RECENT_FEEDBACK_LIMIT = 5


def _mean(values: List[float]) -> Optional[float]:
    return round(statistics.fmean(values), 2) if values else None


def score_distribution(percents: List[float]) -> Dict[str, int]:
    """Bucket percentages into 0-9, 10-19, ..., 90-100."""
    buckets = {f"{low}-{low + 9}": 0 for low in range(0, 90, 10)}
    buckets["90-100"] = 0
    for value in percents:
        low = min(int(value // 10) * 10, 90)
        key = "90-100" if low == 90 else f"{low}-{low + 9}"
        buckets[key] += 1
    return buckets


def _released_percents(submissions: List[Submission]) -> List[float]:
    percents = []
    for submission in submissions:
        if submission.has_released_feedback:
            percent = submission.feedback.score_percent(submission.assignment.total_points)
            if percent is not None:
                percents.append(percent)
    return percents


def student_dashboard(db: Session, student: User) -> StudentDashboard:
    now = utcnow()
    published = db.query(Assignment).filter(Assignment.is_published == True).all()  # noqa: E712
    submissions = db.query(Submission).filter(Submission.student_id == student.id).all()
    submitted_ids = {s.assignment_id for s in submissions}

    unsubmitted = [a for a in published if a.id not in submitted_ids]
    overdue = [a for a in unsubmitted if a.is_past_due(now)]

    released = [s for s in submissions if s.has_released_feedback]
    released.sort(key=lambda s: s.feedback.released_at or s.submitted_at, reverse=True)

    return StudentDashboard(
        published_assignments=len(published),
        submitted=len(submissions),
        pending=len(unsubmitted) - len(overdue),
        overdue=len(overdue),
        late_submissions=sum(1 for s in submissions if s.is_late),
        feedback_received=len(released),
        average_score_percent=_mean(_released_percents(submissions)),
        recent_feedback=[
            RecentFeedback(
                submission_id=s.id,
                assignment_id=s.assignment_id,
                assignment_title=s.assignment.title,
                score_percent=s.feedback.score_percent(s.assignment.total_points),
                released_at=s.feedback.released_at,
            )
            for s in released[:RECENT_FEEDBACK_LIMIT]
        ],
    )


def summarize_assignment(assignment: Assignment) -> AssignmentSummary:
    submissions = assignment.submissions
    statuses = [s.feedback_status for s in submissions]
    return AssignmentSummary(
        assignment_id=assignment.id,
        title=assignment.title,
        is_published=bool(assignment.is_published),
        due_date=assignment.due_date,
        submission_count=len(submissions),
        late_count=sum(1 for s in submissions if s.is_late),
        feedback_generated=statuses.count(FeedbackStatus.generated),
        feedback_released=statuses.count(FeedbackStatus.released),
        average_score_percent=_mean(_released_percents(submissions)),
    )


def professor_dashboard(db: Session, professor: User) -> ProfessorDashboard:
    query = db.query(Assignment)
    if professor.role != UserRole.admin:
        query = query.filter(Assignment.created_by == professor.id)
    summaries = [summarize_assignment(a) for a in query.order_by(Assignment.created_at).all()]
    submission_count = sum(s.submission_count for s in summaries)
    return ProfessorDashboard(
        assignment_count=len(summaries),
        submission_count=submission_count,
        awaiting_feedback=submission_count - sum(s.feedback_generated + s.feedback_released for s in summaries),
        assignments=summaries,
    )


def admin_dashboard(db: Session) -> AdminDashboard:
    users_by_role = {role.value: 0 for role in UserRole}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        users_by_role[role.value] = count

    feedback_by_status = {s.value: 0 for s in FeedbackStatus}
    for feedback_status, count in db.query(Feedback.status, func.count(Feedback.id)).group_by(Feedback.status).all():
        feedback_by_status[feedback_status.value] = count

    ai_requests = db.query(func.count(AIActionLog.id)).scalar() or 0
    ai_failures = db.query(func.count(AIActionLog.id)).filter(AIActionLog.success == False).scalar() or 0  # noqa: E712
    avg_latency = db.query(func.avg(AIActionLog.latency_ms)).filter(AIActionLog.success == True).scalar()  # noqa: E712

    return AdminDashboard(
        users_by_role=users_by_role,
        active_users=db.query(func.count(User.id)).filter(User.is_active == True).scalar() or 0,  # noqa: E712
        assignments=db.query(func.count(Assignment.id)).scalar() or 0,
        published_assignments=db.query(func.count(Assignment.id)).filter(Assignment.is_published == True).scalar() or 0,  # noqa: E712
        submissions=db.query(func.count(Submission.id)).scalar() or 0,
        feedback_by_status=feedback_by_status,
        ai_requests=ai_requests,
        ai_failures=ai_failures,
        average_ai_latency_ms=round(float(avg_latency), 2) if avg_latency is not None else None,
    )


def assignment_analytics(assignment: Assignment) -> AssignmentAnalytics:
    """Score statistics over submissions whose feedback has a score, as percentages."""
    percents = []
    for submission in assignment.submissions:
        feedback = submission.feedback
        if feedback is not None and feedback.status in (FeedbackStatus.generated, FeedbackStatus.released):
            percent = feedback.score_percent(assignment.total_points)
            if percent is not None:
                percents.append(percent)

    return AssignmentAnalytics(
        assignment_id=assignment.id,
        title=assignment.title,
        submission_count=len(assignment.submissions),
        graded_count=len(percents),
        late_count=sum(1 for s in assignment.submissions if s.is_late),
        mean=_mean(percents),
        median=round(statistics.median(percents), 2) if percents else None,
        minimum=min(percents) if percents else None,
        maximum=max(percents) if percents else None,
        distribution=score_distribution(percents),
    )
