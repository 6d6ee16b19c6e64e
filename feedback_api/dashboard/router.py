"""Dashboard endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedback_api.assignments.service import AssignmentService
from feedback_api.auth.service import require_roles
from feedback_api.database import get_db
from feedback_api.models import User, UserRole
from . import service
from .schemas import AdminDashboard, AssignmentAnalytics, ProfessorDashboard, StudentDashboard

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/student", response_model=StudentDashboard)
async def student_dashboard(
    current_user: User = Depends(require_roles(UserRole.student)),
    db: Session = Depends(get_db),
):
    return service.student_dashboard(db, current_user)


@router.get("/professor", response_model=ProfessorDashboard)
async def professor_dashboard(
    current_user: User = Depends(require_roles(UserRole.professor, UserRole.admin)),
    db: Session = Depends(get_db),
):
    """Per-assignment progress for the current professor (all assignments for admins)."""
    return service.professor_dashboard(db, current_user)


@router.get("/admin", response_model=AdminDashboard)
async def admin_dashboard(
    _: User = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
):
    return service.admin_dashboard(db)


@router.get("/assignments/{assignment_id}/analytics", response_model=AssignmentAnalytics)
async def assignment_analytics(
    assignment_id: str,
    current_user: User = Depends(require_roles(UserRole.professor, UserRole.admin)),
    db: Session = Depends(get_db),
):
    assignment = AssignmentService(db).get_managed(assignment_id, current_user)
    return service.assignment_analytics(assignment)
