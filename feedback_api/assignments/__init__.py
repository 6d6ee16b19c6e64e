"""Assignment management package."""
from .service import AssignmentService, can_manage
from .router import router as assignments_router

__all__ = ['AssignmentService', 'can_manage', 'assignments_router']
