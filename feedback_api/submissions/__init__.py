"""Submission management package."""
from .service import SubmissionService
from .router import router as submissions_router

__all__ = ['SubmissionService', 'submissions_router']
