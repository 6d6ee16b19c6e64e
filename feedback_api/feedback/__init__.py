"""Feedback package."""
from .service import FeedbackService
from .router import router as feedback_router

__all__ = ['FeedbackService', 'feedback_router']
