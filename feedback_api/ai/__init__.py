"""AI feedback generation."""
from .client import (
    AIProviderNotConfiguredError,
    CriterionScore,
    FeedbackGenerationError,
    FeedbackGenerator,
    GeneratedFeedback,
    get_feedback_generator,
)
from .prompts import FeedbackParseError, build_feedback_prompt, parse_feedback_response

__all__ = [
    'AIProviderNotConfiguredError',
    'CriterionScore',
    'FeedbackGenerationError',
    'FeedbackGenerator',
    'FeedbackParseError',
    'GeneratedFeedback',
    'build_feedback_prompt',
    'get_feedback_generator',
    'parse_feedback_response',
]
