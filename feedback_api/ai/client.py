"""
Language model client for drafting submission feedback.

Works with OpenAI or any OpenAI-compatible endpoint. For a local model
server set OPENAI_BASE_URL (e.g. "http://localhost:8080/v1"); the API key
may then be left empty.
"""

import logging
import os
import time
from typing import Any, Dict, List, Optional

import openai
from pydantic import BaseModel, Field

from feedback_api.config import (
    OPENAI_MODEL, OPENAI_TIMEOUT, OPENAI_MAX_RETRIES, FEEDBACK_MAX_CHARS,
)
from .prompts import SYSTEM_PROMPT, FeedbackParseError, build_feedback_prompt, parse_feedback_response

logger = logging.getLogger(__name__)


class AIProviderNotConfiguredError(Exception):
    """Raised when no API key or endpoint is configured."""
    pass


class FeedbackGenerationError(Exception):
    """Raised when the model call fails or its reply is unusable."""
    def __init__(self, message: str, model: Optional[str] = None, latency_ms: Optional[int] = None,
                 prompt_tokens: Optional[int] = None, completion_tokens: Optional[int] = None):
        self.message = message
        self.model = model
        self.latency_ms = latency_ms
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        super().__init__(message)


class CriterionScore(BaseModel):
    criterion: str
    score: float
    max_points: float
    comment: str = ""


class GeneratedFeedback(BaseModel):
    """Normalised model output plus call accounting."""
    summary: str
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    criteria_scores: List[CriterionScore] = Field(default_factory=list)
    score: float
    model: str
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    latency_ms: int = 0


class FeedbackGenerator:
    """Drafts feedback for a submission with a chat completion call."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = OPENAI_MODEL,
        timeout: float = OPENAI_TIMEOUT,
        max_retries: int = OPENAI_MAX_RETRIES,
        max_chars: int = FEEDBACK_MAX_CHARS,
        temperature: float = 0.2,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.max_chars = max_chars
        self.temperature = temperature
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key or self.base_url)

    @property
    def client(self) -> openai.AsyncOpenAI:
        """Lazy load the client with support for local and cloud endpoints."""
        if self._client is None:
            if not self.is_configured:
                raise AIProviderNotConfiguredError(
                    "Set OPENAI_API_KEY or OPENAI_BASE_URL to enable AI feedback"
                )
            client_kwargs: Dict[str, Any] = {
                "timeout": self.timeout,
                "max_retries": self.max_retries,
                # Local endpoints accept any key
                "api_key": self.api_key or "dummy-key",
            }
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client

    async def generate(
        self,
        title: str,
        instructions: Optional[str],
        rubric: Optional[List[Dict[str, Any]]],
        max_score: float,
        submission_text: str,
    ) -> GeneratedFeedback:
        """
        Ask the model for feedback and return it validated and clamped.

        Raises:
            AIProviderNotConfiguredError: If no provider is configured.
            FeedbackGenerationError: If the API call fails or the reply is unusable.
        """
        client = self.client
        prompt = build_feedback_prompt(
            title=title,
            instructions=instructions,
            rubric=rubric,
            max_score=max_score,
            submission_text=submission_text,
            max_chars=self.max_chars,
        )

        start = time.monotonic()
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            latency_ms = int((time.monotonic() - start) * 1000)
            logger.error(f"Feedback request to {self.model} failed after {latency_ms}ms: {e}")
            raise FeedbackGenerationError(
                f"AI provider error: {e}", model=self.model, latency_ms=latency_ms
            ) from e
        latency_ms = int((time.monotonic() - start) * 1000)

        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", None)
        completion_tokens = getattr(usage, "completion_tokens", None)
        model = getattr(response, "model", None) or self.model

        if not response.choices:
            raise FeedbackGenerationError(
                "AI provider returned no choices", model=model, latency_ms=latency_ms,
                prompt_tokens=prompt_tokens, completion_tokens=completion_tokens,
            )
        content = response.choices[0].message.content

        try:
            parsed = parse_feedback_response(content, rubric, max_score)
        except FeedbackParseError as e:
            logger.error(f"Unusable feedback reply from {model}: {e}")
            raise FeedbackGenerationError(
                f"AI reply could not be parsed: {e}", model=model, latency_ms=latency_ms,
                prompt_tokens=prompt_tokens, completion_tokens=completion_tokens,
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error parsing reply from {model}: {e}", exc_info=True)
            raise FeedbackGenerationError(
                f"AI reply could not be parsed: {e}", model=model, latency_ms=latency_ms,
                prompt_tokens=prompt_tokens, completion_tokens=completion_tokens,
            ) from e

        logger.info(f"Generated feedback with {model} in {latency_ms}ms")
        return GeneratedFeedback(
            **parsed,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            latency_ms=latency_ms,
        )


def get_feedback_generator() -> FeedbackGenerator:
    """Dependency building a generator from the current environment."""
    return FeedbackGenerator(
        api_key=os.getenv("OPENAI_API_KEY"),
        base_url=os.getenv("OPENAI_BASE_URL"),
    )
