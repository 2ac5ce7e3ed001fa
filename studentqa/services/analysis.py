# =============================================================================
# Analysis Collaborators - Question Categorisation & Answer Generation
# =============================================================================
#
# Two external collaborators used by the question orchestrator:
#
#   QuestionAnalyzer.analyze(text)                  → QuestionMetadata
#   AnswerGenerator.generate(text, subject, topic)  → answer text
#
# Both raise CollaboratorError on failure. Implementations:
#   - LLMQuestionAnalyzer / LLMAnswerGenerator (this module): prompt an
#     LLMProvider, bounded by a per-attempt timeout and a fixed-delay retry
#   - MockQuestionAnalyzer / MockAnswerGenerator (mock_llm.py): keyword
#     heuristics, no network
#
# Confidence thresholds are NOT applied here. The orchestrator compares
# QuestionMetadata.confidence against the threshold configured for the
# backend in use.
# =============================================================================

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable
from typing import Literal, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from studentqa.config import settings
from studentqa.errors import CollaboratorError
from studentqa.models.domain import DifficultyLevel, QuestionMetadata
from studentqa.services.llm import LLMProvider, LLMResponse
from studentqa.services.scheduler import SleepFn

logger = logging.getLogger(__name__)

T = TypeVar("T")

# User-facing messages for collaborator failures
API_ERROR_MESSAGE = "LLM service is temporarily unavailable. Please try again later."
TIMEOUT_MESSAGE = "Request timed out. Please try again."
RATE_LIMIT_MESSAGE = "Too many requests. Please wait a moment and try again."
PARSE_ERROR_MESSAGE = "Unable to understand the analysis response."
EMPTY_ANSWER_MESSAGE = "Unable to generate answer for this question."


# ---------------------------------------------------------------------------
# Protocol Definitions
# ---------------------------------------------------------------------------


class QuestionAnalyzer(Protocol):
    provider_name: str

    async def analyze(self, question_text: str) -> QuestionMetadata:
        """
        Categorise a question.

        Raises:
            CollaboratorError: Network failure, timeout, or unusable output.
        """
        ...


class AnswerGenerator(Protocol):
    async def generate(self, question_text: str, subject: str, topic: str) -> str:
        """
        Produce an answer for a categorised question.

        Raises:
            CollaboratorError: Network failure, timeout, or empty output.
        """
        ...


# ---------------------------------------------------------------------------
# Retry Helper
# ---------------------------------------------------------------------------


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int | None = None,
    delay: float | None = None,
    timeout: float | None = None,
    sleep: SleepFn = asyncio.sleep,
    description: str = "LLM request",
) -> T:
    """
    Run `operation` with a per-attempt timeout and a fixed retry delay.

    Rate-limit responses (HTTP 429) are not retried.

    Raises:
        CollaboratorError: Every attempt failed. The message reflects the
            last failure (timeout vs. service error).
    """
    attempts = settings.llm_max_retries if attempts is None else attempts
    delay = settings.llm_retry_delay_seconds if delay is None else delay
    timeout = settings.llm_request_timeout_seconds if timeout is None else timeout

    last_error: Exception | None = None
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            last_error = e
            logger.warning(
                "%s attempt %d/%d failed: %s", description, attempt, attempts, e,
            )
            if getattr(e, "status_code", None) == 429:
                raise CollaboratorError(RATE_LIMIT_MESSAGE) from e
            if attempt < attempts:
                await sleep(delay)

    if isinstance(last_error, TimeoutError):
        raise CollaboratorError(TIMEOUT_MESSAGE) from last_error
    raise CollaboratorError(API_ERROR_MESSAGE) from last_error


# ---------------------------------------------------------------------------
# LLM Output Parsing
# ---------------------------------------------------------------------------


class _MetadataPayload(BaseModel):
    """Shape of the JSON object the categorisation prompt asks for."""

    model_config = ConfigDict(populate_by_name=True)

    subject: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    difficulty_level: Literal["Beginner", "Intermediate", "Advanced"] = Field(
        alias="difficultyLevel",
    )
    grade_level: str = Field(alias="gradeLevel", min_length=1)
    confidence: float = Field(ge=0.0, le=1.0)


_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_metadata(text: str) -> QuestionMetadata:
    """
    Extract QuestionMetadata from the model's reply.

    Tolerates prose or code fences around the JSON object.

    Raises:
        CollaboratorError: No JSON object, missing fields, unknown
            difficulty level, or confidence outside [0, 1].
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise CollaboratorError(PARSE_ERROR_MESSAGE)

    try:
        payload = _MetadataPayload.model_validate(json.loads(match.group(0)))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.warning("Failed to parse analysis response: %s", e)
        raise CollaboratorError(PARSE_ERROR_MESSAGE) from e

    return QuestionMetadata(
        subject=payload.subject,
        topic=payload.topic,
        difficulty_level=DifficultyLevel(payload.difficulty_level),
        grade_level=payload.grade_level,
        confidence=payload.confidence,
    )


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

ANALYSIS_SYSTEM_PROMPT = (
    "You categorise academic questions asked by students. "
    "Only return valid JSON, no additional text or explanations."
)

ANALYSIS_PROMPT_TEMPLATE = """\
Analyze the following academic question and extract metadata in JSON format.

Question: "{question}"

Please provide a JSON response with the following structure:
{{
  "subject": "The main academic subject (e.g., Mathematics, Physics, Chemistry, Biology, History, Literature, Computer Science)",
  "topic": "Specific topic within the subject (e.g., Algebra, Mechanics, Organic Chemistry, Cell Biology, World War II)",
  "difficultyLevel": "One of: Beginner, Intermediate, Advanced",
  "gradeLevel": "Appropriate grade level (e.g., 9th grade, 12th grade, College)",
  "confidence": 0.0
}}

Guidelines:
- Subject should be a broad academic discipline
- Topic should be specific and relevant to the question
- Difficulty level should reflect the complexity of the question
- Grade level should indicate the appropriate academic level
- Confidence is a number between 0.0 and 1.0 reflecting how certain you are
"""

ANSWER_SYSTEM_PROMPT = (
    "You are a patient tutor. Explain answers step by step at a level "
    "suitable for the student's grade. Be accurate and concise."
)

ANSWER_PROMPT_TEMPLATE = """\
Subject: {subject}
Topic: {topic}

Student question:
{question}

Answer the question. Show the key steps and finish with a short summary.
"""


# ---------------------------------------------------------------------------
# LLM-backed Collaborators
# ---------------------------------------------------------------------------


class LLMQuestionAnalyzer:
    """Categorises questions by prompting an LLMProvider for JSON metadata."""

    def __init__(
        self,
        llm: LLMProvider,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._llm = llm
        self._sleep = sleep
        self.provider_name = getattr(llm, "name", "llm")

    async def analyze(self, question_text: str) -> QuestionMetadata:
        prompt = ANALYSIS_PROMPT_TEMPLATE.format(question=question_text)

        response: LLMResponse = await call_with_retry(
            lambda: self._llm.complete(
                messages=[{"role": "user", "content": prompt}],
                system=ANALYSIS_SYSTEM_PROMPT,
            ),
            sleep=self._sleep,
            description="Question analysis",
        )

        metadata = parse_metadata(response.content)
        logger.info(
            "Question analysed: subject=%s topic=%s confidence=%.2f (model=%s)",
            metadata.subject, metadata.topic, metadata.confidence, response.model,
        )
        return metadata


class LLMAnswerGenerator:
    """Generates answers by prompting an LLMProvider."""

    def __init__(
        self,
        llm: LLMProvider,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._llm = llm
        self._sleep = sleep

    async def generate(self, question_text: str, subject: str, topic: str) -> str:
        prompt = ANSWER_PROMPT_TEMPLATE.format(
            subject=subject, topic=topic, question=question_text,
        )

        response: LLMResponse = await call_with_retry(
            lambda: self._llm.complete(
                messages=[{"role": "user", "content": prompt}],
                system=ANSWER_SYSTEM_PROMPT,
            ),
            sleep=self._sleep,
            description="Answer generation",
        )

        answer = response.content.strip()
        if not answer:
            raise CollaboratorError(EMPTY_ANSWER_MESSAGE)

        logger.info(
            "Answer generated (%d chars, %d output tokens)",
            len(answer), response.output_tokens,
        )
        return answer
