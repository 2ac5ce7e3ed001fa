# =============================================================================
# Domain Types
# =============================================================================
#
# Plain dataclasses shared by the services and both storage backends.
# These are SEPARATE from the ORM rows (studentqa/db/models.py) and from the
# API schemas (requests.py / responses.py).
#
# Question lifecycle:
#   PENDING ──▶ ANSWERED            (categorisation + answer both succeed)
#   PENDING ──▶ PENDING             (analysis failed or half-enriched)
#   FLAGGED_FOR_REVIEW              (seeded sample data only)
# =============================================================================

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime


class QuestionStatus(str, enum.Enum):
    PENDING = "pending"
    ANSWERED = "answered"
    FLAGGED_FOR_REVIEW = "flagged_for_review"


class DifficultyLevel(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


# Placeholder metadata for a question that has not been analysed yet
PENDING_ANALYSIS = "Pending Analysis"
GRADE_NOT_SPECIFIED = "Not Specified"


def new_user_id() -> str:
    return f"user_{uuid.uuid4().hex}"


def new_question_id() -> str:
    return f"question_{uuid.uuid4().hex}"


@dataclass
class User:
    id: str
    full_name: str
    mobile_number: str
    created_at: datetime


@dataclass
class OTPRecord:
    """One active code per mobile number; overwritten on resend."""

    mobile_number: str
    code: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass
class QuestionMetadata:
    """
    Categorisation produced by the classification collaborator.

    Transient: consumed once to update a Question, then recorded as an
    LLMAnalysis audit entry.
    """

    subject: str
    topic: str
    difficulty_level: DifficultyLevel
    grade_level: str
    confidence: float  # 0.0–1.0


@dataclass
class Question:
    id: str
    user_id: str
    question_text: str
    created_at: datetime
    updated_at: datetime
    subject: str = PENDING_ANALYSIS
    topic: str = PENDING_ANALYSIS
    difficulty_level: DifficultyLevel = DifficultyLevel.BEGINNER
    grade_level: str = GRADE_NOT_SPECIFIED
    status: QuestionStatus = QuestionStatus.PENDING
    answer: str | None = None


@dataclass
class LLMAnalysis:
    """Audit record of a categorisation applied to a question."""

    question_id: str
    subject: str
    topic: str
    difficulty_level: DifficultyLevel
    grade_level: str
    confidence: float
    provider: str
    analyzed_at: datetime
    id: str = field(default_factory=lambda: f"analysis_{uuid.uuid4().hex}")
