# =============================================================================
# Database Models - SQLAlchemy ORM
# =============================================================================
#
# SCHEMA OVERVIEW:
#
# ┌────────────────┐       ┌──────────────────────────────────┐
# │  users         │       │  questions                       │
# ├────────────────┤       ├──────────────────────────────────┤
# │ id (PK)        │──1:N─▶│ id (PK)                          │
# │ full_name      │       │ user_id (FK → users.id)          │
# │ mobile_number  │       │ question_text                    │
# │ created_at     │       │ subject / topic                  │
# └────────────────┘       │ difficulty_level / grade_level   │
#                          │ status / answer                  │
# ┌────────────────┐       │ created_at / updated_at          │
# │  otp_codes     │       └──────────────┬───────────────────┘
# ├────────────────┤                      │ 1:N
# │ mobile (PK)    │       ┌──────────────▼───────────────────┐
# │ code           │       │  llm_analysis                    │
# │ expires_at     │       │ id, question_id (FK), metadata,  │
# └────────────────┘       │ confidence, provider, analyzed_at│
#                          └──────────────────────────────────┘
#
# Timestamps are written by the application clock (not server_default) so
# that OTP expiry and question ordering follow one time source.
# =============================================================================

from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from studentqa.models.domain import DifficultyLevel, QuestionStatus


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


def _enum_values(enum_cls):
    # Persist the lowercase values ("pending"), not the member names
    return [member.value for member in enum_cls]


class UserRow(Base):
    """A registered student. One row per mobile number."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # 10-digit Indian mobile number, unique per account
    mobile_number: Mapped[str] = mapped_column(
        String(10), nullable=False, unique=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id}, mobile={self.mobile_number})>"


class OTPCodeRow(Base):
    """The active one-time code for a mobile number (at most one)."""

    __tablename__ = "otp_codes"

    mobile_number: Mapped[str] = mapped_column(String(10), primary_key=True)
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )


class QuestionRow(Base):
    """
    A submitted question and its analysis state.

    Created `pending` with placeholder metadata; updated in place by the
    question orchestrator once categorisation and answer generation finish.
    """

    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    topic: Mapped[str] = mapped_column(String(200), nullable=False)

    difficulty_level: Mapped[DifficultyLevel] = mapped_column(
        Enum(
            DifficultyLevel,
            name="difficulty_level",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=DifficultyLevel.BEGINNER,
    )
    grade_level: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[QuestionStatus] = mapped_column(
        Enum(
            QuestionStatus,
            name="question_status",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=QuestionStatus.PENDING,
    )

    # AI-generated answer (null until status is ANSWERED)
    answer: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    def __repr__(self) -> str:
        return f"<QuestionRow(id={self.id}, status={self.status})>"


class LLMAnalysisRow(Base):
    """Audit trail of categorisations applied to questions."""

    __tablename__ = "llm_analysis"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    question_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
    )

    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    topic: Mapped[str] = mapped_column(String(200), nullable=False)
    difficulty_level: Mapped[str] = mapped_column(String(20), nullable=False)
    grade_level: Mapped[str] = mapped_column(String(100), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)

    # "mock", "anthropic", "openai_compatible"
    provider: Mapped[str] = mapped_column(String(50), nullable=False)

    analyzed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )


# Dashboard read path: filter by owner, order by created_at
question_user_created_idx = Index(
    "idx_question_user_created",
    QuestionRow.user_id,
    QuestionRow.created_at,
)

question_status_idx = Index("idx_question_status", QuestionRow.status)

analysis_question_idx = Index(
    "idx_llm_analysis_question_id", LLMAnalysisRow.question_id,
)
