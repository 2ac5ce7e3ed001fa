# =============================================================================
# SQL Storage Backend - Async SQLAlchemy Implementation of the Store Protocols
# =============================================================================
#
# The remote-backed counterpart of the in-memory stores in storage.py.
# Each call opens its own short session (commit on success, rollback on
# error), so stores are safe to share across requests.
#
# Errors: any SQLAlchemyError raised while talking to the database is
# re-raised as PersistenceError, the only storage error the services know.
#
# Works against PostgreSQL (asyncpg) in production and SQLite (aiosqlite)
# in tests. SQLite drops tzinfo on round-trip, so every datetime read back
# is normalised to UTC.
# =============================================================================

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from studentqa.db.engine import get_async_session_factory, session_scope
from studentqa.db.models import LLMAnalysisRow, OTPCodeRow, QuestionRow, UserRow
from studentqa.errors import PersistenceError
from studentqa.models.domain import (
    DifficultyLevel,
    LLMAnalysis,
    OTPRecord,
    Question,
    QuestionStatus,
    User,
)
from studentqa.services.storage import Storage

logger = logging.getLogger(__name__)

SessionFactory = async_sessionmaker[AsyncSession]


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


class _SqlStore:
    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def _session(self):
        return session_scope(self._session_factory)

    @staticmethod
    def _fail(action: str, exc: SQLAlchemyError) -> PersistenceError:
        logger.error("Database error while %s: %s", action, exc)
        return PersistenceError(f"Failed to {action}. Please try again.")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _user_from_row(row: UserRow) -> User:
    return User(
        id=row.id,
        full_name=row.full_name,
        mobile_number=row.mobile_number,
        created_at=_aware(row.created_at),
    )


class SqlUserStore(_SqlStore):
    async def add(self, user: User) -> User:
        try:
            async with self._session() as session:
                session.add(UserRow(
                    id=user.id,
                    full_name=user.full_name,
                    mobile_number=user.mobile_number,
                    created_at=user.created_at,
                ))
        except SQLAlchemyError as e:
            raise self._fail("create account", e) from e
        return user

    async def get(self, user_id: str) -> User | None:
        try:
            async with self._session() as session:
                row = await session.get(UserRow, user_id)
                return _user_from_row(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("load user", e) from e

    async def get_by_mobile(self, mobile_number: str) -> User | None:
        stmt = select(UserRow).where(UserRow.mobile_number == mobile_number)
        try:
            async with self._session() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
                return _user_from_row(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("load user", e) from e


# ---------------------------------------------------------------------------
# OTP codes
# ---------------------------------------------------------------------------


class SqlOTPStore(_SqlStore):
    async def put(self, record: OTPRecord) -> None:
        try:
            async with self._session() as session:
                # merge() inserts or overwrites by primary key (mobile_number)
                await session.merge(OTPCodeRow(
                    mobile_number=record.mobile_number,
                    code=record.code,
                    expires_at=record.expires_at,
                ))
        except SQLAlchemyError as e:
            raise self._fail("store OTP", e) from e

    async def get(self, mobile_number: str) -> OTPRecord | None:
        try:
            async with self._session() as session:
                row = await session.get(OTPCodeRow, mobile_number)
                if row is None:
                    return None
                return OTPRecord(
                    mobile_number=row.mobile_number,
                    code=row.code,
                    expires_at=_aware(row.expires_at),
                )
        except SQLAlchemyError as e:
            raise self._fail("load OTP", e) from e

    async def delete(self, mobile_number: str) -> None:
        stmt = delete(OTPCodeRow).where(OTPCodeRow.mobile_number == mobile_number)
        try:
            async with self._session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            raise self._fail("delete OTP", e) from e

    async def delete_expired(self, now: datetime) -> int:
        stmt = delete(OTPCodeRow).where(OTPCodeRow.expires_at < now)
        try:
            async with self._session() as session:
                result = await session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise self._fail("sweep expired OTPs", e) from e


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


def _question_from_row(row: QuestionRow) -> Question:
    return Question(
        id=row.id,
        user_id=row.user_id,
        question_text=row.question_text,
        subject=row.subject,
        topic=row.topic,
        difficulty_level=DifficultyLevel(row.difficulty_level),
        grade_level=row.grade_level,
        status=QuestionStatus(row.status),
        answer=row.answer,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


def _apply_to_row(row: QuestionRow, question: Question) -> QuestionRow:
    row.user_id = question.user_id
    row.question_text = question.question_text
    row.subject = question.subject
    row.topic = question.topic
    row.difficulty_level = question.difficulty_level
    row.grade_level = question.grade_level
    row.status = question.status
    row.answer = question.answer
    row.created_at = question.created_at
    row.updated_at = question.updated_at
    return row


def _escape_like(query: str) -> str:
    """Make `%`, `_` and `\\` match literally in a LIKE pattern."""
    return (
        query.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


class SqlQuestionStore(_SqlStore):
    async def add(self, question: Question) -> Question:
        try:
            async with self._session() as session:
                session.add(_apply_to_row(QuestionRow(id=question.id), question))
        except SQLAlchemyError as e:
            raise self._fail("save question", e) from e
        return question

    async def save(self, question: Question) -> Question:
        try:
            async with self._session() as session:
                row = await session.get(QuestionRow, question.id)
                if row is None:
                    session.add(
                        _apply_to_row(QuestionRow(id=question.id), question)
                    )
                else:
                    _apply_to_row(row, question)
        except SQLAlchemyError as e:
            raise self._fail("update question", e) from e
        return question

    async def get(self, question_id: str) -> Question | None:
        try:
            async with self._session() as session:
                row = await session.get(QuestionRow, question_id)
                return _question_from_row(row) if row else None
        except SQLAlchemyError as e:
            raise self._fail("load question", e) from e

    async def find(
        self,
        user_id: str | None = None,
        status: QuestionStatus | None = None,
    ) -> list[Question]:
        stmt = select(QuestionRow).order_by(QuestionRow.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(QuestionRow.user_id == user_id)
        if status is not None:
            stmt = stmt.where(QuestionRow.status == status)
        return await self._fetch(stmt)

    async def search(
        self,
        query: str,
        user_id: str | None = None,
    ) -> list[Question]:
        pattern = f"%{_escape_like(query)}%"
        stmt = (
            select(QuestionRow)
            .where(or_(
                QuestionRow.question_text.ilike(pattern, escape="\\"),
                QuestionRow.subject.ilike(pattern, escape="\\"),
                QuestionRow.topic.ilike(pattern, escape="\\"),
            ))
            .order_by(QuestionRow.created_at.desc())
        )
        if user_id is not None:
            stmt = stmt.where(QuestionRow.user_id == user_id)
        return await self._fetch(stmt)

    async def delete_created_before(self, cutoff: datetime) -> int:
        stmt = delete(QuestionRow).where(QuestionRow.created_at < cutoff)
        try:
            async with self._session() as session:
                result = await session.execute(stmt)
                return result.rowcount or 0
        except SQLAlchemyError as e:
            raise self._fail("clean up questions", e) from e

    async def _fetch(self, stmt) -> list[Question]:
        try:
            async with self._session() as session:
                rows = (await session.execute(stmt)).scalars().all()
                return [_question_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise self._fail("load questions", e) from e


# ---------------------------------------------------------------------------
# LLM analysis audit
# ---------------------------------------------------------------------------


class SqlAnalysisStore(_SqlStore):
    async def add(self, analysis: LLMAnalysis) -> LLMAnalysis:
        try:
            async with self._session() as session:
                session.add(LLMAnalysisRow(
                    id=analysis.id,
                    question_id=analysis.question_id,
                    subject=analysis.subject,
                    topic=analysis.topic,
                    difficulty_level=analysis.difficulty_level.value,
                    grade_level=analysis.grade_level,
                    confidence=analysis.confidence,
                    provider=analysis.provider,
                    analyzed_at=analysis.analyzed_at,
                ))
        except SQLAlchemyError as e:
            raise self._fail("store analysis", e) from e
        return analysis

    async def list_for_question(self, question_id: str) -> list[LLMAnalysis]:
        stmt = (
            select(LLMAnalysisRow)
            .where(LLMAnalysisRow.question_id == question_id)
            .order_by(LLMAnalysisRow.analyzed_at)
        )
        try:
            async with self._session() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as e:
            raise self._fail("load analysis", e) from e
        return [
            LLMAnalysis(
                id=row.id,
                question_id=row.question_id,
                subject=row.subject,
                topic=row.topic,
                difficulty_level=DifficultyLevel(row.difficulty_level),
                grade_level=row.grade_level,
                confidence=row.confidence,
                provider=row.provider,
                analyzed_at=_aware(row.analyzed_at),
            )
            for row in rows
        ]


def create_sql_storage(session_factory: SessionFactory | None = None) -> Storage:
    factory = session_factory or get_async_session_factory()
    logger.info("Using SQL storage backend")
    return Storage(
        users=SqlUserStore(factory),
        otps=SqlOTPStore(factory),
        questions=SqlQuestionStore(factory),
        analyses=SqlAnalysisStore(factory),
        backend="sql",
    )
