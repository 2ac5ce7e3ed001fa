# =============================================================================
# Storage Abstraction - Pluggable Backend Protocol
# =============================================================================
#
# The services never touch a concrete database. They depend on four small
# keyed-store protocols, with two implementations selected at construction
# time (see studentqa/container.py):
#
#   UserStore / OTPStore / QuestionStore / AnalysisStore (Protocols)
#   ├── InMemory*Store  - process-local dicts (tests, local dev)
#   └── Sql*Store       - async SQLAlchemy (studentqa/services/sql_storage.py)
#
# All methods are async so both backends share one calling convention.
# Writes that fail are reported as PersistenceError by the SQL backend; the
# in-memory backend cannot fail.
#
# Concurrency: single event loop, no locking. Last write wins.
# =============================================================================

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from studentqa.models.domain import (
    LLMAnalysis,
    OTPRecord,
    Question,
    QuestionStatus,
    User,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol Definitions
# ---------------------------------------------------------------------------


class UserStore(Protocol):
    async def add(self, user: User) -> User: ...

    async def get(self, user_id: str) -> User | None: ...

    async def get_by_mobile(self, mobile_number: str) -> User | None: ...


class OTPStore(Protocol):
    async def put(self, record: OTPRecord) -> None:
        """Insert or overwrite the record for record.mobile_number."""
        ...

    async def get(self, mobile_number: str) -> OTPRecord | None: ...

    async def delete(self, mobile_number: str) -> None: ...

    async def delete_expired(self, now: datetime) -> int:
        """Delete every record with expires_at < now. Returns the count."""
        ...


class QuestionStore(Protocol):
    async def add(self, question: Question) -> Question: ...

    async def save(self, question: Question) -> Question:
        """Persist an updated question (metadata, answer, status)."""
        ...

    async def get(self, question_id: str) -> Question | None: ...

    async def find(
        self,
        user_id: str | None = None,
        status: QuestionStatus | None = None,
    ) -> list[Question]:
        """Matching questions, newest created first."""
        ...

    async def search(
        self,
        query: str,
        user_id: str | None = None,
    ) -> list[Question]:
        """Case-insensitive match on text, subject or topic; newest first."""
        ...

    async def delete_created_before(self, cutoff: datetime) -> int: ...


class AnalysisStore(Protocol):
    async def add(self, analysis: LLMAnalysis) -> LLMAnalysis: ...

    async def list_for_question(self, question_id: str) -> list[LLMAnalysis]: ...


# ---------------------------------------------------------------------------
# Implementation 1: In-Memory
# ---------------------------------------------------------------------------
# Stores copies so that callers mutating a returned object do not change
# stored state without going through save().
# ---------------------------------------------------------------------------


class InMemoryUserStore:
    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    async def add(self, user: User) -> User:
        self._users[user.id] = copy.copy(user)
        return user

    async def get(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return copy.copy(user) if user else None

    async def get_by_mobile(self, mobile_number: str) -> User | None:
        for user in self._users.values():
            if user.mobile_number == mobile_number:
                return copy.copy(user)
        return None


class InMemoryOTPStore:
    def __init__(self) -> None:
        self._records: dict[str, OTPRecord] = {}

    async def put(self, record: OTPRecord) -> None:
        self._records[record.mobile_number] = copy.copy(record)

    async def get(self, mobile_number: str) -> OTPRecord | None:
        record = self._records.get(mobile_number)
        return copy.copy(record) if record else None

    async def delete(self, mobile_number: str) -> None:
        self._records.pop(mobile_number, None)

    async def delete_expired(self, now: datetime) -> int:
        expired = [
            mobile for mobile, record in self._records.items()
            if record.is_expired(now)
        ]
        for mobile in expired:
            del self._records[mobile]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)


class InMemoryQuestionStore:
    """
    Deleting a question also drops its analysis records from `analyses`,
    matching the ON DELETE CASCADE on the SQL llm_analysis table.
    """

    def __init__(self, analyses: InMemoryAnalysisStore | None = None) -> None:
        self._questions: dict[str, Question] = {}
        self._analyses = analyses

    async def add(self, question: Question) -> Question:
        self._questions[question.id] = copy.copy(question)
        return question

    async def save(self, question: Question) -> Question:
        self._questions[question.id] = copy.copy(question)
        return question

    async def get(self, question_id: str) -> Question | None:
        question = self._questions.get(question_id)
        return copy.copy(question) if question else None

    async def find(
        self,
        user_id: str | None = None,
        status: QuestionStatus | None = None,
    ) -> list[Question]:
        matches = [
            q for q in self._questions.values()
            if (user_id is None or q.user_id == user_id)
            and (status is None or q.status == status)
        ]
        return _newest_first(matches)

    async def search(
        self,
        query: str,
        user_id: str | None = None,
    ) -> list[Question]:
        term = query.lower()
        matches = [
            q for q in self._questions.values()
            if (user_id is None or q.user_id == user_id)
            and (
                term in q.question_text.lower()
                or term in q.subject.lower()
                or term in q.topic.lower()
            )
        ]
        return _newest_first(matches)

    async def delete_created_before(self, cutoff: datetime) -> int:
        stale = [
            qid for qid, q in self._questions.items() if q.created_at < cutoff
        ]
        for qid in stale:
            del self._questions[qid]
        if self._analyses is not None:
            self._analyses.delete_for_questions(stale)
        return len(stale)


class InMemoryAnalysisStore:
    def __init__(self) -> None:
        self._analyses: list[LLMAnalysis] = []

    async def add(self, analysis: LLMAnalysis) -> LLMAnalysis:
        self._analyses.append(copy.copy(analysis))
        return analysis

    async def list_for_question(self, question_id: str) -> list[LLMAnalysis]:
        return [
            copy.copy(a) for a in self._analyses if a.question_id == question_id
        ]

    def delete_for_questions(self, question_ids: Iterable[str]) -> int:
        doomed = set(question_ids)
        before = len(self._analyses)
        self._analyses = [a for a in self._analyses if a.question_id not in doomed]
        return before - len(self._analyses)


def _newest_first(questions: list[Question]) -> list[Question]:
    return [
        copy.copy(q)
        for q in sorted(questions, key=lambda q: q.created_at, reverse=True)
    ]


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


@dataclass
class Storage:
    """The four stores a service container needs, from one backend."""

    users: UserStore
    otps: OTPStore
    questions: QuestionStore
    analyses: AnalysisStore
    backend: str = "memory"


def create_memory_storage() -> Storage:
    logger.info("Using in-memory storage backend")
    analyses = InMemoryAnalysisStore()
    return Storage(
        users=InMemoryUserStore(),
        otps=InMemoryOTPStore(),
        questions=InMemoryQuestionStore(analyses),
        analyses=analyses,
        backend="memory",
    )
