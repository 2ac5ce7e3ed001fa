# =============================================================================
# Unit Tests - Question Service (Submission Pipeline & Read Path)
# =============================================================================
#
# Test groups:
#   1. Submission scenarios (answered, classifier failure, low confidence,
#      answer failure, storage failure)
#   2. Invariants (unique ids, updated_at strictly increasing)
#   3. Read path, search and status filters
#   4. Sample data seeding
#   5. Retention cleanup
#
# Collaborators are small fake classes; storage is in-memory.
# =============================================================================

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from studentqa.errors import CollaboratorError, PersistenceError
from studentqa.models.domain import (
    PENDING_ANALYSIS,
    DifficultyLevel,
    QuestionMetadata,
    QuestionStatus,
    User,
)
from studentqa.services.mock_llm import MockAnswerGenerator, MockQuestionAnalyzer
from studentqa.services.questions import (
    SUBMIT_FAILED_MESSAGE,
    QuestionRetentionSweeper,
    QuestionService,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


ARITHMETIC = QuestionMetadata(
    subject="Mathematics",
    topic="Arithmetic",
    difficulty_level=DifficultyLevel.BEGINNER,
    grade_level="1st grade",
    confidence=0.95,
)


class FakeAnalyzer:
    provider_name = "fake"

    def __init__(self, metadata=ARITHMETIC, error: Exception | None = None) -> None:
        self.metadata = metadata
        self.error = error
        self.calls: list[str] = []

    async def analyze(self, question_text):
        self.calls.append(question_text)
        if self.error is not None:
            raise self.error
        return self.metadata


class FakeGenerator:
    def __init__(self, answer: str = "4", error: Exception | None = None) -> None:
        self.answer = answer
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def generate(self, question_text, subject, topic):
        self.calls.append((question_text, subject, topic))
        if self.error is not None:
            raise self.error
        return self.answer


def _user(clock, user_id: str = "user_1") -> User:
    return User(id=user_id, full_name="Jane Doe", mobile_number="9876543210", created_at=clock.now())


def _service(storage, clock, analyzer=None, generator=None, min_confidence=0.9, seed=False):
    return QuestionService(
        storage.questions,
        storage.analyses,
        analyzer or FakeAnalyzer(),
        generator or FakeGenerator(),
        min_confidence=min_confidence,
        clock=clock,
        seed_sample_data=seed,
    )


# ---------------------------------------------------------------------------
# 1. Submission scenarios
# ---------------------------------------------------------------------------


class TestSubmitQuestion:
    def test_answered_scenario(self, storage, clock):
        service = _service(storage, clock)
        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert result.success
        question = result.question
        assert question.status is QuestionStatus.ANSWERED
        assert question.answer == "4"
        assert question.subject == "Mathematics"
        assert question.topic == "Arithmetic"
        assert question.grade_level == "1st grade"
        assert result.message == (
            "Question submitted and answered successfully! "
            "Analyzed as Mathematics - Arithmetic (Beginner level)."
        )

        stored = _run(service.get_question_by_id(question.id))
        assert stored == question

    def test_analysis_is_recorded(self, storage, clock):
        service = _service(storage, clock)
        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        history = _run(service.get_analysis_history(result.question.id))
        assert len(history) == 1
        assert history[0].provider == "fake"
        assert history[0].confidence == 0.95

    def test_classifier_network_error_leaves_question_pending(self, storage, clock):
        analyzer = FakeAnalyzer(error=CollaboratorError("Network error"))
        generator = FakeGenerator()
        service = _service(storage, clock, analyzer=analyzer, generator=generator)

        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert result.success
        assert result.question.status is QuestionStatus.PENDING
        assert result.question.subject == PENDING_ANALYSIS
        assert result.question.answer is None
        assert result.message == (
            "Question submitted successfully! Analysis could not be completed: "
            "Network error. It will be analyzed later."
        )
        assert generator.calls == []
        assert len(_run(service.get_questions_by_user_id("user_1"))) == 1

    def test_unexpected_classifier_exception_is_absorbed(self, storage, clock):
        analyzer = FakeAnalyzer(error=KeyError("boom"))
        service = _service(storage, clock, analyzer=analyzer)

        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert result.success
        assert result.question.status is QuestionStatus.PENDING
        assert "could not be completed" in result.message

    def test_low_confidence_skips_update(self, storage, clock):
        low = QuestionMetadata("Mathematics", "Arithmetic", DifficultyLevel.BEGINNER, "1st grade", 0.5)
        generator = FakeGenerator()
        service = _service(storage, clock, analyzer=FakeAnalyzer(metadata=low), generator=generator)

        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert result.success
        assert result.question.subject == PENDING_ANALYSIS
        assert "sufficient confidence" in result.message
        assert generator.calls == []
        assert _run(service.get_analysis_history(result.question.id)) == []

    def test_answer_failure_keeps_metadata(self, storage, clock):
        generator = FakeGenerator(error=CollaboratorError("Request timed out. Please try again."))
        service = _service(storage, clock, generator=generator)

        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert result.success
        assert result.question.status is QuestionStatus.PENDING
        assert result.question.subject == "Mathematics"
        assert result.question.answer is None
        assert result.message == (
            "Question submitted successfully! Analyzed as Mathematics - "
            "Arithmetic (Beginner level). Answer will be generated shortly."
        )

    def test_storage_failure_reports_failure(self, storage, clock):
        storage.questions.add = AsyncMock(side_effect=PersistenceError())
        analyzer = FakeAnalyzer()
        service = _service(storage, clock, analyzer=analyzer)

        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert not result.success
        assert result.question is None
        assert result.message == SUBMIT_FAILED_MESSAGE
        assert analyzer.calls == []

    def test_mock_collaborators_end_to_end(self, storage, clock):
        service = _service(
            storage, clock,
            analyzer=MockQuestionAnalyzer(),
            generator=MockAnswerGenerator(),
            min_confidence=0.5,
        )
        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        assert result.question.status is QuestionStatus.ANSWERED
        assert result.question.topic == "Basic Math"

    def test_mock_analysis_below_live_threshold(self, storage, clock):
        service = _service(
            storage, clock,
            analyzer=MockQuestionAnalyzer(),
            generator=MockAnswerGenerator(),
            min_confidence=0.9,
        )
        result = _run(service.submit_question("What is 2+2?", _user(clock)))
        assert result.question.status is QuestionStatus.PENDING


# ---------------------------------------------------------------------------
# 2. Invariants
# ---------------------------------------------------------------------------


class TestInvariants:
    def test_ids_are_unique(self, storage, clock):
        service = _service(storage, clock)
        user = _user(clock)
        ids = {
            _run(service.submit_question(f"Question number {i}?", user)).question.id
            for i in range(20)
        }
        assert len(ids) == 20

    def test_updated_at_strictly_increases_with_frozen_clock(self, storage, clock):
        service = _service(storage, clock)
        result = _run(service.submit_question("What is 2+2?", _user(clock)))

        question = result.question
        assert question.created_at == clock.now()
        assert question.updated_at > question.created_at

    def test_record_answer_round_trip(self, storage, clock):
        service = _service(storage, clock, analyzer=FakeAnalyzer(error=CollaboratorError()))
        pending = _run(service.submit_question("What is 2+2?", _user(clock))).question
        assert pending.status is QuestionStatus.PENDING

        clock.advance(seconds=5)
        answered = _run(service.record_answer(pending.id, "4"))

        assert answered.status is QuestionStatus.ANSWERED
        assert answered.answer == "4"
        assert answered.updated_at > pending.updated_at

    def test_updates_on_missing_question_return_none(self, storage, clock):
        service = _service(storage, clock)
        assert _run(service.record_answer("question_missing", "4")) is None
        assert _run(service.update_question_metadata("question_missing", ARITHMETIC)) is None
        assert _run(service.update_question_status("question_missing", QuestionStatus.ANSWERED)) is None

    def test_update_status(self, storage, clock):
        service = _service(storage, clock, analyzer=FakeAnalyzer(error=CollaboratorError()))
        pending = _run(service.submit_question("What is 2+2?", _user(clock))).question

        flagged = _run(service.update_question_status(pending.id, QuestionStatus.FLAGGED_FOR_REVIEW))

        assert flagged.status is QuestionStatus.FLAGGED_FOR_REVIEW
        assert flagged.updated_at > pending.updated_at


# ---------------------------------------------------------------------------
# 3. Read path
# ---------------------------------------------------------------------------


class TestReadPath:
    def _populate(self, service, clock):
        jane = _user(clock, "user_jane")
        john = _user(clock, "user_john")
        _run(service.submit_question("What is 2+2 in math?", jane))
        clock.advance(minutes=1)
        _run(service.submit_question("What is the capital of France?", jane))
        clock.advance(minutes=1)
        _run(service.submit_question("What is 3+3 for John?", john))

    def test_user_questions_newest_first(self, storage, clock):
        service = _service(storage, clock)
        self._populate(service, clock)

        questions = _run(service.get_questions_by_user_id("user_jane"))

        assert [q.question_text for q in questions] == [
            "What is the capital of France?",
            "What is 2+2 in math?",
        ]

    def test_unknown_user_has_no_questions(self, storage, clock):
        service = _service(storage, clock)
        assert _run(service.get_questions_by_user_id("user_nobody")) == []

    def test_get_missing_question(self, storage, clock):
        assert _run(_service(storage, clock).get_question_by_id("question_x")) is None

    def test_all_questions(self, storage, clock):
        service = _service(storage, clock)
        self._populate(service, clock)
        assert len(_run(service.get_all_questions())) == 3

    def test_search_is_case_insensitive_and_scoped(self, storage, clock):
        service = _service(storage, clock)
        self._populate(service, clock)

        assert len(_run(service.search_questions("FRANCE"))) == 1
        # Matches the subject set by the analyzer
        assert len(_run(service.search_questions("mathematics"))) == 3
        assert len(_run(service.search_questions("mathematics", user_id="user_john"))) == 1

    def test_questions_by_status(self, storage, clock):
        service = _service(storage, clock)
        self._populate(service, clock)
        john_q = _run(service.get_questions_by_user_id("user_john"))[0]
        _run(service.update_question_status(john_q.id, QuestionStatus.PENDING))

        assert len(_run(service.get_questions_by_status(QuestionStatus.ANSWERED))) == 2
        pending = _run(service.get_questions_by_status(QuestionStatus.PENDING, user_id="user_john"))
        assert [q.id for q in pending] == [john_q.id]


# ---------------------------------------------------------------------------
# 4. Sample data
# ---------------------------------------------------------------------------


class TestSampleData:
    def test_first_read_seeds_three_questions(self, storage, clock):
        service = _service(storage, clock, seed=True)

        questions = _run(service.get_questions_by_user_id("user_1"))

        assert len(questions) == 3
        assert {q.status for q in questions} == set(QuestionStatus)
        assert all(q.user_id == "user_1" for q in questions)

    def test_seeding_happens_once(self, storage, clock):
        service = _service(storage, clock, seed=True)
        _run(service.get_questions_by_user_id("user_1"))
        _run(service.get_questions_by_user_id("user_1"))

        # A fresh service over the same store does not duplicate samples
        again = _service(storage, clock, seed=True)
        assert len(_run(again.get_questions_by_user_id("user_1"))) == 3

    def test_new_submission_listed_before_samples(self, storage, clock):
        service = _service(storage, clock, seed=True)
        _run(service.get_questions_by_user_id("user_1"))
        _run(service.submit_question("What is 2+2?", _user(clock)))

        questions = _run(service.get_questions_by_user_id("user_1"))
        assert len(questions) == 4
        assert questions[0].question_text == "What is 2+2?"

    def test_disabled_seeding(self, storage, clock):
        service = _service(storage, clock, seed=False)
        assert _run(service.get_questions_by_user_id("user_1")) == []


# ---------------------------------------------------------------------------
# 5. Retention cleanup
# ---------------------------------------------------------------------------


class TestCleanup:
    def test_removes_questions_older_than_retention(self, storage, clock):
        service = _service(storage, clock)
        user = _user(clock)
        _run(service.submit_question("An old question here?", user))
        clock.advance(days=5)
        _run(service.submit_question("A newer question here?", user))
        clock.advance(days=3)

        removed = _run(service.cleanup_old_questions(retention_days=7))

        assert removed == 1
        remaining = _run(service.get_all_questions())
        assert [q.question_text for q in remaining] == ["A newer question here?"]

    def test_cleanup_drops_analysis_history_of_removed_questions(self, storage, clock):
        service = _service(storage, clock)
        user = _user(clock)
        old = _run(service.submit_question("An old question here?", user)).question
        clock.advance(days=5)
        new = _run(service.submit_question("A newer question here?", user)).question
        clock.advance(days=3)

        _run(service.cleanup_old_questions(retention_days=7))

        assert _run(service.get_analysis_history(old.id)) == []
        assert len(_run(service.get_analysis_history(new.id))) == 1

    def test_retention_sweeper(self, storage, clock):
        service = _service(storage, clock)
        _run(service.submit_question("An old question here?", _user(clock)))
        clock.advance(days=8)

        sweeper = QuestionRetentionSweeper(service, interval=3600)
        assert sweeper.name == "question-retention"
        assert _run(sweeper.run_once()) == 1


@pytest.mark.parametrize("status", list(QuestionStatus))
def test_status_values_are_stable(status):
    assert status.value in {"pending", "answered", "flagged_for_review"}
