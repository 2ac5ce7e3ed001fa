# =============================================================================
# Question Service - Submission, Analysis Orchestration & Read Path
# =============================================================================
#
# submit_question() persists the question first and only then tries to
# enrich it. Submission success is decoupled from analysis success:
#
#   persist (pending) ──▶ categorize ──▶ generate ──▶ END
#          │                   │
#          ✗ → failure         └── (failed / low confidence) ──▶ END
#
# The categorize → generate steps run as a LangGraph StateGraph compiled
# once per service instance. Each node absorbs collaborator errors into the
# state (`analysis_error` / `answer_error`) instead of raising, so a
# half-enriched question (metadata set, no answer) is a valid resting state.
#
# Only a PersistenceError while creating the question makes the submission
# report failure.
#
# `flagged_for_review` is never set by this flow.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import timedelta

from langgraph.graph import END, START, StateGraph
from typing_extensions import TypedDict

from studentqa.config import settings
from studentqa.errors import CollaboratorError, LowConfidenceError, PersistenceError
from studentqa.models.domain import (
    LLMAnalysis,
    Question,
    QuestionMetadata,
    QuestionStatus,
    User,
    new_question_id,
)
from studentqa.services.analysis import AnswerGenerator, QuestionAnalyzer
from studentqa.services.clock import Clock, SystemClock
from studentqa.services.sample_data import build_sample_questions
from studentqa.services.scheduler import PeriodicTask, SleepFn
from studentqa.services.storage import AnalysisStore, QuestionStore

logger = logging.getLogger(__name__)

SUBMIT_FAILED_MESSAGE = "Failed to submit question. Please try again."
UNEXPECTED_ANALYSIS_ERROR = "LLM analysis encountered an unexpected error"


@dataclass
class SubmissionResult:
    success: bool
    message: str
    question: Question | None = None


# ---------------------------------------------------------------------------
# Pipeline State Schema
# ---------------------------------------------------------------------------


class AnalysisState(TypedDict, total=False):
    """
    State flowing through the analysis graph.

    total=False so nodes only return the keys they update.
    """

    # --- Input ---
    question: Question

    # --- Set by categorize ---
    metadata: QuestionMetadata
    analysis_error: str

    # --- Set by generate ---
    answer: str
    answer_error: str


class QuestionService:
    def __init__(
        self,
        questions: QuestionStore,
        analyses: AnalysisStore,
        analyzer: QuestionAnalyzer,
        generator: AnswerGenerator,
        min_confidence: float,
        clock: Clock | None = None,
        seed_sample_data: bool | None = None,
    ) -> None:
        self._questions = questions
        self._analyses = analyses
        self._analyzer = analyzer
        self._generator = generator
        self._min_confidence = min_confidence
        self._clock = clock or SystemClock()
        self._seed_sample_data = (
            settings.seed_sample_data if seed_sample_data is None else seed_sample_data
        )
        self._seeded_users: set[str] = set()
        self._pipeline = self._build_pipeline()

    # -----------------------------------------------------------------------
    # Submission
    # -----------------------------------------------------------------------

    async def submit_question(self, question_text: str, user: User) -> SubmissionResult:
        """
        Persist a new `pending` question, then try to categorise and answer it.

        The text is stored as given; length validation happens in the caller
        (see validation.validate_question_text).

        Returns:
            SubmissionResult with success=True and the latest state of the
            question whenever it was persisted, whatever happened during
            analysis. success=False only if the question could not be saved.
        """
        now = self._clock.now()
        question = Question(
            id=new_question_id(),
            user_id=user.id,
            question_text=question_text,
            created_at=now,
            updated_at=now,
        )

        try:
            await self._questions.add(question)
        except PersistenceError as e:
            logger.error("Failed to persist question for user %s: %s", user.id, e)
            return SubmissionResult(success=False, message=SUBMIT_FAILED_MESSAGE)

        logger.info(
            "Question submitted: id=%s user=%s text='%s'",
            question.id, user.id, question_text[:80],
        )

        try:
            state: AnalysisState = await self._pipeline.ainvoke({"question": question})
        except Exception:
            logger.exception("Analysis pipeline failed for question %s", question.id)
            state = {"question": question, "analysis_error": UNEXPECTED_ANALYSIS_ERROR}

        return SubmissionResult(
            success=True,
            question=state["question"],
            message=_submission_message(state),
        )

    # -----------------------------------------------------------------------
    # Pipeline nodes
    # -----------------------------------------------------------------------

    async def _categorize_node(self, state: AnalysisState) -> dict:
        question = state["question"]
        try:
            metadata = await self._analyzer.analyze(question.question_text)
            if metadata.confidence < self._min_confidence:
                raise LowConfidenceError()
            updated = await self.update_question_metadata(question.id, metadata)
        except CollaboratorError as e:
            logger.warning("Analysis failed for question %s: %s", question.id, e.message)
            return {"analysis_error": e.message}
        except PersistenceError as e:
            return {"analysis_error": e.message}
        except Exception:
            logger.exception("Unexpected analysis error for question %s", question.id)
            return {"analysis_error": UNEXPECTED_ANALYSIS_ERROR}

        if updated is None:
            return {"analysis_error": "Question no longer exists"}

        await self._record_analysis(updated.id, metadata)
        return {"question": updated, "metadata": metadata}

    async def _generate_node(self, state: AnalysisState) -> dict:
        question = state["question"]
        metadata = state["metadata"]
        try:
            answer = await self._generator.generate(
                question.question_text, metadata.subject, metadata.topic,
            )
            updated = await self.record_answer(question.id, answer)
        except (CollaboratorError, PersistenceError) as e:
            logger.warning(
                "Answer generation failed for question %s: %s", question.id, e.message,
            )
            return {"answer_error": e.message}
        except Exception:
            logger.exception("Unexpected answer error for question %s", question.id)
            return {"answer_error": UNEXPECTED_ANALYSIS_ERROR}

        if updated is None:
            return {"answer_error": "Question no longer exists"}
        return {"question": updated, "answer": answer}

    @staticmethod
    def _route_after_categorize(state: AnalysisState) -> str:
        return "generate" if "metadata" in state else END

    def _build_pipeline(self):
        builder = StateGraph(AnalysisState)
        builder.add_node("categorize", self._categorize_node)
        builder.add_node("generate", self._generate_node)

        builder.add_edge(START, "categorize")
        builder.add_conditional_edges(
            "categorize",
            self._route_after_categorize,
            {"generate": "generate", END: END},
        )
        builder.add_edge("generate", END)
        return builder.compile()

    async def _record_analysis(self, question_id: str, metadata: QuestionMetadata) -> None:
        analysis = LLMAnalysis(
            question_id=question_id,
            subject=metadata.subject,
            topic=metadata.topic,
            difficulty_level=metadata.difficulty_level,
            grade_level=metadata.grade_level,
            confidence=metadata.confidence,
            provider=getattr(self._analyzer, "provider_name", "unknown"),
            analyzed_at=self._clock.now(),
        )
        try:
            await self._analyses.add(analysis)
        except PersistenceError as e:
            # The question itself is already updated; the audit row is optional
            logger.warning("Failed to store analysis for %s: %s", question_id, e)

    # -----------------------------------------------------------------------
    # Updates (called by the pipeline)
    # -----------------------------------------------------------------------

    async def update_question_metadata(
        self,
        question_id: str,
        metadata: QuestionMetadata,
    ) -> Question | None:
        question = await self._questions.get(question_id)
        if question is None:
            return None
        updated = replace(
            question,
            subject=metadata.subject,
            topic=metadata.topic,
            difficulty_level=metadata.difficulty_level,
            grade_level=metadata.grade_level,
            updated_at=self._next_timestamp(question),
        )
        return await self._questions.save(updated)

    async def record_answer(self, question_id: str, answer: str) -> Question | None:
        """Attach an answer and mark the question answered."""
        question = await self._questions.get(question_id)
        if question is None:
            return None
        updated = replace(
            question,
            answer=answer,
            status=QuestionStatus.ANSWERED,
            updated_at=self._next_timestamp(question),
        )
        return await self._questions.save(updated)

    async def update_question_status(
        self,
        question_id: str,
        status: QuestionStatus,
    ) -> Question | None:
        question = await self._questions.get(question_id)
        if question is None:
            return None
        updated = replace(
            question, status=status, updated_at=self._next_timestamp(question),
        )
        return await self._questions.save(updated)

    def _next_timestamp(self, question: Question):
        # updated_at must strictly increase even if the clock has not moved
        now = self._clock.now()
        if now <= question.updated_at:
            now = question.updated_at + timedelta(microseconds=1)
        return now

    # -----------------------------------------------------------------------
    # Read path
    # -----------------------------------------------------------------------

    async def get_questions_by_user_id(self, user_id: str) -> list[Question]:
        """All of the user's questions, newest created first."""
        if self._seed_sample_data and user_id not in self._seeded_users:
            await self.seed_sample_questions(user_id)
        return await self._questions.find(user_id=user_id)

    async def get_question_by_id(self, question_id: str) -> Question | None:
        return await self._questions.get(question_id)

    async def get_questions_by_status(
        self,
        status: QuestionStatus,
        user_id: str | None = None,
    ) -> list[Question]:
        return await self._questions.find(user_id=user_id, status=status)

    async def get_all_questions(self) -> list[Question]:
        return await self._questions.find()

    async def search_questions(
        self,
        query: str,
        user_id: str | None = None,
    ) -> list[Question]:
        """Case-insensitive match on question text, subject or topic."""
        return await self._questions.search(query, user_id=user_id)

    async def get_analysis_history(self, question_id: str) -> list[LLMAnalysis]:
        return await self._analyses.list_for_question(question_id)

    # -----------------------------------------------------------------------
    # Maintenance
    # -----------------------------------------------------------------------

    async def seed_sample_questions(self, user_id: str) -> int:
        """Insert any missing sample questions for `user_id`. Returns the count."""
        added = 0
        for sample in build_sample_questions(user_id, self._clock.now()):
            if await self._questions.get(sample.id) is None:
                await self._questions.add(sample)
                added += 1
        self._seeded_users.add(user_id)
        if added:
            logger.info("Seeded %d sample question(s) for user %s", added, user_id)
        return added

    async def cleanup_old_questions(self, retention_days: int | None = None) -> int:
        """Delete questions created more than `retention_days` ago."""
        days = settings.question_retention_days if retention_days is None else retention_days
        cutoff = self._clock.now() - timedelta(days=days)
        return await self._questions.delete_created_before(cutoff)


class QuestionRetentionSweeper(PeriodicTask):
    """Runs cleanup_old_questions() every `interval` seconds (default hourly)."""

    def __init__(
        self,
        question_service: QuestionService,
        interval: float | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        kwargs = {"sleep": sleep} if sleep is not None else {}
        super().__init__(
            name="question-retention",
            job=question_service.cleanup_old_questions,
            interval=(
                settings.question_cleanup_interval_seconds
                if interval is None else interval
            ),
            **kwargs,
        )


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _submission_message(state: AnalysisState) -> str:
    metadata: QuestionMetadata | None = state.get("metadata")
    if metadata is None:
        reason = state.get("analysis_error", UNEXPECTED_ANALYSIS_ERROR).rstrip(".")
        return (
            f"Question submitted successfully! Analysis could not be completed: "
            f"{reason}. It will be analyzed later."
        )

    summary = (
        f"Analyzed as {metadata.subject} - {metadata.topic} "
        f"({metadata.difficulty_level.value} level)."
    )
    if "answer" in state:
        return f"Question submitted and answered successfully! {summary}"
    return (
        f"Question submitted successfully! {summary} "
        "Answer will be generated shortly."
    )
