# =============================================================================
# Service Container - Wiring Stores, Collaborators and Services
# =============================================================================
#
# One Container per application instance. Built from Settings:
#
#   storage_backend=memory → InMemory* stores
#   storage_backend=sql    → Sql* stores on the async SQLAlchemy engine
#
#   llm_backend=mock → keyword heuristics + mock_min_confidence
#   llm_backend=live → provider SDK (get_llm_provider) + llm_min_confidence
#
# Tests build a Container around in-memory stores, fake collaborators and a
# FakeClock, then hand it to the route functions directly.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

from studentqa.config import Settings, settings as default_settings
from studentqa.services.analysis import (
    AnswerGenerator,
    LLMAnswerGenerator,
    LLMQuestionAnalyzer,
    QuestionAnalyzer,
)
from studentqa.services.auth import AuthService
from studentqa.services.clock import Clock, SystemClock
from studentqa.services.mock_llm import MockAnswerGenerator, MockQuestionAnalyzer
from studentqa.services.otp import OTPService, OTPSweeper
from studentqa.services.questions import QuestionRetentionSweeper, QuestionService
from studentqa.services.storage import Storage, create_memory_storage

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    storage: Storage
    otp: OTPService
    auth: AuthService
    questions: QuestionService
    otp_sweeper: OTPSweeper
    retention_sweeper: QuestionRetentionSweeper

    def start_background_tasks(self) -> None:
        self.otp_sweeper.start()
        self.retention_sweeper.start()

    async def stop_background_tasks(self) -> None:
        await self.otp_sweeper.stop()
        await self.retention_sweeper.stop()


def create_storage(config: Settings) -> Storage:
    if config.storage_backend == "sql":
        # Imported lazily so the memory backend needs no database drivers
        from studentqa.db.engine import get_async_session_factory
        from studentqa.services.sql_storage import create_sql_storage

        return create_sql_storage(get_async_session_factory(config.database_url))
    return create_memory_storage()


def create_collaborators(
    config: Settings,
) -> tuple[QuestionAnalyzer, AnswerGenerator, float]:
    """Analyzer, generator and the confidence threshold that goes with them."""
    if config.llm_backend == "live":
        from studentqa.services.llm import get_llm_provider

        provider = get_llm_provider()
        return (
            LLMQuestionAnalyzer(provider),
            LLMAnswerGenerator(provider),
            config.llm_min_confidence,
        )
    return MockQuestionAnalyzer(), MockAnswerGenerator(), config.mock_min_confidence


def build_container(
    config: Settings | None = None,
    *,
    storage: Storage | None = None,
    analyzer: QuestionAnalyzer | None = None,
    generator: AnswerGenerator | None = None,
    min_confidence: float | None = None,
    clock: Clock | None = None,
) -> Container:
    """
    Assemble the services.

    Any of `storage`, `analyzer`, `generator` or `clock` can be supplied to
    replace the configured implementation (tests).
    """
    config = config or default_settings
    clock = clock or SystemClock()
    storage = storage or create_storage(config)

    if analyzer is None or generator is None:
        default_analyzer, default_generator, default_threshold = create_collaborators(config)
        analyzer = analyzer or default_analyzer
        generator = generator or default_generator
        if min_confidence is None:
            min_confidence = default_threshold
    if min_confidence is None:
        min_confidence = (
            config.llm_min_confidence if config.llm_backend == "live"
            else config.mock_min_confidence
        )

    otp = OTPService(storage.otps, clock=clock, ttl_seconds=config.otp_ttl_seconds)
    auth = AuthService(storage.users, otp, clock=clock)
    questions = QuestionService(
        storage.questions,
        storage.analyses,
        analyzer,
        generator,
        min_confidence=min_confidence,
        clock=clock,
        seed_sample_data=config.seed_sample_data,
    )

    logger.info(
        "Container built (storage=%s, llm_backend=%s, min_confidence=%.2f)",
        storage.backend, config.llm_backend, min_confidence,
    )

    return Container(
        settings=config,
        storage=storage,
        otp=otp,
        auth=auth,
        questions=questions,
        otp_sweeper=OTPSweeper(otp, interval=config.otp_sweep_interval_seconds),
        retention_sweeper=QuestionRetentionSweeper(
            questions, interval=config.question_cleanup_interval_seconds,
        ),
    )
