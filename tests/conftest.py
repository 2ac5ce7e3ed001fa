# =============================================================================
# Shared Test Fixtures
# =============================================================================
# A controllable clock and fresh in-memory storage. Nothing here needs a
# database, Redis or an API key.
# =============================================================================

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from studentqa.services.storage import Storage, create_memory_storage

START_TIME = datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


class FakeClock:
    """Clock whose time only moves when a test calls advance()."""

    def __init__(self, start: datetime = START_TIME) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> Storage:
    return create_memory_storage()
