# =============================================================================
# Clock - Injectable Time Source
# =============================================================================
#
# Services that care about time (OTP expiry, question timestamps, periodic
# sweeps) take a Clock instead of calling datetime.now() directly, so tests
# can move time forward deterministically.
# =============================================================================

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
