# =============================================================================
# OTP Service - One-Time Codes for Phone Verification
# =============================================================================
#
# State machine per mobile number:
#
#   NoOTP ──send──▶ OTPIssued ──verify──▶ Verified ──consume──▶ NoOTP
#                      │  ▲                  (signup / login)
#                      │  └── mismatch (retry allowed)
#                      └──▶ Expired (record deleted on the failed verify)
#
# verify() leaves the record in place: the signup UI confirms
# the code first and asks for the name second, then calls signup with the
# same code. consume() removes it once an account is created or logged in.
#
# No SMS is sent. The code is handed to a delivery callback, which by
# default writes it to the log.
# =============================================================================

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import timedelta

from studentqa.config import settings
from studentqa.errors import OTPExpired, OTPMismatch, OTPNotFound
from studentqa.models.domain import OTPRecord
from studentqa.services.clock import Clock, SystemClock
from studentqa.services.scheduler import PeriodicTask, SleepFn
from studentqa.services.storage import OTPStore
from studentqa.services.validation import validate_mobile_number

logger = logging.getLogger(__name__)

OTP_LENGTH = 6

DeliveryFn = Callable[[str, str], None]


def generate_otp() -> str:
    """Uniformly random 6-digit code; leading zeros allowed."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def log_delivery(mobile_number: str, code: str) -> None:
    """Stand-in SMS channel."""
    logger.info("OTP sent to %s: %s", mobile_number, code)


class OTPService:
    """Issue and check one-time codes against an OTPStore."""

    def __init__(
        self,
        store: OTPStore,
        clock: Clock | None = None,
        ttl_seconds: int | None = None,
        deliver: DeliveryFn = log_delivery,
        code_factory: Callable[[], str] = generate_otp,
    ) -> None:
        self._store = store
        self._clock = clock or SystemClock()
        self._ttl = timedelta(
            seconds=settings.otp_ttl_seconds if ttl_seconds is None else ttl_seconds
        )
        self._deliver = deliver
        self._code_factory = code_factory

    async def send(self, mobile_number: str) -> str:
        """
        Issue a fresh code for `mobile_number`, replacing any previous one.

        Raises:
            InvalidMobileNumber: Not 10 digits starting with 6-9. No record
                is written.
        """
        validate_mobile_number(mobile_number)

        code = self._code_factory()
        record = OTPRecord(
            mobile_number=mobile_number,
            code=code,
            expires_at=self._clock.now() + self._ttl,
        )
        await self._store.put(record)
        self._deliver(mobile_number, code)
        return code

    async def verify(self, mobile_number: str, code: str) -> OTPRecord:
        """
        Check `code` against the active record without consuming it.

        Raises:
            OTPNotFound: No code was issued (or it was already consumed).
            OTPExpired: Past expires_at. The record is deleted.
            OTPMismatch: Wrong code. The record stays for another attempt.
        """
        record = await self._store.get(mobile_number)
        if record is None:
            raise OTPNotFound()

        if record.is_expired(self._clock.now()):
            await self._store.delete(mobile_number)
            logger.info("Expired OTP presented for %s", mobile_number)
            raise OTPExpired()

        if not secrets.compare_digest(record.code.encode(), str(code).encode()):
            raise OTPMismatch()

        return record

    async def consume(self, mobile_number: str) -> None:
        await self._store.delete(mobile_number)

    async def sweep_expired(self) -> int:
        """Delete every expired record. Returns how many were removed."""
        return await self._store.delete_expired(self._clock.now())


class OTPSweeper(PeriodicTask):
    """Deletes expired OTP records every `interval` seconds (default 60)."""

    def __init__(
        self,
        otp_service: OTPService,
        interval: float | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        kwargs = {"sleep": sleep} if sleep is not None else {}
        super().__init__(
            name="otp-sweep",
            job=otp_service.sweep_expired,
            interval=(
                settings.otp_sweep_interval_seconds if interval is None else interval
            ),
            **kwargs,
        )
