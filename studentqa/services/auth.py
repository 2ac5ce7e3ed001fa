# =============================================================================
# Auth Service - Phone OTP Signup & Login
# =============================================================================
#
# Turns a claimed mobile number into a verified identity:
#
#   send_otp(mobile)                        → code (delivered via log)
#   verify_otp(mobile, code)                → ok, code NOT consumed
#   verify_otp_and_signup(mobile, code, name) → new User, code consumed
#   verify_otp_and_login(mobile, code)      → existing User, code consumed
#
# All failures are raised as StudentQAError subclasses carrying the
# user-facing message (see studentqa/errors.py).
# =============================================================================

from __future__ import annotations

import logging

from studentqa.errors import DuplicateUser, UserNotFound
from studentqa.models.domain import User, new_user_id
from studentqa.services.clock import Clock, SystemClock
from studentqa.services.otp import OTPService
from studentqa.services.storage import UserStore
from studentqa.services.validation import validate_full_name

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(
        self,
        users: UserStore,
        otp: OTPService,
        clock: Clock | None = None,
    ) -> None:
        self._users = users
        self._otp = otp
        self._clock = clock or SystemClock()

    async def send_otp(self, mobile_number: str) -> str:
        """
        Issue an OTP for `mobile_number` and return it.

        Each call regenerates the code and overwrites the previous one.

        Raises:
            InvalidMobileNumber: Format check failed; nothing is stored.
        """
        code = await self._otp.send(mobile_number)
        logger.info("OTP issued for %s", mobile_number)
        return code

    async def verify_otp(self, mobile_number: str, code: str) -> None:
        """
        Confirm the OTP without consuming it.

        A second verify with the same code succeeds until the code is
        consumed by signup/login or expires.

        Raises:
            OTPNotFound, OTPExpired, OTPMismatch
        """
        await self._otp.verify(mobile_number, code)

    async def verify_otp_and_signup(
        self,
        mobile_number: str,
        code: str,
        full_name: str,
    ) -> User:
        """
        Verify the OTP and create the account.

        Check order: OTP, then duplicate account, then name. The OTP is
        only consumed once the user row has been written.

        Raises:
            OTPNotFound, OTPExpired, OTPMismatch: OTP check failed.
            DuplicateUser: An account already exists for this mobile.
            EmptyName: `full_name` is blank after trimming.
            PersistenceError: The user could not be saved.
        """
        await self._otp.verify(mobile_number, code)

        if await self._users.get_by_mobile(mobile_number) is not None:
            logger.info("Signup rejected, %s already registered", mobile_number)
            raise DuplicateUser()

        name = validate_full_name(full_name)

        user = User(
            id=new_user_id(),
            full_name=name,
            mobile_number=mobile_number,
            created_at=self._clock.now(),
        )
        await self._users.add(user)
        await self._otp.consume(mobile_number)

        logger.info("Account created: user_id=%s mobile=%s", user.id, mobile_number)
        return user

    async def verify_otp_and_login(self, mobile_number: str, code: str) -> User:
        """
        Verify the OTP for an existing account and consume it.

        Raises:
            OTPNotFound, OTPExpired, OTPMismatch: OTP check failed.
            UserNotFound: No account for this mobile (the OTP is kept so the
                client can continue into signup with it).
        """
        await self._otp.verify(mobile_number, code)

        user = await self._users.get_by_mobile(mobile_number)
        if user is None:
            raise UserNotFound()

        await self._otp.consume(mobile_number)
        logger.info("User logged in: user_id=%s", user.id)
        return user

    async def get_user_by_id(self, user_id: str) -> User | None:
        return await self._users.get(user_id)

    async def get_user_by_mobile(self, mobile_number: str) -> User | None:
        return await self._users.get_by_mobile(mobile_number)
