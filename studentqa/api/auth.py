# =============================================================================
# Auth API - Phone OTP Signup & Login
# =============================================================================
#
#   POST /auth/otp         → issue a code (echoed back only with OTP_ECHO_IN_RESPONSE)
#   POST /auth/otp/verify  → check a code without consuming it
#   POST /auth/signup      → verify + create account (201)
#   POST /auth/login       → verify + return existing account
#
# The returned user id is what the client keeps in its session slot and
# sends back as `X-User-Id`.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from studentqa.api.deps import get_container
from studentqa.api.errors import http_error
from studentqa.container import Container
from studentqa.errors import StudentQAError
from studentqa.models.requests import (
    LoginRequest,
    SendOTPRequest,
    SignupRequest,
    VerifyOTPRequest,
)
from studentqa.models.responses import MessageResponse, OTPSentResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/otp",
    response_model=OTPSentResponse,
    summary="Send a one-time code to a mobile number",
)
async def send_otp_endpoint(
    request: SendOTPRequest,
    container: Container = Depends(get_container),
) -> OTPSentResponse:
    """
    Issue a new 6-digit OTP, replacing any previous one for the number.

    Error handling:
    - Invalid mobile number → 422
    """
    try:
        code = await container.auth.send_otp(request.mobile_number)
    except StudentQAError as e:
        raise http_error(e) from e

    return OTPSentResponse(
        message="OTP sent successfully.",
        otp=code if container.settings.otp_echo_in_response else None,
    )


@router.post(
    "/otp/verify",
    response_model=MessageResponse,
    summary="Check a one-time code",
)
async def verify_otp_endpoint(
    request: VerifyOTPRequest,
    container: Container = Depends(get_container),
) -> MessageResponse:
    try:
        await container.auth.verify_otp(request.mobile_number, request.otp)
    except StudentQAError as e:
        raise http_error(e) from e
    return MessageResponse(message="OTP verified successfully.")


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=201,
    summary="Verify the code and create an account",
)
async def signup_endpoint(
    request: SignupRequest,
    container: Container = Depends(get_container),
) -> UserResponse:
    """
    Error handling:
    - Missing/expired/wrong OTP → 400
    - Mobile number already registered → 409
    - Empty name → 422
    """
    try:
        user = await container.auth.verify_otp_and_signup(
            request.mobile_number, request.otp, request.full_name,
        )
    except StudentQAError as e:
        raise http_error(e) from e
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=UserResponse,
    summary="Verify the code and sign in to an existing account",
)
async def login_endpoint(
    request: LoginRequest,
    container: Container = Depends(get_container),
) -> UserResponse:
    try:
        user = await container.auth.verify_otp_and_login(
            request.mobile_number, request.otp,
        )
    except StudentQAError as e:
        raise http_error(e) from e
    return UserResponse.model_validate(user)
