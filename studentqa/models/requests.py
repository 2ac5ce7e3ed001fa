# =============================================================================
# API Request Models - Pydantic V2 Schemas
# =============================================================================
#
# Shapes of the bodies coming INTO the API. Only structural checks live
# here; business validation (mobile format, name, question length) is done
# by the services so the messages match the rest of the app and surface as
# ValidationError → 422.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field


class SendOTPRequest(BaseModel):
    """Request body for POST /auth/otp."""

    mobile_number: str = Field(
        ...,
        description="10-digit Indian mobile number starting with 6-9",
        examples=["9876543210"],
    )


class VerifyOTPRequest(BaseModel):
    """Request body for POST /auth/otp/verify."""

    mobile_number: str = Field(..., examples=["9876543210"])
    otp: str = Field(..., description="The 6-digit code", examples=["123456"])


class LoginRequest(VerifyOTPRequest):
    """Request body for POST /auth/login."""


class SignupRequest(VerifyOTPRequest):
    """
    Request body for POST /auth/signup.

    Example:
        {"mobile_number": "9876543210", "otp": "123456", "full_name": "Jane Doe"}
    """

    full_name: str = Field(..., examples=["Jane Doe"])

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "mobile_number": "9876543210",
                    "otp": "123456",
                    "full_name": "Jane Doe",
                },
            ],
        },
    )


class SubmitQuestionRequest(BaseModel):
    """Request body for POST /questions."""

    question_text: str = Field(
        ...,
        max_length=5000,
        description="The question to ask (at least 10 characters once trimmed)",
        examples=["How do I solve x² + 5x + 6 = 0?"],
    )
