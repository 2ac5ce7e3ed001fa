# =============================================================================
# API Response Models - Pydantic V2 Schemas
# =============================================================================
#
# Shapes of the data going OUT of the API. Built from the domain
# dataclasses with `from_attributes=True`, so the services never deal with
# serialisation.
# =============================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studentqa.models.domain import DifficultyLevel, QuestionStatus


class HealthResponse(BaseModel):
    """Response for GET /health - confirms the API is running."""

    status: str = "ok"
    version: str
    service: str
    storage_backend: str
    llm_backend: str


class MessageResponse(BaseModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str


class OTPSentResponse(MessageResponse):
    """
    Response for POST /auth/otp.

    `otp` is only populated when the app runs with DEBUG=true; in every
    other case the code is only available from the delivery channel.
    """

    otp: str | None = None


class UserResponse(BaseModel):
    id: str
    full_name: str
    mobile_number: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class QuestionResponse(BaseModel):
    id: str
    user_id: str
    question_text: str
    subject: str
    topic: str
    difficulty_level: DifficultyLevel
    grade_level: str
    status: QuestionStatus
    answer: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    """
    Response for POST /questions.

    `success` is True whenever the question was stored, even if analysis
    failed; the message then explains what is still outstanding.
    """

    success: bool
    message: str
    question: QuestionResponse | None = None


class DashboardSummaryResponse(BaseModel):
    total: int = 0
    pending: int = 0
    answered: int = 0
    flagged_for_review: int = 0

    model_config = ConfigDict(from_attributes=True)


class DashboardResponse(BaseModel):
    """Response for GET /dashboard - questions newest first plus counts."""

    user: UserResponse
    summary: DashboardSummaryResponse
    questions: list[QuestionResponse] = Field(default_factory=list)
