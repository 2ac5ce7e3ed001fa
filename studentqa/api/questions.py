# =============================================================================
# Questions API - Submit & Browse Questions
# =============================================================================
#
#   POST /questions       → validate, persist, categorise, answer
#   GET  /questions       → the caller's questions (?status=, ?q=)
#   GET  /questions/{id}  → one of the caller's questions
#
# Submission returns 201 whenever the question was stored, even if the
# analysis step failed; the message says what is still outstanding. Only a
# storage failure makes the request fail (503).
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from studentqa.api.deps import get_container, get_current_user
from studentqa.api.errors import http_error
from studentqa.container import Container
from studentqa.errors import StudentQAError
from studentqa.models.domain import QuestionStatus, User
from studentqa.models.requests import SubmitQuestionRequest
from studentqa.models.responses import QuestionResponse, SubmissionResponse
from studentqa.services.validation import validate_question_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.post(
    "",
    response_model=SubmissionResponse,
    status_code=201,
    summary="Submit a question",
)
async def submit_question_endpoint(
    request: SubmitQuestionRequest,
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> SubmissionResponse:
    """
    Error handling:
    - Text empty or shorter than the minimum length → 422
    - Question could not be stored → 503
    - Categorisation / answer failures → 201 with an explanatory message
    """
    try:
        text = validate_question_text(
            request.question_text, container.settings.question_min_length,
        )
    except StudentQAError as e:
        raise http_error(e) from e

    result = await container.questions.submit_question(text, user)
    if not result.success:
        raise HTTPException(status_code=503, detail=result.message)

    return SubmissionResponse(
        success=True,
        message=result.message,
        question=QuestionResponse.model_validate(result.question),
    )


@router.get(
    "",
    response_model=list[QuestionResponse],
    summary="List the caller's questions, newest first",
)
async def list_questions_endpoint(
    status: QuestionStatus | None = Query(default=None),
    q: str | None = Query(default=None, description="Search text, subject or topic"),
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> list[QuestionResponse]:
    service = container.questions
    if q:
        questions = await service.search_questions(q, user_id=user.id)
        if status is not None:
            questions = [question for question in questions if question.status == status]
    elif status is not None:
        questions = await service.get_questions_by_status(status, user_id=user.id)
    else:
        questions = await service.get_questions_by_user_id(user.id)

    return [QuestionResponse.model_validate(question) for question in questions]


@router.get(
    "/{question_id}",
    response_model=QuestionResponse,
    summary="Get one of the caller's questions",
)
async def get_question_endpoint(
    question_id: str,
    user: User = Depends(get_current_user),
    container: Container = Depends(get_container),
) -> QuestionResponse:
    question = await container.questions.get_question_by_id(question_id)
    # Other users' questions are reported as missing
    if question is None or question.user_id != user.id:
        raise HTTPException(status_code=404, detail=f"Question {question_id} not found.")
    return QuestionResponse.model_validate(question)
