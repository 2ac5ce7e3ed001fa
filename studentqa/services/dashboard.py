# =============================================================================
# Dashboard - Question List & Status Summary
# =============================================================================
# The dashboard shows a user's questions (newest first) and a count per
# status. The summary is a single pass over the list the page already has.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass

from studentqa.models.domain import Question, QuestionStatus
from studentqa.services.questions import QuestionService


@dataclass(frozen=True)
class DashboardSummary:
    total: int = 0
    pending: int = 0
    answered: int = 0
    flagged_for_review: int = 0


@dataclass
class Dashboard:
    questions: list[Question]
    summary: DashboardSummary


def summarize(questions: list[Question]) -> DashboardSummary:
    counts = {status: 0 for status in QuestionStatus}
    for question in questions:
        counts[question.status] += 1
    return DashboardSummary(
        total=len(questions),
        pending=counts[QuestionStatus.PENDING],
        answered=counts[QuestionStatus.ANSWERED],
        flagged_for_review=counts[QuestionStatus.FLAGGED_FOR_REVIEW],
    )


async def get_dashboard(question_service: QuestionService, user_id: str) -> Dashboard:
    questions = await question_service.get_questions_by_user_id(user_id)
    return Dashboard(questions=questions, summary=summarize(questions))
