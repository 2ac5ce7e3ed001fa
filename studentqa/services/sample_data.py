# =============================================================================
# Sample Data Seeding
# =============================================================================
# Three placeholder questions inserted the first time a user's dashboard is
# loaded, one per status, so a new account does not start empty.
#
# Sample ids are derived from the user id, which makes seeding idempotent
# across restarts: existing samples are skipped.
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta

from studentqa.models.domain import DifficultyLevel, Question, QuestionStatus

_SAMPLES = (
    {
        "question_text": (
            "How do I solve the quadratic equation x² + 5x + 6 = 0? I need to "
            "find the roots using the quadratic formula."
        ),
        "subject": "Mathematics",
        "topic": "Algebra",
        "difficulty_level": DifficultyLevel.INTERMEDIATE,
        "grade_level": "9th-12th grade",
        "status": QuestionStatus.ANSWERED,
        "answer": (
            "To solve the quadratic equation x² + 5x + 6 = 0 using the "
            "quadratic formula:\n\n"
            "1) First, identify the coefficients:\n"
            "   a = 1, b = 5, c = 6\n\n"
            "2) Apply the quadratic formula: x = (-b ± √(b² - 4ac)) / 2a\n\n"
            "3) Substitute the values:\n"
            "   x = (-5 ± √(25 - 24)) / 2\n"
            "   x = (-5 ± √1) / 2\n"
            "   x = (-5 ± 1) / 2\n\n"
            "4) Calculate both solutions:\n"
            "   x₁ = (-5 + 1) / 2 = -4 / 2 = -2\n"
            "   x₂ = (-5 - 1) / 2 = -6 / 2 = -3\n\n"
            "Therefore, the roots are x = -2 and x = -3.\n\n"
            "You can verify by substituting these values back into the "
            "original equation."
        ),
        "age": timedelta(days=3),
        "answered_after": timedelta(hours=1, minutes=15),
    },
    {
        "question_text": (
            "What is the difference between potential energy and kinetic "
            "energy in physics? Can you give me some real-world examples?"
        ),
        "subject": "Physics",
        "topic": "Mechanics",
        "difficulty_level": DifficultyLevel.INTERMEDIATE,
        "grade_level": "11th-12th grade",
        "status": QuestionStatus.PENDING,
        "answer": None,
        "age": timedelta(days=2),
        "answered_after": timedelta(0),
    },
    {
        "question_text": (
            "Explain the process of photosynthesis in plants. What are the "
            "main reactants and products?"
        ),
        "subject": "Biology",
        "topic": "Cell Biology",
        "difficulty_level": DifficultyLevel.BEGINNER,
        "grade_level": "9th-10th grade",
        "status": QuestionStatus.FLAGGED_FOR_REVIEW,
        "answer": None,
        "age": timedelta(days=1),
        "answered_after": timedelta(0),
    },
)


def sample_question_id(user_id: str, index: int) -> str:
    return f"sample_{index + 1}_{user_id}"


def build_sample_questions(user_id: str, now: datetime) -> list[Question]:
    questions = []
    for index, sample in enumerate(_SAMPLES):
        created_at = now - sample["age"]
        questions.append(Question(
            id=sample_question_id(user_id, index),
            user_id=user_id,
            question_text=sample["question_text"],
            subject=sample["subject"],
            topic=sample["topic"],
            difficulty_level=sample["difficulty_level"],
            grade_level=sample["grade_level"],
            status=sample["status"],
            answer=sample["answer"],
            created_at=created_at,
            updated_at=created_at + sample["answered_after"],
        ))
    return questions
