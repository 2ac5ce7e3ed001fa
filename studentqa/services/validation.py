# =============================================================================
# Input Validation
# =============================================================================
#
# Pure functions that raise a ValidationError subclass on bad input and
# return the normalised value otherwise. Called by the auth service and by
# the HTTP layer before a question reaches the orchestrator.
# =============================================================================

from __future__ import annotations

import re

from studentqa.config import settings
from studentqa.errors import EmptyName, InvalidMobileNumber, QuestionTooShort

# Indian mobile numbers: 10 ASCII digits, first digit 6-9
MOBILE_NUMBER_PATTERN = re.compile(r"^[6-9][0-9]{9}$")


def is_valid_mobile_number(mobile_number: str) -> bool:
    return bool(MOBILE_NUMBER_PATTERN.fullmatch(mobile_number or ""))


def validate_mobile_number(mobile_number: str) -> str:
    if not is_valid_mobile_number(mobile_number):
        raise InvalidMobileNumber()
    return mobile_number


def validate_full_name(full_name: str | None) -> str:
    """Return the trimmed name, or raise EmptyName if nothing is left."""
    name = (full_name or "").strip()
    if not name:
        raise EmptyName()
    return name


def validate_question_text(
    question_text: str | None,
    min_length: int | None = None,
) -> str:
    """Return the trimmed question text if it has at least `min_length` chars."""
    min_length = settings.question_min_length if min_length is None else min_length
    text = (question_text or "").strip()
    if not text:
        raise QuestionTooShort("Please enter your question.")
    if len(text) < min_length:
        raise QuestionTooShort(
            f"Question must be at least {min_length} characters long."
        )
    return text
