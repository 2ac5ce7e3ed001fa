# =============================================================================
# Error Taxonomy
# =============================================================================
#
#   StudentQAError
#   ├── ValidationError    → bad input, surfaced immediately, never retried
#   │   ├── InvalidMobileNumber
#   │   ├── EmptyName
#   │   └── QuestionTooShort
#   ├── AuthError          → one user-facing message per subtype
#   │   ├── OTPNotFound
#   │   ├── OTPExpired
#   │   ├── OTPMismatch
#   │   ├── DuplicateUser
#   │   └── UserNotFound
#   ├── CollaboratorError  → LLM / network failure, absorbed by the
#   │   │                    question orchestrator
#   │   └── LowConfidenceError
#   └── PersistenceError   → storage write failure
#
# Every error carries a human-readable `message`. The HTTP layer maps each
# branch to a status code; see studentqa/api/errors.py.
# =============================================================================

from __future__ import annotations


class StudentQAError(Exception):
    """Base class for all service errors."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(StudentQAError):
    default_message = "Invalid input."


class InvalidMobileNumber(ValidationError):
    default_message = (
        "Please enter a valid Indian mobile number "
        "(10 digits starting with 6-9)"
    )


class EmptyName(ValidationError):
    default_message = "Please enter your full name."


class QuestionTooShort(ValidationError):
    default_message = "Question must be at least 10 characters long."


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class AuthError(StudentQAError):
    default_message = "Authentication failed."


class OTPNotFound(AuthError):
    default_message = "OTP not found. Please request a new OTP."


class OTPExpired(AuthError):
    default_message = "OTP has expired. Please request a new OTP."


class OTPMismatch(AuthError):
    default_message = "Invalid OTP. Please check and try again."


class DuplicateUser(AuthError):
    default_message = "User with this mobile number already exists."


class UserNotFound(AuthError):
    default_message = "No account found for this mobile number. Please sign up."


# ---------------------------------------------------------------------------
# External collaborators (LLM)
# ---------------------------------------------------------------------------


class CollaboratorError(StudentQAError):
    default_message = (
        "LLM service is temporarily unavailable. Please try again later."
    )


class LowConfidenceError(CollaboratorError):
    default_message = (
        "Unable to analyze question with sufficient confidence. "
        "Please try rephrasing."
    )


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistenceError(StudentQAError):
    default_message = "Failed to save data. Please try again."
