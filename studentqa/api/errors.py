# =============================================================================
# Error Mapping - Service Errors → HTTP Status Codes
# =============================================================================
#
#   ValidationError                          → 422
#   OTPNotFound / OTPMismatch / OTPExpired   → 400
#   DuplicateUser                            → 409
#   UserNotFound                             → 404
#   PersistenceError                         → 503
#   anything else                            → 500
#
# Route handlers catch StudentQAError and `raise http_error(e) from e`.
# =============================================================================

from fastapi import HTTPException

from studentqa.errors import (
    DuplicateUser,
    OTPExpired,
    OTPMismatch,
    OTPNotFound,
    PersistenceError,
    StudentQAError,
    UserNotFound,
    ValidationError,
)

_STATUS_CODES: tuple[tuple[type[StudentQAError], int], ...] = (
    (ValidationError, 422),
    (OTPNotFound, 400),
    (OTPMismatch, 400),
    (OTPExpired, 400),
    (DuplicateUser, 409),
    (UserNotFound, 404),
    (PersistenceError, 503),
)


def status_code_for(error: StudentQAError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


def http_error(error: StudentQAError) -> HTTPException:
    return HTTPException(status_code=status_code_for(error), detail=error.message)
