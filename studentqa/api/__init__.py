# =============================================================================
# API Package - FastAPI Route Handlers
# =============================================================================
# Each module defines an APIRouter:
#   - auth.py:       OTP send/verify, signup, login
#   - questions.py:  submit, list, search and fetch questions
#   - dashboard.py:  questions plus status summary
# deps.py and errors.py hold the shared dependencies and error mapping.
# =============================================================================
