# =============================================================================
# Student Q&A Service
# =============================================================================
# Backend for a student question-answering app: phone OTP signup, question
# submission with LLM categorisation and answer generation, and a per-user
# dashboard of question status.
#
# Package structure:
#   studentqa/
#   ├── api/          → FastAPI route handlers (auth, questions, dashboard)
#   ├── db/           → Database engine, session, and ORM models
#   ├── models/       → Domain dataclasses and Pydantic V2 request/response
#   │                    schemas
#   ├── services/     → Business logic (OTP, auth, storage backends, LLM
#   │                    collaborators, question orchestration, dashboard)
#   └── workers/      → Celery beat tasks for periodic cleanup
# =============================================================================
