# =============================================================================
# Celery Application Configuration
# =============================================================================
#
# ARCHITECTURE:
# ┌────────────┐     ┌───────┐     ┌──────────────┐     ┌────────────┐
# │ Celery beat│────▶│ Redis │────▶│ Celery worker│────▶│ PostgreSQL │
# │ (schedule) │     │(broker)│    │ (sync tasks) │     │            │
# └────────────┘     └───────┘     └──────────────┘     └────────────┘
#
# Beat schedule:
#   sweep_expired_otps   every otp_sweep_interval_seconds (60 s)
#   purge_old_questions  every question_cleanup_interval_seconds (1 h)
# =============================================================================

from celery import Celery

from studentqa.config import settings

celery_app = Celery(
    "studentqa.workers",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    # --- Serialization ---
    # JSON only; pickle can execute code during deserialization.
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # --- Reliability ---
    # Maintenance tasks are idempotent, so re-running after a crash is safe.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    # --- Timeouts ---
    task_soft_time_limit=60,
    task_time_limit=120,

    # --- Results ---
    result_expires=3600,

    include=["studentqa.workers.tasks"],

    beat_schedule={
        "sweep-expired-otps": {
            "task": "sweep_expired_otps",
            "schedule": settings.otp_sweep_interval_seconds,
        },
        "purge-old-questions": {
            "task": "purge_old_questions",
            "schedule": settings.question_cleanup_interval_seconds,
        },
    },
)
