# =============================================================================
# Celery Task Definitions - Periodic Maintenance
# =============================================================================
#
# Sync counterparts of OTPSweeper and QuestionRetentionSweeper for
# multi-process deployments on the SQL backend.
#
# IMPORTANT: Celery workers are SYNCHRONOUS.
# - Do NOT use `async/await` in Celery tasks
# - Do NOT use the async SQLAlchemy engine (use get_sync_session instead)
#
# Both tasks are plain DELETE statements and safe to run concurrently with
# the API.
# =============================================================================

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete

from studentqa.config import settings
from studentqa.db.engine import get_sync_session
from studentqa.db.models import OTPCodeRow, QuestionRow
from studentqa.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def delete_expired_otps(now: datetime) -> int:
    with get_sync_session() as session:
        result = session.execute(
            delete(OTPCodeRow).where(OTPCodeRow.expires_at < now)
        )
        return result.rowcount or 0


def delete_questions_created_before(cutoff: datetime) -> int:
    with get_sync_session() as session:
        result = session.execute(
            delete(QuestionRow).where(QuestionRow.created_at < cutoff)
        )
        return result.rowcount or 0


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@celery_app.task(name="sweep_expired_otps")
def sweep_expired_otps() -> dict:
    """Delete OTP records whose expiry time has passed."""
    removed = delete_expired_otps(datetime.now(UTC))
    if removed:
        logger.info("Swept %d expired OTP(s)", removed)
    return {"removed": removed}


@celery_app.task(name="purge_old_questions")
def purge_old_questions(retention_days: int | None = None) -> dict:
    """
    Delete questions older than the retention window.

    Args:
        retention_days: Override settings.question_retention_days.

    Returns:
        dict with the cutoff used and the number of rows removed.
    """
    days = settings.question_retention_days if retention_days is None else retention_days
    cutoff = datetime.now(UTC) - timedelta(days=days)
    removed = delete_questions_created_before(cutoff)
    logger.info("Purged %d question(s) created before %s", removed, cutoff.isoformat())
    return {"removed": removed, "cutoff": cutoff.isoformat()}
