# =============================================================================
# Workers Package - Celery Periodic Maintenance
# =============================================================================
#   - celery_app.py: Celery application and beat schedule
#   - tasks.py:      OTP expiry sweep and question retention cleanup
#
# Used with STORAGE_BACKEND=sql when the API runs as several processes and
# the in-process sweepers should not all compete for the same rows:
#   celery -A studentqa.workers.celery_app worker --beat
# =============================================================================
