# =============================================================================
# Database Package - SQLAlchemy Engine, Sessions & ORM Rows
# =============================================================================
# Only imported when STORAGE_BACKEND=sql (or by the Celery tasks).
# =============================================================================
