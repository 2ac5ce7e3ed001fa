# =============================================================================
# Session Slot - Persisted "Current User" for a Client
# =============================================================================
#
# A single JSON file holds the signed-in user between runs. Reads never
# raise: a missing, unreadable or malformed file means "not signed in",
# and anything other than a missing file is logged.
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from studentqa.config import settings
from studentqa.models.domain import User

logger = logging.getLogger(__name__)


class _StoredUser(BaseModel):
    id: str
    full_name: str
    mobile_number: str
    created_at: datetime


class SessionStore:
    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path or settings.session_file)

    @property
    def path(self) -> Path:
        return self._path

    def save_user(self, user: User) -> None:
        payload = _StoredUser(
            id=user.id,
            full_name=user.full_name,
            mobile_number=user.mobile_number,
            created_at=user.created_at,
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(payload.model_dump_json(), encoding="utf-8")

    def load_user(self) -> User | None:
        """The saved user, or None when nothing usable is stored."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Error reading session file %s: %s", self._path, e)
            return None

        try:
            stored = _StoredUser.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error("Error parsing stored user from %s: %s", self._path, e)
            return None

        return User(
            id=stored.id,
            full_name=stored.full_name,
            mobile_number=stored.mobile_number,
            created_at=stored.created_at,
        )

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)

    def is_authenticated(self) -> bool:
        return self.load_user() is not None
