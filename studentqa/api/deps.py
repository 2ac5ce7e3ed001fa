# =============================================================================
# API Dependencies - Service Container & Current User
# =============================================================================
#
# get_container()    → the Container stored on app.state by the lifespan
# get_current_user() → resolves the `X-User-Id` header to a User
#
# The header carries the id the client keeps in its session slot after
# signup/login. Unknown or missing ids get 401.
# =============================================================================

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException, Request

from studentqa.container import Container
from studentqa.models.domain import User

logger = logging.getLogger(__name__)


def get_container(request: Request) -> Container:
    return request.app.state.container


async def get_current_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    container: Container = Depends(get_container),
) -> User:
    """
    FastAPI dependency returning the signed-in user.

    Raises:
        HTTPException 401: Header missing or the id is not a known user.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=401,
            detail="Not signed in. Provide the 'X-User-Id' header.",
        )

    user = await container.auth.get_user_by_id(x_user_id)
    if user is None:
        logger.info("Rejected unknown user id %s", x_user_id)
        raise HTTPException(status_code=401, detail="Unknown user.")
    return user
