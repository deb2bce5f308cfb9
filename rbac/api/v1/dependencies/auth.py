"""Caller identity: the sub claim of a Bearer JWT is the subject external id."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rbac.domain.exceptions import AuthenticationException
from rbac.infrastructure.security.jwt import verify_token

logger = logging.getLogger(__name__)

_http_bearer = HTTPBearer(auto_error=False)


async def get_current_subject_id_optional(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> str | None:
    """Return the caller's subject id from the JWT if present and valid; else None."""
    if not credentials:
        return None
    try:
        payload = verify_token(credentials.credentials)
    except ValueError as e:
        logger.debug("Rejected bearer token: %s", e)
        return None
    return payload["sub"]


async def get_current_subject_id(
    subject_id: Annotated[str | None, Depends(get_current_subject_id_optional)],
) -> str:
    """Return the caller's subject id; raise 401 if missing or invalid."""
    if subject_id is None:
        raise AuthenticationException("Not authenticated")
    return subject_id
