"""
Admin Token Verification

Corpus mutation and diagnostics endpoints require the shared admin token,
sent either as ``Authorization: Bearer <token>`` or ``X-Admin-Token: <token>``.
Surrounding whitespace is ignored. When no admin token is configured, admin
access is disabled entirely.
"""

from __future__ import annotations

import re
import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ..api.dependencies import get_settings
from ..config import Settings

_BEARER = re.compile(r"^Bearer\s+", re.IGNORECASE)


def admin_token_from(
    authorization: Optional[str],
    x_admin_token: Optional[str],
) -> str:
    """
    Extract the presented admin token. A bearer token wins over the
    alternative header.
    """
    auth = authorization or ""
    bearer = _BEARER.sub("", auth) if _BEARER.match(auth) else ""
    return (bearer or x_admin_token or "").strip()


async def verify_admin(
    authorization: Optional[str] = Header(None),
    x_admin_token: Optional[str] = Header(None, alias="x-admin-token"),
    config: Settings = Depends(get_settings),
) -> None:
    """
    Verify the request carries the configured admin token.
    """
    expected = config.admin_token.get_secret_value().strip()
    provided = admin_token_from(authorization, x_admin_token)

    if not expected or not provided or not secrets.compare_digest(provided.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="unauthorized",
        )
