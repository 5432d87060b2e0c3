"""
Caller identity for route handlers.

Authentication happens upstream; the gateway forwards the authenticated user
id and role as request headers.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from stay_settlement.errors import Forbidden, Unauthorized
from stay_settlement.services.cancellation import Caller

ADMIN_ROLE = "admin"


def get_caller(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Caller:
    """
    Resolve the authenticated caller from gateway headers.

    Raises:
        Unauthorized: If no user id was forwarded.
    """
    if not x_user_id:
        raise Unauthorized("Sign-in required")
    return Caller(user_id=x_user_id, is_admin=(x_user_role or "").lower() == ADMIN_ROLE)


def get_admin(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Caller:
    caller = get_caller(x_user_id, x_user_role)
    if not caller.is_admin:
        raise Forbidden("Administrator role required")
    return caller
