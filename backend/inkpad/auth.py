"""
InkPad Backend — Caller Identity Dependency
============================================

What:  Resolves the id of the user a request acts for.
How:   Session issuance and password handling live in the authenticating
       gateway in front of this service. The gateway verifies the session and
       forwards the user id in the `X-User-ID` header (name configurable).
Who:   Injected into every /api/notes route via Depends(get_current_user).
"""

import logging

from fastapi import Request

from inkpad.config import settings
from inkpad.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

MAX_USER_ID_LENGTH = 64


async def get_current_user(request: Request) -> str:
    """
    Returns the caller's user id.

    Raises:
        AuthenticationError: header missing, blank, or too long (→ 401)
    """
    user_id = request.headers.get(settings.user_id_header, "").strip()
    if not user_id:
        raise AuthenticationError()
    if len(user_id) > MAX_USER_ID_LENGTH:
        logger.warning("Rejected user id header of %d chars", len(user_id))
        raise AuthenticationError(message="User identity is not valid")
    request.state.user_id = user_id
    return user_id
