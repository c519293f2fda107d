# streamseen/security.py
from __future__ import annotations

from fastapi import Depends

from streamseen.db.models import User
from streamseen.routes.auth import get_current_user


def require_user(
    current: User = Depends(get_current_user),
) -> User:
    """
    Auth-only dependency.
    Every list/friend route acts on the caller, so no {user_id} match is needed.
    """
    return current
