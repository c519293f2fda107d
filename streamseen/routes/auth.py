# streamseen/routes/auth.py
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from streamseen.core.settings import settings
from streamseen.database import get_async_db
from streamseen.db.crud import users as users_crud
from streamseen.db.models import User
from streamseen.schemas import UserOut

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# IMPORTANT: auto_error=False so we can return a clean 401 instead of framework 403
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(claims: Dict[str, Any], minutes: int = 60) -> str:
    """
    Sign a token the way the identity provider does.
    Used by local tooling and tests; the API itself only verifies tokens.
    """
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload.setdefault("iat", int(now.timestamp()))
    payload.setdefault("exp", int((now + timedelta(minutes=minutes)).timestamp()))
    return jwt.encode(payload, settings.auth_secret, algorithm=settings.auth_algorithm)


def _decode(token: str) -> Dict[str, Any]:
    try:
        data = jwt.decode(token, settings.auth_secret, algorithms=[settings.auth_algorithm])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    if not data.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return data


async def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_async_db),
) -> User:
    """Verify the bearer token and make sure the user row exists (first login creates it)."""
    if not creds or not creds.scheme or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    claims = _decode(creds.credentials)
    return await users_crud.upsert_user(session, str(claims["sub"]), claims)


@router.get("/user", response_model=UserOut, summary="Current user")
async def current_user(current: User = Depends(get_current_user)) -> User:
    return current
