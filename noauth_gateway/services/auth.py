"""Caller resolution for the two provider modes.

* ``noauth``   – no credentials are looked at; everyone is ``Anonymous``.
* ``postauth`` – the caller must carry a **Bearer** JWT (HS256) issued by the
  upstream identity provider.  The token's ``sub`` claim becomes the user
  identifier and may be missing.

**⚠️  The shared secret must come from the upstream provider** – the default
value is only suitable for local testing.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from loguru import logger

from noauth_gateway.config import settings  # type: ignore
from noauth_gateway.models.auth import User
from noauth_gateway.services.providers import build_provider, AuthProvider
from noauth_gateway.services.store import ReloadableConfigStore, get_store


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

_JWT_ALGO = "HS256"


# ---------------------------------------------------------------------------
# Security scheme for FastAPI docs
# ---------------------------------------------------------------------------

_bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def create_token(username: Optional[str], *, ttl_sec: int = 3600, secret: Optional[str] = None) -> str:  # noqa: D401
    """Issue an upstream-style HS256 token (test clients, local setups)."""
    payload: dict[str, object] = {
        "exp": int(datetime.now(tz=timezone.utc).timestamp() + ttl_sec),
    }
    if username is not None:
        payload["sub"] = username
    return jwt.encode(payload, secret or settings.UPSTREAM_JWT_SECRET, algorithm=_JWT_ALGO)


def get_provider(
    store: Annotated[ReloadableConfigStore, Depends(get_store)],
) -> AuthProvider:
    """FastAPI dependency returning the provider selected by ``AUTH_PROVIDER``."""
    return build_provider(settings.AUTH_PROVIDER, store)


async def get_current_user(
    provider: Annotated[AuthProvider, Depends(get_provider)],
    creds: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> User:  # noqa: D401
    """FastAPI dependency that resolves the caller for the active provider."""

    user = provider.authenticate_user()
    if user is not None:
        return user

    # postauth: identity established upstream
    if creds is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(creds.credentials, settings.UPSTREAM_JWT_SECRET, algorithms=[_JWT_ALGO])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
        ) from exc

    exp = payload.get("exp")
    if exp and datetime.now(tz=timezone.utc).timestamp() > exp:
        raise HTTPException(status_code=401, detail="Token expired")

    username = payload.get("sub")
    if username is None:
        logger.debug("Upstream token carries no subject – continuing without identifier")
    return User(username=username)
