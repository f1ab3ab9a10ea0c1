"""FastAPI routes exposing the connection store.

Endpoints:
    * GET  /api/configurations         – Every connection available to the caller.
    * GET  /api/configurations/{name}  – One connection by name.
    * POST /api/reload                 – Re-read the document now and report errors.
    * GET  /api/status                 – Cache state (path, timestamps, last error).

The store does blocking file I/O, so handlers call it through FastAPI's
thread‑pool helper.  Concurrent requests therefore reach the store from
several threads at once, which it is built for.
"""

import functools

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

# Pydantic models -------------------------------------------------------------
from noauth_gateway.models.auth import User
from noauth_gateway.models.connection import ConnectionRecord, StoreStatus
from noauth_gateway.models.gateway import ReloadResponse, UserContextResponse

# Service layer ----------------------------------------------------------------
from noauth_gateway.services.auth import get_current_user, get_provider
from noauth_gateway.services.parser import ParseError
from noauth_gateway.services.providers import AuthProvider
from noauth_gateway.services.store import (
    ConfigReadError,
    ConfigUnavailableError,
    ReloadableConfigStore,
    get_store,
)

router = APIRouter(prefix="", tags=["gateway"])


def _unavailable(exc: ConfigUnavailableError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


# ---------------------------------------------------------------------------
# /api/configurations
# ---------------------------------------------------------------------------

@router.get(
    "/configurations",
    response_model=UserContextResponse,
    status_code=status.HTTP_200_OK,
    summary="Return every connection available to the caller",
)
async def list_configurations(
    user: User = Depends(get_current_user),
    provider: AuthProvider = Depends(get_provider),
) -> UserContextResponse:
    """Return the full connection document.

    No per-user filtering happens here; the caller's identifier is echoed
    back for the client's benefit only.
    """
    try:
        ctx = await run_in_threadpool(provider.get_user_context, user)
    except ConfigUnavailableError as exc:
        raise _unavailable(exc) from exc

    return UserContextResponse(
        provider=ctx.provider,
        identifier=ctx.identifier,
        configurations=ctx.configurations,
    )


@router.get(
    "/configurations/{name}",
    response_model=ConnectionRecord,
    status_code=status.HTTP_200_OK,
    summary="Return a single connection by name",
)
async def get_configuration(
    name: str,
    user: User = Depends(get_current_user),
    provider: AuthProvider = Depends(get_provider),
) -> ConnectionRecord:
    try:
        configs = await run_in_threadpool(provider.get_configurations)
    except ConfigUnavailableError as exc:
        raise _unavailable(exc) from exc

    record = configs.get(name)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown configuration: {name}",
        )
    return record


# ---------------------------------------------------------------------------
# /api/reload
# ---------------------------------------------------------------------------

@router.post(
    "/reload",
    response_model=ReloadResponse,
    status_code=status.HTTP_200_OK,
    summary="Reload the connection document now",
    description="Unlike the listing endpoints, this surfaces read and parse errors to the caller. "
    "The previously loaded document stays in service either way.",
)
async def reload_configurations(
    force: bool = False,
    user: User = Depends(get_current_user),
    store: ReloadableConfigStore = Depends(get_store),
) -> ReloadResponse:
    try:
        reloaded = await run_in_threadpool(functools.partial(store.reload, force=force))

    except ParseError as exc:
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from exc

    except ConfigReadError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc

    return ReloadResponse(reloaded=reloaded, status=store.status())


# ---------------------------------------------------------------------------
# /api/status
# ---------------------------------------------------------------------------

@router.get("/status", response_model=StoreStatus, summary="Report cache state")
async def store_status(
    user: User = Depends(get_current_user),
    store: ReloadableConfigStore = Depends(get_store),
) -> StoreStatus:
    return store.status()


# ---------------------------------------------------------------------------
# Health check (optional)
# ---------------------------------------------------------------------------

@router.get("/ping", include_in_schema=False)
async def ping() -> dict[str, str]:
    """Liveness check for load balancers and k8s health checks."""
    return {"status": "ok"}
