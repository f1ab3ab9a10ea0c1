"""ASGI entry‑point for the noauth connection gateway.

Run in dev mode:
    uvicorn noauth_gateway.main:app --reload
"""
from __future__ import annotations

import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from noauth_gateway.routes import gateway_routes
from noauth_gateway.config import settings


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with one stderr sink at *level*."""
    logger.remove()
    logger.add(sys.stderr, level=(level or settings.LOG_LEVEL).upper())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    logger.info("noauth gateway starting, provider={}", settings.AUTH_PROVIDER)
    yield


app = FastAPI(
    lifespan=lifespan,
    title="noauth gateway",
    version="0.1.0",
    description="Serves named remote-desktop connection definitions from an XML document, without authentication.",
)

# ---------------------------------------------------------------------------
# Middleware (CORS for browser‑based clients)
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

app.include_router(gateway_routes.router, prefix="/api")


# ---------------------------------------------------------------------------
# Root & liveness endpoints
# ---------------------------------------------------------------------------

@app.get("/", include_in_schema=False)
async def _root() -> dict[str, str]:
    return {"service": "noauth‑gateway", "status": "alive", "provider": settings.AUTH_PROVIDER}
