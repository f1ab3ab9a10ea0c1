"""Package root for *noauth_gateway*.

Re‑exports the FastAPI ``app`` so you can run::

    uvicorn noauth_gateway:app

from anywhere on PYTHONPATH.
"""
from __future__ import annotations

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("noauth-gateway")  # Works when installed via pip/poetry
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"

# Export app for Uvicorn convenience --------------------------------------------------
from noauth_gateway.main import app  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["app", "__version__"]
