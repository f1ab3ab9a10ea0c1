"""Self-refreshing cache of the connection document.

The store keeps the last successfully parsed document together with the
source file's modification time and reloads it when the file changes.

Freshness is checked twice: once without the lock (the common, cache-is-fresh
path) and again after acquiring the per-store lock, so callers that raced
into the slow path do not reparse a document another thread just loaded.
Readers only ever see a complete :class:`StoreSnapshot`; a reload publishes
its result with a single reference assignment.

A reload that fails (unreadable file, bad XML) never clears the current
snapshot.  On the read path the error is logged and the last good document
is served; :meth:`ReloadableConfigStore.reload` raises it instead.  Read
errors are retried on the next call; a document that failed to parse is
not parsed again until its modification time changes.
"""
from __future__ import annotations

import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Protocol

from loguru import logger

from noauth_gateway.config import resolve_document_path, settings
from noauth_gateway.models.connection import ConfigDocument, StoreSnapshot, StoreStatus
from noauth_gateway.services.parser import ParseError, parse

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigReadError(RuntimeError):
    """Raised when the document exists but cannot be read."""


class ConfigUnavailableError(RuntimeError):
    """Raised when no document has ever been loaded successfully."""


# ---------------------------------------------------------------------------
# Filesystem access
# ---------------------------------------------------------------------------


class DocumentSource(Protocol):
    """Read-only access to the external document."""

    def stat_mod_time(self, path: Path) -> Optional[int]:
        """Return the modification time in nanoseconds, or None if missing."""

    def read_bytes(self, path: Path) -> bytes:
        """Return the document content; raise :class:`ConfigReadError` on failure."""


class LocalDocumentSource:
    """:class:`DocumentSource` backed by the local filesystem."""

    def stat_mod_time(self, path: Path) -> Optional[int]:
        try:
            return path.stat().st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ConfigReadError(f"Cannot stat configuration file {path}: {exc}") from exc

    def read_bytes(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ConfigReadError(f"Error reading configuration file {path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ReloadableConfigStore:
    """Thread-safe, mtime-gated cache of the parsed connection document."""

    def __init__(
        self,
        path_resolver: Callable[[], Path],
        *,
        source: Optional[DocumentSource] = None,
        parser: Callable[[bytes], ConfigDocument] = parse,
    ) -> None:
        self._path_resolver = path_resolver
        self._path: Optional[Path] = None
        self._source: DocumentSource = source or LocalDocumentSource()
        self._parser = parser
        self._lock = threading.Lock()

        # Only ever replaced while holding _lock.
        self._snapshot: Optional[StoreSnapshot] = None
        self._failed_timestamp: Optional[int] = None
        self._last_error: Optional[Exception] = None
        self._reload_count = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        """Document path, resolved on first use."""
        if self._path is None:
            self._path = Path(self._path_resolver())
        return self._path

    @property
    def snapshot(self) -> Optional[StoreSnapshot]:
        return self._snapshot

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_configurations(self) -> ConfigDocument:
        """Return the current document, reloading it first if the file changed.

        Raises :class:`ConfigUnavailableError` if no document was ever loaded.
        """
        path = self.path
        error: Optional[Exception] = None

        try:
            mtime = self._source.stat_mod_time(path)
            if mtime is not None and self._is_stale(mtime):
                self._reload_locked(path)
        except (ParseError, ConfigReadError) as exc:
            error = exc
            if self._snapshot is not None:
                logger.error("Reload of {} failed, serving previous configuration: {}", path, exc)
            else:
                logger.error("Reload of {} failed: {}", path, exc)

        snapshot = self._snapshot
        if snapshot is None:
            raise ConfigUnavailableError(f"Configuration could not be read: {path}") from error
        return snapshot.document

    def reload(self, *, force: bool = False) -> bool:
        """Reload the document now if it changed (always, with *force*).

        A document that already failed to load is retried.  Returns True
        when a new snapshot was published.  Read and parse failures
        propagate to the caller; the previous snapshot is kept.
        """
        path = self.path
        if self._source.stat_mod_time(path) is None:
            raise ConfigReadError(f"Configuration file missing: {path}")
        return self._reload_locked(path, force=force, retry_failed=True)

    def status(self) -> StoreStatus:
        snapshot = self._snapshot
        error = self._last_error
        return StoreStatus(
            path=str(self.path),
            loaded=snapshot is not None,
            source_timestamp=snapshot.source_timestamp if snapshot else None,
            loaded_at=snapshot.loaded_at if snapshot else None,
            connection_count=len(snapshot.document) if snapshot else 0,
            reload_count=self._reload_count,
            last_error=str(error) if error else None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_stale(self, mtime: int, *, retry_failed: bool = False) -> bool:
        """True unless the snapshot (or, by default, the last failed parse) covers *mtime*."""
        snapshot = self._snapshot
        if snapshot is not None and snapshot.source_timestamp >= mtime:
            return False
        failed = self._failed_timestamp
        if not retry_failed and failed is not None and failed >= mtime:
            return False
        return True

    def _reload_locked(self, path: Path, *, force: bool = False, retry_failed: bool = False) -> bool:
        with self._lock:
            # Re-check: another thread may have reloaded while we waited.
            mtime = self._source.stat_mod_time(path)
            if mtime is None:
                logger.debug("Configuration file {} disappeared, keeping current snapshot", path)
                return False
            if not force and not self._is_stale(mtime, retry_failed=retry_failed):
                logger.debug("Configuration file {} already reloaded by another caller", path)
                return False

            logger.debug("Reading configuration file: {}", path)
            try:
                document = self._parser(self._source.read_bytes(path))
            except ParseError as exc:
                # bad content: not retried on the read path until the file changes
                self._failed_timestamp = mtime
                self._last_error = exc
                raise
            except ConfigReadError as exc:
                self._last_error = exc
                raise

            self._snapshot = StoreSnapshot(
                document=document,
                source_timestamp=mtime,
                loaded_at=datetime.now(tz=timezone.utc),
            )
            self._failed_timestamp = None
            self._last_error = None
            self._reload_count += 1

        logger.info("Loaded {} connection configuration(s) from {}", len(document), path)
        return True


# ---------------------------------------------------------------------------
# Module singleton
# ---------------------------------------------------------------------------

_STORE: Optional[ReloadableConfigStore] = None
_STORE_LOCK = threading.Lock()


def get_store() -> ReloadableConfigStore:
    """Return the process-wide store, creating it from settings on first use."""
    global _STORE  # noqa: PLW0603
    store = _STORE
    if store is None:
        with _STORE_LOCK:
            if _STORE is None:
                _STORE = ReloadableConfigStore(lambda: resolve_document_path(settings))
            store = _STORE
    return store


def reset_store() -> None:
    """Drop the process-wide store (tests, settings changes)."""
    global _STORE  # noqa: PLW0603
    with _STORE_LOCK:
        _STORE = None
