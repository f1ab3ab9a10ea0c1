"""Identity adaptation on top of the configuration store.

Two flavours, selected by ``AUTH_PROVIDER``:

* ``noauth``   – authentication is disabled.  Every caller is admitted as
  ``Anonymous`` and sees every configuration.
* ``postauth`` – this service authenticates nobody itself.  Callers are
  authenticated by another component upstream and then see every
  configuration.  The upstream identity may lack an identifier.

Neither provider filters the document; the same mapping is handed to
every caller.
"""
from __future__ import annotations

from typing import Callable, Optional

from pydantic import BaseModel

from noauth_gateway.models.auth import User
from noauth_gateway.models.connection import ConfigDocument, ConnectionRecord
from noauth_gateway.services.store import ReloadableConfigStore

ANONYMOUS = "Anonymous"


class UserContext(BaseModel):
    """Connections visible to one caller."""

    provider: str
    identifier: Optional[str] = None
    configurations: dict[str, ConnectionRecord]

    model_config = {"frozen": True}


class AuthProvider:
    identifier: str = ""

    def __init__(self, store: ReloadableConfigStore) -> None:
        self._store = store

    def authenticate_user(self) -> Optional[User]:  # noqa: D401
        raise NotImplementedError

    def get_configurations(self) -> ConfigDocument:
        return self._store.get_configurations()

    def get_user_context(self, user: User) -> UserContext:
        """Return every configuration, labelled with *user*'s identifier."""
        return UserContext(
            provider=self.identifier,
            identifier=user.username,
            configurations=dict(self.get_configurations()),
        )


class NoAuthProvider(AuthProvider):
    """Admit every caller as ``Anonymous``."""

    identifier = "noauth"

    def authenticate_user(self) -> Optional[User]:
        return User(username=ANONYMOUS)


class PostAuthProvider(AuthProvider):
    """Serve configurations to users authenticated by another provider.

    :meth:`authenticate_user` always returns ``None``; use ``noauth`` to
    grant access without any authentication at all.
    """

    identifier = "postauth"

    def authenticate_user(self) -> Optional[User]:
        return None


PROVIDERS: dict[str, Callable[[ReloadableConfigStore], AuthProvider]] = {
    NoAuthProvider.identifier: NoAuthProvider,
    PostAuthProvider.identifier: PostAuthProvider,
}


def build_provider(name: str, store: ReloadableConfigStore) -> AuthProvider:
    try:
        factory = PROVIDERS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown auth provider: {name}") from exc
    return factory(store)
