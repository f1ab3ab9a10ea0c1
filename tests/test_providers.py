"""Tests for the noauth/postauth identity adapters."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from noauth_gateway.models.auth import User
from noauth_gateway.services.providers import (
    ANONYMOUS,
    NoAuthProvider,
    PostAuthProvider,
    build_provider,
)
from noauth_gateway.services.store import ConfigUnavailableError, ReloadableConfigStore

from conftest import DOC_B


@pytest.fixture
def store(doc_path: Path, publish: Callable[[str, int], None]) -> ReloadableConfigStore:
    publish(DOC_B, 0)
    return ReloadableConfigStore(lambda: doc_path)


def test_noauth_admits_everyone_as_anonymous(store: ReloadableConfigStore) -> None:
    provider = NoAuthProvider(store)

    assert provider.authenticate_user() == User(username=ANONYMOUS)


def test_postauth_never_authenticates(store: ReloadableConfigStore) -> None:
    assert PostAuthProvider(store).authenticate_user() is None


@pytest.mark.parametrize("username", ["alice", None])
def test_every_caller_gets_the_same_configurations(store: ReloadableConfigStore, username: str | None) -> None:
    provider = PostAuthProvider(store)

    ctx = provider.get_user_context(User(username=username))

    assert ctx.provider == "postauth"
    assert ctx.identifier == username
    assert ctx.configurations == dict(store.get_configurations())


def test_user_context_propagates_unavailable(doc_path: Path) -> None:
    provider = NoAuthProvider(ReloadableConfigStore(lambda: doc_path))

    with pytest.raises(ConfigUnavailableError):
        provider.get_user_context(User(username=ANONYMOUS))


def test_build_provider_by_name(store: ReloadableConfigStore) -> None:
    assert isinstance(build_provider("noauth", store), NoAuthProvider)
    assert isinstance(build_provider("postauth", store), PostAuthProvider)
    with pytest.raises(ValueError, match="Unknown auth provider"):
        build_provider("ldap", store)
