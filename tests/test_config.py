"""Tests for settings and document path resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from noauth_gateway.config import DEFAULT_NOAUTH_CONFIG, Settings, resolve_document_path


def test_explicit_document_path_wins(tmp_path: Path) -> None:
    target = tmp_path / "custom.xml"
    cfg = Settings(AUTH_PROVIDER="noauth", NOAUTH_CONFIG=target, GATEWAY_HOME=tmp_path / "home")

    assert resolve_document_path(cfg) == target


def test_default_document_lives_under_gateway_home(tmp_path: Path) -> None:
    cfg = Settings(NOAUTH_CONFIG=None, GATEWAY_HOME=tmp_path)

    assert resolve_document_path(cfg) == tmp_path / DEFAULT_NOAUTH_CONFIG


def test_settings_read_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NOAUTH_CONFIG", str(tmp_path / "env.xml"))
    monkeypatch.setenv("AUTH_PROVIDER", "noauth")

    cfg = Settings()

    assert resolve_document_path(cfg) == tmp_path / "env.xml"
    assert cfg.AUTH_PROVIDER == "noauth"


def test_postauth_reads_its_own_document_setting(tmp_path: Path) -> None:
    cfg = Settings(
        AUTH_PROVIDER="postauth",
        NOAUTH_CONFIG=tmp_path / "noauth.xml",
        POSTAUTH_CONFIG=tmp_path / "postauth.xml",
    )

    assert resolve_document_path(cfg) == tmp_path / "postauth.xml"


def test_postauth_without_own_setting_uses_default_file(tmp_path: Path) -> None:
    cfg = Settings(
        AUTH_PROVIDER="postauth",
        NOAUTH_CONFIG=tmp_path / "noauth.xml",
        POSTAUTH_CONFIG=None,
        GATEWAY_HOME=tmp_path,
    )

    assert resolve_document_path(cfg) == tmp_path / DEFAULT_NOAUTH_CONFIG


def test_unknown_provider_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AUTH_PROVIDER", "ldap")

    with pytest.raises(ValueError):
        Settings()
