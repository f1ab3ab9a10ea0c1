"""Shared fixtures: connection documents on disk with controlled mtimes."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from noauth_gateway.services.store import reset_store

# 2023-11-14T22:13:20Z, in nanoseconds
BASE_MTIME_NS = 1_700_000_000 * 10**9

DOC_A = """\
<configs>
  <config name="my-rdp-server" protocol="rdp">
    <param name="hostname" value="rdp.example.net" />
    <param name="port" value="3389" />
  </config>
</configs>
"""

DOC_B = """\
<configs>
  <config name="lab-vnc" protocol="vnc">
    <param name="hostname" value="10.0.0.12" />
  </config>
  <config name="bastion" protocol="ssh">
    <param name="hostname" value="bastion.example.net" />
    <param name="port" value="22" />
  </config>
</configs>
"""

DOC_BROKEN = """\
<configs>
  <param name="hostname" value="orphan" />
</configs>
"""


def write_doc(path: Path, text: str, mtime_ns: int) -> None:
    path.write_text(text, encoding="utf-8")
    os.utime(path, ns=(mtime_ns, mtime_ns))


@pytest.fixture
def doc_path(tmp_path: Path) -> Path:
    return tmp_path / "noauth-config.xml"


@pytest.fixture
def publish(doc_path: Path) -> Callable[[str, int], None]:
    """Write *text* to the document with mtime ``BASE_MTIME_NS + offset`` seconds."""

    def _publish(text: str, offset: int = 0) -> None:
        write_doc(doc_path, text, BASE_MTIME_NS + offset * 10**9)

    return _publish


@pytest.fixture(autouse=True)
def _fresh_store_singleton():
    reset_store()
    yield
    reset_store()
