"""Streaming parser for the XML connection document.

Expected layout::

    <configs>
      <config name="my-rdp-server" protocol="rdp">
        <param name="hostname" value="my-rdp-server-hostname" />
        <param name="port" value="3389" />
      </config>
    </configs>

Only the ``config``/``param`` nesting is enforced.  The root element name and
any other wrapper elements are ignored.
"""
from __future__ import annotations

import enum
import io
import xml.etree.ElementTree as ET
from types import MappingProxyType
from typing import BinaryIO, Dict, Optional, Union
from xml.parsers.expat import errors as expat_errors

from loguru import logger

from noauth_gateway.models.connection import ConfigDocument, ConnectionRecord

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ParseError(RuntimeError):
    """Raised when the document cannot be turned into connection records."""


class StructuralParseError(ParseError):
    """Document is well formed XML but breaks the config/param rules."""


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

_CONFIG = "config"
_PARAM = "param"

# expat reports input that ends inside an open element as "no element found"
_NO_ELEMENTS = expat_errors.codes[expat_errors.XML_ERROR_NO_ELEMENTS]


class _State(enum.Enum):
    IDLE = "idle"
    IN_CONNECTION = "in_connection"


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix, if any."""
    return tag.rsplit("}", 1)[-1]


class _DocumentBuilder:
    """Accumulates records from start/end element events."""

    def __init__(self) -> None:
        self.state = _State.IDLE
        self.configs: Dict[str, ConnectionRecord] = {}
        self._name: Optional[str] = None
        self._protocol: Optional[str] = None
        self._parameters: Dict[str, str] = {}

    def start(self, tag: str, attrib: Dict[str, str]) -> None:
        if tag == _CONFIG:
            self._open_config(attrib)
        elif tag == _PARAM:
            self._add_param(attrib)

    def end(self, tag: str) -> None:
        if tag != _CONFIG or self.state is not _State.IN_CONNECTION:
            return

        self.configs[self._name] = ConnectionRecord(
            protocol=self._protocol, parameters=self._parameters
        )

        # Reset for the next configuration
        self.state = _State.IDLE
        self._name = None
        self._protocol = None
        self._parameters = {}

    def _open_config(self, attrib: Dict[str, str]) -> None:
        if self.state is _State.IN_CONNECTION:
            raise StructuralParseError("Configurations cannot be nested.")

        name = attrib.get("name")
        if name is None:
            raise StructuralParseError("Each configuration must have a name.")

        protocol = attrib.get("protocol")
        if not protocol:
            raise StructuralParseError("Each configuration must have a protocol.")

        self.state = _State.IN_CONNECTION
        self._name = name
        self._protocol = protocol
        self._parameters = {}

    def _add_param(self, attrib: Dict[str, str]) -> None:
        if self.state is not _State.IN_CONNECTION:
            raise StructuralParseError("Parameter without corresponding configuration.")

        name = attrib.get("name")
        if name is None:
            raise StructuralParseError(f"Parameter of configuration {self._name!r} has no name.")

        self._parameters[name] = attrib.get("value", "")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse(source: Union[bytes, str, BinaryIO]) -> ConfigDocument:
    """Parse a connection document into a read-only ``name → record`` mapping.

    *source* may be raw bytes, a string, or a binary file object.  Raises
    :class:`StructuralParseError` when the config/param rules are broken
    (including input that ends inside a ``<config>``) and :class:`ParseError`
    when the input is not otherwise well formed XML.  Nothing is
    returned on failure, so callers never see a partial document.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")
    if isinstance(source, bytes):
        source = io.BytesIO(source)

    builder = _DocumentBuilder()
    try:
        for event, elem in ET.iterparse(source, events=("start", "end")):
            tag = _local_name(elem.tag)
            if event == "start":
                builder.start(tag, elem.attrib)
            else:
                builder.end(tag)
                if tag == _CONFIG:
                    elem.clear()
    except ET.ParseError as exc:
        if builder.state is _State.IN_CONNECTION and getattr(exc, "code", None) == _NO_ELEMENTS:
            raise StructuralParseError("Unterminated configuration at end of document.") from exc
        raise ParseError(f"Error parsing XML document: {exc}") from exc

    logger.debug("Parsed {} connection configuration(s)", len(builder.configs))
    return MappingProxyType(builder.configs)
