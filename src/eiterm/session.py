"""Decode sessions over a single ETF buffer.

A session owns the cursor, the validity flag and the arena for one buffer.
Callers request top-level terms in the exact order they were written:

    >>> session, valid = open_session(data)
    >>> count = session.parse(Integer)
    >>> names = session.parse(ListOf(String))
    >>> for name in names:
    ...     print(name)
    >>> session.close()

Scalar schemas return copies; compound schemas return handles that stay
valid until the session is closed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .arena import Arena
from .codec.decoder import DecodeContext, decode_root
from .codec.nodes import present
from .codec.reader import TermReader
from .codec.schema import as_schema
from .config import DecoderConfig
from .exceptions import DecodeError, SessionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of Session.try_parse().

    Attributes:
        value: Decoded value or handle (None on failure)
        error: Decode failure (None on success)
    """

    value: Any = None
    error: Optional[DecodeError] = None

    @property
    def ok(self) -> bool:
        """True if the term decoded successfully."""
        return self.error is None


class Session:
    """Pull-based decoder over one ETF buffer.

    The session is not thread-safe; decode independent buffers in
    independent sessions.

    Args:
        buffer: Encoded data, starting with the version marker
        config: Decoder configuration (defaults to DecoderConfig())

    Examples:
        ```python
        from eiterm import FixedTuple, Integer, MapOf, String, Session

        with Session(data) as session:
            header = session.parse(FixedTuple(Integer, String))
            attrs = session.parse(MapOf(String, Integer))
            print(header.get(1), dict(attrs))
        ```
    """

    def __init__(self, buffer: bytes, config: Optional[DecoderConfig] = None) -> None:
        self._config = config if config is not None else DecoderConfig()
        self._reader = TermReader(buffer)
        self._arena = Arena()
        self._closed = False
        self._version: Optional[int] = None
        self._failure: Optional[DecodeError] = None

        try:
            self._version = self._reader.decode_version()
        except DecodeError as e:
            self._failure = e
            logger.debug("Session opened on invalid buffer: %s", e)
        else:
            logger.debug("Session opened: %d bytes, version %d", len(buffer), self._version)

    @property
    def is_valid(self) -> bool:
        """True while the version marker and every parse so far succeeded."""
        return self._failure is None and not self._closed

    @property
    def version(self) -> Optional[int]:
        """Decoded format version, or None if the marker was missing."""
        return self._version

    @property
    def position(self) -> int:
        """Current cursor offset in bytes."""
        return self._reader.position

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return self._reader.remaining

    @property
    def config(self) -> DecoderConfig:
        """Configuration in effect."""
        return self._config

    @property
    def arena(self) -> Arena:
        """Owner of every term decoded in this session."""
        return self._arena

    def parse(self, schema: Any) -> Any:
        """Decode the next top-level term as ``schema``.

        Args:
            schema: Term schema, or a Record subclass

        Returns:
            The decoded value for scalar schemas, a node handle for compound ones

        Raises:
            SessionError: If the session is closed or a previous decode failed
            SchemaError: If ``schema`` is not a term schema
            DecodeError: If the term does not match the schema
        """
        term = as_schema(schema)
        self._check_usable()

        start = self._reader.position
        ctx = DecodeContext(reader=self._reader, arena=self._arena, config=self._config)
        try:
            node = decode_root(term, ctx)
        except DecodeError as e:
            self._failure = e
            logger.debug("Failed to decode %r at byte %d: %s", term, start, e)
            raise

        logger.debug("Decoded %r from %d bytes", term, self._reader.position - start)
        return present(term, node)

    def try_parse(self, schema: Any) -> ParseResult:
        """Decode the next top-level term, returning failures as a result.

        Args:
            schema: Term schema, or a Record subclass

        Returns:
            ParseResult holding either the value or the decode error

        Raises:
            SessionError: If the session is closed or a previous decode failed
        """
        try:
            return ParseResult(value=self.parse(schema))
        except DecodeError as e:
            return ParseResult(error=e)

    def close(self) -> None:
        """Release every decoded term. Calling close() twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        self._arena.close()

    def _check_usable(self) -> None:
        if self._closed:
            raise SessionError("Session is closed")
        if self._failure is not None:
            raise SessionError(
                f"Session is invalid after a failed decode and must be discarded: {self._failure}"
            )

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_session(
    buffer: bytes, config: Optional[DecoderConfig] = None
) -> Tuple[Session, bool]:
    """Open a session and report whether the version marker was valid.

    Args:
        buffer: Encoded data, starting with the version marker
        config: Decoder configuration

    Returns:
        Tuple of (session, valid)

    Example:
        >>> session, valid = open_session(b"\\x83\\x61\\x07")
        >>> valid
        True
        >>> session.parse(Integer)
        7
    """
    session = Session(buffer, config)
    return session, session.is_valid
