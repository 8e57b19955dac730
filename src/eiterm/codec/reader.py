"""Primitive External Term Format decoders.

This module provides byte-level reads for each wire tag the term model
understands. It mirrors the ``ei_decode_*`` family from Erlang's ``ei``
library: every operation reads at the shared cursor, returns the decoded
value and advances the cursor by exactly the bytes it consumed.

A failing operation raises TypeMismatchError or TruncatedError and leaves
the cursor where it was.
"""

from __future__ import annotations

import struct
from typing import Tuple

from ..exceptions import TruncatedError, TypeMismatchError
from .tags import VERSION_MAGIC, Tag, tag_name

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# Size of the textual FLOAT_EXT payload ("%.20e" padded with NULs)
_FLOAT_EXT_SIZE = 31


class TermReader:
    """Reads encoded terms from a byte buffer.

    Example:
        >>> reader = TermReader(b"\\x83\\x61\\x2a")
        >>> reader.decode_version()
        131
        >>> reader.decode_long()
        42
        >>> reader.position
        3
    """

    def __init__(self, data: bytes) -> None:
        """Initialize a reader over the given data.

        Args:
            data: Encoded buffer (copied once, never modified)
        """
        self._data = bytes(data)
        self._position = 0

    @property
    def position(self) -> int:
        """Current cursor offset in bytes."""
        return self._position

    @property
    def remaining(self) -> int:
        """Number of unread bytes."""
        return len(self._data) - self._position

    def _need(self, pos: int, count: int, what: str) -> None:
        available = len(self._data) - pos
        if count > available:
            raise TruncatedError(
                f"Not enough bytes for {what}: need {count}, have {max(available, 0)}", pos
            )

    def _tag_at(self, pos: int) -> int:
        self._need(pos, 1, "term tag")
        return self._data[pos]

    def _mismatch(self, tag: int, expected: str, pos: int) -> TypeMismatchError:
        return TypeMismatchError(f"Expected {expected}, found {tag_name(tag)}", pos)

    def decode_version(self) -> int:
        """Read the format version marker.

        Returns:
            The version byte (always 131)

        Raises:
            TruncatedError: If the buffer is empty
            TypeMismatchError: If the first byte is not the version marker
        """
        pos = self._position
        self._need(pos, 1, "version marker")
        version = self._data[pos]
        if version != VERSION_MAGIC:
            raise TypeMismatchError(
                f"Unsupported format version {version} (expected {VERSION_MAGIC})", pos
            )
        self._position = pos + 1
        return version

    def peek_tag(self) -> int:
        """Tag byte of the next term, without consuming it.

        Raises:
            TruncatedError: If no bytes remain
        """
        return self._tag_at(self._position)

    def get_type(self) -> Tuple[int, int]:
        """Peek at the next term's tag and size without consuming it.

        The size is the byte length for STRING_EXT and BINARY_EXT, the arity
        for tuples, lists and maps, the digit count for bignums and 0 for
        everything else.

        Only the header is read; the content behind a declared length is not
        checked, so callers can reject a wrong tag before a bad length.

        Returns:
            Tuple of (tag, size)

        Raises:
            TruncatedError: If the header is incomplete
        """
        pos = self._position
        tag = self._tag_at(pos)
        body = pos + 1

        if tag == Tag.SMALL_TUPLE_EXT:
            self._need(body, 1, "tuple arity")
            return tag, self._data[body]
        if tag == Tag.SMALL_BIG_EXT:
            self._need(body, 1, "bignum length")
            return tag, self._data[body]
        if tag == Tag.STRING_EXT:
            self._need(body, 2, "string length")
            (size,) = struct.unpack_from(">H", self._data, body)
            return tag, size
        if tag in (Tag.LARGE_TUPLE_EXT, Tag.MAP_EXT, Tag.LARGE_BIG_EXT, Tag.LIST_EXT):
            self._need(body, 4, f"{tag_name(tag)} header")
            (size,) = struct.unpack_from(">I", self._data, body)
            return tag, size
        if tag == Tag.BINARY_EXT:
            self._need(body, 4, "binary length")
            (size,) = struct.unpack_from(">I", self._data, body)
            return tag, size
        return tag, 0

    def decode_long(self) -> int:
        """Read an integer that fits in a signed 64-bit value.

        Accepts SMALL_INTEGER_EXT, INTEGER_EXT, SMALL_BIG_EXT and LARGE_BIG_EXT.

        Returns:
            Integer value

        Raises:
            TypeMismatchError: If the term is not an integer or is out of range
            TruncatedError: If the buffer ends inside the term
        """
        start = self._position
        tag = self._tag_at(start)
        pos = start + 1

        if tag == Tag.SMALL_INTEGER_EXT:
            self._need(pos, 1, "small integer")
            value = self._data[pos]
            pos += 1
        elif tag == Tag.INTEGER_EXT:
            self._need(pos, 4, "integer")
            (value,) = struct.unpack_from(">i", self._data, pos)
            pos += 4
        elif tag in (Tag.SMALL_BIG_EXT, Tag.LARGE_BIG_EXT):
            if tag == Tag.SMALL_BIG_EXT:
                self._need(pos, 1, "bignum length")
                num_digits = self._data[pos]
                pos += 1
            else:
                self._need(pos, 4, "bignum length")
                (num_digits,) = struct.unpack_from(">I", self._data, pos)
                pos += 4
            self._need(pos, 1 + num_digits, "bignum digits")
            sign = self._data[pos]
            value = int.from_bytes(self._data[pos + 1 : pos + 1 + num_digits], "little")
            if sign:
                value = -value
            pos += 1 + num_digits
            if value < INT64_MIN or value > INT64_MAX:
                raise TypeMismatchError(
                    f"Integer {value} does not fit in a signed 64-bit value", start
                )
        else:
            raise self._mismatch(tag, "integer", start)

        self._position = pos
        return value

    def decode_double(self) -> float:
        """Read a float (NEW_FLOAT_EXT or the legacy textual FLOAT_EXT).

        Returns:
            Float value

        Raises:
            TypeMismatchError: If the term is not a float or the text is malformed
            TruncatedError: If the buffer ends inside the term
        """
        start = self._position
        tag = self._tag_at(start)
        pos = start + 1

        if tag == Tag.NEW_FLOAT_EXT:
            self._need(pos, 8, "float")
            (value,) = struct.unpack_from(">d", self._data, pos)
            pos += 8
        elif tag == Tag.FLOAT_EXT:
            self._need(pos, _FLOAT_EXT_SIZE, "float text")
            text = self._data[pos : pos + _FLOAT_EXT_SIZE].split(b"\x00", 1)[0]
            try:
                value = float(text.decode("ascii"))
            except (UnicodeDecodeError, ValueError) as e:
                raise TypeMismatchError(f"Malformed FLOAT_EXT text {text!r}", start) from e
            pos += _FLOAT_EXT_SIZE
        else:
            raise self._mismatch(tag, "float", start)

        self._position = pos
        return value

    def decode_string(self) -> bytes:
        """Read a string term as raw bytes.

        Accepts STRING_EXT, NIL_EXT (the empty string) and a proper LIST_EXT
        whose elements are all SMALL_INTEGER_EXT.

        Returns:
            String content bytes

        Raises:
            TypeMismatchError: If the term is not a string
            TruncatedError: If the buffer ends inside the term
        """
        start = self._position
        tag = self._tag_at(start)
        pos = start + 1

        if tag == Tag.STRING_EXT:
            self._need(pos, 2, "string length")
            (length,) = struct.unpack_from(">H", self._data, pos)
            pos += 2
            self._need(pos, length, "string content")
            content = self._data[pos : pos + length]
            pos += length
        elif tag == Tag.NIL_EXT:
            content = b""
        elif tag == Tag.LIST_EXT:
            self._need(pos, 4, "list length")
            (length,) = struct.unpack_from(">I", self._data, pos)
            pos += 4
            chars = bytearray()
            for _ in range(length):
                element_tag = self._tag_at(pos)
                if element_tag != Tag.SMALL_INTEGER_EXT:
                    raise self._mismatch(element_tag, "small integer in string list", pos)
                self._need(pos + 1, 1, "string list element")
                chars.append(self._data[pos + 1])
                pos += 2
            tail_tag = self._tag_at(pos)
            if tail_tag != Tag.NIL_EXT:
                raise self._mismatch(tail_tag, "NIL_EXT string list tail", pos)
            pos += 1
            content = bytes(chars)
        else:
            raise self._mismatch(tag, "string", start)

        self._position = pos
        return content

    def decode_binary(self) -> bytes:
        """Read a BINARY_EXT term.

        Returns:
            Binary content (its length is authoritative)

        Raises:
            TypeMismatchError: If the term is not a binary
            TruncatedError: If the declared length exceeds the remaining bytes
        """
        start = self._position
        tag = self._tag_at(start)
        if tag != Tag.BINARY_EXT:
            raise self._mismatch(tag, "binary", start)
        pos = start + 1
        self._need(pos, 4, "binary length")
        (length,) = struct.unpack_from(">I", self._data, pos)
        pos += 4
        self._need(pos, length, "binary content")
        content = self._data[pos : pos + length]
        self._position = pos + length
        return content

    def decode_tuple_header(self) -> int:
        """Read a SMALL_TUPLE_EXT or LARGE_TUPLE_EXT header.

        Returns:
            Tuple arity
        """
        start = self._position
        tag = self._tag_at(start)
        pos = start + 1
        if tag == Tag.SMALL_TUPLE_EXT:
            self._need(pos, 1, "tuple arity")
            arity = self._data[pos]
            pos += 1
        elif tag == Tag.LARGE_TUPLE_EXT:
            self._need(pos, 4, "tuple arity")
            (arity,) = struct.unpack_from(">I", self._data, pos)
            pos += 4
        else:
            raise self._mismatch(tag, "tuple", start)
        self._position = pos
        return arity

    def decode_list_header(self) -> int:
        """Read a LIST_EXT header, or NIL_EXT as the empty list.

        The returned count excludes the tail. For a non-empty list the caller
        must consume the tail with decode_list_tail() after the elements.

        Returns:
            Number of list elements
        """
        start = self._position
        tag = self._tag_at(start)
        if tag == Tag.NIL_EXT:
            self._position = start + 1
            return 0
        if tag != Tag.LIST_EXT:
            raise self._mismatch(tag, "list", start)
        self._need(start + 1, 4, "list length")
        (arity,) = struct.unpack_from(">I", self._data, start + 1)
        self._position = start + 5
        return arity

    def decode_list_tail(self) -> None:
        """Consume the NIL_EXT tail that terminates a proper list.

        Raises:
            TypeMismatchError: If the list is improper
        """
        start = self._position
        tag = self._tag_at(start)
        if tag != Tag.NIL_EXT:
            raise self._mismatch(tag, "NIL_EXT list tail (improper list)", start)
        self._position = start + 1

    def decode_map_header(self) -> int:
        """Read a MAP_EXT header.

        Returns:
            Number of key/value pairs on the wire
        """
        start = self._position
        tag = self._tag_at(start)
        if tag != Tag.MAP_EXT:
            raise self._mismatch(tag, "map", start)
        self._need(start + 1, 4, "map arity")
        (arity,) = struct.unpack_from(">I", self._data, start + 1)
        self._position = start + 5
        return arity
