"""Unit tests for the primitive term reader."""

from __future__ import annotations

import math

import pytest

import etf_builder as etf
from eiterm.codec.reader import INT64_MAX, INT64_MIN, TermReader
from eiterm.codec.tags import Tag
from eiterm.exceptions import TruncatedError, TypeMismatchError


class TestVersion:
    """Test the version marker."""

    def test_decode_version(self) -> None:
        """Test reading the version marker."""
        reader = TermReader(etf.buffer())
        assert reader.decode_version() == 131
        assert reader.position == 1

    def test_wrong_version(self) -> None:
        """Test a buffer that does not start with 131."""
        reader = TermReader(b"\x82\x61\x01")
        with pytest.raises(TypeMismatchError, match="version"):
            reader.decode_version()
        assert reader.position == 0

    def test_empty_buffer(self) -> None:
        """Test an empty buffer."""
        with pytest.raises(TruncatedError):
            TermReader(b"").decode_version()


class TestIntegers:
    """Test integer decoding."""

    @pytest.mark.parametrize(
        ("encoded", "expected"),
        [
            (etf.small_int(0), 0),
            (etf.small_int(255), 255),
            (etf.int32(-1), -1),
            (etf.int32(2**31 - 1), 2**31 - 1),
            (etf.int32(-(2**31)), -(2**31)),
            (etf.big(2**40), 2**40),
            (etf.big(-(2**40)), -(2**40)),
            (etf.big(INT64_MAX), INT64_MAX),
            (etf.big(INT64_MIN), INT64_MIN),
            (etf.big(12345, large=True), 12345),
        ],
    )
    def test_decode_long(self, encoded: bytes, expected: int) -> None:
        """Test every integer encoding."""
        reader = TermReader(encoded)
        assert reader.decode_long() == expected
        assert reader.position == len(encoded)

    def test_bignum_out_of_range(self) -> None:
        """Test a bignum wider than 64 bits."""
        reader = TermReader(etf.big(INT64_MAX + 1))
        with pytest.raises(TypeMismatchError, match="64-bit"):
            reader.decode_long()
        assert reader.position == 0

    def test_not_an_integer(self) -> None:
        """Test a float where an integer is expected."""
        reader = TermReader(etf.new_float(1.0))
        with pytest.raises(TypeMismatchError, match="integer"):
            reader.decode_long()

    def test_truncated_integer(self) -> None:
        """Test INTEGER_EXT with missing bytes."""
        reader = TermReader(etf.int32(1000)[:3])
        with pytest.raises(TruncatedError):
            reader.decode_long()
        assert reader.position == 0


class TestFloats:
    """Test float decoding."""

    def test_new_float(self) -> None:
        """Test NEW_FLOAT_EXT."""
        reader = TermReader(etf.new_float(-2.5))
        assert reader.decode_double() == -2.5
        assert reader.position == 9

    def test_old_float(self) -> None:
        """Test textual FLOAT_EXT."""
        reader = TermReader(etf.old_float(3.25))
        assert math.isclose(reader.decode_double(), 3.25)
        assert reader.position == 32

    def test_malformed_old_float(self) -> None:
        """Test FLOAT_EXT with garbage text."""
        reader = TermReader(bytes([99]) + b"not-a-float".ljust(31, b"\x00"))
        with pytest.raises(TypeMismatchError, match="FLOAT_EXT"):
            reader.decode_double()


class TestStringsAndBinaries:
    """Test string and binary decoding."""

    def test_string_ext(self) -> None:
        """Test STRING_EXT."""
        reader = TermReader(etf.string(b"hello"))
        assert reader.decode_string() == b"hello"
        assert reader.position == 8

    def test_nil_is_empty_string(self) -> None:
        """Test NIL_EXT as the empty string."""
        reader = TermReader(etf.NIL)
        assert reader.decode_string() == b""
        assert reader.position == 1

    def test_char_list_string(self) -> None:
        """Test a string written as a list of small integers."""
        encoded = etf.char_list(b"abc")
        reader = TermReader(encoded)
        assert reader.decode_string() == b"abc"
        assert reader.position == len(encoded)

    def test_char_list_with_wide_element(self) -> None:
        """Test a list containing a non-byte element."""
        reader = TermReader(etf.list_(etf.small_int(1), etf.int32(1000)))
        with pytest.raises(TypeMismatchError):
            reader.decode_string()
        assert reader.position == 0

    def test_binary(self, sample_payload: bytes) -> None:
        """Test BINARY_EXT with embedded zero bytes."""
        reader = TermReader(etf.binary(sample_payload))
        assert reader.decode_binary() == sample_payload
        assert reader.position == 5 + len(sample_payload)

    def test_truncated_binary(self) -> None:
        """Test a binary whose declared length exceeds the buffer."""
        reader = TermReader(etf.binary(b"0123456789")[:-3])
        with pytest.raises(TruncatedError, match="binary content"):
            reader.decode_binary()
        assert reader.position == 0


class TestHeaders:
    """Test compound headers."""

    def test_tuple_headers(self) -> None:
        """Test small and large tuple headers."""
        assert TermReader(etf.tuple_(etf.small_int(1))).decode_tuple_header() == 1
        assert TermReader(etf.large_tuple(etf.NIL, etf.NIL)).decode_tuple_header() == 2

    def test_list_header_and_tail(self) -> None:
        """Test list header, elements and tail."""
        reader = TermReader(etf.list_(etf.small_int(7)))
        assert reader.decode_list_header() == 1
        assert reader.decode_long() == 7
        reader.decode_list_tail()
        assert reader.remaining == 0

    def test_nil_list_header(self) -> None:
        """Test NIL_EXT as the empty list."""
        reader = TermReader(etf.NIL)
        assert reader.decode_list_header() == 0
        assert reader.position == 1

    def test_improper_tail(self) -> None:
        """Test a list whose tail is not NIL_EXT."""
        reader = TermReader(etf.list_(etf.small_int(1), tail=etf.small_int(2)))
        reader.decode_list_header()
        reader.decode_long()
        with pytest.raises(TypeMismatchError, match="improper"):
            reader.decode_list_tail()

    def test_map_header(self) -> None:
        """Test MAP_EXT header."""
        reader = TermReader(etf.map_((etf.small_int(1), etf.small_int(2))))
        assert reader.decode_map_header() == 1
        assert reader.position == 5

    def test_header_mismatch(self) -> None:
        """Test reading a map header from a tuple."""
        reader = TermReader(etf.tuple_())
        with pytest.raises(TypeMismatchError, match="map"):
            reader.decode_map_header()


class TestGetType:
    """Test peeking at the next term."""

    def test_get_type_does_not_advance(self) -> None:
        """Test that get_type leaves the cursor in place."""
        reader = TermReader(etf.string(b"abc"))
        assert reader.get_type() == (Tag.STRING_EXT, 3)
        assert reader.position == 0

    def test_get_type_sizes(self) -> None:
        """Test the reported size for each kind of term."""
        assert TermReader(etf.binary(b"xy")).get_type() == (Tag.BINARY_EXT, 2)
        assert TermReader(etf.tuple_(etf.NIL)).get_type() == (Tag.SMALL_TUPLE_EXT, 1)
        assert TermReader(etf.list_(etf.NIL, etf.NIL)).get_type() == (Tag.LIST_EXT, 2)
        assert TermReader(etf.small_int(5)).get_type() == (Tag.SMALL_INTEGER_EXT, 0)

    def test_get_type_reads_header_only(self) -> None:
        """Test that a declared length longer than the buffer is reported as is."""
        reader = TermReader(bytes([109, 0xFF, 0xFF, 0xFF, 0xFF]) + b"short")
        assert reader.get_type() == (Tag.BINARY_EXT, 0xFFFFFFFF)
        with pytest.raises(TruncatedError, match="binary content"):
            reader.decode_binary()
        assert reader.position == 0

    def test_get_type_truncated_header(self) -> None:
        """Test a length field cut short."""
        with pytest.raises(TruncatedError):
            TermReader(bytes([107, 0])).get_type()

    def test_peek_tag(self) -> None:
        """Test peeking the tag alone."""
        reader = TermReader(bytes([109, 0xFF]))
        assert reader.peek_tag() == Tag.BINARY_EXT
        assert reader.position == 0
        with pytest.raises(TruncatedError):
            TermReader(b"").peek_tag()
