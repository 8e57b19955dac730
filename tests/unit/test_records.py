"""Unit tests for Pydantic record binding."""

from __future__ import annotations

from typing import Dict, List, Tuple

import pytest
from pydantic import Field

import etf_builder as etf
from eiterm import (
    ArityMismatchError,
    ConstraintError,
    DecodeFailure,
    Integer,
    ListOf,
    MapOf,
    NestedDecodeError,
    Record,
    RecordOf,
    Session,
    String,
)


class Reading(Record):
    """Sensor reading record."""

    sensor: str
    value: float
    samples: List[int]
    seq: int = Field(ge=0)


class Position(Record):
    """Nested record."""

    lat: float
    lon: float


class Fix(Record):
    """Record holding another record and a map."""

    id: int
    where: Position
    window: Tuple[int, int]
    tags: Dict[str, int]


def _reading(seq: int) -> bytes:
    return etf.tuple_(
        etf.string(b"probe-1"),
        etf.new_float(21.5),
        etf.list_(etf.small_int(3), etf.small_int(4)),
        etf.integer(seq),
    )


class TestRecords:
    """Test decoding tuples into records."""

    def test_basic_record(self) -> None:
        """Test a record returned by copy."""
        with Session(etf.buffer(_reading(7))) as session:
            reading = session.parse(Reading)

        assert isinstance(reading, Reading)
        assert reading == Reading(sensor="probe-1", value=21.5, samples=[3, 4], seq=7)

    def test_explicit_record_of(self) -> None:
        """Test RecordOf and a bare Record class decode the same way."""
        with Session(etf.buffer(_reading(1), _reading(2))) as session:
            first = session.parse(RecordOf(Reading))
            second = session.parse(Reading)
        assert (first.seq, second.seq) == (1, 2)

    def test_nested_record(self) -> None:
        """Test a record containing a record, a tuple and a map."""
        data = etf.buffer(
            etf.tuple_(
                etf.small_int(9),
                etf.tuple_(etf.new_float(1.5), etf.new_float(-2.0)),
                etf.tuple_(etf.small_int(0), etf.small_int(60)),
                etf.map_((etf.string(b"gps"), etf.small_int(1))),
            )
        )
        with Session(data) as session:
            fix = session.parse(Fix)

        assert fix.where == Position(lat=1.5, lon=-2.0)
        assert fix.window == (0, 60)
        assert fix.tags == {"gps": 1}

    def test_records_in_list(self) -> None:
        """Test that record elements are yielded as model instances."""
        data = etf.buffer(etf.list_(_reading(1), _reading(2)))
        with Session(data) as session:
            readings = list(session.parse(ListOf(Reading)))
        assert [r.seq for r in readings] == [1, 2]

    def test_record_map_values(self) -> None:
        """Test records as map values."""
        data = etf.buffer(
            etf.map_((etf.string(b"home"), etf.tuple_(etf.new_float(0.0), etf.new_float(1.0))))
        )
        with Session(data) as session:
            places = session.parse(MapOf(String, Position))
            assert places["home"].lon == 1.0


class TestRecordFailures:
    """Test record decode failures."""

    def test_constraint_violation(self) -> None:
        """Test a field that fails Pydantic validation."""
        session = Session(etf.buffer(_reading(-1)))
        with pytest.raises(ConstraintError, match="Reading") as info:
            session.parse(Reading)

        assert info.value.kind is DecodeFailure.CONSTRAINT
        assert not session.arena.roots[0].valid
        session.close()
        assert session.arena.stats.live_nodes == 0

    def test_arity_mismatch(self) -> None:
        """Test a tuple with too few slots for the record."""
        session = Session(etf.buffer(etf.tuple_(etf.new_float(1.0))))
        with pytest.raises(ArityMismatchError) as info:
            session.parse(Position)
        assert (info.value.expected, info.value.actual) == (2, 1)
        session.close()

    def test_nested_path_uses_field_names(self) -> None:
        """Test that failures inside a record report the field name."""
        data = etf.buffer(
            etf.tuple_(
                etf.small_int(9),
                etf.tuple_(etf.new_float(1.5), etf.string(b"north")),
                etf.tuple_(etf.small_int(0), etf.small_int(60)),
                etf.map_(),
            )
        )
        session = Session(data)
        with pytest.raises(NestedDecodeError) as info:
            session.parse(Fix)
        assert info.value.path == ("where", "lon")
        session.close()

    def test_record_inside_list_path(self) -> None:
        """Test the path to a bad record field inside a list."""
        data = etf.buffer(
            etf.list_(
                etf.tuple_(etf.new_float(0.0), etf.new_float(0.0)),
                etf.tuple_(etf.new_float(0.0), etf.small_int(1)),
            )
        )
        session = Session(data)
        with pytest.raises(NestedDecodeError) as info:
            session.parse(ListOf(Position))
        assert info.value.path == (1, "lon")
        session.close()

    def test_map_values_checked(self) -> None:
        """Test a record holding a map with a bad value type."""

        class Counts(Record):
            counts: Dict[str, int]

        data = etf.buffer(etf.tuple_(etf.map_((etf.string(b"a"), etf.string(b"b")))))
        session = Session(data)
        with pytest.raises(NestedDecodeError) as info:
            session.parse(Counts)
        assert info.value.path == ("counts", 0, "value")
        assert RecordOf(Counts).fields[0].term == MapOf(String, Integer)
        session.close()
