#!/usr/bin/env python3
"""Basic usage example for eiterm.

This example demonstrates:
1. Opening a session over an ETF buffer
2. Decoding scalars by copy and compound terms by handle
3. Binding a tuple to a Pydantic record
4. Inspecting a decode failure
"""

from __future__ import annotations

from typing import Dict, List

from pydantic import Field

from eiterm import (
    DecodeError,
    FixedTuple,
    Integer,
    ListOf,
    MapOf,
    NestedDecodeError,
    Record,
    String,
    open_session,
)

# One version marker followed by three terms:
#   [{1, "alpha"}, {2, "beta"}]
#   #{"depth" => 120, "heading" => 270}
#   {"uuv-3", 42.5, [1, 2, 3], #{"battery" => 87}}
BUFFER = bytes.fromhex(
    "83"
    "6c00000002"
    "6802" "6101" "6b0005" "616c706861"
    "6802" "6102" "6b0004" "62657461"
    "6a"
    "7400000002"
    "6b0005" "6465707468" "6178"
    "6b0007" "68656164696e67" "620000010e"
    "6804"
    "6b0005" "7575762d33"
    "46" "4045400000000000"
    "6b0003" "010203"
    "7400000001" "6b0007" "62617474657279" "6157"
)


class Telemetry(Record):
    """Vehicle telemetry report."""

    vehicle: str
    depth: float = Field(ge=0)
    readings: List[int]
    status: Dict[str, int]


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("eiterm Basic Usage Example")
    print("=" * 60)
    print()

    session, valid = open_session(BUFFER)
    print(f"1. Opened session: valid={valid}, version={session.version}")
    print()

    with session:
        print("2. Decoding a list of {id, name} tuples...")
        for entry in session.parse(ListOf(FixedTuple(Integer, String))):
            print(f"   id={entry.get(0)} name={entry.get(1)!r}")
        print()

        print("3. Decoding a map...")
        nav = session.parse(MapOf(String, Integer))
        for key in nav:
            print(f"   {key}: {nav[key]}")
        print()

        print("4. Decoding a record...")
        report = session.parse(Telemetry)
        print(f"   {report!r}")
        print(f"   Bytes left: {session.remaining}")
        print()

        stats = session.arena.stats
        print(f"   Live nodes before close: {stats.live_nodes}")
    print(f"   Live nodes after close: {stats.live_nodes}")
    print()

    print("5. Decoding with the wrong shape...")
    session, _ = open_session(BUFFER)
    with session:
        try:
            session.parse(ListOf(FixedTuple(Integer, Integer)))
        except NestedDecodeError as e:
            print(f"   Failed at path {e.path}: {e.root}")
        except DecodeError as e:
            print(f"   Failed: {e}")
        print(f"   Session still usable: {session.is_valid}")

    print()
    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
