"""eiterm: Typed Erlang External Term Format decoding

A Python library for decoding buffers written in Erlang's External Term
Format (ETF) into strongly-typed values. Callers declare the exact shape of
each incoming term at the call site; the decoder consumes exactly that shape
from the buffer and reports the first mismatch.

Key Features:
- Declared schemas: fixed and repeated tuples, lists, maps and scalars
- Scalars returned by copy, compound terms returned by handle
- Deterministic, counted ownership of every decoded term
- Pydantic-based record binding for tuple-shaped messages

Quick Start:
    >>> from eiterm import FixedTuple, Integer, ListOf, String, open_session
    >>>
    >>> session, valid = open_session(data)
    >>> header = session.parse(FixedTuple(Integer, String))
    >>> header.get(0), header.get(1)
    (1, 'status')
    >>> for reading in session.parse(ListOf(Integer)):
    ...     print(reading)
    >>> session.close()
"""

from __future__ import annotations

from .arena import Arena, ArenaStats
from .codec import (
    Binary,
    FixedTuple,
    Float,
    Integer,
    ListNode,
    ListOf,
    MapNode,
    MapOf,
    Node,
    RecordOf,
    RepeatedTuple,
    String,
    TermKind,
    TermType,
    TupleNode,
    schema_for,
)
from .config import DecoderConfig
from .exceptions import (
    ArityMismatchError,
    ConstraintError,
    DecodeError,
    DecodeFailure,
    EitermError,
    IncompleteTermError,
    NestedDecodeError,
    ReleasedTermError,
    SchemaError,
    SessionError,
    TermStateError,
    TruncatedError,
    TypeMismatchError,
)
from .models import Record
from .session import ParseResult, Session, open_session

__version__ = "0.1.0"

__all__ = [
    # Core API
    "open_session",
    "Session",
    "ParseResult",
    "DecoderConfig",
    # Schemas
    "TermKind",
    "TermType",
    "Integer",
    "Float",
    "String",
    "Binary",
    "FixedTuple",
    "RepeatedTuple",
    "ListOf",
    "MapOf",
    "RecordOf",
    "Record",
    "schema_for",
    # Decoded terms
    "Node",
    "TupleNode",
    "ListNode",
    "MapNode",
    "Arena",
    "ArenaStats",
    # Exceptions
    "EitermError",
    "SchemaError",
    "DecodeError",
    "DecodeFailure",
    "TypeMismatchError",
    "TruncatedError",
    "ArityMismatchError",
    "NestedDecodeError",
    "ConstraintError",
    "SessionError",
    "TermStateError",
    "ReleasedTermError",
    "IncompleteTermError",
    # Version
    "__version__",
]
