"""Term codec for eiterm.

This module provides the term schemas, the primitive wire reader and the
recursive decoder that builds trees of decoded nodes.
"""

from __future__ import annotations

from .decoder import DecodeContext, decode_root
from .nodes import ListNode, MapNode, Node, RecordNode, ScalarNode, TupleNode
from .reader import TermReader
from .schema import (
    Binary,
    FixedTuple,
    Float,
    Integer,
    ListOf,
    MapOf,
    RecordField,
    RecordOf,
    RepeatedTuple,
    String,
    TermKind,
    TermType,
    as_schema,
    schema_for,
)
from .tags import Tag

__all__ = [
    "DecodeContext",
    "decode_root",
    "TermReader",
    "Tag",
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
    "RecordField",
    "as_schema",
    "schema_for",
    # Nodes
    "Node",
    "ScalarNode",
    "TupleNode",
    "ListNode",
    "MapNode",
    "RecordNode",
]
