"""Recursive term decoder.

This module turns a declared schema plus the reader's cursor into a tree of
decoded nodes. Each node is created and attached to its owner before its
content is read, so a term that fails part-way is still owned and released
normally.

Failures propagate upward immediately: the first failing term aborts its
remaining siblings, marks itself and every enclosing compound invalid, and
is reported to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Type, TypeVar, cast

from pydantic import ValidationError

from ..arena import Arena
from ..config import DecoderConfig
from ..exceptions import (
    ArityMismatchError,
    ConstraintError,
    DecodeError,
    NestedDecodeError,
    PathItem,
    SchemaError,
    TruncatedError,
    TypeMismatchError,
)
from .nodes import ListNode, MapNode, Node, RecordNode, ScalarNode, TupleNode
from .reader import TermReader
from .schema import (
    BinaryType,
    FixedTuple,
    FloatType,
    IntegerType,
    ListOf,
    MapOf,
    RecordOf,
    RepeatedTuple,
    StringType,
    TermType,
)
from .tags import Tag, tag_name

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class DecodeContext:
    """Shared state for one decode request.

    Attributes:
        reader: Reader holding the session cursor
        arena: Owner accounting for every node created
        config: Session configuration
    """

    reader: TermReader
    arena: Arena
    config: DecoderConfig


def decode_root(schema: TermType, ctx: DecodeContext) -> Node:
    """Decode the next top-level term and hand it to the arena.

    The node is adopted by the arena before decoding starts, so the arena
    gains one root whether or not the decode succeeds.

    Args:
        schema: Declared type of the term
        ctx: Decode context

    Returns:
        The decoded node

    Raises:
        DecodeError: If the term does not match the schema
    """
    node = _new_node(schema, ctx)
    ctx.arena.adopt(node)
    _fill(node, ctx)
    return node


def _lookup(table: Dict[type, V], schema: TermType) -> V:
    for cls in type(schema).__mro__:
        if cls in table:
            return table[cls]
    raise SchemaError(f"No decoder for schema {schema!r}")


def _new_node(schema: TermType, ctx: DecodeContext) -> Node:
    return _lookup(_NODE_TYPES, schema)(schema, ctx.arena)


def _fill(node: Node, ctx: DecodeContext) -> None:
    """Decode a node's content at the cursor, then seal it."""
    try:
        _lookup(_FILLERS, node.schema)(node, ctx)
    except DecodeError:
        node._invalidate()
        raise
    finally:
        node._seal()


def _decode_child(
    schema: TermType, parent: Node, path: Tuple[PathItem, ...], ctx: DecodeContext
) -> Node:
    """Create a child of ``parent``, attach it, then decode it.

    A leaf failure is wrapped once in NestedDecodeError; enclosing compounds
    extend its path and re-raise the same error.
    """
    child = _new_node(schema, ctx)
    parent._adopt(child)
    try:
        _fill(child, ctx)
    except NestedDecodeError as e:
        e.path = path + e.path
        raise
    except DecodeError as e:
        raise NestedDecodeError(e, path) from e
    return child


def _fill_integer(node: ScalarNode, ctx: DecodeContext) -> None:
    node._assign(ctx.reader.decode_long())


def _fill_float(node: ScalarNode, ctx: DecodeContext) -> None:
    node._assign(ctx.reader.decode_double())


def _peek_content(ctx: DecodeContext, accepted: Tuple[Tag, ...], expected: str) -> int:
    """Peek the content length of a string-like term without consuming it.

    The tag is checked before the length, so a wrong tag is a type mismatch
    even when its declared length is also too large.
    """
    reader = ctx.reader
    tag = reader.peek_tag()
    if tag not in accepted:
        raise TypeMismatchError(f"Expected {expected}, found {tag_name(tag)}", reader.position)
    _tag, length = reader.get_type()
    if length > reader.remaining:
        raise TruncatedError(
            f"Not enough bytes for {expected} content: need {length}, have {reader.remaining}",
            reader.position,
        )
    return length


def _fill_string(node: ScalarNode, ctx: DecodeContext) -> None:
    # Peek the length, allocate, then consume the content
    length = _peek_content(ctx, (Tag.STRING_EXT, Tag.NIL_EXT, Tag.LIST_EXT), "string")
    buffer = node._allocate(length)
    content = ctx.reader.decode_string()
    buffer[:length] = content[:length]
    node._assign(bytes(buffer[:length]).decode(ctx.config.text_encoding, "surrogateescape"))


def _fill_binary(node: ScalarNode, ctx: DecodeContext) -> None:
    peeked = _peek_content(ctx, (Tag.BINARY_EXT,), "binary")
    buffer = node._allocate(peeked)
    content = ctx.reader.decode_binary()

    # The consumed content is authoritative, not the peeked length
    length = len(content)
    if length > peeked:
        buffer.extend(bytes(length - peeked))
    buffer[:length] = content
    node._assign(bytes(buffer[:length]))


def _fill_fixed_tuple(node: TupleNode, ctx: DecodeContext) -> None:
    schema = cast(FixedTuple, node.schema)
    start = ctx.reader.position
    arity = ctx.reader.decode_tuple_header()
    node._set_arity(arity)
    if arity != schema.arity:
        raise ArityMismatchError(schema.arity, arity, start)

    for index, field in enumerate(schema.fields):
        _decode_child(field, node, (index,), ctx)


def _fill_repeated_tuple(node: TupleNode, ctx: DecodeContext) -> None:
    schema = cast(RepeatedTuple, node.schema)
    arity = ctx.reader.decode_tuple_header()
    node._set_arity(arity)

    for index in range(arity):
        _decode_child(schema.element, node, (index,), ctx)


def _fill_list(node: ListNode, ctx: DecodeContext) -> None:
    schema = cast(ListOf, node.schema)
    reader = ctx.reader
    tag = reader.peek_tag()

    # Lists of bytes arrive as STRING_EXT
    if (
        tag == Tag.STRING_EXT
        and ctx.config.accept_string_lists
        and isinstance(schema.element, IntegerType)
    ):
        content = reader.decode_string()
        node._set_arity(len(content))
        for byte in content:
            child = cast(ScalarNode, _new_node(schema.element, ctx))
            node._adopt(child)
            child._assign(byte)
            child._seal()
        return

    arity = reader.decode_list_header()
    node._set_arity(arity)
    for index in range(arity):
        _decode_child(schema.element, node, (index,), ctx)
    # Every LIST_EXT has a tail, even one declaring zero elements
    if tag == Tag.LIST_EXT:
        reader.decode_list_tail()


def _fill_map(node: MapNode, ctx: DecodeContext) -> None:
    schema = cast(MapOf, node.schema)
    arity = ctx.reader.decode_map_header()
    node._set_arity(arity)

    for index in range(arity):
        key = _decode_child(schema.key, node, (index, "key"), ctx)
        value = _decode_child(schema.value, node, (index, "value"), ctx)
        if node._associate(key, value):
            logger.debug(
                "Duplicate key %r in %r at entry %d; keeping the later value",
                key.canonical(),
                schema,
                index,
            )


def _fill_record(node: RecordNode, ctx: DecodeContext) -> None:
    schema = cast(RecordOf, node.schema)
    start = ctx.reader.position
    arity = ctx.reader.decode_tuple_header()
    node._set_arity(arity)
    if arity != schema.arity:
        raise ArityMismatchError(schema.arity, arity, start)

    values = {}
    for field in schema.fields:
        child = _decode_child(field.term, node, (field.name,), ctx)
        values[field.name] = child.to_python()

    try:
        model = schema.model.model_validate(values)
    except ValidationError as e:
        raise ConstraintError(f"Failed to construct {schema.model.__name__}: {e}", start) from e
    node._assign(model)


_NODE_TYPES: Dict[type, Type[Node]] = {
    IntegerType: ScalarNode,
    FloatType: ScalarNode,
    StringType: ScalarNode,
    BinaryType: ScalarNode,
    FixedTuple: TupleNode,
    RepeatedTuple: TupleNode,
    ListOf: ListNode,
    MapOf: MapNode,
    RecordOf: RecordNode,
}

_FILLERS: Dict[type, Callable[..., None]] = {
    IntegerType: _fill_integer,
    FloatType: _fill_float,
    StringType: _fill_string,
    BinaryType: _fill_binary,
    FixedTuple: _fill_fixed_tuple,
    RepeatedTuple: _fill_repeated_tuple,
    ListOf: _fill_list,
    MapOf: _fill_map,
    RecordOf: _fill_record,
}
