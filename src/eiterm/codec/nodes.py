"""Decoded term nodes and their accessors.

Every decoded term is a node owned by its parent (or by the session arena
for top-level terms). Accessors hand out scalar slots by copy and compound
slots by handle; the choice is made from the declared schema's static kind,
never from the decoded data.

Handles are non-owning views. Once the owning session is closed, reading
through any handle raises ReleasedTermError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Tuple, cast

from ..arena import Arena
from ..exceptions import IncompleteTermError, ReleasedTermError, TermStateError
from ..models.base import Record
from .schema import FixedTuple, ListOf, MapOf, RecordOf, RepeatedTuple, TermKind, TermType


def present(schema: TermType, node: Node) -> Any:
    """Return a node the way its declared kind dictates.

    Scalar schemas yield the decoded value (a copy); compound schemas yield
    the node itself as a handle.
    """
    if schema.kind is TermKind.SCALAR:
        return node.value
    return node


def freeze(value: Any) -> Hashable:
    """Canonical hashable form of a key, used for map key comparison.

    Lists and tuples compare element-wise, dicts as sets of pairs, records by
    model name and field values. Nodes use their own canonical form.
    """
    if isinstance(value, Node):
        return value.canonical()
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    if isinstance(value, dict):
        return frozenset((freeze(k), freeze(v)) for k, v in value.items())
    if isinstance(value, Record):
        return (
            type(value).__qualname__,
            tuple(freeze(getattr(value, name)) for name in type(value).model_fields),
        )
    return value


class Node(ABC):
    """Base class for decoded terms.

    Attributes:
        schema: Declared type the node was decoded as
    """

    def __init__(self, schema: TermType, arena: Arena) -> None:
        self.schema = schema
        self.arity: Optional[int] = None
        self._arena = arena
        self._children: Sequence[Node] = []
        self._valid = True
        self._sealed = False
        self._released = False
        arena.stats.nodes_allocated += 1

    @property
    def valid(self) -> bool:
        """False if the node's decode failed."""
        return self._valid

    @property
    def released(self) -> bool:
        """True once the node's owner has released it."""
        return self._released

    def _check_alive(self) -> None:
        if self._released:
            raise ReleasedTermError(f"{self.schema!r} term has been released")

    def _check_readable(self) -> None:
        self._check_alive()
        if not self._valid:
            raise IncompleteTermError(f"{self.schema!r} term failed to decode")

    def _check_writable(self) -> None:
        if self._sealed:
            raise TermStateError(f"{self.schema!r} term is already decoded")

    def _invalidate(self) -> None:
        self._valid = False

    def _set_arity(self, arity: int) -> None:
        self._check_writable()
        self.arity = arity

    def _adopt(self, child: Node) -> None:
        self._check_writable()
        cast(List[Node], self._children).append(child)

    def _seal(self) -> None:
        self._children = tuple(self._children)
        self._sealed = True

    def _owned(self) -> Sequence[Node]:
        return self._children

    def _free(self) -> None:
        pass

    def _release(self) -> None:
        """Release this node, everything it owns, then its own buffer."""
        if self._released:
            raise ReleasedTermError(f"{self.schema!r} term released twice")
        self._released = True
        for child in self._owned():
            child._release()
        self._free()
        self._arena.stats.nodes_released += 1

    @abstractmethod
    def canonical(self) -> Hashable:
        """Hashable structural form used to compare map keys."""

    @abstractmethod
    def to_python(self) -> Any:
        """Detach the term as plain Python values that outlive the session."""


class ScalarNode(Node):
    """Integer, Float, String or Binary term."""

    def __init__(self, schema: TermType, arena: Arena) -> None:
        super().__init__(schema, arena)
        self._value: Any = None
        self._buffer: Optional[bytearray] = None

    def _allocate(self, length: int) -> bytearray:
        """Allocate the content buffer: length bytes plus a zeroed guard byte."""
        self._check_writable()
        self._buffer = bytearray(length + 1)
        self._arena.stats.buffers_allocated += 1
        return self._buffer

    def _assign(self, value: Any) -> None:
        self._check_writable()
        self._value = value

    def _free(self) -> None:
        if self._buffer is not None:
            self._buffer = None
            self._arena.stats.buffers_released += 1
        self._value = None

    @property
    def value(self) -> Any:
        """Decoded value."""
        self._check_readable()
        return self._value

    def canonical(self) -> Hashable:
        return self.value

    def to_python(self) -> Any:
        return self.value

    def __repr__(self) -> str:
        if self._released:
            return f"<{self.schema!r} released>"
        return f"<{self.schema!r} {self._value!r}>"


class CompoundNode(Node):
    """Term that owns an ordered collection of child terms."""

    @property
    def children(self) -> Tuple[Node, ...]:
        """Raw child nodes in wire order, including those of a failed decode."""
        self._check_alive()
        return tuple(self._children)

    def __len__(self) -> int:
        self._check_alive()
        return len(self._children)

    def __repr__(self) -> str:
        state = "released" if self._released else ("ok" if self._valid else "invalid")
        return f"<{self.schema!r} arity={self.arity} {state}>"


class TupleNode(CompoundNode):
    """Decoded FixedTuple or RepeatedTuple.

    Example:
        >>> point = session.parse(FixedTuple(Integer, ListOf(Float)))
        >>> point.get(0)        # scalar slot: a copy
        7
        >>> samples = point.get(1)  # compound slot: a handle
        >>> list(samples)
        [0.5, 1.5]
    """

    def slot_type(self, index: int) -> TermType:
        """Declared type of slot ``index``.

        Fixed tuples are bounds-checked against the declared field count,
        repeated tuples against the decoded element count.

        Raises:
            IndexError: If index is out of range
        """
        if isinstance(self.schema, FixedTuple):
            return self.schema.field(index)
        schema = cast(RepeatedTuple, self.schema)
        if not 0 <= index < len(self._children):
            raise IndexError(
                f"Tuple slot {index} out of range for decoded arity {len(self._children)}"
            )
        return schema.element

    def get(self, index: int) -> Any:
        """Slot ``index``: a copy for scalar slots, a handle for compound slots."""
        self._check_readable()
        slot = self.slot_type(index)
        return present(slot, self._children[index])

    def __getitem__(self, index: int) -> Any:
        return self.get(index)

    def __iter__(self) -> Iterator[Any]:
        self._check_readable()
        return (self.get(index) for index in range(len(self._children)))

    def canonical(self) -> Hashable:
        self._check_readable()
        return tuple(child.canonical() for child in self._children)

    def to_python(self) -> Tuple[Any, ...]:
        self._check_readable()
        return tuple(child.to_python() for child in self._children)


class ListNode(CompoundNode):
    """Decoded ListOf term.

    Iteration is forward-only and yields elements in wire order. Each call
    to iter() starts again from the first element; elements stay
    materialized, so the wire is never read again.
    """

    @property
    def element_type(self) -> TermType:
        """Declared element type."""
        return cast(ListOf, self.schema).element

    def __iter__(self) -> Iterator[Any]:
        self._check_readable()
        element = self.element_type
        return (present(element, child) for child in self._children)

    def canonical(self) -> Hashable:
        self._check_readable()
        return tuple(child.canonical() for child in self._children)

    def to_python(self) -> List[Any]:
        self._check_readable()
        return [child.to_python() for child in self._children]


class MapNode(CompoundNode, Mapping):
    """Decoded MapOf term.

    The node owns every decoded key and value, including entries whose key
    was repeated later on the wire. The exposed association keeps the last
    value for each key and iterates in the wire order of the winning entries.

    Lookups accept a plain Python value or a key node. Compound keys compare
    structurally: ``m[(1, "a")]`` finds the entry whose FixedTuple key holds
    ``1`` and ``"a"``.
    """

    def __init__(self, schema: TermType, arena: Arena) -> None:
        super().__init__(schema, arena)
        self._index: Dict[Hashable, Tuple[Node, Node]] = {}

    @property
    def children(self) -> Tuple[Node, ...]:
        """Raw key and value nodes in wire order: key, value, key, value, ...

        Each wire entry contributes two children, so a fully decoded map has
        ``2 * arity`` children (``len(children) // 2`` entries), including
        entries shadowed by a later duplicate key.
        """
        return super().children

    def __hash__(self) -> int:
        # Equal contents hash equal, matching Mapping equality
        return hash(self.canonical())

    @property
    def key_type(self) -> TermType:
        """Declared key type."""
        return cast(MapOf, self.schema).key

    @property
    def value_type(self) -> TermType:
        """Declared value type."""
        return cast(MapOf, self.schema).value

    def _associate(self, key: Node, value: Node) -> bool:
        """Insert an entry, last write wins.

        Returns:
            True if the key replaced an earlier entry
        """
        self._check_writable()
        canonical = key.canonical()
        replaced = self._index.pop(canonical, None) is not None
        self._index[canonical] = (key, value)
        return replaced

    def _lookup(self, key: Any) -> Node:
        self._check_readable()
        try:
            return self._index[freeze(key)][1]
        except (KeyError, TypeError):
            raise KeyError(key) from None

    def __getitem__(self, key: Any) -> Any:
        return present(self.value_type, self._lookup(key))

    def __iter__(self) -> Iterator[Any]:
        self._check_readable()
        key_type = self.key_type
        return (present(key_type, key) for key, _ in tuple(self._index.values()))

    def __len__(self) -> int:
        self._check_alive()
        return len(self._index)

    def canonical(self) -> Hashable:
        self._check_readable()
        return frozenset(
            (key.canonical(), value.canonical()) for key, value in self._index.values()
        )

    def to_python(self) -> Dict[Any, Any]:
        self._check_readable()
        result: Dict[Any, Any] = {}
        for key, value in self._index.values():
            if self.key_type.is_scalar:
                result[key.to_python()] = value.to_python()
            else:
                result[key.canonical()] = value.to_python()
        return result


class RecordNode(ScalarNode):
    """Decoded RecordOf term: a model built from owned tuple slots."""

    def canonical(self) -> Hashable:
        self._check_readable()
        return (
            cast(RecordOf, self.schema).model.__qualname__,
            tuple(child.canonical() for child in self._children),
        )
