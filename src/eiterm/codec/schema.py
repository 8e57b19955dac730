"""Term schemas: the declared shape of an incoming term.

A schema is declared at the call site and fixed at definition time. Each
schema type carries a static classification (scalar or compound) that
decides whether decoded values are handed out by copy or by handle.

Example:
    >>> Reading = FixedTuple(String, ListOf(Float))
    >>> Reading.arity
    2
    >>> Reading.kind
    <TermKind.COMPOUND: 'compound'>
"""

from __future__ import annotations

import enum
from abc import ABC
from dataclasses import dataclass
from typing import Annotated, Any, ClassVar, Tuple, Type, get_args, get_origin

from pydantic.fields import FieldInfo

from ..exceptions import SchemaError
from ..models.base import Record


class TermKind(enum.Enum):
    """Static classification of a term type."""

    SCALAR = "scalar"
    COMPOUND = "compound"


class TermType(ABC):
    """Base class for all term schemas."""

    kind: ClassVar[TermKind]

    @property
    def is_scalar(self) -> bool:
        """True if decoded values are self-contained and returned by copy."""
        return self.kind is TermKind.SCALAR


@dataclass(frozen=True, repr=False)
class ScalarType(TermType):
    """A self-contained term decoded into a plain Python value."""

    kind: ClassVar[TermKind] = TermKind.SCALAR

    def __repr__(self) -> str:
        return type(self).__name__[: -len("Type")]


@dataclass(frozen=True, repr=False)
class IntegerType(ScalarType):
    """Signed 64-bit integer."""


@dataclass(frozen=True, repr=False)
class FloatType(ScalarType):
    """Double precision float."""


@dataclass(frozen=True, repr=False)
class StringType(ScalarType):
    """Byte string reinterpreted as text."""


@dataclass(frozen=True, repr=False)
class BinaryType(ScalarType):
    """Raw byte sequence."""


Integer = IntegerType()
Float = FloatType()
String = StringType()
Binary = BinaryType()


def as_schema(term: Any) -> TermType:
    """Coerce a schema argument to a TermType.

    Record subclasses are accepted in place of ``RecordOf(model)``.

    Raises:
        SchemaError: If the argument is not a schema
    """
    if isinstance(term, TermType):
        return term
    if isinstance(term, type) and issubclass(term, Record):
        return RecordOf(term)
    if isinstance(term, type) and issubclass(term, TermType):
        raise SchemaError(f"Expected a schema instance, got the class {term.__name__}")
    raise SchemaError(f"Not a term schema: {term!r}")


@dataclass(frozen=True, init=False)
class FixedTuple(TermType):
    """Tuple with N distinct declared slots.

    The wire arity must equal the number of declared fields. A single-field
    FixedTuple is a one-slot tuple, never a repeated tuple.
    """

    fields: Tuple[TermType, ...]
    kind: ClassVar[TermKind] = TermKind.COMPOUND

    def __init__(self, *fields: Any) -> None:
        object.__setattr__(self, "fields", tuple(as_schema(field) for field in fields))

    @property
    def arity(self) -> int:
        """Declared number of slots."""
        return len(self.fields)

    def field(self, index: int) -> TermType:
        """Declared type of slot ``index``.

        Raises:
            IndexError: If index is outside the declared slots
        """
        if not 0 <= index < len(self.fields):
            raise IndexError(f"Tuple slot {index} out of range for arity {len(self.fields)}")
        return self.fields[index]

    def __repr__(self) -> str:
        return f"FixedTuple({', '.join(repr(field) for field in self.fields)})"


@dataclass(frozen=True)
class RepeatedTuple(TermType):
    """Tuple of any arity whose elements all have the same declared type."""

    element: TermType
    kind: ClassVar[TermKind] = TermKind.COMPOUND

    def __post_init__(self) -> None:
        object.__setattr__(self, "element", as_schema(self.element))

    def __repr__(self) -> str:
        return f"RepeatedTuple({self.element!r})"


@dataclass(frozen=True)
class ListOf(TermType):
    """Proper list whose elements all have the same declared type."""

    element: TermType
    kind: ClassVar[TermKind] = TermKind.COMPOUND

    def __post_init__(self) -> None:
        object.__setattr__(self, "element", as_schema(self.element))

    def __repr__(self) -> str:
        return f"ListOf({self.element!r})"


@dataclass(frozen=True)
class MapOf(TermType):
    """Map with declared key and value types."""

    key: TermType
    value: TermType
    kind: ClassVar[TermKind] = TermKind.COMPOUND

    def __post_init__(self) -> None:
        key = as_schema(self.key)
        if isinstance(key, RecordOf):
            raise SchemaError(
                f"Record {key.model.__name__} cannot be a map key; use a FixedTuple key instead"
            )
        object.__setattr__(self, "key", key)
        object.__setattr__(self, "value", as_schema(self.value))

    def __repr__(self) -> str:
        return f"MapOf({self.key!r}, {self.value!r})"


@dataclass(frozen=True)
class RecordField:
    """One slot of a record schema.

    Attributes:
        name: Model field name
        term: Wire type of the slot
    """

    name: str
    term: TermType


@dataclass(frozen=True, init=False)
class RecordOf(TermType):
    """Tuple bound to a Record model, one slot per model field.

    Decoded records are self-contained model instances, so the schema is
    classified as scalar and values are returned by copy.
    """

    model: Type[Record]
    fields: Tuple[RecordField, ...]
    kind: ClassVar[TermKind] = TermKind.SCALAR

    def __init__(self, model: Type[Record]) -> None:
        if not (isinstance(model, type) and issubclass(model, Record)):
            raise SchemaError(f"RecordOf requires a Record subclass, got {model!r}")
        object.__setattr__(self, "model", model)
        object.__setattr__(self, "fields", _introspect(model))

    @property
    def arity(self) -> int:
        """Number of tuple slots (model fields)."""
        return len(self.fields)

    def __repr__(self) -> str:
        return f"RecordOf({self.model.__name__})"


def _introspect(model: Type[Record]) -> Tuple[RecordField, ...]:
    """Extract one RecordField per model field (Pydantic v2 API)."""
    fields = []
    for name, field_info in model.model_fields.items():
        fields.append(RecordField(name=name, term=_field_term(model, name, field_info)))
    return tuple(fields)


def _field_term(model: Type[Record], name: str, field_info: FieldInfo) -> TermType:
    annotation = field_info.annotation
    if annotation is None:
        raise SchemaError(f"Field {model.__name__}.{name} has no type annotation")
    try:
        return schema_for(annotation)
    except SchemaError as e:
        raise SchemaError(f"Field {model.__name__}.{name}: {e}") from e


def schema_for(annotation: Any) -> TermType:
    """Map a Python type annotation to a term schema.

    Supported annotations:
        int -> Integer, float -> Float, str -> String, bytes -> Binary,
        list[X] -> ListOf, tuple[X, ...] -> RepeatedTuple,
        tuple[A, B] -> FixedTuple, dict[K, V] -> MapOf,
        Record subclass -> RecordOf, Annotated[X, ...] -> schema of X.
        A TermType instance is returned unchanged.

    Raises:
        SchemaError: If the annotation has no wire representation
    """
    if isinstance(annotation, TermType):
        return annotation

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        return schema_for(args[0])

    # Exact matches only: bool is an atom on the wire, not an integer
    if annotation is int:
        return Integer
    if annotation is float:
        return Float
    if annotation is str:
        return String
    if annotation is bytes:
        return Binary

    if isinstance(annotation, type) and issubclass(annotation, Record):
        return RecordOf(annotation)

    if origin is list and len(args) == 1:
        return ListOf(schema_for(args[0]))

    if origin is tuple and args:
        if len(args) == 2 and args[1] is Ellipsis:
            return RepeatedTuple(schema_for(args[0]))
        if Ellipsis in args:
            raise SchemaError(f"Unsupported variadic tuple annotation {annotation!r}")
        return FixedTuple(*(schema_for(arg) for arg in args))

    if origin is dict and len(args) == 2:
        return MapOf(schema_for(args[0]), schema_for(args[1]))

    raise SchemaError(
        f"Unsupported annotation {annotation!r}. "
        f"Supported: int, float, str, bytes, list, tuple, dict, Record."
    )
