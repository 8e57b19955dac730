"""Exception hierarchy for eiterm.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from EitermError for easy catching of any eiterm-specific error.
"""

from __future__ import annotations

import enum
from typing import Optional, Tuple, Union

PathItem = Union[int, str]


class DecodeFailure(enum.Enum):
    """Classification of a decode failure."""

    TYPE_MISMATCH = "type_mismatch"
    TRUNCATED = "truncated"
    ARITY_MISMATCH = "arity_mismatch"
    NESTED = "nested"
    CONSTRAINT = "constraint"


class EitermError(Exception):
    """Base exception for all eiterm errors."""

    pass


class SchemaError(EitermError):
    """Raised when a term schema declaration is invalid.

    Examples:
        - A schema slot is not a term type
        - Unsupported record field annotation
        - Record used as a map key
    """

    pass


class DecodeError(EitermError):
    """Raised when decoding a term from the wire fails.

    Attributes:
        kind: Failure classification
        position: Byte offset at which the failure was detected, if known
    """

    kind: DecodeFailure = DecodeFailure.TYPE_MISMATCH

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        super().__init__(message)
        self.position = position


class TypeMismatchError(DecodeError):
    """The wire tag at the cursor does not match the declared type.

    Also raised for integers that do not fit in a signed 64-bit value and
    for lists with an improper tail.
    """

    kind = DecodeFailure.TYPE_MISMATCH


class TruncatedError(DecodeError):
    """The buffer ends before the term (or its declared length) does."""

    kind = DecodeFailure.TRUNCATED


class ArityMismatchError(DecodeError):
    """A fixed tuple's wire arity differs from its declared field count."""

    kind = DecodeFailure.ARITY_MISMATCH

    def __init__(self, expected: int, actual: int, position: Optional[int] = None) -> None:
        super().__init__(f"Tuple arity mismatch: expected {expected}, got {actual}", position)
        self.expected = expected
        self.actual = actual


class ConstraintError(DecodeError):
    """A decoded record failed pydantic validation."""

    kind = DecodeFailure.CONSTRAINT


class NestedDecodeError(DecodeError):
    """A child term of a compound failed to decode.

    Raised once by the innermost compound; every enclosing compound prepends
    its own slot to ``path`` and re-raises the same instance.

    Attributes:
        root: The leaf error that started the failure
        path: Slot indices from the outermost compound down to the failed term.
            Map entries contribute the entry index followed by "key" or "value".
    """

    kind = DecodeFailure.NESTED

    def __init__(self, root: DecodeError, path: Tuple[PathItem, ...]) -> None:
        super().__init__(str(root), root.position)
        self.root = root
        self.path = path

    @property
    def root_kind(self) -> DecodeFailure:
        """Failure kind of the leaf error."""
        return self.root.kind

    def __str__(self) -> str:
        where = "/".join(str(item) for item in self.path)
        return f"Nested decode failure at {where}: {self.root}"


class SessionError(EitermError):
    """Raised when a session cannot be used for further parsing.

    Examples:
        - The version marker could not be decoded
        - A previous parse failed part-way, leaving the cursor indeterminate
        - The session has been closed
    """

    pass


class TermStateError(EitermError):
    """Raised when a decoded term is accessed in a state that forbids it."""

    pass


class ReleasedTermError(TermStateError):
    """The term (or one of its owners) has already been released."""

    pass


class IncompleteTermError(TermStateError):
    """The term's decode failed, so its contents are not trustworthy."""

    pass
