"""Base record class and eiterm-specific Pydantic configuration.

This module provides the Record class that tuple-shaped messages inherit from.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    """Base class for records decoded from Erlang tuples.

    Each field maps to one tuple slot, in declaration order. The field
    annotation decides the slot's wire type; Pydantic constraints
    (``Field(ge=..., le=...)``, ``max_length=...`` and so on) are checked after
    the tuple is decoded.

    Example:
        >>> from pydantic import Field
        >>> class Reading(Record):
        ...     sensor: str
        ...     value: float
        ...     samples: list[int]
        ...     seq: int = Field(ge=0)

    An Erlang term ``{"probe-1", 21.5, [3, 4], 7}`` decodes into
    ``Reading(sensor="probe-1", value=21.5, samples=[3, 4], seq=7)``.
    """

    model_config = ConfigDict(
        # Decoded values are write-once
        frozen=True,
        # Forbid extra fields not defined in schema
        extra="forbid",
        strict=False,
    )
