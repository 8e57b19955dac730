"""External Term Format tag bytes."""

from __future__ import annotations

import enum

VERSION_MAGIC = 131


class Tag(enum.IntEnum):
    """Leading byte of each encoded term handled by eiterm."""

    NEW_FLOAT_EXT = 70
    SMALL_INTEGER_EXT = 97
    INTEGER_EXT = 98
    FLOAT_EXT = 99
    SMALL_TUPLE_EXT = 104
    LARGE_TUPLE_EXT = 105
    NIL_EXT = 106
    STRING_EXT = 107
    LIST_EXT = 108
    BINARY_EXT = 109
    SMALL_BIG_EXT = 110
    LARGE_BIG_EXT = 111
    MAP_EXT = 116


def tag_name(value: int) -> str:
    """Human-readable name for a tag byte, known or not."""
    try:
        return Tag(value).name
    except ValueError:
        return f"tag {value}"
