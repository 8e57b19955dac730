"""Pydantic record modeling for eiterm.

This module provides the Record base class for binding Erlang tuples to
Pydantic models.
"""

from __future__ import annotations

from .base import Record

__all__ = [
    "Record",
]
