"""Exception kinds raised by the heaps and the incremental search.

Every error subclasses the matching builtin as well, so callers that already
catch ``IndexError``/``KeyError``/``ValueError`` keep working.
"""

from __future__ import annotations

__all__ = [
    "HeapError",
    "EmptyError",
    "DuplicateError",
    "NotFoundError",
    "HeapOrderError",
    "InvalidDimensionError",
]


class HeapError(Exception):
    """Base class for all heap errors."""


class EmptyError(HeapError, IndexError):
    """Peek or extract on a heap with no elements."""


class DuplicateError(HeapError, KeyError):
    """Insert (or key change) onto a value an indexed heap already tracks."""


class NotFoundError(HeapError, KeyError):
    """Operation on a value an indexed heap does not track."""


class HeapOrderError(HeapError, ValueError):
    """``decrease_key``/``increase_key`` called against the direction of the change."""


class InvalidDimensionError(ValueError):
    """Bad dimension count, subdivision count, wrap flags or coordinate length."""
