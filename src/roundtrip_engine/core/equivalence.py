"""Equivalence predicates for a round-tripped value.

``check_equivalence`` runs two independent checks:

1. ``serialized == deserialized`` catches loss introduced by structured-data
   transport (the JSON cycle).
2. ``format_fixed(serialized) == format_fixed(original)`` catches a reparsed
   value that no longer prints like the original.

``check_canonical`` adds a third comparison against the exact text the index
denotes. The platform checks only compare a float against its own rounding, so
a value that was already off when it was built from the index passes them.
"""

from __future__ import annotations

from typing import Callable

from .codec import format_fixed, index_text

Checker = Callable[[float, float, float, int], bool]


def check_equivalence(
    original: float, serialized: float, deserialized: float, decimal_places: int
) -> bool:
    if serialized != deserialized:
        return False
    return format_fixed(serialized, decimal_places) == format_fixed(
        original, decimal_places
    )


def check_canonical(
    index: int,
    original: float,
    serialized: float,
    deserialized: float,
    decimal_places: int,
) -> bool:
    if not check_equivalence(original, serialized, deserialized, decimal_places):
        return False
    return format_fixed(original, decimal_places) == index_text(index, decimal_places)


def mismatch_reason(
    index: int,
    original: float,
    serialized: float,
    deserialized: float,
    decimal_places: int,
) -> str:
    """Name the first failing comparison, for diagnostics.

    Returns ``"transcode"``, ``"text"``, ``"canonical"`` or ``"none"``.
    """
    if serialized != deserialized:
        return "transcode"
    if format_fixed(serialized, decimal_places) != format_fixed(original, decimal_places):
        return "text"
    if format_fixed(original, decimal_places) != index_text(index, decimal_places):
        return "canonical"
    return "none"


__all__ = ["Checker", "check_equivalence", "check_canonical", "mismatch_reason"]
