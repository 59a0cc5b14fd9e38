"""Value codec: index -> decimal value -> fixed-point text -> float.

All functions are pure. Floats are native IEEE-754 doubles; rounding effects
are exactly what a run is probing, so nothing here tries to hide them.
"""

from __future__ import annotations

import json

# Largest integer n such that every integer in [0, n] is exactly representable
# as a double.
MAX_SAFE_INTEGER = 2**53 - 1


def total_numbers(max_integer: int, decimal_places: int) -> int:
    """Size of the index space for ``[0, max_integer)`` in ``10^-decimal_places`` steps."""
    return max_integer * 10**decimal_places - 1


def value_at(index: int, decimal_places: int) -> float:
    """Reconstruct the decimal value denoted by ``index``.

    ``intPart + fracPart / 10^decimal_places`` with integer division and modulo
    on the index. Defined for ``0 <= index < max_integer * 10^decimal_places``.
    """
    multiplier = 10**decimal_places
    int_part, frac_part = divmod(index, multiplier)
    return int_part + frac_part / multiplier


def format_fixed(value: float, decimal_places: int) -> str:
    """Fixed-point text with exactly ``decimal_places`` fractional digits."""
    return f"{value:.{decimal_places}f}"


def serialize(value: float, decimal_places: int) -> float:
    """Format ``value`` to fixed-point text and parse that text back.

    The result is the round-tripped candidate: it equals ``value`` only if the
    truncated canonical text is enough to reconstruct the double.
    """
    return float(format_fixed(value, decimal_places))


def transcode(serialized: float) -> float:
    """Pass a value through a JSON encode/decode cycle."""
    return json.loads(json.dumps(serialized))


def index_text(index: int, decimal_places: int) -> str:
    """Exact decimal text an index denotes, using integer arithmetic only.

    >>> index_text(9998, 2)
    '99.98'
    >>> index_text(7, 3)
    '0.007'
    """
    if decimal_places == 0:
        return str(index)
    int_part, frac_part = divmod(index, 10**decimal_places)
    return f"{int_part}.{frac_part:0{decimal_places}d}"


def max_safe_decimal_places(max_integer: int) -> int:
    """Largest ``d`` with ``max_integer * 10^d - 1 <= MAX_SAFE_INTEGER``.

    Returns -1 when even whole numbers below ``max_integer`` leave the safe
    integer range.
    """
    if max_integer - 1 > MAX_SAFE_INTEGER:
        return -1
    places = 0
    while max_integer * 10 ** (places + 1) - 1 <= MAX_SAFE_INTEGER:
        places += 1
    return places


__all__ = [
    "MAX_SAFE_INTEGER",
    "total_numbers",
    "value_at",
    "format_fixed",
    "serialize",
    "transcode",
    "index_text",
    "max_safe_decimal_places",
]
