from __future__ import annotations

import numpy as np
import pytest

from roundtrip_engine.core.codec import serialize, transcode, value_at
from roundtrip_engine.core.equivalence import (
    check_canonical,
    check_equivalence,
    mismatch_reason,
)

# 10^14 + 0.01 is not representable; the nearest double prints as .02.
DRIFT_INDEX = 10_000_000_000_000_001


def _round_trip(index: int, places: int) -> tuple[float, float, float]:
    value = value_at(index, places)
    serialized = serialize(value, places)
    return value, serialized, transcode(serialized)


def test_identical_values_are_equivalent() -> None:
    assert check_equivalence(99.98, 99.98, 99.98, 2)


def test_transcode_drift_alone_is_detected() -> None:
    """Same fixed-point text, but the deserialized double differs."""
    drifted = float(np.float32(0.1))
    assert drifted != 0.1
    assert check_equivalence(0.1, 0.1, drifted, 2) is False
    assert mismatch_reason(0, 0.1, 0.1, drifted, 2) == "transcode"


def test_text_drift_alone_is_detected() -> None:
    """Transport is lossless, but the reparsed value prints differently."""
    assert check_equivalence(0.123, 0.12, 0.12, 3) is False
    assert mismatch_reason(123, 0.123, 0.12, 0.12, 3) == "text"


@pytest.mark.parametrize("index", [0, 1, 4_999, 5_000, 9_998])
def test_round_trip_small_range_passes(index: int) -> None:
    value, serialized, deserialized = _round_trip(index, 2)
    assert check_equivalence(value, serialized, deserialized, 2)
    assert check_canonical(index, value, serialized, deserialized, 2)
    assert mismatch_reason(index, value, serialized, deserialized, 2) == "none"


def test_platform_check_misses_construction_drift() -> None:
    value, serialized, deserialized = _round_trip(DRIFT_INDEX, 2)
    assert check_equivalence(value, serialized, deserialized, 2)


def test_canonical_check_catches_construction_drift() -> None:
    value, serialized, deserialized = _round_trip(DRIFT_INDEX, 2)
    assert check_canonical(DRIFT_INDEX, value, serialized, deserialized, 2) is False
    assert mismatch_reason(DRIFT_INDEX, value, serialized, deserialized, 2) == "canonical"
