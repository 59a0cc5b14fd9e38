from __future__ import annotations

import pickle

import pytest

from shared.error_codes import ErrorCode, error_category
from shared.exceptions import (
    InternalError,
    InvalidStateError,
    PrecisionMismatchError,
    RoundTripError,
    ValidationError,
    WorkerFaultError,
)


def test_str_includes_error_code() -> None:
    err = RoundTripError("boom", error_code=ErrorCode.INTERNAL_ERROR)
    assert str(err) == "[4000] boom"


@pytest.mark.parametrize(
    ("code", "category"),
    [
        (ErrorCode.OK, "OK"),
        (ErrorCode.INVALID_ARGUMENT, "VALIDATION"),
        (ErrorCode.TEXT_MISMATCH, "VERIFICATION"),
        (ErrorCode.DESERIALIZATION_FAILED, "IO"),
        (ErrorCode.INVARIANT_VIOLATED, "INTERNAL"),
        (ErrorCode.WORKER_CRASHED, "WORKER"),
        (9999, "UNKNOWN"),
    ],
)
def test_error_category(code: int, category: str) -> None:
    assert error_category(code) == category


def test_to_dict_shape() -> None:
    data = ValidationError("Invalid value", field="decimal_places").to_dict()

    assert data == {
        "ok": False,
        "error_code": 1000,
        "message": "Invalid value",
        "context": {"field": "decimal_places"},
        "category": "VALIDATION",
    }


@pytest.mark.parametrize(
    ("exc", "cls", "attrs"),
    [
        (ValidationError("bad", field="x"), ValidationError, {"field": "x"}),
        (InvalidStateError("again", state="running"), InvalidStateError, {"field": None}),
        (
            PrecisionMismatchError("drift", index=5_000, worker_id=2),
            PrecisionMismatchError,
            {"index": 5_000, "worker_id": 2},
        ),
        (
            WorkerFaultError("died", worker_id=3, exitcode=-9),
            WorkerFaultError,
            {"worker_id": 3, "exitcode": -9},
        ),
        (InternalError("bug"), InternalError, {}),
    ],
)
def test_from_dict_restores_subclass(exc: RoundTripError, cls: type, attrs: dict) -> None:
    restored = RoundTripError.from_dict(exc.to_dict())

    assert type(restored) is cls
    assert restored.message == exc.message
    assert restored.error_code == exc.error_code
    for key, value in attrs.items():
        assert getattr(restored, key) == value


def test_exceptions_survive_pickling() -> None:
    exc = PrecisionMismatchError("drift", index=7, worker_id=1, reason="text")
    restored = pickle.loads(pickle.dumps(exc))

    assert isinstance(restored, PrecisionMismatchError)
    assert restored.index == 7
    assert restored.context["reason"] == "text"
