from __future__ import annotations

import queue

import pytest

from roundtrip_engine.core.progress import ProgressBoard
from roundtrip_engine.core.types import (
    Chunk,
    ChunkCompleted,
    PrecisionMismatch,
    WorkerCrashed,
)
from roundtrip_engine.core.worker import ChunkTask, run_chunk_worker
from shared.error_codes import ErrorCode
from shared.exceptions import RoundTripError, ValidationError


def _boom(original: float, serialized: float, deserialized: float, places: int) -> bool:
    raise RuntimeError("checker exploded")


def _invalid(original: float, serialized: float, deserialized: float, places: int) -> bool:
    raise ValidationError("bad input", field="original")


def test_fault_in_chunk_only_inside_chunk() -> None:
    chunk = Chunk(worker_id=1, start=100, end=200)
    assert ChunkTask(chunk, 2, 10, fault_index=150).fault_in_chunk() == 150
    assert ChunkTask(chunk, 2, 10, fault_index=200).fault_in_chunk() is None
    assert ChunkTask(chunk, 2, 10).fault_in_chunk() is None


def test_worker_posts_exactly_one_outcome(board: ProgressBoard) -> None:
    outbox: queue.Queue = queue.Queue()
    task = ChunkTask(Chunk(0, 0, 500), decimal_places=2, batch_size=100)

    run_chunk_worker(task, board.slot(0), outbox)

    assert outbox.get_nowait() == ChunkCompleted(0, 0, 500, checked=500)
    assert outbox.empty()


def test_worker_reports_forced_mismatch(board: ProgressBoard) -> None:
    outbox: queue.Queue = queue.Queue()
    task = ChunkTask(Chunk(0, 0, 500), decimal_places=2, batch_size=100, fault_index=42)

    run_chunk_worker(task, board.slot(0), outbox)

    outcome = outbox.get_nowait()
    assert isinstance(outcome, PrecisionMismatch)
    assert outcome.index == 42


def test_worker_crash_is_reported_then_reraised(board: ProgressBoard) -> None:
    outbox: queue.Queue = queue.Queue()
    task = ChunkTask(Chunk(3, 0, 10), decimal_places=2, batch_size=100, checker=_boom)

    with pytest.raises(RuntimeError):
        run_chunk_worker(task, board.slot(0), outbox)

    outcome = outbox.get_nowait()
    assert isinstance(outcome, WorkerCrashed)
    assert outcome.worker_id == 3
    assert outcome.error["error_code"] == int(ErrorCode.WORKER_CRASHED)
    assert "RuntimeError: checker exploded" in outcome.error["message"]


def test_worker_crash_keeps_structured_error(board: ProgressBoard) -> None:
    outbox: queue.Queue = queue.Queue()
    task = ChunkTask(Chunk(0, 0, 10), decimal_places=2, batch_size=100, checker=_invalid)

    with pytest.raises(ValidationError):
        run_chunk_worker(task, board.slot(0), outbox)

    outcome = outbox.get_nowait()
    restored = RoundTripError.from_dict(dict(outcome.error))
    assert isinstance(restored, ValidationError)
    assert restored.field == "original"
