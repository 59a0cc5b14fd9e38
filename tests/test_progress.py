from __future__ import annotations

import multiprocessing
import threading
import time

import numpy as np
import pytest

from roundtrip_engine.core.progress import ProgressBoard, ProgressTicker


@pytest.fixture
def board3() -> ProgressBoard:
    return ProgressBoard.allocate(3, scale=100, ctx=multiprocessing.get_context())


def test_new_board_is_zeroed(board3: ProgressBoard) -> None:
    assert board3.worker_count == 3
    assert board3.snapshot().tolist() == [0, 0, 0]
    assert board3.overall() == 0.0


def test_slot_write_is_clamped(board3: ProgressBoard) -> None:
    slot = board3.slot(1)

    slot.write(250)
    assert slot.read() == 100
    slot.write(-5)
    assert slot.read() == 0


def test_slot_add_accumulates(board3: ProgressBoard) -> None:
    slot = board3.slot(0)
    slot.add(30)
    slot.add(30)
    assert slot.read() == 60
    slot.add(100)
    assert slot.read() == 100


def test_slots_are_independent(board3: ProgressBoard) -> None:
    board3.slot(0).write(100)
    board3.slot(2).write(50)

    assert board3.snapshot().tolist() == [100, 0, 50]
    assert board3.overall() == pytest.approx(0.5)


def test_overall_reaches_one_when_all_slots_full(board3: ProgressBoard) -> None:
    for worker_id in range(3):
        board3.slot(worker_id).write(board3.scale)
    assert board3.overall() == 1.0


def test_snapshot_is_a_copy(board3: ProgressBoard) -> None:
    snap = board3.snapshot()
    board3.slot(0).write(10)
    assert isinstance(snap, np.ndarray)
    assert snap[0] == 0


def test_empty_board_counts_as_complete() -> None:
    board = ProgressBoard.allocate(0, scale=100, ctx=multiprocessing.get_context())
    assert board.overall() == 1.0


def test_slot_out_of_range(board3: ProgressBoard) -> None:
    with pytest.raises(IndexError):
        board3.slot(3)
    with pytest.raises(IndexError):
        board3.slot(-1)


def test_notify_wakes_waiter(board3: ProgressBoard) -> None:
    woke: list[bool] = []
    ready = threading.Event()

    def _wait() -> None:
        ready.set()
        woke.append(board3.wait_for_update(timeout=5.0))

    waiter = threading.Thread(target=_wait)
    waiter.start()
    ready.wait(timeout=5.0)

    deadline = time.monotonic() + 5.0
    while waiter.is_alive() and time.monotonic() < deadline:
        board3.slot(0).notify()
        waiter.join(timeout=0.05)

    assert woke == [True]


def test_wait_for_update_times_out(board3: ProgressBoard) -> None:
    assert board3.wait_for_update(timeout=0.01) is False


def test_ticker_reports_and_emits_final_tick(board3: ProgressBoard) -> None:
    seen: list[float] = []
    ticker = ProgressTicker(board3, seen.append, interval_sec=0.01).start()

    for worker_id in range(3):
        board3.slot(worker_id).write(board3.scale)
    final = ticker.stop()

    assert final == 1.0
    assert seen[-1] == 1.0
    assert ticker.last_value == 1.0
    assert all(0.0 <= value <= 1.0 for value in seen)


def test_ticker_stop_is_idempotent(board3: ProgressBoard) -> None:
    seen: list[float] = []
    ticker = ProgressTicker(board3, seen.append, interval_sec=10.0).start()

    ticker.stop()
    ticker.stop()

    assert seen == [0.0]
