"""Shared-memory progress board.

One ``int32`` slot per worker, each holding that worker's completion fraction
scaled to ``[0, scale]``. A worker writes only its own slot; the coordinator
only reads. Reads are racy: a tick may see a slot mid-update from the previous
batch, which is fine for a progress indicator and nothing else depends on it.
"""

from __future__ import annotations

import ctypes
import multiprocessing
import threading
from typing import Any, Callable, Optional

import numpy as np

from roundtrip_engine.config.models import PROGRESS_SCALE


class ProgressBoard:
    """Fixed-size shared array of progress slots plus a wake-up condition."""

    def __init__(self, slots: Any, condition: Any, scale: int = PROGRESS_SCALE) -> None:
        self._slots = slots
        self._condition = condition
        self.scale = int(scale)

    @classmethod
    def allocate(
        cls,
        worker_count: int,
        scale: int = PROGRESS_SCALE,
        ctx: Optional[multiprocessing.context.BaseContext] = None,
    ) -> "ProgressBoard":
        """Allocate a zeroed board in shared memory for ``worker_count`` workers."""
        ctx = ctx or multiprocessing.get_context()
        slots = ctx.RawArray(ctypes.c_int32, int(worker_count))
        return cls(slots, ctx.Condition(), scale=scale)

    @property
    def worker_count(self) -> int:
        return len(self._slots)

    def slot(self, worker_id: int) -> "ProgressSlot":
        if not 0 <= worker_id < self.worker_count:
            raise IndexError(f"worker_id {worker_id} outside [0, {self.worker_count})")
        return ProgressSlot(self, worker_id)

    def _view(self) -> np.ndarray:
        return np.ctypeslib.as_array(self._slots)

    def snapshot(self) -> np.ndarray:
        """Copy of all slots at this instant."""
        return self._view().copy()

    def overall(self) -> float:
        """Overall completion in ``[0, 1]``."""
        if self.worker_count == 0:
            return 1.0
        total = int(self._view().sum(dtype=np.int64))
        fraction = total / (self.worker_count * self.scale)
        return min(max(fraction, 0.0), 1.0)

    def notify(self) -> bool:
        """Wake waiters without ever blocking the caller.

        Returns False when the condition was busy and the notification was
        dropped.
        """
        if not self._condition.acquire(False):
            return False
        try:
            self._condition.notify_all()
        finally:
            self._condition.release()
        return True

    def wait_for_update(self, timeout: Optional[float] = None) -> bool:
        """Block until a worker notifies or ``timeout`` elapses."""
        with self._condition:
            return self._condition.wait(timeout)


class ProgressSlot:
    """Write handle for exactly one slot of a :class:`ProgressBoard`."""

    def __init__(self, board: ProgressBoard, worker_id: int) -> None:
        self.board = board
        self.worker_id = worker_id

    @property
    def scale(self) -> int:
        return self.board.scale

    def read(self) -> int:
        return int(self.board._slots[self.worker_id])

    def write(self, value: int) -> None:
        self.board._slots[self.worker_id] = min(max(int(value), 0), self.board.scale)

    def add(self, delta: int) -> None:
        self.write(self.read() + int(delta))

    def notify(self) -> bool:
        return self.board.notify()


class ProgressTicker:
    """Calls ``callback(board.overall())`` every ``interval_sec`` on a daemon thread.

    The tick blocks only on its own timer. ``stop()`` emits one final tick so
    observers see the last state of the board.
    """

    def __init__(
        self,
        board: ProgressBoard,
        callback: Callable[[float], None],
        interval_sec: float = 1.0,
    ) -> None:
        self.board = board
        self.callback = callback
        self.interval_sec = float(interval_sec)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.last_value = 0.0

    def start(self) -> "ProgressTicker":
        self._thread = threading.Thread(
            target=self._loop, name="roundtrip-progress", daemon=True
        )
        self._thread.start()
        return self

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_sec):
            self.tick()

    def tick(self) -> float:
        self.last_value = self.board.overall()
        self.callback(self.last_value)
        return self.last_value

    def stop(self) -> float:
        """Stop the thread (idempotent) and emit a final tick."""
        if self._stop.is_set():
            return self.last_value
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=max(self.interval_sec, 1.0))
        return self.tick()
