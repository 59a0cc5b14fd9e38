"""Per-chunk verification loop."""

from __future__ import annotations

from typing import Any, Callable, Optional

from roundtrip_engine.config.models import DEFAULT_BATCH_SIZE

from .codec import format_fixed, index_text, serialize, transcode, value_at
from .equivalence import Checker, check_equivalence, mismatch_reason
from .progress import ProgressSlot
from .types import Chunk, ChunkCancelled, ChunkCompleted, PrecisionMismatch

DEFAULT_CANCEL_POLL_INTERVAL = 1 << 16


class ChunkVerifier:
    """Verify every index of one chunk, fail-fast on the first mismatch.

    Args:
        chunk: Index interval to verify.
        decimal_places: Fixed fractional digit count.
        slot: Progress slot owned by this worker.
        batch_size: Consecutive successes between progress flushes.
        checker: ``(original, serialized, deserialized, decimal_places) -> bool``.
        check_mode: ``"canonical"`` additionally compares against the exact
            text of the index.
        fault_index: Index at which a mismatch is forced (self-test).
        cancel_event: Shared event; when set the chunk stops early.
        cancel_poll_interval: Indices between two checks of ``cancel_event``.
        on_flush: Optional hook called with the slot value after each flush.
    """

    def __init__(
        self,
        chunk: Chunk,
        decimal_places: int,
        slot: ProgressSlot,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        checker: Checker = check_equivalence,
        check_mode: str = "platform",
        fault_index: Optional[int] = None,
        cancel_event: Any = None,
        cancel_poll_interval: int = DEFAULT_CANCEL_POLL_INTERVAL,
        on_flush: Optional[Callable[[int], None]] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if cancel_poll_interval < 1:
            raise ValueError("cancel_poll_interval must be >= 1")
        self.chunk = chunk
        self.decimal_places = decimal_places
        self.slot = slot
        self.batch_size = batch_size
        self.checker = checker
        self.canonical = check_mode == "canonical"
        self.fault_index = fault_index
        self.cancel_event = cancel_event
        self.cancel_poll_interval = cancel_poll_interval
        self.on_flush = on_flush

    @property
    def worker_id(self) -> int:
        return self.chunk.worker_id

    def run(self) -> ChunkCompleted | PrecisionMismatch | ChunkCancelled:
        start, end = self.chunk.start, self.chunk.end
        total = end - start
        if total <= 0:
            self._flush(self.slot.scale)
            return ChunkCompleted(self.worker_id, start, end, checked=0)

        places = self.decimal_places
        scale = self.slot.scale
        checker = self.checker
        canonical = self.canonical
        fault_index = self.fault_index
        batch_size = self.batch_size
        poll = self.cancel_poll_interval if self.cancel_event is not None else 0

        batch = 0
        for index in range(start, end):
            value = value_at(index, places)
            serialized = serialize(value, places)
            deserialized = transcode(serialized)

            if (
                index == fault_index
                or not checker(value, serialized, deserialized, places)
                or (canonical and format_fixed(value, places) != index_text(index, places))
            ):
                return self._mismatch(index, value, serialized, deserialized)

            batch += 1
            done = index - start + 1
            if batch == batch_size:
                self._flush(done * scale // total)
                batch = 0
            if poll and done % poll == 0 and self.cancel_event.is_set():
                return ChunkCancelled(self.worker_id, start, end, checked=done)

        if batch > 0:
            self.slot.add(scale - self.slot.read())
            self._notify()
        return ChunkCompleted(self.worker_id, start, end, checked=total)

    def _flush(self, value: int) -> None:
        self.slot.write(value)
        self._notify()

    def _notify(self) -> None:
        self.slot.notify()
        if self.on_flush is not None:
            self.on_flush(self.slot.read())

    def _mismatch(
        self, index: int, value: float, serialized: float, deserialized: float
    ) -> PrecisionMismatch:
        places = self.decimal_places
        if index == self.fault_index:
            reason = "forced"
        else:
            reason = mismatch_reason(index, value, serialized, deserialized, places)
            if reason == "none":
                reason = "checker"
        return PrecisionMismatch(
            worker_id=self.worker_id,
            index=index,
            value=value,
            serialized=serialized,
            deserialized=deserialized,
            expected_text=index_text(index, places),
            actual_text=format_fixed(serialized, places),
            reason=reason,
        )
