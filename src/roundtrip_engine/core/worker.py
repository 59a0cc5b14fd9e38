"""Worker process entry point.

The worker verifies exactly one chunk and posts exactly one terminal outcome
on the outbox queue. It never touches another worker's progress slot.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional

from shared.error_codes import ErrorCode
from shared.exceptions import RoundTripError

from roundtrip_engine.logging import get_log_service

from .equivalence import Checker, check_equivalence
from .progress import ProgressSlot
from .types import Chunk, ChunkCompleted, PrecisionMismatch, WorkerCrashed
from .verifier import DEFAULT_CANCEL_POLL_INTERVAL, ChunkVerifier


@dataclass(frozen=True)
class ChunkTask:
    """Everything a worker process needs besides the shared handles.

    ``checker`` must be picklable by reference (a module-level function) when
    the spawn start method is used.
    """

    chunk: Chunk
    decimal_places: int
    batch_size: int
    check_mode: str = "platform"
    fault_index: Optional[int] = None
    checker: Checker = check_equivalence
    cancel_poll_interval: int = DEFAULT_CANCEL_POLL_INTERVAL

    def fault_in_chunk(self) -> Optional[int]:
        if self.fault_index is not None and self.fault_index in self.chunk:
            return self.fault_index
        return None


def run_chunk_worker(
    task: ChunkTask,
    slot: ProgressSlot,
    outbox: Any,
    cancel_event: Any = None,
) -> None:
    """Process target: verify ``task.chunk`` and report the outcome on ``outbox``.

    An uncaught exception is reported as :class:`WorkerCrashed` and then
    re-raised so the process also exits with a non-zero code.
    """
    chunk = task.chunk
    log = get_log_service(f"worker-{chunk.worker_id}")
    log.log_system(
        f"Chunk {chunk.start} to {chunk.end} ({len(chunk)} indices) started", level="DEBUG"
    )
    started = time.perf_counter()

    try:
        verifier = ChunkVerifier(
            chunk,
            task.decimal_places,
            slot,
            batch_size=task.batch_size,
            checker=task.checker,
            check_mode=task.check_mode,
            fault_index=task.fault_in_chunk(),
            cancel_event=cancel_event,
            cancel_poll_interval=task.cancel_poll_interval,
        )
        outcome = verifier.run()
    except Exception as exc:
        log.log_exception(f"Worker {chunk.worker_id} crashed", exc)
        if isinstance(exc, RoundTripError):
            error = exc.to_dict()
        else:
            error = RoundTripError(
                f"{type(exc).__name__}: {exc}",
                error_code=ErrorCode.WORKER_CRASHED,
                context={"exception": repr(exc)},
            ).to_dict()
        outbox.put(WorkerCrashed(worker_id=chunk.worker_id, error=error))
        raise

    elapsed = time.perf_counter() - started
    if isinstance(outcome, PrecisionMismatch):
        log.log_system(outcome.describe(), level="ERROR")
    elif isinstance(outcome, ChunkCompleted):
        log.log_system(
            f"Chunk {chunk.start} to {chunk.end} verified in {elapsed:.2f}s"
        )
    else:
        log.log_system(
            f"Chunk {chunk.start} to {chunk.end} cancelled after {outcome.checked} indices",
            level="WARNING",
        )
    outbox.put(outcome)
