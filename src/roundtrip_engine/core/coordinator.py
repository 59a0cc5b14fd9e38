"""Run coordinator: partition, spawn, supervise, decide.

State machine per run::

    IDLE -> RUNNING -> SUCCEEDED
                    -> FAILED

``FAILED`` is entered on the first precision mismatch, the first crashed
worker, or a worker process that exits without having delivered a terminal
outcome. ``SUCCEEDED`` only once every worker reported ``ChunkCompleted`` and
every worker process exited with code 0.
"""

from __future__ import annotations

import multiprocessing
import queue
import time
from typing import Any, Dict, List, Optional

from shared.exceptions import InvalidStateError

from roundtrip_engine.config.models import RunConfig
from roundtrip_engine.logging import get_log_service

from .codec import max_safe_decimal_places
from .equivalence import Checker, check_equivalence
from .partitioner import partition
from .progress import ProgressBoard, ProgressTicker
from .types import (
    Chunk,
    ChunkCancelled,
    ChunkCompleted,
    NullObserver,
    PrecisionMismatch,
    RunFailure,
    RunObserver,
    RunResult,
    RunState,
    WorkerCrashed,
    WorkerFault,
)
from .worker import ChunkTask, run_chunk_worker

# Outcome queue poll timeout; bounds how late a silently dead worker is noticed.
_POLL_SEC = 0.2
_DRAIN_SEC = 0.1


class RunCoordinator:
    """Drive one verification run over ``config``'s full index space.

    Args:
        config: Run parameters.
        observer: Receives progress, chunk completions, the failure and the
            final result. Defaults to a no-op observer.
        checker: Equivalence predicate handed to every worker. Must be a
            module-level function when ``config.start_method`` is ``"spawn"``.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        observer: Optional[RunObserver] = None,
        checker: Checker = check_equivalence,
    ) -> None:
        self.config = config
        self.observer: RunObserver = observer or NullObserver()
        self.checker = checker
        self.state = RunState.IDLE
        self.log = get_log_service("coordinator")

        self.chunks: List[Chunk] = []
        self.board: Optional[ProgressBoard] = None
        self._ctx: Any = None
        self._outbox: Any = None
        self._cancel: Any = None
        self._processes: Dict[int, Any] = {}
        self._ticker: Optional[ProgressTicker] = None
        self._completed: Dict[int, ChunkCompleted] = {}
        self._failure: Optional[RunFailure] = None
        self._started_at = 0.0

    # ------------------------------------------------------------------ API

    def run(self) -> RunResult:
        """Run to a terminal state and return the result.

        Raises:
            InvalidStateError: If this coordinator already ran.
        """
        if self.state is not RunState.IDLE:
            raise InvalidStateError(
                f"Coordinator already in state {self.state.value}; create a new one per run",
                state=self.state.value,
            )
        self.start()
        try:
            self._supervise()
        finally:
            self._shutdown()

        result = self._result()
        self.log.log_system(
            f"Run {result.state.value}: {result.checked} of {result.total_numbers} "
            f"indices verified in {result.elapsed_sec:.2f}s"
        )
        self.observer.on_finish(result)
        return result

    def start(self) -> None:
        """Partition the index space and start one worker process per chunk."""
        if self.state is not RunState.IDLE:
            raise InvalidStateError("Run already started", state=self.state.value)

        cfg = self.config
        total = cfg.total_numbers
        self.chunks = partition(total, cfg.worker_count)

        safe_places = max_safe_decimal_places(cfg.max_integer)
        if cfg.decimal_places > safe_places:
            self.log.log_system(
                f"{cfg.decimal_places} decimal places exceed the safe integer range "
                f"for max_integer={cfg.max_integer} (safe: {safe_places}); "
                "precision mismatches are expected",
                level="WARNING",
            )

        self._ctx = multiprocessing.get_context(cfg.start_method)
        self.board = ProgressBoard.allocate(len(self.chunks), cfg.progress_scale, self._ctx)
        self._outbox = self._ctx.Queue()
        self._cancel = self._ctx.Event()

        self.log.log_system(
            f"Validating {total} numbers with {cfg.decimal_places} decimal places "
            f"on {len(self.chunks)} workers ({cfg.start_method})"
        )
        self.state = RunState.RUNNING
        self._started_at = time.perf_counter()
        self.observer.on_start(total, list(self.chunks))

        for chunk in self.chunks:
            task = ChunkTask(
                chunk=chunk,
                decimal_places=cfg.decimal_places,
                batch_size=cfg.batch_size,
                check_mode=cfg.check_mode,
                fault_index=cfg.fault_index,
                checker=self.checker,
            )
            process = self._ctx.Process(
                target=run_chunk_worker,
                args=(task, self.board.slot(chunk.worker_id), self._outbox, self._cancel),
                name=f"roundtrip-worker-{chunk.worker_id}",
                daemon=True,
            )
            process.start()
            self._processes[chunk.worker_id] = process

        self._ticker = ProgressTicker(
            self.board, self.observer.on_progress, cfg.tick_interval_sec
        ).start()

    # ------------------------------------------------------------ internals

    def _supervise(self) -> None:
        pending = set(self._processes)
        while pending:
            try:
                outcome = self._outbox.get(timeout=_POLL_SEC)
            except queue.Empty:
                outcome = None

            if outcome is not None:
                if self._handle(outcome, pending):
                    return
                continue

            for worker_id in sorted(pending):
                process = self._processes[worker_id]
                if process.exitcode is None:
                    continue
                # Exited: its queue feeder flushed before exit, so drain first.
                if self._drain(pending):
                    return
                if worker_id in pending:
                    self._fail(
                        WorkerFault(
                            worker_id=worker_id,
                            exitcode=process.exitcode,
                            message="exited without reporting an outcome",
                        )
                    )
                    return

        self.state = RunState.SUCCEEDED

    def _drain(self, pending: set) -> bool:
        while True:
            try:
                outcome = self._outbox.get(timeout=_DRAIN_SEC)
            except queue.Empty:
                return False
            if self._handle(outcome, pending):
                return True

    def _handle(self, outcome: Any, pending: set) -> bool:
        """Apply one outcome; True when the run reached ``FAILED``."""
        worker_id = outcome.worker_id
        pending.discard(worker_id)

        if isinstance(outcome, ChunkCompleted):
            self._completed[worker_id] = outcome
            self.log.log_system(
                f"Worker {worker_id} completed chunk {outcome.start} to {outcome.end}"
            )
            self.observer.on_chunk_completed(outcome)
            return False
        if isinstance(outcome, PrecisionMismatch):
            self._fail(outcome)
            return True
        if isinstance(outcome, WorkerCrashed):
            process = self._processes.get(worker_id)
            if process is not None:
                process.join(timeout=self.config.join_timeout_sec)
            self._fail(
                WorkerFault(
                    worker_id=worker_id,
                    exitcode=process.exitcode if process is not None else None,
                    message=str(outcome.error.get("message", "worker crashed")),
                    error=outcome.error,
                )
            )
            return True
        if isinstance(outcome, ChunkCancelled):
            # Only sent after cancellation, i.e. after the run already failed.
            self._fail(
                WorkerFault(
                    worker_id=worker_id,
                    exitcode=None,
                    message="chunk cancelled before a failure was recorded",
                )
            )
            return True

        self.log.log_system(f"Ignoring unknown outcome {outcome!r}", level="WARNING")
        return False

    def _fail(self, failure: RunFailure) -> None:
        self.state = RunState.FAILED
        self._failure = failure
        if self._ticker is not None:
            self._ticker.stop()
        self.log.log_system(failure.describe(), level="ERROR")
        self.observer.on_failure(failure)

    def _shutdown(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()

        if self.state is RunState.FAILED:
            if self.config.cancel_on_failure:
                self._cancel_workers()
            else:
                self.log.log_system(
                    "Leaving sibling workers running (cancel_on_failure=False)",
                    level="WARNING",
                )
        elif self.state is RunState.RUNNING:
            # Supervisor raised; never leave orphaned workers behind.
            self.state = RunState.FAILED
            self._cancel_workers()
        else:
            for process in self._processes.values():
                process.join(timeout=self.config.join_timeout_sec)
            self._check_exit_codes()

        if self._outbox is not None:
            self._outbox.close()
            if self.state is RunState.SUCCEEDED:
                self._outbox.join_thread()
            else:
                self._outbox.cancel_join_thread()

    def _check_exit_codes(self) -> None:
        """A reported completion does not count if the process then exited non-zero."""
        for worker_id, process in sorted(self._processes.items()):
            if process.exitcode not in (None, 0):
                self._fail(
                    WorkerFault(
                        worker_id=worker_id,
                        exitcode=process.exitcode,
                        message="exited with non-zero code after reporting completion",
                    )
                )
                return

    def _cancel_workers(self) -> None:
        self._cancel.set()
        deadline = time.monotonic() + self.config.join_timeout_sec
        for worker_id, process in self._processes.items():
            process.join(timeout=max(0.0, deadline - time.monotonic()))
            if process.is_alive():
                self.log.log_system(
                    f"Worker {worker_id} ignored cancellation; terminating", level="WARNING"
                )
                process.terminate()
                process.join(timeout=1.0)

    def _result(self) -> RunResult:
        elapsed = time.perf_counter() - self._started_at if self._started_at else 0.0
        progress = self._ticker.last_value if self._ticker is not None else 0.0
        return RunResult(
            state=self.state,
            total_numbers=self.config.total_numbers,
            worker_count=len(self.chunks),
            chunks=list(self.chunks),
            completed=[self._completed[k] for k in sorted(self._completed)],
            failure=self._failure,
            progress=progress,
            elapsed_sec=elapsed,
        )


def verify_range(
    config: RunConfig,
    *,
    observer: Optional[RunObserver] = None,
    checker: Checker = check_equivalence,
) -> RunResult:
    """Convenience wrapper: build a coordinator and run it."""
    return RunCoordinator(config, observer=observer, checker=checker).run()
