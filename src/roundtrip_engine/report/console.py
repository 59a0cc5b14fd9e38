"""Human-readable console output for a verification run."""

from __future__ import annotations

import sys
import threading
from typing import Optional, Sequence, TextIO

from roundtrip_engine.core.types import (
    Chunk,
    ChunkCompleted,
    NullObserver,
    PrecisionMismatch,
    RunFailure,
    RunResult,
)


def format_progress(fraction: float) -> str:
    return f"Validating: {fraction * 100:.4f}% complete..."


def describe_range(max_integer: int, decimal_places: int) -> str:
    """``0.000000 to 999999999.999999`` style range label."""
    if decimal_places == 0:
        return f"0 to {max_integer - 1}"
    zeros = "0" * decimal_places
    nines = "9" * decimal_places
    return f"0.{zeros} to {max_integer - 1}.{nines}"


class ConsoleReporter(NullObserver):
    """Observer printing an in-place progress line and run summaries.

    ``on_progress`` is called from the progress ticker thread, every other
    callback from the coordinator thread; all writes share one lock.

    Args:
        max_integer: Upper bound shown in the start banner.
        decimal_places: Fractional digits shown in the start banner.
        stream: Output stream (default ``sys.stdout``).
        quiet: Only print the failure diagnostic.
    """

    def __init__(
        self,
        max_integer: int,
        decimal_places: int,
        stream: Optional[TextIO] = None,
        quiet: bool = False,
    ) -> None:
        self.max_integer = max_integer
        self.decimal_places = decimal_places
        self.stream = stream or sys.stdout
        self.quiet = quiet
        self._lock = threading.Lock()
        self._last_line = ""
        self._chunks: dict[int, Chunk] = {}

    # Callers hold self._lock.
    def _write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def _end_progress_line(self) -> None:
        if self._last_line:
            self._write("\n")
            self._last_line = ""

    def on_start(self, total_numbers: int, chunks: Sequence[Chunk]) -> None:
        self._chunks = {chunk.worker_id: chunk for chunk in chunks}
        if self.quiet:
            return
        with self._lock:
            self._write(
                f"Validating safe parsing of {total_numbers} numbers in range: "
                f"{describe_range(self.max_integer, self.decimal_places)}\n"
            )

    def on_progress(self, fraction: float) -> None:
        if self.quiet:
            return
        line = format_progress(fraction)
        with self._lock:
            padding = " " * len(self._last_line)
            self._write(f"\r{padding}\r{line}")
            self._last_line = line

    def on_chunk_completed(self, outcome: ChunkCompleted) -> None:
        if self.quiet:
            return
        with self._lock:
            self._end_progress_line()
            self._write(f"Worker completed chunk {outcome.start} to {outcome.end}\n")

    def on_failure(self, failure: RunFailure) -> None:
        if isinstance(failure, PrecisionMismatch):
            text = (
                f"{failure.describe()} "
                f"(expected text {failure.expected_text}, got {failure.actual_text}, "
                f"worker {failure.worker_id}, reason {failure.reason})\n"
            )
        else:
            text = f"{failure.describe()}\n"
        with self._lock:
            self._end_progress_line()
            self._write(text)

    def on_finish(self, result: RunResult) -> None:
        with self._lock:
            self._end_progress_line()
            if self.quiet:
                return
            self._write(f"Verification: {result.elapsed_sec:.3f}s\n")
            if result.succeeded:
                self._write(f"All tests passed: {result.total_numbers} numbers verified\n")
                self._write("100% of the range verified successfully\n")
            else:
                self._write(
                    f"Verification failed after {result.checked} of "
                    f"{result.total_numbers} numbers\n"
                )
