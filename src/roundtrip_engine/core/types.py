from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Mapping, Protocol, Sequence, TypeAlias

from shared.error_codes import ErrorCode
from shared.exceptions import InternalError, PrecisionMismatchError, WorkerFaultError

# --- Index space ---


@dataclass(frozen=True)
class Chunk:
    """Half-open index interval ``[start, end)`` owned by one worker."""

    worker_id: int
    start: int
    end: int

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.start <= index < self.end


# --- Verification outcomes (worker -> coordinator) ---


class OutcomeKind(str, enum.Enum):
    COMPLETED = "completed"
    MISMATCH = "mismatch"
    CANCELLED = "cancelled"
    CRASHED = "crashed"


@dataclass(frozen=True)
class ChunkCompleted:
    """Every index of the chunk passed."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.COMPLETED

    worker_id: int
    start: int
    end: int
    checked: int

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, **asdict(self)}


@dataclass(frozen=True)
class PrecisionMismatch:
    """First index of a chunk whose round trip did not reproduce the value."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.MISMATCH

    worker_id: int
    index: int
    value: float
    serialized: float
    deserialized: float
    expected_text: str
    actual_text: str
    reason: str = "text"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, **asdict(self)}

    def describe(self) -> str:
        return (
            f"Error detected at index {self.index} (value {self.value!r}). "
            f"Serialized: {self.serialized!r}, Deserialized: {self.deserialized!r}"
        )

    def to_exception(self) -> PrecisionMismatchError:
        code = {
            "transcode": ErrorCode.TRANSCODE_MISMATCH,
            "text": ErrorCode.TEXT_MISMATCH,
        }.get(self.reason, ErrorCode.PRECISION_MISMATCH)
        return PrecisionMismatchError(
            self.describe(),
            index=self.index,
            worker_id=self.worker_id,
            error_code=code,
            value=self.value,
            serialized=self.serialized,
            deserialized=self.deserialized,
            expected_text=self.expected_text,
            actual_text=self.actual_text,
            reason=self.reason,
        )


@dataclass(frozen=True)
class ChunkCancelled:
    """The chunk stopped early because the run was cancelled."""

    kind: ClassVar[OutcomeKind] = OutcomeKind.CANCELLED

    worker_id: int
    start: int
    end: int
    checked: int

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, **asdict(self)}


@dataclass(frozen=True)
class WorkerCrashed:
    """A worker raised instead of producing a verification outcome.

    ``error`` is ``RoundTripError.to_dict()`` output so it survives pickling
    regardless of the original exception type.
    """

    kind: ClassVar[OutcomeKind] = OutcomeKind.CRASHED

    worker_id: int
    error: Mapping[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "worker_id": self.worker_id, "error": dict(self.error)}


Outcome: TypeAlias = ChunkCompleted | PrecisionMismatch | ChunkCancelled | WorkerCrashed


@dataclass(frozen=True)
class WorkerFault:
    """A worker process ended without a usable terminal outcome or exited non-zero."""

    worker_id: int
    exitcode: int | None
    message: str
    error: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": "fault",
            "worker_id": self.worker_id,
            "exitcode": self.exitcode,
            "message": self.message,
            "error": dict(self.error),
        }

    def describe(self) -> str:
        return f"Worker {self.worker_id} stopped with exit code {self.exitcode}: {self.message}"

    def to_exception(self) -> WorkerFaultError:
        code = ErrorCode.WORKER_CRASHED if self.error else ErrorCode.WORKER_FAULT
        return WorkerFaultError(
            self.describe(),
            worker_id=self.worker_id,
            exitcode=self.exitcode,
            error_code=code,
            cause=dict(self.error),
        )


RunFailure: TypeAlias = PrecisionMismatch | WorkerFault


# --- Run lifecycle ---


class RunState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class RunResult:
    state: RunState
    total_numbers: int
    worker_count: int
    chunks: Sequence[Chunk]
    completed: list[ChunkCompleted] = field(default_factory=list)
    failure: RunFailure | None = None
    progress: float = 0.0
    elapsed_sec: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.SUCCEEDED

    @property
    def checked(self) -> int:
        return sum(outcome.checked for outcome in self.completed)

    def raise_for_failure(self) -> None:
        """Raise the failure as an exception; no-op for a successful run."""
        if self.failure is None:
            if not self.succeeded:
                raise InternalError(
                    f"Run ended in state {self.state.value} without a failure",
                    error_code=ErrorCode.INVARIANT_VIOLATED,
                    state=self.state.value,
                )
            return
        raise self.failure.to_exception()

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "ok": self.succeeded,
            "total_numbers": self.total_numbers,
            "checked": self.checked,
            "worker_count": self.worker_count,
            "chunks": [asdict(chunk) for chunk in self.chunks],
            "completed": [outcome.to_dict() for outcome in self.completed],
            "failure": self.failure.to_dict() if self.failure is not None else None,
            "progress": self.progress,
            "elapsed_sec": self.elapsed_sec,
        }


class RunObserver(Protocol):
    def on_start(self, total_numbers: int, chunks: Sequence[Chunk]) -> None: ...

    def on_progress(self, fraction: float) -> None: ...

    def on_chunk_completed(self, outcome: ChunkCompleted) -> None: ...

    def on_failure(self, failure: RunFailure) -> None: ...

    def on_finish(self, result: RunResult) -> None: ...


class NullObserver:
    """Observer that ignores every event; base class for partial observers."""

    def on_start(self, total_numbers: int, chunks: Sequence[Chunk]) -> None:
        pass

    def on_progress(self, fraction: float) -> None:
        pass

    def on_chunk_completed(self, outcome: ChunkCompleted) -> None:
        pass

    def on_failure(self, failure: RunFailure) -> None:
        pass

    def on_finish(self, result: RunResult) -> None:
        pass
