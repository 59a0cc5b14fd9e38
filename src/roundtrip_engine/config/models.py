from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from roundtrip_engine.config.environment import default_worker_count
from roundtrip_engine.core.codec import total_numbers

DEFAULT_MAX_INTEGER = 1_000_000_000
DEFAULT_DECIMAL_PLACES = 6
DEFAULT_BATCH_SIZE = 10_000_000
PROGRESS_SCALE = 1_000_000
MAX_DECIMAL_PLACES = 20

CheckMode = Literal["platform", "canonical"]
StartMethod = Literal["spawn", "fork", "forkserver"]


class RunConfig(BaseModel):
    """Parameters of one verification run.

    Accepts both snake_case names and the camelCase aliases used by JSON
    configs (``maxInteger``, ``decimalPlaces``, ``workerCount``, ...).
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    max_integer: int = Field(DEFAULT_MAX_INTEGER, ge=1, alias="maxInteger")
    decimal_places: int = Field(
        DEFAULT_DECIMAL_PLACES, ge=0, le=MAX_DECIMAL_PLACES, alias="decimalPlaces"
    )
    worker_count: int = Field(
        default_factory=default_worker_count, ge=1, alias="workerCount"
    )

    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1, alias="batchSize")
    # Slots are int32 cells.
    progress_scale: int = Field(PROGRESS_SCALE, ge=1, le=2**31 - 1, alias="progressScale")
    tick_interval_sec: float = Field(1.0, gt=0, alias="tickIntervalSec")

    check_mode: CheckMode = Field("platform", alias="checkMode")
    cancel_on_failure: bool = Field(True, alias="cancelOnFailure")
    join_timeout_sec: float = Field(5.0, ge=0, alias="joinTimeoutSec")
    start_method: StartMethod = Field("spawn", alias="startMethod")

    # Forces a mismatch at this index to exercise the failure path end to end.
    fault_index: int | None = Field(None, ge=0, alias="faultIndex")

    @model_validator(mode="after")
    def _check_fault_index(self) -> "RunConfig":
        if self.fault_index is not None and self.fault_index >= self.total_numbers:
            raise ValueError(
                f"fault_index {self.fault_index} outside index space "
                f"[0, {self.total_numbers})"
            )
        return self

    @property
    def total_numbers(self) -> int:
        return total_numbers(self.max_integer, self.decimal_places)
