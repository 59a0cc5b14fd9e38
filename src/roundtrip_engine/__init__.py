"""Exhaustive round-trip verification of fixed-point decimals."""

from .config import RunConfig, load_config, validate_config
from .core.coordinator import RunCoordinator, verify_range
from .core.types import RunResult, RunState

__all__ = [
    "RunConfig",
    "RunCoordinator",
    "RunResult",
    "RunState",
    "load_config",
    "validate_config",
    "verify_range",
]
