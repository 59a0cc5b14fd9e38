from __future__ import annotations

import multiprocessing
import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

import pytest

# Ensure repository root and src/ are on sys.path so imports like
# `roundtrip_engine.*` and `shared.*` work across pytest/runner configurations.
_REPO_ROOT = Path(__file__).resolve().parents[1]
for _path in (_REPO_ROOT / "src", _REPO_ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

# Keep log files out of the repository; worker processes inherit the variable.
os.environ.setdefault("ROUNDTRIP_LOG_DIR", tempfile.mkdtemp(prefix="roundtrip-logs-"))

from roundtrip_engine.config import RunConfig
from roundtrip_engine.core.progress import ProgressBoard


@pytest.fixture
def make_config() -> Callable[..., RunConfig]:
    """Factory for small, fast run configs."""

    def _make(**overrides) -> RunConfig:
        base = {
            "max_integer": 100,
            "decimal_places": 2,
            "worker_count": 4,
            "tick_interval_sec": 0.05,
            "join_timeout_sec": 10.0,
        }
        base.update(overrides)
        return RunConfig(**base)

    return _make


@pytest.fixture
def board() -> ProgressBoard:
    """Single-slot in-process board with a small scale."""

    return ProgressBoard.allocate(1, scale=1_000, ctx=multiprocessing.get_context())
