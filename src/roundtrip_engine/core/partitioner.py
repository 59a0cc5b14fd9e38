from __future__ import annotations

from typing import List

from shared.error_codes import ErrorCode
from shared.exceptions import ValidationError

from .types import Chunk


def chunk_size(total_numbers: int, worker_count: int) -> int:
    """``ceil(total_numbers / worker_count)`` in integer arithmetic."""
    return -(-total_numbers // worker_count)


def partition(total_numbers: int, worker_count: int) -> List[Chunk]:
    """Split ``[0, total_numbers)`` into ``worker_count`` contiguous chunks.

    Chunk ``i`` covers ``[i * size, min((i + 1) * size, total_numbers))`` with
    ``size = ceil(total_numbers / worker_count)``. Always returns exactly
    ``worker_count`` chunks; trailing chunks are empty when the space does not
    fill every worker.

    Raises:
        ValidationError: On ``worker_count < 1`` or ``total_numbers < 0``.
    """
    if worker_count < 1:
        raise ValidationError(
            f"worker_count must be >= 1, got {worker_count}",
            field="worker_count",
            error_code=ErrorCode.INVALID_ARGUMENT,
        )
    if total_numbers < 0:
        raise ValidationError(
            f"total_numbers must be >= 0, got {total_numbers}",
            field="total_numbers",
            error_code=ErrorCode.INVALID_ARGUMENT,
        )

    size = chunk_size(total_numbers, worker_count)
    chunks: List[Chunk] = []
    for worker_id in range(worker_count):
        start = min(worker_id * size, total_numbers)
        end = min((worker_id + 1) * size, total_numbers)
        chunks.append(Chunk(worker_id=worker_id, start=start, end=end))
    return chunks
