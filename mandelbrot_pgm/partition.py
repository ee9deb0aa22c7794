"""
Static block partition of grid rows over the worker ranks.

Rank 0 is the coordinator and owns no rows. Ranks 1..W split the N rows in
rank order; the first N % W workers take one extra row. Every process derives
the same table from (N, W) alone, so no communication is needed to agree on it.
"""
from dataclasses import dataclass

import numpy as np

COORDINATOR = 0


@dataclass(frozen=True)
class RowPartition:
    start_row: int
    num_rows:  int

    @property
    def stop_row(self) -> int:
        return self.start_row + self.num_rows


def worker_count(size: int) -> int:
    return size - 1


def row_partition(n: int, workers: int, rank: int) -> RowPartition:
    if workers < 1:
        raise ValueError(f"at least one worker is required, got {workers}")
    if rank == COORDINATOR:
        return RowPartition(0, 0)
    if not 1 <= rank <= workers:
        raise ValueError(f"rank {rank} is outside [0, {workers}]")

    rows_per_worker, extra = divmod(n, workers)
    start = (rank - 1) * rows_per_worker + min(rank - 1, extra)
    num_rows = rows_per_worker + (1 if rank <= extra else 0)
    return RowPartition(start, num_rows)


def gather_layout(n: int, size: int):
    """ Per-rank element counts and displacements of an N x N gather at rank 0. """
    workers = worker_count(size)
    counts = np.zeros(size, dtype=np.int64)
    displs = np.zeros(size, dtype=np.int64)
    for rank in range(1, size):
        part = row_partition(n, workers, rank)
        counts[rank] = part.num_rows * n
        displs[rank] = part.start_row * n
    return counts, displs
