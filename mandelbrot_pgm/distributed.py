"""
Distributed Mandelbrot: block decomposition by rows, one Gatherv at rank 0.

    mpiexec -n 8 python -m mandelbrot_pgm.distributed 512 -0.722 0.246 12 127

Rank 0 coordinates and computes nothing; ranks 1..size-1 each compute one
contiguous block of rows. Every rank parses the same command line, so the
geometry and the partition table are known everywhere without a broadcast.
"""
import sys

import numpy as np
from mpi4py import MPI

from mandelbrot_pgm.grid import USAGE, GridSpec, parse_args
from mandelbrot_pgm.mandelbrot_set import ITERATION_DTYPE, MandelbrotSet
from mandelbrot_pgm.partition import COORDINATOR, gather_layout, row_partition, worker_count
from mandelbrot_pgm.pgm import output_filename, write_pgm


def compute_distributed(comm, spec: GridSpec, mandelbrot_set: MandelbrotSet = None):
    """ Compute this rank's rows and gather the full grid at the coordinator.

    Returns the (N, N) iteration grid on rank 0 and None on the workers.
    """
    rank = comm.Get_rank()
    size = comm.Get_size()
    workers = worker_count(size)
    if workers < 1:
        raise ValueError(f"need at least 2 processes (1 coordinator + 1 worker), got {size}")
    if mandelbrot_set is None:
        mandelbrot_set = MandelbrotSet(max_iterations=spec.cutoff)

    n = spec.size
    part = row_partition(n, workers, rank)
    sendcounts, displs = gather_layout(n, size)

    if rank == COORDINATOR:
        local_pixels = np.empty(0, dtype=ITERATION_DTYPE)
        full_pixels = np.empty(n * n, dtype=ITERATION_DTYPE)
        recvbuf = [full_pixels, (sendcounts, displs)]
    else:
        local_pixels = mandelbrot_set.compute_rows(spec.geometry(), part.start_row, part.num_rows)
        full_pixels = None
        recvbuf = None

    comm.Gatherv(sendbuf=np.ascontiguousarray(local_pixels).reshape(-1), recvbuf=recvbuf,
                 root=COORDINATOR)

    if rank == COORDINATOR:
        return full_pixels.reshape((n, n))
    return None


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    comm = MPI.COMM_WORLD
    rank = comm.Get_rank()
    size = comm.Get_size()

    try:
        spec = parse_args(argv)
    except ValueError as exc:
        if rank == COORDINATOR:
            print(USAGE.format(prog="mandelbrot_mpi"), file=sys.stderr)
            print(f"Error: {exc}", file=sys.stderr)
        return 1

    if worker_count(size) < 1:
        if rank == COORDINATOR:
            print(f"Error: mandelbrot_mpi needs at least 2 processes "
                  f"(1 coordinator + workers), got {size}. "
                  f"Run it with: mpiexec -n <P> ...", file=sys.stderr)
        return 1

    t_deb = MPI.Wtime()
    pixels = compute_distributed(comm, spec)
    t_fin = MPI.Wtime()

    if rank != COORDINATOR:
        return 0

    print(f"[MPI] {worker_count(size)} workers, calcul: {t_fin - t_deb:.4f} s", flush=True)
    filename = output_filename(spec)
    try:
        write_pgm(filename, pixels, spec.cutoff)
    except OSError as exc:
        print(f"Error: could not write {filename}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
