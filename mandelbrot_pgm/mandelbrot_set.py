from dataclasses import dataclass

import numpy as np

from mandelbrot_pgm.grid import PlaneGeometry

# Dtype of the iteration grid, also the element type of the MPI gather buffers.
ITERATION_DTYPE = np.int32


@dataclass
class MandelbrotSet:
    max_iterations: int
    escape_radius:  float = 2.0

    def __contains__(self, c: complex) -> bool:
        return self.count_iterations(c) == self.max_iterations

    def count_iterations(self, c: complex) -> int:
        """ Escape time of c: index of the first orbit point with |z| > radius.

        z starts at 0 and follows z <- z*z + c. Points still bounded after
        max_iterations steps return max_iterations.
        """
        z = 0j
        for iteration in range(self.max_iterations):
            if abs(z) > self.escape_radius:
                return iteration
            z = z*z + c
        return self.max_iterations

    def count_iterations_array(self, c: np.ndarray) -> np.ndarray:
        """ Vectorized count_iterations, element for element identical. """
        c = np.asarray(c, dtype=np.complex128)
        counts = np.zeros(c.shape, dtype=ITERATION_DTYPE)
        flat_c = c.reshape(-1)
        flat_counts = counts.reshape(-1)

        # Only the points that are still bounded keep iterating.
        active = np.arange(flat_c.size)
        z = np.zeros(flat_c.size, dtype=np.complex128)
        for _ in range(self.max_iterations):
            bounded = np.abs(z) <= self.escape_radius
            active = active[bounded]
            z = z[bounded]
            if active.size == 0:
                break
            z = z*z + flat_c[active]
            flat_counts[active] += 1
        return counts

    def compute_rows(self, geometry: PlaneGeometry, start_row: int, num_rows: int) -> np.ndarray:
        """ Iteration counts for rows [start_row, start_row + num_rows), shape (num_rows, N). """
        c = np.empty((num_rows, geometry.size), dtype=np.complex128)
        c.real[...] = geometry.real_axis()[np.newaxis, :]
        c.imag[...] = geometry.imag_axis(start_row, num_rows)[:, np.newaxis]
        return self.count_iterations_array(c)
