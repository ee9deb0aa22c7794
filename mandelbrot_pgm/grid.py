import math
from dataclasses import dataclass

import numpy as np

USAGE = "Usage: {prog} <N> <x_center> <y_center> <zoom> <cutoff>"


@dataclass(frozen=True)
class GridSpec:
    size:     int
    x_center: float
    y_center: float
    zoom:     float
    cutoff:   int

    def geometry(self) -> "PlaneGeometry":
        return PlaneGeometry.from_spec(self)


@dataclass(frozen=True)
class PlaneGeometry:
    """ Maps pixel (x, y) of the square grid onto the complex plane.

    Pixel rows grow downward while the imaginary axis grows upward, so row 0
    sits at y_max and each row moves one step down.
    """
    size:                int
    dist_between_points: float
    x_min:               float
    y_max:               float

    @classmethod
    def from_spec(cls, spec: GridSpec) -> "PlaneGeometry":
        dist = 2.0 ** -spec.zoom
        length = dist * spec.size
        return cls(size=spec.size,
                   dist_between_points=dist,
                   x_min=spec.x_center - length / 2.0,
                   y_max=spec.y_center + length / 2.0)

    def to_plane(self, x: int, y: int) -> complex:
        return complex(x * self.dist_between_points + self.x_min,
                       self.y_max - y * self.dist_between_points)

    def real_axis(self) -> np.ndarray:
        return np.arange(self.size, dtype=np.double) * self.dist_between_points + self.x_min

    def imag_axis(self, start_row: int, num_rows: int) -> np.ndarray:
        rows = np.arange(start_row, start_row + num_rows, dtype=np.double)
        return self.y_max - rows * self.dist_between_points


def parse_args(argv) -> GridSpec:
    """ Parse the five positional launch parameters.

    Raises ValueError on wrong arity or on any value the computation cannot use.
    """
    if len(argv) != 5:
        raise ValueError(f"expected 5 arguments, got {len(argv)}")

    size = int(argv[0])
    x_center = float(argv[1])
    y_center = float(argv[2])
    zoom = float(argv[3])
    cutoff = int(argv[4])

    if size < 1:
        raise ValueError(f"grid size must be positive, got {size}")
    if cutoff < 1:
        raise ValueError(f"cutoff must be positive, got {cutoff}")
    if not all(math.isfinite(v) for v in (x_center, y_center, zoom)):
        raise ValueError("center and zoom must be finite numbers")

    spec = GridSpec(size, x_center, y_center, zoom, cutoff)
    try:
        geometry = spec.geometry()
    except OverflowError:
        raise ValueError(f"zoom {zoom} is out of range") from None
    if geometry.dist_between_points <= 0.0 or not math.isfinite(geometry.x_min + geometry.y_max):
        raise ValueError(f"zoom {zoom} is out of range")
    return spec
