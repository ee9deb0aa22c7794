import re

import numpy as np

from mandelbrot_pgm.grid import GridSpec

_HEADER = re.compile(rb"P5\s+(\d+)\s+(\d+)\s+(\d+)\s")


def output_filename(spec: GridSpec) -> str:
    return (f"mandel_{spec.size}_{spec.x_center:.3f}_{spec.y_center:.3f}"
            f"_{spec.zoom:.3f}_{spec.cutoff}.pgm")


def write_pgm(filename: str, grid: np.ndarray, max_value: int) -> None:
    """ Write grid as a binary graymap, one byte per pixel, top row first.

    Counts above 255 are truncated modulo 256 like a C cast to unsigned char,
    while the header keeps max_value as given.
    """
    height, width = grid.shape
    samples = np.ascontiguousarray(grid).astype(np.uint8)
    with open(filename, "wb") as out:
        out.write(f"P5\n{width} {height}\n{max_value}\n".encode("ascii"))
        out.write(samples.tobytes())


def read_pgm(filename: str):
    with open(filename, "rb") as f:
        data = f.read()

    header = _HEADER.match(data)
    if header is None:
        raise ValueError(f"{filename}: not a binary graymap")
    width, height, max_value = (int(v) for v in header.groups())

    # Samples are always single bytes, even when max_value exceeds 255.
    pixels = np.frombuffer(data, dtype=np.uint8, offset=header.end())
    if pixels.size != width * height:
        raise ValueError(f"{filename}: expected {width * height} samples, got {pixels.size}")
    return pixels.reshape((height, width)), max_value
