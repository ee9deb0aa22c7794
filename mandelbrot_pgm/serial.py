# mandelbrot_serial
import sys
from time import time

import numpy as np

from mandelbrot_pgm.grid import USAGE, GridSpec, parse_args
from mandelbrot_pgm.mandelbrot_set import MandelbrotSet
from mandelbrot_pgm.pgm import output_filename, write_pgm


def compute_serial(spec: GridSpec, mandelbrot_set: MandelbrotSet = None) -> np.ndarray:
    if mandelbrot_set is None:
        mandelbrot_set = MandelbrotSet(max_iterations=spec.cutoff)
    return mandelbrot_set.compute_rows(spec.geometry(), 0, spec.size)


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    try:
        spec = parse_args(argv)
    except ValueError as exc:
        print(USAGE.format(prog="mandelbrot_serial"), file=sys.stderr)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    deb = time()
    pixels = compute_serial(spec)
    fin = time()
    print(f"[Serial] calcul: {fin - deb:.4f} s", flush=True)

    filename = output_filename(spec)
    try:
        write_pgm(filename, pixels, spec.cutoff)
    except OSError as exc:
        print(f"Error: could not write {filename}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
