# mandelbrot_compare: fuzzy pixel comparison of two graymaps (absolute error metric)
import sys

import numpy as np

from mandelbrot_pgm.pgm import read_pgm

USAGE = "Usage: mandelbrot_compare <reference.pgm> <candidate.pgm> [fuzz_percent]"
DEFAULT_FUZZ = 0.01


def absolute_error(reference: np.ndarray, candidate: np.ndarray,
                   fuzz: float = DEFAULT_FUZZ, max_value: int = 255) -> int:
    """ Number of pixels whose difference is larger than fuzz * max_value. """
    if reference.shape != candidate.shape:
        raise ValueError(f"image sizes differ: {reference.shape} vs {candidate.shape}")
    diff = np.abs(reference.astype(np.int64) - candidate.astype(np.int64))
    return int(np.count_nonzero(diff > fuzz * max_value))


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if len(argv) not in (2, 3):
        print(USAGE, file=sys.stderr)
        return 2

    try:
        fuzz = float(argv[2]) / 100. if len(argv) == 3 else DEFAULT_FUZZ
        reference, ref_max = read_pgm(argv[0])
        candidate, _ = read_pgm(argv[1])
        errors = absolute_error(reference, candidate, fuzz, max(ref_max, 1))
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(errors, file=sys.stderr)
    return 0 if errors == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
