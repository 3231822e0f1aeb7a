"""Peak extraction from a correlation surface."""

import numpy as np

from .errors import EmptyInputError
from .models import MatchResult


def find_peak(scores: np.ndarray, tolerance: float = 1.0 / 65535.0) -> MatchResult:
    """
    Locate the best match in a score grid.

    Args:
        scores: (H, W) correlation scores
        tolerance: Cells within this distance of the maximum count as ties

    Returns:
        MatchResult with the first tied cell in row-major order and the
        maximum score

    Raises:
        EmptyInputError: Empty score grid

    Notes:
        - Scan order is top-to-bottom, left-to-right, so ties resolve the
          same way on every run
        - NaN cells are ignored
    """
    scores = np.asarray(scores)
    if scores.size == 0:
        raise EmptyInputError("Correlation surface is empty")

    max_score = float(np.nanmax(scores))
    candidates = scores >= max_score - tolerance

    # argmax on a boolean grid returns the first True in row-major order
    row, column = np.unravel_index(int(np.argmax(candidates)), scores.shape)

    return MatchResult(int(row), int(column), max_score)
