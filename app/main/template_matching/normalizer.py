"""
Normalizer: combines the correlation terms into NCC scores.

Per cell (terms already divided by N_s):

    local_var   = B - C^2
    denominator = std(T) * sqrt(local_var)
    score       = A / denominator

which is the Pearson correlation of the template and the window under it.
Near-constant windows or templates (std below the floor) get a
denominator of 1, so they score ~0 instead of blowing up to NaN/inf.
"""

import logging
from typing import Tuple
import numpy as np

from .correlator import CorrelationTerms
from .models import Statistics

logger = logging.getLogger(__name__)


def local_std(terms: CorrelationTerms) -> np.ndarray:
    """Standard deviation of the search window under the template, per cell."""
    variance = terms.energy - np.square(terms.local_mean)
    # Rounding can push a flat window slightly below zero
    np.maximum(variance, 0.0, out=variance)
    return np.sqrt(variance)


def normalize(terms: CorrelationTerms, template_stats: Statistics,
              search_shape: Tuple[int, int], floor: float = 0.002) -> np.ndarray:
    """
    Normalized correlation scores cropped to the search footprint.

    Args:
        terms: Correlation terms on the padded canvas
        template_stats: Statistics of the unpadded template (full-scale units)
        search_shape: Original (height, width) of the search raster
        floor: Suppression threshold for std values, fraction of full scale

    Returns:
        (height, width) float64 array of scores in approx. [-1, 1]

    Notes:
        - Negative scores are kept
        - Cells computed against padding past the search raster are dropped
    """
    window_std = local_std(terms)
    denominator = template_stats.std * window_std

    suppressed = window_std < floor
    if template_stats.std < floor:
        suppressed[...] = True
        logger.debug("Template std %.3g below floor %.3g, surface suppressed",
                     template_stats.std, floor)
    denominator[suppressed] = 1.0

    surface = terms.cross / denominator

    height, width = search_shape
    return np.array(surface[:height, :width], copy=True)
