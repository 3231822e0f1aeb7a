"""
Padding and statistics for the correlation pipeline.

Both rasters are brought onto one common working canvas before any
transform is taken:
- search raster L padded with its own mean (no artificial edge energy)
- zero-mean template T' = T - mean(T), zero padded, at the origin corner
- unit mask U: full scale over the template footprint, zero elsewhere

All samples are expressed in full-scale units (float64, 1.0 = full scale).
Statistics are taken once, on the unpadded rasters, and reused by every
later stage.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Tuple
import numpy as np

from .config import PaddingPolicy
from .errors import DimensionError, EmptyInputError
from .models import Raster, Statistics

logger = logging.getLogger(__name__)


@dataclass
class PaddedOperands:
    """
    Inputs of the three correlation terms, all of shape padded_shape.

    Attributes:
        search: L padded with mean(L)
        search_zero_mean: L - mean(L), zero outside the original footprint
        template_zero_mean: T - mean(T) at the origin corner, zero elsewhere
        unit_mask: 1.0 over the template footprint, zero elsewhere
        search_stats: Statistics of the unpadded search raster
        template_stats: Statistics of the unpadded template
        search_shape: Original (height, width) of the search raster
        template_shape: Original (height, width) of the template
        padded_shape: Working canvas (height, width)
    """
    search: np.ndarray
    search_zero_mean: np.ndarray
    template_zero_mean: np.ndarray
    unit_mask: np.ndarray
    search_stats: Statistics
    template_stats: Statistics
    search_shape: Tuple[int, int]
    template_shape: Tuple[int, int]
    padded_shape: Tuple[int, int]


def _round_up_even(n: int) -> int:
    return n + (n % 2)


def padded_size(search_shape: Tuple[int, int], policy: PaddingPolicy = None) -> Tuple[int, int]:
    """
    Working canvas size for a search raster.

    Args:
        search_shape: (height, width) of the search raster
        policy: Even/square rounding policy (defaults: both on)

    Returns:
        (height, width) of the padded canvas

    Notes:
        - Each side is rounded up to the next even integer
        - A non-square canvas is then raised to max(height, width) on both sides
    """
    policy = policy or PaddingPolicy()
    height, width = search_shape

    if policy.round_to_even:
        height, width = _round_up_even(height), _round_up_even(width)
    if policy.square and height != width:
        height = width = max(height, width)

    return height, width


def validate_pair(template: Raster, search: Raster):
    """
    Check the template/search preconditions before any work is done.

    Raises:
        EmptyInputError: Either raster has zero area
        DimensionError: Template larger than search in either axis
    """
    if template.is_empty:
        raise EmptyInputError(f"Template has zero area: {template.shape}")
    if search.is_empty:
        raise EmptyInputError(f"Search raster has zero area: {search.shape}")

    if template.height > search.height or template.width > search.width:
        raise DimensionError(
            f"Template {template.width}x{template.height} does not fit inside "
            f"search raster {search.width}x{search.height}"
        )


def _pad_to(array: np.ndarray, shape: Tuple[int, int], fill: float) -> np.ndarray:
    """Extend array at the bottom/right to shape with a constant fill."""
    pad_rows = shape[0] - array.shape[0]
    pad_cols = shape[1] - array.shape[1]
    return np.pad(array, ((0, pad_rows), (0, pad_cols)),
                  mode='constant', constant_values=fill)


def prepare_operands(template: Raster, search: Raster,
                     policy: PaddingPolicy = None) -> PaddedOperands:
    """
    Pad both rasters and compute their statistics.

    Args:
        template: Template raster T
        search: Search raster L

    Returns:
        PaddedOperands ready for correlation

    Raises:
        EmptyInputError, DimensionError: see validate_pair()
    """
    validate_pair(template, search)

    shape = padded_size(search.shape, policy)

    search_data = search.normalized()
    search_stats = Statistics.of(search_data)
    padded_search = _pad_to(search_data, shape, search_stats.mean)
    search_zero_mean = _pad_to(search_data - search_stats.mean, shape, 0.0)

    template_data = template.normalized()
    template_stats = Statistics.of(template_data)
    template_zero_mean = _pad_to(template_data - template_stats.mean, shape, 0.0)

    unit_mask = _pad_to(np.ones(template.shape, dtype=np.float64), shape, 0.0)

    logger.debug("Padded search %s and template %s to %s (search mean %.4f, template std %.4f)",
                 search.shape, template.shape, shape, search_stats.mean, template_stats.std)

    return PaddedOperands(
        search=padded_search,
        search_zero_mean=search_zero_mean,
        template_zero_mean=template_zero_mean,
        unit_mask=unit_mask,
        search_stats=search_stats,
        template_stats=template_stats,
        search_shape=search.shape,
        template_shape=template.shape,
        padded_shape=shape,
    )
