"""
Template Matching Data Models.

This module defines the data structures passed between pipeline stages:
- Raster: single-channel intensity grid with a known full scale
- Statistics: mean / standard deviation of a raster, computed once
- FrequencyGrid: two-channel (real, imaginary) transform of a padded raster
- CorrelationSurface: immutable grid of normalized correlation scores
- MatchResult: peak location and score

Coordinates are (row, column) with the origin at the top-left corner.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import cv2
import numpy as np

from .errors import DimensionError


def _infer_full_scale(dtype: np.dtype) -> float:
    """Full-scale sample value for a numpy dtype."""
    if dtype == np.bool_:
        return 1.0
    if np.issubdtype(dtype, np.integer):
        return float(np.iinfo(dtype).max)
    return 1.0


def _to_single_channel(array: np.ndarray) -> np.ndarray:
    """Reduce BGR, BGRA or gray+alpha data to one channel (alpha discarded)."""
    if array.ndim == 2:
        return array
    if array.ndim != 3:
        raise DimensionError(f"Expected 2-D or 3-D image array, got shape {array.shape}")

    channels = array.shape[2]
    if channels == 1:
        return array[:, :, 0]
    if channels == 2:
        # Gray + alpha
        return array[:, :, 0]
    if channels not in (3, 4):
        raise DimensionError(f"Unsupported channel count: {channels}")

    if array.dtype not in (np.uint8, np.uint16, np.float32):
        array = array.astype(np.float32)
    code = cv2.COLOR_BGR2GRAY if channels == 3 else cv2.COLOR_BGRA2GRAY
    return cv2.cvtColor(array, code)


@dataclass
class Raster:
    """
    Single-channel intensity raster.

    Attributes:
        data: (H, W) float64 samples in native units
        full_scale: Maximum representable sample value (255 for 8-bit, ...)

    Notes:
        - Owned by the caller; the pipeline only reads it
        - Pipeline stages work on normalized() samples in [0, 1]
    """
    data: np.ndarray
    full_scale: float = 1.0

    @classmethod
    def from_array(cls, array: np.ndarray, full_scale: Optional[float] = None) -> Raster:
        """
        Build a Raster from an image array.

        Args:
            array: (H, W), (H, W, C) BGR/BGRA or gray+alpha image
            full_scale: Explicit full scale; inferred from dtype when None

        Returns:
            Raster with float64 single-channel data

        Raises:
            DimensionError: Array is not a 2-D image
        """
        array = np.asarray(array)
        if full_scale is None:
            full_scale = _infer_full_scale(array.dtype)
        if full_scale <= 0:
            raise ValueError(f"full_scale must be positive, got {full_scale}")
        if array.dtype == np.bool_:
            array = array.astype(np.uint8)

        gray = _to_single_channel(array)
        return cls(np.asarray(gray, dtype=np.float64), float(full_scale))

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    @property
    def area(self) -> int:
        return self.height * self.width

    @property
    def is_empty(self) -> bool:
        return self.area == 0

    def normalized(self) -> np.ndarray:
        """Samples in full-scale units (0.0 = black, 1.0 = full scale)."""
        return self.data / self.full_scale


@dataclass(frozen=True)
class Statistics:
    """
    Scalar statistics of an (unpadded) raster.

    Attributes:
        mean: Mean sample value
        std: Population standard deviation (ddof=0)
        count: Number of samples
    """
    mean: float
    std: float
    count: int

    @classmethod
    def of(cls, array: np.ndarray) -> Statistics:
        return cls(float(np.mean(array)), float(np.std(array)), int(array.size))


@dataclass
class FrequencyGrid:
    """Transform-domain grid: (H, W, 2) array of (real, imaginary) channels."""
    data: np.ndarray

    @property
    def real(self) -> np.ndarray:
        return self.data[:, :, 0]

    @property
    def imag(self) -> np.ndarray:
        return self.data[:, :, 1]

    @property
    def shape(self) -> Tuple[int, int]:
        return int(self.data.shape[0]), int(self.data.shape[1])


@dataclass
class CorrelationSurface:
    """
    Normalized cross-correlation scores, one per template offset.

    Attributes:
        data: (H, W) float64 scores in approx. [-1, 1], same shape as the
              search raster; read-only
        template_shape: (height, width) of the template that produced it
        padded_shape: Working canvas size used by the transform

    Notes:
        - data[r, c] scores the template placed with its top-left corner
          at row r, column c of the search raster
        - Negative scores are kept; clamping belongs to presentation
    """
    data: np.ndarray
    template_shape: Tuple[int, int]
    padded_shape: Tuple[int, int]

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=np.float64)
        self.data.setflags(write=False)

    @property
    def shape(self) -> Tuple[int, int]:
        return int(self.data.shape[0]), int(self.data.shape[1])

    @property
    def is_empty(self) -> bool:
        return self.data.size == 0

    def copy(self) -> np.ndarray:
        """Writable copy of the scores for presentation steps."""
        return np.array(self.data, copy=True)


@dataclass(frozen=True)
class MatchResult:
    """
    Best match location.

    Attributes:
        row: Row of the template's top-left corner in the search raster
        column: Column of the template's top-left corner
        score: Peak correlation score
    """
    row: int
    column: int
    score: float

    @property
    def coords(self) -> Tuple[int, int]:
        """(x, y) = (column, row)."""
        return self.column, self.row

    def report(self) -> str:
        return (f"Match Coords: ({self.column},{self.row}) "
                f"And Score In Range 0 to 1: ({self.score:.6g})")
