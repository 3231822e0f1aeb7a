"""
Transform engines: forward / inverse 2-D DFT of real rasters.

An engine turns a padded real raster into a FrequencyGrid (two channels,
real and imaginary) and turns a FrequencyGrid back into a real raster.
The inverse includes the 1/(H*W) scale, so inverse(forward(x)) == x.

Any failure inside the numeric backend is re-raised as TransformFailure.
"""

from abc import ABC, abstractmethod
import cv2
import numpy as np
import scipy.fft

from .errors import TransformFailure
from .models import FrequencyGrid


class TransformEngine(ABC):
    """Abstract base class for transform backends."""

    name = "abstract"

    def forward(self, array: np.ndarray) -> FrequencyGrid:
        """
        Forward transform of a real 2-D array.

        Args:
            array: (H, W) real samples

        Returns:
            FrequencyGrid of shape (H, W, 2)

        Raises:
            TransformFailure: Backend error (e.g. out of memory)
        """
        try:
            return FrequencyGrid(self._forward(np.asarray(array, dtype=np.float64)))
        except (cv2.error, MemoryError, ValueError) as e:
            raise TransformFailure(f"{self.name} forward transform failed: {e}") from e

    def inverse(self, grid: FrequencyGrid) -> np.ndarray:
        """
        Inverse transform back to a real (H, W) array.

        Raises:
            TransformFailure: Backend error (e.g. out of memory)
        """
        try:
            return self._inverse(grid.data)
        except (cv2.error, MemoryError, ValueError) as e:
            raise TransformFailure(f"{self.name} inverse transform failed: {e}") from e

    @abstractmethod
    def _forward(self, array: np.ndarray) -> np.ndarray:
        pass

    @abstractmethod
    def _inverse(self, data: np.ndarray) -> np.ndarray:
        pass


class OpenCVTransform(TransformEngine):
    """cv2.dft / cv2.idft backend (default)."""

    name = "opencv"

    def _forward(self, array: np.ndarray) -> np.ndarray:
        return cv2.dft(array, flags=cv2.DFT_COMPLEX_OUTPUT)

    def _inverse(self, data: np.ndarray) -> np.ndarray:
        complex_out = cv2.idft(np.ascontiguousarray(data), flags=cv2.DFT_SCALE)
        return np.ascontiguousarray(complex_out[:, :, 0])


class ScipyTransform(TransformEngine):
    """scipy.fft backend."""

    name = "scipy"

    def __init__(self, workers: int = None):
        self.workers = workers

    def _forward(self, array: np.ndarray) -> np.ndarray:
        spectrum = scipy.fft.fft2(array, workers=self.workers)
        return np.dstack([spectrum.real, spectrum.imag])

    def _inverse(self, data: np.ndarray) -> np.ndarray:
        spectrum = data[:, :, 0] + 1j * data[:, :, 1]
        return np.ascontiguousarray(scipy.fft.ifft2(spectrum, workers=self.workers).real)


_ENGINES = {
    OpenCVTransform.name: OpenCVTransform,
    ScipyTransform.name: ScipyTransform,
}


def get_transform(name: str = "opencv") -> TransformEngine:
    """
    Create a transform engine by name.

    Raises:
        ValueError: Unknown engine name
    """
    try:
        return _ENGINES[name]()
    except KeyError:
        raise ValueError(f"Unknown transform: {name}. Must be one of {', '.join(_ENGINES)}") from None
