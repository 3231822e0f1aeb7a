"""Image loading: file or byte buffer -> single-channel Raster."""

from pathlib import Path
from typing import Optional, Union
import cv2
import numpy as np

from .errors import RasterLoadError
from .models import Raster


def load_raster(path: Union[str, Path], full_scale: Optional[float] = None) -> Raster:
    """
    Load an image file as a Raster.

    Bit depth is kept (8-bit -> full scale 255, 16-bit -> 65535), colour is
    reduced to gray and alpha is discarded.

    Raises:
        RasterLoadError: File missing or not decodable
    """
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise RasterLoadError(f"Could not load image from {path}")
    return Raster.from_array(image, full_scale)


def decode_raster(buffer: bytes, full_scale: Optional[float] = None) -> Raster:
    """
    Decode an encoded image (PNG, JPEG, TIFF, ...) held in memory.

    Raises:
        RasterLoadError: Buffer empty or not decodable
    """
    if not buffer:
        raise RasterLoadError("Empty image buffer")

    image = cv2.imdecode(np.frombuffer(buffer, np.uint8), cv2.IMREAD_UNCHANGED)
    if image is None:
        raise RasterLoadError("Could not decode image buffer")
    return Raster.from_array(image, full_scale)


def decode_image(buffer: bytes) -> np.ndarray:
    """Decode an encoded image to a BGR array for presentation."""
    if not buffer:
        raise RasterLoadError("Empty image buffer")

    image = cv2.imdecode(np.frombuffer(buffer, np.uint8), cv2.IMREAD_COLOR)
    if image is None:
        raise RasterLoadError("Could not decode image buffer")
    return image
