import os
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from app.main.template_matching.config import RenderConfig
from app.main.template_matching.models import CorrelationSurface, MatchResult


def colormap_code(name: str) -> int:
    """OpenCV colormap constant for a name like 'jet' or 'viridis'."""
    code = getattr(cv2, f"COLORMAP_{name.upper()}", None)
    if code is None:
        raise ValueError(f"Unknown colormap: {name}")
    return code


def to_display_bgr(image: np.ndarray) -> np.ndarray:
    """
    Convert an image of any bit depth / channel count to 8-bit BGR.

    Always returns a new array; the input is never modified.
    """
    if image.dtype == np.uint16:
        image = (image.astype(np.float64) / 257.0).round().astype(np.uint8)
    elif image.dtype != np.uint8:
        image = (np.clip(image.astype(np.float64), 0.0, 1.0) * 255.0).round().astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)
    return image.copy()


def surface_to_image(surface: CorrelationSurface, render: Optional[RenderConfig] = None) -> np.ndarray:
    """
    Render a correlation surface as an 8-bit image.

    Args:
        surface: Correlation surface (not modified)
        render: Stretch / colormap options

    Returns:
        (H, W) uint8 gray image, or (H, W, 3) BGR when a colormap is set

    Notes:
        - Negative scores are clamped to 0 (lossy, display only)
        - Without stretch, score 1.0 maps to 255
    """
    render = render or RenderConfig()
    scores = np.clip(surface.copy(), 0.0, None)

    if render.stretch:
        low, high = float(scores.min()), float(scores.max())
        if high > low:
            scores = (scores - low) / (high - low)
        else:
            scores = np.zeros_like(scores)
    else:
        scores = np.clip(scores, 0.0, 1.0)

    image = (scores * 255.0).round().astype(np.uint8)

    if render.colormap:
        image = cv2.applyColorMap(image, colormap_code(render.colormap))

    return image


def _match_region(image_shape: Tuple[int, ...], result: MatchResult,
                  template_shape: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """Matched rectangle (row, column, height, width) clipped to the image."""
    height = min(template_shape[0], image_shape[0] - result.row)
    width = min(template_shape[1], image_shape[1] - result.column)
    return result.row, result.column, height, width


def draw_match(search_image: np.ndarray, result: MatchResult,
               template_shape: Tuple[int, int], render: Optional[RenderConfig] = None) -> np.ndarray:
    """Search image (BGR copy) with the matched template outline drawn on it."""
    render = render or RenderConfig()
    marked = to_display_bgr(search_image)

    row, column, height, width = _match_region(marked.shape, result, template_shape)
    cv2.rectangle(marked, (column, row), (column + width - 1, row + height - 1),
                  render.box_color, render.line_width)
    return marked


def overlay_match(search_image: np.ndarray, template_image: np.ndarray,
                  result: MatchResult, render: Optional[RenderConfig] = None) -> np.ndarray:
    """Search image (BGR copy) with the template blended over the matched region."""
    render = render or RenderConfig()
    blended = to_display_bgr(search_image)
    template = to_display_bgr(template_image)

    row, column, height, width = _match_region(blended.shape, result, template.shape[:2])
    region = blended[row:row + height, column:column + width]
    blended[row:row + height, column:column + width] = cv2.addWeighted(
        template[:height, :width], render.overlay_opacity,
        region, 1.0 - render.overlay_opacity, 0.0
    )
    return blended


class MatchVisualizer:
    """Renders and saves template match visualizations."""

    def __init__(self, output_dir: str = 'app/static/output'):
        self.output_dir = output_dir
        os.makedirs(output_dir, exist_ok=True)

    def render(self, search_image: np.ndarray, template_image: np.ndarray,
               surface: CorrelationSurface, result: MatchResult,
               render: Optional[RenderConfig] = None) -> Dict[str, np.ndarray]:
        """
        Create the visualizations selected by render.mode.

        Args:
            search_image: Search image as loaded (any depth / channels)
            template_image: Template image as loaded
            surface: Correlation surface of the pair
            result: Best match on the surface

        Returns:
            Dictionary with 'surface' and, depending on mode, 'match'
            (outline drawn) and/or 'overlay' (template blended in)
        """
        render = (render or RenderConfig()).validate()
        images = {'surface': surface_to_image(surface, render)}

        if render.mode in ('draw', 'both'):
            images['match'] = draw_match(search_image, result, surface.template_shape, render)
        if render.mode in ('overlay', 'both'):
            images['overlay'] = overlay_match(search_image, template_image, result, render)

        return images

    def save(self, images: Dict[str, np.ndarray], original_filename: str) -> Dict[str, str]:
        """
        Write rendered images as PNG files.

        Returns:
            Dictionary mapping image kind to output filename
        """
        stem = os.path.splitext(os.path.basename(original_filename))[0]
        filenames = {}

        for kind, image in images.items():
            filename = f"{kind}_{stem}.png"
            cv2.imwrite(os.path.join(self.output_dir, filename), image)
            filenames[kind] = filename

        return filenames
