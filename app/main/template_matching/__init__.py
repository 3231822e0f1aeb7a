"""
Normalized cross-correlation template matching.

Locates a small template inside a larger search image by computing, for
every template offset, the normalized cross-correlation (a score in
[-1, 1]) in the frequency domain, then reporting the best offset.

Main API:
    correlate(template, search, config) -> CorrelationSurface
    find_peak(surface, config) -> MatchResult
    match_template(template, search, config) -> (CorrelationSurface, MatchResult)
    similarity_score(image_a, image_b, config) -> float
"""

from .config import MatchConfig, PaddingPolicy, RenderConfig
from .errors import (
    TemplateMatchError,
    DimensionError,
    EmptyInputError,
    TransformFailure,
    RasterLoadError,
)
from .loader import load_raster, decode_raster
from .matcher import (
    TemplateMatcher,
    correlate,
    find_peak,
    match_template,
    similarity_score,
)
from .models import (
    Raster,
    Statistics,
    FrequencyGrid,
    CorrelationSurface,
    MatchResult,
)


__all__ = [
    # Main API
    "TemplateMatcher",
    "correlate",
    "find_peak",
    "match_template",
    "similarity_score",
    "load_raster",
    "decode_raster",
    # Config
    "MatchConfig",
    "PaddingPolicy",
    "RenderConfig",
    # Models
    "Raster",
    "Statistics",
    "FrequencyGrid",
    "CorrelationSurface",
    "MatchResult",
    # Errors
    "TemplateMatchError",
    "DimensionError",
    "EmptyInputError",
    "TransformFailure",
    "RasterLoadError",
]
