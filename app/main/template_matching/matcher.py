"""
Template matcher: the public entry points of the NCC pipeline.

Pipeline (strictly linear, fail-fast):
    validate -> pad / statistics -> correlate (A, B, C) -> normalize
    -> crop -> extract peak

Every call allocates its own grids; a TemplateMatcher holds only its
configuration and a stateless transform engine, so one instance can
serve concurrent callers.
"""

import logging
from typing import Optional, Tuple, Union
import numpy as np

from .config import MatchConfig
from .correlator import compute_terms
from .errors import DimensionError, EmptyInputError
from .models import CorrelationSurface, MatchResult, Raster
from .normalizer import normalize
from .padding import prepare_operands
from .peak import find_peak as _find_peak
from .performance import timed
from .transform import get_transform

logger = logging.getLogger(__name__)

ImageLike = Union[Raster, np.ndarray]


def as_raster(image: ImageLike) -> Raster:
    """Wrap an image array as a Raster (Rasters pass through)."""
    if isinstance(image, Raster):
        return image
    return Raster.from_array(image)


class TemplateMatcher:
    """
    Normalized cross-correlation template matcher.

    Usage:
        matcher = TemplateMatcher(MatchConfig(transform="scipy"))
        surface, result = matcher.match(template, search)
        print(result.report())
    """

    def __init__(self, config: Optional[MatchConfig] = None):
        self.config = (config or MatchConfig()).validate()
        self.engine = get_transform(self.config.transform)

    @timed
    def correlate(self, template: ImageLike, search: ImageLike) -> CorrelationSurface:
        """
        Correlation surface of template over search.

        Args:
            template: Small image to locate
            search: Image to search in (at least as large in both axes)

        Returns:
            CorrelationSurface with the search raster's shape

        Raises:
            DimensionError: Template larger than search in either axis
            EmptyInputError: Either raster has zero area
            TransformFailure: Transform backend failed
        """
        template = as_raster(template)
        search = as_raster(search)

        operands = prepare_operands(template, search, self.config.padding)
        terms = compute_terms(operands, self.engine,
                              parallel=self.config.parallel,
                              max_workers=self.config.max_workers)
        scores = normalize(terms, operands.template_stats, operands.search_shape,
                           floor=self.config.denominator_floor)

        logger.debug("Correlated template %s over search %s (canvas %s)",
                     operands.template_shape, operands.search_shape, operands.padded_shape)

        return CorrelationSurface(scores, operands.template_shape, operands.padded_shape)

    def find_peak(self, surface: CorrelationSurface) -> MatchResult:
        """
        Best match on a surface.

        Raises:
            EmptyInputError: Surface has zero area
        """
        if surface.is_empty:
            raise EmptyInputError("Correlation surface is empty")
        return _find_peak(surface.data, self.config.peak_tolerance)

    def match(self, template: ImageLike, search: ImageLike) -> Tuple[CorrelationSurface, MatchResult]:
        """correlate() followed by find_peak()."""
        surface = self.correlate(template, search)
        result = self.find_peak(surface)
        logger.debug(result.report())
        return surface, result

    def similarity(self, image_a: ImageLike, image_b: ImageLike) -> float:
        """
        Single NCC score of two equally sized images.

        Raises:
            DimensionError: Images differ in size
        """
        image_a = as_raster(image_a)
        image_b = as_raster(image_b)
        if image_a.shape != image_b.shape:
            raise DimensionError(
                f"Images must have the same size: {image_a.shape} vs {image_b.shape}"
            )
        surface = self.correlate(image_a, image_b)
        return float(surface.data[0, 0])


def correlate(template: ImageLike, search: ImageLike,
              config: Optional[MatchConfig] = None) -> CorrelationSurface:
    """Correlation surface of template over search (see TemplateMatcher.correlate)."""
    return TemplateMatcher(config).correlate(template, search)


def find_peak(surface: CorrelationSurface, config: Optional[MatchConfig] = None) -> MatchResult:
    """Best match on a surface (see TemplateMatcher.find_peak)."""
    return TemplateMatcher(config).find_peak(surface)


def match_template(template: ImageLike, search: ImageLike,
                   config: Optional[MatchConfig] = None) -> Tuple[CorrelationSurface, MatchResult]:
    """Correlate and extract the peak in one call."""
    return TemplateMatcher(config).match(template, search)


def similarity_score(image_a: ImageLike, image_b: ImageLike,
                     config: Optional[MatchConfig] = None) -> float:
    """NCC score of two equally sized images, in [-1, 1]."""
    return TemplateMatcher(config).similarity(image_a, image_b)
