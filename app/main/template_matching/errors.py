"""Exceptions raised by the template matching pipeline."""


class TemplateMatchError(Exception):
    """Base class for all template matching failures."""


class DimensionError(TemplateMatchError, ValueError):
    """Template does not fit inside the search raster (or is not 2-D)."""


class EmptyInputError(TemplateMatchError, ValueError):
    """A raster or surface has zero area."""


class TransformFailure(TemplateMatchError, RuntimeError):
    """The transform engine failed; the whole pipeline is aborted."""


class RasterLoadError(TemplateMatchError, ValueError):
    """An image file or buffer could not be decoded."""
