"""Configuration dataclasses for template matching and result rendering."""
from dataclasses import dataclass, field
from typing import Optional, Tuple

TRANSFORM_ENGINES = ("opencv", "scipy")
RENDER_MODES = ("draw", "overlay", "both", "none")


@dataclass
class PaddingPolicy:
    """How the working canvas is sized from the search raster."""
    round_to_even: bool = True  # Transform engine needs even dimensions
    square: bool = True  # Raise both sides to the larger one


@dataclass
class MatchConfig:
    """Numeric parameters of the correlation pipeline."""
    padding: PaddingPolicy = field(default_factory=PaddingPolicy)

    # Suppression floor for the denominator, as a fraction of full scale.
    # Local std (or template std) below this makes the denominator 1.
    denominator_floor: float = 0.002

    # Peak tie tolerance: one 16-bit quantization step of full scale
    peak_tolerance: float = 1.0 / 65535.0

    # Transform backend ("opencv" or "scipy")
    transform: str = "opencv"

    # Fork the three correlation terms onto worker threads
    parallel: bool = True
    max_workers: int = 3

    def validate(self) -> "MatchConfig":
        """Check parameter ranges, returning self for chaining."""
        if self.denominator_floor < 0:
            raise ValueError(f"denominator_floor must be >= 0, got {self.denominator_floor}")
        if self.peak_tolerance < 0:
            raise ValueError(f"peak_tolerance must be >= 0, got {self.peak_tolerance}")
        if self.transform not in TRANSFORM_ENGINES:
            raise ValueError(
                f"Unknown transform: {self.transform}. Must be one of {', '.join(TRANSFORM_ENGINES)}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        return self


@dataclass
class RenderConfig:
    """Presentation options for the correlation surface and match images."""
    stretch: bool = True  # Min/max stretch of the surface to 0-255
    colormap: Optional[str] = None  # OpenCV colormap name, e.g. "jet"

    # Match marking
    box_color: Tuple[int, int, int] = (0, 0, 255)  # BGR red
    line_width: int = 1
    overlay_opacity: float = 0.5  # Template weight when blending (0-1)
    mode: str = "draw"  # draw, overlay, both or none

    def validate(self) -> "RenderConfig":
        """Check parameter ranges, returning self for chaining."""
        if self.mode not in RENDER_MODES:
            raise ValueError(f"Unknown mode: {self.mode}. Must be one of {', '.join(RENDER_MODES)}")
        if not 0.0 <= self.overlay_opacity <= 1.0:
            raise ValueError(f"overlay_opacity must be in [0, 1], got {self.overlay_opacity}")
        if self.line_width < 1:
            raise ValueError(f"line_width must be >= 1, got {self.line_width}")
        return self


# Performance monitoring global flag (outside dataclass to make it a true class variable)
MatchConfig.enable_performance_logging = False
