"""
Tests for image loading and the presentation adapter.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[4]))

import pytest
import cv2
import numpy as np
from app.main.template_matching.config import RenderConfig
from app.main.template_matching.errors import RasterLoadError
from app.main.template_matching.loader import decode_raster, load_raster
from app.main.template_matching.match_visualizer import (
    MatchVisualizer,
    colormap_code,
    draw_match,
    overlay_match,
    surface_to_image,
    to_display_bgr,
)
from app.main.template_matching.models import CorrelationSurface, MatchResult


def make_surface(values):
    return CorrelationSurface(np.asarray(values, dtype=float), (2, 2), (4, 4))


# ========== Loader ==========

def test_load_8bit_png(tmp_path):
    image = np.arange(64, dtype=np.uint8).reshape(8, 8)
    path = tmp_path / "gray.png"
    cv2.imwrite(str(path), image)

    raster = load_raster(path)
    assert raster.shape == (8, 8)
    assert raster.full_scale == 255.0
    assert np.array_equal(raster.data, image.astype(float))


def test_load_16bit_png_keeps_depth(tmp_path):
    image = np.full((4, 6), 40000, dtype=np.uint16)
    path = tmp_path / "deep.png"
    cv2.imwrite(str(path), image)

    raster = load_raster(path)
    assert raster.full_scale == 65535.0
    assert np.allclose(raster.data, 40000)


def test_load_color_with_alpha(tmp_path):
    image = np.full((5, 5, 4), 90, dtype=np.uint8)
    image[:, :, 3] = 10
    path = tmp_path / "rgba.png"
    cv2.imwrite(str(path), image)

    raster = load_raster(path)
    assert raster.shape == (5, 5)
    assert np.allclose(raster.data, 90)


def test_load_missing_file(tmp_path):
    with pytest.raises(RasterLoadError):
        load_raster(tmp_path / "nope.png")


def test_decode_raster_from_bytes():
    image = np.full((3, 3), 200, dtype=np.uint8)
    ok, encoded = cv2.imencode(".png", image)
    assert ok

    raster = decode_raster(encoded.tobytes())
    assert np.allclose(raster.data, 200)


def test_decode_raster_garbage():
    with pytest.raises(RasterLoadError):
        decode_raster(b"not an image")
    with pytest.raises(RasterLoadError):
        decode_raster(b"")


# ========== surface_to_image ==========

def test_surface_image_clamps_negatives():
    surface = make_surface([[-1.0, 0.0], [0.5, 1.0]])
    image = surface_to_image(surface, RenderConfig(stretch=False))

    assert image.dtype == np.uint8
    assert image[0, 0] == 0
    assert image[0, 1] == 0
    assert image[1, 0] == 128
    assert image[1, 1] == 255


def test_surface_image_stretch():
    surface = make_surface([[0.2, 0.3], [0.4, 0.6]])
    image = surface_to_image(surface, RenderConfig(stretch=True))

    assert image.min() == 0
    assert image.max() == 255


def test_surface_image_flat_surface():
    surface = make_surface([[0.5, 0.5], [0.5, 0.5]])
    image = surface_to_image(surface, RenderConfig(stretch=True))
    assert np.all(image == 0)


def test_surface_image_does_not_touch_surface():
    surface = make_surface([[-1.0, 0.0], [0.5, 1.0]])
    surface_to_image(surface)
    assert surface.data[0, 0] == -1.0


def test_surface_image_colormap():
    surface = make_surface([[0.0, 0.3], [0.6, 1.0]])
    image = surface_to_image(surface, RenderConfig(colormap="jet"))
    assert image.shape == (2, 2, 3)


def test_unknown_colormap():
    with pytest.raises(ValueError):
        colormap_code("not_a_colormap")


# ========== draw / overlay ==========

def test_to_display_bgr_depths():
    assert to_display_bgr(np.zeros((2, 2), np.uint8)).shape == (2, 2, 3)
    assert to_display_bgr(np.full((2, 2), 65535, np.uint16)).max() == 255
    assert to_display_bgr(np.zeros((2, 2, 4), np.uint8)).shape == (2, 2, 3)


def test_draw_match_outlines_region_on_copy():
    search = np.zeros((20, 20), dtype=np.uint8)
    result = MatchResult(row=5, column=8, score=1.0)

    marked = draw_match(search, result, (4, 6), RenderConfig(box_color=(0, 0, 255)))

    assert marked.shape == (20, 20, 3)
    assert tuple(marked[5, 8]) == (0, 0, 255)      # top-left corner
    assert tuple(marked[8, 13]) == (0, 0, 255)     # bottom-right corner
    assert tuple(marked[6, 10]) == (0, 0, 0)       # inside untouched
    assert np.all(search == 0)


def test_draw_match_clips_at_border():
    search = np.zeros((10, 10), dtype=np.uint8)
    result = MatchResult(row=8, column=8, score=0.5)

    marked = draw_match(search, result, (5, 5))
    assert tuple(marked[9, 9]) == (0, 0, 255)


def test_overlay_blends_template():
    search = np.zeros((10, 10), dtype=np.uint8)
    template = np.full((3, 3), 200, dtype=np.uint8)
    result = MatchResult(row=2, column=4, score=1.0)

    blended = overlay_match(search, template, result, RenderConfig(overlay_opacity=0.5))

    assert np.all(blended[2:5, 4:7] == 100)
    assert np.all(blended[0:2, :] == 0)
    assert np.all(search == 0)


# ========== MatchVisualizer ==========

@pytest.mark.parametrize("mode, expected", [
    ("none", {"surface"}),
    ("draw", {"surface", "match"}),
    ("overlay", {"surface", "overlay"}),
    ("both", {"surface", "match", "overlay"}),
])
def test_render_modes(tmp_path, mode, expected):
    visualizer = MatchVisualizer(output_dir=str(tmp_path))
    search = np.zeros((6, 6), dtype=np.uint8)
    template = np.zeros((2, 2), dtype=np.uint8)
    surface = CorrelationSurface(np.zeros((6, 6)), (2, 2), (6, 6))
    result = MatchResult(0, 0, 0.0)

    images = visualizer.render(search, template, surface, result, RenderConfig(mode=mode))
    assert set(images) == expected


def test_render_rejects_unknown_mode(tmp_path):
    visualizer = MatchVisualizer(output_dir=str(tmp_path))
    surface = CorrelationSurface(np.zeros((4, 4)), (2, 2), (4, 4))
    with pytest.raises(ValueError):
        visualizer.render(np.zeros((4, 4), np.uint8), np.zeros((2, 2), np.uint8),
                          surface, MatchResult(0, 0, 0.0), RenderConfig(mode="sparkle"))


def test_save_writes_png_files(tmp_path):
    visualizer = MatchVisualizer(output_dir=str(tmp_path))
    images = {
        'surface': np.zeros((4, 4), np.uint8),
        'match': np.zeros((4, 4, 3), np.uint8),
    }

    files = visualizer.save(images, "search.jpg")

    assert files == {'surface': 'surface_search.png', 'match': 'match_search.png'}
    for filename in files.values():
        assert (tmp_path / filename).exists()
