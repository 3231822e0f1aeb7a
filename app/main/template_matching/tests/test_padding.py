"""
Tests for padding and statistics.

Covers canvas sizing (even / square policy), precondition checks and the
contents of the padded operands.
"""

import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[4]))

import pytest
import numpy as np
from app.main.template_matching.config import PaddingPolicy
from app.main.template_matching.errors import DimensionError, EmptyInputError
from app.main.template_matching.models import Raster
from app.main.template_matching.padding import padded_size, prepare_operands, validate_pair


def random_raster(height, width, seed=0):
    rng = np.random.default_rng(seed)
    return Raster.from_array(rng.integers(0, 256, (height, width), dtype=np.uint8))


# ========== padded_size ==========

@pytest.mark.parametrize("search_shape, expected", [
    ((10, 10), (10, 10)),   # even square: unchanged
    ((7, 7), (8, 8)),       # odd square: round up
    ((37, 53), (54, 54)),   # odd non-square: even, then square
    ((6, 9), (10, 10)),
    ((1, 1), (2, 2)),
])
def test_padded_size_default_policy(search_shape, expected):
    assert padded_size(search_shape) == expected


def test_padded_size_without_square():
    policy = PaddingPolicy(square=False)
    assert padded_size((37, 53), policy) == (38, 54)


def test_padded_size_without_even_rounding():
    policy = PaddingPolicy(round_to_even=False)
    assert padded_size((37, 53), policy) == (53, 53)


def test_padded_size_never_smaller_than_search():
    for height in range(1, 20):
        for width in range(1, 20):
            padded_h, padded_w = padded_size((height, width))
            assert padded_h >= height and padded_w >= width
            assert padded_h % 2 == 0 and padded_w % 2 == 0
            assert padded_h == padded_w


# ========== validate_pair ==========

def test_template_taller_than_search_rejected():
    with pytest.raises(DimensionError):
        validate_pair(random_raster(11, 5), random_raster(10, 10))


def test_template_wider_than_search_rejected():
    with pytest.raises(DimensionError):
        validate_pair(random_raster(5, 11), random_raster(10, 10))


def test_same_size_accepted():
    validate_pair(random_raster(10, 10), random_raster(10, 10))


def test_empty_template_rejected():
    empty = Raster.from_array(np.zeros((0, 5), dtype=np.uint8))
    with pytest.raises(EmptyInputError):
        validate_pair(empty, random_raster(10, 10))


def test_empty_search_rejected():
    empty = Raster.from_array(np.zeros((4, 0), dtype=np.uint8))
    with pytest.raises(EmptyInputError):
        validate_pair(random_raster(2, 2), empty)


# ========== prepare_operands ==========

def test_operands_share_padded_shape():
    ops = prepare_operands(random_raster(5, 7, seed=1), random_raster(37, 53, seed=2))

    assert ops.padded_shape == (54, 54)
    for grid in (ops.search, ops.search_zero_mean, ops.template_zero_mean, ops.unit_mask):
        assert grid.shape == (54, 54)
        assert grid.dtype == np.float64
    assert ops.search_shape == (37, 53)
    assert ops.template_shape == (5, 7)


def test_search_padded_with_its_mean():
    search = random_raster(37, 53, seed=3)
    ops = prepare_operands(random_raster(5, 5), search)

    mean = search.normalized().mean()
    assert np.isclose(ops.search_stats.mean, mean)
    assert np.allclose(ops.search[37:, :], mean)
    assert np.allclose(ops.search[:, 53:], mean)
    assert np.allclose(ops.search[:37, :53], search.normalized())

    # Zero-mean copy is exactly zero in the padding
    assert np.all(ops.search_zero_mean[37:, :] == 0.0)
    assert np.all(ops.search_zero_mean[:, 53:] == 0.0)


def test_template_zero_mean_at_origin():
    template = random_raster(5, 7, seed=4)
    ops = prepare_operands(template, random_raster(20, 20))

    expected = template.normalized() - template.normalized().mean()
    assert np.allclose(ops.template_zero_mean[:5, :7], expected)
    assert np.all(ops.template_zero_mean[5:, :] == 0.0)
    assert np.all(ops.template_zero_mean[:, 7:] == 0.0)
    assert abs(ops.template_zero_mean.sum()) < 1e-9


def test_template_statistics_from_unpadded_template():
    template = random_raster(5, 7, seed=5)
    ops = prepare_operands(template, random_raster(20, 20))

    assert ops.template_stats.count == 35
    assert np.isclose(ops.template_stats.mean, template.normalized().mean())
    assert np.isclose(ops.template_stats.std, template.normalized().std())


def test_unit_mask_covers_template_footprint():
    ops = prepare_operands(random_raster(5, 7), random_raster(20, 20))

    assert np.all(ops.unit_mask[:5, :7] == 1.0)
    assert ops.unit_mask.sum() == 35


def test_mixed_bit_depths_normalized_to_full_scale():
    """8-bit template against 16-bit search: both in full-scale units."""
    search = Raster.from_array(np.full((8, 8), 65535, dtype=np.uint16))
    template = Raster.from_array(np.full((2, 2), 255, dtype=np.uint8))
    ops = prepare_operands(template, search)

    assert np.isclose(ops.search_stats.mean, 1.0)
    assert np.isclose(ops.template_stats.mean, 1.0)
