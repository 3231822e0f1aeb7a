"""
Frequency-domain correlator.

Cross-correlation via the convolution theorem:

    corr(a, b)[r, c] = sum_{y,x} a[y, x] * b[y + r, x + c]     (circular)
                     = inverse( conj(F(a)) * F(b) )

One forward transform per operand plus one inverse gives the score for
every shift at once, instead of one window sum per shift.

Three terms feed the normalizer, each divided by the template pixel
count N_s (per-window averages):
- A: zero-mean template T' against zero-mean search L - mean(L)
- B: unit mask U against L^2       (local mean of squares)
- C: unit mask U against L         (local mean; squared later)
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
import numpy as np

from .models import FrequencyGrid
from .padding import PaddedOperands
from .performance import time_block
from .transform import TransformEngine

logger = logging.getLogger(__name__)


@dataclass
class CorrelationTerms:
    """
    Spatial-domain correlation terms on the padded canvas, already divided by N_s.

    Attributes:
        cross: Term A, mean of T' * (L - mean(L)) per window
        energy: Term B, mean of L^2 per window
        local_mean: Term C, mean of L per window
    """
    cross: np.ndarray
    energy: np.ndarray
    local_mean: np.ndarray


def conjugate_product(a: FrequencyGrid, b: FrequencyGrid) -> FrequencyGrid:
    """
    conj(a) * b on two-channel grids.

    For a = (a1, a2) and b = (b1, b2):
        real = a1*b1 + a2*b2
        imag = a1*b2 - a2*b1
    """
    if a.shape != b.shape:
        raise ValueError(f"Grid shapes differ: {a.shape} vs {b.shape}")

    a1, a2 = a.real, a.imag
    b1, b2 = b.real, b.imag
    return FrequencyGrid(np.dstack([a1 * b1 + a2 * b2, a1 * b2 - a2 * b1]))


def cross_correlate(a: np.ndarray, b: np.ndarray, engine: TransformEngine) -> np.ndarray:
    """
    Circular cross-correlation of two equally sized real arrays.

    Args:
        a: Operand shifted across b (template side)
        b: Operand being scanned (search side)
        engine: Transform backend

    Returns:
        (H, W) array, result[r, c] = sum a[y, x] * b[y + r, x + c]
    """
    spectrum_a = engine.forward(a)
    spectrum_b = engine.forward(b)
    return engine.inverse(conjugate_product(spectrum_a, spectrum_b))


def compute_terms(operands: PaddedOperands, engine: TransformEngine,
                  parallel: bool = True, max_workers: int = 3) -> CorrelationTerms:
    """
    Compute terms A, B and C for one template/search pair.

    Args:
        operands: Padded inputs from prepare_operands()
        engine: Transform backend (stateless, shared by the workers)
        parallel: Run the three correlations on worker threads
        max_workers: Thread pool size when parallel

    Returns:
        CorrelationTerms divided by the template pixel count

    Notes:
        - Results are keyed by term, so completion order never matters
        - Worker exceptions (TransformFailure) propagate from the join
    """
    n_template = float(operands.template_stats.count)

    jobs = {
        'cross': (operands.template_zero_mean, operands.search_zero_mean),
        'energy': (operands.unit_mask, np.square(operands.search)),
        'local_mean': (operands.unit_mask, operands.search),
    }

    def run(name: str) -> np.ndarray:
        a, b = jobs[name]
        with time_block(f"correlate.{name}"):
            return cross_correlate(a, b, engine) / n_template

    if parallel and max_workers > 1:
        logger.debug("Correlating %d terms on %d workers", len(jobs), max_workers)
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="ncc") as pool:
            futures = {name: pool.submit(run, name) for name in jobs}
            results = {name: future.result() for name, future in futures.items()}
    else:
        results = {name: run(name) for name in jobs}

    return CorrelationTerms(**results)
