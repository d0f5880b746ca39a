from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@contextmanager
def timed_block(name: str) -> Iterator[None]:
    """
    Log the beginning and the end of a named processing block with its duration.

    Example:
        with timed_block("convex hull computation"):
            hull = ConvexHullManager.build(points)
    """
    logger.info(f"Begin: {name}")
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.info(f"End: {name} ({elapsed * 1000.0:.1f} ms)")


def normalize_rows(vectors: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Normalize each row of an (N, 3) array. Zero rows stay zero.

    Args:
        vectors: Array of shape (N, 3).

    Returns:
        New array of the same shape with unit (or zero) rows.
    """
    vectors = np.asarray(vectors, dtype=np.float64)
    norms = np.sqrt(np.einsum("ij,ij->i", vectors, vectors))
    out = np.zeros_like(vectors)
    nonzero = norms > 0.0
    out[nonzero] = vectors[nonzero] / norms[nonzero, np.newaxis]
    return out
