from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gaussnormals.utils import normalize_rows

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def angle_deviation(
    estimated: npt.NDArray[np.float64],
    expected: npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """
    Angle (radians) between index-aligned vectors.

    Both vectors are taken as directions. A zero vector stays zero, so a surfel
    without estimated normal gets a deviation of pi/2 instead of being skipped.

    Args:
        estimated: Estimated normals, shape (N, 3).
        expected: Ground-truth normals, shape (N, 3).

    Raises:
        ValueError: If the two arrays do not have the same length.

    Returns:
        Array of N angles in [0, pi].
    """
    estimated = np.asarray(estimated, dtype=np.float64).reshape(-1, 3)
    expected = np.asarray(expected, dtype=np.float64).reshape(-1, 3)
    if len(estimated) != len(expected):
        raise ValueError(
            f"Normal arrays are not index-aligned: {len(estimated)} estimated vs "
            f"{len(expected)} expected vectors."
        )

    dots = np.einsum("ij,ij->i", normalize_rows(estimated), normalize_rows(expected))
    return np.arccos(np.clip(dots, -1.0, 1.0))


@dataclass(frozen=True)
class Statistic:
    """
    Summary of a set of samples.

    The variance is the population variance (divided by the number of samples).
    """
    samples: int
    min: float
    mean: float
    max: float
    variance: float
    median: float

    @property
    def stddev(self) -> float:
        return float(np.sqrt(self.variance))

    @classmethod
    def from_samples(cls, values: npt.NDArray[np.float64]) -> Statistic:
        """
        Compute the statistic of a non empty sample set.

        Raises:
            ValueError: If there is no sample.
        """
        values = np.asarray(values, dtype=np.float64).ravel()
        if values.size == 0:
            raise ValueError("Cannot compute statistics of an empty sample set.")
        return cls(
            samples=int(values.size),
            min=float(values.min()),
            mean=float(values.mean()),
            max=float(values.max()),
            variance=float(values.var()),
            median=float(np.median(values)),
        )


def deviation(
    estimated: npt.NDArray[np.float64],
    expected: npt.NDArray[np.float64],
) -> tuple[npt.NDArray[np.float64], Statistic]:
    """
    Angular deviation between estimated and expected normals, with its statistic.

    Every surfel counts, recovered or not.

    Returns:
        Tuple of the per surfel angles and their statistic.
    """
    samples = angle_deviation(estimated, expected)
    stat = Statistic.from_samples(samples)
    logger.info(
        f"Angle deviation (rad): min={stat.min:.6f} mean={stat.mean:.6f} "
        f"max={stat.max:.6f} std={stat.stddev:.6f}"
    )
    return samples, stat
