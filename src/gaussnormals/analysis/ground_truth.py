from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from gaussnormals.config import (
    DEFAULT_PROJECTION_ACCURACY,
    DEFAULT_PROJECTION_GAMMA,
    DEFAULT_PROJECTION_MAX_ITER,
)
from gaussnormals.utils import normalize_rows

if TYPE_CHECKING:
    import numpy.typing as npt

    from gaussnormals.pre.shapes import ImplicitPolynomialShape
    from gaussnormals.pre.surface import DigitalSurface

logger = logging.getLogger(__name__)


def expected_normals(
    shape: ImplicitPolynomialShape,
    surface: DigitalSurface,
    gridstep: float,
    max_iter: int = DEFAULT_PROJECTION_MAX_ITER,
    accuracy: float = DEFAULT_PROJECTION_ACCURACY,
    gamma: float = DEFAULT_PROJECTION_GAMMA,
) -> npt.NDArray[np.float64]:
    """
    True normals of the shape at the surfels of its digital surface.

    Each surfel center is mapped to the real space, projected onto the implicit
    surface, and the normalized gradient of the polynomial is taken there.

    Args:
        shape: The implicit shape that was digitized.
        surface: Its digital surface.
        gridstep: Grid step of the digitization.
        max_iter: Max number of projection iterations.
        accuracy: Projection stops once the step is shorter than this.
        gamma: Damping of the projection step.

    Returns:
        Unit normals, shape (N, 3), index-aligned with `surface.surfels`.
    """
    real_points = gridstep * surface.centers()
    projected = shape.nearest_point(real_points, max_iter=max_iter, accuracy=accuracy, gamma=gamma)
    normals = normalize_rows(shape.gradient(projected))

    n_singular = int(np.count_nonzero(~np.any(normals != 0.0, axis=1)))
    if n_singular:
        logger.warning(f"{n_singular} surfels have a vanishing gradient, their expected normal is zero.")
    return normals
