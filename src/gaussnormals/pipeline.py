"""
Normal Recovery Pipeline
========================
Runs the whole experiment for one polynomial and one grid step:

1. digital surface extraction (Gauss digitization, surfels, quad mesh),
2. convex hull of the digital points inside the shape,
3. expected normals from the implicit polynomial,
4. normal estimation by digitizing the hull faces,
5. angle deviation statistics.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gaussnormals.analysis.deviation import Statistic, deviation
from gaussnormals.analysis.ground_truth import expected_normals
from gaussnormals.analysis.normals import NormalAccumulation, accumulate_normals
from gaussnormals.config import Parameters
from gaussnormals.pre.convex_hull import ConvexHullManager
from gaussnormals.pre.shapes import ImplicitPolynomialShape, gauss_digitize
from gaussnormals.pre.surface import DigitalSurface, SurfaceManager
from gaussnormals.utils import timed_block

if TYPE_CHECKING:
    import numpy as np
    import numpy.typing as npt

logger = logging.getLogger(__name__)

REPORT_HEADER = "#gridstep nbVtx min avg max stdVar"


@dataclass
class PipelineResult:
    """Everything computed by one run, kept for reporting and visualisation."""
    parameters: Parameters
    shape: ImplicitPolynomialShape
    surface: SurfaceManager
    convex_hull: ConvexHullManager
    expected: npt.NDArray[np.float64]
    accumulation: NormalAccumulation
    deviation: npt.NDArray[np.float64]
    statistic: Statistic

    @property
    def normals(self) -> npt.NDArray[np.float64]:
        return self.accumulation.normals

    def report_line(self) -> str:
        """Values matching `REPORT_HEADER`."""
        stat = self.statistic
        return (f"{self.parameters.gridstep} {len(self.normals)} "
                f"{stat.min} {stat.mean} {stat.max} {stat.stddev}")


def run_pipeline(parameters: Parameters) -> PipelineResult:
    """
    Run the normal recovery experiment.

    Args:
        parameters: Settings of the run.

    Raises:
        ValueError: If the parameters are invalid or a step cannot be computed
            (empty digitization, flat hull, ...).

    Returns:
        The result of every step.
    """
    parameters.validate()

    with timed_block("digital surface extraction"):
        shape = ImplicitPolynomialShape(parameters.polynomial)
        digitized = gauss_digitize(shape, parameters.gridstep, parameters.min_aabb, parameters.max_aabb)
        digital_surface = DigitalSurface.from_digitized_shape(digitized)

        surface = SurfaceManager()
        surface.build_mesh(digital_surface)

    with timed_block("convex hull computation"):
        convex_hull = ConvexHullManager()
        # hull of the voxel centers inside the shape, its faces lie on surface voxels
        convex_hull.build(digitized.points())
        logger.debug(f"Convex hull of {digitized.number_of_points} inner points: {len(convex_hull.faces)} faces.")

    with timed_block("expected normals"):
        expected = expected_normals(
            shape,
            digital_surface,
            parameters.gridstep,
            max_iter=parameters.projection_max_iter,
            accuracy=parameters.projection_accuracy,
            gamma=parameters.projection_gamma,
        )

    with timed_block("normal estimation"):
        accumulation = accumulate_normals(convex_hull.vertices, convex_hull.faces, surface.surfel_index)

    with timed_block("statistics"):
        samples, statistic = deviation(accumulation.normals, expected)

    return PipelineResult(
        parameters=parameters,
        shape=shape,
        surface=surface,
        convex_hull=convex_hull,
        expected=expected,
        accumulation=accumulation,
        deviation=samples,
        statistic=statistic,
    )
