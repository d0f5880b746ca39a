"""
Configuration & Defaults
========================
This module serves as the central registry for default parameters and numerical
tolerances.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (tolerances, bounding boxes) scattered
   throughout the code.
2. Plumbing: The `Parameters` dataclass carries every setting of one run from the
   command line down to the pipeline.

Exports:
    Parameters: Settings of one invocation (one polynomial, one gridstep).
    DEFAULT_POLYNOMIAL, DEFAULT_GRIDSTEP, DEFAULT_MIN_AABB, DEFAULT_MAX_AABB
    GEOMETRIC_TOLERANCE, COPLANARITY_TOLERANCE
"""
from __future__ import annotations

from dataclasses import dataclass

# Global Constants
DEFAULT_POLYNOMIAL: str = "ellipsoid"
DEFAULT_GRIDSTEP: float = 0.5
DEFAULT_MIN_AABB: float = -10.0
DEFAULT_MAX_AABB: float = 10.0

# Nearest point projection onto the implicit surface
DEFAULT_PROJECTION_MAX_ITER: int = 20
DEFAULT_PROJECTION_ACCURACY: float = 1e-4
DEFAULT_PROJECTION_GAMMA: float = 0.5

# Tolerance for predicates in digital space (plane side, point in polygon)
GEOMETRIC_TOLERANCE: float = 1e-9
# Tolerance for merging coplanar qhull triangles into one polygonal face
COPLANARITY_TOLERANCE: float = 1e-9


@dataclass
class Parameters:
    """
    Settings of a single run.

    Attributes:
        polynomial: Name of a predefined polynomial or a polynomial expression in x, y, z.
        gridstep: Distance between two digital points in the real space.
        min_aabb: Lower corner of the (cubic) bounding box of the shape, real space.
        max_aabb: Upper corner of the (cubic) bounding box of the shape, real space.
        projection_max_iter: Max number of iterations of the nearest point projection.
        projection_accuracy: The projection stops once a step is shorter than this.
        projection_gamma: Damping factor of the projection step.
    """
    polynomial: str = DEFAULT_POLYNOMIAL
    gridstep: float = DEFAULT_GRIDSTEP
    min_aabb: float = DEFAULT_MIN_AABB
    max_aabb: float = DEFAULT_MAX_AABB
    projection_max_iter: int = DEFAULT_PROJECTION_MAX_ITER
    projection_accuracy: float = DEFAULT_PROJECTION_ACCURACY
    projection_gamma: float = DEFAULT_PROJECTION_GAMMA

    def validate(self) -> None:
        """
        Check the parameters for consistency.

        Raises:
            ValueError: If the gridstep is not positive or the bounding box is empty.
        """
        if self.gridstep <= 0.0:
            raise ValueError(f"Grid step must be positive, got {self.gridstep}.")
        if self.min_aabb >= self.max_aabb:
            raise ValueError(
                f"Empty bounding box: min_aabb={self.min_aabb} >= max_aabb={self.max_aabb}."
            )
        if self.projection_max_iter < 0:
            raise ValueError(f"'projection_max_iter' must be >= 0, got {self.projection_max_iter}.")
