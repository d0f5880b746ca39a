"""
Implicit Shapes & Gauss Digitization
====================================
Defines implicit polynomial shapes {f <= 0} and their Gauss digitization.

The predefined polynomials are the classic test shapes of digital geometry
(sphere, ellipsoid, rounded cube, ...). Any other polynomial in x, y, z can be
given as a plain expression, e.g. "x^2 + 2*y^2 + z^2 - 25".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from tokenize import TokenError
from typing import TYPE_CHECKING, Callable

import numpy as np
import sympy as smp
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

from gaussnormals.config import (
    DEFAULT_PROJECTION_ACCURACY,
    DEFAULT_PROJECTION_GAMMA,
    DEFAULT_PROJECTION_MAX_ITER,
)

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

POLYNOMIALS: dict[str, str] = {
    "sphere1": "x^2+y^2+z^2-1",
    "sphere9": "x^2+y^2+z^2-81",
    "ellipsoid": "3*x^2+2*y^2+z^2-90",
    "cylinder": "x^2+2*z^2-90",
    "torus": "(x^2+y^2+z^2+6*6-2*2)^2-4*6*6*(x^2+y^2)",
    "rcube": "x^4+y^4+z^4-6561",
    "goursat": "-1*(8-0.03*x^4-0.03*y^4-0.03*z^4+2*x^2+2*y^2+2*z^2)",
    "distel": "10000-(x^2+y^2+z^2+1000*(x^2+y^2)*(x^2+z^2)*(y^2+z^2))",
    "leopold": "(x^2*y^2*z^2+4*x^2+4*y^2+3*z^2)-100",
    "diabolo": "x^2-(y^2+z^2)^2",
    "heart": "-1*(x^2+2.25*y^2+z^2-1)^3+x^2*z^3+0.1125*y^2*z^3",
    "crixxi": "-0.9*(y^2+z^2-1)^2-(x^2+y^2-1)^3",
}

_X, _Y, _Z = smp.symbols("x y z", real=True)
_TRANSFORMATIONS = standard_transformations + (convert_xor,)


def _vectorize(
    func: Callable[..., object]
) -> Callable[[npt.NDArray[np.float64]], npt.NDArray[np.float64]]:
    """Wrap a lambdified function so that it always returns one value per point."""
    def wrapped(points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        pts = np.asarray(points, dtype=np.float64)
        x, y, z = pts[..., 0], pts[..., 1], pts[..., 2]
        # constant expressions come back as scalars
        return np.asarray(func(x, y, z), dtype=np.float64) + np.zeros_like(x)
    return wrapped


class ImplicitPolynomialShape:
    """
    Shape given by the inequality f(x, y, z) <= 0 for a polynomial f.
    """

    def __init__(self, polynomial: str) -> None:
        """
        Initialize the shape from a predefined name or an expression.

        Args:
            polynomial: A name from `POLYNOMIALS` or a polynomial expression in x, y, z.
                Both `^` and `**` are accepted as the power operator.

        Raises:
            ValueError: If the expression cannot be parsed or uses other variables.
        """
        self.name = polynomial
        self.expression = POLYNOMIALS.get(polynomial, polynomial)

        try:
            expr = parse_expr(
                self.expression,
                local_dict={"x": _X, "y": _Y, "z": _Z},
                transformations=_TRANSFORMATIONS,
            )
        except (SyntaxError, TypeError, TokenError, smp.SympifyError) as e:
            raise ValueError(f"Cannot parse polynomial '{self.expression}': {e}") from e

        if not isinstance(expr, smp.Expr):
            raise ValueError(f"'{self.expression}' is not a polynomial expression.")
        unknown = expr.free_symbols - {_X, _Y, _Z}
        if unknown:
            names = ", ".join(sorted(str(s) for s in unknown))
            raise ValueError(f"Polynomial '{self.expression}' uses unknown variables: {names}.")

        self.polynomial = smp.expand(expr)
        self._value = _vectorize(smp.lambdify((_X, _Y, _Z), self.polynomial, modules="numpy"))
        self._gradient = [
            _vectorize(smp.lambdify((_X, _Y, _Z), smp.diff(self.polynomial, s), modules="numpy"))
            for s in (_X, _Y, _Z)
        ]
        logger.debug(f"Implicit shape '{self.name}': {self.polynomial} <= 0")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', polynomial='{self.polynomial}')"

    def value(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Evaluate f at points of shape (..., 3)."""
        return self._value(points)

    def gradient(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Evaluate the gradient of f at points of shape (..., 3)."""
        return np.stack([g(points) for g in self._gradient], axis=-1)

    def is_inside(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.bool_]:
        """Gauss predicate: a point belongs to the shape iff f <= 0."""
        return self.value(points) <= 0.0

    def nearest_point(
        self,
        points: npt.NDArray[np.float64],
        max_iter: int = DEFAULT_PROJECTION_MAX_ITER,
        accuracy: float = DEFAULT_PROJECTION_ACCURACY,
        gamma: float = DEFAULT_PROJECTION_GAMMA,
    ) -> npt.NDArray[np.float64]:
        """
        Project points onto the zero level set of f with damped Newton steps

            x <- x - gamma * f(x) * grad f(x) / |grad f(x)|^2

        Every point is iterated until its step is shorter than `accuracy` or
        `max_iter` iterations are done. Points with a vanishing gradient are left
        where they are.

        Args:
            points: Array of shape (N, 3).
            max_iter: Maximum number of iterations.
            accuracy: Step length below which a point is considered converged.
            gamma: Damping factor of each step.

        Returns:
            Array of shape (N, 3) with the projected points.
        """
        x = np.array(points, dtype=np.float64).reshape(-1, 3)
        active = np.ones(len(x), dtype=bool)
        for _ in range(max_iter):
            if not active.any():
                break
            xa = x[active]
            grad = self.gradient(xa)
            sq_norm = np.einsum("ij,ij->i", grad, grad)
            safe = sq_norm > 0.0
            step = np.zeros_like(xa)
            step[safe] = (gamma * self.value(xa[safe]) / sq_norm[safe])[:, np.newaxis] * grad[safe]
            x[active] = xa - step
            still = np.linalg.norm(step, axis=1) >= accuracy
            active_idx = np.flatnonzero(active)
            active[active_idx[~still]] = False
        return x


@dataclass
class DigitizedShape:
    """
    Gauss digitization of a shape on the grid gridstep * Z^3.

    Attributes:
        occupancy: Boolean array, True for digital points inside the shape. It is
            padded by one empty layer on every side, so the digital surface is closed.
        origin: Digital point corresponding to occupancy[0, 0, 0].
        gridstep: Grid step used for the digitization.
    """
    occupancy: npt.NDArray[np.bool_]
    origin: npt.NDArray[np.int64]
    gridstep: float

    @property
    def number_of_points(self) -> int:
        """Number of digital points inside the shape."""
        return int(np.count_nonzero(self.occupancy))

    def points(self) -> npt.NDArray[np.int64]:
        """Digital points inside the shape, shape (M, 3), lexicographic order."""
        return np.argwhere(self.occupancy).astype(np.int64) + self.origin

    def contains(self, point: tuple[int, int, int]) -> bool:
        idx = np.asarray(point, dtype=np.int64) - self.origin
        if np.any(idx < 0) or np.any(idx >= np.array(self.occupancy.shape)):
            return False
        return bool(self.occupancy[tuple(idx)])


def gauss_digitize(
    shape: ImplicitPolynomialShape,
    gridstep: float,
    min_aabb: float,
    max_aabb: float,
) -> DigitizedShape:
    """
    Gauss digitize a shape: keep the digital points p with f(gridstep * p) <= 0.

    Args:
        shape: The implicit shape.
        gridstep: Grid step h.
        min_aabb: Lower bound of the cubic bounding box (real space).
        max_aabb: Upper bound of the cubic bounding box (real space).

    Raises:
        ValueError: If the gridstep is not positive or the bounding box is empty.

    Returns:
        The digitized shape.
    """
    if gridstep <= 0.0:
        raise ValueError(f"Grid step must be positive, got {gridstep}.")
    if min_aabb >= max_aabb:
        raise ValueError(f"Empty bounding box: [{min_aabb}, {max_aabb}].")

    lower = int(np.floor(min_aabb / gridstep))
    upper = int(np.ceil(max_aabb / gridstep))
    coords = np.arange(lower, upper + 1, dtype=np.int64)

    gx, gy, gz = np.meshgrid(coords, coords, coords, indexing="ij")
    real_points = gridstep * np.stack([gx, gy, gz], axis=-1).astype(np.float64)
    inside = shape.is_inside(real_points)

    occupancy = np.pad(inside, 1, mode="constant", constant_values=False)
    origin = np.full(3, lower - 1, dtype=np.int64)

    digitized = DigitizedShape(occupancy=occupancy, origin=origin, gridstep=gridstep)
    logger.info(
        f"Digitized '{shape.name}' with gridstep {gridstep}: "
        f"{digitized.number_of_points} points in a {len(coords)}^3 domain."
    )
    return digitized
