"""
Digitized Convex Polygon
========================
Digitization of one planar convex polygon into a set of surfels.

The supporting plane n.x = d of the polygon splits the digital points into the
ones below or on it (n.c <= d) and the ones strictly above. The digitization of
the polygon is the set of surfels separating a point below from a point above
the plane, whose crossing point with the plane lies in the (closed) polygon.
For a face of the convex hull of the digital points of a shape, these are the
boundary surfels of the shape under the face.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from gaussnormals.config import GEOMETRIC_TOLERANCE
from gaussnormals.pre.kspace import Cell

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def newell_normal(points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Non normalized normal of a polygon (Newell's method).

    Its length is twice the polygon area and it points towards the side from which
    the vertices are seen counter-clockwise.
    """
    nxt = np.roll(points, -1, axis=0)
    return np.array([
        np.sum((points[:, 1] - nxt[:, 1]) * (points[:, 2] + nxt[:, 2])),
        np.sum((points[:, 2] - nxt[:, 2]) * (points[:, 0] + nxt[:, 0])),
        np.sum((points[:, 0] - nxt[:, 0]) * (points[:, 1] + nxt[:, 1])),
    ], dtype=np.float64)


class DigitizedConvexPolygon:
    """
    A planar convex polygon in the digital space together with its digitization.
    """

    def __init__(self, vertices: npt.NDArray[np.float64], eps: float = GEOMETRIC_TOLERANCE) -> None:
        """
        Initialize the polygon.

        Args:
            vertices: Ordered polygon vertices, shape (M, 3), M >= 3.
            eps: Tolerance of the plane side and point-in-polygon predicates.

        Raises:
            ValueError: If there are fewer than 3 vertices or they are collinear.
        """
        pts = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        if len(pts) < 3:
            raise ValueError(f"A polygon needs at least 3 vertices, got {len(pts)}.")

        normal = newell_normal(pts)
        length = np.linalg.norm(normal)
        if length <= eps:
            raise ValueError("Degenerate polygon: the vertices are collinear.")

        self.vertices = pts
        self.eps = eps
        self._unit_normal = normal / length
        self.offset = float(self._unit_normal @ pts.mean(axis=0))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_vertices={len(self.vertices)}, normal={self._unit_normal})"

    def get_unit_normal(self) -> npt.NDArray[np.float64]:
        """Unit normal of the polygon, oriented by the vertex winding."""
        return self._unit_normal.copy()

    def area(self) -> float:
        return 0.5 * float(np.linalg.norm(newell_normal(self.vertices)))

    def _contains_projected(
        self, axis: int, points_2d: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.bool_]:
        """
        Point-in-polygon test after dropping `axis`.

        The two remaining axes are taken cyclically (axis+1, axis+2), so the
        projected polygon is counter-clockwise iff normal[axis] > 0.
        """
        i, j = (axis + 1) % 3, (axis + 2) % 3
        poly = self.vertices[:, [i, j]]
        edges = np.roll(poly, -1, axis=0) - poly
        sign = 1.0 if self._unit_normal[axis] > 0.0 else -1.0

        inside = np.ones(len(points_2d), dtype=bool)
        for q, e in zip(poly, edges):
            rel = points_2d - q
            cross = e[0] * rel[:, 1] - e[1] * rel[:, 0]
            inside &= sign * cross >= -self.eps * max(1.0, float(np.hypot(e[0], e[1])))
        return inside

    def digitize(self) -> set[Cell]:
        """
        Surfels of the digitization of the polygon.

        Returns:
            Set of surfels whose voxel pair straddles the supporting plane at a
            point of the polygon.
        """
        n = self._unit_normal
        lower = np.ceil(self.vertices.min(axis=0) - self.eps).astype(np.int64)
        upper = np.floor(self.vertices.max(axis=0) + self.eps).astype(np.int64)

        surfels: set[Cell] = set()
        for axis in range(3):
            # lines parallel to the plane never cross it
            if abs(n[axis]) <= self.eps:
                continue
            i, j = (axis + 1) % 3, (axis + 2) % 3

            ui = np.arange(lower[i], upper[i] + 1, dtype=np.int64)
            vj = np.arange(lower[j], upper[j] + 1, dtype=np.int64)
            if ui.size == 0 or vj.size == 0:
                continue
            gu, gv = np.meshgrid(ui, vj, indexing="ij")
            gu, gv = gu.ravel(), gv.ravel()

            # crossing point of the line (u, v) + t e_axis with the plane
            t = (self.offset - n[i] * gu - n[j] * gv) / n[axis]
            t_round = np.round(t)
            t = np.where(np.abs(t - t_round) <= self.eps, t_round, t)

            keep = self._contains_projected(axis, np.column_stack([gu, gv]).astype(np.float64))
            if not keep.any():
                continue

            # lower voxel of the straddling pair along the axis, a voxel center
            # lying on the plane counts as below it
            if n[axis] > 0.0:
                base = np.floor(t).astype(np.int64)
            else:
                base = np.ceil(t).astype(np.int64) - 1

            kcoords = np.empty((int(keep.sum()), 3), dtype=np.int64)
            kcoords[:, axis] = 2 * base[keep] + 2
            kcoords[:, i] = 2 * gu[keep] + 1
            kcoords[:, j] = 2 * gv[keep] + 1
            surfels.update(Cell(int(a), int(b), int(c)) for a, b, c in kcoords)

        return surfels


def digitize_face(vertices: npt.NDArray[np.float64]) -> tuple[npt.NDArray[np.float64], set[Cell]]:
    """
    Default face digitizer: unit normal and surfel set of a convex polygon.

    Args:
        vertices: Ordered polygon vertices, shape (M, 3).

    Returns:
        Tuple of the unit normal and the set of digitized surfels.
    """
    polygon = DigitizedConvexPolygon(vertices)
    return polygon.get_unit_normal(), polygon.digitize()
