"""
Convex Hull Manager
===================
Builds the convex hull of a point cloud as a polyhedron with polygonal faces.

qhull (through scipy) returns a triangulated hull. Adjacent triangles lying in
the same plane are merged back into a single convex polygon, so that each face
of the polyhedron is digitized once.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import scipy as sp
from scipy.sparse.csgraph import connected_components
from scipy.spatial import ConvexHull, QhullError

from gaussnormals.config import COPLANARITY_TOLERANCE

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


def order_polygon(points: npt.NDArray[np.float64], normal: npt.NDArray[np.float64]) -> npt.NDArray[np.int64]:
    """
    Order the vertices of a planar convex polygon counter-clockwise around its normal.

    Args:
        points: Polygon vertices, shape (M, 3), in any order.
        normal: Unit normal of the polygon plane.

    Returns:
        Permutation of range(M) giving the counter-clockwise order.
    """
    centroid = points.mean(axis=0)
    # any axis not parallel to the normal gives an in-plane basis
    helper = np.eye(3)[int(np.argmin(np.abs(normal)))]
    u = np.cross(normal, helper)
    u /= np.linalg.norm(u)
    v = np.cross(normal, u)

    rel = points - centroid
    angles = np.arctan2(rel @ v, rel @ u)
    return np.argsort(angles, kind="stable")


class ConvexHullManager:
    """
    Convex hull as a list of vertices and a list of planar polygonal faces.

    Attributes:
        vertices: Hull vertices, shape (V, 3).
        faces: For each face, the indices of its vertices in `vertices`, ordered
            counter-clockwise around the outward normal.
        normals: Outward unit normal of each face, shape (F, 3).
    """

    def __init__(self) -> None:
        self.vertices: npt.NDArray[np.float64] = np.empty((0, 3), dtype=np.float64)
        self.faces: list[list[int]] = []
        self.normals: npt.NDArray[np.float64] = np.empty((0, 3), dtype=np.float64)

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(n_vertices={len(self.vertices)}, "
                f"n_faces={len(self.faces)})")

    def build(self, points: npt.NDArray[np.float64]) -> None:
        """
        Compute the convex hull of a point cloud.

        Args:
            points: Point cloud, shape (N, 3).

        Raises:
            ValueError: If there are fewer than 4 points or the points are flat
                (qhull cannot build a 3D hull).
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(pts) < 4:
            raise ValueError(f"A 3D convex hull needs at least 4 points, got {len(pts)}.")

        try:
            hull = ConvexHull(pts)
        except QhullError as e:
            raise ValueError(f"Convex hull computation failed: {e}") from e

        simplices = hull.simplices
        equations = hull.equations
        n_triangles = len(simplices)

        # 1) Link each triangle to its coplanar neighbours
        scale = 1.0 + float(np.abs(pts).max())
        tri = np.repeat(np.arange(n_triangles), 3)
        nbr = hull.neighbors.ravel()
        same_normal = np.einsum("ij,ij->i", equations[tri, :3], equations[nbr, :3]) >= 1.0 - COPLANARITY_TOLERANCE
        same_offset = np.abs(equations[tri, 3] - equations[nbr, 3]) <= COPLANARITY_TOLERANCE * scale
        link = same_normal & same_offset

        graph = sp.sparse.coo_matrix(
            (np.ones(int(link.sum()), dtype=np.int8), (tri[link], nbr[link])),
            shape=(n_triangles, n_triangles),
        )
        n_faces, labels = connected_components(graph, directed=False)

        # 2) Dense re-indexing of the hull vertices
        used = np.unique(simplices)
        remap = np.full(len(pts), -1, dtype=np.int64)
        remap[used] = np.arange(len(used))

        # 3) One polygon per group of coplanar triangles
        order = np.argsort(labels, kind="stable")
        groups = np.split(order, np.flatnonzero(np.diff(labels[order])) + 1)

        faces: list[list[int]] = []
        normals = np.empty((n_faces, 3), dtype=np.float64)
        for k, triangles in enumerate(groups):
            normal = equations[triangles[0], :3]
            normal = normal / np.linalg.norm(normal)
            ids = np.unique(simplices[triangles])
            ccw = order_polygon(pts[ids], normal)
            faces.append([int(remap[i]) for i in ids[ccw]])
            normals[k] = normal

        self.vertices = pts[used]
        self.faces = faces
        self.normals = normals
        logger.info(
            f"Convex hull: {len(self.vertices)} vertices, {len(self.faces)} faces "
            f"(merged from {n_triangles} triangles)."
        )

    def face_points(self, index: int) -> npt.NDArray[np.float64]:
        """Vertices of a face in order, shape (M, 3)."""
        return self.vertices[self.faces[index]]
