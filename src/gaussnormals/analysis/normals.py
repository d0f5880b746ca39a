"""
Normal Accumulation
===================
Transfers the normals of the convex hull faces onto the surfels of a digital surface.

Every face of the hull is digitized. Each digitized surfel that belongs to the
surface receives the face normal through a running renormalization:

    normals[i] := normalize(normals[i] + n_f)

applied face after face, in the order of the faces. The result depends on the
order as soon as three or more faces touch the same surfel, and it is not the
normalized sum of all contributions. Digitized surfels that are not part of the
surface are collected apart and leave the normals untouched. Surfels never
touched keep a zero normal, which marks them as not recovered.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, Sequence

import numpy as np

from gaussnormals.analysis.polygon import digitize_face
from gaussnormals.utils import normalize_rows

if TYPE_CHECKING:
    import numpy.typing as npt

    from gaussnormals.pre.kspace import Cell
    from gaussnormals.pre.surface import SurfelIndex

logger = logging.getLogger(__name__)

FaceDigitizer = Callable[["npt.NDArray[np.float64]"], "tuple[npt.NDArray[np.float64], set[Cell]]"]


@dataclass
class NormalAccumulation:
    """
    Outcome of a normal accumulation pass.

    Attributes:
        normals: Accumulated normals, shape (N, 3). Each row is unit length or zero.
        in_surfels: Digitized surfels found in the surfel index.
        out_surfels: Digitized surfels not found in the surfel index.
        touched: Per surfel flag, set once a face digitization reaches it.
    """
    normals: npt.NDArray[np.float64]
    in_surfels: set[Cell] = field(default_factory=set)
    out_surfels: set[Cell] = field(default_factory=set)
    touched: Optional[npt.NDArray[np.bool_]] = None

    def __post_init__(self) -> None:
        if self.touched is None:
            self.touched = np.zeros(len(self.normals), dtype=bool)

    @property
    def n_surfels(self) -> int:
        return len(self.normals)

    @property
    def recovered(self) -> npt.NDArray[np.bool_]:
        """
        Boolean mask of the surfels that received at least one face normal.
        A recovered row can still be zero if opposite normals cancel out.
        """
        return self.touched.copy()

    @property
    def n_recovered(self) -> int:
        return len(self.in_surfels)

    @property
    def n_unrecovered(self) -> int:
        """Surfels touched by no face, so that n_recovered + n_unrecovered == n_surfels."""
        return self.n_surfels - len(self.in_surfels)


class NormalAccumulator:
    """
    Accumulates face normals onto the surfels of a surface, one face at a time.
    """

    def __init__(
        self,
        surfel_index: SurfelIndex,
        digitizer: FaceDigitizer = digitize_face,
    ) -> None:
        """
        Initialize an empty accumulation.

        Args:
            surfel_index: Index of the surfels of the digital surface.
            digitizer: Function returning the unit normal and the digitized surfels
                of an ordered convex polygon.
        """
        self.surfel_index = surfel_index
        self.digitizer = digitizer
        self.result = NormalAccumulation(normals=np.zeros((len(surfel_index), 3), dtype=np.float64))

    def add_face(self, points: npt.NDArray[np.float64]) -> int:
        """
        Digitize one face and accumulate its normal.

        Args:
            points: Ordered face vertices, shape (M, 3).

        Raises:
            ValueError: If the face has fewer than 3 vertices.

        Returns:
            Number of surfels of the surface touched by this face.
        """
        if len(points) < 3:
            raise ValueError(f"A face needs at least 3 vertices, got {len(points)}.")

        normal, surfel_set = self.digitizer(points)
        normal = np.asarray(normal, dtype=np.float64)

        indices: list[int] = []
        for s in sorted(surfel_set):
            i = self.surfel_index.find(s)
            if i is None:
                self.result.out_surfels.add(s)
            else:
                self.result.in_surfels.add(s)
                indices.append(i)

        # a surfel appears at most once in a face, so updating the rows together
        # keeps the per surfel order of the updates
        if indices:
            rows = np.asarray(indices, dtype=np.int64)
            normals = self.result.normals
            normals[rows] = normalize_rows(normals[rows] + normal)
            self.result.touched[rows] = True
        return len(indices)

    def accumulate(
        self,
        vertices: npt.NDArray[np.float64],
        faces: Sequence[Sequence[int]],
    ) -> NormalAccumulation:
        """
        Accumulate the normals of all the faces, in the given order.

        Args:
            vertices: Hull vertices, shape (V, 3).
            faces: Faces as lists of vertex indices.

        Raises:
            ValueError: If a face has fewer than 3 vertices.
            IndexError: If a face references a vertex that does not exist.

        Returns:
            The accumulation result (shared with `self.result`).
        """
        vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        for k, face in enumerate(faces):
            if len(face) < 3:
                raise ValueError(f"Hull face #{k} has {len(face)} vertices, at least 3 are needed.")
            touched = self.add_face(vertices[np.asarray(face, dtype=np.int64)])
            logger.debug(f"Face #{k}: {touched} surfels touched.")

        logger.info(
            f"{self.result.n_recovered} cells / {self.result.n_surfels} recovered, "
            f"{len(self.result.out_surfels)} digitized cells outside the surface."
        )
        return self.result


def accumulate_normals(
    vertices: npt.NDArray[np.float64],
    faces: Sequence[Sequence[int]],
    surfel_index: SurfelIndex,
    digitizer: FaceDigitizer = digitize_face,
) -> NormalAccumulation:
    """
    Estimate a normal for every surfel from the digitized faces of a convex hull.

    Args:
        vertices: Hull vertices, shape (V, 3), in the digital space.
        faces: Hull faces as lists of vertex indices (at least 3 each).
        surfel_index: Index of the surfels of the digital surface.
        digitizer: Face digitizer, `digitize_face` by default.

    Returns:
        The normals with the covered (in) and uncovered (out) surfel sets.
    """
    return NormalAccumulator(surfel_index, digitizer).accumulate(vertices, faces)
