"""
Digital Surface & Surface Manager
=================================
Extracts the boundary surfels of a digitized shape and converts them into a quad
mesh over pointels.

Classes:
    SurfelIndex: Immutable bijection between surfels and dense indices.
    DigitalSurface: Ordered surfels of a digitized shape with their outward direction.
    SurfaceManager: Quad mesh (one face per surfel) plus the surfel index.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Iterator, Mapping, Optional

import numpy as np

from gaussnormals.pre.kspace import Cell, embed_cells, surfel_pointels

if TYPE_CHECKING:
    import numpy.typing as npt

    from gaussnormals.pre.shapes import DigitizedShape

logger = logging.getLogger(__name__)


class SurfelIndex:
    """
    Immutable association between the surfels of a surface and the indices 0..N-1.

    Indices are assigned in the order of the input sequence. Surfels that do not
    belong to the surface are simply not found.
    """

    def __init__(self, surfels: Iterable[Cell]) -> None:
        """
        Build the index.

        Args:
            surfels: Ordered surfels of the surface.

        Raises:
            ValueError: If a surfel appears more than once.
        """
        self._surfels: tuple[Cell, ...] = tuple(surfels)
        mapping: dict[Cell, int] = {}
        for i, s in enumerate(self._surfels):
            if s in mapping:
                raise ValueError(f"Duplicate surfel {s} at indices {mapping[s]} and {i}.")
            mapping[s] = i
        self._map: Mapping[Cell, int] = MappingProxyType(mapping)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n_surfels={len(self)})"

    def __len__(self) -> int:
        return len(self._surfels)

    def __contains__(self, surfel: object) -> bool:
        return surfel in self._map

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._surfels)

    @property
    def mapping(self) -> Mapping[Cell, int]:
        """Read-only view of the surfel -> index map."""
        return self._map

    def find(self, surfel: Cell) -> Optional[int]:
        """Index of the surfel, or None if it is not part of the surface."""
        return self._map.get(surfel)

    def surfel(self, index: int) -> Cell:
        """Surfel at the given index."""
        return self._surfels[index]


@dataclass
class DigitalSurface:
    """
    Boundary of a digitized shape.

    Attributes:
        surfels: Surfels separating an inside voxel from an outside one, sorted
            lexicographically by their Khalimsky coordinates.
        outward: For each surfel, +1 if the outside voxel is on the positive side
            of its orthogonal axis, -1 otherwise.
        gridstep: Grid step of the digitization.
    """
    surfels: list[Cell]
    outward: npt.NDArray[np.int8]
    gridstep: float = 1.0

    def __len__(self) -> int:
        return len(self.surfels)

    @classmethod
    def from_digitized_shape(cls, shape: DigitizedShape) -> DigitalSurface:
        """
        Collect all boundary surfels of a digitized shape.

        Args:
            shape: The digitized shape (padded occupancy grid).

        Raises:
            ValueError: If the shape contains no digital point.

        Returns:
            The digital surface.
        """
        occupancy = shape.occupancy
        if not occupancy.any():
            raise ValueError("The digitized shape is empty, there is no digital surface.")

        coords_parts: list[npt.NDArray[np.int64]] = []
        outward_parts: list[npt.NDArray[np.int8]] = []
        for axis in range(3):
            lower = np.take(occupancy, np.arange(occupancy.shape[axis] - 1), axis=axis)
            upper = np.take(occupancy, np.arange(1, occupancy.shape[axis]), axis=axis)
            boundary = lower != upper

            idx = np.argwhere(boundary).astype(np.int64)
            points = idx + shape.origin
            kcoords = 2 * points + 1
            kcoords[:, axis] += 1
            coords_parts.append(kcoords)
            # +1 when the lower voxel is the inside one
            outward_parts.append(np.where(lower[boundary], 1, -1).astype(np.int8))

        kcoords = np.concatenate(coords_parts)
        outward = np.concatenate(outward_parts)
        order = np.lexsort((kcoords[:, 2], kcoords[:, 1], kcoords[:, 0]))
        kcoords = kcoords[order]
        outward = outward[order]

        surfels = [Cell(int(a), int(b), int(c)) for a, b, c in kcoords]
        logger.info(f"Digital surface has {len(surfels)} surfels.")
        return cls(surfels=surfels, outward=outward, gridstep=shape.gridstep)

    def centers(self) -> npt.NDArray[np.float64]:
        """Surfel centers in the digital space, shape (N, 3)."""
        return embed_cells(self.surfels)

    def outward_normals(self) -> npt.NDArray[np.float64]:
        """Trivial (axis aligned) outward normal of each surfel, shape (N, 3)."""
        normals = np.zeros((len(self.surfels), 3), dtype=np.float64)
        for i, s in enumerate(self.surfels):
            normals[i, s.orthogonal_axis] = self.outward[i]
        return normals


class SurfaceManager:
    """
    Quad mesh of a digital surface.

    The mesh vertices are the pointels of the surface embedded in the digital
    space. Every surfel gives one quad face, wound counter-clockwise around its
    outward direction. Face i corresponds to surfel i.
    """

    def __init__(self) -> None:
        self.vertices: npt.NDArray[np.float64] = np.empty((0, 3), dtype=np.float64)
        self.faces: list[list[int]] = []
        self.surfels: list[Cell] = []
        self.surfel_index: SurfelIndex = SurfelIndex([])

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(n_vertices={len(self.vertices)}, "
                f"n_faces={len(self.faces)})")

    def build_mesh(self, surface: DigitalSurface) -> None:
        """
        Build the quad mesh and the surfel index of a digital surface.

        Args:
            surface: The digital surface.
        """
        pointel_index: dict[Cell, int] = {}
        faces: list[list[int]] = []

        for surfel, direction in zip(surface.surfels, surface.outward):
            pointels = surfel_pointels(surfel)
            if direction < 0:
                pointels.reverse()
            face = []
            for p in pointels:
                idx = pointel_index.get(p)
                if idx is None:
                    idx = len(pointel_index)
                    pointel_index[p] = idx
                face.append(idx)
            faces.append(face)

        self.vertices = embed_cells(list(pointel_index))
        self.faces = faces
        self.surfels = list(surface.surfels)
        self.surfel_index = SurfelIndex(self.surfels)
        logger.info(f"Surface mesh: {len(self.vertices)} vertices, {len(self.faces)} faces.")
