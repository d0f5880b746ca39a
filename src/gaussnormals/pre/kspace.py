"""
Khalimsky Space Cells
=====================
Cells of the cubical complex are identified by their Khalimsky coordinates.

Conventions:
    * A digital point (voxel) p has coordinates 2p + 1 (all odd).
    * The surfel between the voxels p and p + e_k has coordinate 2p_k + 2 along
      axis k and 2p_j + 1 along the two other axes (exactly one even coordinate).
    * A pointel has all coordinates even.
    * A Khalimsky coordinate c is embedded into the digital space at (c - 1) / 2, so
      voxel centers are integers and pointels sit on half-integers.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


class Cell(NamedTuple):
    """Unsigned cell given by its Khalimsky coordinates."""
    kx: int
    ky: int
    kz: int

    @property
    def dimension(self) -> int:
        """Number of odd coordinates (0: pointel, 2: surfel, 3: spel)."""
        return (self.kx & 1) + (self.ky & 1) + (self.kz & 1)

    @property
    def is_surfel(self) -> bool:
        return self.dimension == 2

    @property
    def orthogonal_axis(self) -> int:
        """
        Axis along which a surfel is orthogonal, i.e. its only even coordinate.

        Raises:
            ValueError: If the cell is not a surfel.
        """
        if not self.is_surfel:
            raise ValueError(f"{self} is not a surfel.")
        for axis, c in enumerate(self):
            if c % 2 == 0:
                return axis
        raise AssertionError("unreachable")

    def embed(self) -> npt.NDArray[np.float64]:
        """Position of the cell center in the digital space."""
        return (np.array(self, dtype=np.float64) - 1.0) / 2.0


def spel(point: tuple[int, int, int] | npt.NDArray[np.int64]) -> Cell:
    """Voxel cell of a digital point."""
    x, y, z = (int(c) for c in point)
    return Cell(2 * x + 1, 2 * y + 1, 2 * z + 1)


def surfel_between(point: tuple[int, int, int] | npt.NDArray[np.int64], axis: int) -> Cell:
    """
    Surfel separating the voxel `point` from the voxel `point + e_axis`.

    Args:
        point: Digital point of the lower voxel.
        axis: Axis (0, 1 or 2) of the adjacency.
    """
    coords = [2 * int(c) + 1 for c in point]
    coords[axis] += 1
    return Cell(*coords)


def surfel_pointels(surfel: Cell) -> list[Cell]:
    """
    The four pointels bounding a surfel, counter-clockwise around +e_k where k is
    the orthogonal axis of the surfel (axes ordered cyclically: k, k+1, k+2).
    """
    k = surfel.orthogonal_axis
    i, j = (k + 1) % 3, (k + 2) % 3
    pointels = []
    for di, dj in ((-1, -1), (1, -1), (1, 1), (-1, 1)):
        coords = list(surfel)
        coords[i] += di
        coords[j] += dj
        pointels.append(Cell(*coords))
    return pointels


def embed_cells(cells: list[Cell] | npt.NDArray[np.int64]) -> npt.NDArray[np.float64]:
    """
    Embed many cells at once.

    Args:
        cells: Sequence of cells or an (N, 3) integer array of Khalimsky coordinates.

    Returns:
        An (N, 3) array of positions in the digital space.
    """
    coords = np.asarray(cells, dtype=np.float64).reshape(-1, 3)
    return (coords - 1.0) / 2.0
