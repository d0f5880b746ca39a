from __future__ import annotations

import numpy as np
import pytest

from gaussnormals.pre.convex_hull import ConvexHullManager
from gaussnormals.pre.shapes import DigitizedShape
from gaussnormals.pre.surface import DigitalSurface, SurfaceManager


def make_digitized(points: list[tuple[int, int, int]]) -> DigitizedShape:
    """Digitized shape holding exactly the given digital points."""
    pts = np.asarray(points, dtype=np.int64)
    origin = pts.min(axis=0) - 1
    shape = tuple(int(s) for s in pts.max(axis=0) - origin + 2)
    occupancy = np.zeros(shape, dtype=bool)
    occupancy[tuple((pts - origin).T)] = True
    return DigitizedShape(occupancy=occupancy, origin=origin, gridstep=1.0)


@pytest.fixture
def single_voxel() -> DigitalSurface:
    """Digital surface of the voxel at the origin: the six faces of a unit cube."""
    return DigitalSurface.from_digitized_shape(make_digitized([(0, 0, 0)]))


@pytest.fixture
def single_voxel_mesh(single_voxel: DigitalSurface) -> SurfaceManager:
    surface = SurfaceManager()
    surface.build_mesh(single_voxel)
    return surface


@pytest.fixture
def single_voxel_hull(single_voxel_mesh: SurfaceManager) -> ConvexHullManager:
    hull = ConvexHullManager()
    hull.build(single_voxel_mesh.vertices)
    return hull


@pytest.fixture
def plus_points() -> list[tuple[int, int, int]]:
    """The origin and its six neighbours (digital ball of radius 1)."""
    return [(0, 0, 0), (1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1)]


@pytest.fixture
def plus_shape(plus_points: list[tuple[int, int, int]]) -> DigitalSurface:
    return DigitalSurface.from_digitized_shape(make_digitized(plus_points))


@pytest.fixture
def corner_shape() -> DigitizedShape:
    """The origin and its neighbours along +x, +y, +z: its hull has a sloped face."""
    return make_digitized([(0, 0, 0), (1, 0, 0), (0, 1, 0), (0, 0, 1)])


@pytest.fixture
def digitize_points():
    """Factory of digitized shapes from explicit digital points."""
    return make_digitized
