import numpy as np
import pytest

from gaussnormals.pre.kspace import Cell, embed_cells, spel, surfel_between, surfel_pointels


def test_cell_dimension():
    assert Cell(1, 1, 1).dimension == 3
    assert Cell(0, 2, -4).dimension == 0
    assert Cell(2, 1, -1).dimension == 2
    assert Cell(2, 1, -1).is_surfel


def test_orthogonal_axis():
    assert Cell(2, 1, 1).orthogonal_axis == 0
    assert Cell(1, -2, 1).orthogonal_axis == 1
    assert Cell(1, 1, 0).orthogonal_axis == 2
    with pytest.raises(ValueError):
        _ = Cell(1, 1, 1).orthogonal_axis


def test_spel_and_surfel_between():
    assert spel((0, -1, 2)) == Cell(1, -1, 5)
    s = surfel_between((0, 0, 0), 2)
    assert s == Cell(1, 1, 2)
    np.testing.assert_allclose(s.embed(), [0.0, 0.0, 0.5])
    np.testing.assert_allclose(surfel_between((-1, 0, 0), 0).embed(), [-0.5, 0.0, 0.0])


def test_cells_are_ordered_and_hashable():
    cells = [Cell(3, 1, 2), Cell(1, 1, 2), Cell(1, 2, 1)]
    assert sorted(cells) == [Cell(1, 1, 2), Cell(1, 2, 1), Cell(3, 1, 2)]
    assert len({Cell(1, 1, 2), Cell(1, 1, 2)}) == 1


def test_surfel_pointels_are_counter_clockwise():
    pointels = surfel_pointels(Cell(1, 1, 2))
    assert all(p.dimension == 0 for p in pointels)
    pts = embed_cells(pointels)
    np.testing.assert_allclose(pts[:, 2], 0.5)
    # counter-clockwise around +z
    cross = np.cross(pts[1] - pts[0], pts[2] - pts[1])
    assert cross[2] > 0.0
    np.testing.assert_allclose(pts.mean(axis=0), [0.0, 0.0, 0.5])
