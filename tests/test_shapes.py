import numpy as np
import pytest

from gaussnormals.pre.shapes import POLYNOMIALS, ImplicitPolynomialShape, gauss_digitize


def test_named_polynomial():
    shape = ImplicitPolynomialShape("sphere9")
    assert shape.expression == POLYNOMIALS["sphere9"]
    np.testing.assert_allclose(shape.value(np.array([[9.0, 0.0, 0.0], [0.0, 0.0, 0.0]])), [0.0, -81.0])


def test_expression_with_caret_power():
    shape = ImplicitPolynomialShape("x^2 + 2*y^2 + z**2 - 4")
    np.testing.assert_allclose(shape.value(np.array([1.0, 1.0, 1.0])), 0.0)
    np.testing.assert_allclose(shape.gradient(np.array([[1.0, 1.0, 1.0]])), [[2.0, 4.0, 2.0]])


def test_gradient_of_constant_component_has_point_shape():
    shape = ImplicitPolynomialShape("cylinder")
    grad = shape.gradient(np.array([[1.0, 5.0, 1.0], [2.0, -3.0, 0.0]]))
    assert grad.shape == (2, 3)
    np.testing.assert_allclose(grad[:, 1], 0.0)


@pytest.mark.parametrize("expression", ["x^2 + w - 1", "x^^2", "(x + 1", "x < 3"])
def test_invalid_polynomial(expression):
    with pytest.raises(ValueError):
        ImplicitPolynomialShape(expression)


def test_nearest_point_on_sphere():
    shape = ImplicitPolynomialShape("sphere9")
    points = np.array([[10.0, 0.0, 0.0], [0.0, 5.0, 5.0], [-3.0, -4.0, 6.5]])
    projected = shape.nearest_point(points, max_iter=100, accuracy=1e-10, gamma=1.0)
    np.testing.assert_allclose(np.linalg.norm(projected, axis=1), 9.0, atol=1e-6)
    # projection of a point of a sphere stays on its ray
    directions = projected / np.linalg.norm(projected, axis=1)[:, np.newaxis]
    np.testing.assert_allclose(directions, points / np.linalg.norm(points, axis=1)[:, np.newaxis], atol=1e-9)


def test_gauss_digitize_unit_sphere():
    digitized = gauss_digitize(ImplicitPolynomialShape("sphere1"), gridstep=1.0, min_aabb=-2.0, max_aabb=2.0)
    assert digitized.number_of_points == 7
    assert digitized.contains((0, 0, 0))
    assert digitized.contains((0, 0, -1))
    assert not digitized.contains((1, 1, 0))
    assert not digitized.contains((100, 0, 0))
    # one empty layer of padding around the domain
    assert not digitized.occupancy[0].any()
    assert not digitized.occupancy[-1].any()


def test_gauss_digitize_gridstep():
    digitized = gauss_digitize(ImplicitPolynomialShape("sphere1"), gridstep=0.5, min_aabb=-2.0, max_aabb=2.0)
    # points p with |p| <= 2
    expected = sum(1 for x in range(-2, 3) for y in range(-2, 3) for z in range(-2, 3)
                   if x * x + y * y + z * z <= 4)
    assert digitized.number_of_points == expected


@pytest.mark.parametrize("gridstep, lo, hi", [(0.0, -1.0, 1.0), (-1.0, -1.0, 1.0), (1.0, 1.0, 1.0)])
def test_gauss_digitize_invalid(gridstep, lo, hi):
    with pytest.raises(ValueError):
        gauss_digitize(ImplicitPolynomialShape("sphere1"), gridstep=gridstep, min_aabb=lo, max_aabb=hi)
