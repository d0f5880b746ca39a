from gaussnormals.pre.convex_hull import ConvexHullManager
from gaussnormals.pre.kspace import Cell
from gaussnormals.pre.shapes import POLYNOMIALS, DigitizedShape, ImplicitPolynomialShape, gauss_digitize
from gaussnormals.pre.surface import DigitalSurface, SurfaceManager, SurfelIndex
