"""Normal recovery on Gauss digitized convex shapes from their digitized convex hull."""
from gaussnormals.analysis import (
    DigitizedConvexPolygon,
    NormalAccumulation,
    NormalAccumulator,
    Statistic,
    accumulate_normals,
    angle_deviation,
    deviation,
    digitize_face,
    expected_normals,
)
from gaussnormals.config import Parameters
from gaussnormals.pipeline import PipelineResult, run_pipeline
from gaussnormals.pre import (
    Cell,
    ConvexHullManager,
    DigitalSurface,
    ImplicitPolynomialShape,
    SurfaceManager,
    SurfelIndex,
    gauss_digitize,
)
