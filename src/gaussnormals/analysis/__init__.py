from gaussnormals.analysis.deviation import Statistic, angle_deviation, deviation
from gaussnormals.analysis.ground_truth import expected_normals
from gaussnormals.analysis.normals import NormalAccumulation, NormalAccumulator, accumulate_normals
from gaussnormals.analysis.polygon import DigitizedConvexPolygon, digitize_face
