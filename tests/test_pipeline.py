import logging

import numpy as np
import pytest

from gaussnormals.__main__ import main
from gaussnormals.config import Parameters
from gaussnormals.pipeline import REPORT_HEADER, run_pipeline


@pytest.fixture(scope="module")
def sphere_result():
    return run_pipeline(Parameters(polynomial="sphere9", gridstep=1.0))


@pytest.fixture
def reset_logging():
    yield
    logger = logging.getLogger("gaussnormals")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_sphere_pipeline(sphere_result):
    n = len(sphere_result.surface.surfels)
    assert n > 0
    assert sphere_result.normals.shape == (n, 3)
    assert sphere_result.expected.shape == (n, 3)
    assert sphere_result.deviation.shape == (n,)

    accumulation = sphere_result.accumulation
    assert accumulation.n_recovered == n
    assert not accumulation.out_surfels
    assert accumulation.recovered.all()
    assert not (accumulation.in_surfels & accumulation.out_surfels)

    lengths = np.linalg.norm(sphere_result.normals, axis=1)
    assert np.all((lengths == 0.0) | (np.abs(lengths - 1.0) < 1e-9))
    np.testing.assert_allclose(np.linalg.norm(sphere_result.expected, axis=1), 1.0)

    stat = sphere_result.statistic
    assert np.all((sphere_result.deviation >= 0.0) & (sphere_result.deviation <= np.pi))
    assert stat.min <= stat.mean <= stat.max
    assert stat.mean < 0.35


@pytest.mark.parametrize("polynomial, gridstep", [("sphere9", 1.0), ("ellipsoid", 0.5)])
def test_hull_faces_cover_the_whole_surface(polynomial, gridstep):
    result = run_pipeline(Parameters(polynomial=polynomial, gridstep=gridstep))
    accumulation = result.accumulation
    assert len(accumulation.out_surfels) == 0
    assert accumulation.n_recovered == accumulation.n_surfels
    assert accumulation.n_unrecovered == 0
    assert result.statistic.max < np.pi / 2
    assert result.statistic.mean < 0.2


def test_expected_normals_point_outward(sphere_result):
    centers = sphere_result.surface.vertices[np.asarray(sphere_result.surface.faces)].mean(axis=1)
    assert np.all(np.einsum("ij,ij->i", centers, sphere_result.expected) > 0.0)


def test_report_line(sphere_result):
    values = sphere_result.report_line().split()
    assert len(values) == len(REPORT_HEADER.split())
    assert float(values[0]) == 1.0
    assert int(values[1]) == len(sphere_result.normals)


def test_invalid_parameters():
    with pytest.raises(ValueError):
        run_pipeline(Parameters(polynomial="sphere9", gridstep=-1.0))
    with pytest.raises(ValueError):
        run_pipeline(Parameters(polynomial="sphere9", min_aabb=1.0, max_aabb=0.0))


def test_shape_outside_the_bounding_box():
    # nothing of the shape is digitized
    with pytest.raises(ValueError):
        run_pipeline(Parameters(polynomial="(x-100)^2 + y^2 + z^2 - 1", gridstep=1.0))


def test_cli_report(capsys, tmp_path, reset_logging):
    export = tmp_path / "surface.vtp"
    histogram = tmp_path / "deviation.png"
    code = main(["-p", "sphere9", "-g", "1", "--export", str(export), "--histogram", str(histogram)])
    assert code == 0
    captured = capsys.readouterr()
    # the log goes to stderr, stdout holds the report only
    lines = captured.out.splitlines()
    assert len(lines) == 2
    assert lines[0] == REPORT_HEADER
    assert len(lines[1].split()) == len(REPORT_HEADER.split())
    assert REPORT_HEADER not in captured.err
    assert "normal estimation" in captured.err
    assert export.exists()
    assert histogram.exists()


def test_cli_list(capsys):
    assert main(["--list"]) == 0
    out = capsys.readouterr().out
    assert "ellipsoid" in out
    assert "rcube" in out


def test_cli_invalid_gridstep():
    with pytest.raises(SystemExit) as excinfo:
        main(["-g", "0"])
    assert excinfo.value.code == 2


def test_cli_failure_exit_code(reset_logging):
    assert main(["-p", "x^2 + w^2 - 1", "-g", "1"]) == 1
