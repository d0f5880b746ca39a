"""
Visualisation & Export
======================
3-D view of the digital surface with the estimated and expected normals, the
deviation as a cell scalar field, and the convex hull as a translucent mesh.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pyvista as pv

if TYPE_CHECKING:
    import numpy.typing as npt

    from gaussnormals.pipeline import PipelineResult

logger = logging.getLogger(__name__)

ESTIMATED_NORMALS = "Estimated Normals"
EXPECTED_NORMALS = "Expected Normals"
DEVIATION = "Deviation"
RECOVERED = "Recovered"


def polygons_to_polydata(
    vertices: npt.NDArray[np.float64],
    faces: Sequence[Sequence[int]],
) -> pv.PolyData:
    """
    Build a PolyData from a vertex array and a list of polygonal faces.

    Args:
        vertices: Vertex positions, shape (V, 3).
        faces: Faces as lists of vertex indices.

    Returns:
        PolyData with one cell per face, in the same order.
    """
    cells = np.hstack([[len(f), *f] for f in faces]).astype(np.int64) if faces else np.empty(0, dtype=np.int64)
    return pv.PolyData(np.asarray(vertices, dtype=np.float64), cells)


def surface_polydata(result: PipelineResult) -> pv.PolyData:
    """Surface quad mesh with the per surfel quantities as cell data."""
    mesh = polygons_to_polydata(result.surface.vertices, result.surface.faces)
    mesh.cell_data[ESTIMATED_NORMALS] = result.normals
    mesh.cell_data[EXPECTED_NORMALS] = result.expected
    mesh.cell_data[DEVIATION] = result.deviation
    mesh.cell_data[RECOVERED] = result.accumulation.recovered.astype(np.int8)
    return mesh


def convex_hull_polydata(result: PipelineResult) -> pv.PolyData:
    return polygons_to_polydata(result.convex_hull.vertices, result.convex_hull.faces)


def export_surface(result: PipelineResult, path: str) -> None:
    """
    Save the surface mesh with its quantities (format given by the extension, e.g. .vtp, .vtk).
    """
    mesh = surface_polydata(result)
    mesh.save(path)
    logger.info(f"Surface exported to: {path}")


def show(result: PipelineResult, arrow_factor: float = 0.5) -> None:
    """
    Open an interactive window with the surface, its normals and the convex hull.

    Args:
        result: Result of the pipeline.
        arrow_factor: Length of the normal arrows, in voxels.
    """
    surface = surface_polydata(result)
    hull = convex_hull_polydata(result)

    plotter = pv.Plotter(title=f"{result.shape.name} - gridstep {result.parameters.gridstep}")
    plotter.add_mesh(
        surface,
        scalars=DEVIATION,
        cmap="jet",
        show_edges=True,
        line_width=1.0,
        scalar_bar_args={"title": "Deviation (rad)", "vertical": True},
        label="Surface",
    )
    plotter.add_mesh(
        hull,
        style="wireframe",
        color="black",
        line_width=2.0,
        opacity=0.25,
        label="Convex hull",
    )

    centers = surface.cell_centers()
    for name, color in ((ESTIMATED_NORMALS, "red"), (EXPECTED_NORMALS, "green")):
        centers[name] = surface.cell_data[name]
        arrows = centers.glyph(orient=name, scale=False, factor=arrow_factor)
        plotter.add_mesh(arrows, color=color, label=name)

    plotter.add_legend()
    plotter.show()


def plot_deviation_histogram(
    samples: npt.NDArray[np.float64],
    path: Optional[str] = None,
    bins: int = 50,
) -> None:
    """
    Histogram of the angle deviation, in degrees.

    Args:
        samples: Angle deviation per surfel (radians).
        path: If given, the figure is saved there instead of being shown.
        bins: Number of bins.
    """
    degrees = np.degrees(np.asarray(samples, dtype=np.float64))

    fig, ax = plt.subplots()
    ax.hist(degrees, bins=bins, color="tab:blue", edgecolor="black", lw=0.5)
    ax.set_xlabel("Angle deviation (°)")
    ax.set_ylabel("Number of surfels")
    ax.grid(visible=True, which="major", axis="both", linestyle="-", color="gray", lw=0.5)

    if path:
        fig.savefig(path)
        plt.close(fig)
        logger.info(f"Histogram saved to: {path}")
    else:
        plt.show()
