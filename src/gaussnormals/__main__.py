"""Command-line interface."""
import argparse
import logging
import sys
from typing import Optional

from gaussnormals.config import (
    DEFAULT_GRIDSTEP,
    DEFAULT_MAX_AABB,
    DEFAULT_MIN_AABB,
    DEFAULT_POLYNOMIAL,
    Parameters,
)
from gaussnormals.logging_config import setup_logging
from gaussnormals.pipeline import REPORT_HEADER, run_pipeline
from gaussnormals.pre.shapes import POLYNOMIALS

logger = logging.getLogger("gaussnormals")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gaussnormals",
        description="Demo: 'Geometry of Gauss digitized convex shapes'. Estimates the "
                    "normals of a digital surface from its digitized convex hull.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "-p", "--polynomial",
        default=DEFAULT_POLYNOMIAL,
        help=f"A polynomial (or a name in the following list: {', '.join(POLYNOMIALS)})",
    )
    parser.add_argument("-g", "--gridstep", type=float, default=DEFAULT_GRIDSTEP, help="Grid step")
    parser.add_argument("--min-aabb", type=float, default=DEFAULT_MIN_AABB,
                        help="Lower bound of the bounding box")
    parser.add_argument("--max-aabb", type=float, default=DEFAULT_MAX_AABB,
                        help="Upper bound of the bounding box")
    parser.add_argument("--list", action="store_true", help="List the named polynomials and exit")
    parser.add_argument("--show", action="store_true", help="Open the 3-D viewer")
    parser.add_argument("--export", metavar="PATH",
                        help="Save the surface with its normals and deviation (e.g. surface.vtp)")
    parser.add_argument("--histogram", metavar="PATH", help="Save a histogram of the angle deviation")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--log-file", metavar="PATH", help="Also write the log to this file")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        for name, expression in POLYNOMIALS.items():
            print(f"{name:10s} {expression}")
        return 0

    parameters = Parameters(
        polynomial=args.polynomial,
        gridstep=args.gridstep,
        min_aabb=args.min_aabb,
        max_aabb=args.max_aabb,
    )
    try:
        parameters.validate()
    except ValueError as e:
        parser.error(str(e))

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file)

    try:
        result = run_pipeline(parameters)
    except Exception as e:
        logger.exception(f"Normal recovery failed: {e}")
        return 1

    print(REPORT_HEADER)
    print(result.report_line())

    # viewer, export and plot only need the computed result
    if args.export or args.histogram or args.show:
        from gaussnormals.view import viewer

        if args.export:
            viewer.export_surface(result, args.export)
        if args.histogram:
            viewer.plot_deviation_histogram(result.deviation, path=args.histogram)
        if args.show:
            viewer.show(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
