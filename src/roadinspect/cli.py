#!/usr/bin/env python3
"""
Road inspection planning tool.
This script loads road traces (GPX tracks or JSON road records), plans an
inspection route over them, analyzes each road's area and critical points,
and writes a JSON report.

Requirements:
    pip install gpxpy shapely pyproj

"""

from typing import Dict, List, Optional, Tuple
import argparse
import json
import logging
import os
import sys
from gpxpy import gpx

from . import __version__
from .analysis import CriticalPoints, RoadAreaResult, analyze_road_area, detect_critical_points
from .config import InspectionConfig
from .file_utils import generate_output_filename
from .geometry import InvalidInputError, Position, validate_position
from .metrics import collect_metrics, log_metrics
from .optimizer import RouteOptimizationResult, optimize_inspection_route
from .proximity import find_nearby_pathologies
from .road import CentroidStrategy, Pathology, Road, load_pathologies_json, load_roads_json

# Configure logging
logger = logging.getLogger("roadinspect")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Road inspection route planning and geometry analysis tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "inputs",
        type=str,
        nargs="*",
        help="GPX road traces or JSON road collections to process",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output JSON report file (default: auto-generated based on first input filename)",
    )
    parser.add_argument(
        "--pathologies",
        type=str,
        default=None,
        help="JSON file of pathology records to search around --center",
    )
    parser.add_argument(
        "--center",
        type=parse_center,
        default=None,
        help="Search center as LAT,LNG (default: first route waypoint)",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=1.0,
        help="Pathology search radius in kilometers (default: 1.0)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=30.0,
        help="Average inspection speed in km/h (default: 30.0)",
    )
    parser.add_argument(
        "--sharp-turn-degrees",
        type=float,
        default=45.0,
        help="Turning angle above which a vertex is a sharp turn (default: 45.0)",
    )
    parser.add_argument(
        "--steep-slope",
        type=float,
        default=0.10,
        help="Rise over run above which a segment is steep (default: 0.10)",
    )
    parser.add_argument(
        "--centroid-strategy",
        type=str,
        default=CentroidStrategy.FLAT_AVERAGE.value,
        choices=[strategy.value for strategy in CentroidStrategy],
        help="How road centroids are computed for route planning (default: flat)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"roadinspect {__version__}",
    )
    return parser


def parse_center(value: str) -> Position:
    """Parse a ``LAT,LNG`` command-line value into a Position."""
    try:
        lat, lng = (float(part) for part in value.split(","))
        return validate_position(Position(latitude=lat, longitude=lng))
    except (ValueError, InvalidInputError) as e:
        raise argparse.ArgumentTypeError(f"invalid center {value!r}: {e}")


def determine_output_filename(input_filename: str, output_arg: Optional[str]) -> str:
    """
    Determine the output filename to use.

    Args:
        input_filename: Path to the first input file
        output_arg: Value from --output argument (None if not specified)

    Returns:
        Output filename to use

    Raises:
        RuntimeError: If auto-generation fails
        ValueError: If constructed filename would be illegal
    """
    if output_arg is not None:
        return output_arg

    try:
        return generate_output_filename(input_filename)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to generate output filename: {e}")
        raise


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    level = getattr(logging, args.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def load_roads(filenames: List[str]) -> List[Road]:
    """
    Load roads from GPX traces and JSON road collections.

    GPX files become a single road each, identified by the file's base name.

    Raises:
        FileNotFoundError: If a file doesn't exist.
        PermissionError: If a file can't be read.
        gpxpy.gpx.GPXException: If a GPX file is malformed.
        json.JSONDecodeError: If a JSON file is malformed.
        InvalidInputError: If a record is invalid.
    """
    roads: List[Road] = []
    for filename in filenames:
        if filename.lower().endswith(".gpx"):
            road_id = os.path.splitext(os.path.basename(filename))[0]
            roads.append(Road.from_file(filename, road_id))
        else:
            logger.debug(f"Reading road JSON file: {filename}")
            with open(filename, "r", encoding="utf-8") as f:
                roads.extend(load_roads_json(f))
    return roads


def load_pathologies(filename: str) -> List[Pathology]:
    """Load pathology records from a JSON file."""
    logger.debug(f"Reading pathology JSON file: {filename}")
    with open(filename, "r", encoding="utf-8") as f:
        return load_pathologies_json(f)


def analyze_roads(
    roads: List[Road], config: InspectionConfig
) -> Tuple[Dict[str, RoadAreaResult], Dict[str, CriticalPoints]]:
    """Run area and critical point analysis for every road, keyed by road id."""
    areas: Dict[str, RoadAreaResult] = {}
    critical_points: Dict[str, CriticalPoints] = {}
    for road in roads:
        if road.id in areas:
            logger.warning(f"Duplicate road id {road.id}; keeping the last analysis")
        areas[road.id] = analyze_road_area(road)
        critical_points[road.id] = detect_critical_points(
            road, config.sharp_turn_degrees, config.steep_slope_ratio
        )
    return areas, critical_points


def build_report(
    roads: List[Road],
    plan: RouteOptimizationResult,
    areas: Dict[str, RoadAreaResult],
    critical_points: Dict[str, CriticalPoints],
    nearby: Optional[List[Pathology]],
) -> Dict:
    """Assemble the JSON-serializable report for a processed batch."""
    report = {
        "route": plan.to_dict(),
        "roads": [
            {
                "id": road.id,
                "name": road.get_display_name(),
                "area": areas[road.id].to_dict(),
                "critical_points": critical_points[road.id].to_dict(),
            }
            for road in roads
        ],
    }
    if nearby is not None:
        report["nearby_pathologies"] = [p.to_dict() for p in nearby]
    return report


def print_route_summary(
    plan: RouteOptimizationResult, critical_points: Dict[str, CriticalPoints]
) -> None:
    """
    Print the planned route and a per-road summary of critical points.

    Args:
        plan: Route plan to summarize
        critical_points: Critical points keyed by road id
    """
    print(
        f"Inspection route ({len(plan.waypoints)} waypoints; "
        f"{plan.total_distance_km:.2f} km; {plan.estimated_time_hours:.2f} h):"
    )
    for i, waypoint in enumerate(plan.waypoints, start=1):
        print(f"{i:3d}. {waypoint.latitude:10.5f}, {waypoint.longitude:11.5f}")

    print("Roads:")
    for road in plan.ordered_roads:
        points = critical_points[road.id]
        print(
            f"  {road.get_display_name()}: {len(points.intersections)} intersections, "
            f"{len(points.sharp_turns)} sharp turns, {len(points.steep_slopes)} steep slopes"
        )


def main():
    """
    Parses command-line arguments, loads the roads, plans the inspection
    route, analyzes each road and writes a JSON report.
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.inputs:
        parser.print_help()
        sys.exit(1)

    setup_logging(args)
    config = InspectionConfig.from_args(args)

    try:
        output_filename = determine_output_filename(args.inputs[0], args.output)
        logger.debug(f"Output filename: {output_filename}")
    except (RuntimeError, ValueError):
        sys.exit(1)

    try:
        roads = load_roads(args.inputs)
        pathologies = (
            load_pathologies(args.pathologies) if args.pathologies is not None else None
        )
    except FileNotFoundError as e:
        logger.error(f"Input file not found: {e.filename}")
        sys.exit(1)
    except PermissionError as e:
        logger.error(f"Cannot read input file (permission denied): {e.filename}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        sys.exit(1)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON file: {e}")
        sys.exit(1)
    except InvalidInputError as e:
        logger.error(f"Invalid input: {e}")
        sys.exit(1)
    logger.info(f"Loaded {len(roads)} roads")

    try:
        plan = optimize_inspection_route(
            roads, config.speed_kmh, CentroidStrategy(config.centroid_strategy)
        )
    except InvalidInputError as e:
        logger.error(f"Cannot plan inspection route: {e}")
        sys.exit(1)
    logger.info(f"Total route distance: {plan.total_distance_km:.2f} km")

    areas, critical_points = analyze_roads(roads, config)

    nearby = None
    if pathologies is not None:
        center = args.center if args.center is not None else plan.waypoints[0]
        nearby = find_nearby_pathologies(center, config.search_radius_km, pathologies)
        logger.info(f"Found {len(nearby)} pathologies within {config.search_radius_km} km")

    print_route_summary(plan, critical_points)

    metrics = collect_metrics(roads, areas, critical_points, plan, nearby)

    report = build_report(roads, plan, areas, critical_points, nearby)
    try:
        with open(output_filename, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
    except OSError as e:
        logger.error(f"Failed to write report: {e}")
        sys.exit(1)
    logger.info(f"Wrote report to {output_filename}")

    log_metrics(metrics, config)


if __name__ == "__main__":
    main()
