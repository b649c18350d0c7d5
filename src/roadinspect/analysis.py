#!/usr/bin/env python3
"""
Per-road geometric analysis: enclosed area and critical points.
"""

from typing import Any, Dict, List, NamedTuple
import logging
import math

from .geometry import (
    Position,
    close_ring,
    distance_km,
    distinct_locations,
    line_length_km,
    polygon_area_square_meters,
    self_intersections,
    turning_angle,
)
from .road import Road

logger = logging.getLogger(__name__)

DEFAULT_SHARP_TURN_DEGREES = 45.0
DEFAULT_STEEP_SLOPE_RATIO = 0.10


class RoadAreaResult(NamedTuple):
    """Area and perimeter of a road trace treated as a closed boundary."""

    area_square_meters: float
    perimeter_km: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "area_square_meters": self.area_square_meters,
            "perimeter_km": self.perimeter_km,
        }


class CriticalPoints(NamedTuple):
    """Structurally significant points found along a road trace."""

    intersections: List[Position]
    sharp_turns: List[Position]
    steep_slopes: List[Position]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intersections": [pos.to_dict() for pos in self.intersections],
            "sharp_turns": [pos.to_dict() for pos in self.sharp_turns],
            "steep_slopes": [pos.to_dict() for pos in self.steep_slopes],
        }


def analyze_road_area(road: Road) -> RoadAreaResult:
    """
    Calculate the area and perimeter of a road trace treated as a polygon boundary.

    The trace is closed if its first and last points differ. A trace with
    fewer than three distinct points cannot enclose an area; it reports an
    area of 0 and its raw, unclosed line length as perimeter.

    Args:
        road: Road to analyze

    Returns:
        RoadAreaResult with area in square meters and perimeter in kilometers
    """
    if len(distinct_locations(road.coordinates)) < 3:
        area = 0.0
        perimeter = line_length_km(road.coordinates)
    else:
        area = polygon_area_square_meters(road.coordinates)
        perimeter = line_length_km(close_ring(road.coordinates))

    logger.debug(
        f"{road.get_display_name()}: area={area:.1f}m², perimeter={perimeter:.3f}km"
    )
    return RoadAreaResult(area_square_meters=area, perimeter_km=perimeter)


def segment_slope(start: Position, end: Position) -> float:
    """
    Absolute elevation change per meter of horizontal distance between two points.

    Missing elevations count as 0.0. Coincident points have slope 0 when the
    elevation is unchanged and infinite slope otherwise.
    """
    rise = abs(end.elevation_or_zero - start.elevation_or_zero)
    run = distance_km(start, end) * 1000.0
    if run == 0.0:
        return math.inf if rise > 0.0 else 0.0
    return rise / run


def find_sharp_turns(
    coords: List[Position], threshold_degrees: float = DEFAULT_SHARP_TURN_DEGREES
) -> List[Position]:
    """
    Find vertices where the trace turns by more than threshold_degrees.

    The turn is measured at each interior vertex, but the point reported is
    the one following that vertex. Downstream consumers rely on this
    convention, so a turn at the last interior vertex reports the final point.
    """
    turns = []
    for i in range(1, len(coords) - 1):
        angle = turning_angle(coords[i - 1], coords[i], coords[i + 1])
        if abs(angle) > threshold_degrees:
            turns.append(coords[i + 1])
    return turns


def find_steep_slopes(
    coords: List[Position], threshold_ratio: float = DEFAULT_STEEP_SLOPE_RATIO
) -> List[Position]:
    """Find the end point of every segment whose slope exceeds threshold_ratio."""
    return [
        coords[i]
        for i in range(1, len(coords))
        if segment_slope(coords[i - 1], coords[i]) > threshold_ratio
    ]


def detect_critical_points(
    road: Road,
    sharp_turn_degrees: float = DEFAULT_SHARP_TURN_DEGREES,
    steep_slope_ratio: float = DEFAULT_STEEP_SLOPE_RATIO,
) -> CriticalPoints:
    """
    Detect self-intersections, sharp turns and steep slopes along a road.

    Args:
        road: Road to analyze
        sharp_turn_degrees: Turning angle above which a vertex is a sharp turn
        steep_slope_ratio: Rise over run above which a segment is steep

    Returns:
        CriticalPoints in road order (intersections sorted by latitude, longitude)
    """
    coords = road.coordinates
    critical = CriticalPoints(
        intersections=self_intersections(coords),
        sharp_turns=find_sharp_turns(coords, sharp_turn_degrees),
        steep_slopes=find_steep_slopes(coords, steep_slope_ratio),
    )

    logger.debug(
        f"{road.get_display_name()}: {len(critical.intersections)} intersections, "
        f"{len(critical.sharp_turns)} sharp turns, "
        f"{len(critical.steep_slopes)} steep slopes"
    )
    return critical
