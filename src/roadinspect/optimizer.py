#!/usr/bin/env python3
"""
Inspection route planning over a batch of roads.
"""

from typing import Any, Dict, List, NamedTuple, Sequence
import logging

from .geometry import InvalidInputError, Position, distance_km, line_length_km
from .road import CentroidStrategy, Road

logger = logging.getLogger(__name__)

# Assumed average speed of an inspection crew, in km/h
DEFAULT_INSPECTION_SPEED_KMH = 30.0


class RouteOptimizationResult(NamedTuple):
    """An ordered visiting plan for a batch of roads."""

    ordered_roads: List[Road]
    total_distance_km: float
    estimated_time_hours: float
    waypoints: List[Position]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ordered_roads": [road.id for road in self.ordered_roads],
            "total_distance_km": self.total_distance_km,
            "estimated_time_hours": self.estimated_time_hours,
            "waypoints": [pos.to_dict() for pos in self.waypoints],
        }


def nearest_neighbor_tour(points: Sequence[Position]) -> List[int]:
    """
    Build a greedy tour starting at the first point.

    At each step the closest unvisited point is visited next; on equal
    distances the point appearing first in the input wins.

    Args:
        points: Points to visit

    Returns:
        Indices into points in visiting order
    """
    if not points:
        return []

    tour = [0]
    unvisited = list(range(1, len(points)))
    current = points[0]

    while unvisited:
        nearest_pos = 0
        nearest_distance = float("inf")
        for pos, index in enumerate(unvisited):
            distance = distance_km(current, points[index])
            if distance < nearest_distance:
                nearest_pos = pos
                nearest_distance = distance

        index = unvisited.pop(nearest_pos)
        tour.append(index)
        current = points[index]

    return tour


def optimize_inspection_route(
    roads: Sequence[Road],
    speed_kmh: float = DEFAULT_INSPECTION_SPEED_KMH,
    centroid_strategy: CentroidStrategy = CentroidStrategy.FLAT_AVERAGE,
) -> RouteOptimizationResult:
    """
    Plan an inspection route visiting every road's centroid.

    The waypoints follow a nearest-neighbor tour seeded at the first road,
    so the result depends on input order and is not guaranteed optimal.
    ordered_roads is sorted separately, by distance of each road's centroid
    to the first waypoint, and generally differs from the tour order.

    Args:
        roads: Roads to visit, at least one
        speed_kmh: Average travel speed used for the time estimate
        centroid_strategy: How each road's centroid is computed

    Returns:
        RouteOptimizationResult for the batch

    Raises:
        InvalidInputError: If roads is empty or speed_kmh is not positive
    """
    if not roads:
        raise InvalidInputError("Cannot optimize an inspection route without roads")
    if speed_kmh <= 0:
        raise InvalidInputError(f"Inspection speed must be positive, got {speed_kmh}")

    centroids = [road.centroid(centroid_strategy) for road in roads]
    tour = nearest_neighbor_tour(centroids)
    waypoints = [centroids[index] for index in tour]

    total_distance = line_length_km(waypoints)
    estimated_time = total_distance / speed_kmh

    start = waypoints[0]
    ranked = sorted(
        range(len(roads)), key=lambda index: distance_km(centroids[index], start)
    )
    ordered_roads = [roads[index] for index in ranked]

    logger.debug(
        f"Planned route over {len(roads)} roads: {total_distance:.2f}km, "
        f"{estimated_time:.2f}h at {speed_kmh}km/h ({centroid_strategy} centroids)"
    )

    return RouteOptimizationResult(
        ordered_roads=ordered_roads,
        total_distance_km=total_distance,
        estimated_time_hours=estimated_time,
        waypoints=waypoints,
    )
