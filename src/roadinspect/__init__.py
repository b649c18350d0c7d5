#!/usr/bin/env python3
"""
roadinspect - Geospatial analysis and route planning for road inspections.

This package provides tools to measure road traces, detect critical points
along them, search for nearby pathologies, and plan inspection routes over a
batch of roads.
"""
import importlib.metadata

__version__ = importlib.metadata.version("roadinspect")

# Import main classes for public API
from .geometry import InvalidInputError, Position
from .road import CentroidStrategy, Pathology, Road
from .analysis import (
    CriticalPoints,
    RoadAreaResult,
    analyze_road_area,
    detect_critical_points,
)
from .proximity import find_nearby_pathologies, find_within_radius
from .optimizer import RouteOptimizationResult, optimize_inspection_route

__all__ = [
    "InvalidInputError",
    "Position",
    "CentroidStrategy",
    "Pathology",
    "Road",
    "CriticalPoints",
    "RoadAreaResult",
    "analyze_road_area",
    "detect_critical_points",
    "find_nearby_pathologies",
    "find_within_radius",
    "RouteOptimizationResult",
    "optimize_inspection_route",
]
