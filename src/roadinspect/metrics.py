"""
Module for collecting and logging metrics about an inspection batch.
"""

import logging
from typing import Dict, List, NamedTuple, Optional

from .analysis import CriticalPoints, RoadAreaResult
from .config import InspectionConfig
from .optimizer import RouteOptimizationResult
from .road import Pathology, Road

logger = logging.getLogger(__name__)


class InspectionMetrics(NamedTuple):
    """Container for inspection batch metrics data."""

    road_counts: Dict[str, int]
    critical_counts: Dict[str, int]
    route_distance_km: float
    route_time_hours: float
    total_area_square_meters: float
    nearby_pathologies: Optional[int]


def collect_metrics(
    roads: List[Road],
    areas: Dict[str, RoadAreaResult],
    critical_points: Dict[str, CriticalPoints],
    plan: RouteOptimizationResult,
    nearby: Optional[List[Pathology]] = None,
) -> InspectionMetrics:
    """
    Collect metrics from an analyzed inspection batch.

    Args:
        roads: Roads in the batch
        areas: Area results keyed by road id
        critical_points: Critical points keyed by road id
        plan: Route plan for the batch
        nearby: Pathologies found by radius search, if one was run

    Returns:
        InspectionMetrics containing all collected metrics
    """
    road_counts = {
        "total": len(roads),
        "points": sum(len(road) for road in roads),
        "enclosing": sum(1 for area in areas.values() if area.area_square_meters > 0),
        "with_critical_points": sum(
            1
            for points in critical_points.values()
            if points.intersections or points.sharp_turns or points.steep_slopes
        ),
    }
    critical_counts = {
        "intersections": sum(len(p.intersections) for p in critical_points.values()),
        "sharp_turns": sum(len(p.sharp_turns) for p in critical_points.values()),
        "steep_slopes": sum(len(p.steep_slopes) for p in critical_points.values()),
    }

    return InspectionMetrics(
        road_counts=road_counts,
        critical_counts=critical_counts,
        route_distance_km=plan.total_distance_km,
        route_time_hours=plan.estimated_time_hours,
        total_area_square_meters=sum(a.area_square_meters for a in areas.values()),
        nearby_pathologies=len(nearby) if nearby is not None else None,
    )


def log_metrics(metrics: InspectionMetrics, config: InspectionConfig) -> None:
    """
    Log detailed metrics after processing the batch.

    Args:
        metrics: InspectionMetrics containing collected metrics
        config: InspectionConfig containing settings like the metrics flag
    """
    if not config.metrics:
        return

    logger.debug("=== ROADINSPECT_METRICS ===")
    for key, count in metrics.road_counts.items():
        logger.debug(f"roads[{key}]={count}")
    for key, count in metrics.critical_counts.items():
        logger.debug(f"critical_points[{key}]={count}")
    logger.debug(f"route_distance_km={metrics.route_distance_km:.3f}")
    logger.debug(f"route_time_hours={metrics.route_time_hours:.3f}")
    logger.debug(f"total_area_square_meters={metrics.total_area_square_meters:.1f}")
    if metrics.nearby_pathologies is not None:
        logger.debug(f"nearby_pathologies={metrics.nearby_pathologies}")
    logger.debug("=== END_ROADINSPECT_METRICS ===")
