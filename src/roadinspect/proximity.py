"""
Radius search over point-tagged entities.
"""

from typing import Iterable, List, Set, Tuple
import logging

from .geometry import Position, distance_km
from .road import Pathology

logger = logging.getLogger(__name__)


def find_within_radius(
    center: Position,
    radius_km: float,
    candidates: Iterable[Tuple[str, Position]],
) -> Set[str]:
    """
    Find the ids of all candidates within a radius of a center position.

    Performs a linear scan; the boundary is inclusive. A negative radius
    matches nothing.

    Args:
        center: Search center
        radius_km: Search radius in kilometers
        candidates: (id, position) pairs to test

    Returns:
        Set of ids whose position is at most radius_km from center
    """
    if radius_km < 0:
        logger.debug(f"Negative search radius {radius_km}km, returning no matches")
        return set()

    return {
        candidate_id
        for candidate_id, position in candidates
        if distance_km(center, position) <= radius_km
    }


def find_nearby_pathologies(
    center: Position, radius_km: float, pathologies: Iterable[Pathology]
) -> List[Pathology]:
    """
    Select the pathologies located within a radius of a center position.

    Args:
        center: Search center
        radius_km: Search radius in kilometers
        pathologies: Pathology records to filter

    Each record is tested on its own coordinates, so records sharing an id
    are kept or dropped independently.

    Returns:
        Matching pathologies, in input order
    """
    pathologies = list(pathologies)
    if radius_km < 0:
        nearby = []
    else:
        nearby = [
            p for p in pathologies if distance_km(center, p.coordinates) <= radius_km
        ]

    logger.debug(
        f"Found {len(nearby)}/{len(pathologies)} pathologies within {radius_km}km "
        f"of ({center.latitude:.5f}, {center.longitude:.5f})"
    )
    return nearby
