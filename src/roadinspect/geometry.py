"""
Geometry primitives for road trace analysis.

This module provides the value type used for every coordinate in the engine
together with the pure geometric functions built on top of it: great-circle
distances and bearings, turning angles, line lengths, geodesic polygon areas
via pyproj, and segment self-intersection detection using Shapely.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple
import logging
import math

from shapely.geometry import LineString
import pyproj

logger = logging.getLogger(__name__)

# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

WGS84_GEOD = pyproj.Geod(ellps="WGS84")


class InvalidInputError(ValueError):
    """Raised when a caller violates an input contract of the engine."""

    pass


class Position(NamedTuple):
    """Represents a geographic position with latitude, longitude and optional elevation."""

    latitude: float
    longitude: float
    elevation: Optional[float] = None  # meters

    @property
    def elevation_or_zero(self) -> float:
        """Elevation in meters, with a missing value treated as an explicit 0.0."""
        return self.elevation if self.elevation is not None else 0.0

    def same_location(self, other: "Position") -> bool:
        """True if both positions share latitude and longitude, ignoring elevation."""
        return self.latitude == other.latitude and self.longitude == other.longitude

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"lat": self.latitude, "lng": self.longitude}
        if self.elevation is not None:
            data["elevation"] = self.elevation
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        """
        Build a Position from a ``{"lat", "lng", "elevation"?}`` record.

        Args:
            data: Mapping as exported by the application layer

        Returns:
            Validated Position

        Raises:
            InvalidInputError: If keys are missing, values are not numeric, or
                the coordinate is out of range
        """
        try:
            latitude = float(data["lat"])
            longitude = float(data["lng"])
            elevation = data.get("elevation")
            if elevation is not None:
                elevation = float(elevation)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidInputError(f"Malformed coordinate record {data!r}: {e}")
        return validate_position(cls(latitude, longitude, elevation))


def validate_position(position: Position) -> Position:
    """
    Check that a position lies within valid latitude/longitude ranges.

    Raises:
        InvalidInputError: If latitude is outside [-90, 90] or longitude is
            outside [-180, 180], or either is NaN
    """
    if not -90.0 <= position.latitude <= 90.0:
        raise InvalidInputError(
            f"Latitude {position.latitude} is outside the range [-90, 90]"
        )
    if not -180.0 <= position.longitude <= 180.0:
        raise InvalidInputError(
            f"Longitude {position.longitude} is outside the range [-180, 180]"
        )
    return position


def distance_km(coord1: Position, coord2: Position) -> float:
    """
    Calculate the great-circle distance between two coordinates.

    Uses the Haversine formula on a spherical Earth with mean radius 6371 km.

    Args:
        coord1: First coordinate position
        coord2: Second coordinate position

    Returns:
        Distance in kilometers
    """
    lat1, lon1 = math.radians(coord1.latitude), math.radians(coord1.longitude)
    lat2, lon2 = math.radians(coord2.latitude), math.radians(coord2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a marginally above 1 for antipodal points
    a = min(a, 1.0)

    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def calculate_bearing(start: Position, end: Position) -> float:
    """
    Calculate the initial great-circle bearing from start to end.

    Returns:
        Bearing in degrees, in the range [0, 360)
    """
    lat1, lat2 = math.radians(start.latitude), math.radians(end.latitude)
    dlon = math.radians(end.longitude - start.longitude)

    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )

    return math.degrees(math.atan2(x, y)) % 360.0


def normalize_angle(angle: float) -> float:
    """Normalize an angle in degrees into the half-open range (-180, 180]."""
    normalized = math.fmod(angle, 360.0)
    if normalized <= -180.0:
        normalized += 360.0
    elif normalized > 180.0:
        normalized -= 360.0
    return normalized


def turning_angle(a: Position, b: Position, c: Position) -> float:
    """
    Calculate the signed turning angle of the path a -> b -> c.

    The angle is the change in heading at b: the bearing of b -> c minus the
    bearing of a -> b. Positive values are clockwise (right) turns, negative
    values counter-clockwise (left) turns.

    If a and b, or b and c, share a location the heading is undefined and the
    angle is reported as 0.0.

    Returns:
        Turning angle in degrees, in the range (-180, 180]
    """
    if a.same_location(b) or b.same_location(c):
        return 0.0

    incoming = calculate_bearing(a, b)
    outgoing = calculate_bearing(b, c)
    return normalize_angle(outgoing - incoming)


def line_length_km(points: Sequence[Position]) -> float:
    """
    Sum the great-circle distances between consecutive points.

    Returns:
        Length in kilometers, 0.0 for sequences with fewer than two points
    """
    return sum(distance_km(points[i - 1], points[i]) for i in range(1, len(points)))


def coords_to_polyline(coord_tuples: List[Tuple[float, float]]) -> LineString:
    """
    Convert a list of (longitude, latitude) tuples to a Shapely LineString.

    Raises:
        ValueError: If coord_tuples is empty or has less than 2 points
    """
    if not coord_tuples or len(coord_tuples) < 2:
        raise ValueError("At least two positions are required to create a LineString.")

    return LineString(coord_tuples)


def distinct_locations(points: Sequence[Position]) -> List[Position]:
    """Drop repeated locations, keeping the first occurrence of each."""
    seen = set()
    distinct = []
    for point in points:
        key = (point.latitude, point.longitude)
        if key not in seen:
            seen.add(key)
            distinct.append(point)
    return distinct


def close_ring(points: Sequence[Position]) -> List[Position]:
    """Return the ring with its first point appended if it is not already closed."""
    ring = list(points)
    if ring and not ring[0].same_location(ring[-1]):
        ring.append(ring[0])
    return ring


def polygon_area_square_meters(ring: Sequence[Position]) -> float:
    """
    Calculate the area enclosed by a ring of positions.

    The area is the geodesic area on the WGS84 ellipsoid, so rings crossing
    the antimeridian measure the same as anywhere else. The ring is closed
    automatically and winding direction does not affect the result.

    Args:
        ring: Ordered boundary positions, closed or open

    Returns:
        Area in square meters, 0.0 for rings with fewer than 3 distinct points
    """
    if len(distinct_locations(ring)) < 3:
        return 0.0

    closed = close_ring(ring)
    lons = [pos.longitude for pos in closed]
    lats = [pos.latitude for pos in closed]

    # Signed by winding direction
    area, _ = WGS84_GEOD.polygon_area_perimeter(lons, lats)
    return abs(area)


def _segment_crossings(segment1: LineString, segment2: LineString) -> List[Tuple[float, float]]:
    """Return the (lon, lat) points where two segments meet."""
    if not segment1.intersects(segment2):
        return []

    intersection = segment1.intersection(segment2)
    if intersection.is_empty:
        return []
    if intersection.geom_type == "Point":
        return [(intersection.x, intersection.y)]
    if intersection.geom_type == "LineString":
        # Collinear overlap: report the ends of the shared stretch
        coords = list(intersection.coords)
        return [coords[0], coords[-1]]
    return [
        (part.x, part.y)
        for part in getattr(intersection, "geoms", [])
        if part.geom_type == "Point"
    ]


def self_intersections(points: Sequence[Position]) -> List[Position]:
    """
    Find every point where two non-adjacent segments of a polyline cross.

    The points are treated as a single open line (not auto-closed) in the
    longitude/latitude plane. Repeated consecutive points are collapsed, and
    when the line ends where it starts its first and last segments count as
    adjacent.

    Args:
        points: Ordered positions of the polyline

    Returns:
        Distinct intersection positions sorted by (latitude, longitude)
    """
    # Repeated consecutive points would make neighbouring segments look non-adjacent
    coord_tuples: List[Tuple[float, float]] = []
    for pos in points:
        coord = (pos.longitude, pos.latitude)
        if not coord_tuples or coord_tuples[-1] != coord:
            coord_tuples.append(coord)

    if len(coord_tuples) < 4:
        return []

    segments = [
        coords_to_polyline(coord_tuples[i : i + 2]) for i in range(len(coord_tuples) - 1)
    ]

    # A trace ending where it started joins its first and last segments
    closed = coord_tuples[0] == coord_tuples[-1]
    last = len(segments) - 1

    found = set()
    for i, segment1 in enumerate(segments):
        for j in range(i + 2, len(segments)):
            segment2 = segments[j]
            if closed and i == 0 and j == last:
                continue
            for lon, lat in _segment_crossings(segment1, segment2):
                found.add((lat, lon))

    if found:
        logger.debug(f"Found {len(found)} self-intersections in {len(points)} points")

    return [Position(latitude=lat, longitude=lon) for lat, lon in sorted(found)]
