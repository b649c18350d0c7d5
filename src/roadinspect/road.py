#!/usr/bin/env python3
"""
Road and pathology data models for inspection analysis.
"""

from typing import Any, Dict, List, Optional, TextIO
from dataclasses import dataclass
from enum import Enum
import json
import logging
import math

import gpxpy
import gpxpy.gpx

from .geometry import InvalidInputError, Position, validate_position

logger = logging.getLogger(__name__)

# Optional survey measurements carried on road records, in meters
MEASUREMENT_FIELDS = (
    "length",
    "width",
    "paved_length",
    "sidewalk_length",
    "curb_length",
)


class CentroidStrategy(Enum):
    """Enumeration for the ways a road's centroid can be computed."""

    FLAT_AVERAGE = "flat"
    GEODESIC = "geodesic"

    def __str__(self) -> str:
        return self.value


def flat_average_centroid(coords: List[Position]) -> Position:
    """Arithmetic mean of latitudes and longitudes."""
    count = len(coords)
    return Position(
        latitude=sum(pos.latitude for pos in coords) / count,
        longitude=sum(pos.longitude for pos in coords) / count,
    )


def geodesic_centroid(coords: List[Position]) -> Position:
    """
    Mean of the positions as unit vectors on the sphere, projected back to
    latitude/longitude. Falls back to the flat average when the vectors
    cancel out (e.g. antipodal points).
    """
    x = y = z = 0.0
    for pos in coords:
        lat, lon = math.radians(pos.latitude), math.radians(pos.longitude)
        x += math.cos(lat) * math.cos(lon)
        y += math.cos(lat) * math.sin(lon)
        z += math.sin(lat)

    norm = math.sqrt(x * x + y * y + z * z)
    if norm < 1e-12:
        return flat_average_centroid(coords)

    return Position(
        latitude=math.degrees(math.asin(z / norm)),
        longitude=math.degrees(math.atan2(y, x)),
    )


class Road:
    """A surveyed road trace: an ordered sequence of positions with optional elevation."""

    def __init__(
        self,
        id: str,
        coordinates: List[Position],
        name: Optional[str] = None,
        service_order_id: Optional[str] = None,
        measurements: Optional[Dict[str, float]] = None,
    ):
        """Initializes a Road object.

        Args:
            id: Identifier of the road record.
            coordinates: Ordered positions of the road trace.
            name: Optional human-readable road name.
            service_order_id: Optional id of the owning service order.
            measurements: Optional survey measurements (length, width, ...).

        Raises:
            InvalidInputError: If coordinates is empty or contains an
                out-of-range position.
        """
        if not coordinates:
            raise InvalidInputError(f"Road {id} has no coordinates")
        for pos in coordinates:
            validate_position(pos)

        self.id = id
        self.coordinates = list(coordinates)
        self.name = name
        self.service_order_id = service_order_id
        self.measurements = dict(measurements or {})

    def __repr__(self) -> str:
        return f"Road(id={self.id!r}, points={len(self.coordinates)})"

    def __len__(self) -> int:
        """Return number of points in the road trace."""
        return len(self.coordinates)

    def __getitem__(self, index):
        """Allow indexing into the road trace."""
        return self.coordinates[index]

    def __iter__(self):
        """Allow iteration over the road trace."""
        return iter(self.coordinates)

    def get_display_name(self) -> str:
        """Road name, or ``<Road {id}>`` for unnamed roads."""
        return self.name if self.name else f"<Road {self.id}>"

    def centroid(
        self, strategy: CentroidStrategy = CentroidStrategy.FLAT_AVERAGE
    ) -> Position:
        """
        Calculate the centroid of the road trace.

        Args:
            strategy: FLAT_AVERAGE averages raw latitudes and longitudes;
                GEODESIC averages positions on the sphere.

        Returns:
            Centroid position (without elevation)
        """
        if strategy == CentroidStrategy.GEODESIC:
            return geodesic_centroid(self.coordinates)
        return flat_average_centroid(self.coordinates)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "coordinates": [pos.to_dict() for pos in self.coordinates],
        }
        if self.name is not None:
            data["name"] = self.name
        if self.service_order_id is not None:
            data["service_order_id"] = self.service_order_id
        data.update(self.measurements)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Road":
        """
        Build a Road from a record exported by the application layer.

        Args:
            data: Mapping with ``id`` and ``coordinates`` keys; ``name``,
                ``service_order_id`` and survey measurements are optional

        Returns:
            Validated Road

        Raises:
            InvalidInputError: If required keys are missing or malformed
        """
        if not isinstance(data, dict):
            raise InvalidInputError(f"Road record must be an object, got {data!r}")
        if "id" not in data:
            raise InvalidInputError("Road record is missing 'id'")
        raw_coords = data.get("coordinates")
        if not isinstance(raw_coords, list):
            raise InvalidInputError(f"Road {data['id']} has no coordinate list")

        measurements = {}
        for key in MEASUREMENT_FIELDS:
            value = data.get(key)
            if value is None:
                continue
            try:
                measurements[key] = float(value)
            except (TypeError, ValueError):
                raise InvalidInputError(
                    f"Road {data['id']} has non-numeric {key}: {value!r}"
                )

        return cls(
            id=str(data["id"]),
            coordinates=[Position.from_dict(coord) for coord in raw_coords],
            name=data.get("name"),
            service_order_id=data.get("service_order_id"),
            measurements=measurements,
        )

    @classmethod
    def from_gpx(cls, file_input: TextIO, road_id: str) -> "Road":
        """
        Parse a GPX file and concatenate all tracks/segments into a single road trace.

        Args:
            file_input: File-like object containing GPX data
            road_id: Identifier to assign to the road

        Returns:
            Road object representing the concatenated trace

        Raises:
            InvalidInputError: If the GPX file contains no track points.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        gpx_data = gpxpy.parse(file_input)

        coords = []
        for track in gpx_data.tracks:
            for segment in track.segments:
                for point in segment.points:
                    coords.append(
                        Position(
                            latitude=point.latitude,
                            longitude=point.longitude,
                            elevation=point.elevation,
                        )
                    )

        name = gpx_data.tracks[0].name if gpx_data.tracks else None
        road = cls(id=road_id, coordinates=coords, name=name)

        logger.debug(f"Parsed {len(road)} track points from GPX file")

        return road

    @classmethod
    def from_file(cls, filename: str, road_id: Optional[str] = None) -> "Road":
        """
        Load and parse a GPX file into a road.

        Args:
            filename: Path to GPX file
            road_id: Identifier to assign; defaults to the filename

        Raises:
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        logger.debug(f"Reading GPX file: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            return cls.from_gpx(f, road_id if road_id is not None else filename)


@dataclass(frozen=True)
class Pathology:
    """A defect observed at a single position along a road."""

    id: str
    road_id: str
    coordinates: Position
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "road_id": self.road_id,
            "coordinates": self.coordinates.to_dict(),
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pathology":
        """
        Build a Pathology from a record exported by the application layer.

        Raises:
            InvalidInputError: If required keys are missing or malformed
        """
        if not isinstance(data, dict):
            raise InvalidInputError(
                f"Pathology record must be an object, got {data!r}"
            )
        for key in ("id", "road_id", "coordinates"):
            if key not in data:
                raise InvalidInputError(f"Pathology record is missing '{key}'")
        return cls(
            id=str(data["id"]),
            road_id=str(data["road_id"]),
            coordinates=Position.from_dict(data["coordinates"]),
            description=data.get("description"),
        )


def _records(payload: Any, key: str) -> List[Any]:
    """Accept either a bare JSON array or an object wrapping it under key."""
    if isinstance(payload, dict) and key in payload:
        payload = payload[key]
    if not isinstance(payload, list):
        raise InvalidInputError(f"Expected a list of {key}")
    return payload


def load_roads_json(file_input: TextIO) -> List[Road]:
    """
    Parse a JSON array of road records (or ``{"roads": [...]}``).

    Raises:
        InvalidInputError: If any record is malformed.
        json.JSONDecodeError: If the input is not valid JSON.
    """
    roads = [Road.from_dict(record) for record in _records(json.load(file_input), "roads")]
    logger.debug(f"Parsed {len(roads)} roads from JSON")
    return roads


def load_pathologies_json(file_input: TextIO) -> List[Pathology]:
    """
    Parse a JSON array of pathology records (or ``{"pathologies": [...]}``).

    Raises:
        InvalidInputError: If any record is malformed.
        json.JSONDecodeError: If the input is not valid JSON.
    """
    pathologies = [
        Pathology.from_dict(record)
        for record in _records(json.load(file_input), "pathologies")
    ]
    logger.debug(f"Parsed {len(pathologies)} pathologies from JSON")
    return pathologies
