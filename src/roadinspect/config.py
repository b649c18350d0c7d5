from dataclasses import dataclass
from typing import Optional
import argparse


@dataclass
class InspectionConfig:
    """Configuration for the roadinspect CLI."""

    speed_kmh: float = 30.0
    sharp_turn_degrees: float = 45.0
    steep_slope_ratio: float = 0.10
    centroid_strategy: str = "flat"
    search_radius_km: Optional[float] = None
    log_level: str = "WARNING"
    metrics: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "InspectionConfig":
        return cls(
            speed_kmh=args.speed,
            sharp_turn_degrees=args.sharp_turn_degrees,
            steep_slope_ratio=args.steep_slope,
            centroid_strategy=args.centroid_strategy,
            search_radius_km=args.radius,
            log_level=args.log_level,
            metrics=args.metrics,
        )
