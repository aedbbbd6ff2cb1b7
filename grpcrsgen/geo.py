"""Geometry helpers for the route guide: points, rectangles and features."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal

__all__ = [
    "Point",
    "Rectangle",
    "Feature",
    "load_features",
    "same_point",
    "fit_in",
    "convert_to_rad",
    "format_point",
    "cal_distance",
]

COORD_FACTOR = 10_000_000.0
EARTH_RADIUS_METRES = 6_371_000.0


@dataclass(frozen=True)
class Point:
    """A location in degrees multiplied by 10**7."""

    latitude: int = 0
    longitude: int = 0


@dataclass(frozen=True)
class Rectangle:
    """A latitude-longitude rectangle given by two opposite corners."""

    lo: Point = field(default_factory=Point)
    hi: Point = field(default_factory=Point)


@dataclass(frozen=True)
class Feature:
    """A named location."""

    name: str = ""
    location: Point = field(default_factory=Point)


def load_features(data: str | bytes) -> list[Feature]:
    """Parse a JSON list of features with ``location`` and ``name`` keys."""
    try:
        raw = json.loads(data)
        return [
            Feature(
                name=str(item["name"]),
                location=Point(
                    latitude=int(item["location"]["latitude"]),
                    longitude=int(item["location"]["longitude"]),
                ),
            )
            for item in raw
        ]
    except (KeyError, TypeError, json.JSONDecodeError) as exc:
        raise ValueError(f"malformed feature database: {exc}") from exc


def same_point(lhs: Point, rhs: Point) -> bool:
    """Return True if both points have the same coordinates."""
    return lhs.longitude == rhs.longitude and lhs.latitude == rhs.latitude


def fit_in(point: Point, rect: Rectangle) -> bool:
    """Return True if the point lies within the rectangle, borders included."""
    hi, lo = rect.hi, rect.lo
    return (
        lo.longitude <= point.longitude <= hi.longitude
        and lo.latitude <= point.latitude <= hi.latitude
    )


def convert_to_rad(num: float) -> float:
    """Convert degrees to radians."""
    return num * math.pi / 180.0


def _format_float(value: float) -> str:
    """Format a float in plain decimal notation, without a trailing ``.0``."""
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_point(p: Point) -> str:
    """Render a point as ``latitude, longitude`` in degrees."""
    return (
        f"{_format_float(p.latitude / COORD_FACTOR)}, "
        f"{_format_float(p.longitude / COORD_FACTOR)}"
    )


def cal_distance(lhs: Point, rhs: Point) -> float:
    """Great-circle distance in metres between two points (haversine formula)."""
    lat1 = lhs.latitude / COORD_FACTOR
    lon1 = lhs.longitude / COORD_FACTOR
    lat2 = rhs.latitude / COORD_FACTOR
    lon2 = rhs.longitude / COORD_FACTOR
    lat_rad_1 = convert_to_rad(lat1)
    lat_rad_2 = convert_to_rad(lat2)
    delta_lat_rad = convert_to_rad(lat2 - lat1)
    delta_lon_rad = convert_to_rad(lon2 - lon1)

    a = math.sin(delta_lat_rad / 2.0) ** 2 + (
        math.cos(lat_rad_1) * math.cos(lat_rad_2) * math.sin(delta_lon_rad / 2.0) ** 2
    )
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_METRES * c