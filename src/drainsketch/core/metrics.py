"""
Geodesic measurement of drawn geometry.

Lengths use the haversine great-circle distance on a spherical Earth;
areas use the WGS84 ellipsoid through pyproj. Both are rounded half-up to
whole feet or square feet.
"""

import logging
import math
from typing import Any, Iterable, Optional, Sequence, Tuple

from pyproj import Geod
from shapely.geometry import Polygon
from shapely.ops import unary_union

logger = logging.getLogger(__name__)

# Mean Earth radius (IUGG)
EARTH_RADIUS_M = 6371008.8
FEET_PER_METER = 3.28084
SQ_FEET_PER_SQ_METER = 10.7639

_GEOD = Geod(ellps="WGS84")

Position = Sequence[float]
Bounds = Tuple[float, float, float, float]


def round_half_up(value: float) -> int:
    """Round a non-negative value to the nearest integer, halves upward."""
    if not math.isfinite(value) or value <= 0:
        return 0
    return int(math.floor(value + 0.5))


def haversine_m(a: Position, b: Position) -> float:
    """
    Great-circle distance between two (lon, lat) positions.

    Args:
        a: First position in decimal degrees
        b: Second position in decimal degrees

    Returns:
        Distance in metres
    """
    lon1, lat1 = math.radians(a[0]), math.radians(a[1])
    lon2, lat2 = math.radians(b[0]), math.radians(b[1])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def line_length_m(coordinates: Sequence[Position]) -> float:
    """Sum of segment distances along a polyline, in metres."""
    if len(coordinates) < 2:
        return 0.0
    total = sum(haversine_m(a, b) for a, b in zip(coordinates, coordinates[1:]))
    return total if math.isfinite(total) else 0.0


def ring_area_m2(ring: Sequence[Position]) -> float:
    """
    Geodesic area enclosed by a closed ring, in square metres.

    Degenerate and self-intersecting rings measure zero.
    """
    if len(ring) < 4:
        return 0.0

    polygon = Polygon(ring)
    if not polygon.is_valid:
        logger.debug(f"Ring with {len(ring)} positions is not a valid polygon; area is 0")
        return 0.0

    area, _perimeter = _GEOD.geometry_area_perimeter(polygon)
    area = abs(area)
    return area if math.isfinite(area) else 0.0


def length_feet(geometry: Any) -> int:
    """Length of a line geometry in whole feet; zero for other kinds."""
    if getattr(geometry, "type", None) != "LineString":
        return 0
    return round_half_up(line_length_m(geometry.coordinates) * FEET_PER_METER)


def area_square_feet(geometry: Any) -> int:
    """Area of a polygon geometry in whole square feet; zero for other kinds."""
    if getattr(geometry, "type", None) != "Polygon":
        return 0
    return round_half_up(ring_area_m2(geometry.coordinates[0]) * SQ_FEET_PER_SQ_METER)


def design_bounds(geometries: Iterable[Any]) -> Optional[Bounds]:
    """
    Bounding box of a set of geometries.

    Returns:
        (min_lon, min_lat, max_lon, max_lat), or None when nothing is given
    """
    shapes = [g.to_shapely() for g in geometries]
    if not shapes:
        return None
    return tuple(float(v) for v in unary_union(shapes).bounds)  # type: ignore[return-value]
