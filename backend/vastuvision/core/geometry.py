"""
Geometry Utilities

Shapely-based functions for floor geometry:
- Converting a floor boundary to a polygon (x = longitude, y = latitude)
- Polygon validity, centroid and approximate area
- Compass direction labels and zone bearings
- Nearest-marker hit testing on the canvas
"""

import math
from typing import Optional, Sequence, Tuple

from shapely.geometry import LinearRing, MultiPoint, Point, Polygon

from vastuvision.models.spatial import MIN_BOUNDARY_CORNERS, Floor, GeoPoint


EARTH_RADIUS_M = 6_371_008.8
COMPASS_POINTS = ["N", "NE", "E", "SE", "S", "SW", "W", "NW"]


def boundary_polygon(floor: Floor) -> Optional[Polygon]:
    """
    Convert a floor boundary to a Shapely Polygon.

    Returns:
        Polygon in (lng, lat) space, or None with fewer than three corners.
        The ring is closed implicitly by Shapely.
    """
    if len(floor.boundary) < MIN_BOUNDARY_CORNERS:
        return None
    return Polygon([(p.longitude, p.latitude) for p in floor.boundary])


def is_simple_boundary(floor: Floor) -> bool:
    """True if the boundary ring does not self-intersect."""
    if len(floor.boundary) < MIN_BOUNDARY_CORNERS:
        return False
    ring = LinearRing([(p.longitude, p.latitude) for p in floor.boundary])
    return ring.is_simple


def boundary_centroid(floor: Floor) -> Optional[Tuple[float, float]]:
    """
    Centre of the floor (the Brahmasthan), returned as (lat, lng).

    Falls back to the centroid of the corner set when the polygon is
    degenerate (collinear corners).
    """
    polygon = boundary_polygon(floor)
    if polygon is None:
        if not floor.boundary:
            return None
        centre = MultiPoint([(p.longitude, p.latitude) for p in floor.boundary]).centroid
        return (centre.y, centre.x)
    centre = polygon.centroid if polygon.area > 0 else polygon.exterior.centroid
    return (centre.y, centre.x)


def boundary_area_m2(floor: Floor) -> float:
    """
    Approximate enclosed area in square metres.

    Uses a local equirectangular projection around the first corner, which
    is accurate at building scale.
    """
    if len(floor.boundary) < MIN_BOUNDARY_CORNERS:
        return 0.0
    origin = floor.boundary[0]
    local = [_to_local_metres(origin, p) for p in floor.boundary]
    return Polygon(local).area


def heading_to_direction(heading: float) -> str:
    """
    Eight-point compass label for a bearing.

    Example:
        >>> heading_to_direction(135)
        'SE'
    """
    return COMPASS_POINTS[int(round((heading % 360) / 45)) % 8]


def bearing_between(origin: Tuple[float, float], target: Tuple[float, float]) -> float:
    """Planar bearing (degrees clockwise from north) from origin to target, both (lat, lng)."""
    d_north = target[0] - origin[0]
    d_east = (target[1] - origin[1]) * math.cos(math.radians(origin[0]))
    return math.degrees(math.atan2(d_east, d_north)) % 360


def zone_of(floor: Floor, point: GeoPoint) -> Optional[str]:
    """Compass zone of a point relative to the floor centre, e.g. ``"SE"``."""
    centre = boundary_centroid(floor)
    if centre is None:
        return None
    return heading_to_direction(bearing_between(centre, (point.latitude, point.longitude)))


def is_inside_boundary(floor: Floor, point: GeoPoint) -> bool:
    """True if the point lies inside or on the floor polygon."""
    polygon = boundary_polygon(floor)
    if polygon is None:
        return False
    return polygon.covers(Point(point.longitude, point.latitude))


def nearest_within(
    candidates: Sequence[Tuple[float, float]],
    x: float,
    y: float,
    radius: float,
) -> Optional[int]:
    """
    Index of the candidate nearest to (x, y) within radius, or None.

    Args:
        candidates: Canvas positions (x, y)
        x, y: Canvas position of the pointer
        radius: Hit radius in canvas units
    """
    pointer = Point(x, y)
    best_index = None
    best_distance = radius
    for index, (cx, cy) in enumerate(candidates):
        distance = pointer.distance(Point(cx, cy))
        if distance <= best_distance:
            best_index = index
            best_distance = distance
    return best_index


def _to_local_metres(origin: GeoPoint, point: GeoPoint) -> Tuple[float, float]:
    lat0 = math.radians(origin.latitude)
    dx = math.radians(point.longitude - origin.longitude) * EARTH_RADIUS_M * math.cos(lat0)
    dy = math.radians(point.latitude - origin.latitude) * EARTH_RADIUS_M
    return (dx, dy)
