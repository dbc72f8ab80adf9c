"""
Spatial Data Models

Pydantic models for captured building geometry: geo-tagged points,
classified interior points, and floors. These are the contract shared by
the store, the projection engine, the agents and the API.
"""

import itertools
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from vastuvision.core.errors import InvalidCoordinate


MIN_BOUNDARY_CORNERS = 3


class SpaceCategory(str, Enum):
    """Fixed set of interior space types a room marker can be tagged with."""
    MAIN_ENTRANCE = "Main Entrance"
    KITCHEN = "Kitchen"
    MASTER_BEDROOM = "Master Bedroom"
    BEDROOM = "Bedroom"
    DRAWING_ROOM = "Drawing Room"
    LIVING_ROOM = "Living Room"
    POOJA_ROOM = "Pooja Room"
    TOILET = "Toilet"
    BATHROOM = "Bathroom"
    STORE_ROOM = "Store Room"
    BALCONY = "Balcony"
    STAIRCASE = "Staircase"


class PointKind(str, Enum):
    """Which collection of a floor a point belongs to."""
    BOUNDARY = "boundary"
    ROOM = "room"


class GeoPoint(BaseModel):
    """
    A geolocated, heading-tagged point.

    Attributes:
        latitude: Degrees, -90..90
        longitude: Degrees, -180..180
        heading: Compass bearing at capture time, 0 = true north, clockwise
        captured_at: UTC capture time
    """
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    heading: float = Field(default=0.0, ge=0, lt=360)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def moved_to(self, latitude: float, longitude: float) -> "GeoPoint":
        """Same point with new coordinates; heading and capture time are kept."""
        _check_lat_lng(latitude, longitude)
        return self.model_copy(update={"latitude": latitude, "longitude": longitude})


class ClassifiedPoint(BaseModel):
    """A room/space marker placed inside a floor."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable marker id")
    category: SpaceCategory
    location: GeoPoint


class Floor(BaseModel):
    """
    One level of the building.

    The boundary is an ordered, implicitly closed polygon; the closing
    vertex is never stored. Rooms are kept in insertion order so that
    "undo last" is well defined.
    """
    id: str
    level: int = 0
    name: str
    boundary: List[GeoPoint] = Field(default_factory=list)
    rooms: List[ClassifiedPoint] = Field(default_factory=list)

    @property
    def has_complete_boundary(self) -> bool:
        return len(self.boundary) >= MIN_BOUNDARY_CORNERS

    def all_points(self) -> List[GeoPoint]:
        """Boundary corners followed by room locations."""
        return list(self.boundary) + [room.location for room in self.rooms]

    def find_room(self, room_id: str) -> Optional[int]:
        for index, room in enumerate(self.rooms):
            if room.id == room_id:
                return index
        return None


class IdAllocator:
    """Monotonic, per-prefix id allocator (``room-1``, ``room-2``, ...)."""

    def __init__(self):
        self._counters: Dict[str, itertools.count] = {}

    def next(self, prefix: str) -> str:
        counter = self._counters.setdefault(prefix, itertools.count(1))
        return f"{prefix}-{next(counter)}"


def _check_lat_lng(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidCoordinate(
            "Coordinates must be finite numbers",
            context={"latitude": str(latitude), "longitude": str(longitude)},
        )
    if not -90 <= latitude <= 90:
        raise InvalidCoordinate(
            f"Latitude {latitude} is outside [-90, 90]",
            context={"latitude": latitude},
        )
    if not -180 <= longitude <= 180:
        raise InvalidCoordinate(
            f"Longitude {longitude} is outside [-180, 180]",
            context={"longitude": longitude},
        )


def normalize_heading(heading: float) -> float:
    """Wrap a compass bearing into [0, 360)."""
    if not math.isfinite(heading):
        raise InvalidCoordinate("Heading must be a finite number", context={"heading": str(heading)})
    wrapped = heading % 360.0
    # -1e-18 % 360 rounds to 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def make_geo_point(
    latitude: float,
    longitude: float,
    heading: float = 0.0,
    captured_at: Optional[datetime] = None,
) -> GeoPoint:
    """
    Validate and build a GeoPoint.

    Raises:
        InvalidCoordinate: latitude/longitude out of range or not finite

    Example:
        >>> make_geo_point(10.0, 10.0, 360).heading
        0.0
    """
    _check_lat_lng(latitude, longitude)
    fields = {
        "latitude": float(latitude),
        "longitude": float(longitude),
        "heading": normalize_heading(heading),
    }
    if captured_at is not None:
        fields["captured_at"] = captured_at
    return GeoPoint(**fields)


def make_floor(name: str, level: int, floor_id: Optional[str] = None) -> Floor:
    """Build an empty floor."""
    return Floor(id=floor_id or f"floor-{level}", level=level, name=name)
