"""
Sensor State

Latest location fix and compass heading pushed by the device. Readings are
only ever stored here; they reach the floors solely through an explicit
capture action, so sensor jitter cannot move captured geometry.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from vastuvision.models.spatial import GeoPoint, make_geo_point, normalize_heading


class LocationReading(BaseModel):
    """One location fix."""
    latitude: float
    longitude: float
    accuracy: Optional[float] = Field(default=None, ge=0, description="Metres")
    source: str = "gps"
    received_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SensorState:
    """Current sensor readings for a session. Both may be absent indefinitely."""

    def __init__(self):
        self.location: Optional[LocationReading] = None
        self.heading: float = 0.0
        self.has_heading = False

    def update_location(
        self,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        source: str = "gps",
    ) -> LocationReading:
        # Validates the range; the resulting point is discarded
        make_geo_point(latitude, longitude)
        self.location = LocationReading(
            latitude=latitude, longitude=longitude, accuracy=accuracy, source=source
        )
        return self.location

    def update_heading(self, degrees: float) -> float:
        self.heading = normalize_heading(degrees)
        self.has_heading = True
        return self.heading

    def update_orientation(
        self,
        alpha: Optional[float] = None,
        webkit_compass_heading: Optional[float] = None,
    ) -> float:
        """
        Derive a compass heading from a raw device-orientation event.

        iOS reports ``webkitCompassHeading`` directly; elsewhere the heading
        is ``360 - alpha``. Unusable values read as north.
        """
        if webkit_compass_heading is not None and math.isfinite(webkit_compass_heading):
            compass = webkit_compass_heading
        else:
            compass = 360 - (alpha or 0)
        if not math.isfinite(compass):
            compass = 0
        return self.update_heading(round(compass))

    def current_point(self) -> Optional[GeoPoint]:
        """Freeze the current reading into a GeoPoint, or None without a fix."""
        if self.location is None:
            return None
        return make_geo_point(self.location.latitude, self.location.longitude, self.heading)
