"""
Projection Engine

Maps geographic coordinates onto a square logical canvas and back:
- Bounding window over the live point set, with a minimum span and padding
- Uniform (aspect-preserving) scale fitted to the viewport, times zoom
- Forward (lat, lng) -> (x, y) and its exact algebraic inverse
- Zoom-independent marker sizing
"""

from typing import Iterable, Tuple

from pydantic import BaseModel, ConfigDict, Field

from vastuvision.core.errors import NoContent
from vastuvision.models.spatial import GeoPoint


VIEWPORT_SIZE = 200.0
PADDING_DEG = 0.00005     # ~5 m margin around the outermost markers
MIN_SPAN_DEG = 0.00001    # floor for degenerate (1-2 point) windows


class ViewWindow(BaseModel):
    """
    Immutable projection snapshot.

    Every forward render and every inverse lookup for the same frame must
    use the same snapshot. Build a new one whenever the point set, zoom or
    pan changes.
    """
    model_config = ConfigDict(frozen=True)

    min_lat: float
    min_lng: float
    max_lat: float
    max_lng: float
    viewport: float = Field(..., gt=0)
    zoom: float = Field(..., gt=0)
    pan_x: float = 0.0
    pan_y: float = 0.0
    scale: float = Field(..., gt=0)

    @classmethod
    def from_points(
        cls,
        points: Iterable[GeoPoint],
        viewport: float = VIEWPORT_SIZE,
        zoom: float = 1.0,
        pan: Tuple[float, float] = (0.0, 0.0),
        padding: float = PADDING_DEG,
        min_span: float = MIN_SPAN_DEG,
    ) -> "ViewWindow":
        """
        Fit a window around the given points.

        Raises:
            NoContent: no points to fit
        """
        points = list(points)
        if not points:
            raise NoContent("Nothing to project: no points captured yet")

        lats = [p.latitude for p in points]
        lngs = [p.longitude for p in points]
        min_lat, max_lat = _widen(min(lats), max(lats), min_span)
        min_lng, max_lng = _widen(min(lngs), max(lngs), min_span)

        min_lat -= padding
        max_lat += padding
        min_lng -= padding
        max_lng += padding

        scale = min(viewport / (max_lng - min_lng), viewport / (max_lat - min_lat)) * zoom
        return cls(
            min_lat=min_lat,
            min_lng=min_lng,
            max_lat=max_lat,
            max_lng=max_lng,
            viewport=viewport,
            zoom=zoom,
            pan_x=pan[0],
            pan_y=pan[1],
            scale=scale,
        )

    def forward(self, latitude: float, longitude: float) -> Tuple[float, float]:
        """Geographic -> canvas. Canvas y grows downward, latitude grows north."""
        x = (longitude - self.min_lng) * self.scale + self.pan_x
        y = self.viewport - (latitude - self.min_lat) * self.scale + self.pan_y
        return (x, y)

    def inverse(self, x: float, y: float) -> Tuple[float, float]:
        """Canvas -> geographic, returned as (lat, lng)."""
        longitude = (x - self.pan_x) / self.scale + self.min_lng
        latitude = (self.viewport + self.pan_y - y) / self.scale + self.min_lat
        return (latitude, longitude)

    def project(self, point: GeoPoint) -> Tuple[float, float]:
        return self.forward(point.latitude, point.longitude)


def _widen(low: float, high: float, min_span: float) -> Tuple[float, float]:
    """Grow [low, high] symmetrically about its centre to at least min_span."""
    span = high - low
    if span >= min_span:
        return low, high
    centre = (low + high) / 2
    return centre - min_span / 2, centre + min_span / 2


def marker_size(base: float, zoom: float) -> float:
    """Constant on-screen size for strokes and markers: ``base / max(zoom, 1)``."""
    return base / max(zoom, 1.0)
