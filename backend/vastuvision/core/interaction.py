"""
Interaction Controller

Turns raw canvas gestures into projection lookups and session mutations.

Two interchangeable strategies share the same inverse-projection contract:
- PointerController: desktop/map capture, a click on empty canvas places
  a point at the inverse-projected location
- SensorController: touch/camera capture, points come from the live sensor
  reading; the canvas is only used to correct (drag) and navigate
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from vastuvision.core.geometry import nearest_within
from vastuvision.core.projection import (
    MIN_SPAN_DEG,
    PADDING_DEG,
    VIEWPORT_SIZE,
    ViewWindow,
    marker_size,
)
from vastuvision.core.store import StoreEvent
from vastuvision.models.spatial import PointKind

if TYPE_CHECKING:
    from vastuvision.core.session import CaptureSession


logger = logging.getLogger(__name__)


class DeviceCapabilities(BaseModel):
    """What the client device can do, reported once per session."""
    viewport_width: int = Field(default=0, ge=0, description="CSS pixels")
    has_camera: bool = False
    has_orientation: bool = False


class CanvasView(BaseModel):
    """Zoom factor and pan offset (viewport units)."""
    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0


class CanvasMarker(BaseModel):
    """A point of the active floor, placed on the canvas."""
    kind: PointKind
    index: int
    id: Optional[str] = None
    label: str
    x: float
    y: float

    @property
    def target(self) -> Union[int, str]:
        return self.id if self.kind == PointKind.ROOM else self.index


class InteractionOutcome(BaseModel):
    """What a gesture did."""
    action: str = Field(..., description="'append', 'reposition', 'pan', 'zoom', 'hit' or 'none'")
    marker: Optional[CanvasMarker] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class InteractionController(ABC):
    """
    Shared gesture handling. Subclasses decide what a click on empty
    canvas means.
    """

    mode = "base"

    def __init__(
        self,
        session: "CaptureSession",
        viewport: float = VIEWPORT_SIZE,
        padding: float = PADDING_DEG,
        min_span: float = MIN_SPAN_DEG,
        zoom_range: Tuple[float, float] = (0.4, 8.0),
        marker_base_radius: float = 6.0,
    ):
        self.session = session
        self.viewport = viewport
        self.padding = padding
        self.min_span = min_span
        self.zoom_range = zoom_range
        self.marker_base_radius = marker_base_radius
        self.view = CanvasView()
        self._window: Optional[ViewWindow] = None
        self._unsubscribe = session.store.subscribe(self._on_store_change)

    def detach(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()

    # ============ Projection snapshot ============

    def _on_store_change(self, event: StoreEvent) -> None:
        self._window = None

    def invalidate(self) -> None:
        self._window = None

    def snapshot(self) -> ViewWindow:
        """
        Window used for the current frame; rebuilt after any change to the
        point set, zoom or pan.

        Raises:
            NoContent: active floor is empty and no anchor location is known
        """
        if self._window is None:
            points = self.session.store.active_floor.all_points()
            if not points:
                anchor = self.session.anchor_point()
                if anchor is not None:
                    points = [anchor]
            self._window = ViewWindow.from_points(
                points,
                viewport=self.viewport,
                zoom=self.view.zoom,
                pan=(self.view.pan_x, self.view.pan_y),
                padding=self.padding,
                min_span=self.min_span,
            )
        return self._window

    def locate(self, x: float, y: float) -> Tuple[float, float]:
        """Canvas position -> (lat, lng) using the current snapshot."""
        return self.snapshot().inverse(x, y)

    def markers(self) -> List[CanvasMarker]:
        window = self.snapshot()
        floor = self.session.store.active_floor
        placed = []
        for index, corner in enumerate(floor.boundary):
            x, y = window.project(corner)
            placed.append(CanvasMarker(
                kind=PointKind.BOUNDARY, index=index, label=str(index + 1), x=x, y=y
            ))
        for index, room in enumerate(floor.rooms):
            x, y = window.project(room.location)
            placed.append(CanvasMarker(
                kind=PointKind.ROOM, index=index, id=room.id, label=room.category.value, x=x, y=y
            ))
        return placed

    @property
    def marker_radius(self) -> float:
        return marker_size(self.marker_base_radius, self.view.zoom)

    def hit_test(self, x: float, y: float) -> Optional[CanvasMarker]:
        """Marker under the pointer, room markers first."""
        if not self.session.store.active_floor.all_points():
            return None
        placed = self.markers()
        rooms = [m for m in placed if m.kind == PointKind.ROOM]
        corners = [m for m in placed if m.kind == PointKind.BOUNDARY]
        for group in (rooms, corners):
            hit = nearest_within([(m.x, m.y) for m in group], x, y, self.marker_radius)
            if hit is not None:
                return group[hit]
        return None

    # ============ Gestures ============

    def pan(self, dx: float, dy: float) -> CanvasView:
        self.view = self.view.model_copy(
            update={"pan_x": self.view.pan_x + dx, "pan_y": self.view.pan_y + dy}
        )
        self.invalidate()
        return self.view

    def zoom_to(self, zoom: float) -> CanvasView:
        low, high = self.zoom_range
        self.view = self.view.model_copy(update={"zoom": min(max(zoom, low), high)})
        self.invalidate()
        return self.view

    def zoom_by(self, factor: float) -> CanvasView:
        return self.zoom_to(self.view.zoom * factor)

    def reset_view(self) -> None:
        self.view = CanvasView()
        self.invalidate()

    def click(self, x: float, y: float) -> InteractionOutcome:
        """Click on a marker selects it; click on empty canvas is strategy-specific."""
        hit = self.hit_test(x, y)
        if hit is not None:
            return InteractionOutcome(action="hit", marker=hit)
        return self.place(x, y)

    def drag(self, x0: float, y0: float, x1: float, y1: float) -> InteractionOutcome:
        """Drag starting on a marker moves it; otherwise the canvas pans."""
        hit = self.hit_test(x0, y0)
        if hit is None:
            self.pan(x1 - x0, y1 - y0)
            return InteractionOutcome(action="pan")
        latitude, longitude = self.locate(x1, y1)
        self.session.reposition_point(hit.kind, hit.target, latitude, longitude)
        return InteractionOutcome(
            action="reposition", marker=hit, latitude=latitude, longitude=longitude
        )

    @abstractmethod
    def place(self, x: float, y: float) -> InteractionOutcome:
        """Handle a click that hit no marker."""


class PointerController(InteractionController):
    """Map-based capture: clicks place points."""

    mode = "pointer"

    def place(self, x: float, y: float) -> InteractionOutcome:
        latitude, longitude = self.locate(x, y)
        self.session.append_point(latitude, longitude)
        return InteractionOutcome(action="append", latitude=latitude, longitude=longitude)


class SensorController(InteractionController):
    """Camera-based capture: points come from the sensor reading, not the canvas."""

    mode = "sensor"

    def place(self, x: float, y: float) -> InteractionOutcome:
        return InteractionOutcome(action="none")


def select_controller(
    session: "CaptureSession",
    capabilities: DeviceCapabilities,
    desktop_min_width: int = 1024,
    **kwargs,
) -> InteractionController:
    """Pick the capture strategy from the device's reported capabilities."""
    is_desktop = capabilities.viewport_width > desktop_min_width or not capabilities.has_camera
    controller_cls = PointerController if is_desktop else SensorController
    logger.debug("Using %s for %s", controller_cls.__name__, capabilities)
    return controller_cls(session, **kwargs)
