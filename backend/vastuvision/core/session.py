"""
Capture Session

One user's survey: the marker store, the workflow that gates it, the live
sensor readings and the interaction controller, composed behind a single
set of operations. Every mutation goes through the workflow first.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, List, Optional, Union

from vastuvision.config import Settings, get_settings
from vastuvision.core.errors import AnalysisFailed, NoSensorReading
from vastuvision.core.interaction import DeviceCapabilities, InteractionController, select_controller
from vastuvision.core.sensors import LocationReading, SensorState
from vastuvision.core.store import MarkerStore
from vastuvision.core.workflow import CaptureStage, CaptureWorkflow
from vastuvision.models.report import ComplianceReport, GeocodeResult, ReportLanguage
from vastuvision.models.spatial import (
    ClassifiedPoint,
    Floor,
    GeoPoint,
    IdAllocator,
    PointKind,
    SpaceCategory,
    make_geo_point,
)

if TYPE_CHECKING:
    from vastuvision.agents.analysis_node import VastuAnalyst
    from vastuvision.agents.render_node import ReportExporter
    from vastuvision.agents.search_node import LocationSearcher


logger = logging.getLogger(__name__)


class CaptureSession:
    """Facade over store, workflow, sensors and interaction for one survey."""

    def __init__(
        self,
        session_id: str,
        language: ReportLanguage = ReportLanguage.ENGLISH,
        capabilities: Optional[DeviceCapabilities] = None,
        settings: Optional[Settings] = None,
    ):
        self.id = session_id
        self.settings = settings or get_settings()
        self.language = language
        self.selected_category = SpaceCategory.MAIN_ENTRANCE
        self.store = MarkerStore(IdAllocator())
        self.workflow = CaptureWorkflow()
        self.sensors = SensorState()
        self.target: Optional[GeocodeResult] = None
        self.report: Optional[ComplianceReport] = None
        self.last_error: Optional[str] = None
        self.revision = 0
        self.store.subscribe(self._on_store_change)
        self.capabilities = capabilities or DeviceCapabilities()
        self.controller = self._build_controller(self.capabilities)

    # ============ Setup ============

    def _build_controller(self, capabilities: DeviceCapabilities) -> InteractionController:
        s = self.settings
        return select_controller(
            self,
            capabilities,
            desktop_min_width=s.desktop_min_width,
            viewport=s.viewport_size,
            padding=s.projection_padding_deg,
            min_span=s.projection_min_span_deg,
            zoom_range=(s.zoom_min, s.zoom_max),
            marker_base_radius=s.marker_base_radius,
        )

    def configure_interaction(self, capabilities: DeviceCapabilities) -> InteractionController:
        """Swap the interaction strategy for newly reported device capabilities."""
        self.controller.detach()
        self.capabilities = capabilities
        self.controller = self._build_controller(capabilities)
        return self.controller

    def _on_store_change(self, event) -> None:
        self.revision += 1

    @property
    def stage(self) -> CaptureStage:
        return self.workflow.stage

    @property
    def floors(self) -> List[Floor]:
        return self.store.floors

    def anchor_point(self) -> Optional[GeoPoint]:
        """Where to centre an empty canvas: searched target, else the GPS fix."""
        if self.target is not None:
            return make_geo_point(self.target.latitude, self.target.longitude)
        return self.sensors.current_point()

    # ============ Workflow ============

    def begin(self, capabilities: Optional[DeviceCapabilities] = None) -> CaptureStage:
        if capabilities is not None:
            self.configure_interaction(capabilities)
        stage = self.workflow.begin()
        logger.info("Session %s started capture (%s mode)", self.id, self.controller.mode)
        return stage

    def advance_to_rooms(self) -> CaptureStage:
        return self.workflow.advance_to_rooms(self.store)

    def return_to_boundary(self) -> CaptureStage:
        return self.workflow.return_to_boundary()

    def reset(self) -> CaptureStage:
        """Discard everything captured and return to the welcome stage."""
        stage = self.workflow.reset()
        self.store.reset()
        self.controller.reset_view()
        self.report = None
        self.last_error = None
        self.selected_category = SpaceCategory.MAIN_ENTRANCE
        logger.info("Session %s reset", self.id)
        return stage

    def set_language(self, language: ReportLanguage) -> None:
        self.language = language

    def select_category(self, category: SpaceCategory) -> None:
        self.selected_category = category

    # ============ Sensors ============

    def update_location(
        self,
        latitude: float,
        longitude: float,
        accuracy: Optional[float] = None,
        source: str = "gps",
    ) -> LocationReading:
        """Store a location fix. An empty floor's canvas re-centres on it."""
        reading = self.sensors.update_location(latitude, longitude, accuracy=accuracy, source=source)
        self.controller.invalidate()
        return reading

    # ============ Mutations ============

    def append_boundary_point(self, point: GeoPoint) -> GeoPoint:
        self.workflow.require(CaptureStage.BOUNDARY_CAPTURE)
        return self.store.append_boundary_point(point)

    def append_room_point(self, category: SpaceCategory, point: GeoPoint) -> ClassifiedPoint:
        self.workflow.require(CaptureStage.ROOM_TAGGING)
        return self.store.append_room_point(category, point)

    def append_point(
        self,
        latitude: float,
        longitude: float,
        heading: Optional[float] = None,
        category: Optional[SpaceCategory] = None,
    ) -> Union[GeoPoint, ClassifiedPoint]:
        """
        Append to whichever collection the current stage is populating.

        The heading defaults to the live compass reading.
        """
        self.workflow.require_capture()
        point = make_geo_point(
            latitude, longitude, self.sensors.heading if heading is None else heading
        )
        if self.stage == CaptureStage.BOUNDARY_CAPTURE:
            return self.append_boundary_point(point)
        return self.append_room_point(category or self.selected_category, point)

    def capture(self, category: Optional[SpaceCategory] = None) -> Union[GeoPoint, ClassifiedPoint]:
        """
        Commit the current sensor reading as a point.

        Raises:
            NoSensorReading: no location fix (and no searched location) yet
        """
        self.workflow.require_capture()
        point = self.sensors.current_point()
        if point is None:
            raise NoSensorReading(
                "Please search for a location or click on the map to mark a point."
            )
        return self.append_point(point.latitude, point.longitude, point.heading, category)

    def undo_last(self) -> Optional[Union[GeoPoint, ClassifiedPoint]]:
        """Remove the last point of the collection being populated; no-op when empty."""
        self.workflow.require_capture()
        kind = PointKind.BOUNDARY if self.stage == CaptureStage.BOUNDARY_CAPTURE else PointKind.ROOM
        return self.store.undo_last(kind)

    def reposition_point(
        self,
        kind: PointKind,
        target: Union[int, str],
        latitude: float,
        longitude: float,
    ) -> Union[GeoPoint, ClassifiedPoint]:
        self.workflow.require_capture()
        return self.store.reposition_point(kind, target, latitude, longitude)

    def add_floor(self) -> Floor:
        self.workflow.require_capture()
        floor = self.store.add_floor()
        self.workflow.on_floor_added()
        self.controller.reset_view()
        return floor

    def switch_active_floor(self, index: int) -> Floor:
        self.workflow.require_capture()
        floor = self.store.switch_active_floor(index)
        self.workflow.on_floor_switched(self.store)
        self.controller.reset_view()
        return floor

    # ============ Collaborators ============

    async def search(self, searcher: "LocationSearcher", query: str) -> Optional[GeocodeResult]:
        """Geocode a query and use the result as the target location."""
        result = await searcher.search(query)
        if result is None:
            logger.info("Session %s: no location found for %r", self.id, query)
            return None
        self.target = result
        self.update_location(result.latitude, result.longitude, accuracy=1.0, source="search")
        return result

    async def finalize(self, analyst: "VastuAnalyst") -> Optional[ComplianceReport]:
        """
        Validate, then run the analysis collaborator.

        Returns the report, or None if the session was reset while the
        analysis was in flight (the late response is discarded).

        Raises:
            IncompleteBoundary, NoRoomPoints, StageViolation: finalize rejected
            AnalysisFailed: collaborator failed; stage is back to room tagging
        """
        ticket = self.workflow.start_analysis(self.store)
        floors = [floor.model_copy(deep=True) for floor in self.store.floors]
        location = None
        if self.sensors.location is not None:
            location = (self.sensors.location.latitude, self.sensors.location.longitude)
        self.last_error = None
        logger.info("Session %s: analyzing %d floor(s)", self.id, len(floors))

        try:
            report = await analyst.analyze(floors, self.language, location)
        except asyncio.CancelledError:
            self.workflow.fail_analysis(ticket)
            raise
        except AnalysisFailed as e:
            if self.workflow.fail_analysis(ticket):
                self.last_error = e.message
                logger.warning("Session %s: analysis failed: %s", self.id, e.message)
                raise
            return None
        except Exception as e:
            if self.workflow.fail_analysis(ticket):
                self.last_error = "AI analysis failed. Please try again with clearer marker placements."
                logger.warning("Session %s: analysis failed: %s", self.id, e)
                raise AnalysisFailed(self.last_error) from e
            return None

        if not self.workflow.complete_analysis(ticket):
            return None
        self.report = report
        return report

    def export_pdf(self, exporter: "ReportExporter") -> bytes:
        """Render the finished report; failures never change the stage."""
        self.workflow.require(CaptureStage.REPORT)
        return exporter.export_pdf(self.report, self.store.floors)
