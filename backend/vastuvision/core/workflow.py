"""
Capture Workflow

Linear state machine governing the capture session:

    welcome -> map-corners -> tag-rooms -> analyzing -> report

with reset returning to welcome from anywhere. The workflow decides which
store mutations are legal in each stage, and guards the asynchronous
analysis call with an epoch so that responses arriving after a reset are
dropped.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from vastuvision.core.errors import IncompleteBoundary, NoRoomPoints, StageViolation
from vastuvision.core.store import MarkerStore
from vastuvision.models.spatial import MIN_BOUNDARY_CORNERS


logger = logging.getLogger(__name__)


class CaptureStage(str, Enum):
    """Workflow stages; values are the client-facing step names."""
    WELCOME = "welcome"
    BOUNDARY_CAPTURE = "map-corners"
    ROOM_TAGGING = "tag-rooms"
    ANALYZING = "analyzing"
    REPORT = "report"


CAPTURE_STAGES = (CaptureStage.BOUNDARY_CAPTURE, CaptureStage.ROOM_TAGGING)


@dataclass(frozen=True)
class AnalysisTicket:
    """Handle for one in-flight analysis request."""
    epoch: int


class CaptureWorkflow:
    """Stage holder and transition rules for one session."""

    def __init__(self):
        self.stage = CaptureStage.WELCOME
        self.epoch = 0

    # ============ Guards ============

    def require(self, *stages: CaptureStage) -> None:
        """
        Reject the call unless the workflow is in one of the given stages.

        Raises:
            StageViolation: current stage not in stages
        """
        if self.stage not in stages:
            raise StageViolation(
                f"Not allowed while in stage '{self.stage.value}'",
                context={
                    "stage": self.stage.value,
                    "allowed": [s.value for s in stages],
                },
            )

    def require_capture(self) -> None:
        self.require(*CAPTURE_STAGES)

    @property
    def is_capturing(self) -> bool:
        return self.stage in CAPTURE_STAGES

    # ============ Transitions ============

    def begin(self) -> CaptureStage:
        """Welcome -> boundary capture, once sensors/permissions are set up."""
        self.require(CaptureStage.WELCOME)
        return self._move(CaptureStage.BOUNDARY_CAPTURE)

    def advance_to_rooms(self, store: MarkerStore) -> CaptureStage:
        """
        Boundary capture -> room tagging for the active floor.

        Raises:
            IncompleteBoundary: active floor has fewer than three corners
        """
        self.require(CaptureStage.BOUNDARY_CAPTURE)
        floor = store.active_floor
        if not floor.has_complete_boundary:
            raise IncompleteBoundary(
                f"{floor.name} needs at least {MIN_BOUNDARY_CORNERS} corners "
                f"(has {len(floor.boundary)})",
                context={"floors": [floor.name]},
            )
        return self._move(CaptureStage.ROOM_TAGGING)

    def return_to_boundary(self) -> CaptureStage:
        self.require(*CAPTURE_STAGES)
        return self._move(CaptureStage.BOUNDARY_CAPTURE)

    def on_floor_added(self) -> CaptureStage:
        return self._move(CaptureStage.BOUNDARY_CAPTURE)

    def on_floor_switched(self, store: MarkerStore) -> CaptureStage:
        """A floor without a complete boundary can only be in boundary capture."""
        if self.stage == CaptureStage.ROOM_TAGGING and not store.active_floor.has_complete_boundary:
            return self._move(CaptureStage.BOUNDARY_CAPTURE)
        return self.stage

    def start_analysis(self, store: MarkerStore) -> AnalysisTicket:
        """
        Room tagging -> analyzing.

        Raises:
            StageViolation: not in room tagging
            IncompleteBoundary: some floor has fewer than three corners
            NoRoomPoints: active floor has no tagged rooms
        """
        self.require(CaptureStage.ROOM_TAGGING)
        incomplete = [f.name for f in store.floors if not f.has_complete_boundary]
        if incomplete:
            raise IncompleteBoundary(
                "Every floor must have a complete boundary "
                f"(at least {MIN_BOUNDARY_CORNERS} corners)",
                context={"floors": incomplete},
            )
        if not store.active_floor.rooms:
            raise NoRoomPoints(
                f"Tag at least one room on {store.active_floor.name} before finalizing",
                context={"floor": store.active_floor.name},
            )
        self._move(CaptureStage.ANALYZING)
        return AnalysisTicket(epoch=self.epoch)

    def complete_analysis(self, ticket: AnalysisTicket) -> bool:
        """Analyzing -> report. Returns False if the ticket is stale."""
        if not self._is_current(ticket):
            return False
        self._move(CaptureStage.REPORT)
        return True

    def fail_analysis(self, ticket: AnalysisTicket) -> bool:
        """Analyzing -> room tagging, data untouched. Returns False if the ticket is stale."""
        if not self._is_current(ticket):
            return False
        self._move(CaptureStage.ROOM_TAGGING)
        return True

    def reset(self) -> CaptureStage:
        """Back to welcome from any stage; invalidates in-flight analysis."""
        self.epoch += 1
        return self._move(CaptureStage.WELCOME)

    # ============ Internals ============

    def _is_current(self, ticket: AnalysisTicket) -> bool:
        if ticket.epoch != self.epoch or self.stage != CaptureStage.ANALYZING:
            logger.info("[Workflow] Discarding stale analysis response (epoch %d)", ticket.epoch)
            return False
        return True

    def _move(self, stage: CaptureStage) -> CaptureStage:
        if stage != self.stage:
            logger.debug("[Workflow] %s -> %s", self.stage.value, stage.value)
        self.stage = stage
        return stage
