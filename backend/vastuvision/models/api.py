"""
API Request/Response Schemas

Pydantic models for API endpoints.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field

from vastuvision.core.interaction import CanvasMarker, CanvasView, DeviceCapabilities, InteractionOutcome
from vastuvision.core.projection import ViewWindow
from vastuvision.models.report import ComplianceReport, GeocodeResult, ReportLanguage
from vastuvision.models.spatial import Floor, PointKind, SpaceCategory


# ============ Sessions ============

class CreateSessionRequest(BaseModel):
    """Request body for creating a capture session."""
    language: ReportLanguage = ReportLanguage.ENGLISH
    capabilities: DeviceCapabilities = Field(default_factory=DeviceCapabilities)


class BeginRequest(BaseModel):
    """Optional capability report sent when capture starts."""
    capabilities: Optional[DeviceCapabilities] = None


class LocationFix(BaseModel):
    """Sensor feed: one location fix."""
    latitude: float
    longitude: float
    accuracy: Optional[float] = Field(default=None, ge=0)


class HeadingUpdate(BaseModel):
    """Sensor feed: compass heading, either direct or from a raw orientation event."""
    heading: Optional[float] = None
    alpha: Optional[float] = None
    webkit_compass_heading: Optional[float] = None


class SensorSnapshot(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    heading: float = 0.0
    gps_linked: bool = False


class SessionState(BaseModel):
    """Full state of a capture session."""
    session_id: str
    stage: str
    mode: str
    language: ReportLanguage
    selected_category: SpaceCategory
    active_floor_index: int
    floors: List[Floor]
    sensors: SensorSnapshot
    target: Optional[GeocodeResult] = None
    has_report: bool = False
    last_error: Optional[str] = None
    revision: int = 0


class LanguageRequest(BaseModel):
    language: ReportLanguage


class CategoryRequest(BaseModel):
    category: SpaceCategory


# ============ Points ============

class AppendPointRequest(BaseModel):
    """Explicit point for the collection the current stage is populating."""
    latitude: float
    longitude: float
    heading: Optional[float] = Field(default=None, description="Defaults to the live compass heading")
    category: Optional[SpaceCategory] = Field(default=None, description="Room stage only; defaults to the selected category")


class CaptureRequest(BaseModel):
    """Commit the current sensor reading."""
    category: Optional[SpaceCategory] = None


class RepositionRequest(BaseModel):
    """Move an existing corner (by index) or room (by id)."""
    kind: PointKind
    target: Union[int, str] = Field(..., description="Corner index or room id")
    latitude: float
    longitude: float


# ============ Canvas ============

class CanvasResponse(BaseModel):
    """Projection snapshot and projected markers, or the placeholder state."""
    has_content: bool
    window: Optional[ViewWindow] = None
    view: CanvasView
    markers: List[CanvasMarker] = Field(default_factory=list)
    marker_radius: float
    line_width: float


class CanvasPoint(BaseModel):
    x: float
    y: float


class DragRequest(BaseModel):
    start: CanvasPoint
    end: CanvasPoint


class ZoomRequest(BaseModel):
    """Absolute zoom, or a relative factor (pinch/scroll)."""
    zoom: Optional[float] = Field(default=None, gt=0)
    factor: Optional[float] = Field(default=None, gt=0)


class InteractionResponse(BaseModel):
    outcome: InteractionOutcome
    view: CanvasView
    state: SessionState


# ============ Search / Analysis ============

class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)


class SearchResponse(BaseModel):
    found: bool
    result: Optional[GeocodeResult] = None
    message: str = "Location found"


class FinalizeResponse(BaseModel):
    """Response from /finalize."""
    stage: str
    report: Optional[ComplianceReport] = None
    message: str = "Analysis complete"


# ============ Health Check ============

class HealthResponse(BaseModel):
    """Response from /health endpoint."""
    status: str = "ok"
    version: str
    message: str = "VastuVision Capture API is running"


# ============ Error Response ============

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    error_code: Optional[str] = None
    context: Optional[dict] = None
