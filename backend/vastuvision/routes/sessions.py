"""
Session Routes

Capture-session lifecycle, sensor feed, and marker mutations. Every
mutation is checked by the session's workflow before it reaches the store.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from vastuvision.core.registry import SessionRegistry, get_registry
from vastuvision.core.session import CaptureSession
from vastuvision.models.api import (
    AppendPointRequest,
    BeginRequest,
    CaptureRequest,
    CategoryRequest,
    CreateSessionRequest,
    HeadingUpdate,
    LanguageRequest,
    LocationFix,
    RepositionRequest,
    SensorSnapshot,
    SessionState,
)


router = APIRouter(prefix="/sessions", tags=["Sessions"])


def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> CaptureSession:
    """Resolve the path's session id (SessionNotFound -> 404)."""
    return registry.get(session_id)


def session_state(session: CaptureSession) -> SessionState:
    """Serialize a session for the client."""
    reading = session.sensors.location
    return SessionState(
        session_id=session.id,
        stage=session.stage.value,
        mode=session.controller.mode,
        language=session.language,
        selected_category=session.selected_category,
        active_floor_index=session.store.active_index,
        floors=session.floors,
        sensors=SensorSnapshot(
            latitude=reading.latitude if reading else None,
            longitude=reading.longitude if reading else None,
            accuracy=reading.accuracy if reading else None,
            heading=session.sensors.heading,
            gps_linked=reading is not None and reading.source == "gps",
        ),
        target=session.target,
        has_report=session.report is not None,
        last_error=session.last_error,
        revision=session.revision,
    )


# ============ Lifecycle ============

@router.post("", response_model=SessionState, status_code=201)
async def create_session(
    request: CreateSessionRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> SessionState:
    """Start a new session in the welcome stage with one empty ground floor."""
    session = registry.create(language=request.language, capabilities=request.capabilities)
    return session_state(session)


@router.get("/{session_id}", response_model=SessionState)
async def get_session_state(session: CaptureSession = Depends(get_session)) -> SessionState:
    return session_state(session)


@router.delete("/{session_id}", status_code=204)
async def delete_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> None:
    """Drop a session and everything captured in it."""
    registry.drop(session_id)


@router.post("/{session_id}/begin", response_model=SessionState)
async def begin_capture(
    request: Optional[BeginRequest] = None,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Welcome -> boundary capture. Selects the interaction strategy."""
    session.begin(request.capabilities if request else None)
    return session_state(session)


@router.post("/{session_id}/reset", response_model=SessionState)
async def reset_session(session: CaptureSession = Depends(get_session)) -> SessionState:
    """Discard all floors and points and return to the welcome stage."""
    session.reset()
    return session_state(session)


@router.put("/{session_id}/language", response_model=SessionState)
async def set_language(
    request: LanguageRequest,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    session.set_language(request.language)
    return session_state(session)


@router.put("/{session_id}/room-category", response_model=SessionState)
async def select_room_category(
    request: CategoryRequest,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Category used for the next room point."""
    session.select_category(request.category)
    return session_state(session)


# ============ Sensor feed ============

@router.post("/{session_id}/sensors/location", response_model=SessionState)
async def push_location(
    request: LocationFix,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Store a location fix. Never changes captured geometry."""
    session.update_location(request.latitude, request.longitude, request.accuracy)
    return session_state(session)


@router.post("/{session_id}/sensors/heading", response_model=SessionState)
async def push_heading(
    request: HeadingUpdate,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Store a compass heading, given directly or as a raw orientation event."""
    if request.heading is not None:
        session.sensors.update_heading(request.heading)
    else:
        session.sensors.update_orientation(request.alpha, request.webkit_compass_heading)
    return session_state(session)


# ============ Points ============

@router.post("/{session_id}/capture", response_model=SessionState)
async def capture_reading(
    request: Optional[CaptureRequest] = None,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Commit the current sensor reading to the active collection."""
    session.capture(request.category if request else None)
    return session_state(session)


@router.post("/{session_id}/points", response_model=SessionState)
async def append_point(
    request: AppendPointRequest,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Append a corner (boundary stage) or a room point (room stage)."""
    session.append_point(request.latitude, request.longitude, request.heading, request.category)
    return session_state(session)


@router.patch("/{session_id}/points", response_model=SessionState)
async def reposition_point(
    request: RepositionRequest,
    session: CaptureSession = Depends(get_session),
) -> SessionState:
    """Move a corner or room marker; heading, category and id are kept."""
    session.reposition_point(request.kind, request.target, request.latitude, request.longitude)
    return session_state(session)


@router.post("/{session_id}/undo", response_model=SessionState)
async def undo_last(session: CaptureSession = Depends(get_session)) -> SessionState:
    """Remove the last point of the collection being populated."""
    session.undo_last()
    return session_state(session)


# ============ Floors & stages ============

@router.post("/{session_id}/floors", response_model=SessionState)
async def add_floor(session: CaptureSession = Depends(get_session)) -> SessionState:
    """Add an empty floor at the next level and start its boundary capture."""
    session.add_floor()
    return session_state(session)


@router.post("/{session_id}/floors/{index}/activate", response_model=SessionState)
async def activate_floor(index: int, session: CaptureSession = Depends(get_session)) -> SessionState:
    session.switch_active_floor(index)
    return session_state(session)


@router.post("/{session_id}/stage/rooms", response_model=SessionState)
async def define_interiors(session: CaptureSession = Depends(get_session)) -> SessionState:
    """Boundary capture -> room tagging (needs three corners)."""
    session.advance_to_rooms()
    return session_state(session)


@router.post("/{session_id}/stage/boundary", response_model=SessionState)
async def back_to_boundary(session: CaptureSession = Depends(get_session)) -> SessionState:
    session.return_to_boundary()
    return session_state(session)
