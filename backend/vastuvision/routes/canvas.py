"""
Canvas Routes

Projection snapshot for renderers, and pointer gestures (click, drag, zoom)
routed through the session's interaction controller.
"""

from fastapi import APIRouter, Depends

from vastuvision.core.errors import NoContent
from vastuvision.core.interaction import InteractionOutcome
from vastuvision.core.projection import marker_size
from vastuvision.core.session import CaptureSession
from vastuvision.models.api import (
    CanvasPoint,
    CanvasResponse,
    DragRequest,
    InteractionResponse,
    ZoomRequest,
)
from vastuvision.routes.sessions import get_session, session_state


router = APIRouter(prefix="/sessions/{session_id}/canvas", tags=["Canvas"])


@router.get("", response_model=CanvasResponse)
async def get_canvas(session: CaptureSession = Depends(get_session)) -> CanvasResponse:
    """
    Snapshot to render the active floor with.

    Returns the placeholder state (has_content=false) when there is nothing
    to project yet.
    """
    controller = session.controller
    line_width = marker_size(session.settings.line_base_width, controller.view.zoom)
    try:
        window = controller.snapshot()
    except NoContent:
        return CanvasResponse(
            has_content=False,
            view=controller.view,
            marker_radius=controller.marker_radius,
            line_width=line_width,
        )
    return CanvasResponse(
        has_content=True,
        window=window,
        view=controller.view,
        markers=controller.markers(),
        marker_radius=controller.marker_radius,
        line_width=line_width,
    )


@router.post("/click", response_model=InteractionResponse)
async def click(point: CanvasPoint, session: CaptureSession = Depends(get_session)) -> InteractionResponse:
    """Place a point at the clicked position (pointer mode) or select the marker under it."""
    outcome = session.controller.click(point.x, point.y)
    return InteractionResponse(
        outcome=outcome, view=session.controller.view, state=session_state(session)
    )


@router.post("/drag", response_model=InteractionResponse)
async def drag(request: DragRequest, session: CaptureSession = Depends(get_session)) -> InteractionResponse:
    """Drag a marker to reposition it, or drag empty canvas to pan."""
    outcome = session.controller.drag(request.start.x, request.start.y, request.end.x, request.end.y)
    return InteractionResponse(
        outcome=outcome, view=session.controller.view, state=session_state(session)
    )


@router.post("/zoom", response_model=InteractionResponse)
async def zoom(request: ZoomRequest, session: CaptureSession = Depends(get_session)) -> InteractionResponse:
    """Set the zoom factor (clamped), absolutely or by a relative factor."""
    controller = session.controller
    if request.zoom is not None:
        controller.zoom_to(request.zoom)
    elif request.factor is not None:
        controller.zoom_by(request.factor)
    return InteractionResponse(
        outcome=InteractionOutcome(action="zoom"), view=session.controller.view, state=session_state(session)
    )
