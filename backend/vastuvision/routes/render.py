"""
Render Routes

GET /sessions/{id}/canvas.png - Rasterized active floor
GET /sessions/{id}/report.pdf - Exported compliance report
"""

import functools

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from vastuvision.agents.render_node import FloorRenderer, ReportExporter
from vastuvision.core.errors import NoContent
from vastuvision.core.session import CaptureSession
from vastuvision.routes.sessions import get_session


router = APIRouter(prefix="/sessions/{session_id}", tags=["Rendering"])


@functools.lru_cache()
def get_exporter() -> ReportExporter:
    return ReportExporter()


@router.get("/canvas.png")
async def render_canvas(session: CaptureSession = Depends(get_session), size: int = 800) -> Response:
    """
    Render the active floor with the session's current projection snapshot.

    An empty floor renders the placeholder image.
    """
    settings = session.settings
    renderer = FloorRenderer(
        pixel_size=max(100, min(size, 4096)),
        line_base_width=settings.line_base_width,
        marker_base_radius=settings.marker_base_radius,
    )
    try:
        window = session.controller.snapshot()
    except NoContent:
        window = None
    png = renderer.render_png(session.store.active_floor, window)
    return Response(content=png, media_type="image/png")


@router.get("/report.pdf")
async def export_report(
    session: CaptureSession = Depends(get_session),
    exporter: ReportExporter = Depends(get_exporter),
) -> Response:
    """Export the finished report. A failure leaves the session untouched."""
    pdf = session.export_pdf(exporter)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="VastuVision_Report.pdf"'},
    )
