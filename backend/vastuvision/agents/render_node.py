"""
Render Node

Pillow-based output:
- FloorRenderer rasterizes a floor through the projection contract
  (closed polygon / open polyline, numbered corners, labelled rooms)
- ReportExporter lays a compliance report out on A4 pages and saves a PDF
"""

import io
import logging
import textwrap
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont

from vastuvision.core.errors import ExportFailed, NoContent
from vastuvision.core.projection import ViewWindow, marker_size
from vastuvision.models.report import AssessmentStatus, ComplianceReport
from vastuvision.models.spatial import Floor


logger = logging.getLogger(__name__)

BACKGROUND = (15, 23, 42)
BOUNDARY_COLOR = (99, 102, 241)
ROOM_COLOR = (16, 185, 129)
TEXT_COLOR = (226, 232, 240)
MUTED_TEXT = (148, 163, 184)
STATUS_COLORS = {
    AssessmentStatus.GOOD: (52, 211, 153),
    AssessmentStatus.FAIR: (251, 191, 36),
    AssessmentStatus.POOR: (248, 113, 113),
}

# A4 at 150 dpi
PAGE_SIZE = (1240, 1754)
PAGE_MARGIN = 90


class FloorRenderer:
    """Draws a floor onto a square image using a projection snapshot."""

    def __init__(self, pixel_size: int = 800, line_base_width: float = 3.0, marker_base_radius: float = 6.0):
        self.pixel_size = pixel_size
        self.line_base_width = line_base_width
        self.marker_base_radius = marker_base_radius

    def render(self, floor: Floor, window: Optional[ViewWindow]) -> Image.Image:
        """
        Args:
            floor: Floor to draw
            window: Snapshot to project with; None draws the placeholder
        """
        image = Image.new("RGB", (self.pixel_size, self.pixel_size), BACKGROUND)
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default(size=max(10, self.pixel_size // 50))

        if window is None:
            draw.text(
                (self.pixel_size / 2, self.pixel_size / 2),
                "No points captured yet",
                fill=MUTED_TEXT,
                font=font,
                anchor="mm",
            )
            return image

        factor = self.pixel_size / window.viewport
        line_width = max(1, round(marker_size(self.line_base_width, window.zoom) * factor / 4))
        radius = max(2.0, marker_size(self.marker_base_radius, window.zoom) * factor / 2)

        def to_pixels(point):
            x, y = window.project(point)
            return (x * factor, y * factor)

        corners = [to_pixels(c) for c in floor.boundary]
        if len(corners) >= 3:
            draw.polygon(corners, outline=BOUNDARY_COLOR, width=line_width)
        elif len(corners) == 2:
            draw.line(corners, fill=BOUNDARY_COLOR, width=line_width)

        for number, (x, y) in enumerate(corners, start=1):
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=BOUNDARY_COLOR)
            draw.text((x, y), str(number), fill=TEXT_COLOR, font=font, anchor="mm")

        for room in floor.rooms:
            x, y = to_pixels(room.location)
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=ROOM_COLOR)
            draw.text((x + radius + 4, y), room.category.value, fill=ROOM_COLOR, font=font, anchor="lm")

        return image

    def render_png(self, floor: Floor, window: Optional[ViewWindow]) -> bytes:
        buffer = io.BytesIO()
        self.render(floor, window).save(buffer, format="PNG")
        return buffer.getvalue()


class _PageWriter:
    """Flows text onto as many A4 pages as needed."""

    def __init__(self):
        self.pages: List[Image.Image] = []
        self.fonts = {
            "title": ImageFont.load_default(size=44),
            "heading": ImageFont.load_default(size=30),
            "body": ImageFont.load_default(size=22),
        }
        self._new_page()

    def _new_page(self) -> None:
        page = Image.new("RGB", PAGE_SIZE, BACKGROUND)
        self.pages.append(page)
        self.draw = ImageDraw.Draw(page)
        self.y = PAGE_MARGIN

    def _ensure_room(self, height: int) -> None:
        if self.y + height > PAGE_SIZE[1] - PAGE_MARGIN:
            self._new_page()

    def text(self, content: str, style: str = "body", color=TEXT_COLOR, width: int = 80) -> None:
        font = self.fonts[style]
        line_height = int(font.size * 1.45)
        for line in textwrap.wrap(content, width=width) or [""]:
            self._ensure_room(line_height)
            self.draw.text((PAGE_MARGIN, self.y), line, fill=color, font=font)
            self.y += line_height

    def image(self, picture: Image.Image) -> None:
        self._ensure_room(picture.height)
        self.pages[-1].paste(picture, (PAGE_MARGIN, self.y))
        self.y += picture.height

    def gap(self, height: int = 24) -> None:
        self.y += height


class ReportExporter:
    """Export collaborator: compliance report -> PDF bytes."""

    def __init__(self, renderer: Optional[FloorRenderer] = None):
        self.renderer = renderer or FloorRenderer(pixel_size=520)

    def export_pdf(self, report: Optional[ComplianceReport], floors: List[Floor]) -> bytes:
        """
        Raises:
            ExportFailed: no report, or the document could not be rendered
        """
        if report is None:
            raise ExportFailed("There is no report to export")
        try:
            pages = self._layout(report, floors)
            buffer = io.BytesIO()
            pages[0].save(buffer, format="PDF", save_all=True, append_images=pages[1:], resolution=150.0)
            return buffer.getvalue()
        except Exception as e:
            logger.error("[Export] Failed to generate PDF: %s", e)
            raise ExportFailed("Failed to generate PDF. Please try again.") from e

    def _layout(self, report: ComplianceReport, floors: List[Floor]) -> List[Image.Image]:
        writer = _PageWriter()
        writer.text("VastuVision Architectural Audit", style="title", width=40)
        writer.text(f"Overall score: {report.overall_score:.0f} / 100", style="heading", width=50)
        writer.gap()
        writer.text("Expert Summary", style="heading", color=BOUNDARY_COLOR)
        writer.text(report.summary)
        writer.gap()

        for floor in floors:
            writer.text(
                f"{floor.name}: {len(floor.boundary)} corners, {len(floor.rooms)} tagged spaces",
                style="heading",
                width=50,
            )
            try:
                window = ViewWindow.from_points(floor.all_points())
            except NoContent:
                window = None
            writer.image(self.renderer.render(floor, window))
            writer.gap()

        writer.text("Space Analysis", style="heading", color=BOUNDARY_COLOR)
        for item in report.per_space:
            title = item.space_category
            if item.floor_name:
                title += f" ({item.floor_name})"
            writer.text(f"{title}: {item.status.value.upper()}", color=STATUS_COLORS[item.status])
            writer.text(item.observation, color=MUTED_TEXT)
            if item.remedy:
                writer.text(f"Remedy: {item.remedy}")
            writer.gap(12)

        if report.general_remedies:
            writer.gap()
            writer.text("Vastu Enhancements", style="heading", color=BOUNDARY_COLOR)
            for number, tip in enumerate(report.general_remedies, start=1):
                writer.text(f"{number}. {tip}")

        return writer.pages
