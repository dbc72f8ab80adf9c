"""
Tests for Pillow-based canvas rendering and PDF export.
"""

import io

import pytest
from PIL import Image

from conftest import SAMPLE_REPORT
from vastuvision.agents.render_node import BACKGROUND, BOUNDARY_COLOR, FloorRenderer, ReportExporter
from vastuvision.core.errors import ExportFailed
from vastuvision.core.projection import ViewWindow
from vastuvision.models.report import ComplianceReport
from vastuvision.models.spatial import ClassifiedPoint, SpaceCategory, make_floor, make_geo_point


@pytest.fixture
def floor():
    floor = make_floor("Ground Floor", 0)
    for lat, lng in [(10.0, 10.0), (10.0, 10.001), (10.001, 10.001), (10.001, 10.0)]:
        floor.boundary.append(make_geo_point(lat, lng))
    floor.rooms.append(ClassifiedPoint(
        id="room-1", category=SpaceCategory.KITCHEN, location=make_geo_point(10.0002, 10.0008, 135)
    ))
    return floor


@pytest.fixture
def report():
    return ComplianceReport.model_validate(SAMPLE_REPORT)


def open_png(data: bytes) -> Image.Image:
    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    return Image.open(io.BytesIO(data))


def test_render_floor(floor):
    renderer = FloorRenderer(pixel_size=400)
    window = ViewWindow.from_points(floor.all_points())
    image = open_png(renderer.render_png(floor, window))

    assert image.size == (400, 400)
    colors = {color for _, color in image.convert("RGB").getcolors(maxcolors=1 << 16)}
    assert BOUNDARY_COLOR in colors


def test_render_placeholder_without_window():
    image = FloorRenderer(pixel_size=200).render(make_floor("Ground Floor", 0), None)
    assert image.size == (200, 200)
    # Only background and placeholder text
    assert image.getpixel((0, 0)) == BACKGROUND
    assert BOUNDARY_COLOR not in {color for _, color in image.getcolors(maxcolors=1 << 16)}


def test_render_open_polyline_for_two_corners(floor):
    del floor.boundary[2:]
    window = ViewWindow.from_points(floor.all_points())
    image = FloorRenderer(pixel_size=300).render(floor, window)
    assert image.size == (300, 300)


def test_export_pdf(report, floor):
    pdf = ReportExporter().export_pdf(report, [floor, make_floor("Floor 2", 1)])
    assert pdf.startswith(b"%PDF")


def test_long_report_spans_pages(report, floor):
    report = report.model_copy(update={"general_remedies": [f"Remedy number {i}" for i in range(120)]})
    exporter = ReportExporter()
    assert len(exporter._layout(report, [floor])) > 1
    assert exporter.export_pdf(report, [floor]).startswith(b"%PDF")


def test_export_without_report():
    with pytest.raises(ExportFailed):
        ReportExporter().export_pdf(None, [])


def test_export_failure_is_wrapped(report, floor, mocker):
    exporter = ReportExporter()
    mocker.patch.object(exporter, "_layout", side_effect=OSError("disk full"))
    with pytest.raises(ExportFailed):
        exporter.export_pdf(report, [floor])
