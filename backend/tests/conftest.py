"""
Shared fixtures for the VastuVision test suite.
"""

import asyncio
from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from vastuvision.config import Settings
from vastuvision.core.interaction import DeviceCapabilities
from vastuvision.core.registry import SessionRegistry, get_registry
from vastuvision.core.session import CaptureSession
from vastuvision.models.report import ComplianceReport, GeocodeResult, ReportLanguage
from vastuvision.models.spatial import Floor, SpaceCategory


SQUARE_CORNERS = [(10.0, 10.0), (10.0, 11.0), (11.0, 11.0)]

SAMPLE_REPORT = {
    "overallScore": 72,
    "summary": "Mostly aligned layout.",
    "roomAnalysis": [
        {
            "roomType": "Kitchen",
            "status": "Good",
            "observation": "Kitchen sits in the South-East.",
            "floorName": "Ground Floor",
        },
        {
            "roomType": "Main Entrance",
            "status": "Bad",
            "observation": "Entrance faces South-West.",
            "remedy": "Place a threshold strip.",
        },
    ],
    "generalRemedies": ["Keep the centre open."],
}


class FakeAnalyst:
    """Stand-in for the Gemini analysis collaborator."""

    def __init__(self, report: Optional[ComplianceReport] = None, error: Optional[Exception] = None):
        self.report = report or ComplianceReport.model_validate(SAMPLE_REPORT)
        self.error = error
        self.calls: List[Tuple[List[Floor], ReportLanguage, Optional[Tuple[float, float]]]] = []
        self.release: Optional[asyncio.Event] = None

    async def analyze(self, floors, language=ReportLanguage.ENGLISH, location=None):
        self.calls.append((floors, language, location))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.report


class FakeSearcher:
    def __init__(self, result: Optional[GeocodeResult] = None):
        self.result = result
        self.queries: List[str] = []

    async def search(self, query):
        self.queries.append(query)
        return self.result


@pytest.fixture
def settings() -> Settings:
    return Settings(google_api_key=None)


@pytest.fixture
def session(settings) -> CaptureSession:
    """Pointer-mode session in the welcome stage."""
    return CaptureSession(
        "test-session",
        capabilities=DeviceCapabilities(viewport_width=1440, has_camera=False),
        settings=settings,
    )


@pytest.fixture
def boundary_session(session) -> CaptureSession:
    """Session in boundary capture with no points yet."""
    session.begin()
    return session


def add_corners(session: CaptureSession, corners=SQUARE_CORNERS, heading: float = 0.0) -> None:
    for lat, lng in corners:
        session.append_point(lat, lng, heading)


@pytest.fixture
def room_session(boundary_session) -> CaptureSession:
    """Session in room tagging with a complete ground-floor boundary."""
    add_corners(boundary_session)
    boundary_session.advance_to_rooms()
    return boundary_session


@pytest.fixture
def ready_session(room_session) -> CaptureSession:
    """Session ready to finalize: boundary plus one kitchen."""
    room_session.append_point(10.4, 10.4, 135, SpaceCategory.KITCHEN)
    return room_session


@pytest.fixture
def fake_analyst() -> FakeAnalyst:
    return FakeAnalyst()


@pytest.fixture
def fake_searcher() -> FakeSearcher:
    return FakeSearcher(GeocodeResult(latitude=12.9716, longitude=77.5946, display_address="Bengaluru"))


@pytest.fixture
def registry(settings) -> SessionRegistry:
    return SessionRegistry(settings=settings)


@pytest.fixture
def client(registry, fake_analyst, fake_searcher):
    """TestClient with an isolated registry and fake Gemini collaborators."""
    from vastuvision.main import app
    from vastuvision.routes.analyze import analyst_dependency
    from vastuvision.routes.search import searcher_dependency

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[analyst_dependency] = lambda: fake_analyst
    app.dependency_overrides[searcher_dependency] = lambda: fake_searcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
