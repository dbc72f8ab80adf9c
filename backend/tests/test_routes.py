"""
HTTP-level tests through FastAPI's TestClient, with the Gemini
collaborators replaced by fakes.
"""

import pytest

from conftest import SQUARE_CORNERS


API = "/api/v1/sessions"


@pytest.fixture
def sid(client):
    response = client.post(API, json={"capabilities": {"viewport_width": 1440}})
    assert response.status_code == 201
    return response.json()["session_id"]


@pytest.fixture
def mapping(client, sid):
    """Session in boundary capture with three corners."""
    client.post(f"{API}/{sid}/begin")
    for lat, lng in SQUARE_CORNERS:
        client.post(f"{API}/{sid}/points", json={"latitude": lat, "longitude": lng})
    return sid


@pytest.fixture
def tagging(client, mapping):
    """Session in room tagging with one kitchen."""
    client.post(f"{API}/{mapping}/stage/rooms")
    client.put(f"{API}/{mapping}/room-category", json={"category": "Kitchen"})
    client.post(f"{API}/{mapping}/points", json={"latitude": 10.4, "longitude": 10.4, "heading": 135})
    return mapping


def assert_error(response, status, code):
    assert response.status_code == status, response.text
    assert response.json()["error_code"] == code


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_health(self, client):
        assert client.get("/health").json()["version"] == "1.0.0"


class TestLifecycle:
    def test_create_session(self, client):
        response = client.post(API, json={"language": "Hindi (हिन्दी)"})
        body = response.json()
        assert response.status_code == 201
        assert body["stage"] == "welcome"
        assert body["language"] == "Hindi (हिन्दी)"
        assert len(body["floors"]) == 1
        assert body["floors"][0]["name"] == "Ground Floor"

    def test_unknown_session(self, client):
        assert_error(client.get(f"{API}/missing"), 404, "session_not_found")

    def test_begin_selects_mode(self, client, sid):
        body = client.post(f"{API}/{sid}/begin").json()
        assert body["stage"] == "map-corners"
        assert body["mode"] == "pointer"

    def test_begin_with_phone_capabilities(self, client, sid):
        body = client.post(
            f"{API}/{sid}/begin",
            json={"capabilities": {"viewport_width": 390, "has_camera": True}},
        ).json()
        assert body["mode"] == "sensor"

    def test_delete_session(self, client, sid):
        assert client.delete(f"{API}/{sid}").status_code == 204
        assert_error(client.get(f"{API}/{sid}"), 404, "session_not_found")

    def test_reset(self, client, tagging):
        body = client.post(f"{API}/{tagging}/reset").json()
        assert body["stage"] == "welcome"
        assert body["floors"][0]["boundary"] == []
        assert body["floors"][0]["rooms"] == []


class TestCapture:
    def test_points_rejected_before_begin(self, client, sid):
        response = client.post(f"{API}/{sid}/points", json={"latitude": 10, "longitude": 10})
        assert_error(response, 409, "stage_violation")

    def test_invalid_coordinate(self, client, mapping):
        response = client.post(f"{API}/{mapping}/points", json={"latitude": 95, "longitude": 10})
        assert_error(response, 422, "invalid_coordinate")
        assert len(client.get(f"{API}/{mapping}").json()["floors"][0]["boundary"]) == 3

    def test_advance_needs_three_corners(self, client, mapping):
        client.post(f"{API}/{mapping}/undo")
        response = client.post(f"{API}/{mapping}/stage/rooms")
        assert_error(response, 409, "incomplete_boundary")
        assert response.json()["context"]["floors"] == ["Ground Floor"]

    def test_capture_requires_sensor_fix(self, client, mapping):
        assert_error(client.post(f"{API}/{mapping}/capture"), 409, "no_sensor_reading")

    def test_capture_uses_sensor_feed(self, client, mapping):
        client.post(f"{API}/{mapping}/sensors/location", json={"latitude": 10.5, "longitude": 10.2, "accuracy": 4})
        body = client.post(f"{API}/{mapping}/sensors/heading", json={"alpha": 90}).json()
        assert body["sensors"]["heading"] == 270
        assert body["sensors"]["gps_linked"] is True
        # Sensor updates alone never add points
        assert len(body["floors"][0]["boundary"]) == 3

        body = client.post(f"{API}/{mapping}/capture").json()
        corner = body["floors"][0]["boundary"][-1]
        assert (corner["latitude"], corner["longitude"], corner["heading"]) == (10.5, 10.2, 270)

    def test_room_point_and_reposition(self, client, tagging):
        room = client.get(f"{API}/{tagging}").json()["floors"][0]["rooms"][0]
        assert room["category"] == "Kitchen"

        body = client.patch(
            f"{API}/{tagging}/points",
            json={"kind": "room", "target": room["id"], "latitude": 10.5, "longitude": 10.5},
        ).json()
        moved = body["floors"][0]["rooms"][0]
        assert moved["id"] == room["id"]
        assert moved["category"] == "Kitchen"
        assert moved["location"]["heading"] == 135
        assert (moved["location"]["latitude"], moved["location"]["longitude"]) == (10.5, 10.5)

    def test_reposition_missing_corner(self, client, mapping):
        response = client.patch(
            f"{API}/{mapping}/points",
            json={"kind": "boundary", "target": 7, "latitude": 10, "longitude": 10},
        )
        assert_error(response, 404, "not_found")

    def test_floors(self, client, tagging):
        body = client.post(f"{API}/{tagging}/floors").json()
        assert body["active_floor_index"] == 1
        assert body["stage"] == "map-corners"
        assert body["floors"][1]["level"] == 1

        body = client.post(f"{API}/{tagging}/floors/0/activate").json()
        assert body["active_floor_index"] == 0
        assert_error(client.post(f"{API}/{tagging}/floors/9/activate"), 404, "not_found")


class TestCanvas:
    def test_placeholder_when_empty(self, client, sid):
        body = client.get(f"{API}/{sid}/canvas").json()
        assert body["has_content"] is False
        assert body["window"] is None

    def test_search_seeds_canvas(self, client, sid):
        body = client.post(f"{API}/{sid}/search", json={"query": "MG Road"}).json()
        assert body["found"] is True
        assert body["message"] == "Bengaluru"

        canvas = client.get(f"{API}/{sid}/canvas").json()
        assert canvas["has_content"] is True
        assert canvas["markers"] == []

    def test_location_fix_recentres_empty_canvas(self, client, sid):
        client.post(f"{API}/{sid}/begin")
        client.post(f"{API}/{sid}/sensors/location", json={"latitude": 10, "longitude": 10})
        assert client.get(f"{API}/{sid}/canvas").json()["has_content"] is True

        client.post(f"{API}/{sid}/sensors/location", json={"latitude": 20, "longitude": 20})
        body = client.post(f"{API}/{sid}/canvas/click", json={"x": 100, "y": 100}).json()

        corner = body["state"]["floors"][0]["boundary"][0]
        assert (corner["latitude"], corner["longitude"]) == pytest.approx((20, 20), abs=1e-9)

    def test_search_miss(self, client, sid, fake_searcher):
        fake_searcher.result = None
        body = client.post(f"{API}/{sid}/search", json={"query": "nowhere"}).json()
        assert body["found"] is False
        assert "more specific" in body["message"]

    def test_markers_and_click(self, client, mapping):
        canvas = client.get(f"{API}/{mapping}/canvas").json()
        assert [m["label"] for m in canvas["markers"]] == ["1", "2", "3"]

        body = client.post(f"{API}/{mapping}/canvas/click", json={"x": 100, "y": 100}).json()
        assert body["outcome"]["action"] == "append"
        assert len(body["state"]["floors"][0]["boundary"]) == 4

    def test_drag_marker(self, client, mapping):
        first = client.get(f"{API}/{mapping}/canvas").json()["markers"][0]
        body = client.post(
            f"{API}/{mapping}/canvas/drag",
            json={"start": {"x": first["x"], "y": first["y"]}, "end": {"x": 100, "y": 100}},
        ).json()
        assert body["outcome"]["action"] == "reposition"
        corner = body["state"]["floors"][0]["boundary"][0]
        assert corner["latitude"] == pytest.approx(10.5, abs=1e-3)

    def test_zoom_is_clamped(self, client, mapping):
        body = client.post(f"{API}/{mapping}/canvas/zoom", json={"zoom": 50}).json()
        assert body["view"]["zoom"] == 8
        assert client.get(f"{API}/{mapping}/canvas").json()["marker_radius"] == pytest.approx(0.75)

    def test_canvas_png(self, client, mapping):
        response = client.get(f"{API}/{mapping}/canvas.png", params={"size": 256})
        assert response.headers["content-type"] == "image/png"
        assert response.content.startswith(b"\x89PNG")


class TestFinalize:
    def test_finalize_without_rooms(self, client, mapping):
        client.post(f"{API}/{mapping}/stage/rooms")
        assert_error(client.post(f"{API}/{mapping}/finalize"), 409, "no_room_points")

    def test_finalize_and_export(self, client, tagging, fake_analyst):
        response = client.post(f"{API}/{tagging}/finalize")
        body = response.json()
        assert response.status_code == 200
        assert body["stage"] == "report"
        assert body["report"]["overall_score"] == 72
        assert body["report"]["per_space"][1]["status"] == "poor"
        assert len(fake_analyst.calls) == 1

        assert client.get(f"{API}/{tagging}/report").json()["summary"] == "Mostly aligned layout."

        pdf = client.get(f"{API}/{tagging}/report.pdf")
        assert pdf.headers["content-type"] == "application/pdf"
        assert "VastuVision_Report.pdf" in pdf.headers["content-disposition"]
        assert pdf.content.startswith(b"%PDF")

    def test_mutations_rejected_after_report(self, client, tagging):
        client.post(f"{API}/{tagging}/finalize")
        response = client.post(f"{API}/{tagging}/points", json={"latitude": 10, "longitude": 10})
        assert_error(response, 409, "stage_violation")

    def test_analysis_failure_keeps_data(self, client, tagging, fake_analyst):
        before = client.get(f"{API}/{tagging}").json()["floors"]
        fake_analyst.error = RuntimeError("upstream down")

        assert_error(client.post(f"{API}/{tagging}/finalize"), 502, "analysis_failed")

        body = client.get(f"{API}/{tagging}").json()
        assert body["stage"] == "tag-rooms"
        assert body["floors"] == before
        assert body["last_error"]

    def test_report_and_export_need_report_stage(self, client, tagging):
        assert_error(client.get(f"{API}/{tagging}/report"), 409, "stage_violation")
        assert_error(client.get(f"{API}/{tagging}/report.pdf"), 409, "stage_violation")
