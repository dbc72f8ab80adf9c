"""
Capture Errors

Every failure the capture subsystem can report. All of them are recoverable:
the session is left exactly as it was before the rejected call.
"""

from typing import Any, Dict, Optional


class CaptureError(Exception):
    """Base class for capture subsystem errors."""

    error_code = "capture_error"
    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context


class InvalidCoordinate(CaptureError):
    """Latitude/longitude/heading outside the valid range."""

    error_code = "invalid_coordinate"
    status_code = 422


class IncompleteBoundary(CaptureError):
    """A floor has fewer than three boundary corners."""

    error_code = "incomplete_boundary"
    status_code = 409


class NoRoomPoints(CaptureError):
    """Finalize requested while the active floor has no tagged rooms."""

    error_code = "no_room_points"
    status_code = 409


class StageViolation(CaptureError):
    """Operation not permitted in the current workflow stage."""

    error_code = "stage_violation"
    status_code = 409


class NotFound(CaptureError):
    """Reposition or floor switch targeting a point/floor that does not exist."""

    error_code = "not_found"
    status_code = 404


class NoContent(CaptureError):
    """Projection requested with nothing to project."""

    error_code = "no_content"
    status_code = 409


class NoSensorReading(CaptureError):
    """Capture requested before any location fix arrived."""

    error_code = "no_sensor_reading"
    status_code = 409


class AnalysisFailed(CaptureError):
    """The analysis collaborator failed or returned a malformed report."""

    error_code = "analysis_failed"
    status_code = 502


class ExportFailed(CaptureError):
    """The report could not be rendered to a document."""

    error_code = "export_failed"
    status_code = 500


class SessionNotFound(CaptureError):
    """Unknown session id."""

    error_code = "session_not_found"
    status_code = 404
