"""
Analyze Route

POST /sessions/{id}/finalize - Validate every floor, send the captured
geometry to the analysis collaborator, and return the compliance report.
"""

from fastapi import APIRouter, Depends, HTTPException

from vastuvision.agents.analysis_node import VastuAnalyst, get_analyst
from vastuvision.core.session import CaptureSession
from vastuvision.core.workflow import CaptureStage
from vastuvision.models.api import FinalizeResponse
from vastuvision.models.report import ComplianceReport
from vastuvision.routes.sessions import get_session


router = APIRouter(prefix="/sessions/{session_id}", tags=["Analysis"])


def analyst_dependency() -> VastuAnalyst:
    try:
        return get_analyst()
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/finalize", response_model=FinalizeResponse)
async def finalize(
    session: CaptureSession = Depends(get_session),
    analyst: VastuAnalyst = Depends(analyst_dependency),
) -> FinalizeResponse:
    """
    Finalize the survey.

    This endpoint:
    1. Requires every floor to have at least 3 corners (409 otherwise)
    2. Requires at least one tagged room on the active floor (409 otherwise)
    3. Runs the analysis; on failure the session returns to room tagging
       with all data intact (502)

    A session reset while the analysis is running discards the result.
    """
    report = await session.finalize(analyst)
    if report is None:
        return FinalizeResponse(
            stage=session.stage.value,
            report=None,
            message="Session was reset during analysis; result discarded.",
        )
    return FinalizeResponse(
        stage=session.stage.value,
        report=report,
        message=f"Analyzed {len(session.floors)} floor(s). Score {report.overall_score:.0f}/100.",
    )


@router.get("/report", response_model=ComplianceReport)
async def get_report(session: CaptureSession = Depends(get_session)) -> ComplianceReport:
    """The finished report (report stage only)."""
    session.workflow.require(CaptureStage.REPORT)
    return session.report
