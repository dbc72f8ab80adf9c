"""
Search Route

POST /sessions/{id}/search - Geocode a free-text address and use it as the
session's target location.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from vastuvision.agents.search_node import LocationSearcher, get_searcher
from vastuvision.core.session import CaptureSession
from vastuvision.models.api import SearchRequest, SearchResponse
from vastuvision.routes.sessions import get_session


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions/{session_id}", tags=["Search"])


def searcher_dependency() -> LocationSearcher:
    try:
        return get_searcher()
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/search", response_model=SearchResponse)
async def search_location(
    request: SearchRequest,
    session: CaptureSession = Depends(get_session),
    searcher: LocationSearcher = Depends(searcher_dependency),
) -> SearchResponse:
    """Find a location; on success it seeds the canvas and the capture position."""
    try:
        result = await session.search(searcher, request.query)
    except Exception as e:
        logger.error("Search failed: %s", e)
        raise HTTPException(status_code=502, detail="Search failed. Please check your connection.")

    if result is None:
        return SearchResponse(
            found=False,
            message="Could not find that location. Please be more specific.",
        )
    return SearchResponse(found=True, result=result, message=result.display_address or "Location found")
