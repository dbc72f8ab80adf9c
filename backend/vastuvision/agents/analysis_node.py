"""
Analysis Node

Sends the captured multi-floor geometry to Gemini (with Google Maps
grounding) and parses the Vastu compliance report it returns.
Traced with LangSmith.
"""

import asyncio
import functools
import json
import logging
import re
from typing import List, Optional, Tuple

from google import genai
from google.genai import types
from langsmith import traceable
from pydantic import ValidationError

from vastuvision.config import get_settings
from vastuvision.core.errors import AnalysisFailed
from vastuvision.core.geometry import (
    boundary_area_m2,
    boundary_centroid,
    heading_to_direction,
    is_inside_boundary,
    is_simple_boundary,
    zone_of,
)
from vastuvision.models.report import ComplianceReport, ReportLanguage
from vastuvision.models.spatial import ClassifiedPoint, Floor


logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Analysis failed. Ensure markers are properly placed and try again."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


VASTU_SYSTEM_PROMPT = """You are a world-class Vastu Shastra expert architect.
Given a list of house corners (polygon) and room positions (GPS + Heading), analyze the layout.
The heading 0 is True North, 90 is East, 180 is South, 270 is West.

CRITICAL: You must provide the response content (summary, observations, remedies, and general tips) in the user's requested language. However, the JSON KEYS must remain in English as per the schema.

Output a JSON report strictly following this structure:
{
  "overallScore": number (0-100),
  "summary": "Short overview string in requested language",
  "roomAnalysis": [
    {
      "roomType": "The English room type name provided",
      "status": "Good" | "Fair" | "Bad",
      "observation": "detailed observation in requested language",
      "remedy": "practical remedy in requested language if status is not Good",
      "floorName": "name of the floor the room is on"
    }
  ],
  "generalRemedies": ["string list in requested language"]
}

Rules of Vastu to consider:
1. Kitchen: Best in South-East (Agni).
2. Master Bedroom: Best in South-West.
3. Pooja Room: Best in North-East (Ishanya).
4. Toilet: Best in North-West or West. Avoid North-East.
5. Entrance: North, North-East, or East are considered auspicious.
6. Center (Brahmasthan): Should be open and clutter-free."""


def _describe_room(floor: Floor, room: ClassifiedPoint) -> str:
    point = room.location
    line = (
        f"- {room.category.value}: Lat {point.latitude}, Lng {point.longitude}, "
        f"Facing {point.heading:g}° ({heading_to_direction(point.heading)}), "
        f"Zone {zone_of(floor, point) or 'unknown'}"
    )
    if floor.has_complete_boundary and not is_inside_boundary(floor, point):
        line += " (placed OUTSIDE the boundary)"
    return line


def describe_floor(floor: Floor) -> str:
    """Plain-text description of one floor for the prompt."""
    corners = "\n".join(
        f"Corner {i + 1}: Lat {c.latitude}, Lng {c.longitude}"
        for i, c in enumerate(floor.boundary)
    )
    rooms = "\n".join(_describe_room(floor, r) for r in floor.rooms)
    lines = [
        f"Floor: {floor.name} (Level {floor.level})",
        "Boundary Corners:",
        corners,
    ]
    centre = boundary_centroid(floor)
    if centre is not None:
        lines.append(f"Centre (Brahmasthan): Lat {centre[0]:.7f}, Lng {centre[1]:.7f}")
    lines.append(f"Approximate built-up area: {boundary_area_m2(floor):.1f} sq m")
    if floor.has_complete_boundary and not is_simple_boundary(floor):
        lines.append("Note: the boundary polygon self-intersects; corners may be out of order.")
    lines += ["", "Room Placements on this Floor:", rooms or "(none tagged)"]
    return "\n".join(lines)


def build_analysis_prompt(
    floors: List[Floor],
    language: ReportLanguage,
    location: Optional[Tuple[float, float]] = None,
) -> str:
    floors_description = "\n--- Next Floor ---\n".join(describe_floor(f) for f in floors)
    context = (
        f"Latitude: {location[0]}, Longitude: {location[1]}"
        if location else "Unknown exact address"
    )
    return f"""Analyze this multi-floor house layout for Vastu compliance and provide the report in {language.value}.

House Location Context: {context}

Spatial Data:
{floors_description}

Notes: 0° is North, 90° is East, 180° is South, 270° is West.
Consider the vertical alignment as well (e.g., toilets shouldn't be above kitchens or pooja rooms).

CRITICAL: Use the googleMaps tool to check the surrounding geography (roads, T-junctions, nearby water bodies, or slopes) at this coordinate to provide a professional contextual analysis.

Return the analysis ONLY as a valid JSON object matching the requested schema."""


def extract_json_object(text: str) -> dict:
    """
    Pull the JSON object out of a model response that may be wrapped in
    markdown fences or prose.

    Raises:
        ValueError: no parsable JSON object
    """
    cleaned = (text or "").strip()
    match = _JSON_OBJECT.search(cleaned)
    if match:
        cleaned = match.group(0)
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def parse_report(text: str) -> ComplianceReport:
    """
    Parse Gemini's text response into a ComplianceReport.

    Raises:
        AnalysisFailed: malformed JSON or schema mismatch
    """
    try:
        return ComplianceReport.model_validate(extract_json_object(text))
    except (ValueError, ValidationError) as e:
        logger.warning("[Analysis] Malformed report: %s", e)
        raise AnalysisFailed(ANALYSIS_FAILED_MESSAGE, context={"reason": str(e)}) from e


class VastuAnalyst:
    """
    Analysis collaborator backed by Gemini with Maps grounding.
    All calls are traced with LangSmith.
    """

    def __init__(self, client: Optional[genai.Client] = None):
        settings = get_settings()
        if client is None:
            if not settings.google_api_key:
                raise ValueError("GOOGLE_API_KEY environment variable is not set")
            client = genai.Client(api_key=settings.google_api_key)
        self.client = client
        self.model = settings.model_name

    @traceable(name="vastu_analyst.analyze", run_type="chain", tags=["analysis", "gemini"])
    async def analyze(
        self,
        floors: List[Floor],
        language: ReportLanguage = ReportLanguage.ENGLISH,
        location: Optional[Tuple[float, float]] = None,
    ) -> ComplianceReport:
        """
        Analyze the floors and return a compliance report.

        Raises:
            AnalysisFailed: the Gemini call failed or returned a malformed report
        """
        prompt = build_analysis_prompt(floors, language, location)
        try:
            response_text = await self._call_gemini(prompt, location)
        except Exception as e:
            logger.error("[Analysis] Gemini call failed: %s", e)
            raise AnalysisFailed(ANALYSIS_FAILED_MESSAGE) from e
        return parse_report(response_text)

    @traceable(
        name="gemini_analysis_call",
        run_type="llm",
        tags=["gemini", "maps", "api-call"],
        metadata={"model_type": "gemini-flash"},
    )
    async def _call_gemini(self, prompt: str, location: Optional[Tuple[float, float]]) -> str:
        # response_mime_type/response_schema are not supported together with the Maps tool
        tool_config = None
        if location:
            tool_config = types.ToolConfig(
                retrieval_config=types.RetrievalConfig(
                    lat_lng=types.LatLng(latitude=location[0], longitude=location[1])
                )
            )
        config = types.GenerateContentConfig(
            system_instruction=VASTU_SYSTEM_PROMPT,
            tools=[types.Tool(google_maps=types.GoogleMaps())],
            tool_config=tool_config,
        )

        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=prompt,
            config=config,
        )
        return response.text or "{}"


@functools.lru_cache()
def get_analyst() -> VastuAnalyst:
    """
    Singleton VastuAnalyst.
    Cached to avoid re-initializing the Gemini client on every request.
    """
    return VastuAnalyst()
