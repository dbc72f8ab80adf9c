"""
Search Node

Resolves a free-text address to coordinates with Gemini + Google Maps
grounding, so a survey can be seeded without a live GPS fix.
"""

import asyncio
import functools
import logging
from typing import Optional

from google import genai
from google.genai import types
from langsmith import traceable
from pydantic import ValidationError

from vastuvision.agents.analysis_node import extract_json_object
from vastuvision.config import get_settings
from vastuvision.models.report import GeocodeResult


logger = logging.getLogger(__name__)


SEARCH_PROMPT = (
    'Find the precise coordinates (latitude and longitude) and full address for: "{query}". '
    'Return the result strictly as a JSON object with keys "lat", "lng", and "address".'
)


class LocationSearcher:
    """Geocoding collaborator."""

    def __init__(self, client: Optional[genai.Client] = None):
        settings = get_settings()
        if client is None:
            if not settings.google_api_key:
                raise ValueError("GOOGLE_API_KEY environment variable is not set")
            client = genai.Client(api_key=settings.google_api_key)
        self.client = client
        self.model = settings.model_name

    @traceable(name="location_searcher.search", run_type="tool", tags=["search", "gemini", "maps"])
    async def search(self, query: str) -> Optional[GeocodeResult]:
        """
        Look up a place.

        Returns:
            GeocodeResult, or None when the model's answer has no usable
            coordinates. Transport errors propagate.
        """
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=SEARCH_PROMPT.format(query=query),
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_maps=types.GoogleMaps())],
            ),
        )
        try:
            return GeocodeResult.model_validate(extract_json_object(response.text or ""))
        except (ValueError, ValidationError) as e:
            logger.info("[Search] No usable result for %r: %s", query, e)
            return None


@functools.lru_cache()
def get_searcher() -> LocationSearcher:
    """Singleton LocationSearcher."""
    return LocationSearcher()
