from typing import List

import httpx
from movequote.core.config import settings
from movequote.core.logger import get_logger
from movequote.models.response import PlaceSuggestion

logger = get_logger(__name__)

MIN_QUERY_LENGTH = 3
MAX_SUGGESTIONS = 5


async def get_address_suggestions(query: str) -> List[PlaceSuggestion]:
    """
    Address autocomplete through Google Places.

    Queries shorter than three characters return nothing without
    calling the provider.
    """
    text = (query or "").strip()
    if len(text) < MIN_QUERY_LENGTH:
        return []

    api_key = settings.GOOGLE_MAPS_API_KEY
    if not api_key:
        raise ValueError("Google Maps API key is not configured.")

    async with httpx.AsyncClient(timeout=settings.LOOKUP_TIMEOUT) as client:
        try:
            response = await client.get(
                settings.GOOGLE_PLACES_URL,
                params={"input": text, "types": "geocode", "key": api_key},
            )
        except httpx.HTTPError as e:
            raise ValueError(f"Google Places request failed: {e}")

    if response.status_code != 200:
        logger.error(f"Google Places fetch failed: {response.status_code} {response.text}")
        raise ValueError("Failed to fetch Google Places results.")

    data = response.json()
    status = data.get("status")
    if status not in ("OK", "ZERO_RESULTS"):
        logger.error(f"Google Places error: {status} {data.get('error_message')}")
        raise ValueError(data.get("error_message") or "Google Places error.")

    return [
        PlaceSuggestion(description=p["description"], place_id=p["place_id"])
        for p in (data.get("predictions") or [])[:MAX_SUGGESTIONS]
    ]
