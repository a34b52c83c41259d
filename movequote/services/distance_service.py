import httpx
from movequote.core.config import settings
from movequote.core.logger import get_logger
from movequote.models.response import DistanceInfo, DistanceResponse, DurationInfo
from movequote.models.selection import DistanceResult

logger = get_logger(__name__)

METERS_PER_MILE = 1609.34


class RouteNotFound(ValueError):
    """The provider answered but has no drivable route for the pair."""


async def get_route_distance(origin: str, destination: str) -> DistanceResponse:
    """
    Driving distance and duration between two free-form addresses
    using the Google Distance Matrix API.

    Miles are rounded to one decimal, hours to two. Raises ValueError
    when the lookup cannot be made and RouteNotFound when the provider
    has no route.
    """
    api_key = settings.GOOGLE_MAPS_API_KEY
    if not api_key:
        raise ValueError("Google Maps API key is not configured.")

    params = {
        "origins": origin,
        "destinations": destination,
        "units": "imperial",
        "key": api_key,
    }

    async with httpx.AsyncClient(timeout=settings.LOOKUP_TIMEOUT) as client:
        try:
            response = await client.get(settings.GOOGLE_DISTANCE_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ValueError(f"Distance Matrix request failed: {e}")

    if data.get("status") != "OK":
        raise ValueError(data.get("error_message") or "Failed to calculate distance.")

    rows = data.get("rows") or [{}]
    elements = rows[0].get("elements") or [{}]
    element = elements[0]
    if element.get("status") != "OK":
        raise RouteNotFound("Could not calculate distance between these locations.")

    meters = element["distance"]["value"]
    seconds = element["duration"]["value"]

    return DistanceResponse(
        distance=DistanceInfo(
            text=element["distance"].get("text"),
            miles=round(meters / METERS_PER_MILE * 10) / 10,
        ),
        duration=DurationInfo(
            text=element["duration"].get("text"),
            hours=round(seconds / 3600 * 100) / 100,
        ),
    )


async def lookup_distance(origin: str, destination: str) -> DistanceResult:
    """Distance in the shape the estimate engine consumes."""
    logger.info(f"Looking up distance from '{origin}' to '{destination}'")
    route = await get_route_distance(origin, destination)
    return DistanceResult(
        miles=route.distance.miles,
        travel_hours=route.duration.hours,
        text=route.distance.text,
    )
