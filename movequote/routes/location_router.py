from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from movequote.core.logger import get_logger
from movequote.models.response import DistanceResponse, SuggestionsResponse
from movequote.services.distance_service import RouteNotFound, get_route_distance
from movequote.services.places_service import get_address_suggestions

location_router = APIRouter(tags=["Location"])
logger = get_logger(__name__)


@location_router.get("/places", response_model=SuggestionsResponse)
async def get_places(input: str = Query("")):
    """
    Address autocomplete. Inputs under three characters return no predictions.
    """
    try:
        predictions = await get_address_suggestions(input)
    except ValueError as e:
        logger.error(f"Places lookup failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return SuggestionsResponse(predictions=predictions)


@location_router.get("/distance", response_model=DistanceResponse)
async def get_distance(origin: Optional[str] = None, destination: Optional[str] = None):
    """
    Driving distance and duration between two addresses.
    """
    if not origin or not destination:
        raise HTTPException(status_code=400, detail="Origin and destination are required")

    logger.info(f"Calling distance service for {origin} to {destination}")
    try:
        return await get_route_distance(origin, destination)
    except RouteNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
