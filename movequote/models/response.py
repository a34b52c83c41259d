from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

class MessageResponse(BaseModel):
    success: bool = True
    message: str

class SavedResponse(BaseModel):
    success: bool = True
    message: str
    id: str

class PlaceSuggestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    description: str
    place_id: str = Field(..., alias="placeId")

class SuggestionsResponse(BaseModel):
    predictions: List[PlaceSuggestion]

class DistanceInfo(BaseModel):
    text: Optional[str] = None
    miles: float

class DurationInfo(BaseModel):
    text: Optional[str] = None
    hours: float

class DistanceResponse(BaseModel):
    distance: DistanceInfo
    duration: DurationInfo
