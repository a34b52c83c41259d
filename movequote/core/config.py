from typing import List, Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = "Moving Quote Widget"
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    GOOGLE_PLACES_URL: str = "https://maps.googleapis.com/maps/api/place/autocomplete/json"
    GOOGLE_DISTANCE_URL: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    RESEND_FROM: str = "Bookings <service@furnituretaxi.site>"
    CONFIRMATION_RECIPIENTS: List[str] = ["service@furnituretaxi.site"]
    GRAVITY_FORMS_BASE_URL: Optional[str] = None
    GRAVITY_FORMS_PUBLIC_KEY: Optional[str] = None
    GRAVITY_FORMS_PRIVATE_KEY: Optional[str] = None
    GRAVITY_FORMS_FORM_ID: str = "3"
    DEBUG_CONFIRM: bool = False
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # wizard session timings, in seconds
    SUGGESTION_DEBOUNCE: float = 0.25
    DISTANCE_DEBOUNCE: float = 0.5
    LOOKUP_TIMEOUT: float = 10.0
    # idle wizard sessions are dropped after this many seconds
    WIZARD_SESSION_TTL: float = 1800.0

    class Config:
        env_file = ".env"

settings = Settings()
