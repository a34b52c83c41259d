from datetime import date
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from movequote.models.promo import PromoDiscount


class ServiceType(str, Enum):
    FULL_SERVICE = "full_service"
    LABOR_ONLY = "labor_only"


class LaborHelpType(str, Enum):
    LOADING_UNLOADING = "loading_unloading"
    LOADING_ONLY = "loading_only"
    UNLOADING_ONLY = "unloading_only"


class MoveType(str, Enum):
    HOME = "home"
    STORAGE = "storage"
    OFFICE = "office"


StairsTier = Literal["none", "1-2", "3-4", "5+"]
WalkingTier = Literal["short", "medium", "long"]


class LocationDetails(BaseModel):
    """One end of the move.

    Defaults describe an unanswered details screen and carry no surcharge.
    """
    model_config = ConfigDict(frozen=True)

    query_string: str = ""
    unit: str = ""
    has_elevator: bool = True
    stairs_tier: StairsTier = "none"
    walking_tier: WalkingTier = "short"


class DistanceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    miles: float = Field(0, ge=0)
    travel_hours: float = Field(0, ge=0)
    text: Optional[str] = None


class ContactInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part).strip()


class PromoOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["idle", "checking", "valid", "invalid"] = "idle"
    applied_promo: Optional[PromoDiscount] = None
    validated_code: Optional[str] = None
    message: Optional[str] = None


class LineItem(BaseModel):
    """Inventory or special item, passed through untouched."""
    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    quantity: int = 1


class WizardSelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    service_type: Optional[ServiceType] = None
    labor_help_type: Optional[LaborHelpType] = None
    move_type: Optional[MoveType] = None
    size_bucket: Optional[str] = None
    team_tier: Optional[str] = None
    explicit_hours: Optional[Union[float, str]] = None

    contact: ContactInfo = ContactInfo()
    move_date: Optional[date] = None
    move_time: Optional[str] = None
    flexible_dates: bool = False

    origin: LocationDetails = LocationDetails()
    destination: LocationDetails = LocationDetails()
    distance: Optional[DistanceResult] = None

    storage_needed: bool = False
    storage_plan: str = ""
    storage_move_out_date: str = ""

    protection_selected: bool = False
    protection_deductible: str = "250"
    declared_value: float = 0

    promo_code_raw: str = ""
    promo_outcome: PromoOutcome = PromoOutcome()

    custom_field_values: Dict[str, Any] = {}
    inventory: List[LineItem] = []
    special_items: List[LineItem] = []
    additional_notes: str = ""

    @property
    def effective_labor_help(self) -> Optional[LaborHelpType]:
        # labor help only applies outside full-service moves
        if self.service_type == ServiceType.FULL_SERVICE:
            return None
        return self.labor_help_type

    @property
    def uses_explicit_hours(self) -> bool:
        return self.effective_labor_help in (LaborHelpType.LOADING_ONLY, LaborHelpType.UNLOADING_ONLY)

    @property
    def applied_promo(self) -> Optional[PromoDiscount]:
        if self.promo_outcome.status == "valid":
            return self.promo_outcome.applied_promo
        return None
