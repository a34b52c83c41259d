from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from movequote.models.promo import PromoDiscount
from movequote.models.selection import WizardSelection


class EstimateResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    team_group: str
    team_tier: Optional[str] = None
    hourly_rate: float = 0
    minimum_hours: float = 0
    min_labor_hours: float = 0
    max_labor_hours: float = 0
    travel_hours: float = 0
    distance_miles: float = 0

    min_labor_cost: float = 0
    max_labor_cost: float = 0
    travel_cost: float = 0
    distance_cost: float = 0
    accessibility_cost: float = 0
    protection_cost: float = 0

    min_total: float = 0
    max_total: float = 0
    discounted_min_total: float = 0
    discounted_max_total: float = 0
    promo: Optional[PromoDiscount] = None

    @property
    def promo_savings_min(self) -> float:
        return max(0.0, self.min_total - self.discounted_min_total)

    @property
    def promo_savings_max(self) -> float:
        return max(0.0, self.max_total - self.discounted_max_total)


class EstimateRequest(BaseModel):
    """Stateless estimate: rates come from a stored widget or an inline pricing table."""
    model_config = ConfigDict(populate_by_name=True)

    widget_id: Optional[str] = Field(None, alias="widgetId")
    pricing: Optional[Dict[str, Any]] = None
    selection: WizardSelection = WizardSelection()


class EstimateResponse(BaseModel):
    estimate: EstimateResult
    label: str
    discounted_label: str
