from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DiscountType = Literal["percent", "fixed"]

PromoFailureReason = Literal[
    "missing_code",
    "not_found",
    "inactive",
    "not_started",
    "expired",
    "maxed_out",
    "server_error",
]


class PromoCode(BaseModel):
    """Stored promo record. ``code`` is kept uppercase."""
    id: Optional[str] = None
    code: str
    discount_type: DiscountType = "percent"
    discount_value: float = 0
    is_active: bool = True
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    uses_count: int = 0
    created_at: Optional[datetime] = None


class PromoDiscount(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str
    discount_type: DiscountType = Field(..., alias="discountType")
    discount_value: float = Field(..., alias="discountValue")


class PromoValidation(BaseModel):
    valid: bool
    promo: Optional[PromoDiscount] = None
    reason: Optional[PromoFailureReason] = None


class PromoInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: str = ""
    discount_type: str = Field("percent", alias="discountType")
    discount_value: float = Field(0, alias="discountValue")


class PromoSaveRequest(BaseModel):
    promos: List[PromoInput] = []


class PromoListResponse(BaseModel):
    promos: List[PromoCode]
    count: int
    limit: int
    offset: int
