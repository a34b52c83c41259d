from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from movequote.models.pricing import RateConfiguration, resolve_rate_config


class CustomField(BaseModel):
    id: Optional[str] = None
    label: str
    type: Literal["text", "textarea", "select", "checkbox", "number"] = "text"
    required: bool = False
    options: Optional[List[str]] = None
    placeholder: Optional[str] = None


class WidgetBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = "My Moving Widget"
    company_name: str = Field("The Furniture Taxi", alias="companyName")
    logo: Optional[str] = None
    primary_color: str = Field("#3B82F6", alias="primaryColor")
    secondary_color: str = Field("#1E40AF", alias="secondaryColor")
    background_color: str = Field("#FFFFFF", alias="backgroundColor")
    text_color: str = Field("#1F2937", alias="textColor")
    font_family: str = Field("Inter", alias="fontFamily")
    button_text: str = Field("Get Free Quote", alias="buttonText")
    success_message: str = Field(
        "Thank you! We will contact you within 24 hours to discuss your move.",
        alias="successMessage",
    )
    custom_fields: List[CustomField] = Field(default_factory=list, alias="customFields")
    enable_insurance: bool = Field(True, alias="enableInsurance")
    enable_special_items: bool = Field(True, alias="enableSpecialItems")
    enable_inventory: bool = Field(True, alias="enableInventory")


class WidgetSaveRequest(WidgetBase):
    """Create/update body. ``pricing`` may be partial; gaps are filled from defaults."""
    pricing: Optional[Dict[str, Any]] = None


class WidgetConfig(WidgetBase):
    id: str
    user_id: str = Field("", alias="userId")
    pricing: RateConfiguration = Field(default_factory=resolve_rate_config)
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("pricing", mode="before")
    @classmethod
    def resolve_pricing(cls, value):
        return resolve_rate_config(value)


class WidgetResponse(BaseModel):
    widget: WidgetConfig


class WidgetListResponse(BaseModel):
    count: int
    widgets: List[WidgetConfig]
