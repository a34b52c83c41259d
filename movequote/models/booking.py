from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    widget_id: str = Field("", alias="widgetId")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    email: str = ""
    phone: str = ""


class ContactRecord(BaseModel):
    id: str
    widget_id: str
    first_name: str
    last_name: str
    email: EmailStr
    phone: str
    source: str = "booking_form"
    created_at: datetime


class ContactListResponse(BaseModel):
    contacts: List[ContactRecord]
    total: int


class BookingCreate(BaseModel):
    """Flat booking row, camelCase on the wire like the widget form."""
    model_config = ConfigDict(populate_by_name=True)

    widget_id: str = Field("", alias="widgetId")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    email: str = ""
    phone: str = ""
    move_date: str = Field("", alias="moveDate")
    move_time: Optional[str] = Field(None, alias="moveTime")
    flexible_dates: bool = Field(False, alias="flexibleDates")

    pickup_street: str = Field("", alias="pickupStreet")
    pickup_unit: Optional[str] = Field(None, alias="pickupUnit")
    pickup_city: str = Field("", alias="pickupCity")
    pickup_state: str = Field("", alias="pickupState")
    pickup_zip: str = Field("", alias="pickupZip")
    pickup_elevator: bool = Field(False, alias="pickupElevator")
    pickup_stairs: Optional[str] = Field(None, alias="pickupStairs")
    pickup_walk: Optional[str] = Field(None, alias="pickupWalk")

    dropoff_street: str = Field("", alias="dropoffStreet")
    dropoff_unit: Optional[str] = Field(None, alias="dropoffUnit")
    dropoff_city: str = Field("", alias="dropoffCity")
    dropoff_state: str = Field("", alias="dropoffState")
    dropoff_zip: str = Field("", alias="dropoffZip")
    dropoff_elevator: bool = Field(False, alias="dropoffElevator")
    dropoff_stairs: Optional[str] = Field(None, alias="dropoffStairs")
    dropoff_walk: Optional[str] = Field(None, alias="dropoffWalk")

    service_type: Optional[str] = Field(None, alias="serviceType")
    labor_help_type: Optional[str] = Field(None, alias="laborHelpType")
    move_type: Optional[str] = Field(None, alias="moveType")
    estimated_size: Optional[str] = Field(None, alias="estimatedSize")
    team_option: Optional[str] = Field(None, alias="teamOption")
    labor_hours: Optional[float] = Field(None, alias="laborHours")

    inventory: List[Dict[str, Any]] = []
    special_items: List[Dict[str, Any]] = Field(default_factory=list, alias="specialItems")
    storage_needed: bool = Field(False, alias="storageNeeded")
    storage_duration: Optional[str] = Field(None, alias="storageDuration")
    insurance_option: Optional[str] = Field(None, alias="insuranceOption")
    declared_value: Optional[float] = Field(None, alias="declaredValue")
    promo_code: Optional[str] = Field(None, alias="promoCode")
    custom_field_values: Dict[str, Any] = Field(default_factory=dict, alias="customFieldValues")
    additional_notes: Optional[str] = Field(None, alias="additionalNotes")

    estimate_min_total: Optional[float] = Field(None, alias="estimateMinTotal")
    estimate_max_total: Optional[float] = Field(None, alias="estimateMaxTotal")
    discounted_min_total: Optional[float] = Field(None, alias="discountedMinTotal")
    discounted_max_total: Optional[float] = Field(None, alias="discountedMaxTotal")


REQUIRED_BOOKING_FIELDS = [
    "firstName",
    "lastName",
    "email",
    "phone",
    "moveDate",
    "pickupStreet",
    "dropoffStreet",
]


class BookingRecord(BookingCreate):
    id: str
    contact_id: Optional[str] = Field(None, alias="contactId")
    status: str = "pending"
    created_at: datetime = Field(..., alias="createdAt")


class BookingListResponse(BaseModel):
    bookings: List[BookingRecord]
    total: int


class SubmissionReceipt(BaseModel):
    booking_id: Optional[str] = None
    email_sent: bool = False
    lead_forwarded: bool = False
