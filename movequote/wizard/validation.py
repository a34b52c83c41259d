"""Per-screen input checks. Each returns a ``field -> message`` dict; empty means valid."""
from datetime import date, timedelta
from typing import Dict, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from movequote.models.pricing import STAIRS_TIERS, WALKING_TIERS, RateConfiguration
from movequote.models.selection import ContactInfo, MoveType, WizardSelection
from movequote.services.promo_service import normalize_code
from movequote.services.summary import TIME_OPTIONS

MIN_PHONE_LENGTH = 10
MIN_ADDRESS_LENGTH = 3
HOUR_OPTIONS = (2, 3, 4)
# how far a customer's "today" may drift from the server date
MAX_CLOCK_SKEW = timedelta(days=1)

_email_adapter = TypeAdapter(EmailStr)

Errors = Dict[str, str]


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def validate_contact(contact: ContactInfo) -> Errors:
    errors: Errors = {}
    if not contact.first_name.strip():
        errors["first_name"] = "First name is required"
    if not contact.last_name.strip():
        errors["last_name"] = "Last name is required"
    if not contact.email.strip():
        errors["email"] = "Email is required"
    elif not is_valid_email(contact.email.strip()):
        errors["email"] = "Please enter a valid email"
    if len(contact.phone.strip()) < MIN_PHONE_LENGTH:
        errors["phone"] = "Please enter a valid phone number"
    return errors


def validate_move_date(move_date: Optional[date], today: date) -> Errors:
    if move_date is None:
        return {"move_date": "Please select a move date"}
    if move_date < today:
        return {"move_date": "Move date cannot be in the past"}
    return {}


def clamp_today(claimed: Optional[date], server_today: Optional[date] = None) -> date:
    server_today = server_today or date.today()
    if claimed is None:
        return server_today
    return min(max(claimed, server_today - MAX_CLOCK_SKEW), server_today + MAX_CLOCK_SKEW)


def validate_move_time(move_time: Optional[str]) -> Errors:
    if move_time not in {option["value"] for option in TIME_OPTIONS}:
        return {"move_time": "Please select an arrival window"}
    return {}


def validate_size(rates: RateConfiguration, move_type: Optional[MoveType], size_bucket: str) -> Errors:
    if move_type is None:
        return {"size_bucket": "Please select a move type first"}
    if size_bucket not in getattr(rates.estimate_labor, move_type.value):
        return {"size_bucket": "Please select a size"}
    return {}


def validate_address(query: str) -> Errors:
    if len((query or "").strip()) < MIN_ADDRESS_LENGTH:
        return {"address": "Please enter an address"}
    return {}


def validate_location_details(stairs_tier: str, walking_tier: str) -> Errors:
    errors: Errors = {}
    if stairs_tier not in STAIRS_TIERS:
        errors["stairs_tier"] = "Please select the number of stairs"
    if walking_tier not in WALKING_TIERS:
        errors["walking_tier"] = "Please select the walking distance"
    return errors


def parse_hours(value) -> Optional[int]:
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return None
    if hours not in HOUR_OPTIONS:
        return None
    return int(hours)


def validate_hours(value) -> Errors:
    if parse_hours(value) is None:
        return {"hours": "Please choose 2, 3 or 4 hours"}
    return {}


def validate_storage(plan: str) -> Errors:
    if not (plan or "").strip():
        return {"storage_plan": "Please select a storage plan"}
    return {}


def validate_promo(selection: WizardSelection) -> Errors:
    """A typed code can only be carried forward once it has validated."""
    code = normalize_code(selection.promo_code_raw)
    if not code:
        return {}
    outcome = selection.promo_outcome
    if outcome.status == "valid" and outcome.validated_code == code:
        return {}
    if outcome.status == "checking":
        return {"promo_code": "Still checking this promo code"}
    return {"promo_code": outcome.message or "Please validate the promo code before continuing"}


def validate_for_submission(selection: WizardSelection, today: Optional[date] = None) -> Errors:
    """End-to-end check run before a reservation is confirmed."""
    errors: Errors = {}
    if selection.service_type is None:
        errors["service_type"] = "Please select a service"
    if selection.move_type is None:
        errors["move_type"] = "Please select a move type"
    errors.update(validate_contact(selection.contact))
    if selection.move_date is None:
        errors["move_date"] = "Please select a move date"
    if validate_address(selection.origin.query_string):
        errors["origin"] = "Please enter a pickup address"
    if validate_address(selection.destination.query_string):
        errors["destination"] = "Please enter a drop-off address"
    return errors
