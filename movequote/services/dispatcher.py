"""
Hands a confirmed reservation to the outside world.

Each delivery leg (booking row, operator email, CRM lead) is tried once and
in that order. A failing leg is logged and reported on the receipt; it
never stops the next leg or reaches the customer.
"""
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from movequote.core.logger import get_logger
from movequote.models.booking import BookingCreate, SubmissionReceipt
from movequote.models.pricing import team_title
from movequote.models.selection import ContactInfo, LocationDetails
from movequote.models.widget import WidgetConfig
from movequote.services.estimate_engine import compute_estimate
from movequote.services.summary import (
    format_estimate_range,
    format_location,
    labor_hours_label,
    laborer_count_label,
    move_activity_label,
    move_date_summary,
    move_type_summary,
)
from movequote.services.store import InMemoryStore
from movequote.wizard.state import WizardState

logger = get_logger(__name__)

Sender = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]

PICKUP_FALLBACK = "Pickup location"
DROPOFF_FALLBACK = "Drop-off location"


def _enum_value(value) -> Optional[str]:
    return value.value if value is not None else None


def _estimate_for(widget: WidgetConfig, state: WizardState):
    return state.estimate or compute_estimate(widget.pricing, state.selection)


def _location_form(prefix: str, location: LocationDetails) -> Dict[str, Any]:
    return {
        f"{prefix}Street": location.query_string,
        f"{prefix}Unit": location.unit,
        f"{prefix}Elevator": location.has_elevator,
        f"{prefix}Stairs": location.stairs_tier,
        f"{prefix}Walk": location.walking_tier,
    }


def build_form_values(state: WizardState) -> Dict[str, Any]:
    """The flat camelCase form the email and CRM legs read."""
    selection = state.selection
    applied = selection.applied_promo
    form: Dict[str, Any] = {
        "firstName": selection.contact.first_name,
        "lastName": selection.contact.last_name,
        "email": selection.contact.email,
        "phone": selection.contact.phone,
        "moveDate": selection.move_date.isoformat() if selection.move_date else "",
        "moveTime": selection.move_time or "",
        "flexibleDates": selection.flexible_dates,
        "storageNeeded": selection.storage_needed,
        "storageDuration": selection.storage_plan if selection.storage_needed else "",
        "storageMoveOutDate": selection.storage_move_out_date if selection.storage_needed else "",
        "insuranceOption": selection.protection_deductible if selection.protection_selected else "",
        "declaredValue": selection.declared_value if selection.protection_selected else None,
        "estimatedSize": selection.size_bucket or "",
        "laborHours": selection.explicit_hours if selection.uses_explicit_hours else None,
        "promoCode": applied.code if applied else "",
        "additionalNotes": selection.additional_notes,
    }
    form.update(_location_form("pickup", selection.origin))
    form.update(_location_form("dropoff", selection.destination))
    return form


def build_confirmation_payload(widget: WidgetConfig, state: WizardState,
                               now: Optional[datetime] = None) -> Dict[str, Any]:
    selection = state.selection
    estimate = _estimate_for(widget, state)
    contact = selection.contact

    contact_summary_line = " - ".join(
        part for part in (
            move_type_summary(selection.move_type, selection.size_bucket),
            contact.phone,
            contact.email,
        ) if part
    )
    route_summary = (
        f"{format_location(selection.origin, PICKUP_FALLBACK)} - "
        f"{format_location(selection.destination, DROPOFF_FALLBACK)}"
    )
    team = team_title(estimate.team_group, estimate.team_tier)

    return {
        "widgetId": widget.id,
        "widgetName": widget.name,
        "companyName": widget.company_name,
        "summary": {
            "contactName": contact.full_name or "Your move",
            "contactSummaryLine": contact_summary_line,
            "routeSummary": route_summary,
            "moveDateSummary": move_date_summary(selection.move_date, selection.move_time),
            "team": team,
            "moveActivity": move_activity_label(selection.service_type, selection.effective_labor_help),
            "laborers": laborer_count_label(selection.effective_labor_help, team),
            "laborHours": labor_hours_label(estimate.min_labor_hours, estimate.max_labor_hours),
            "estimateLabel": format_estimate_range(
                estimate.discounted_min_total, estimate.discounted_max_total
            ),
        },
        "selections": {
            "serviceType": _enum_value(selection.service_type),
            "laborHelpType": _enum_value(selection.labor_help_type),
            "moveType": _enum_value(selection.move_type),
            "sizeBucket": selection.size_bucket,
            "teamOption": estimate.team_tier,
        },
        "form": build_form_values(state),
        "extras": {
            "inventory": [item.model_dump() for item in selection.inventory],
            "specialItems": [item.model_dump() for item in selection.special_items],
            "customFieldValues": dict(selection.custom_field_values),
        },
        "estimate": {
            "minLaborHours": estimate.min_labor_hours,
            "maxLaborHours": estimate.max_labor_hours,
            "hourlyRate": estimate.hourly_rate,
            "travelHours": estimate.travel_hours,
            "distanceMiles": estimate.distance_miles,
            "travelRate": widget.pricing.travel_rate,
            "pricePerMile": widget.pricing.price_per_mile,
            "accessibilityCost": estimate.accessibility_cost,
            "protectionCost": estimate.protection_cost,
            "minLaborCost": estimate.min_labor_cost,
            "maxLaborCost": estimate.max_labor_cost,
            "travelCost": estimate.travel_cost,
            "distanceCost": estimate.distance_cost,
            "estimateMinTotal": estimate.min_total,
            "estimateMaxTotal": estimate.max_total,
            "discountedMinTotal": estimate.discounted_min_total,
            "discountedMaxTotal": estimate.discounted_max_total,
            "promoSavingsMin": estimate.promo_savings_min,
            "promoSavingsMax": estimate.promo_savings_max,
            "promo": estimate.promo.model_dump(by_alias=True) if estimate.promo else None,
        },
        "createdAt": (now or datetime.now(timezone.utc)).isoformat(),
    }


def build_booking_record(widget_id: str, state: WizardState,
                         widget: Optional[WidgetConfig] = None) -> BookingCreate:
    selection = state.selection
    estimate = state.estimate
    if estimate is None and widget is not None:
        estimate = compute_estimate(widget.pricing, selection)

    form = build_form_values(state)
    return BookingCreate.model_validate({
        **form,
        "widgetId": widget_id,
        "serviceType": _enum_value(selection.service_type),
        "laborHelpType": _enum_value(selection.labor_help_type),
        "moveType": _enum_value(selection.move_type),
        "teamOption": estimate.team_tier if estimate else selection.team_tier,
        "laborHours": estimate.min_labor_hours if estimate and selection.uses_explicit_hours else None,
        "inventory": [item.model_dump() for item in selection.inventory],
        "specialItems": [item.model_dump() for item in selection.special_items],
        "customFieldValues": dict(selection.custom_field_values),
        "estimateMinTotal": estimate.min_total if estimate else None,
        "estimateMaxTotal": estimate.max_total if estimate else None,
        "discountedMinTotal": estimate.discounted_min_total if estimate else None,
        "discountedMaxTotal": estimate.discounted_max_total if estimate else None,
    })


class SubmissionDispatcher:
    def __init__(self, store: InMemoryStore, email_sender: Sender, lead_forwarder: Sender):
        self.store = store
        self.email_sender = email_sender
        self.lead_forwarder = lead_forwarder

    async def capture_contact(self, widget_id: str, contact: ContactInfo) -> Optional[str]:
        """Save the customer as a contact as soon as they identify themselves."""
        try:
            contact_id, created = await self.store.upsert_contact(
                widget_id, contact.first_name, contact.last_name, contact.email, contact.phone
            )
        except Exception:
            logger.exception(f"Contact capture failed for widget {widget_id}")
            return None
        logger.info(f"{'Created' if created else 'Updated'} contact {contact_id} for widget {widget_id}")
        return contact_id

    async def submit(self, widget: WidgetConfig, state: WizardState) -> SubmissionReceipt:
        receipt = SubmissionReceipt()

        try:
            booking = await self.store.create_booking(build_booking_record(widget.id, state, widget))
            receipt = receipt.model_copy(update={"booking_id": booking.id})
        except Exception:
            logger.exception(f"Booking could not be stored for widget {widget.id}")

        payload = build_confirmation_payload(widget, state)

        try:
            await self.email_sender(payload)
            receipt = receipt.model_copy(update={"email_sent": True})
        except Exception:
            logger.exception(f"Confirmation email failed for widget {widget.id}")

        try:
            result = await self.lead_forwarder(payload)
            receipt = receipt.model_copy(update={"lead_forwarded": bool(result.get("success"))})
        except Exception:
            logger.exception(f"Lead forwarding failed for widget {widget.id}")

        logger.info(
            f"Submission for widget {widget.id}: booking={receipt.booking_id} "
            f"email_sent={receipt.email_sent} lead_forwarded={receipt.lead_forwarded}"
        )
        return receipt
