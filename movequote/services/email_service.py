import json
from typing import Any, Dict, Optional

import aiohttp
from movequote.core.logger import get_logger
from movequote.core.config import settings

logger = get_logger(__name__)

SUBJECT = "New reservation confirmation"

FORM_LINES = [
    ("First name", "firstName"),
    ("Last name", "lastName"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Move date", "moveDate"),
    ("Move time", "moveTime"),
    ("Flexible dates", "flexibleDates"),
    ("Pickup address", "pickupStreet"),
    ("Pickup unit", "pickupUnit"),
    ("Pickup elevator", "pickupElevator"),
    ("Pickup stairs", "pickupStairs"),
    ("Pickup walk", "pickupWalk"),
    ("Dropoff address", "dropoffStreet"),
    ("Dropoff unit", "dropoffUnit"),
    ("Dropoff elevator", "dropoffElevator"),
    ("Dropoff stairs", "dropoffStairs"),
    ("Dropoff walk", "dropoffWalk"),
    ("Estimated size", "estimatedSize"),
    ("Storage needed", "storageNeeded"),
    ("Storage duration", "storageDuration"),
    ("Insurance option", "insuranceOption"),
    ("Declared value", "declaredValue"),
    ("Promo code", "promoCode"),
    ("Notes", "additionalNotes"),
]


class EmailNotConfigured(RuntimeError):
    pass


def format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def build_email_text(payload: Dict[str, Any]) -> str:
    summary = payload.get("summary") or {}
    form = payload.get("form") or {}

    lines = [
        SUBJECT,
        "",
        f"Contact: {format_value(summary.get('contactName'))}",
        f"Summary: {format_value(summary.get('contactSummaryLine'))}",
        f"Route: {format_value(summary.get('routeSummary'))}",
        f"When: {format_value(summary.get('moveDateSummary'))}",
        f"Service: {format_value(summary.get('moveActivity'))}",
        f"Team: {format_value(summary.get('team'))}",
        f"Crew: {format_value(summary.get('laborers'))}",
        f"Labor: {format_value(summary.get('laborHours'))}",
        f"Estimate: {format_value(summary.get('estimateLabel'))}",
        "",
        "Form details:",
    ]
    lines += [f"{label}: {format_value(form.get(key))}" for label, key in FORM_LINES]
    lines += ["", "Raw payload:", json.dumps(payload, indent=2, default=str)]
    return "\n".join(lines)


def build_email_request(payload: Dict[str, Any]) -> Dict[str, Any]:
    email_request = {
        "from": settings.RESEND_FROM,
        "to": list(settings.CONFIRMATION_RECIPIENTS),
        "subject": SUBJECT,
        "text": build_email_text(payload),
    }
    reply_to: Optional[str] = (payload.get("form") or {}).get("email")
    if isinstance(reply_to, str) and reply_to:
        email_request["reply_to"] = reply_to
    return email_request


async def send_confirmation_email(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Email the operator a reservation summary through Resend.

    Raises EmailNotConfigured when no API key is set and
    aiohttp.ClientResponseError when Resend rejects the message.
    """
    api_key = settings.RESEND_API_KEY
    if not api_key:
        raise EmailNotConfigured("RESEND_API_KEY is not configured.")

    email_request = build_email_request(payload)
    if settings.DEBUG_CONFIRM:
        logger.info(f"[confirm] Payload keys: {list(payload.keys())}")
        logger.info(f"[confirm] Recipients: {email_request['to']} reply-to: {email_request.get('reply_to', 'none')}")
        logger.info(f"[confirm] Email text length: {len(email_request['text'])}")

    headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
    async with aiohttp.ClientSession(headers=headers) as session:
        async with session.post(settings.RESEND_API_URL, json=email_request) as response:
            text = await response.text()
            logger.info(f"Resend response: {response.status}")
            if settings.DEBUG_CONFIRM and text:
                logger.info(f"[confirm] Resend response body: {text}")
            response.raise_for_status()

    try:
        return json.loads(text) if text else {}
    except json.JSONDecodeError:
        logger.error(f"Failed to parse Resend response: {text}")
        return {}
