"""
Lead forwarding to a Gravity Forms (WordPress) form.

Requests are signed with the Gravity Forms API v1 scheme: an HMAC-SHA1 of
``public_key:METHOD:url:expires`` keyed by the private key, passed as query
parameters together with the public key and expiry.
"""
import base64
import hashlib
import hmac
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp
from movequote.core.config import settings
from movequote.core.logger import get_logger

logger = get_logger(__name__)

SIGNATURE_TTL_SECONDS = 3600

# widget field -> Gravity Forms input id; must match the operator's form
DEFAULT_FIELD_MAPPING: Dict[str, str] = {
    "contact-name": "input_1",
    "contact-email": "input_2",
    "contact-phone": "input_3",
    "origin-location": "input_4",
    "target-location": "input_5",
    "date-selection": "input_6",
    "project-scope": "input_7",
    "service-selection": "input_8",
    "move-time": "input_9",
    "estimate": "input_10",
    "notes": "input_11",
}


def lead_forwarding_configured() -> bool:
    return bool(
        settings.GRAVITY_FORMS_BASE_URL
        and settings.GRAVITY_FORMS_PUBLIC_KEY
        and settings.GRAVITY_FORMS_PRIVATE_KEY
    )


def generate_signature(public_key: str, private_key: str, method: str, url: str, expires: int) -> str:
    string_to_sign = f"{public_key}:{method}:{url}:{expires}"
    digest = hmac.new(private_key.encode(), string_to_sign.encode(), hashlib.sha1).digest()
    return quote(base64.b64encode(digest).decode(), safe="")


def build_authenticated_url(endpoint: str, method: str, now: Optional[float] = None) -> str:
    expires = int(now if now is not None else time.time()) + SIGNATURE_TTL_SECONDS
    url = f"{settings.GRAVITY_FORMS_BASE_URL}{endpoint}"
    signature = generate_signature(
        settings.GRAVITY_FORMS_PUBLIC_KEY, settings.GRAVITY_FORMS_PRIVATE_KEY, method, url, expires
    )
    return f"{url}?api_key={settings.GRAVITY_FORMS_PUBLIC_KEY}&signature={signature}&expires={expires}"


def map_to_form_fields(lead: Dict[str, str], mapping: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    mapping = mapping or DEFAULT_FIELD_MAPPING
    return {mapping[key]: str(value) for key, value in lead.items() if key in mapping and value}


def _join(*parts: Any) -> str:
    return ", ".join(str(p) for p in parts if p)


def lead_from_payload(payload: Dict[str, Any]) -> Dict[str, str]:
    """Flatten a confirmation payload into the lead form's named fields."""
    summary = payload.get("summary") or {}
    form = payload.get("form") or {}
    selections = payload.get("selections") or {}

    contact_name = summary.get("contactName") or " ".join(
        str(p) for p in (form.get("firstName"), form.get("lastName")) if p
    )

    return {
        "contact-name": contact_name or "",
        "contact-email": form.get("email") or "",
        "contact-phone": form.get("phone") or "",
        "origin-location": _join(form.get("pickupStreet"), form.get("pickupUnit")),
        "target-location": _join(form.get("dropoffStreet"), form.get("dropoffUnit")),
        "date-selection": form.get("moveDate") or "",
        "project-scope": " - ".join(
            str(v) for v in (selections.get("moveType"), selections.get("sizeBucket")) if v
        ),
        "service-selection": selections.get("serviceType") or "",
        "move-time": form.get("moveTime") or "",
        "estimate": summary.get("estimateLabel") or "",
        "notes": form.get("additionalNotes") or "",
    }


async def forward_lead(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Submit the booking to the operator's lead form.

    Returns ``{"success": bool, "data"|"error": ...}``; never raises.
    """
    if not lead_forwarding_configured():
        logger.info("[GravityForms] Skipping submission - API not configured")
        return {"success": False, "error": "Gravity Forms API not configured"}

    endpoint = f"/forms/{settings.GRAVITY_FORMS_FORM_ID}/submissions"
    url = build_authenticated_url(endpoint, "POST")
    fields = map_to_form_fields(lead_from_payload(payload))
    logger.info(f"[GravityForms] Submitting to form {settings.GRAVITY_FORMS_FORM_ID}")

    try:
        async with aiohttp.ClientSession() as session:
            async with session.post(url, json=fields) as res:
                text = await res.text()
                logger.info(f"[GravityForms] Response: {res.status} {text}")
                if res.status >= 400:
                    return {
                        "success": False,
                        "error": f"Gravity Forms API request failed: {res.status} {res.reason}",
                    }
    except aiohttp.ClientError as e:
        logger.error(f"[GravityForms] Submission failed: {e}")
        return {"success": False, "error": str(e)}

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = {"raw": text}
    return {"success": True, "data": data}
