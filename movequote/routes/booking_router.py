from typing import Any, Dict, Optional

import aiohttp
from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import ValidationError

from movequote.core.logger import get_logger
from movequote.models.booking import (
    REQUIRED_BOOKING_FIELDS,
    BookingCreate,
    BookingListResponse,
    ContactListResponse,
    ContactRequest,
)
from movequote.models.response import MessageResponse, SavedResponse
from movequote.services.email_service import EmailNotConfigured, send_confirmation_email
from movequote.services.lead_service import forward_lead
from movequote.services.store import store

booking_router = APIRouter(tags=["Bookings"])
logger = get_logger(__name__)

REQUIRED_CONTACT_FIELDS = ["widgetId", "firstName", "lastName", "email", "phone"]


def _check_required(data: Dict[str, Any], fields):
    for field in fields:
        if not data.get(field):
            raise HTTPException(status_code=400, detail=f"Missing required field: {field}")


@booking_router.post("/contacts", response_model=SavedResponse)
async def save_contact(payload: ContactRequest):
    """
    Create or update a contact, matched by widget and email.
    """
    _check_required(payload.model_dump(by_alias=True), REQUIRED_CONTACT_FIELDS)
    try:
        contact_id, created = await store.upsert_contact(
            payload.widget_id, payload.first_name, payload.last_name, payload.email, payload.phone
        )
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please enter a valid email")

    message = "Contact created" if created else "Contact updated"
    return SavedResponse(message=message, id=contact_id)


@booking_router.get("/contacts", response_model=ContactListResponse)
async def list_contacts(widget_id: Optional[str] = Query(None, alias="widgetId")):
    contacts = await store.list_contacts(widget_id)
    return ContactListResponse(contacts=contacts, total=len(contacts))


@booking_router.delete("/contacts", response_model=MessageResponse)
async def delete_contact(contact_id: Optional[str] = Query(None, alias="id")):
    if not contact_id:
        raise HTTPException(status_code=400, detail="Contact ID is required")
    if not await store.delete_contact(contact_id):
        raise HTTPException(status_code=404, detail="Contact not found")
    return MessageResponse(message="Contact deleted")


@booking_router.post("/bookings", response_model=SavedResponse)
async def create_booking(payload: BookingCreate):
    _check_required(payload.model_dump(by_alias=True), REQUIRED_BOOKING_FIELDS)
    try:
        booking = await store.create_booking(payload)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Please enter a valid email")
    return SavedResponse(message="Booking received", id=booking.id)


@booking_router.get("/bookings", response_model=BookingListResponse)
async def list_bookings(widget_id: Optional[str] = Query(None, alias="widgetId")):
    bookings = await store.list_bookings(widget_id)
    return BookingListResponse(bookings=bookings, total=len(bookings))


@booking_router.post("/confirm")
async def confirm_reservation(payload: Dict[str, Any] = Body(...)):
    """
    Email the operator a reservation summary and forward it as a lead.

    The email leg decides the response; lead forwarding is best effort.
    """
    try:
        await send_confirmation_email(payload)
    except EmailNotConfigured as e:
        raise HTTPException(status_code=500, detail=str(e))
    except aiohttp.ClientError as e:
        logger.error(f"Confirmation email error: {e}")
        raise HTTPException(status_code=500, detail="Failed to send confirmation email.")

    lead = await forward_lead(payload)
    return {"success": True, "leadForwarded": bool(lead.get("success"))}
