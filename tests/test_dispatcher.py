import asyncio
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from movequote.models.promo import PromoDiscount
from movequote.models.selection import (
    ContactInfo,
    DistanceResult,
    LineItem,
    LocationDetails,
    MoveType,
    PromoOutcome,
    ServiceType,
    WizardSelection,
)
from movequote.models.widget import WidgetConfig
from movequote.services.dispatcher import (
    SubmissionDispatcher,
    build_booking_record,
    build_confirmation_payload,
)
from movequote.services.estimate_engine import compute_estimate
from movequote.services.store import store
from movequote.wizard.screens import WizardScreen
from movequote.wizard.state import WizardState


@pytest.fixture
def widget():
    return WidgetConfig(id="w-1", name="Austin widget", company_name="Furniture Taxi")


@pytest.fixture
def review_state(widget, contact):
    promo = PromoDiscount(code="SAVE10", discount_type="percent", discount_value=10)
    selection = WizardSelection(
        service_type=ServiceType.FULL_SERVICE,
        move_type=MoveType.HOME,
        size_bucket="2bed",
        contact=contact,
        move_date=date(2030, 5, 1),
        move_time="08:00",
        origin=LocationDetails(query_string="12 Main St, Austin, TX", unit="4B"),
        destination=LocationDetails(query_string="400 Oak Ave, Austin, TX"),
        distance=DistanceResult(miles=20, travel_hours=0.5),
        promo_code_raw="save10",
        promo_outcome=PromoOutcome(status="valid", applied_promo=promo, validated_code="SAVE10"),
        inventory=[LineItem(name="Sofa", quantity=1)],
        additional_notes="Gate code 1234",
    )
    return WizardState(
        screen=WizardScreen.REVIEW,
        selection=selection,
        estimate=compute_estimate(widget.pricing, selection),
    )


def test_confirmation_payload(widget, review_state):
    now = datetime(2030, 4, 20, tzinfo=timezone.utc)
    payload = build_confirmation_payload(widget, review_state, now=now)

    assert payload["widgetId"] == "w-1"
    assert payload["companyName"] == "Furniture Taxi"
    assert payload["summary"] == {
        "contactName": "Ana Lopez",
        "contactSummaryLine": "2 Bedroom home - 5125550147 - ana.lopez@gmail.com",
        "routeSummary": "12 Main St, Austin, TX, 4B - 400 Oak Ave, Austin, TX",
        "moveDateSummary": "Wednesday, May 1, 8AM-12PM (morning)",
        "team": "2 movers, 1 truck",
        "moveActivity": "Move (loading, travel, unloading)",
        "laborers": "2 Movers",
        "laborHours": "3-4 hours",
        "estimateLabel": "$409.50-$517.50",
    }
    assert payload["selections"]["serviceType"] == "full_service"
    assert payload["selections"]["teamOption"] == "2-1"
    assert payload["form"]["pickupStreet"] == "12 Main St, Austin, TX"
    assert payload["form"]["promoCode"] == "SAVE10"
    assert payload["extras"]["inventory"] == [{"name": "Sofa", "quantity": 1}]
    assert payload["estimate"]["estimateMinTotal"] == pytest.approx(455)
    assert payload["estimate"]["promoSavingsMin"] == pytest.approx(45.5)
    assert payload["estimate"]["promoSavingsMax"] == pytest.approx(57.5)
    assert payload["estimate"]["promo"] == {"code": "SAVE10", "discountType": "percent", "discountValue": 10}
    assert payload["createdAt"] == now.isoformat()


def test_booking_record(review_state):
    booking = build_booking_record("w-1", review_state)

    assert booking.widget_id == "w-1"
    assert booking.first_name == "Ana"
    assert booking.move_date == "2030-05-01"
    assert booking.pickup_unit == "4B"
    assert booking.team_option == "2-1"
    assert booking.estimate_min_total == pytest.approx(455)
    assert booking.discounted_min_total == pytest.approx(409.5)


def test_submit_runs_every_leg(widget, review_state):
    email = AsyncMock(return_value={"id": "email-1"})
    lead = AsyncMock(return_value={"success": True, "data": {}})
    dispatcher = SubmissionDispatcher(store, email, lead)

    receipt = asyncio.run(dispatcher.submit(widget, review_state))

    assert receipt.booking_id is not None
    assert receipt.email_sent is True
    assert receipt.lead_forwarded is True
    email.assert_awaited_once()
    assert lead.await_args.args[0]["summary"]["contactName"] == "Ana Lopez"

    bookings = asyncio.run(store.list_bookings("w-1"))
    assert [b.id for b in bookings] == [receipt.booking_id]
    assert bookings[0].contact_id is not None


def test_submit_fails_open(widget, review_state):
    email = AsyncMock(side_effect=RuntimeError("resend down"))
    lead = AsyncMock(side_effect=RuntimeError("crm down"))
    dispatcher = SubmissionDispatcher(store, email, lead)

    receipt = asyncio.run(dispatcher.submit(widget, review_state))

    assert receipt.booking_id is not None
    assert receipt.email_sent is False
    assert receipt.lead_forwarded is False
    lead.assert_awaited_once()


def test_capture_contact_upserts_by_email(contact):
    dispatcher = SubmissionDispatcher(store, AsyncMock(), AsyncMock())

    first = asyncio.run(dispatcher.capture_contact("w-1", contact))
    again = asyncio.run(dispatcher.capture_contact("w-1", contact.model_copy(update={"phone": "5125550199"})))

    assert first == again
    contacts = asyncio.run(store.list_contacts("w-1"))
    assert len(contacts) == 1
    assert contacts[0].phone == "5125550199"


def test_capture_contact_swallows_storage_errors():
    dispatcher = SubmissionDispatcher(store, AsyncMock(), AsyncMock())
    bad = ContactInfo(first_name="A", last_name="B", email="nope", phone="5125550147")
    assert asyncio.run(dispatcher.capture_contact("w-1", bad)) is None
