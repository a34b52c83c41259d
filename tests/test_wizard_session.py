import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from movequote.models.booking import SubmissionReceipt
from movequote.models.promo import PromoCode
from movequote.models.response import PlaceSuggestion
from movequote.models.selection import DistanceResult, MoveType, ServiceType
from movequote.models.widget import WidgetConfig
from movequote.services.dispatcher import SubmissionDispatcher
from movequote.services.store import store
from movequote.wizard import events as ev
from movequote.wizard.machine import PROMO_NOT_FOUND_MESSAGE, PROMO_SERVER_ERROR_MESSAGE, WizardTransitionError
from movequote.wizard.screens import WizardScreen as S
from movequote.wizard.session import SessionRegistry, WizardSession

TODAY = date(2030, 4, 1)
ORIGIN = "12 Main St, Austin, TX"
DESTINATION = "400 Oak Ave, Austin, TX"
ROUTE = DistanceResult(miles=20, travel_hours=0.5, text="20 mi")
SUGGESTIONS = [PlaceSuggestion(description=ORIGIN, place_id="p-1")]

TO_ORIGIN_SEARCH = [
    ev.SelectService(service_type=ServiceType.FULL_SERVICE),
    ev.SelectMoveType(move_type=MoveType.HOME),
    ev.SelectSize(size_bucket="2bed"),
    ev.SubmitContact(first_name="Ana", last_name="Lopez", email="ana.lopez@gmail.com", phone="5125550147"),
    ev.SelectDate(move_date=date(2030, 5, 1), today=TODAY),
    ev.SelectTime(move_time="08:00"),
]
TO_DESTINATION_DETAILS = TO_ORIGIN_SEARCH + [
    ev.ChooseAddress(target="origin", description=ORIGIN),
    ev.ConfirmLocation(target="origin"),
    ev.ChooseAddress(target="destination", description=DESTINATION),
]
TO_REVIEW = TO_DESTINATION_DETAILS + [
    ev.ConfirmLocation(target="destination"),
    ev.ContinueServices(),
    ev.SkipPromo(),
]


def fake_dispatcher(receipt=None):
    dispatcher = MagicMock()
    dispatcher.capture_contact = AsyncMock(return_value="c-1")
    dispatcher.submit = AsyncMock(return_value=receipt or SubmissionReceipt(booking_id="b-1", email_sent=True))
    return dispatcher


def make_session(**overrides):
    options = dict(
        dispatcher=fake_dispatcher(),
        promo_lookup=AsyncMock(return_value=None),
        suggest=AsyncMock(return_value=SUGGESTIONS),
        measure=AsyncMock(return_value=ROUTE),
        suggestion_delay=0,
        distance_delay=0,
    )
    options.update(overrides)
    return WizardSession(WidgetConfig(id="w-1"), **options)


async def drive(session, events):
    for event in events:
        await session.dispatch(event)
    return session.state


def test_suggestions_follow_the_search_box():
    async def scenario():
        session = make_session()
        await drive(session, TO_ORIGIN_SEARCH)

        await session.dispatch(ev.EditAddress(target="origin", query="12"))
        await session.settle()
        assert session.suggestions == []
        session._suggest.assert_not_called()

        await session.dispatch(ev.EditAddress(target="origin", query="12 Ma"))
        await session.settle()
        assert session.suggestions == SUGGESTIONS
        session._suggest.assert_awaited_once_with("12 Ma")

        await session.dispatch(ev.ChooseAddress(target="origin", description=ORIGIN))
        assert session.suggestions == []

    asyncio.run(scenario())


def test_rapid_typing_fetches_only_the_last_query():
    async def scenario():
        session = make_session(suggestion_delay=0.05)
        await drive(session, TO_ORIGIN_SEARCH)

        for query in ("12 M", "12 Ma", "12 Mai"):
            await session.dispatch(ev.EditAddress(target="origin", query=query))
        await session.settle()

        session._suggest.assert_awaited_once_with("12 Mai")

    asyncio.run(scenario())


def test_suggestion_failure_yields_no_suggestions():
    async def scenario():
        session = make_session(suggest=AsyncMock(side_effect=ValueError("Google Places error.")))
        await drive(session, TO_ORIGIN_SEARCH)
        await session.dispatch(ev.EditAddress(target="origin", query="12 Main"))
        await session.settle()
        assert session.suggestions == []

    asyncio.run(scenario())


def test_distance_is_looked_up_once_both_addresses_are_known():
    async def scenario():
        session = make_session()
        state = await drive(session, TO_DESTINATION_DETAILS)
        assert state.selection.distance is None

        await session.settle()
        session._measure.assert_awaited_once_with(ORIGIN, DESTINATION)
        assert session.state.selection.distance == ROUTE
        assert session.state.estimate.travel_cost == pytest.approx(45)

    asyncio.run(scenario())


def test_latest_address_pair_wins():
    async def scenario():
        session = make_session(distance_delay=0.05)
        await drive(session, TO_DESTINATION_DETAILS)
        await session.dispatch(ev.Back())
        await session.dispatch(ev.EditAddress(target="destination", query="500 Elm St"))
        await session.settle()

        session._measure.assert_awaited_once_with(ORIGIN, "500 Elm St")
        assert session.state.selection.distance == ROUTE

    asyncio.run(scenario())


def test_failed_distance_lookup_leaves_distance_empty():
    async def scenario():
        session = make_session(measure=AsyncMock(side_effect=ValueError("no route")))
        await drive(session, TO_DESTINATION_DETAILS)
        await session.settle()
        assert session.state.selection.distance is None
        assert session.state.screen == S.DESTINATION_DETAILS

    asyncio.run(scenario())


def test_contact_is_captured_in_the_background():
    async def scenario():
        dispatcher = SubmissionDispatcher(store, AsyncMock(), AsyncMock())
        session = make_session(dispatcher=dispatcher)
        await drive(session, TO_ORIGIN_SEARCH[:4])
        await session.settle()
        return await store.list_contacts("w-1")

    contacts = asyncio.run(scenario())
    assert len(contacts) == 1
    assert contacts[0].email == "ana.lopez@gmail.com"


def test_promo_is_validated_once_and_cached():
    async def scenario():
        lookup = AsyncMock(return_value=PromoCode(code="SAVE10", discount_value=10))
        session = make_session(promo_lookup=lookup)
        await drive(session, TO_DESTINATION_DETAILS + [ev.ConfirmLocation(target="destination"),
                                                         ev.ContinueServices()])

        await session.dispatch(ev.EditPromoCode(code="save10"))
        state = await session.dispatch(ev.ContinuePromo())
        assert state.screen == S.REVIEW
        assert state.selection.applied_promo.code == "SAVE10"

        await session.dispatch(ev.Back())
        state = await session.dispatch(ev.ContinuePromo())
        assert state.screen == S.REVIEW
        lookup.assert_awaited_once_with("SAVE10")

    asyncio.run(scenario())


def test_promo_server_error_can_be_retried():
    async def scenario():
        lookup = AsyncMock(side_effect=RuntimeError("database down"))
        session = make_session(promo_lookup=lookup)
        await drive(session, TO_DESTINATION_DETAILS + [ev.ConfirmLocation(target="destination"),
                                                         ev.ContinueServices(),
                                                         ev.EditPromoCode(code="SAVE10")])

        state = await session.dispatch(ev.ContinuePromo())
        assert state.screen == S.PROMO_CODE
        assert state.errors["promo_code"] == PROMO_SERVER_ERROR_MESSAGE

        await session.dispatch(ev.ContinuePromo())
        assert lookup.await_count == 2

    asyncio.run(scenario())


def test_rejected_promo_is_checked_again_on_continue():
    async def scenario():
        lookup = AsyncMock(side_effect=[
            PromoCode(code="MOVE10", discount_value=10, is_active=False),
            PromoCode(code="MOVE10", discount_value=10),
        ])
        session = make_session(promo_lookup=lookup)
        await drive(session, TO_DESTINATION_DETAILS + [ev.ConfirmLocation(target="destination"),
                                                         ev.ContinueServices(),
                                                         ev.EditPromoCode(code="move10")])

        state = await session.dispatch(ev.ContinuePromo())
        assert state.screen == S.PROMO_CODE
        assert state.errors["promo_code"] == PROMO_NOT_FOUND_MESSAGE

        state = await session.dispatch(ev.ContinuePromo())
        assert state.screen == S.REVIEW
        assert state.selection.applied_promo.code == "MOVE10"
        assert lookup.await_count == 2

    asyncio.run(scenario())


def test_confirm_submits_exactly_once():
    async def scenario():
        session = make_session()
        await drive(session, TO_REVIEW)
        await asyncio.gather(
            session.dispatch(ev.ConfirmReservation()),
            session.dispatch(ev.ConfirmReservation()),
        )
        return session

    session = asyncio.run(scenario())
    session.dispatcher.submit.assert_awaited_once()
    assert session.state.screen == S.SUBMITTED
    assert session.state.booking_id == "b-1"
    assert session.receipt.email_sent is True


def test_submission_failure_still_reaches_submitted():
    async def scenario():
        dispatcher = fake_dispatcher()
        dispatcher.submit = AsyncMock(side_effect=RuntimeError("boom"))
        session = make_session(dispatcher=dispatcher)
        await drive(session, TO_REVIEW)
        return await session.dispatch(ev.ConfirmReservation())

    state = asyncio.run(scenario())
    assert state.screen == S.SUBMITTED
    assert state.booking_id is None


def test_close_abandons_pending_lookups():
    async def scenario():
        session = make_session(distance_delay=10)
        await drive(session, TO_DESTINATION_DETAILS)
        await session.close()
        assert session._pending() == []
        session._measure.assert_not_called()

        with pytest.raises(WizardTransitionError):
            await session.dispatch(ev.Back())

    asyncio.run(scenario())


def test_registry_tracks_sessions():
    async def scenario():
        registry = SessionRegistry()
        session = registry.create(WidgetConfig(id="w-1"), dispatcher=fake_dispatcher())
        assert registry.get(session.id) is session
        assert await registry.close(session.id) is True
        assert registry.get(session.id) is None
        assert await registry.close(session.id) is False

    asyncio.run(scenario())


def test_registry_releases_submitted_sessions():
    async def scenario():
        registry = SessionRegistry()
        session = registry.create(
            WidgetConfig(id="w-1"),
            dispatcher=fake_dispatcher(),
            suggest=AsyncMock(return_value=SUGGESTIONS),
            measure=AsyncMock(return_value=ROUTE),
            suggestion_delay=0,
            distance_delay=0,
        )
        for event in TO_REVIEW:
            await registry.dispatch(session, event)
        assert registry.get(session.id) is session

        state = await registry.dispatch(session, ev.ConfirmReservation())
        assert state.screen == S.SUBMITTED
        assert session.receipt.booking_id == "b-1"
        assert registry.get(session.id) is None
        assert len(registry) == 0

    asyncio.run(scenario())


def test_registry_sweeps_idle_sessions():
    async def scenario():
        registry = SessionRegistry(ttl=60)
        idle = registry.create(WidgetConfig(id="w-1"), dispatcher=fake_dispatcher())
        busy = registry.create(WidgetConfig(id="w-1"), dispatcher=fake_dispatcher())
        idle.last_active = busy.last_active - 120

        assert await registry.sweep(now=busy.last_active + 1) == 1
        assert registry.get(idle.id) is None
        assert registry.get(busy.id) is busy
        with pytest.raises(WizardTransitionError):
            await idle.dispatch(ev.Back())

    asyncio.run(scenario())
