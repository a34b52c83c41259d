"""
Async host for one customer's booking wizard.

The session owns a single :class:`WizardState` and feeds it events. Around
the pure transition it runs the I/O the wizard needs: debounced address
suggestions, a debounced distance lookup, promo validation, background
contact capture and the one-time submission.
"""
import asyncio
import time
import uuid
from typing import Awaitable, Callable, Dict, List, Optional, Set

from movequote.core.config import settings
from movequote.core.logger import get_logger
from movequote.models.booking import SubmissionReceipt
from movequote.models.response import PlaceSuggestion
from movequote.models.selection import DistanceResult
from movequote.models.widget import WidgetConfig
from movequote.services.dispatcher import SubmissionDispatcher
from movequote.services.distance_service import lookup_distance
from movequote.services.email_service import send_confirmation_email
from movequote.services.lead_service import forward_lead
from movequote.services.places_service import MIN_QUERY_LENGTH, get_address_suggestions
from movequote.services.promo_service import PromoLookup, normalize_code, validate_promo
from movequote.services.store import store
from movequote.wizard import events as ev
from movequote.wizard.machine import WizardTransitionError, initial_state, transition
from movequote.wizard.screens import SEARCH_SCREENS, WizardScreen
from movequote.wizard.state import WizardState

logger = get_logger(__name__)

SuggestionFetcher = Callable[[str], Awaitable[List[PlaceSuggestion]]]
DistanceFetcher = Callable[[str, str], Awaitable[DistanceResult]]


def _long_enough(query: str) -> bool:
    return len((query or "").strip()) >= MIN_QUERY_LENGTH


class WizardSession:
    def __init__(
        self,
        widget: WidgetConfig,
        *,
        session_id: Optional[str] = None,
        dispatcher: Optional[SubmissionDispatcher] = None,
        promo_lookup: Optional[PromoLookup] = None,
        suggest: Optional[SuggestionFetcher] = None,
        measure: Optional[DistanceFetcher] = None,
        suggestion_delay: Optional[float] = None,
        distance_delay: Optional[float] = None,
    ):
        self.id = session_id or str(uuid.uuid4())
        self.widget = widget
        # rates are fixed for the lifetime of the session
        self.rates = widget.pricing
        self.state: WizardState = initial_state(self.rates)
        self.suggestions: List[PlaceSuggestion] = []
        self.receipt: Optional[SubmissionReceipt] = None

        self.dispatcher = dispatcher or SubmissionDispatcher(store, send_confirmation_email, forward_lead)
        self._promo_lookup = promo_lookup or store.get_promo
        self._suggest = suggest or get_address_suggestions
        self._measure = measure or lookup_distance
        self.suggestion_delay = settings.SUGGESTION_DEBOUNCE if suggestion_delay is None else suggestion_delay
        self.distance_delay = settings.DISTANCE_DEBOUNCE if distance_delay is None else distance_delay

        self._suggestion_task: Optional[asyncio.Task] = None
        self._distance_task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()
        self._lock = asyncio.Lock()
        self._submitting = False
        self._closed = False
        self.last_active = time.monotonic()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    async def dispatch(self, event) -> WizardState:
        """Apply one customer event and start whatever lookups it implies."""
        if self._closed:
            raise WizardTransitionError(self.state.screen, event.type)

        self.last_active = time.monotonic()
        async with self._lock:
            if isinstance(event, ev.ConfirmReservation):
                return await self._confirm(event)
            if isinstance(event, ev.ContinuePromo):
                await self._check_promo()
            return self._apply(event)

    def _apply(self, event) -> WizardState:
        previous = self.state
        self.state = transition(previous, event, self.rates)
        self._after(previous, event)
        return self.state

    def _after(self, previous: WizardState, event):
        current = self.state

        if isinstance(event, ev.Reset):
            self._cancel_lookups()
            return

        if previous.screen in SEARCH_SCREENS and current.screen != previous.screen:
            self._cancel_suggestions()
        elif isinstance(event, ev.EditAddress):
            self._schedule_suggestions(event.query)

        before, after = previous.selection, current.selection
        if (before.origin.query_string != after.origin.query_string
                or before.destination.query_string != after.destination.query_string):
            self._schedule_distance(after.origin.query_string, after.destination.query_string)

        if (isinstance(event, ev.SubmitContact)
                and previous.screen == WizardScreen.CONTACT_INFO
                and current.screen == WizardScreen.MOVE_DATE):
            self._spawn(self.dispatcher.capture_contact(self.widget.id, after.contact))

    # ------------------------------------------------------------------
    # Address suggestions
    # ------------------------------------------------------------------
    def _cancel_suggestions(self):
        if self._suggestion_task and not self._suggestion_task.done():
            self._suggestion_task.cancel()
        self._suggestion_task = None
        self.suggestions = []

    def _schedule_suggestions(self, query: str):
        self._cancel_suggestions()
        if not _long_enough(query):
            return
        self._suggestion_task = asyncio.create_task(self._fetch_suggestions(query.strip()))

    async def _fetch_suggestions(self, query: str):
        await asyncio.sleep(self.suggestion_delay)
        try:
            results = await self._suggest(query)
        except Exception as e:
            logger.error(f"Address suggestions failed for '{query}': {e}")
            results = []
        self.suggestions = list(results)

    # ------------------------------------------------------------------
    # Distance
    # ------------------------------------------------------------------
    def _cancel_distance(self):
        if self._distance_task and not self._distance_task.done():
            self._distance_task.cancel()
        self._distance_task = None

    def _schedule_distance(self, origin: str, destination: str):
        self._cancel_distance()
        if not (_long_enough(origin) and _long_enough(destination)):
            return
        self._distance_task = asyncio.create_task(self._fetch_distance(origin, destination))

    async def _fetch_distance(self, origin: str, destination: str):
        await asyncio.sleep(self.distance_delay)
        try:
            distance = await self._measure(origin, destination)
        except Exception as e:
            logger.warning(f"Distance lookup failed for '{origin}' -> '{destination}': {e}")
            distance = None
        if self.state.is_terminal:
            return
        self._apply(ev.DistanceResolved(origin=origin, destination=destination, distance=distance))

    # ------------------------------------------------------------------
    # Promo
    # ------------------------------------------------------------------
    async def _check_promo(self):
        if self.state.screen != WizardScreen.PROMO_CODE:
            return
        selection = self.state.selection
        code = normalize_code(selection.promo_code_raw)
        if not code:
            return
        outcome = selection.promo_outcome
        if outcome.status == "valid" and outcome.validated_code == code:
            return

        self._apply(ev.PromoChecking(code=code))
        result = await validate_promo(code, self._promo_lookup)
        self._apply(ev.PromoChecked(code=code, result=result))

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    async def _confirm(self, event: ev.ConfirmReservation) -> WizardState:
        if self._submitting or self.state.is_terminal:
            return self.state

        self.state = transition(self.state, event, self.rates)
        if self.state.errors:
            return self.state

        self._submitting = True
        try:
            receipt = await self.dispatcher.submit(self.widget, self.state)
        except Exception:
            logger.exception(f"Submission failed for session {self.id}")
            receipt = SubmissionReceipt()
        self.receipt = receipt

        self._cancel_lookups()
        self.state = transition(self.state, ev.SubmissionFinished(booking_id=receipt.booking_id), self.rates)
        return self.state

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _cancel_lookups(self):
        self._cancel_suggestions()
        self._cancel_distance()

    def _pending(self) -> List[asyncio.Task]:
        tasks = [self._suggestion_task, self._distance_task, *self._background]
        return [t for t in tasks if t is not None and not t.done()]

    async def settle(self):
        """Wait for every lookup and background task started so far."""
        while True:
            pending = self._pending()
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self):
        self._closed = True
        pending = self._pending()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._suggestion_task = None
        self._distance_task = None


class SessionRegistry:
    """
    Open wizard sessions by id.

    A session leaves the registry when it is closed, when it reaches
    ``submitted`` and when it has been idle longer than ``ttl`` seconds.
    """

    def __init__(self, ttl: Optional[float] = None):
        self._sessions: Dict[str, WizardSession] = {}
        self.ttl = settings.WIZARD_SESSION_TTL if ttl is None else ttl

    def create(self, widget: WidgetConfig, **kwargs) -> WizardSession:
        session = WizardSession(widget, **kwargs)
        self._sessions[session.id] = session
        logger.info(f"Opened wizard session {session.id} for widget {widget.id}")
        return session

    def get(self, session_id: str) -> Optional[WizardSession]:
        return self._sessions.get(session_id)

    def __len__(self) -> int:
        return len(self._sessions)

    async def dispatch(self, session: WizardSession, event) -> WizardState:
        """Feed ``session`` one event, releasing it once it is submitted."""
        state = await session.dispatch(event)
        if state.is_terminal:
            await self.close(session.id)
        return state

    async def sweep(self, now: Optional[float] = None) -> int:
        """Close sessions idle for longer than ``ttl``. Returns how many were closed."""
        now = time.monotonic() if now is None else now
        expired = [sid for sid, s in self._sessions.items() if now - s.last_active > self.ttl]
        for session_id in expired:
            await self.close(session_id)
        if expired:
            logger.info(f"Dropped {len(expired)} idle wizard sessions")
        return len(expired)

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        logger.info(f"Closed wizard session {session_id}")
        return True

    async def close_all(self):
        for session_id in list(self._sessions):
            await self.close(session_id)


registry = SessionRegistry()
