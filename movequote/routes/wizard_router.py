from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException
from pydantic import TypeAdapter, ValidationError

from movequote.core.logger import get_logger
from movequote.models.response import MessageResponse, SuggestionsResponse
from movequote.models.session import WizardSessionCreate, WizardSessionResponse
from movequote.services.store import store
from movequote.wizard.events import SelectDate, WizardEvent
from movequote.wizard.machine import WizardTransitionError
from movequote.wizard.session import WizardSession, registry
from movequote.wizard.validation import clamp_today

wizard_router = APIRouter(prefix="/wizard/sessions", tags=["Wizard"])
logger = get_logger(__name__)

_event_adapter = TypeAdapter(WizardEvent)


def _session_or_404(session_id: str) -> WizardSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Wizard session not found")
    return session


def _response(session: WizardSession) -> WizardSessionResponse:
    return WizardSessionResponse(
        id=session.id,
        widget_id=session.widget.id,
        state=session.state,
        receipt=session.receipt,
    )


@wizard_router.post("", response_model=WizardSessionResponse)
async def open_session(payload: WizardSessionCreate):
    widget = await store.get_widget(payload.widget_id)
    if widget is None:
        raise HTTPException(status_code=404, detail="Widget not found")
    await registry.sweep()
    return _response(registry.create(widget))


@wizard_router.get("/{session_id}", response_model=WizardSessionResponse)
async def get_session(session_id: str):
    return _response(_session_or_404(session_id))


@wizard_router.post("/{session_id}/events", response_model=WizardSessionResponse)
async def send_event(session_id: str, body: Dict[str, Any] = Body(...)):
    """
    Feed one customer action to the wizard. Events the current screen does
    not accept are rejected with 409; field problems come back in
    ``state.errors``. A submitted session is released; this response still
    carries its receipt.
    """
    session = _session_or_404(session_id)
    try:
        event = _event_adapter.validate_python(body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    if isinstance(event, SelectDate):
        # the client's date is only trusted to within a day of ours
        event = event.model_copy(update={"today": clamp_today(event.today)})

    try:
        await registry.dispatch(session, event)
    except WizardTransitionError as e:
        logger.warning(f"Session {session_id}: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return _response(session)


@wizard_router.get("/{session_id}/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(session_id: str):
    session = _session_or_404(session_id)
    return SuggestionsResponse(predictions=session.suggestions)


@wizard_router.delete("/{session_id}", response_model=MessageResponse)
async def close_session(session_id: str):
    if not await registry.close(session_id):
        raise HTTPException(status_code=404, detail="Wizard session not found")
    return MessageResponse(message="Wizard session closed")
