"""
Booking wizard as a pure state machine.

``transition`` takes the current :class:`WizardState`, one event and the
widget's rate configuration and returns the next state. It performs no I/O;
lookups happen in :mod:`movequote.wizard.session` and come back in as
events. Validation problems are reported through ``state.errors`` on the
same screen; an event the current screen does not accept raises
:class:`WizardTransitionError`.
"""
from datetime import date
from typing import Callable, Dict, Optional, Type

from movequote.models.pricing import RateConfiguration
from movequote.models.selection import (
    ContactInfo,
    PromoOutcome,
    ServiceType,
    WizardSelection,
)
from movequote.services.estimate_engine import compute_estimate, team_group_for
from movequote.services.promo_service import normalize_code
from movequote.wizard import events as ev
from movequote.wizard import validation
from movequote.wizard.screens import DETAILS_SCREEN_FOR, EDITOR_SCREENS, SEARCH_SCREEN_FOR, WizardScreen
from movequote.wizard.state import WizardState

S = WizardScreen

PROMO_NOT_FOUND_MESSAGE = "That promo code was not found or is not active."
PROMO_SERVER_ERROR_MESSAGE = "Could not validate promo code. Please try again."


class WizardTransitionError(Exception):
    """The current screen does not accept this event."""

    def __init__(self, screen: WizardScreen, event_type: str):
        self.screen = screen
        self.event_type = event_type
        super().__init__(f"Event '{event_type}' is not allowed on screen '{screen.value}'")


def initial_state(rates: RateConfiguration) -> WizardState:
    selection = WizardSelection()
    return WizardState(selection=selection, estimate=compute_estimate(rates, selection))


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _require(state: WizardState, event, *screens: WizardScreen):
    if state.screen not in screens:
        raise WizardTransitionError(state.screen, event.type)


def _select(state: WizardState, **changes) -> WizardSelection:
    return state.selection.model_copy(update=changes)


def _advance(state: WizardState, screen: WizardScreen, selection: WizardSelection, **extra) -> WizardState:
    return state.model_copy(update={
        "screen": screen,
        "selection": selection,
        "history": state.history + (state.screen,),
        "errors": {},
        **extra,
    })


def _stay(state: WizardState, selection: WizardSelection, **extra) -> WizardState:
    return state.model_copy(update={"selection": selection, "errors": {}, **extra})


def _reject(state: WizardState, errors: Dict[str, str], selection: Optional[WizardSelection] = None) -> WizardState:
    if selection is None:
        selection = state.selection
    return state.model_copy(update={"selection": selection, "errors": errors})


def _return_from_editor(state: WizardState, selection: WizardSelection) -> WizardState:
    history = state.history
    previous = history[-1] if history else S.SERVICES_SELECT
    return state.model_copy(update={
        "screen": previous,
        "selection": selection,
        "history": history[:-1],
        "errors": {},
        "storage_was_enabled": False,
    })


def _location(selection: WizardSelection, target: str):
    return selection.origin if target == "origin" else selection.destination


def _with_location(state: WizardState, target: str, **changes) -> WizardSelection:
    selection = state.selection
    current = _location(selection, target)
    updated = current.model_copy(update=changes)
    update = {target: updated}
    if updated.query_string != current.query_string:
        update["distance"] = None
    return selection.model_copy(update=update)


# ----------------------------------------------------------------------
# Service, move type and size
# ----------------------------------------------------------------------
def _on_select_service(state, event: ev.SelectService, rates):
    _require(state, event, S.SERVICE_SELECT)
    changes = {"service_type": event.service_type}
    if event.service_type != state.selection.service_type:
        changes.update(labor_help_type=None, team_tier=None, explicit_hours=None)
    selection = _select(state, **changes)
    if event.service_type == ServiceType.LABOR_ONLY:
        return _advance(state, S.LABOR_HELP_SELECT, selection)
    return _advance(state, S.MOVE_TYPE_SELECT, selection)


def _on_select_labor_help(state, event: ev.SelectLaborHelp, rates):
    _require(state, event, S.LABOR_HELP_SELECT)
    changes = {"labor_help_type": event.labor_help_type}
    if event.labor_help_type != state.selection.labor_help_type:
        changes.update(team_tier=None, explicit_hours=None)
    return _advance(state, S.MOVE_TYPE_SELECT, _select(state, **changes))


def _on_select_move_type(state, event: ev.SelectMoveType, rates):
    _require(state, event, S.MOVE_TYPE_SELECT)
    changes = {"move_type": event.move_type}
    if event.move_type != state.selection.move_type:
        changes["size_bucket"] = None
    return _advance(state, S.SIZE_SELECT, _select(state, **changes))


def _on_select_size(state, event: ev.SelectSize, rates):
    _require(state, event, S.SIZE_SELECT)
    errors = validation.validate_size(rates, state.selection.move_type, event.size_bucket)
    if errors:
        return _reject(state, errors)
    return _advance(state, S.CONTACT_INFO, _select(state, size_bucket=event.size_bucket))


# ----------------------------------------------------------------------
# Contact, date and time
# ----------------------------------------------------------------------
def _on_submit_contact(state, event: ev.SubmitContact, rates):
    _require(state, event, S.CONTACT_INFO)
    contact = ContactInfo(
        first_name=event.first_name.strip(),
        last_name=event.last_name.strip(),
        email=event.email.strip(),
        phone=event.phone.strip(),
    )
    selection = _select(state, contact=contact)
    errors = validation.validate_contact(contact)
    if errors:
        return _reject(state, errors, selection)
    return _advance(state, S.MOVE_DATE, selection)


def _on_select_date(state, event: ev.SelectDate, rates):
    _require(state, event, S.MOVE_DATE)
    errors = validation.validate_move_date(event.move_date, event.today or date.today())
    if errors:
        return _reject(state, errors)
    selection = _select(state, move_date=event.move_date, flexible_dates=event.flexible_dates)
    return _advance(state, S.MOVE_TIME, selection)


def _on_select_time(state, event: ev.SelectTime, rates):
    _require(state, event, S.MOVE_TIME)
    errors = validation.validate_move_time(event.move_time)
    if errors:
        return _reject(state, errors)
    return _advance(state, S.ORIGIN_SEARCH, _select(state, move_time=event.move_time))


# ----------------------------------------------------------------------
# Addresses and distance
# ----------------------------------------------------------------------
def _on_edit_address(state, event: ev.EditAddress, rates):
    _require(state, event, SEARCH_SCREEN_FOR[event.target])
    return _stay(state, _with_location(state, event.target, query_string=event.query))


def _on_choose_address(state, event: ev.ChooseAddress, rates):
    _require(state, event, SEARCH_SCREEN_FOR[event.target])
    description = event.description.strip()
    errors = validation.validate_address(description)
    if errors:
        return _reject(state, errors)
    selection = _with_location(state, event.target, query_string=description)
    return _advance(state, DETAILS_SCREEN_FOR[event.target], selection)


def _on_confirm_location(state, event: ev.ConfirmLocation, rates):
    _require(state, event, DETAILS_SCREEN_FOR[event.target])
    errors = validation.validate_location_details(event.stairs_tier, event.walking_tier)
    if errors:
        return _reject(state, errors)
    selection = _with_location(
        state,
        event.target,
        unit=event.unit.strip(),
        has_elevator=event.has_elevator,
        stairs_tier=event.stairs_tier,
        walking_tier=event.walking_tier,
    )
    if event.target == "origin":
        return _advance(state, S.DESTINATION_SEARCH, selection)
    if selection.service_type == ServiceType.LABOR_ONLY:
        return _advance(state, S.TEAM_SELECT, selection)
    return _advance(state, S.SERVICES_SELECT, selection)


def _on_distance_resolved(state, event: ev.DistanceResolved, rates):
    if state.is_terminal:
        raise WizardTransitionError(state.screen, event.type)
    selection = state.selection
    if (event.origin != selection.origin.query_string
            or event.destination != selection.destination.query_string):
        # answer for an address pair the customer has since changed
        return state
    return state.model_copy(update={"selection": _select(state, distance=event.distance)})


# ----------------------------------------------------------------------
# Labor-only crew and hours
# ----------------------------------------------------------------------
def _on_select_team(state, event: ev.SelectTeam, rates):
    _require(state, event, S.TEAM_SELECT)
    group = team_group_for(state.selection)
    if event.team_tier not in getattr(rates.teams, group):
        return _reject(state, {"team_tier": "Please select a team"})
    selection = _select(state, team_tier=event.team_tier)
    if selection.uses_explicit_hours:
        return _advance(state, S.UNLOADING_HOURS, selection)
    return _advance(state, S.SERVICES_SELECT, selection)


def _on_select_hours(state, event: ev.SelectHours, rates):
    _require(state, event, S.UNLOADING_HOURS)
    errors = validation.validate_hours(event.hours)
    if errors:
        return _reject(state, errors)
    selection = _select(state, explicit_hours=validation.parse_hours(event.hours))
    return _advance(state, S.SERVICES_SELECT, selection)


# ----------------------------------------------------------------------
# Add-on services
# ----------------------------------------------------------------------
def _on_open_storage_editor(state, event, rates):
    _require(state, event, S.SERVICES_SELECT)
    return _advance(
        state, S.STORAGE_EDITOR, state.selection,
        storage_was_enabled=state.selection.storage_needed,
    )


def _on_save_storage(state, event: ev.SaveStorage, rates):
    _require(state, event, S.STORAGE_EDITOR)
    errors = validation.validate_storage(event.plan)
    if errors:
        return _reject(state, errors)
    selection = _select(
        state,
        storage_needed=True,
        storage_plan=event.plan.strip(),
        storage_move_out_date=event.move_out_date,
    )
    return _return_from_editor(state, selection)


def _cancel_storage(state: WizardState) -> WizardState:
    selection = state.selection
    if not state.storage_was_enabled:
        selection = _select(state, storage_needed=False, storage_plan="", storage_move_out_date="")
    return _return_from_editor(state, selection)


def _on_cancel_storage_editor(state, event, rates):
    _require(state, event, S.STORAGE_EDITOR)
    return _cancel_storage(state)


def _on_disable_storage(state, event, rates):
    _require(state, event, S.SERVICES_SELECT)
    return _stay(state, _select(state, storage_needed=False, storage_plan="", storage_move_out_date=""))


def _on_open_protection_editor(state, event, rates):
    _require(state, event, S.SERVICES_SELECT)
    return _advance(state, S.PROTECTION_EDITOR, state.selection)


def _on_save_protection(state, event: ev.SaveProtection, rates):
    _require(state, event, S.PROTECTION_EDITOR)
    selection = _select(
        state,
        protection_selected=True,
        protection_deductible=event.deductible,
        declared_value=event.declared_value,
    )
    return _return_from_editor(state, selection)


def _on_cancel_protection_editor(state, event, rates):
    _require(state, event, S.PROTECTION_EDITOR)
    return _return_from_editor(state, state.selection)


def _on_clear_protection(state, event, rates):
    _require(state, event, S.SERVICES_SELECT)
    defaults = WizardSelection()
    return _stay(state, _select(
        state,
        protection_selected=False,
        protection_deductible=defaults.protection_deductible,
        declared_value=defaults.declared_value,
    ))


def _on_update_extras(state, event: ev.UpdateExtras, rates):
    _require(state, event, S.SERVICES_SELECT, S.REVIEW)
    changes = event.model_dump(exclude={"type"}, exclude_none=True)
    if event.inventory is not None:
        changes["inventory"] = list(event.inventory)
    if event.special_items is not None:
        changes["special_items"] = list(event.special_items)
    return _stay(state, _select(state, **changes))


def _on_continue_services(state, event, rates):
    _require(state, event, S.SERVICES_SELECT)
    return _advance(state, S.PROMO_CODE, state.selection)


# ----------------------------------------------------------------------
# Promo code
# ----------------------------------------------------------------------
def _on_edit_promo_code(state, event: ev.EditPromoCode, rates):
    _require(state, event, S.PROMO_CODE)
    changes = {"promo_code_raw": event.code}
    if normalize_code(event.code) != state.selection.promo_outcome.validated_code:
        changes["promo_outcome"] = PromoOutcome()
    return _stay(state, _select(state, **changes))


def _is_current_code(state: WizardState, code: str) -> bool:
    return normalize_code(code) == normalize_code(state.selection.promo_code_raw)


def _on_promo_checking(state, event: ev.PromoChecking, rates):
    if state.is_terminal:
        raise WizardTransitionError(state.screen, event.type)
    if not _is_current_code(state, event.code):
        return state
    return state.model_copy(update={
        "selection": _select(state, promo_outcome=PromoOutcome(status="checking")),
    })


def _on_promo_checked(state, event: ev.PromoChecked, rates):
    if state.is_terminal:
        raise WizardTransitionError(state.screen, event.type)
    if not _is_current_code(state, event.code):
        return state

    code = normalize_code(event.code)
    result = event.result
    if result.valid and result.promo is not None:
        outcome = PromoOutcome(status="valid", applied_promo=result.promo, validated_code=code)
    else:
        # failures are not cached, so continuing looks the code up again
        message = PROMO_SERVER_ERROR_MESSAGE if result.reason == "server_error" else PROMO_NOT_FOUND_MESSAGE
        outcome = PromoOutcome(status="invalid", message=message)
    return state.model_copy(update={"selection": _select(state, promo_outcome=outcome)})


def _on_continue_promo(state, event, rates):
    _require(state, event, S.PROMO_CODE)
    errors = validation.validate_promo(state.selection)
    if errors:
        return _reject(state, errors)
    selection = state.selection
    if not normalize_code(selection.promo_code_raw):
        selection = _select(state, promo_code_raw="", promo_outcome=PromoOutcome())
    return _advance(state, S.REVIEW, selection)


def _on_skip_promo(state, event, rates):
    _require(state, event, S.PROMO_CODE)
    return _advance(state, S.REVIEW, _select(state, promo_code_raw="", promo_outcome=PromoOutcome()))


# ----------------------------------------------------------------------
# Review and submission
# ----------------------------------------------------------------------
def _on_confirm_reservation(state, event, rates):
    _require(state, event, S.REVIEW)
    errors = validation.validate_for_submission(state.selection)
    if errors:
        return _reject(state, errors)
    return _stay(state, state.selection)


def _on_submission_finished(state, event: ev.SubmissionFinished, rates):
    _require(state, event, S.REVIEW)
    return state.model_copy(update={
        "screen": S.SUBMITTED,
        "history": (),
        "errors": {},
        "booking_id": event.booking_id,
    })


def _on_back(state, event, rates):
    if state.screen == S.STORAGE_EDITOR:
        return _cancel_storage(state)
    if state.screen in EDITOR_SCREENS:
        return _return_from_editor(state, state.selection)
    if state.is_terminal or not state.history:
        raise WizardTransitionError(state.screen, event.type)
    return state.model_copy(update={
        "screen": state.history[-1],
        "history": state.history[:-1],
        "errors": {},
    })


Handler = Callable[[WizardState, object, RateConfiguration], WizardState]

_HANDLERS: Dict[Type, Handler] = {
    ev.SelectService: _on_select_service,
    ev.SelectLaborHelp: _on_select_labor_help,
    ev.SelectMoveType: _on_select_move_type,
    ev.SelectSize: _on_select_size,
    ev.SubmitContact: _on_submit_contact,
    ev.SelectDate: _on_select_date,
    ev.SelectTime: _on_select_time,
    ev.EditAddress: _on_edit_address,
    ev.ChooseAddress: _on_choose_address,
    ev.ConfirmLocation: _on_confirm_location,
    ev.DistanceResolved: _on_distance_resolved,
    ev.SelectTeam: _on_select_team,
    ev.SelectHours: _on_select_hours,
    ev.OpenStorageEditor: _on_open_storage_editor,
    ev.SaveStorage: _on_save_storage,
    ev.CancelStorageEditor: _on_cancel_storage_editor,
    ev.DisableStorage: _on_disable_storage,
    ev.OpenProtectionEditor: _on_open_protection_editor,
    ev.SaveProtection: _on_save_protection,
    ev.CancelProtectionEditor: _on_cancel_protection_editor,
    ev.ClearProtection: _on_clear_protection,
    ev.UpdateExtras: _on_update_extras,
    ev.ContinueServices: _on_continue_services,
    ev.EditPromoCode: _on_edit_promo_code,
    ev.PromoChecking: _on_promo_checking,
    ev.PromoChecked: _on_promo_checked,
    ev.ContinuePromo: _on_continue_promo,
    ev.SkipPromo: _on_skip_promo,
    ev.ConfirmReservation: _on_confirm_reservation,
    ev.SubmissionFinished: _on_submission_finished,
    ev.Back: _on_back,
}


def transition(state: WizardState, event, rates: RateConfiguration) -> WizardState:
    if isinstance(event, ev.Reset):
        return initial_state(rates)

    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise WizardTransitionError(state.screen, getattr(event, "type", type(event).__name__))

    next_state = handler(state, event, rates)
    # the estimate always reflects the latest committed selection
    return next_state.model_copy(update={"estimate": compute_estimate(rates, next_state.selection)})
