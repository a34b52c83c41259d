"""Customer actions and I/O completions that drive the booking wizard.

Every event carries a ``type`` tag so a JSON body can be parsed straight
into the right class through :data:`WizardEvent`.
"""
from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from movequote.models.promo import PromoValidation
from movequote.models.selection import (
    DistanceResult,
    LaborHelpType,
    LineItem,
    MoveType,
    ServiceType,
)

AddressTarget = Literal["origin", "destination"]


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)


class SelectService(_Event):
    type: Literal["select_service"] = "select_service"
    service_type: ServiceType


class SelectLaborHelp(_Event):
    type: Literal["select_labor_help"] = "select_labor_help"
    labor_help_type: LaborHelpType


class SelectMoveType(_Event):
    type: Literal["select_move_type"] = "select_move_type"
    move_type: MoveType


class SelectSize(_Event):
    type: Literal["select_size"] = "select_size"
    size_bucket: str


class SubmitContact(_Event):
    type: Literal["submit_contact"] = "submit_contact"
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""


class SelectDate(_Event):
    type: Literal["select_date"] = "select_date"
    move_date: Optional[date] = None
    flexible_dates: bool = False
    # the customer's local "today"; server date when omitted
    today: Optional[date] = None


class SelectTime(_Event):
    type: Literal["select_time"] = "select_time"
    move_time: str


class EditAddress(_Event):
    """Keystroke in an address search box."""
    type: Literal["edit_address"] = "edit_address"
    target: AddressTarget
    query: str = ""


class ChooseAddress(_Event):
    type: Literal["choose_address"] = "choose_address"
    target: AddressTarget
    description: str


class ConfirmLocation(_Event):
    type: Literal["confirm_location"] = "confirm_location"
    target: AddressTarget
    unit: str = ""
    # the details form starts on "no elevator"
    has_elevator: bool = False
    stairs_tier: str = "none"
    walking_tier: str = "short"


class DistanceResolved(_Event):
    """Result of a distance lookup for the given pair of address strings."""
    type: Literal["distance_resolved"] = "distance_resolved"
    origin: str
    destination: str
    distance: Optional[DistanceResult] = None


class SelectTeam(_Event):
    type: Literal["select_team"] = "select_team"
    team_tier: str


class SelectHours(_Event):
    type: Literal["select_hours"] = "select_hours"
    hours: Union[str, float]


class OpenStorageEditor(_Event):
    type: Literal["open_storage_editor"] = "open_storage_editor"


class SaveStorage(_Event):
    type: Literal["save_storage"] = "save_storage"
    plan: str = "1_week"
    move_out_date: str = ""


class CancelStorageEditor(_Event):
    type: Literal["cancel_storage_editor"] = "cancel_storage_editor"


class DisableStorage(_Event):
    type: Literal["disable_storage"] = "disable_storage"


class OpenProtectionEditor(_Event):
    type: Literal["open_protection_editor"] = "open_protection_editor"


class SaveProtection(_Event):
    type: Literal["save_protection"] = "save_protection"
    deductible: str = "250"
    declared_value: float = Field(0, ge=0)


class CancelProtectionEditor(_Event):
    type: Literal["cancel_protection_editor"] = "cancel_protection_editor"


class ClearProtection(_Event):
    type: Literal["clear_protection"] = "clear_protection"


class UpdateExtras(_Event):
    """Opaque pass-through data: inventory, special items, custom fields, notes."""
    type: Literal["update_extras"] = "update_extras"
    inventory: Optional[List[LineItem]] = None
    special_items: Optional[List[LineItem]] = None
    custom_field_values: Optional[Dict[str, Any]] = None
    additional_notes: Optional[str] = None


class ContinueServices(_Event):
    type: Literal["continue_services"] = "continue_services"


class EditPromoCode(_Event):
    type: Literal["edit_promo_code"] = "edit_promo_code"
    code: str = ""


class PromoChecking(_Event):
    type: Literal["promo_checking"] = "promo_checking"
    code: str


class PromoChecked(_Event):
    type: Literal["promo_checked"] = "promo_checked"
    code: str
    result: PromoValidation


class ContinuePromo(_Event):
    type: Literal["continue_promo"] = "continue_promo"


class SkipPromo(_Event):
    type: Literal["skip_promo"] = "skip_promo"


class ConfirmReservation(_Event):
    type: Literal["confirm_reservation"] = "confirm_reservation"


class SubmissionFinished(_Event):
    type: Literal["submission_finished"] = "submission_finished"
    booking_id: Optional[str] = None


class Back(_Event):
    type: Literal["back"] = "back"


class Reset(_Event):
    type: Literal["reset"] = "reset"


WizardEvent = Annotated[
    Union[
        SelectService,
        SelectLaborHelp,
        SelectMoveType,
        SelectSize,
        SubmitContact,
        SelectDate,
        SelectTime,
        EditAddress,
        ChooseAddress,
        ConfirmLocation,
        DistanceResolved,
        SelectTeam,
        SelectHours,
        OpenStorageEditor,
        SaveStorage,
        CancelStorageEditor,
        DisableStorage,
        OpenProtectionEditor,
        SaveProtection,
        CancelProtectionEditor,
        ClearProtection,
        UpdateExtras,
        ContinueServices,
        EditPromoCode,
        PromoChecking,
        PromoChecked,
        ContinuePromo,
        SkipPromo,
        ConfirmReservation,
        SubmissionFinished,
        Back,
        Reset,
    ],
    Field(discriminator="type"),
]
