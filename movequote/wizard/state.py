from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from movequote.models.estimate import EstimateResult
from movequote.models.selection import WizardSelection
from movequote.wizard.screens import WizardScreen


class WizardState(BaseModel):
    model_config = ConfigDict(frozen=True)

    screen: WizardScreen = WizardScreen.SERVICE_SELECT
    selection: WizardSelection = WizardSelection()
    # screens to return to on "back", most recent last
    history: Tuple[WizardScreen, ...] = ()
    errors: Dict[str, str] = {}
    estimate: Optional[EstimateResult] = None
    # storage was already on when the editor opened; cancel keeps it on
    storage_was_enabled: bool = False
    booking_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.screen == WizardScreen.SUBMITTED
