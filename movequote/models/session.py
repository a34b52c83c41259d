from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from movequote.models.booking import SubmissionReceipt
from movequote.wizard.state import WizardState


class WizardSessionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    widget_id: str = Field(..., alias="widgetId")


class WizardSessionResponse(BaseModel):
    id: str
    widget_id: str
    state: WizardState
    receipt: Optional[SubmissionReceipt] = None
