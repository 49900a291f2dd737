# swimdesk/schemas/booking.py
"""
Booking wizard schemas.

The wizard state is a plain value: transitions in ``swimdesk.domain``
return a new state and the booking service keeps the latest one in the
cache under the wizard id.
"""

from typing import Any, Dict, Optional

from pydantic import Field, model_validator

from ..core.enums import WizardStep
from ..core.ulid_helper import generate_ulid
from .base import StandardizedModel, StrictRequestModel


class WizardState(StandardizedModel):
    wizard_id: str = Field(default_factory=generate_ulid)
    user_id: str
    step: WizardStep = WizardStep.SELECT_CLASS
    class_type_id: Optional[str] = None
    session_id: Optional[str] = None
    package_id: Optional[str] = None
    pay_per_lesson: bool = False
    last_error: Optional[Dict[str, Any]] = None
    purchase_id: Optional[str] = None


class StartWizardRequest(StrictRequestModel):
    class_type_id: Optional[str] = None


class SelectClassRequest(StrictRequestModel):
    class_type_id: str


class SelectSessionRequest(StrictRequestModel):
    session_id: str


class SelectPackageRequest(StrictRequestModel):
    """Either a package to buy, or ``pay_per_lesson`` for a drop-in."""

    package_id: Optional[str] = None
    pay_per_lesson: bool = False

    @model_validator(mode="after")
    def exactly_one_choice(self) -> "SelectPackageRequest":
        if bool(self.package_id) == self.pay_per_lesson:
            raise ValueError("Choose a package or pay per lesson, not both")
        return self
