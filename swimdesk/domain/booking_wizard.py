# swimdesk/domain/booking_wizard.py
"""
Booking wizard state machine.

    SELECT_CLASS -> SELECT_SCHEDULE -> [SELECT_PACKAGE] -> CONFIRM -> COMPLETED

The package step only appears when the client has no credits left. Every
transition returns a new WizardState; an action that does not apply to the
current step raises InvalidWizardTransitionException. Committing the
booking is the booking service's job: this module only records the outcome.
"""

from typing import Optional

from ..core.enums import WizardStep
from ..core.exceptions import DomainException, InvalidWizardTransitionException
from ..schemas.booking import WizardState

_BACK = {
    WizardStep.SELECT_SCHEDULE: WizardStep.SELECT_CLASS,
    WizardStep.SELECT_PACKAGE: WizardStep.SELECT_SCHEDULE,
    WizardStep.CONFIRM: WizardStep.SELECT_SCHEDULE,
}


def require_step(state: WizardState, action: str, *steps: WizardStep) -> None:
    if WizardStep(state.step) not in steps:
        raise InvalidWizardTransitionException(action, WizardStep(state.step).value)


def start(user_id: str, class_type_id: Optional[str] = None) -> WizardState:
    """A fresh wizard, optionally with the class already chosen."""
    state = WizardState(user_id=user_id)
    if class_type_id:
        state = select_class(state, class_type_id)
    return state


def select_class(state: WizardState, class_type_id: str) -> WizardState:
    require_step(state, "select a class", WizardStep.SELECT_CLASS)
    return state.model_copy(
        update={
            "step": WizardStep.SELECT_SCHEDULE,
            "class_type_id": class_type_id,
            "session_id": None,
            "last_error": None,
        }
    )


def select_session(state: WizardState, session_id: str, credits: int) -> WizardState:
    """Pick a time; clients without credits are routed to the package step."""
    require_step(state, "select a session", WizardStep.SELECT_SCHEDULE)
    next_step = WizardStep.CONFIRM if credits > 0 else WizardStep.SELECT_PACKAGE
    return state.model_copy(
        update={
            "step": next_step,
            "session_id": session_id,
            "package_id": None,
            "pay_per_lesson": False,
            "last_error": None,
        }
    )


def select_package(
    state: WizardState, package_id: Optional[str], pay_per_lesson: bool = False
) -> WizardState:
    """Choose a package to buy, or a pay-per-lesson drop-in."""
    require_step(state, "select a package", WizardStep.SELECT_PACKAGE)
    return state.model_copy(
        update={
            "step": WizardStep.CONFIRM,
            "package_id": None if pay_per_lesson else package_id,
            "pay_per_lesson": pay_per_lesson,
            "last_error": None,
        }
    )


def back(state: WizardState) -> WizardState:
    require_step(state, "go back", *_BACK)
    previous = _BACK[WizardStep(state.step)]
    update = {"step": previous, "last_error": None, "package_id": None, "pay_per_lesson": False}
    if previous == WizardStep.SELECT_CLASS:
        update.update({"class_type_id": None, "session_id": None})
    elif previous == WizardStep.SELECT_SCHEDULE:
        update["session_id"] = None
    return state.model_copy(update=update)


def require_confirmable(state: WizardState) -> None:
    require_step(state, "confirm", WizardStep.CONFIRM)


def complete(state: WizardState, purchase_id: Optional[str] = None) -> WizardState:
    require_confirmable(state)
    return state.model_copy(
        update={"step": WizardStep.COMPLETED, "purchase_id": purchase_id, "last_error": None}
    )


def fail(state: WizardState, error: DomainException) -> WizardState:
    """Record a failed confirmation; the wizard stays at CONFIRM for a retry."""
    require_confirmable(state)
    return state.model_copy(
        update={
            "last_error": {
                "code": error.code,
                "message": error.message,
                "details": error.details,
            }
        }
    )
