# swimdesk/services/booking_service.py
"""
Booking Service for SwimDesk

Drives the booking wizard for a client:

    select class -> select session -> [select package] -> confirm

Wizard states are kept in the shared cache under ``wiz:<id>`` so any worker
can serve the next step. Confirmation buys the chosen package (if any) and
enrolls the client in one unit of work; when it fails the error is recorded
on the state and the wizard stays at the confirm step.
"""

from datetime import datetime
import logging
from typing import Optional

from ..core.config import Settings
from ..core.enums import WizardStep
from ..core.exceptions import (
    BusinessRuleException,
    DomainException,
    ForbiddenException,
    NotFoundException,
    ServiceException,
    SessionFullException,
)
from ..core.timezone_utils import utc_now
from ..domain import booking_wizard
from ..repositories.contracts import DataStore
from ..schemas.booking import WizardState
from .base import BaseService
from .cache_service import CacheService
from .credit_service import CreditService
from .enrollment_service import EnrollmentService
from .query_cache import QueryCache
from .settings_service import SettingsService

logger = logging.getLogger(__name__)


class BookingService(BaseService):
    """
    Service layer for the client booking flow.

    Centralizes the wizard transitions and coordinates the credit and
    enrollment services at confirmation.
    """

    def __init__(
        self,
        store: DataStore,
        config: Settings,
        cache_service: CacheService,
        cache: Optional[QueryCache] = None,
        settings_service: Optional[SettingsService] = None,
        credit_service: Optional[CreditService] = None,
        enrollment_service: Optional[EnrollmentService] = None,
    ):
        super().__init__(store, cache)
        self.config = config
        self.cache_service = cache_service
        self.settings_service = settings_service or SettingsService(store, cache)
        self.credit_service = credit_service or CreditService(store, cache)
        self.enrollment_service = enrollment_service or EnrollmentService(
            store, cache, self.settings_service
        )

    # ==========================================
    # Wizard steps
    # ==========================================

    @BaseService.measure_operation("start_wizard")
    def start(self, user_id: str, class_type_id: Optional[str] = None) -> WizardState:
        if class_type_id:
            self._require_class_type(class_type_id)
        state = booking_wizard.start(user_id, class_type_id)
        return self._save(state)

    def get_state(self, wizard_id: str, user_id: str) -> WizardState:
        """
        Raises:
            NotFoundException: Unknown or expired wizard
            ForbiddenException: The wizard belongs to someone else
            ServiceException: The cache cannot be read
        """
        raw = self.cache_service.get_or_raise(self._key(wizard_id))
        if raw is None:
            raise NotFoundException(
                "Booking not found or expired", code="WIZARD_NOT_FOUND", details={"id": wizard_id}
            )
        state = WizardState.model_validate(raw)
        if state.user_id != user_id:
            raise ForbiddenException("This booking belongs to another user", code="WIZARD_FORBIDDEN")
        return state

    @BaseService.measure_operation("select_class")
    def select_class(self, wizard_id: str, user_id: str, class_type_id: str) -> WizardState:
        state = self.get_state(wizard_id, user_id)
        self._require_class_type(class_type_id)
        return self._save(booking_wizard.select_class(state, class_type_id))

    @BaseService.measure_operation("select_session")
    def select_session(
        self, wizard_id: str, user_id: str, session_id: str, now: Optional[datetime] = None
    ) -> WizardState:
        """
        Pick a session of the chosen class. Clients with credits go straight to
        confirmation; clients without are sent to choose a package.
        """
        state = self.get_state(wizard_id, user_id)
        booking_wizard.require_step(state, "select a session", WizardStep.SELECT_SCHEDULE)
        session = self.store.sessions.get_by_id(session_id)
        if session is None or session.class_type_id != state.class_type_id:
            raise NotFoundException(
                "Session not found for this class", code="SESSION_NOT_FOUND", details={"id": session_id}
            )
        if session.start_time <= (now or utc_now()):
            raise BusinessRuleException(
                "This session has already started",
                code="SESSION_STARTED",
                details={"session_id": session_id},
            )
        if session.is_full and user_id not in session.enrolled_user_ids:
            raise SessionFullException(session_id, session.capacity)
        credits = self.credit_service.get_balance(user_id)
        return self._save(booking_wizard.select_session(state, session_id, credits))

    @BaseService.measure_operation("select_package")
    def select_package(
        self,
        wizard_id: str,
        user_id: str,
        package_id: Optional[str] = None,
        pay_per_lesson: bool = False,
    ) -> WizardState:
        state = self.get_state(wizard_id, user_id)
        if package_id and self.store.packages.get_by_id(package_id) is None:
            raise NotFoundException(
                "Package not found", code="PACKAGE_NOT_FOUND", details={"id": package_id}
            )
        return self._save(booking_wizard.select_package(state, package_id, pay_per_lesson))

    def back(self, wizard_id: str, user_id: str) -> WizardState:
        state = self.get_state(wizard_id, user_id)
        return self._save(booking_wizard.back(state))

    @BaseService.measure_operation("confirm_booking")
    def confirm(self, wizard_id: str, user_id: str, now: Optional[datetime] = None) -> WizardState:
        """
        Commit the booking.

        Raises the failure after recording it on the wizard, which stays at
        CONFIRM so the client can retry or go back.
        """
        state = self.get_state(wizard_id, user_id)
        booking_wizard.require_confirmable(state)

        purchase_id: Optional[str] = None
        try:
            self.settings_service.ensure_bookings_open()
            with self.transaction():
                if state.package_id:
                    purchase, _ = self.credit_service.record_purchase(user_id, state.package_id)
                    purchase_id = purchase.id
                session = self.enrollment_service.enroll_in_transaction(
                    state.session_id,
                    user_id,
                    pay_per_lesson=state.pay_per_lesson,
                    now=now,
                )
        except DomainException as e:
            self.logger.warning(f"Booking {wizard_id} failed: {e.code}")
            self._save(booking_wizard.fail(state, e))
            raise

        if purchase_id:
            self.credit_service.invalidate_after_purchase(user_id)
        self.enrollment_service.invalidate_after_roster_change(session, user_id)
        self.logger.info(f"Booking {wizard_id} confirmed: user {user_id} in session {session.id}")
        return self._save(booking_wizard.complete(state, purchase_id))

    def abandon(self, wizard_id: str, user_id: str) -> bool:
        self.get_state(wizard_id, user_id)
        return self.cache_service.delete(self._key(wizard_id))

    # ==========================================
    # Helpers
    # ==========================================

    def _save(self, state: WizardState) -> WizardState:
        ttl = self.config.wizard_ttl_seconds
        if WizardStep(state.step) == WizardStep.COMPLETED:
            ttl = min(ttl, self.cache_service.TTL_TIERS["hot"])
        if not self.cache_service.set(self._key(state.wizard_id), state.model_dump(mode="json"), ttl=ttl):
            self.logger.error(f"Could not save booking wizard {state.wizard_id} at {state.step}")
            raise ServiceException(
                "Booking progress could not be saved",
                code="WIZARD_SAVE_FAILED",
                details={"id": state.wizard_id},
            )
        return state

    def _key(self, wizard_id: str) -> str:
        return self.cache_service.key_builder.build("wizard", wizard_id)

    def _require_class_type(self, class_type_id: str) -> None:
        if self.store.class_types.get_by_id(class_type_id) is None:
            raise NotFoundException(
                "Class type not found", code="CLASS_TYPE_NOT_FOUND", details={"id": class_type_id}
            )
