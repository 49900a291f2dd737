# tests/unit/services/test_booking_service.py
"""
Tests for the booking wizard service.

Confirmation buys the chosen package and takes the seat in one unit of
work: a failed confirmation leaves no purchase behind.
"""

from unittest.mock import MagicMock

import pytest
from redis.exceptions import RedisError

from swimdesk.core.enums import UserRole, WizardStep
from swimdesk.core.exceptions import (
    ForbiddenException,
    InvalidWizardTransitionException,
    MaintenanceModeException,
    NotFoundException,
    ServiceException,
    SessionFullException,
)
from swimdesk.schemas.settings import SystemSettings
from swimdesk.services.booking_service import BookingService
from swimdesk.services.cache_service import CacheService
from swimdesk.services.enrollment_service import EnrollmentService
from swimdesk.services.settings_service import SettingsService
from tests.factories import create_class_type, create_package, create_session, create_user


@pytest.fixture
def setup(store):
    instructor = create_user(store, "i1", role=UserRole.INSTRUCTOR)
    class_type = create_class_type(store, "c1")
    create_class_type(store, "c2")
    create_package(store, "p1", credits=5, price=200)
    create_user(store, "rich", credits=2)
    create_user(store, "broke", credits=0)
    create_user(store, "other", credits=1)
    session = create_session(store, class_type, instructor, "sess1", capacity=1)
    return session


@pytest.fixture
def service(store, settings, cache_service, query_cache, setup):
    return BookingService(store, settings, cache_service, query_cache)


def _to_confirm(service: BookingService, user_id: str, package_id=None, pay_per_lesson=False):
    state = service.start(user_id, "c1")
    state = service.select_session(state.wizard_id, user_id, "sess1")
    if state.step == WizardStep.SELECT_PACKAGE:
        state = service.select_package(state.wizard_id, user_id, package_id, pay_per_lesson)
    return state


class TestHappyPaths:
    def test_client_with_credits_books_directly(self, store, service):
        state = service.start("rich")
        state = service.select_class(state.wizard_id, "rich", "c1")
        state = service.select_session(state.wizard_id, "rich", "sess1")
        assert state.step == WizardStep.CONFIRM

        done = service.confirm(state.wizard_id, "rich")

        assert done.step == WizardStep.COMPLETED
        assert done.purchase_id is None
        assert store.sessions.get_by_id("sess1").enrolled_user_ids == ["rich"]
        assert store.users.get_by_id("rich").package_credits == 1
        assert service.get_state(state.wizard_id, "rich").step == WizardStep.COMPLETED

    def test_client_without_credits_buys_a_package(self, store, service):
        state = _to_confirm(service, "broke", package_id="p1")

        done = service.confirm(state.wizard_id, "broke")

        purchases = store.purchases.list_for_user("broke")
        assert done.purchase_id == purchases[0].id
        assert purchases[0].credits == 5
        assert store.users.get_by_id("broke").package_credits == 4
        assert store.sessions.get_by_id("sess1").enrolled_user_ids == ["broke"]

    def test_pay_per_lesson(self, store, service):
        state = _to_confirm(service, "broke", pay_per_lesson=True)

        service.confirm(state.wizard_id, "broke")

        assert store.users.get_by_id("broke").package_credits == 0
        assert store.purchases.list_for_user("broke") == []
        assert store.sessions.get_enrollment("sess1", "broke").credit_used is False

    def test_going_back_and_choosing_again(self, service):
        state = _to_confirm(service, "rich")
        state = service.back(state.wizard_id, "rich")

        assert state.step == WizardStep.SELECT_SCHEDULE
        assert state.session_id is None


class TestFailedConfirmation:
    def test_lost_seat_leaves_no_purchase(self, store, service, query_cache):
        state = _to_confirm(service, "broke", package_id="p1")
        EnrollmentService(store, query_cache).enroll("sess1", "other")

        with pytest.raises(SessionFullException):
            service.confirm(state.wizard_id, "broke")

        failed = service.get_state(state.wizard_id, "broke")
        assert failed.step == WizardStep.CONFIRM
        assert failed.last_error["code"] == "SESSION_FULL"
        assert store.purchases.list_for_user("broke") == []
        assert store.users.get_by_id("broke").package_credits == 0

    def test_maintenance_mode_is_recorded(self, store, service, query_cache):
        state = _to_confirm(service, "rich")
        SettingsService(store, query_cache).save_settings(SystemSettings(maintenance_mode=True))

        with pytest.raises(MaintenanceModeException):
            service.confirm(state.wizard_id, "rich")

        assert service.get_state(state.wizard_id, "rich").last_error["code"] == "MAINTENANCE_MODE"


class TestGuards:
    def test_full_session_cannot_be_selected(self, store, service, query_cache):
        EnrollmentService(store, query_cache).enroll("sess1", "other")
        state = service.start("rich", "c1")

        with pytest.raises(SessionFullException):
            service.select_session(state.wizard_id, "rich", "sess1")

    def test_session_must_belong_to_the_class(self, service):
        state = service.start("rich", "c2")

        with pytest.raises(NotFoundException):
            service.select_session(state.wizard_id, "rich", "sess1")

    def test_unknown_package(self, service):
        state = service.start("broke", "c1")
        state = service.select_session(state.wizard_id, "broke", "sess1")

        with pytest.raises(NotFoundException):
            service.select_package(state.wizard_id, "broke", "missing")

    def test_confirm_out_of_order(self, service):
        state = service.start("rich", "c1")

        with pytest.raises(InvalidWizardTransitionException):
            service.confirm(state.wizard_id, "rich")

    def test_someone_elses_wizard(self, service):
        state = service.start("rich", "c1")

        with pytest.raises(ForbiddenException):
            service.get_state(state.wizard_id, "broke")

    def test_abandoned_wizard_is_gone(self, service):
        state = service.start("rich", "c1")

        assert service.abandon(state.wizard_id, "rich") is True
        with pytest.raises(NotFoundException) as exc_info:
            service.get_state(state.wizard_id, "rich")
        assert exc_info.value.code == "WIZARD_NOT_FOUND"

    def test_state_lives_in_the_shared_cache(self, service, cache_service):
        state = service.start("rich", "c1")

        stored = cache_service.get(f"wiz:{state.wizard_id}")

        assert stored["step"] == "SELECT_SCHEDULE"
        assert stored["user_id"] == "rich"


class TestCacheOutage:
    @pytest.fixture
    def redis_client(self):
        return MagicMock()

    @pytest.fixture
    def outage_service(self, store, settings, query_cache, setup, redis_client):
        return BookingService(store, settings, CacheService(redis_client=redis_client), query_cache)

    def test_unsaved_progress_is_an_error(self, outage_service, redis_client):
        redis_client.setex.side_effect = RedisError("down")

        with pytest.raises(ServiceException) as exc_info:
            outage_service.start("rich", "c1")

        assert exc_info.value.code == "WIZARD_SAVE_FAILED"

    def test_unreadable_state_is_not_reported_as_expired(self, outage_service, redis_client):
        redis_client.get.side_effect = RedisError("down")

        with pytest.raises(ServiceException) as exc_info:
            outage_service.get_state("01ANYWIZARD", "rich")

        assert exc_info.value.code == "CACHE_UNAVAILABLE"
