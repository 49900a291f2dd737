# tests/unit/services/test_concurrency.py
"""
Services racing each other from worker threads.

The SQL backend runs on a SQLite file with one session per worker, the way
request handlers each get their own session. The local backend shares one
LocalDataStore between all workers. Every worker shares one QueryCache.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, time
from typing import Any, Callable, Iterable, Iterator, List, Tuple

import pytest

from swimdesk.core.enums import UserRole
from swimdesk.core.exceptions import DomainException, SessionFullException
from swimdesk.database import build_engine, build_session_factory, create_tables
from swimdesk.repositories.contracts import DataStore
from swimdesk.repositories.local_store import LocalDataStore
from swimdesk.repositories.sql_store import SqlDataStore
from swimdesk.schemas.session import ScheduleSessionRequest
from swimdesk.schemas.user import UserUpdate
from swimdesk.services.credit_service import CreditService
from swimdesk.services.enrollment_service import EnrollmentService
from swimdesk.services.query_cache import QueryCache
from swimdesk.services.scheduling_service import SchedulingService
from swimdesk.services.user_service import UserService
from tests.conftest import make_settings
from tests.factories import create_class_type, create_package, create_session, create_user

WORKERS = 8


@pytest.fixture(params=["sql", "local"])
def open_store(request, tmp_path) -> Iterator[Callable[[], DataStore]]:
    """Opens a handle onto one backend shared by every worker."""
    if request.param == "sql":
        engine = build_engine(f"sqlite:///{tmp_path / 'swimdesk.db'}")
        create_tables(engine)
        factory = build_session_factory(engine)
        yield lambda: SqlDataStore(factory())
        engine.dispose()
    else:
        shared = LocalDataStore(tmp_path / "store.json")
        yield lambda: shared


@pytest.fixture
def shared_cache() -> QueryCache:
    return QueryCache()


def _seed(open_store, build: Callable[[DataStore], Any]) -> Any:
    store = open_store()
    try:
        return build(store)
    finally:
        store.close()


def _race(
    open_store, task: Callable[[DataStore, Any], Any], args: Iterable[Any]
) -> List[Tuple[Any, Any]]:
    """Run ``task(store, arg)`` for every arg on the pool; returns (result, error) pairs."""

    def run(arg):
        store = open_store()
        try:
            return task(store, arg), None
        except DomainException as exc:
            return None, exc
        finally:
            store.close()

    with ThreadPoolExecutor(max_workers=WORKERS) as pool:
        return list(pool.map(run, list(args)))


def _errors(outcomes) -> List[Exception]:
    return [error for _, error in outcomes if error is not None]


class TestCredits:
    def test_balance_is_the_sum_of_concurrent_purchases(self, open_store, shared_cache):
        def build(store):
            create_user(store, "u1", credits=0)
            create_package(store, "p1", credits=5)

        _seed(open_store, build)

        outcomes = _race(
            open_store,
            lambda store, _: CreditService(store, shared_cache).purchase_package("u1", "p1"),
            range(20),
        )

        assert _errors(outcomes) == []
        store = open_store()
        try:
            assert store.users.get_by_id("u1").package_credits == 100
            assert len(store.purchases.list_for_user("u1")) == 20
        finally:
            store.close()

    def test_renames_racing_purchases_lose_no_credits(self, open_store, shared_cache):
        def build(store):
            create_user(store, "u1", credits=0, name="Swimmer")
            create_package(store, "p1", credits=5)

        _seed(open_store, build)

        def task(store, index):
            if index % 2:
                return UserService(store, shared_cache).update_user(
                    "u1", UserUpdate(name=f"Swimmer {index}")
                )
            return CreditService(store, shared_cache).purchase_package("u1", "p1")

        outcomes = _race(open_store, task, range(20))

        assert _errors(outcomes) == []
        store = open_store()
        try:
            user = store.users.get_by_id("u1")
            purchases = store.purchases.list_for_user("u1")
            assert user.package_credits == sum(p.credits for p in purchases) == 50
            assert user.name.startswith("Swimmer ")
        finally:
            store.close()


class TestSeats:
    def test_enrollments_never_exceed_capacity(self, open_store, shared_cache):
        clients = [f"u{index}" for index in range(12)]

        def build(store):
            instructor = create_user(store, "i1", role=UserRole.INSTRUCTOR)
            class_type = create_class_type(store, "c1")
            for user_id in clients:
                create_user(store, user_id, credits=1)
            return create_session(store, class_type, instructor, "sess1", capacity=3)

        _seed(open_store, build)

        outcomes = _race(
            open_store,
            lambda store, user_id: EnrollmentService(store, shared_cache).enroll("sess1", user_id),
            clients,
        )

        errors = _errors(outcomes)
        assert len(errors) == 9
        assert all(isinstance(error, SessionFullException) for error in errors)
        store = open_store()
        try:
            enrolled = store.sessions.get_by_id("sess1").enrolled_user_ids
            assert len(enrolled) == 3
            for user_id in clients:
                expected = 0 if user_id in enrolled else 1
                assert store.users.get_by_id(user_id).package_credits == expected
        finally:
            store.close()

    def test_same_client_booking_twice_at_once_pays_once(self, open_store, shared_cache):
        def build(store):
            instructor = create_user(store, "i1", role=UserRole.INSTRUCTOR)
            class_type = create_class_type(store, "c1")
            create_user(store, "u1", credits=5)
            return create_session(store, class_type, instructor, "sess1", capacity=3)

        _seed(open_store, build)

        outcomes = _race(
            open_store,
            lambda store, _: EnrollmentService(store, shared_cache).enroll("sess1", "u1"),
            range(WORKERS),
        )

        assert _errors(outcomes) == []
        store = open_store()
        try:
            assert store.sessions.get_by_id("sess1").enrolled_user_ids == ["u1"]
            assert store.users.get_by_id("u1").package_credits == 4
        finally:
            store.close()

    def test_bookings_survive_concurrent_reschedules(self, open_store, shared_cache):
        clients = [f"u{index}" for index in range(8)]
        monday = date(2030, 1, 7)

        def build(store):
            instructor = create_user(store, "i1", role=UserRole.INSTRUCTOR)
            class_type = create_class_type(store, "c1")
            for user_id in clients:
                create_user(store, user_id, credits=1)
            return create_session(store, class_type, instructor, "sess1", capacity=12)

        _seed(open_store, build)

        def task(store, job):
            kind, value = job
            if kind == "enroll":
                return EnrollmentService(store, shared_cache).enroll("sess1", value)
            request = ScheduleSessionRequest(
                class_type_id="c1",
                instructor_id="i1",
                date=monday,
                start_time=time(value, 0),
                capacity=12,
                override_unavailable=True,
            )
            return SchedulingService(store, make_settings(), shared_cache).reschedule_session(
                "sess1", request
            )

        jobs = []
        for index, user_id in enumerate(clients):
            jobs.append(("enroll", user_id))
            if index < 6:
                jobs.append(("move", 8 + index))

        outcomes = _race(open_store, task, jobs)

        assert _errors(outcomes) == []
        store = open_store()
        try:
            session = store.sessions.get_by_id("sess1")
            assert sorted(session.enrolled_user_ids) == sorted(clients)
            assert session.capacity == 12
            assert session.start_time.date() == monday
            for user_id in clients:
                assert store.users.get_by_id(user_id).package_credits == 0
        finally:
            store.close()
