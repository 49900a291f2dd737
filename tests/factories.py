# tests/factories.py
"""Small builders for entities stored directly through a DataStore."""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from swimdesk.core.enums import UserRole
from swimdesk.core.timezone_utils import utc_now
from swimdesk.repositories.contracts import DataStore
from swimdesk.schemas.catalog import ClassType, Package
from swimdesk.schemas.session import LessonSession
from swimdesk.schemas.user import User


def create_user(
    store: DataStore,
    user_id: Optional[str] = None,
    role: UserRole = UserRole.CLIENT,
    credits: int = 0,
    name: str = "Test Swimmer",
) -> User:
    user = User(name=name, email="placeholder@example.com", role=role, package_credits=credits)
    if user_id:
        user = user.model_copy(update={"id": user_id})
    user = user.model_copy(update={"email": f"{user.id.lower()}@example.com"})
    with store.transaction():
        return store.users.create(user)


def create_class_type(
    store: DataStore,
    class_type_id: Optional[str] = None,
    duration_minutes: int = 45,
    capacity: Optional[int] = None,
) -> ClassType:
    class_type = ClassType(
        name="Little Otters",
        price_single=Decimal("30"),
        price_package=Decimal("25"),
        duration_minutes=duration_minutes,
        capacity=capacity,
    )
    if class_type_id:
        class_type = class_type.model_copy(update={"id": class_type_id})
    with store.transaction():
        return store.class_types.create(class_type)


def create_package(
    store: DataStore, package_id: Optional[str] = None, credits: int = 5, price: int = 200
) -> Package:
    package = Package(name="Starter Pack", credits=credits, price=price)
    if package_id:
        package = package.model_copy(update={"id": package_id})
    with store.transaction():
        return store.packages.create(package)


def create_session(
    store: DataStore,
    class_type: ClassType,
    instructor: User,
    session_id: Optional[str] = None,
    start: Optional[datetime] = None,
    capacity: int = 4,
    enrolled: Iterable[str] = (),
    credit_used: bool = True,
) -> LessonSession:
    """
    Seats in ``enrolled`` are booked as paid with a credit unless
    ``credit_used`` is False. Balances are left alone.
    """
    start = start or (utc_now() + timedelta(days=3)).replace(microsecond=0)
    session = LessonSession(
        class_type_id=class_type.id,
        instructor_id=instructor.id,
        start_time=start,
        end_time=start + timedelta(minutes=class_type.duration_minutes),
        capacity=capacity,
    )
    if session_id:
        session = session.model_copy(update={"id": session_id})
    with store.transaction():
        created = store.sessions.create(session)
        for user_id in enrolled:
            store.sessions.add_enrollment(created.id, user_id, credit_used=credit_used)
    return store.sessions.get_by_id(created.id)
