# swimdesk/repositories/contracts.py
"""
Persistence contracts for SwimDesk.

Every backend (the SQL tables and the local JSON store) implements these
interfaces with identical semantics, so services never know which one they
are talking to:

- ``get_by_id`` of an absent id returns ``None``
- ``create``/``update`` raise ValidationException for malformed entities and
  ConflictException on uniqueness violations
- ``update`` of an absent id raises NotFoundException
- ``update`` never touches a user's credit balance or a session's roster;
  those change only through ``increment_credits`` and the enrollment
  primitives
- ``delete`` is idempotent and returns False when nothing was removed
- every mutation runs in its own unit of work unless an outer
  ``DataStore.transaction()`` is open, in which case it joins it
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
import datetime as dt
from typing import Any, Generic, List, Mapping, Optional, TypeVar, Union

from ..schemas.availability import Availability, Blockout
from ..schemas.catalog import ClassType, Package
from ..schemas.progress import StudentProgress
from ..schemas.purchase import Purchase
from ..schemas.session import Enrollment, LessonSession
from ..schemas.settings import SystemSettings
from ..schemas.user import User

T = TypeVar("T")

EntityInput = Union[T, Mapping[str, Any]]


class IRepository(ABC, Generic[T]):
    """CRUD surface shared by every entity with a single id."""

    @abstractmethod
    def list(self) -> List[T]:
        """Return every entity."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """
        Retrieve an entity by its id.

        Returns:
            The entity if found, None otherwise
        """

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[T]:
        """
        Read an entity and hold it locked until the enclosing transaction ends.

        Call inside ``DataStore.transaction()`` so a read-validate-write built
        on it cannot interleave with another writer of the same entity.
        """

    @abstractmethod
    def create(self, entity: EntityInput) -> T:
        """
        Persist a new entity.

        Raises:
            ValidationException: If required fields are missing or malformed
            ConflictException: If a uniqueness constraint is violated
        """

    @abstractmethod
    def update(self, entity: EntityInput) -> T:
        """
        Replace a stored entity with ``entity`` (matched by id).

        Fields the backend keeps apart (credit balances, rosters) are left as
        stored, whatever ``entity`` carries.

        Raises:
            NotFoundException: If no entity has that id
            ValidationException: If the entity is malformed
            ConflictException: If a uniqueness constraint is violated
        """

    @abstractmethod
    def delete(self, id: str) -> bool:
        """
        Delete an entity by id.

        Returns:
            True if deleted, False if it did not exist
        """


class IUserRepository(IRepository[User]):
    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup."""

    @abstractmethod
    def increment_credits(self, user_id: str, delta: int) -> int:
        """
        Atomically add ``delta`` (possibly negative) to a user's credits.

        Returns:
            The new balance

        Raises:
            NotFoundException: If the user does not exist
            InsufficientCreditsException: If the balance would drop below zero
        """

    @abstractmethod
    def set_password_hash(self, user_id: str, hashed_password: str) -> None:
        pass

    @abstractmethod
    def get_password_hash(self, user_id: str) -> Optional[str]:
        pass


class IClassTypeRepository(IRepository[ClassType]):
    pass


class IPackageRepository(IRepository[Package]):
    pass


class ISessionRepository(IRepository[LessonSession]):
    @abstractmethod
    def list_for_instructor(self, instructor_id: str) -> List[LessonSession]:
        pass

    @abstractmethod
    def list_for_user(self, user_id: str) -> List[LessonSession]:
        """Sessions the user is enrolled in."""

    @abstractmethod
    def list_for_class_type(
        self, class_type_id: str, starting_after: Optional[dt.datetime] = None
    ) -> List[LessonSession]:
        pass

    @abstractmethod
    def add_enrollment(
        self, session_id: str, user_id: str, credit_used: bool = False
    ) -> Optional[Enrollment]:
        """
        Enroll a user, checking capacity under a lock on the session.

        Returns:
            The new enrollment, or None if the user was already enrolled

        Raises:
            NotFoundException: If the session does not exist
            SessionFullException: If the session is at capacity
        """

    @abstractmethod
    def remove_enrollment(self, session_id: str, user_id: str) -> Optional[Enrollment]:
        """Remove and return the enrollment, or None if there was none."""

    @abstractmethod
    def get_enrollment(self, session_id: str, user_id: str) -> Optional[Enrollment]:
        pass

    @abstractmethod
    def list_enrollments(self, session_id: str) -> List[Enrollment]:
        pass


class IPurchaseRepository(IRepository[Purchase]):
    @abstractmethod
    def list_for_user(self, user_id: str) -> List[Purchase]:
        """Newest first."""


class IAvailabilityRepository(IRepository[Availability]):
    @abstractmethod
    def list_for_instructor(
        self, instructor_id: str, day_of_week: Optional[int] = None
    ) -> List[Availability]:
        pass


class IBlockoutRepository(IRepository[Blockout]):
    @abstractmethod
    def list_for_instructor(
        self, instructor_id: str, on_date: Optional[dt.date] = None
    ) -> List[Blockout]:
        pass


class IProgressRepository(ABC):
    """Progress rows are keyed by (student_id, skill_id)."""

    @abstractmethod
    def list_for_student(self, student_id: str) -> List[StudentProgress]:
        pass

    @abstractmethod
    def get(self, student_id: str, skill_id: str) -> Optional[StudentProgress]:
        pass

    @abstractmethod
    def upsert(self, progress: EntityInput) -> StudentProgress:
        pass


class ISettingsRepository(ABC):
    @abstractmethod
    def get(self) -> Optional[SystemSettings]:
        """Stored settings, or None when never saved."""

    @abstractmethod
    def save(self, settings: EntityInput) -> SystemSettings:
        """Upsert the whole record."""


class DataStore(ABC):
    """
    One handle onto a storage backend.

    Deleting a user removes their enrollments, availability, blockouts,
    progress, purchases and credentials along with the profile. Deleting a
    package keeps its purchases but clears their ``package_id``.
    """

    users: IUserRepository
    class_types: IClassTypeRepository
    sessions: ISessionRepository
    packages: IPackageRepository
    purchases: IPurchaseRepository
    availability: IAvailabilityRepository
    blockouts: IBlockoutRepository
    progress: IProgressRepository
    settings: ISettingsRepository

    backend_name: str = "unknown"

    @abstractmethod
    def transaction(self) -> AbstractContextManager:
        """
        Group several repository calls into one atomic unit.

        Commits when the outermost block exits normally, rolls everything
        back when any exception escapes. Nested blocks join the outer one.
        """

    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether the calling thread has a transaction open on this handle."""

    def close(self) -> None:
        """Release backend resources held by this handle."""
