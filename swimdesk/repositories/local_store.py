# swimdesk/repositories/local_store.py
"""
Local persisted DataStore for offline and demo mode.

All entities live in memory as lists of wire-shaped records under the
``ls_*`` keys and are written to a single JSON file after every committed
unit of work. One re-entrant lock serialises units of work, which makes
each read-validate-write (capacity checks, credit debits) atomic.

The store is shared by every request in the process.
"""

from contextlib import contextmanager
import copy
import datetime as dt
import json
import logging
import os
from pathlib import Path
import tempfile
import threading
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel

from ..core.exceptions import (
    ConflictException,
    InsufficientCreditsException,
    NotFoundException,
    RepositoryException,
    SessionFullException,
)
from ..core.timezone_utils import ensure_utc
from ..schemas.availability import Availability, Blockout
from ..schemas.catalog import ClassType, Package
from ..schemas.progress import StudentProgress
from ..schemas.purchase import Purchase
from ..schemas.session import Enrollment, LessonSession
from ..schemas.settings import SystemSettings
from ..schemas.user import User
from .contracts import (
    DataStore,
    EntityInput,
    IAvailabilityRepository,
    IBlockoutRepository,
    IClassTypeRepository,
    IPackageRepository,
    IProgressRepository,
    IPurchaseRepository,
    IRepository,
    ISessionRepository,
    ISettingsRepository,
    IUserRepository,
)
from .mappers import coerce_entity
from .purchase_repository import immutable_purchase_error

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

STORAGE_KEYS = {
    "users": "ls_users",
    "credentials": "ls_credentials",
    "classes": "ls_classes",
    "packages": "ls_packages",
    "sessions": "ls_sessions",
    "enrollments": "ls_enrollments",
    "progress": "ls_progress",
    "settings": "ls_settings",
    "availability": "ls_availability",
    "blockouts": "ls_blockouts",
    "purchases": "ls_purchases",
}


def _empty_data() -> Dict[str, Any]:
    data: Dict[str, Any] = {key: [] for key in STORAGE_KEYS.values()}
    data[STORAGE_KEYS["credentials"]] = {}
    data[STORAGE_KEYS["settings"]] = None
    return data


class LocalRepository(IRepository[T], Generic[T]):
    """In-memory list of records for one entity type."""

    entity_label = "Entity"
    # Wire keys that update() leaves as stored
    preserved_fields: tuple = ()

    def __init__(
        self,
        store: "LocalDataStore",
        key: str,
        entity_cls: Type[T],
        sort_key: Optional[Callable[[T], Any]] = None,
    ):
        self.store = store
        self.key = key
        self.entity_cls = entity_cls
        self.sort_key = sort_key
        self.logger = logging.getLogger(f"{__name__}.{entity_cls.__name__}")

    @property
    def _records(self) -> List[Dict[str, Any]]:
        return self.store.data[self.key]

    def _load(self, record: Dict[str, Any]) -> T:
        return self.entity_cls.model_validate(record)

    def _dump(self, entity: T) -> Dict[str, Any]:
        return entity.model_dump(mode="json", by_alias=True)

    def _index_of(self, id: str) -> Optional[int]:
        for index, record in enumerate(self._records):
            if record["id"] == id:
                return index
        return None

    def _sorted(self, items: List[T]) -> List[T]:
        return sorted(items, key=self.sort_key) if self.sort_key else items

    def _select(self, predicate: Callable[[T], bool]) -> List[T]:
        with self.store.lock:
            items = [self._load(record) for record in self._records]
        return self._sorted([item for item in items if predicate(item)])

    def list(self) -> List[T]:
        return self._select(lambda _item: True)

    def get_by_id(self, id: str) -> Optional[T]:
        with self.store.lock:
            index = self._index_of(id)
            return self._load(self._records[index]) if index is not None else None

    def get_for_update(self, id: str) -> Optional[T]:
        # The caller's transaction already holds the store lock
        return self.get_by_id(id)

    def create(self, entity: EntityInput) -> T:
        data = coerce_entity(self.entity_cls, entity)
        with self.store.transaction():
            if self._index_of(data.id) is not None:
                raise ConflictException(
                    f"{self.entity_label} conflicts with existing data",
                    code="INTEGRITY_CONFLICT",
                    details={"id": data.id},
                )
            self._before_write(data, existing_id=None)
            self._records.append(self._dump(data))
            self._after_create(data)
            return self.get_by_id(data.id)

    def update(self, entity: EntityInput) -> T:
        data = coerce_entity(self.entity_cls, entity)
        with self.store.transaction():
            index = self._index_of(data.id)
            if index is None:
                raise NotFoundException(
                    f"{self.entity_label} not found", code="NOT_FOUND", details={"id": data.id}
                )
            self._before_write(data, existing_id=data.id)
            record = self._dump(data)
            for field in self.preserved_fields:
                record[field] = self._records[index].get(field)
            self._records[index] = record
            return self.get_by_id(data.id)

    def delete(self, id: str) -> bool:
        with self.store.transaction():
            index = self._index_of(id)
            if index is None:
                return False
            self._before_delete(id)
            # Hooks may have shifted the list
            del self._records[self._index_of(id)]
            return True

    def _delete_where(self, key: str, predicate: Callable[[Dict[str, Any]], bool]) -> int:
        records = self.store.data[key]
        kept = [record for record in records if not predicate(record)]
        removed = len(records) - len(kept)
        records[:] = kept
        return removed

    def _before_write(self, entity: T, existing_id: Optional[str]) -> None:
        pass

    def _after_create(self, entity: T) -> None:
        pass

    def _before_delete(self, id: str) -> None:
        pass


class LocalUserRepository(LocalRepository[User], IUserRepository):
    entity_label = "User"
    preserved_fields = ("packageCredits",)

    def __init__(self, store: "LocalDataStore"):
        super().__init__(store, STORAGE_KEYS["users"], User)

    def get_by_email(self, email: str) -> Optional[User]:
        wanted = email.strip().lower()
        matches = self._select(lambda user: user.email.lower() == wanted)
        return matches[0] if matches else None

    def increment_credits(self, user_id: str, delta: int) -> int:
        with self.store.transaction():
            index = self._index_of(user_id)
            if index is None:
                raise NotFoundException("User not found", code="NOT_FOUND", details={"id": user_id})
            record = self._records[index]
            balance = int(record.get("packageCredits") or 0)
            if balance + delta < 0:
                raise InsufficientCreditsException(user_id, balance, -delta)
            record["packageCredits"] = balance + delta
        self.logger.info("Credits for user %s adjusted by %+d to %d", user_id, delta, balance + delta)
        return balance + delta

    def set_password_hash(self, user_id: str, hashed_password: str) -> None:
        with self.store.transaction():
            if self._index_of(user_id) is None:
                raise NotFoundException("User not found", code="NOT_FOUND", details={"id": user_id})
            self.store.data[STORAGE_KEYS["credentials"]][user_id] = hashed_password

    def get_password_hash(self, user_id: str) -> Optional[str]:
        with self.store.lock:
            return self.store.data[STORAGE_KEYS["credentials"]].get(user_id)

    def _before_write(self, entity: User, existing_id: Optional[str]) -> None:
        existing = self.get_by_email(entity.email)
        if existing is not None and existing.id != entity.id:
            raise ConflictException(
                "A user with this email already exists",
                code="EMAIL_TAKEN",
                details={"email": entity.email},
            )

    def _before_delete(self, id: str) -> None:
        if any(record["instructorId"] == id for record in self.store.data[STORAGE_KEYS["sessions"]]):
            raise ConflictException(
                "User still teaches scheduled sessions",
                code="INTEGRITY_CONFLICT",
                details={"id": id},
            )
        self._delete_where(STORAGE_KEYS["enrollments"], lambda r: r["userId"] == id)
        self._delete_where(STORAGE_KEYS["availability"], lambda r: r["instructorId"] == id)
        self._delete_where(STORAGE_KEYS["blockouts"], lambda r: r["instructorId"] == id)
        self._delete_where(STORAGE_KEYS["progress"], lambda r: r["studentId"] == id)
        self._delete_where(STORAGE_KEYS["purchases"], lambda r: r["userId"] == id)
        self.store.data[STORAGE_KEYS["credentials"]].pop(id, None)


class LocalClassTypeRepository(LocalRepository[ClassType], IClassTypeRepository):
    entity_label = "Class type"

    def __init__(self, store: "LocalDataStore"):
        super().__init__(
            store, STORAGE_KEYS["classes"], ClassType, sort_key=lambda c: (c.name, c.id)
        )

    def _before_delete(self, id: str) -> None:
        if any(record["classTypeId"] == id for record in self.store.data[STORAGE_KEYS["sessions"]]):
            raise ConflictException(
                "Class type still has scheduled sessions",
                code="INTEGRITY_CONFLICT",
                details={"id": id},
            )


class LocalPackageRepository(LocalRepository[Package], IPackageRepository):
    entity_label = "Package"

    def __init__(self, store: "LocalDataStore"):
        super().__init__(
            store, STORAGE_KEYS["packages"], Package, sort_key=lambda p: (p.price, p.id)
        )

    def _before_delete(self, id: str) -> None:
        for record in self.store.data[STORAGE_KEYS["purchases"]]:
            if record.get("packageId") == id:
                record["packageId"] = None


class LocalSessionRepository(LocalRepository[LessonSession], ISessionRepository):
    """
    Sessions are stored without their roster; ``enrolledUserIds`` is rebuilt
    from ``ls_enrollments`` (kept in booking order) on every read. Updates
    never touch ``ls_enrollments``.
    """

    entity_label = "Session"

    def __init__(self, store: "LocalDataStore"):
        super().__init__(
            store,
            STORAGE_KEYS["sessions"],
            LessonSession,
            sort_key=lambda s: (s.start_time, s.id),
        )

    @property
    def _enrollments(self) -> List[Dict[str, Any]]:
        return self.store.data[STORAGE_KEYS["enrollments"]]

    def _load(self, record: Dict[str, Any]) -> LessonSession:
        roster = [e["userId"] for e in self._enrollments if e["sessionId"] == record["id"]]
        return LessonSession.model_validate({**record, "enrolledUserIds": roster})

    def _dump(self, entity: LessonSession) -> Dict[str, Any]:
        record = super()._dump(entity)
        record.pop("enrolledUserIds", None)
        return record

    def list_for_instructor(self, instructor_id: str) -> List[LessonSession]:
        return self._select(lambda s: s.instructor_id == instructor_id)

    def list_for_user(self, user_id: str) -> List[LessonSession]:
        return self._select(lambda s: user_id in s.enrolled_user_ids)

    def list_for_class_type(
        self, class_type_id: str, starting_after: Optional[dt.datetime] = None
    ) -> List[LessonSession]:
        cutoff = ensure_utc(starting_after) if starting_after is not None else None
        return self._select(
            lambda s: s.class_type_id == class_type_id
            and (cutoff is None or s.start_time > cutoff)
        )

    def add_enrollment(
        self, session_id: str, user_id: str, credit_used: bool = False
    ) -> Optional[Enrollment]:
        with self.store.transaction():
            session = self.get_by_id(session_id)
            if session is None:
                raise NotFoundException(
                    "Session not found", code="NOT_FOUND", details={"id": session_id}
                )
            if user_id in session.enrolled_user_ids:
                return None
            if session.is_full:
                raise SessionFullException(session_id, session.capacity)
            enrollment = Enrollment(session_id=session_id, user_id=user_id, credit_used=credit_used)
            self._enrollments.append(enrollment.model_dump(mode="json", by_alias=True))
            return enrollment

    def remove_enrollment(self, session_id: str, user_id: str) -> Optional[Enrollment]:
        with self.store.transaction():
            enrollment = self.get_enrollment(session_id, user_id)
            if enrollment is None:
                return None
            self._delete_where(
                STORAGE_KEYS["enrollments"],
                lambda r: r["sessionId"] == session_id and r["userId"] == user_id,
            )
            return enrollment

    def get_enrollment(self, session_id: str, user_id: str) -> Optional[Enrollment]:
        with self.store.lock:
            for record in self._enrollments:
                if record["sessionId"] == session_id and record["userId"] == user_id:
                    return Enrollment.model_validate(record)
        return None

    def list_enrollments(self, session_id: str) -> List[Enrollment]:
        with self.store.lock:
            return [
                Enrollment.model_validate(record)
                for record in self._enrollments
                if record["sessionId"] == session_id
            ]

    def _after_create(self, entity: LessonSession) -> None:
        for user_id in entity.enrolled_user_ids:
            if self.get_enrollment(entity.id, user_id) is None:
                enrollment = Enrollment(session_id=entity.id, user_id=user_id)
                self._enrollments.append(enrollment.model_dump(mode="json", by_alias=True))

    def _before_delete(self, id: str) -> None:
        self._delete_where(STORAGE_KEYS["enrollments"], lambda r: r["sessionId"] == id)


class LocalPurchaseRepository(LocalRepository[Purchase], IPurchaseRepository):
    entity_label = "Purchase"

    def __init__(self, store: "LocalDataStore"):
        super().__init__(store, STORAGE_KEYS["purchases"], Purchase)

    def _sorted(self, items: List[Purchase]) -> List[Purchase]:
        return sorted(items, key=lambda p: (p.date, p.id), reverse=True)

    def list_for_user(self, user_id: str) -> List[Purchase]:
        return self._select(lambda p: p.user_id == user_id)

    def update(self, entity: EntityInput) -> Purchase:
        data = coerce_entity(Purchase, entity)
        raise immutable_purchase_error(data.id)


class LocalAvailabilityRepository(LocalRepository[Availability], IAvailabilityRepository):
    entity_label = "Availability"

    def __init__(self, store: "LocalDataStore"):
        super().__init__(
            store,
            STORAGE_KEYS["availability"],
            Availability,
            sort_key=lambda a: (a.day_of_week, a.start_time, a.id),
        )

    def list_for_instructor(
        self, instructor_id: str, day_of_week: Optional[int] = None
    ) -> List[Availability]:
        return self._select(
            lambda a: a.instructor_id == instructor_id
            and (day_of_week is None or a.day_of_week == day_of_week)
        )


class LocalBlockoutRepository(LocalRepository[Blockout], IBlockoutRepository):
    entity_label = "Blockout"

    def __init__(self, store: "LocalDataStore"):
        super().__init__(
            store,
            STORAGE_KEYS["blockouts"],
            Blockout,
            sort_key=lambda b: (b.date, b.start_time, b.id),
        )

    def list_for_instructor(
        self, instructor_id: str, on_date: Optional[dt.date] = None
    ) -> List[Blockout]:
        return self._select(
            lambda b: b.instructor_id == instructor_id and (on_date is None or b.date == on_date)
        )


class LocalProgressRepository(IProgressRepository):
    def __init__(self, store: "LocalDataStore"):
        self.store = store

    @property
    def _records(self) -> List[Dict[str, Any]]:
        return self.store.data[STORAGE_KEYS["progress"]]

    def list_for_student(self, student_id: str) -> List[StudentProgress]:
        with self.store.lock:
            items = [
                StudentProgress.model_validate(record)
                for record in self._records
                if record["studentId"] == student_id
            ]
        return sorted(items, key=lambda p: p.skill_id)

    def get(self, student_id: str, skill_id: str) -> Optional[StudentProgress]:
        with self.store.lock:
            for record in self._records:
                if record["studentId"] == student_id and record["skillId"] == skill_id:
                    return StudentProgress.model_validate(record)
        return None

    def upsert(self, progress: EntityInput) -> StudentProgress:
        data = coerce_entity(StudentProgress, progress)
        record = data.model_dump(mode="json", by_alias=True)
        with self.store.transaction():
            for index, existing in enumerate(self._records):
                if existing["studentId"] == data.student_id and existing["skillId"] == data.skill_id:
                    self._records[index] = record
                    break
            else:
                self._records.append(record)
        return data


class LocalSettingsRepository(ISettingsRepository):
    def __init__(self, store: "LocalDataStore"):
        self.store = store

    def get(self) -> Optional[SystemSettings]:
        with self.store.lock:
            record = self.store.data[STORAGE_KEYS["settings"]]
        return SystemSettings.model_validate(record) if record is not None else None

    def save(self, settings: EntityInput) -> SystemSettings:
        data = coerce_entity(SystemSettings, settings)
        with self.store.transaction():
            self.store.data[STORAGE_KEYS["settings"]] = data.model_dump(mode="json", by_alias=True)
        return data


class LocalDataStore(DataStore):
    """
    JSON-file backed store.

    Args:
        path: File to load from and persist to; None keeps everything in memory
    """

    backend_name = "local"

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.lock = threading.RLock()
        self._depth = 0
        self._owner: Optional[int] = None
        self.data = self._read_file()

        self.users = LocalUserRepository(self)
        self.class_types = LocalClassTypeRepository(self)
        self.sessions = LocalSessionRepository(self)
        self.packages = LocalPackageRepository(self)
        self.purchases = LocalPurchaseRepository(self)
        self.availability = LocalAvailabilityRepository(self)
        self.blockouts = LocalBlockoutRepository(self)
        self.progress = LocalProgressRepository(self)
        self.settings = LocalSettingsRepository(self)

    @contextmanager
    def transaction(self) -> Iterator["LocalDataStore"]:
        with self.lock:
            outermost = self._depth == 0
            snapshot = copy.deepcopy(self.data) if outermost else None
            self._depth += 1
            self._owner = threading.get_ident()
            try:
                yield self
                if outermost:
                    self._write_file()
            except Exception:
                if outermost:
                    self.data = snapshot
                    logger.debug("Local store unit of work rolled back")
                raise
            finally:
                self._depth -= 1
                if outermost:
                    self._owner = None

    def in_transaction(self) -> bool:
        return self._depth > 0 and self._owner == threading.get_ident()

    def _read_file(self) -> Dict[str, Any]:
        data = _empty_data()
        if self.path is None or not self.path.exists():
            return data
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                stored = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to load local store from %s: %s", self.path, exc)
            raise RepositoryException(f"Failed to load local store: {exc}") from exc
        for key in STORAGE_KEYS.values():
            if key in stored:
                data[key] = stored[key]
        logger.info("Loaded local store from %s", self.path)
        return data

    def _write_file(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(self.data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.error("Failed to save local store to %s: %s", self.path, exc)
            raise RepositoryException(f"Failed to save local store: {exc}") from exc
