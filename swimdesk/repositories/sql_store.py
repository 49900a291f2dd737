# swimdesk/repositories/sql_store.py
"""
Relational DataStore.

One instance wraps one SQLAlchemy session and is used by one request; the
engine and session factory are shared process-wide.
"""

from contextlib import contextmanager
import logging
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database import unit_of_work
from .catalog_repository import ClassTypeRepository, PackageRepository
from .contracts import DataStore
from .progress_repository import ProgressRepository, SettingsRepository
from .purchase_repository import PurchaseRepository
from .schedule_repository import AvailabilityRepository, BlockoutRepository
from .session_repository import SessionRepository
from .user_repository import UserRepository

logger = logging.getLogger(__name__)


class SqlDataStore(DataStore):
    backend_name = "sql"

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.class_types = ClassTypeRepository(db)
        self.sessions = SessionRepository(db)
        self.packages = PackageRepository(db)
        self.purchases = PurchaseRepository(db)
        self.availability = AvailabilityRepository(db)
        self.blockouts = BlockoutRepository(db)
        self.progress = ProgressRepository(db)
        self.settings = SettingsRepository(db)

    @contextmanager
    def transaction(self) -> Iterator["SqlDataStore"]:
        try:
            with unit_of_work(self.db):
                yield self
        except SQLAlchemyError as exc:
            raise RepositoryException(f"Transaction failed: {exc}") from exc

    def in_transaction(self) -> bool:
        # Reads autobegin, so this also covers locks taken outside unit_of_work
        return self.db.in_transaction()

    def close(self) -> None:
        self.db.close()
