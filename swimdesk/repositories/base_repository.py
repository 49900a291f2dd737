# swimdesk/repositories/base_repository.py
"""
Base Repository Pattern for the SQL backend

Provides the foundation for all SQL repository classes with:
- Common CRUD operations over entity shapes
- Type safety with generics
- Unit-of-work handling that joins an outer DataStore transaction
- Error translation (integrity -> ConflictException, driver -> RepositoryException)

Repositories accept and return pydantic entities, never ORM rows, so the
rest of the application is independent of the storage backend.
"""

from contextlib import contextmanager
import logging
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import ConflictException, NotFoundException, RepositoryException
from ..database import unit_of_work
from .contracts import EntityInput, IRepository
from .mappers import RowMapper, coerce_entity

T = TypeVar("T", bound=BaseModel)

logger = logging.getLogger(__name__)


class BaseRepository(IRepository[T], Generic[T]):
    """
    Concrete base repository implementation with common data access patterns.

    Attributes:
        db: SQLAlchemy session owned by the DataStore
        model: SQLAlchemy model class
        mapper: Row <-> entity translation
    """

    entity_label: str = "Entity"
    # Columns that update() leaves as stored
    preserved_columns: tuple = ()

    def __init__(self, db: Session, model: Type[Any], mapper: RowMapper):
        self.db = db
        self.model = model
        self.mapper = mapper
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Join the open unit of work, or open (and commit) a new one."""
        with unit_of_work(self.db) as db:
            yield db

    # Reads

    def list(self) -> List[T]:
        rows = self._execute_query(self._build_query())
        return [self._to_entity(row) for row in rows]

    def get_by_id(self, id: str) -> Optional[T]:
        row = self._get_row(id)
        return self._to_entity(row) if row is not None else None

    def get_for_update(self, id: str) -> Optional[T]:
        row = self._get_row(id, for_update=True)
        return self._to_entity(row) if row is not None else None

    # Writes

    def create(self, entity: EntityInput) -> T:
        """
        Create a new entity.

        Commits immediately unless called inside an outer transaction.
        """
        data = coerce_entity(self.mapper.entity_cls, entity)
        self._before_write(data, existing_id=None)
        try:
            with self.transaction():
                row = self.model(**self.mapper.to_columns(data))
                self.db.add(row)
                self.db.flush()
                self._after_create(row, data)
                result = self._to_entity(row)
        except IntegrityError as exc:
            self.logger.error("Integrity error creating %s: %s", self.model.__name__, exc)
            raise ConflictException(
                f"{self.entity_label} conflicts with existing data",
                code="INTEGRITY_CONFLICT",
                details={"id": data.id},
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Error creating %s: %s", self.model.__name__, exc)
            raise RepositoryException(f"Failed to create {self.model.__name__}: {exc}") from exc
        return result

    def update(self, entity: EntityInput) -> T:
        """Replace every field of an existing entity except ``preserved_columns``."""
        data = coerce_entity(self.mapper.entity_cls, entity)
        self._before_write(data, existing_id=data.id)
        try:
            with self.transaction():
                row = self._get_row(data.id, for_update=True)
                if row is None:
                    raise NotFoundException(
                        f"{self.entity_label} not found",
                        code="NOT_FOUND",
                        details={"id": data.id},
                    )
                for column, value in self.mapper.to_columns(data).items():
                    if column in self.preserved_columns:
                        continue
                    setattr(row, column, value)
                self.db.flush()
                self._after_update(row, data)
                result = self._to_entity(row)
        except IntegrityError as exc:
            self.logger.error("Integrity error updating %s %s: %s", self.model.__name__, data.id, exc)
            raise ConflictException(
                f"{self.entity_label} conflicts with existing data",
                code="INTEGRITY_CONFLICT",
                details={"id": data.id},
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Error updating %s %s: %s", self.model.__name__, data.id, exc)
            raise RepositoryException(f"Failed to update {self.model.__name__}: {exc}") from exc
        return result

    def delete(self, id: str) -> bool:
        """
        Delete an entity by its primary key.

        Returns False if entity not found.
        """
        try:
            with self.transaction():
                row = self._get_row(id)
                if row is None:
                    return False
                self._before_delete(row)
                self.db.delete(row)
                self.db.flush()
        except IntegrityError as exc:
            self.logger.error(
                f"Cannot delete {self.model.__name__} {id} due to constraints: {str(exc)}"
            )
            raise ConflictException(
                f"{self.entity_label} is still referenced",
                code="INTEGRITY_CONFLICT",
                details={"id": id},
            ) from exc
        except SQLAlchemyError as exc:
            self.logger.error("Error deleting %s %s: %s", self.model.__name__, id, exc)
            raise RepositoryException(f"Failed to delete {self.model.__name__}: {exc}") from exc
        return True

    # Hooks for subclasses

    def _before_write(self, entity: T, existing_id: Optional[str]) -> None:
        """Check constraints that deserve a clearer error than an IntegrityError."""

    def _after_create(self, row: Any, entity: T) -> None:
        pass

    def _after_update(self, row: Any, entity: T) -> None:
        pass

    def _before_delete(self, row: Any) -> None:
        pass

    def _to_entity(self, row: Any) -> T:
        return self.mapper.to_entity(row)

    # Protected helper methods for use by subclasses

    def _get_row(self, id: str, for_update: bool = False) -> Optional[Any]:
        try:
            query = self.db.query(self.model).filter(self.model.id == id)
            if for_update:
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def _build_query(self) -> Query:
        """Get base query for the model."""
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[Any]:
        """Execute query with error handling."""
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query execution error: {str(e)}")
            raise RepositoryException(f"Query failed: {str(e)}")

    def _execute_scalar(self, query: Query) -> Any:
        """Execute scalar query with error handling."""
        try:
            return query.scalar()
        except SQLAlchemyError as e:
            self.logger.error(f"Scalar query error: {str(e)}")
            raise RepositoryException(f"Scalar query failed: {str(e)}")
