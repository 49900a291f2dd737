# swimdesk/repositories/user_repository.py
"""
User Repository for the SQL backend

Profiles live in the ``profiles`` table. Credits are only ever changed by a
single conditional UPDATE, so concurrent debits can never drive a balance
negative.
"""

import logging
from typing import Optional

from sqlalchemy import delete as sa_delete, func, update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import (
    ConflictException,
    InsufficientCreditsException,
    NotFoundException,
    RepositoryException,
)
from ..models.availability import AvailabilityModel, BlockoutModel
from ..models.progress import StudentProgressModel
from ..models.purchase import PurchaseModel
from ..models.session import EnrollmentModel
from ..models.user import Profile
from ..schemas.user import User
from .base_repository import BaseRepository
from .contracts import IUserRepository
from .mappers import USER_RENAMES, RowMapper

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User], IUserRepository):
    entity_label = "User"
    preserved_columns = ("package_credits",)

    def __init__(self, db: Session):
        super().__init__(db, Profile, RowMapper(User, USER_RENAMES))

    # ==========================================
    # Lookups
    # ==========================================

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._find_row_by_email(email)
        return self._to_entity(row) if row is not None else None

    def get_password_hash(self, user_id: str) -> Optional[str]:
        row = self._get_row(user_id)
        return row.hashed_password if row is not None else None

    # ==========================================
    # Credits
    # ==========================================

    def increment_credits(self, user_id: str, delta: int) -> int:
        """
        Add ``delta`` to the balance in one statement.

        The WHERE clause refuses the update when the result would be
        negative; a zero rowcount then tells us which of the two failures
        happened.
        """
        stmt = (
            sa_update(Profile)
            .where(Profile.id == user_id)
            .where(Profile.package_credits + delta >= 0)
            .values(package_credits=Profile.package_credits + delta)
            .execution_options(synchronize_session="fetch")
        )
        try:
            with self.transaction():
                result = self.db.execute(stmt)
                if result.rowcount == 0:
                    row = self._get_row(user_id)
                    if row is None:
                        raise NotFoundException(
                            "User not found", code="NOT_FOUND", details={"id": user_id}
                        )
                    raise InsufficientCreditsException(user_id, row.package_credits, -delta)
                balance = self._execute_scalar(
                    self.db.query(Profile.package_credits).filter(Profile.id == user_id)
                )
        except SQLAlchemyError as exc:
            self.logger.error("Error adjusting credits for %s: %s", user_id, exc)
            raise RepositoryException(f"Failed to adjust credits: {exc}") from exc
        self.logger.info("Credits for user %s adjusted by %+d to %d", user_id, delta, balance)
        return int(balance)

    def set_password_hash(self, user_id: str, hashed_password: str) -> None:
        try:
            with self.transaction():
                result = self.db.execute(
                    sa_update(Profile)
                    .where(Profile.id == user_id)
                    .values(hashed_password=hashed_password)
                    .execution_options(synchronize_session="fetch")
                )
                if result.rowcount == 0:
                    raise NotFoundException(
                        "User not found", code="NOT_FOUND", details={"id": user_id}
                    )
        except SQLAlchemyError as exc:
            self.logger.error("Error storing password for %s: %s", user_id, exc)
            raise RepositoryException(f"Failed to store password: {exc}") from exc

    # ==========================================
    # Hooks
    # ==========================================

    def _before_write(self, entity: User, existing_id: Optional[str]) -> None:
        row = self._find_row_by_email(entity.email)
        if row is not None and row.id != existing_id:
            raise ConflictException(
                "A user with this email already exists",
                code="EMAIL_TAKEN",
                details={"email": entity.email},
            )

    def _before_delete(self, row: Profile) -> None:
        # Explicit so the cascade does not depend on the driver enforcing FKs
        for model, column in (
            (EnrollmentModel, EnrollmentModel.user_id),
            (AvailabilityModel, AvailabilityModel.instructor_id),
            (BlockoutModel, BlockoutModel.instructor_id),
            (StudentProgressModel, StudentProgressModel.student_id),
            (PurchaseModel, PurchaseModel.user_id),
        ):
            self.db.execute(
                sa_delete(model).where(column == row.id).execution_options(synchronize_session="fetch")
            )

    def delete(self, id: str) -> bool:
        deleted = super().delete(id)
        if deleted:
            # Loaded session rows may still hold the removed enrollments
            self.db.expire_all()
        return deleted

    def _find_row_by_email(self, email: str) -> Optional[Profile]:
        try:
            return (
                self.db.query(Profile)
                .filter(func.lower(Profile.email) == email.strip().lower())
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting user by email {email}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve user: {str(e)}")
