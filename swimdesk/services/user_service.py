# swimdesk/services/user_service.py
"""
User Service for SwimDesk

Admin user management and the client dashboard. Deleting an instructor
cancels (with refunds) the sessions they teach before the profile goes.
"""

import logging
from typing import List, Optional

from ..auth import get_password_hash
from ..core.enums import UserRole
from ..core.exceptions import NotFoundException
from ..repositories.contracts import DataStore
from ..schemas.user import ClientDashboard, User, UserCreate, UserUpdate
from .base import BaseService
from .enrollment_service import EnrollmentService
from .query_cache import QueryCache, QueryKeys

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """Profiles, roles and credit balances as an admin sees them."""

    def __init__(
        self,
        store: DataStore,
        cache: Optional[QueryCache] = None,
        enrollment_service: Optional[EnrollmentService] = None,
    ):
        super().__init__(store, cache)
        self.enrollment_service = enrollment_service or EnrollmentService(store, cache)

    @BaseService.measure_operation("list_users")
    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        users = self.cached_query(QueryKeys.USERS, self.store.users.list)
        if role is None:
            return users
        return [user for user in users if UserRole(user.role) == role]

    def list_instructors(self) -> List[User]:
        return self.list_users(UserRole.INSTRUCTOR)

    def get_user(self, user_id: str) -> User:
        user = self.store.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND", details={"id": user_id})
        return user

    @BaseService.measure_operation("create_user")
    def create_user(self, data: UserCreate) -> User:
        """
        Create a profile with a password.

        Raises:
            ConflictException: If the email is already registered
        """
        user = User(**data.model_dump(exclude={"password"}))
        with self.transaction():
            created = self.store.users.create(user)
            self.store.users.set_password_hash(created.id, get_password_hash(data.password))
        self.logger.info(f"Created {created.role} user {created.id}")
        self.invalidate_cache(QueryKeys.USERS)
        return created

    @BaseService.measure_operation("update_user")
    def update_user(self, user_id: str, data: UserUpdate) -> User:
        """
        Apply the provided fields; omitted fields keep their values.

        The profile is read under a row lock and the stored balance is never
        written back from it. A ``package_credits`` value is applied as a
        delta against the locked balance, so purchases and bookings that
        commit around the edit are not lost.
        """
        changes = data.model_dump(exclude_unset=True)
        credits = changes.pop("package_credits", None)
        with self.transaction():
            current = self.store.users.get_for_update(user_id)
            if current is None:
                raise NotFoundException(
                    "User not found", code="USER_NOT_FOUND", details={"id": user_id}
                )
            saved = self.store.users.update(User.model_validate({**current.model_dump(), **changes}))
            if credits is not None and credits != saved.package_credits:
                delta = credits - saved.package_credits
                balance = self.store.users.increment_credits(user_id, delta)
                saved = saved.model_copy(update={"package_credits": balance})
                self.logger.info(f"Admin set credits for user {user_id} to {credits} ({delta:+d})")
        self.invalidate_cache(QueryKeys.USERS, QueryKeys.user(user_id))
        self.invalidate_pattern(QueryKeys.user(user_id, "*"))
        return saved

    @BaseService.measure_operation("delete_user")
    def delete_user(self, user_id: str) -> bool:
        """
        Delete a user and everything that belongs to them.

        Sessions they teach are cancelled first so their clients get refunds.

        Returns:
            False if the user did not exist
        """
        if self.store.users.get_by_id(user_id) is None:
            return False
        taught = self.store.sessions.list_for_instructor(user_id)
        with self.transaction():
            for session in taught:
                self.enrollment_service.cancel_session_in_transaction(session.id)
            deleted = self.store.users.delete(user_id)
        self.logger.info(f"Deleted user {user_id} ({len(taught)} taught session(s) cancelled)")
        self.invalidate_cache(QueryKeys.USERS, QueryKeys.SESSIONS, QueryKeys.PURCHASES)
        self.invalidate_pattern(QueryKeys.all_users())
        self.invalidate_pattern(QueryKeys.all_instructors())
        return deleted

    @BaseService.measure_operation("client_dashboard")
    def client_dashboard(self, user_id: str) -> ClientDashboard:
        user = self.get_user(user_id)
        return ClientDashboard(
            user=user,
            sessions=self.cached_query(
                QueryKeys.user(user_id, "sessions"),
                lambda: self.store.sessions.list_for_user(user_id),
            ),
            purchases=self.cached_query(
                QueryKeys.user(user_id, "purchases"),
                lambda: self.store.purchases.list_for_user(user_id),
            ),
        )
