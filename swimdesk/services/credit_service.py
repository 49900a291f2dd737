# swimdesk/services/credit_service.py
"""
Credit Service for SwimDesk

Package purchases and the purchase ledger. Buying a package records an
immutable Purchase and adds the package's credits to the buyer's balance
through the atomic increment primitive, both in one unit of work.
"""

import logging
from typing import List, Optional, Tuple

from ..core.exceptions import NotFoundException
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..schemas.purchase import Purchase
from .base import BaseService
from .query_cache import QueryKeys

logger = logging.getLogger(__name__)


class CreditService(BaseService):
    """Service layer for package purchases and credit balances."""

    @BaseService.measure_operation("purchase_package")
    def purchase_package(self, user_id: str, package_id: str) -> Tuple[Purchase, int]:
        """
        Buy a package for a user.

        Joins the caller's transaction when one is open, so the booking wizard
        can commit a purchase and an enrollment together.

        Returns:
            The recorded purchase and the user's new credit balance

        Raises:
            NotFoundException: If the user or package does not exist
        """
        with self.transaction():
            purchase, balance = self.record_purchase(user_id, package_id)
        self.invalidate_after_purchase(user_id)
        return purchase, balance

    def record_purchase(self, user_id: str, package_id: str) -> Tuple[Purchase, int]:
        """Purchase writes without cache invalidation; callers own the transaction."""
        if self.store.users.get_by_id(user_id) is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND", details={"id": user_id})
        package = self.store.packages.get_by_id(package_id)
        if package is None:
            raise NotFoundException(
                "Package not found", code="PACKAGE_NOT_FOUND", details={"id": package_id}
            )

        with self.transaction():
            purchase = self.store.purchases.create(
                Purchase(
                    user_id=user_id,
                    package_id=package.id,
                    package_name=package.name,
                    credits=package.credits,
                    price=package.price,
                )
            )
            balance = self.store.users.increment_credits(user_id, package.credits)

        prometheus_metrics.inc_package_purchased()
        self.logger.info(
            f"User {user_id} bought package {package.id} (+{package.credits} credits, balance {balance})"
        )
        return purchase, balance

    def invalidate_after_purchase(self, user_id: str) -> None:
        self.invalidate_cache(QueryKeys.USERS, QueryKeys.PURCHASES)
        self.invalidate_pattern(QueryKeys.user(user_id, "*"))
        self.invalidate_cache(QueryKeys.user(user_id))

    @BaseService.measure_operation("get_balance")
    def get_balance(self, user_id: str) -> int:
        user = self.store.users.get_by_id(user_id)
        if user is None:
            raise NotFoundException("User not found", code="USER_NOT_FOUND", details={"id": user_id})
        return user.package_credits

    @BaseService.measure_operation("list_purchases")
    def list_purchases(self, user_id: Optional[str] = None) -> List[Purchase]:
        """Purchase history, newest first. Without a user id, every purchase."""
        if user_id is None:
            return self.cached_query(QueryKeys.PURCHASES, self.store.purchases.list)
        return self.cached_query(
            QueryKeys.user(user_id, "purchases"),
            lambda: self.store.purchases.list_for_user(user_id),
        )
