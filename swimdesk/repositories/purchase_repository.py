# swimdesk/repositories/purchase_repository.py
"""
Purchase Repository for the SQL backend

Purchases are append-only: ``update`` is refused.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import ConflictException
from ..models.purchase import PurchaseModel
from ..schemas.purchase import Purchase
from .base_repository import BaseRepository
from .contracts import EntityInput, IPurchaseRepository
from .mappers import PURCHASE_RENAMES, RowMapper, coerce_entity

logger = logging.getLogger(__name__)


def immutable_purchase_error(purchase_id: str) -> ConflictException:
    return ConflictException(
        "Purchases cannot be modified once recorded",
        code="PURCHASE_IMMUTABLE",
        details={"id": purchase_id},
    )


class PurchaseRepository(BaseRepository[Purchase], IPurchaseRepository):
    entity_label = "Purchase"

    def __init__(self, db: Session):
        super().__init__(db, PurchaseModel, RowMapper(Purchase, PURCHASE_RENAMES))

    def _build_query(self):
        return self.db.query(PurchaseModel).order_by(
            PurchaseModel.purchase_date.desc(), PurchaseModel.id.desc()
        )

    def list_for_user(self, user_id: str) -> List[Purchase]:
        query = self._build_query().filter(PurchaseModel.user_id == user_id)
        return [self._to_entity(row) for row in self._execute_query(query)]

    def update(self, entity: EntityInput) -> Purchase:
        data = coerce_entity(Purchase, entity)
        raise immutable_purchase_error(data.id)
