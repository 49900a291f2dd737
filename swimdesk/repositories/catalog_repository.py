# swimdesk/repositories/catalog_repository.py
"""
Catalogue repositories for the SQL backend: class types and packages.
"""

import logging

from sqlalchemy import update as sa_update
from sqlalchemy.orm import Session

from ..models.catalog import ClassTypeModel, PackageModel
from ..models.purchase import PurchaseModel
from ..schemas.catalog import ClassType, Package
from .base_repository import BaseRepository
from .contracts import IClassTypeRepository, IPackageRepository
from .mappers import CLASS_TYPE_RENAMES, RowMapper

logger = logging.getLogger(__name__)


class ClassTypeRepository(BaseRepository[ClassType], IClassTypeRepository):
    entity_label = "Class type"

    def __init__(self, db: Session):
        super().__init__(db, ClassTypeModel, RowMapper(ClassType, CLASS_TYPE_RENAMES))

    def _build_query(self):
        return self.db.query(ClassTypeModel).order_by(ClassTypeModel.name, ClassTypeModel.id)


class PackageRepository(BaseRepository[Package], IPackageRepository):
    entity_label = "Package"

    def __init__(self, db: Session):
        super().__init__(db, PackageModel, RowMapper(Package))

    def _build_query(self):
        return self.db.query(PackageModel).order_by(PackageModel.price, PackageModel.id)

    def _before_delete(self, row: PackageModel) -> None:
        # Purchase history outlives the package
        self.db.execute(
            sa_update(PurchaseModel)
            .where(PurchaseModel.package_id == row.id)
            .values(package_id=None)
            .execution_options(synchronize_session="fetch")
        )
