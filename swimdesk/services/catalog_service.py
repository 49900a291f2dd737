# swimdesk/services/catalog_service.py
"""
Catalog Service for SwimDesk

Admin management of class types and credit packages. Deleting a class
type first cancels its sessions, refunding enrolled clients.
"""

import logging
from typing import List, Optional

from ..core.exceptions import NotFoundException
from ..repositories.contracts import DataStore
from ..schemas.catalog import ClassType, ClassTypeInput, Package, PackageInput
from .base import BaseService
from .enrollment_service import EnrollmentService
from .query_cache import QueryCache, QueryKeys

logger = logging.getLogger(__name__)


class CatalogService(BaseService):
    """Class types and packages."""

    def __init__(
        self,
        store: DataStore,
        cache: Optional[QueryCache] = None,
        enrollment_service: Optional[EnrollmentService] = None,
    ):
        super().__init__(store, cache)
        self.enrollment_service = enrollment_service or EnrollmentService(store, cache)

    # ==========================================
    # Class types
    # ==========================================

    @BaseService.measure_operation("list_class_types")
    def list_class_types(self) -> List[ClassType]:
        return self.cached_query(QueryKeys.CLASSES, self.store.class_types.list)

    def get_class_type(self, class_type_id: str) -> ClassType:
        class_type = self.store.class_types.get_by_id(class_type_id)
        if class_type is None:
            raise NotFoundException(
                "Class type not found", code="CLASS_TYPE_NOT_FOUND", details={"id": class_type_id}
            )
        return class_type

    @BaseService.measure_operation("create_class_type")
    def create_class_type(self, data: ClassTypeInput) -> ClassType:
        with self.transaction():
            created = self.store.class_types.create(ClassType(**data.model_dump()))
        self.logger.info(f"Created class type {created.id} ({created.name})")
        self.invalidate_cache(QueryKeys.CLASSES)
        return created

    @BaseService.measure_operation("update_class_type")
    def update_class_type(self, class_type_id: str, data: ClassTypeInput) -> ClassType:
        """Replace a class type. Existing sessions keep their times and capacity."""
        with self.transaction():
            updated = self.store.class_types.update(ClassType(id=class_type_id, **data.model_dump()))
        self.invalidate_cache(QueryKeys.CLASSES)
        return updated

    @BaseService.measure_operation("delete_class_type")
    def delete_class_type(self, class_type_id: str) -> bool:
        """
        Delete a class type and cancel its sessions.

        Returns:
            False if the class type did not exist
        """
        if self.store.class_types.get_by_id(class_type_id) is None:
            return False
        sessions = self.store.sessions.list_for_class_type(class_type_id)
        with self.transaction():
            for session in sessions:
                self.enrollment_service.cancel_session_in_transaction(session.id)
            deleted = self.store.class_types.delete(class_type_id)
        self.logger.info(
            f"Deleted class type {class_type_id} and cancelled {len(sessions)} session(s)"
        )
        self.invalidate_cache(QueryKeys.CLASSES)
        if sessions:
            self.enrollment_service.invalidate_after_session_removed()
        return deleted

    # ==========================================
    # Packages
    # ==========================================

    @BaseService.measure_operation("list_packages")
    def list_packages(self) -> List[Package]:
        return self.cached_query(QueryKeys.PACKAGES, self.store.packages.list)

    def get_package(self, package_id: str) -> Package:
        package = self.store.packages.get_by_id(package_id)
        if package is None:
            raise NotFoundException(
                "Package not found", code="PACKAGE_NOT_FOUND", details={"id": package_id}
            )
        return package

    @BaseService.measure_operation("create_package")
    def create_package(self, data: PackageInput) -> Package:
        with self.transaction():
            created = self.store.packages.create(Package(**data.model_dump()))
        self.logger.info(f"Created package {created.id} ({created.credits} credits)")
        self.invalidate_cache(QueryKeys.PACKAGES)
        return created

    @BaseService.measure_operation("update_package")
    def update_package(self, package_id: str, data: PackageInput) -> Package:
        """Replace a package. Past purchases keep the credits and price they were sold at."""
        with self.transaction():
            updated = self.store.packages.update(Package(id=package_id, **data.model_dump()))
        self.invalidate_cache(QueryKeys.PACKAGES)
        return updated

    @BaseService.measure_operation("delete_package")
    def delete_package(self, package_id: str) -> bool:
        with self.transaction():
            deleted = self.store.packages.delete(package_id)
        if deleted:
            self.invalidate_cache(QueryKeys.PACKAGES, QueryKeys.PURCHASES)
            self.invalidate_pattern(QueryKeys.all_users())
        return deleted
