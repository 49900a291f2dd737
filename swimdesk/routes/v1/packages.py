# swimdesk/routes/v1/packages.py
"""
Package and purchase routes - API v1

Endpoints:
    GET    /packages               → List packages
    POST   /packages               → Create a package (admin)
    PUT    /packages/{package_id}  → Replace a package (admin)
    DELETE /packages/{package_id}  → Delete a package (admin)
    POST   /purchases              → Buy a package
    GET    /purchases              → Purchase history (all for admins, own otherwise)
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import (
    ensure_self_or_roles,
    get_catalog_service,
    get_credit_service,
    get_current_user,
    require_roles,
)
from ...core.enums import UserRole
from ...schemas.catalog import Package, PackageInput
from ...schemas.purchase import Purchase, PurchaseRequest, PurchaseResult
from ...schemas.user import User
from ...services.catalog_service import CatalogService
from ...services.credit_service import CreditService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["packages-v1"])

admin_only = require_roles(UserRole.ADMIN)


@router.get("/packages", response_model=List[Package])
async def list_packages(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[Package]:
    return await asyncio.to_thread(catalog_service.list_packages)


@router.post(
    "/packages",
    response_model=Package,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(admin_only)],
)
async def create_package(
    payload: PackageInput, catalog_service: CatalogService = Depends(get_catalog_service)
) -> Package:
    return await asyncio.to_thread(catalog_service.create_package, payload)


@router.put("/packages/{package_id}", response_model=Package, dependencies=[Depends(admin_only)])
async def update_package(
    package_id: str,
    payload: PackageInput,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> Package:
    return await asyncio.to_thread(catalog_service.update_package, package_id, payload)


@router.delete(
    "/packages/{package_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(admin_only)],
)
async def delete_package(
    package_id: str, catalog_service: CatalogService = Depends(get_catalog_service)
) -> Response:
    await asyncio.to_thread(catalog_service.delete_package, package_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/purchases", response_model=PurchaseResult, status_code=status.HTTP_201_CREATED)
async def purchase_package(
    payload: PurchaseRequest,
    current_user: User = Depends(get_current_user),
    credit_service: CreditService = Depends(get_credit_service),
) -> PurchaseResult:
    """
    Buy a package. Admins may record a purchase for any user.

    Returns:
        The purchase and the buyer's new credit balance
    """
    user_id = payload.user_id or current_user.id
    ensure_self_or_roles(current_user, user_id, UserRole.ADMIN)
    purchase, balance = await asyncio.to_thread(
        credit_service.purchase_package, user_id, payload.package_id
    )
    return PurchaseResult(purchase=purchase, package_credits=balance)


@router.get("/purchases", response_model=List[Purchase])
async def list_purchases(
    current_user: User = Depends(get_current_user),
    credit_service: CreditService = Depends(get_credit_service),
) -> List[Purchase]:
    if UserRole(current_user.role) == UserRole.ADMIN:
        return await asyncio.to_thread(credit_service.list_purchases)
    return await asyncio.to_thread(credit_service.list_purchases, current_user.id)
