# swimdesk/routes/v1/classes.py
"""
Class type routes - API v1

Endpoints:
    GET    /                                → List class types
    POST   /                                → Create a class type (admin)
    GET    /{class_type_id}                 → One class type
    PUT    /{class_type_id}                 → Replace a class type (admin)
    DELETE /{class_type_id}                 → Delete it and cancel its sessions (admin)
    GET    /{class_type_id}/bookable-sessions → Future sessions with free seats
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import (
    get_catalog_service,
    get_current_user,
    get_scheduling_service,
    require_roles,
)
from ...core.enums import UserRole
from ...schemas.catalog import ClassType, ClassTypeInput
from ...schemas.session import LessonSession
from ...schemas.user import User
from ...services.catalog_service import CatalogService
from ...services.scheduling_service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["classes-v1"])

admin_only = require_roles(UserRole.ADMIN)


@router.get("", response_model=List[ClassType])
async def list_class_types(
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> List[ClassType]:
    return await asyncio.to_thread(catalog_service.list_class_types)


@router.post(
    "",
    response_model=ClassType,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(admin_only)],
)
async def create_class_type(
    payload: ClassTypeInput, catalog_service: CatalogService = Depends(get_catalog_service)
) -> ClassType:
    return await asyncio.to_thread(catalog_service.create_class_type, payload)


@router.get("/{class_type_id}", response_model=ClassType)
async def get_class_type(
    class_type_id: str, catalog_service: CatalogService = Depends(get_catalog_service)
) -> ClassType:
    return await asyncio.to_thread(catalog_service.get_class_type, class_type_id)


@router.put("/{class_type_id}", response_model=ClassType, dependencies=[Depends(admin_only)])
async def update_class_type(
    class_type_id: str,
    payload: ClassTypeInput,
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ClassType:
    return await asyncio.to_thread(catalog_service.update_class_type, class_type_id, payload)


@router.delete(
    "/{class_type_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(admin_only)],
)
async def delete_class_type(
    class_type_id: str, catalog_service: CatalogService = Depends(get_catalog_service)
) -> Response:
    await asyncio.to_thread(catalog_service.delete_class_type, class_type_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{class_type_id}/bookable-sessions", response_model=List[LessonSession])
async def list_bookable_sessions(
    class_type_id: str,
    _: User = Depends(get_current_user),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
) -> List[LessonSession]:
    return await asyncio.to_thread(scheduling_service.list_bookable, class_type_id)
