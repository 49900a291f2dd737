# swimdesk/routes/v1/instructors.py
"""
Instructor calendar routes - API v1

Instructors manage their own availability and blockouts; admins manage
everyone's. Reading an instructor's calendar is open to any signed-in user.

Endpoints:
    GET    /{instructor_id}/availability                    → Weekly windows
    POST   /{instructor_id}/availability                    → Add a window
    DELETE /{instructor_id}/availability/{availability_id}  → Remove a window
    GET    /{instructor_id}/blockouts                       → Dated blockouts
    POST   /{instructor_id}/blockouts                       → Add a blockout
    DELETE /{instructor_id}/blockouts/{blockout_id}         → Remove a blockout
    GET    /{instructor_id}/schedule                        → Availability, blockouts and sessions
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import (
    ensure_instructor_access,
    get_availability_service,
    get_current_user,
)
from ...schemas.availability import (
    Availability,
    AvailabilityInput,
    Blockout,
    BlockoutInput,
    InstructorSchedule,
)
from ...schemas.user import User
from ...services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["instructors-v1"])


@router.get("/{instructor_id}/availability", response_model=List[Availability])
async def list_availability(
    instructor_id: str,
    _: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[Availability]:
    return await asyncio.to_thread(availability_service.list_availability, instructor_id)


@router.post(
    "/{instructor_id}/availability",
    response_model=Availability,
    status_code=status.HTTP_201_CREATED,
)
async def add_availability(
    instructor_id: str,
    payload: AvailabilityInput,
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Availability:
    ensure_instructor_access(current_user, instructor_id)
    return await asyncio.to_thread(availability_service.add_availability, instructor_id, payload)


@router.delete(
    "/{instructor_id}/availability/{availability_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_availability(
    instructor_id: str,
    availability_id: str,
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    ensure_instructor_access(current_user, instructor_id)
    await asyncio.to_thread(
        availability_service.delete_availability, instructor_id, availability_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{instructor_id}/blockouts", response_model=List[Blockout])
async def list_blockouts(
    instructor_id: str,
    _: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[Blockout]:
    return await asyncio.to_thread(availability_service.list_blockouts, instructor_id)


@router.post(
    "/{instructor_id}/blockouts",
    response_model=Blockout,
    status_code=status.HTTP_201_CREATED,
)
async def add_blockout(
    instructor_id: str,
    payload: BlockoutInput,
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Blockout:
    ensure_instructor_access(current_user, instructor_id)
    return await asyncio.to_thread(availability_service.add_blockout, instructor_id, payload)


@router.delete("/{instructor_id}/blockouts/{blockout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blockout(
    instructor_id: str,
    blockout_id: str,
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> Response:
    ensure_instructor_access(current_user, instructor_id)
    await asyncio.to_thread(availability_service.delete_blockout, instructor_id, blockout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{instructor_id}/schedule", response_model=InstructorSchedule)
async def instructor_schedule(
    instructor_id: str,
    _: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> InstructorSchedule:
    return await asyncio.to_thread(availability_service.instructor_schedule, instructor_id)
