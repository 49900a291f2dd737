# swimdesk/routes/v1/bookings.py
"""
Booking wizard routes - API v1

A client walks through class → session → (package) → confirm. Each call
returns the updated wizard state; ``step`` tells the front-end which screen
to show next.

Endpoints:
    POST   /                       → Start a booking
    GET    /{wizard_id}            → Current state
    POST   /{wizard_id}/class      → Choose a class type
    POST   /{wizard_id}/session    → Choose a session
    POST   /{wizard_id}/package    → Choose a package or pay per lesson
    POST   /{wizard_id}/back       → Return to the previous step
    POST   /{wizard_id}/confirm    → Commit the booking
    DELETE /{wizard_id}            → Abandon the booking
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import get_booking_service, get_current_user
from ...schemas.booking import (
    SelectClassRequest,
    SelectPackageRequest,
    SelectSessionRequest,
    StartWizardRequest,
    WizardState,
)
from ...schemas.user import User
from ...services.booking_service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])


@router.post("", response_model=WizardState, status_code=status.HTTP_201_CREATED)
async def start_booking(
    payload: StartWizardRequest,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    return await asyncio.to_thread(booking_service.start, current_user.id, payload.class_type_id)


@router.get("/{wizard_id}", response_model=WizardState)
async def get_booking(
    wizard_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    return await asyncio.to_thread(booking_service.get_state, wizard_id, current_user.id)


@router.post("/{wizard_id}/class", response_model=WizardState)
async def select_class(
    wizard_id: str,
    payload: SelectClassRequest,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    return await asyncio.to_thread(
        booking_service.select_class, wizard_id, current_user.id, payload.class_type_id
    )


@router.post("/{wizard_id}/session", response_model=WizardState)
async def select_session(
    wizard_id: str,
    payload: SelectSessionRequest,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    return await asyncio.to_thread(
        booking_service.select_session, wizard_id, current_user.id, payload.session_id
    )


@router.post("/{wizard_id}/package", response_model=WizardState)
async def select_package(
    wizard_id: str,
    payload: SelectPackageRequest,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    return await asyncio.to_thread(
        booking_service.select_package,
        wizard_id,
        current_user.id,
        payload.package_id,
        payload.pay_per_lesson,
    )


@router.post("/{wizard_id}/back", response_model=WizardState)
async def go_back(
    wizard_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    return await asyncio.to_thread(booking_service.back, wizard_id, current_user.id)


@router.post("/{wizard_id}/confirm", response_model=WizardState)
async def confirm_booking(
    wizard_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> WizardState:
    """
    Commit the booking.

    On failure the error response carries the reason and the wizard keeps
    it in ``lastError`` while staying at CONFIRM.
    """
    return await asyncio.to_thread(booking_service.confirm, wizard_id, current_user.id)


@router.delete("/{wizard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_booking(
    wizard_id: str,
    current_user: User = Depends(get_current_user),
    booking_service: BookingService = Depends(get_booking_service),
) -> Response:
    await asyncio.to_thread(booking_service.abandon, wizard_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
