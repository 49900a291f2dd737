# swimdesk/routes/v1/sessions.py
"""
Lesson session routes - API v1

Endpoints:
    GET    /                                   → List sessions
    POST   /                                   → Schedule a session (staff)
    POST   /series                             → Schedule a weekly series (staff)
    GET    /{session_id}                       → One session
    PUT    /{session_id}                       → Move or resize a session (staff)
    DELETE /{session_id}                       → Cancel a session, refunding clients (staff)
    POST   /{session_id}/enroll                → Book a seat
    DELETE /{session_id}/enrollments/{user_id} → Give up a seat
    GET    /{session_id}/enrollments           → Roster with payment details (staff)

Instructors may only schedule, move and cancel their own sessions.
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import (
    STAFF_ROLES,
    ensure_instructor_access,
    ensure_self_or_roles,
    get_current_user,
    get_enrollment_service,
    get_scheduling_service,
    require_roles,
)
from ...schemas.session import (
    CancellationResult,
    Enrollment,
    EnrollRequest,
    LessonSession,
    ScheduleSessionRequest,
    SeriesRequest,
    SeriesResponse,
)
from ...schemas.user import User
from ...services.enrollment_service import EnrollmentService
from ...services.scheduling_service import SchedulingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions-v1"])

staff_only = require_roles(*STAFF_ROLES)


@router.get("", response_model=List[LessonSession])
async def list_sessions(
    _: User = Depends(get_current_user),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
) -> List[LessonSession]:
    return await asyncio.to_thread(scheduling_service.list_sessions)


@router.post("", response_model=LessonSession, status_code=status.HTTP_201_CREATED)
async def schedule_session(
    payload: ScheduleSessionRequest,
    current_user: User = Depends(staff_only),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
) -> LessonSession:
    """
    Schedule a session.

    Raises:
        BlockedTimeException: The instructor blocked out this time (409)
        UnavailableWarning: Outside availability; resend with
            ``overrideUnavailable`` to confirm (422)
    """
    ensure_instructor_access(current_user, payload.instructor_id)
    return await asyncio.to_thread(scheduling_service.schedule_session, payload)


@router.post("/series", response_model=SeriesResponse, status_code=status.HTTP_201_CREATED)
async def schedule_series(
    payload: SeriesRequest,
    current_user: User = Depends(staff_only),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
) -> SeriesResponse:
    ensure_instructor_access(current_user, payload.instructor_id)
    return await asyncio.to_thread(scheduling_service.schedule_weekly_series, payload)


@router.get("/{session_id}", response_model=LessonSession)
async def get_session(
    session_id: str,
    _: User = Depends(get_current_user),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
) -> LessonSession:
    return await asyncio.to_thread(scheduling_service.get_session, session_id)


@router.put("/{session_id}", response_model=LessonSession)
async def reschedule_session(
    session_id: str,
    payload: ScheduleSessionRequest,
    current_user: User = Depends(staff_only),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
) -> LessonSession:
    existing = await asyncio.to_thread(scheduling_service.get_session, session_id)
    ensure_instructor_access(current_user, existing.instructor_id)
    ensure_instructor_access(current_user, payload.instructor_id)
    return await asyncio.to_thread(scheduling_service.reschedule_session, session_id, payload)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_session(
    session_id: str,
    current_user: User = Depends(staff_only),
    scheduling_service: SchedulingService = Depends(get_scheduling_service),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> Response:
    """Cancel a session. Seats paid with a credit get that credit back."""
    session = await asyncio.to_thread(scheduling_service.find_session, session_id)
    if session is not None:
        ensure_instructor_access(current_user, session.instructor_id)
        await asyncio.to_thread(enrollment_service.cancel_session, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{session_id}/enroll", response_model=LessonSession)
async def enroll(
    session_id: str,
    payload: EnrollRequest,
    current_user: User = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> LessonSession:
    """
    Book a seat for the caller, or for a client when called by staff.

    Raises:
        SessionFullException: No seats left (409)
        InsufficientCreditsException: No credits and not a drop-in (422)
    """
    user_id = payload.user_id or current_user.id
    ensure_self_or_roles(current_user, user_id, *STAFF_ROLES)
    return await asyncio.to_thread(
        enrollment_service.enroll, session_id, user_id, payload.pay_per_lesson
    )


@router.delete("/{session_id}/enrollments/{user_id}", response_model=CancellationResult)
async def cancel_enrollment(
    session_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> CancellationResult:
    ensure_self_or_roles(current_user, user_id, *STAFF_ROLES)
    return await asyncio.to_thread(enrollment_service.cancel_enrollment, session_id, user_id)


@router.get(
    "/{session_id}/enrollments",
    response_model=List[Enrollment],
    dependencies=[Depends(staff_only)],
)
async def list_enrollments(
    session_id: str,
    enrollment_service: EnrollmentService = Depends(get_enrollment_service),
) -> List[Enrollment]:
    return await asyncio.to_thread(enrollment_service.list_enrollments, session_id)
