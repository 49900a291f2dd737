# swimdesk/routes/v1/progress.py
"""
Student progress routes - API v1

Endpoints:
    GET /skills                                   → The skill catalogue
    GET /students/{student_id}/progress           → Progress per skill (self or staff)
    PUT /students/{student_id}/progress/{skill_id} → Record progress (staff)
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends

from ...api.dependencies import (
    STAFF_ROLES,
    ensure_self_or_roles,
    get_current_user,
    get_progress_service,
    require_roles,
)
from ...schemas.progress import ProgressUpdate, Skill, StudentProgress
from ...schemas.user import User
from ...services.progress_service import ProgressService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["progress-v1"])


@router.get("/skills", response_model=List[Skill])
async def list_skills(progress_service: ProgressService = Depends(get_progress_service)) -> List[Skill]:
    return progress_service.list_skills()


@router.get("/students/{student_id}/progress", response_model=List[StudentProgress])
async def list_progress(
    student_id: str,
    current_user: User = Depends(get_current_user),
    progress_service: ProgressService = Depends(get_progress_service),
) -> List[StudentProgress]:
    ensure_self_or_roles(current_user, student_id, *STAFF_ROLES)
    return await asyncio.to_thread(progress_service.list_for_student, student_id)


@router.put(
    "/students/{student_id}/progress/{skill_id}",
    response_model=StudentProgress,
    dependencies=[Depends(require_roles(*STAFF_ROLES))],
)
async def update_progress(
    student_id: str,
    skill_id: str,
    payload: ProgressUpdate,
    progress_service: ProgressService = Depends(get_progress_service),
) -> StudentProgress:
    return await asyncio.to_thread(
        progress_service.update_progress, student_id, skill_id, payload.status
    )
