"""Pydantic schemas for SwimDesk entities and API payloads."""

from .auth import SignInRequest, SignUpRequest, TokenResponse
from .availability import (
    Availability,
    AvailabilityInput,
    Blockout,
    BlockoutInput,
    InstructorSchedule,
)
from .booking import (
    SelectClassRequest,
    SelectPackageRequest,
    SelectSessionRequest,
    StartWizardRequest,
    WizardState,
)
from .catalog import ClassType, ClassTypeInput, Package, PackageInput
from .progress import ProgressUpdate, Skill, StudentProgress
from .main_responses import HealthResponse
from .purchase import Purchase, PurchaseRequest, PurchaseResult
from .session import (
    CancellationResult,
    Enrollment,
    EnrollRequest,
    LessonSession,
    ScheduleSessionRequest,
    SeriesRequest,
    SeriesResponse,
)
from .settings import SystemSettings
from .user import ClientDashboard, User, UserCreate, UserUpdate

__all__ = [
    "Availability",
    "AvailabilityInput",
    "Blockout",
    "BlockoutInput",
    "CancellationResult",
    "ClassType",
    "ClassTypeInput",
    "ClientDashboard",
    "EnrollRequest",
    "Enrollment",
    "HealthResponse",
    "InstructorSchedule",
    "LessonSession",
    "Package",
    "PackageInput",
    "ProgressUpdate",
    "Purchase",
    "PurchaseRequest",
    "PurchaseResult",
    "ScheduleSessionRequest",
    "SelectClassRequest",
    "SelectPackageRequest",
    "SelectSessionRequest",
    "SeriesRequest",
    "SeriesResponse",
    "SignInRequest",
    "SignUpRequest",
    "Skill",
    "StartWizardRequest",
    "StudentProgress",
    "SystemSettings",
    "TokenResponse",
    "User",
    "UserCreate",
    "UserUpdate",
    "WizardState",
]
