"""
Database models for SwimDesk.

Importing this package registers every table on ``Base.metadata``.
"""

from .availability import AvailabilityModel, BlockoutModel
from .catalog import ClassTypeModel, PackageModel
from .progress import StudentProgressModel
from .purchase import PurchaseModel
from .session import EnrollmentModel, SessionModel
from .settings import SystemSettingsModel
from .user import Profile

__all__ = [
    "AvailabilityModel",
    "BlockoutModel",
    "ClassTypeModel",
    "EnrollmentModel",
    "PackageModel",
    "Profile",
    "PurchaseModel",
    "SessionModel",
    "StudentProgressModel",
    "SystemSettingsModel",
]
