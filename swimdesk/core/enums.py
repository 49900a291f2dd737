# swimdesk/core/enums.py
"""
Core enums for SwimDesk.

Values match the strings stored in the backing tables and sent over the wire.
"""

from enum import Enum


class UserRole(str, Enum):
    """Roles a profile can hold."""

    CLIENT = "CLIENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"
    GUEST = "GUEST"


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ProgressStatus(str, Enum):
    """Skill progress for a student."""

    NOT_STARTED = "Not Started"
    WORKING_ON = "Working On"
    ACHIEVED = "Achieved"


class WizardStep(str, Enum):
    """Booking wizard steps, in order."""

    SELECT_CLASS = "SELECT_CLASS"
    SELECT_SCHEDULE = "SELECT_SCHEDULE"
    SELECT_PACKAGE = "SELECT_PACKAGE"
    CONFIRM = "CONFIRM"
    COMPLETED = "COMPLETED"
