# swimdesk/routes/v1/__init__.py
"""
API v1 Routes

Versioned API endpoints under /api/v1.
"""

from . import (
    auth,
    bookings,
    classes,
    health,
    instructors,
    packages,
    progress,
    prometheus,
    sessions,
    settings,
    users,
)

__all__ = [
    "auth",
    "bookings",
    "classes",
    "health",
    "instructors",
    "packages",
    "progress",
    "prometheus",
    "sessions",
    "settings",
    "users",
]
