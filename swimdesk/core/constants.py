"""Application-wide constants for SwimDesk."""

from __future__ import annotations

BRAND_NAME = "Lovable Swim"

# Auth
MIN_PASSWORD_LENGTH = 6

# Text constraints
MAX_NAME_LENGTH = 120
MAX_REASON_LENGTH = 255

# Scheduling
MAX_SERIES_OCCURRENCES = 52

# Purchases whose package was removed keep this label
UNKNOWN_PACKAGE_NAME = "Unknown Package"

SETTINGS_ROW_ID = 1

DEFAULT_SYSTEM_SETTINGS = {
    "pool_capacity": 25,
    "cancellation_hours": 24,
    "maintenance_mode": False,
    "contact_email": "admin@lovableswim.com",
}

SKILL_CATALOG = (
    {"id": "s1", "name": "Face Submersion (5s)", "category": "Comfort"},
    {"id": "s2", "name": "Front Float (Unsupported)", "category": "Buoyancy"},
    {"id": "s3", "name": "Freestyle Arms", "category": "Strokes"},
    {"id": "s4", "name": "Side Breathing", "category": "Strokes"},
    {"id": "s5", "name": "Treading Water (1min)", "category": "Safety"},
)

# Demo mode seed data
DEMO_PASSWORD = "swimdesk-demo"

DEMO_USERS = (
    {"id": "u1", "name": "Demo Client", "email": "client@example.com", "role": "CLIENT"},
    {"id": "i1", "name": "Demo Instructor", "email": "instructor@example.com", "role": "INSTRUCTOR"},
    {"id": "a1", "name": "Demo Admin", "email": "admin@example.com", "role": "ADMIN"},
)

DEMO_AVAILABILITY = (
    {"id": "av1", "instructor_id": "i1", "day_of_week": 1, "start_time": "09:00", "end_time": "17:00"},
    {"id": "av2", "instructor_id": "i1", "day_of_week": 3, "start_time": "09:00", "end_time": "17:00"},
    {"id": "av3", "instructor_id": "i1", "day_of_week": 5, "start_time": "09:00", "end_time": "16:00"},
)

DEMO_PACKAGE = {
    "id": "p1",
    "name": "Starter Pack",
    "credits": 5,
    "price": 200,
    "description": "Five lessons to get comfortable in the water",
}

DEMO_PURCHASE = {
    "id": "pur1",
    "user_id": "u1",
    "package_id": "p1",
    "package_name": "Starter Pack",
    "credits": 5,
    "price": 200,
    "date": "2025-10-15T10:00:00Z",
}
