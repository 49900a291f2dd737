# tests/integration/helpers.py
from datetime import date, timedelta


def next_weekday(weekday: int, weeks_ahead: int = 1) -> date:
    """A future date with ``date.weekday() == weekday`` at least a week out."""
    today = date.today()
    return today + timedelta(days=(weekday - today.weekday()) % 7 + 7 * weeks_ahead)


def next_monday(weeks_ahead: int = 1) -> date:
    return next_weekday(0, weeks_ahead)
