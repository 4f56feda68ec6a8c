"""
Mock time slots and quick date shortcuts for the booking panel.
"""

import datetime
import random
from typing import Optional

from .config import (
    SERVICE_START_HOUR, SERVICE_END_HOUR, SLOT_MINUTES,
    SLOT_AVAILABILITY_RATE, MAX_TABLES_LEFT, QUICK_DATE_DAYS
)
from .models import BookingSlot, QuickDateOption


def format_time_label(hour: int, minute: int) -> str:
    """24h clock -> '7:30 PM'."""
    hour12 = hour % 12 or 12
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour12}:{minute:02d} {ampm}"


def generate_time_slots(date: str, rng: Optional[random.Random] = None) -> list[BookingSlot]:
    """
    Build the evening slot list with random availability.

    Stand-in for a real availability query: `date` is part of the signature
    but the slots do not depend on it. Each call draws fresh availability.
    """
    rng = rng or random
    slots = []
    for hour in range(SERVICE_START_HOUR, SERVICE_END_HOUR + 1):
        for minute in SLOT_MINUTES:
            if hour == SERVICE_END_HOUR and minute > 0:
                continue
            available = rng.random() > 1 - SLOT_AVAILABILITY_RATE
            slots.append(BookingSlot(
                time=format_time_label(hour, minute),
                available=available,
                tables_left=rng.randint(1, MAX_TABLES_LEFT) if available else None
            ))
    return slots


def get_quick_dates(today: Optional[datetime.date] = None) -> list[QuickDateOption]:
    """Today, Tomorrow, then the next two days by weekday name."""
    today = today or datetime.date.today()
    options = []
    for offset in range(QUICK_DATE_DAYS):
        day = today + datetime.timedelta(days=offset)
        if offset == 0:
            label = "Today"
        elif offset == 1:
            label = "Tomorrow"
        else:
            label = day.strftime("%a")
        options.append(QuickDateOption(label=label, date=day.isoformat(), is_today=offset == 0))
    return options
