"""
Google Calendar deep links for confirmed bookings.
"""

import datetime
import logging
import re
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from .config import BOOKING_DURATION_HOURS, CALENDAR_URL
from .models import Booking

logger = logging.getLogger(__name__)

TIME_LABEL_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(AM|PM)\s*$", re.IGNORECASE)


def parse_time_label(label: str) -> tuple[int, int]:
    """'7:00 PM' -> (19, 0). Handles 12 AM -> 0 and 12 PM -> 12."""
    match = TIME_LABEL_RE.match(label or "")
    if not match:
        raise ValueError(f"Invalid time label: {label!r}")
    hour, minute, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not (1 <= hour <= 12 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time label: {label!r}")
    if period == "PM" and hour != 12:
        hour += 12
    if period == "AM" and hour == 12:
        hour = 0
    return hour, minute


def booking_window(
    date: str,
    time: str,
    tz: Optional[datetime.tzinfo] = None
) -> tuple[datetime.datetime, datetime.datetime]:
    """Start and end of the reservation as aware datetimes (local zone if tz is None)."""
    hour, minute = parse_time_label(time)
    day = datetime.date.fromisoformat(date)
    start = datetime.datetime(day.year, day.month, day.day, hour, minute)
    start = start.replace(tzinfo=tz) if tz else start.astimezone()
    return start, start + datetime.timedelta(hours=BOOKING_DURATION_HOURS)


def format_calendar_date(dt: datetime.datetime) -> str:
    """UTC basic ISO, e.g. 20250601T130000Z."""
    return dt.astimezone(datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def build_calendar_url(booking: Booking, tz: Optional[datetime.tzinfo] = None) -> str:
    start, end = booking_window(booking.date, booking.time, tz)
    params = {
        "action": "TEMPLATE",
        "text": f"Dinner at {booking.restaurant.name}",
        "dates": f"{format_calendar_date(start)}/{format_calendar_date(end)}",
        "location": booking.restaurant.address or "",
        "details": f"Booking for {booking.guests} guests. Confirmation: {booking.confirmation_code}",
    }
    return f"{CALENDAR_URL}?{urlencode(params)}"


def open_calendar(
    booking: Booking,
    opener: Callable[[str], object] = webbrowser.open_new_tab,
    tz: Optional[datetime.tzinfo] = None
) -> str:
    """Open the calendar template in a new tab and return its URL."""
    url = build_calendar_url(booking, tz)
    logger.info("Opening calendar export for booking %s", booking.confirmation_code)
    opener(url)
    return url
