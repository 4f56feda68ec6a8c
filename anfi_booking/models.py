"""
Dataclasses for restaurants, slots and bookings.
"""

from dataclasses import dataclass
from typing import Optional


STEP_SELECT = "select"
STEP_DETAILS = "details"
STEP_CONFIRM = "confirm"
STEP_SUCCESS = "success"

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")


@dataclass
class Restaurant:
    id: str
    name: str
    address: str
    rating: float
    image: str
    cuisine: str = ""
    city: str = ""
    description: str = ""
    review_count: int = 0


@dataclass(frozen=True)
class BookingSlot:
    time: str
    available: bool
    tables_left: Optional[int] = None


@dataclass(frozen=True)
class QuickDateOption:
    label: str
    date: str  # YYYY-MM-DD
    is_today: bool


@dataclass(frozen=True)
class ContactDetails:
    name: str = ""
    phone: str = ""
    email: str = ""
    special_requests: str = ""


@dataclass(frozen=True)
class BookingDefaults:
    guests: int
    date: str
    time: str = ""


@dataclass
class Booking:
    id: str
    confirmation_code: str
    restaurant: Restaurant
    guests: int
    date: str
    time: str
    status: str  # 'pending', 'confirmed', 'cancelled', 'completed'
    special_requests: Optional[str]
    created_at: str
    contact_name: str = ""
    contact_phone: str = ""
    contact_email: str = ""

    def __post_init__(self):
        if self.status not in BOOKING_STATUSES:
            raise ValueError(f"Unknown booking status: {self.status!r}")


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: str = "default"  # 'default' or 'destructive'
