"""
App settings - catalog DB, backend endpoint, booking window and calendar export.
"""

DB_PATH = "anfi.db"
ANFI_API_URL = "http://localhost:2002/api"
ANFI_HEALTH_URL = "http://localhost:2002/health"
API_TIMEOUT = 10
DEFAULT_CITY = "Sylhet"

# Service window for mock slots (last slot starts at 21:00)
SERVICE_START_HOUR = 12
SERVICE_END_HOUR = 21
SLOT_MINUTES = (0, 30)
SLOT_AVAILABILITY_RATE = 0.8
MAX_TABLES_LEFT = 5
LOW_AVAILABILITY_THRESHOLD = 2

DEFAULT_GUESTS = 2
MIN_GUESTS = 1
MAX_GUESTS = 20
GUEST_OPTIONS = [1, 2, 3, 4, 5, 6, 7, 8]
LARGE_PARTY_GUESTS = 10  # the "9+" button

QUICK_DATE_DAYS = 4

CONFIRMATION_DELAY = 1.5
CONFIRMATION_PREFIX = "BK"

BOOKING_DURATION_HOURS = 2
CALENDAR_URL = "https://calendar.google.com/calendar/render"

LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
