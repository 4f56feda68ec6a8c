import datetime

import pytest

from anfi_booking.models import Restaurant


@pytest.fixture
def restaurant():
    return Restaurant(
        id="4",
        name="Sylhet Tea House",
        address="321 Old Airport Road, Sylhet",
        rating=4.8,
        image="https://example.com/tea.jpg",
        cuisine="Sylheti",
        city="Sylhet"
    )


@pytest.fixture
def now():
    return datetime.datetime(2025, 6, 1, 10, 30, tzinfo=datetime.timezone.utc)


@pytest.fixture
def clock(now):
    return lambda: now
