import asyncio
import datetime
import random
import re

import pytest

from anfi_booking.models import (
    BookingDefaults, BookingSlot, ContactDetails, STEP_SELECT, STEP_DETAILS, STEP_CONFIRM, STEP_SUCCESS
)
from anfi_booking.wizard import (
    Back, BookingWizard, CheckField, Close, ConfirmRequested, SelectDate, SelectGuests, SelectSlot, SubmitDetails,
    initial_state, make_confirmation_code, to_base36, transition
)

OPEN_SLOT = BookingSlot(time="7:00 PM", available=True, tables_left=3)
FULL_SLOT = BookingSlot(time="7:30 PM", available=False)
JANE = ContactDetails(name="Jane Doe", phone="01711222333", email="jane@example.com")


@pytest.fixture
def defaults():
    return BookingDefaults(guests=2, date="2025-06-01")


@pytest.fixture
def make_wizard(restaurant, clock):
    def factory(**kwargs):
        kwargs.setdefault("initial_date", "2025-06-01")
        kwargs.setdefault("confirmation_delay", 0)
        kwargs.setdefault("rng", random.Random(3))
        return BookingWizard(restaurant, clock=clock, **kwargs)
    return factory


def to_confirm(wizard):
    wizard.select_slot(OPEN_SLOT)
    wizard.submit_details(JANE.name, JANE.phone, JANE.email, "Birthday")
    assert wizard.step == STEP_CONFIRM
    return wizard


# --- Pure transitions ---

def test_initial_state(defaults):
    state = initial_state(defaults)
    assert state.step == STEP_SELECT
    assert (state.guests, state.date, state.time) == (2, "2025-06-01", "")
    assert not state.is_submitting


def test_unavailable_slot_is_noop(defaults):
    state = initial_state(defaults)
    assert transition(state, SelectSlot(FULL_SLOT)) is state


def test_available_slot_moves_to_details(defaults):
    state = transition(initial_state(defaults), SelectSlot(OPEN_SLOT))
    assert state.step == STEP_DETAILS
    assert state.time == "7:00 PM"


def test_events_outside_their_step_are_ignored(defaults):
    state = initial_state(defaults)
    assert transition(state, Back()) is state
    assert transition(state, SubmitDetails(JANE)) is state
    assert transition(state, ConfirmRequested()) is state

    details = transition(state, SelectSlot(OPEN_SLOT))
    assert transition(details, SelectGuests(5)) is details
    assert transition(details, SelectSlot(OPEN_SLOT)) is details


def test_select_guests_and_date(defaults):
    state = transition(initial_state(defaults), SelectGuests(10))
    state = transition(state, SelectDate("2025-06-03", datetime.date(2025, 6, 1)))
    assert (state.guests, state.date) == (10, "2025-06-03")


def test_past_date_rejected(defaults):
    state = transition(initial_state(defaults), SelectDate("2025-05-31", datetime.date(2025, 6, 1)))
    assert state.date == "2025-06-01"
    assert state.errors == {"date": "Please select a future date"}

    state = transition(state, SelectDate("2025-06-01", datetime.date(2025, 6, 1)))
    assert state.errors == {}


def test_details_back_keeps_selection(defaults):
    state = transition(initial_state(defaults), SelectGuests(4))
    state = transition(state, SelectSlot(OPEN_SLOT))
    state = transition(state, Back())
    assert state.step == STEP_SELECT
    assert (state.guests, state.time) == (4, "7:00 PM")


def test_invalid_details_stay_put(defaults):
    state = transition(initial_state(defaults), SelectSlot(OPEN_SLOT))
    bad = ContactDetails(name="J", phone="123", email="jane")
    state = transition(state, SubmitDetails(bad))
    assert state.step == STEP_DETAILS
    assert set(state.errors) == {"contact_name", "contact_phone", "contact_email"}
    assert state.contact == bad


def test_too_many_guests_blocks_details(defaults):
    state = transition(initial_state(defaults), SelectGuests(21))
    state = transition(state, SelectSlot(OPEN_SLOT))
    state = transition(state, SubmitDetails(JANE))
    assert state.step == STEP_DETAILS
    assert state.errors == {"guests": "Maximum 20 guests"}


def test_confirm_back_and_double_request(defaults):
    state = transition(initial_state(defaults), SelectSlot(OPEN_SLOT))
    state = transition(state, SubmitDetails(JANE))
    assert state.step == STEP_CONFIRM
    assert transition(state, Back()).step == STEP_DETAILS

    submitting = transition(state, ConfirmRequested())
    assert submitting.is_submitting
    assert transition(submitting, ConfirmRequested()) is submitting
    assert transition(submitting, Back()) is submitting


def test_close_resets_from_any_step(defaults):
    state = transition(initial_state(defaults), SelectGuests(6))
    state = transition(state, SelectSlot(OPEN_SLOT))
    state = transition(state, SubmitDetails(JANE))
    assert transition(state, Close()) == initial_state(defaults)


# --- Confirmation code ---

def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "Z"
    assert to_base36(36) == "10"
    with pytest.raises(ValueError):
        to_base36(-1)


def test_confirmation_code(now):
    code = make_confirmation_code(now)
    assert re.match(r"^BK[0-9A-Z]+$", code)
    assert int(code[2:], 36) == int(now.timestamp() * 1000)


# --- Wizard object ---

def test_defaults_from_clock(restaurant, clock):
    wizard = BookingWizard(restaurant, clock=clock)
    assert wizard.state.guests == 2
    assert wizard.state.date == "2025-06-01"
    assert wizard.state.time == ""


def test_initial_overrides(make_wizard):
    wizard = make_wizard(initial_guests=6, initial_date="2025-06-03", initial_time="8:00 PM")
    assert (wizard.state.guests, wizard.state.date, wizard.state.time) == (6, "2025-06-03", "8:00 PM")


def test_time_slots_cached_per_date(make_wizard):
    wizard = make_wizard()
    slots = wizard.time_slots()
    assert wizard.time_slots() is slots
    wizard.select_date("2025-06-02")
    assert wizard.time_slots() is not slots


def test_quick_dates_follow_clock(make_wizard):
    options = make_wizard().quick_dates()
    assert options[0].date == "2025-06-01"
    assert options[0].is_today


def test_full_slot_keeps_step_and_time(make_wizard):
    wizard = make_wizard()
    wizard.select_slot(FULL_SLOT)
    assert wizard.step == STEP_SELECT
    assert wizard.state.time == ""


def test_open_and_close_is_idempotent(make_wizard):
    closed = []
    wizard = make_wizard(initial_guests=3, on_close=lambda: closed.append(True))
    before = wizard.state
    wizard.close()
    assert wizard.state == before
    assert closed == [True]


def test_close_after_interaction_restores_defaults(make_wizard):
    wizard = make_wizard()
    before = wizard.state
    wizard.select_guests(10)
    wizard.select_date("2025-06-04")
    to_confirm(wizard)
    wizard.close()
    assert wizard.state == before


def test_end_to_end_booking(make_wizard, restaurant):
    completed, toasts = [], []
    wizard = make_wizard(initial_guests=2, on_booking_complete=completed.append, notify=toasts.append)

    wizard.select_slot(OPEN_SLOT)
    assert wizard.step == STEP_DETAILS
    wizard.submit_details("Jane Doe", "01711222333", "jane@example.com")
    assert wizard.step == STEP_CONFIRM

    booking = asyncio.run(wizard.confirm())

    assert wizard.step == STEP_SUCCESS
    assert re.match(r"^BK[0-9A-Z]+$", wizard.state.confirmation_code)
    assert booking.confirmation_code == wizard.state.confirmation_code
    assert booking.id == booking.confirmation_code
    assert (booking.guests, booking.date, booking.time) == (2, "2025-06-01", "7:00 PM")
    assert booking.status == "confirmed"
    assert booking.restaurant is restaurant
    assert booking.special_requests is None
    assert completed == [booking]
    assert [t.title for t in toasts] == ["Booking Confirmed!"]
    assert toasts[0].description == "Your table at Sylhet Tea House is booked."
    assert not wizard.state.is_submitting


def test_confirm_outside_confirm_step(make_wizard):
    wizard = make_wizard()
    assert asyncio.run(wizard.confirm()) is None
    assert wizard.step == STEP_SELECT


def test_double_submit_confirms_once(make_wizard):
    completed = []
    wizard = to_confirm(make_wizard(confirmation_delay=0.05, on_booking_complete=completed.append))

    async def scenario():
        first = asyncio.ensure_future(wizard.confirm())
        await asyncio.sleep(0)
        assert wizard.state.is_submitting
        second = await wizard.confirm()
        return await first, second

    first, second = asyncio.run(scenario())
    assert second is None
    assert first is not None
    assert completed == [first]


def test_confirm_failure_shows_toast(make_wizard):
    toasts, completed = [], []

    async def failing_call(state):
        raise RuntimeError("backend down")

    wizard = to_confirm(make_wizard(confirm_call=failing_call, notify=toasts.append,
                                    on_booking_complete=completed.append))
    assert asyncio.run(wizard.confirm()) is None
    assert wizard.step == STEP_CONFIRM
    assert not wizard.state.is_submitting
    assert completed == []
    assert toasts[0].title == "Booking Failed"
    assert toasts[0].variant == "destructive"


def test_close_cancels_inflight_confirmation(make_wizard):
    completed, toasts = [], []
    wizard = to_confirm(make_wizard(confirmation_delay=10, on_booking_complete=completed.append,
                                    notify=toasts.append))

    async def scenario():
        pending = asyncio.ensure_future(wizard.confirm())
        await asyncio.sleep(0)
        wizard.close()
        return await asyncio.wait_for(pending, timeout=1)

    assert asyncio.run(scenario()) is None
    assert wizard.step == STEP_SELECT
    assert wizard.state.booking is None
    assert completed == []
    assert toasts == []


def test_calendar_url_after_success(make_wizard):
    wizard = to_confirm(make_wizard())
    assert wizard.calendar_url() is None
    asyncio.run(wizard.confirm())

    opened = []
    url = wizard.add_to_calendar(opener=opened.append, tz=datetime.timezone.utc)
    assert opened == [url]
    assert "dates=20250601T190000Z%2F20250601T210000Z" in url
    assert wizard.state.confirmation_code in url


def test_close_after_call_finished_discards_result(make_wizard):
    completed, toasts = [], []
    calls = []

    def controlled_call(state):
        calls.append(asyncio.get_running_loop().create_future())
        return calls[-1]

    wizard = to_confirm(make_wizard(confirm_call=controlled_call, on_booking_complete=completed.append,
                                    notify=toasts.append))

    async def scenario():
        pending = asyncio.ensure_future(wizard.confirm())
        await asyncio.sleep(0)
        # the call resolves, then the dialog closes before confirm() resumes
        calls[0].set_result(None)
        wizard.close()
        return await pending

    assert asyncio.run(scenario()) is None
    assert wizard.step == STEP_SELECT
    assert wizard.state.booking is None
    assert completed == []
    assert toasts == []


def test_close_after_call_failed_shows_no_toast(make_wizard):
    toasts = []
    calls = []

    def controlled_call(state):
        calls.append(asyncio.get_running_loop().create_future())
        return calls[-1]

    wizard = to_confirm(make_wizard(confirm_call=controlled_call, notify=toasts.append))

    async def scenario():
        pending = asyncio.ensure_future(wizard.confirm())
        await asyncio.sleep(0)
        calls[0].set_exception(RuntimeError("backend down"))
        wizard.close()
        return await pending

    assert asyncio.run(scenario()) is None
    assert wizard.step == STEP_SELECT
    assert toasts == []


def test_booking_built_from_confirmed_draft(make_wizard):
    wizard = to_confirm(make_wizard())
    booking = asyncio.run(wizard.confirm())
    assert (booking.contact_name, booking.contact_phone, booking.contact_email) == (
        JANE.name, JANE.phone, JANE.email
    )
    assert booking.special_requests == "Birthday"


# --- Field checks on blur ---

def test_check_field_sets_and_clears_one_error(defaults):
    state = transition(initial_state(defaults), SelectSlot(OPEN_SLOT))
    bad = ContactDetails(name="J", phone="123", email="jane")

    state = transition(state, CheckField("contact_name", bad))
    assert state.errors == {"contact_name": "Name is required"}
    assert state.step == STEP_DETAILS

    state = transition(state, CheckField("contact_name", JANE))
    assert state.errors == {}
    assert state.contact == JANE


def test_check_field_only_in_details(defaults):
    state = initial_state(defaults)
    assert transition(state, CheckField("contact_name", JANE)) is state


def test_wizard_check_field(make_wizard):
    wizard = make_wizard()
    wizard.select_slot(OPEN_SLOT)
    wizard.check_field("contact_email", "Jane Doe", "01711222333", "not-an-email")
    assert wizard.state.errors == {"contact_email": "Valid email required"}
    wizard.check_field("contact_email", "Jane Doe", "01711222333", "jane@example.com")
    assert wizard.state.errors == {}
