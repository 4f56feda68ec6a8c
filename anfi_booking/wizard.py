"""
Booking wizard: select -> details -> confirm -> success.

The flow is a pure transition function over an immutable WizardState.
BookingWizard wraps it with the effectful parts (clock, random slots,
simulated confirmation call, toasts, callbacks).
"""

import asyncio
import dataclasses
import datetime
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from .calendar_export import build_calendar_url, open_calendar
from .config import CONFIRMATION_DELAY, CONFIRMATION_PREFIX, DEFAULT_GUESTS
from .models import (
    Booking, BookingDefaults, BookingSlot, ContactDetails, QuickDateOption,
    Restaurant, Toast, STEP_SELECT, STEP_DETAILS, STEP_CONFIRM, STEP_SUCCESS
)
from .slots import generate_time_slots, get_quick_dates
from .validation import validate_booking_date, validate_booking_form, validate_field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WizardState:
    defaults: BookingDefaults
    step: str = STEP_SELECT
    guests: int = DEFAULT_GUESTS
    date: str = ""
    time: str = ""
    contact: ContactDetails = ContactDetails()
    errors: dict = field(default_factory=dict)
    is_submitting: bool = False
    confirmation_code: str = ""
    booking: Optional[Booking] = None


def initial_state(defaults: BookingDefaults) -> WizardState:
    return WizardState(
        defaults=defaults,
        guests=defaults.guests,
        date=defaults.date,
        time=defaults.time
    )


# --- Events ---

@dataclass(frozen=True)
class SelectGuests:
    guests: int


@dataclass(frozen=True)
class SelectDate:
    date: str
    today: datetime.date


@dataclass(frozen=True)
class SelectSlot:
    slot: BookingSlot


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class SubmitDetails:
    contact: ContactDetails


@dataclass(frozen=True)
class CheckField:
    """A contact field lost focus."""
    name: str
    contact: ContactDetails


@dataclass(frozen=True)
class ConfirmRequested:
    pass


@dataclass(frozen=True)
class ConfirmSucceeded:
    booking: Booking


@dataclass(frozen=True)
class ConfirmFailed:
    pass


@dataclass(frozen=True)
class Close:
    pass


# --- Transitions ---

def _select_guests(state: WizardState, event: SelectGuests) -> WizardState:
    return dataclasses.replace(state, guests=event.guests)


def _select_date(state: WizardState, event: SelectDate) -> WizardState:
    errors = {k: v for k, v in state.errors.items() if k != "date"}
    error = validate_booking_date(event.date, event.today)
    if error:
        errors["date"] = error
        return dataclasses.replace(state, errors=errors)
    return dataclasses.replace(state, date=event.date, errors=errors)


def _select_slot(state: WizardState, event: SelectSlot) -> WizardState:
    if not event.slot.available:
        return state
    return dataclasses.replace(state, time=event.slot.time, step=STEP_DETAILS)


def _back_to_select(state: WizardState, event: Back) -> WizardState:
    return dataclasses.replace(state, step=STEP_SELECT)


def _form_data(state: WizardState, contact: ContactDetails) -> dict:
    return {
        "guests": state.guests,
        "date": state.date,
        "time": state.time,
        "contact_name": contact.name,
        "contact_phone": contact.phone,
        "contact_email": contact.email,
        "special_requests": contact.special_requests or None,
    }


def _check_field(state: WizardState, event: CheckField) -> WizardState:
    errors = {k: v for k, v in state.errors.items() if k != event.name}
    error = validate_field(event.name, _form_data(state, event.contact))
    if error:
        errors[event.name] = error
    return dataclasses.replace(state, contact=event.contact, errors=errors)


def _submit_details(state: WizardState, event: SubmitDetails) -> WizardState:
    contact = event.contact
    _, errors = validate_booking_form(_form_data(state, contact))
    if errors:
        return dataclasses.replace(state, contact=contact, errors=errors)
    return dataclasses.replace(state, contact=contact, errors={}, step=STEP_CONFIRM)


def _back_to_details(state: WizardState, event: Back) -> WizardState:
    if state.is_submitting:
        return state
    return dataclasses.replace(state, step=STEP_DETAILS)


def _confirm_requested(state: WizardState, event: ConfirmRequested) -> WizardState:
    if state.is_submitting:
        return state
    return dataclasses.replace(state, is_submitting=True)


def _confirm_succeeded(state: WizardState, event: ConfirmSucceeded) -> WizardState:
    if not state.is_submitting:
        return state
    return dataclasses.replace(
        state,
        step=STEP_SUCCESS,
        is_submitting=False,
        booking=event.booking,
        confirmation_code=event.booking.confirmation_code
    )


def _confirm_failed(state: WizardState, event: ConfirmFailed) -> WizardState:
    return dataclasses.replace(state, is_submitting=False)


TRANSITIONS = {
    (STEP_SELECT, SelectGuests): _select_guests,
    (STEP_SELECT, SelectDate): _select_date,
    (STEP_SELECT, SelectSlot): _select_slot,
    (STEP_DETAILS, Back): _back_to_select,
    (STEP_DETAILS, CheckField): _check_field,
    (STEP_DETAILS, SubmitDetails): _submit_details,
    (STEP_CONFIRM, Back): _back_to_details,
    (STEP_CONFIRM, ConfirmRequested): _confirm_requested,
    (STEP_CONFIRM, ConfirmSucceeded): _confirm_succeeded,
    (STEP_CONFIRM, ConfirmFailed): _confirm_failed,
}


def transition(state: WizardState, event) -> WizardState:
    """Apply an event. Events that make no sense for the current step are no-ops."""
    if isinstance(event, Close):
        return initial_state(state.defaults)
    handler = TRANSITIONS.get((state.step, type(event)))
    if handler is None:
        return state
    return handler(state, event)


# --- Confirmation ---

BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    digits = ""
    while True:
        value, rem = divmod(value, 36)
        digits = BASE36_DIGITS[rem] + digits
        if value == 0:
            return digits


def make_confirmation_code(now: datetime.datetime) -> str:
    """BK + epoch milliseconds in base 36. Unique enough per session, not globally."""
    return CONFIRMATION_PREFIX + to_base36(int(now.timestamp() * 1000))


async def simulate_confirmation(state: WizardState, delay: float = CONFIRMATION_DELAY) -> None:
    """Pretend to call the booking API."""
    await asyncio.sleep(delay)


class BookingWizard:
    """One booking dialog for one restaurant."""

    def __init__(
        self,
        restaurant: Restaurant,
        on_close: Optional[Callable[[], None]] = None,
        on_booking_complete: Optional[Callable[[Booking], None]] = None,
        initial_guests: int = DEFAULT_GUESTS,
        initial_date: Optional[str] = None,
        initial_time: str = "",
        clock: Optional[Callable[[], datetime.datetime]] = None,
        rng: Optional[random.Random] = None,
        notify: Optional[Callable[[Toast], None]] = None,
        confirm_call: Optional[Callable[[WizardState], Awaitable[None]]] = None,
        confirmation_delay: float = CONFIRMATION_DELAY
    ):
        self.restaurant = restaurant
        self.on_close = on_close
        self.on_booking_complete = on_booking_complete
        self.clock = clock or datetime.datetime.now
        self.rng = rng or random.Random()
        self.notify = notify or (lambda toast: None)
        self.confirm_call = confirm_call or (lambda state: simulate_confirmation(state, confirmation_delay))

        defaults = BookingDefaults(
            guests=initial_guests,
            date=initial_date or self.today().isoformat(),
            time=initial_time or ""
        )
        self._state = initial_state(defaults)
        self._slots: Optional[tuple[str, list[BookingSlot]]] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def step(self) -> str:
        return self._state.step

    def today(self) -> datetime.date:
        return self.clock().date()

    def dispatch(self, event) -> WizardState:
        before = self._state.step
        self._state = transition(self._state, event)
        logger.debug("%s: %s -> %s", type(event).__name__, before, self._state.step)
        return self._state

    # --- Select step ---

    def time_slots(self) -> list[BookingSlot]:
        """Slots for the selected date, regenerated only when the date changes."""
        if self._slots is None or self._slots[0] != self._state.date:
            self._slots = (self._state.date, generate_time_slots(self._state.date, self.rng))
        return self._slots[1]

    def quick_dates(self) -> list[QuickDateOption]:
        return get_quick_dates(self.today())

    def select_guests(self, guests: int) -> WizardState:
        return self.dispatch(SelectGuests(guests))

    def select_date(self, date: str) -> WizardState:
        return self.dispatch(SelectDate(date, self.today()))

    def select_slot(self, slot: BookingSlot) -> WizardState:
        return self.dispatch(SelectSlot(slot))

    def back(self) -> WizardState:
        return self.dispatch(Back())

    # --- Details step ---

    def submit_details(self, name: str, phone: str, email: str, special_requests: str = "") -> WizardState:
        return self.dispatch(SubmitDetails(ContactDetails(
            name=name, phone=phone, email=email, special_requests=special_requests or ""
        )))

    def check_field(self, field_name: str, name: str, phone: str, email: str,
                    special_requests: str = "") -> WizardState:
        """Validate one contact field when it loses focus."""
        return self.dispatch(CheckField(field_name, ContactDetails(
            name=name, phone=phone, email=email, special_requests=special_requests or ""
        )))

    # --- Confirm step ---

    def _build_booking(self, draft: WizardState) -> Booking:
        now = self.clock()
        code = make_confirmation_code(now)
        return Booking(
            id=code,
            confirmation_code=code,
            restaurant=self.restaurant,
            guests=draft.guests,
            date=draft.date,
            time=draft.time,
            status="confirmed",
            special_requests=draft.contact.special_requests or None,
            created_at=now.isoformat(),
            contact_name=draft.contact.name,
            contact_phone=draft.contact.phone,
            contact_email=draft.contact.email
        )

    async def confirm(self) -> Optional[Booking]:
        """
        Run the confirmation call and finish the booking.

        Returns the Booking, or None if the step was wrong, a confirmation is
        already running, the call failed, or the wizard was closed meanwhile.
        """
        if self._state.step != STEP_CONFIRM or self._state.is_submitting:
            return None
        draft = self.dispatch(ConfirmRequested())

        task = self._pending = asyncio.ensure_future(self.confirm_call(draft))
        try:
            await task
        except asyncio.CancelledError:
            if task is self._pending:
                # we were cancelled from outside, not by close()
                self._pending = None
                self.dispatch(ConfirmFailed())
                raise
            logger.info("Confirmation for %s discarded after close", self.restaurant.name)
            return None
        except Exception:
            if task is not self._pending:
                logger.info("Failed confirmation for %s discarded after close", self.restaurant.name)
                return None
            self._pending = None
            logger.exception("Booking confirmation failed for %s", self.restaurant.name)
            self.dispatch(ConfirmFailed())
            self.notify(Toast(
                title="Booking Failed",
                description="Something went wrong. Please try again.",
                variant="destructive"
            ))
            return None

        # close() may have run after the call finished but before we resumed
        if task is not self._pending or self._state is not draft:
            logger.info("Confirmation for %s discarded after close", self.restaurant.name)
            return None
        self._pending = None

        booking = self._build_booking(draft)
        self.dispatch(ConfirmSucceeded(booking))
        logger.info("Booking %s confirmed at %s", booking.confirmation_code, self.restaurant.name)
        self.notify(Toast(
            title="Booking Confirmed!",
            description=f"Your table at {self.restaurant.name} is booked."
        ))
        if self.on_booking_complete:
            self.on_booking_complete(booking)
        return booking

    # --- Closing ---

    def close(self) -> WizardState:
        """Cancel/Done: abort any running confirmation and reset to the defaults."""
        if self._pending is not None:
            task, self._pending = self._pending, None
            task.cancel()
            logger.info("Cancelled in-flight confirmation for %s", self.restaurant.name)
        self.dispatch(Close())
        if self.on_close:
            self.on_close()
        return self._state

    # --- Success step ---

    def calendar_url(self, tz: Optional[datetime.tzinfo] = None) -> Optional[str]:
        if self._state.booking is None:
            return None
        return build_calendar_url(self._state.booking, tz)

    def add_to_calendar(self, opener: Optional[Callable[[str], object]] = None,
                        tz: Optional[datetime.tzinfo] = None) -> Optional[str]:
        if self._state.booking is None:
            return None
        if opener is None:
            return open_calendar(self._state.booking, tz=tz)
        return open_calendar(self._state.booking, opener=opener, tz=tz)
