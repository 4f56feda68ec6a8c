"""
Streamlit booking interface.
"""

import asyncio
import datetime
import logging

import streamlit as st

from .api_client import check_health, load_restaurants
from .config import GUEST_OPTIONS, LARGE_PARTY_GUESTS, LOW_AVAILABILITY_THRESHOLD
from .db import init_db, seed_restaurants_if_empty
from .models import Restaurant, Toast, STEP_SELECT, STEP_DETAILS, STEP_CONFIRM, STEP_SUCCESS
from .wizard import BookingWizard

logger = logging.getLogger(__name__)


def _short_date(value: str) -> str:
    day = datetime.date.fromisoformat(value)
    return f"{day:%b} {day.day}"


def _long_date(value: str) -> str:
    day = datetime.date.fromisoformat(value)
    return f"{day:%A, %B} {day.day}, {day.year}"


def _queue_toast(toast: Toast) -> None:
    st.session_state.toasts.append(toast)


def _show_toasts() -> None:
    for toast in st.session_state.toasts:
        icon = "⚠️" if toast.variant == "destructive" else "✅"
        st.toast(f"**{toast.title}** {toast.description}", icon=icon)
    st.session_state.toasts = []


def _close_dialog() -> None:
    st.session_state.selected_restaurant = None
    st.session_state.wizard = None


def _open_wizard(restaurant: Restaurant) -> BookingWizard:
    wizard = st.session_state.get("wizard")
    if wizard is None or wizard.restaurant.id != restaurant.id:
        wizard = BookingWizard(
            restaurant,
            on_close=_close_dialog,
            on_booking_complete=lambda booking: st.session_state.bookings.append(booking),
            notify=_queue_toast
        )
        st.session_state.wizard = wizard
    return wizard


def render_header(restaurant: Restaurant) -> None:
    col1, col2 = st.columns([1, 4])
    with col1:
        if restaurant.image:
            st.image(restaurant.image, use_container_width=True)
    with col2:
        st.markdown(f"### {restaurant.name}")
        st.caption(f"⭐ {restaurant.rating} • 📍 {restaurant.address}")


def render_select(wizard: BookingWizard) -> None:
    state = wizard.state

    st.markdown("**👥 Party Size**")
    cols = st.columns(len(GUEST_OPTIONS) + 1)
    for col, num in zip(cols, GUEST_OPTIONS):
        with col:
            if st.button(str(num), key=f"guests_{num}",
                         type="primary" if state.guests == num else "secondary"):
                wizard.select_guests(num)
                st.rerun()
    with cols[-1]:
        if st.button("9+", key="guests_large",
                     type="primary" if state.guests > GUEST_OPTIONS[-1] else "secondary"):
            wizard.select_guests(LARGE_PARTY_GUESTS)
            st.rerun()

    st.markdown("**📅 Date**")
    quick_dates = wizard.quick_dates()
    cols = st.columns(len(quick_dates) + 1)
    for col, option in zip(cols, quick_dates):
        with col:
            if st.button(f"{option.label}\n\n{_short_date(option.date)}", key=f"date_{option.date}",
                         type="primary" if state.date == option.date else "secondary",
                         use_container_width=True):
                wizard.select_date(option.date)
                st.rerun()
    with cols[-1]:
        picked = st.date_input("Other date", value=None, label_visibility="collapsed")
        # only react to a new pick, otherwise a rejected past date would rerun forever
        if picked and picked != st.session_state.get("last_picked_date"):
            st.session_state.last_picked_date = picked
            wizard.select_date(picked.isoformat())
            st.rerun()
    if "date" in state.errors:
        st.error(state.errors["date"])

    st.markdown("**🕒 Available Times**")
    slots = wizard.time_slots()
    for start in range(0, len(slots), 4):
        cols = st.columns(4)
        for col, slot in zip(cols, slots[start:start + 4]):
            with col:
                label = slot.time
                if slot.tables_left is not None and slot.tables_left <= LOW_AVAILABILITY_THRESHOLD:
                    label += f"\n\n{slot.tables_left} left"
                if st.button(label, key=f"slot_{slot.time}", disabled=not slot.available,
                             type="primary" if slot.available and state.time == slot.time else "secondary",
                             use_container_width=True):
                    wizard.select_slot(slot)
                    st.rerun()


CONTACT_FIELDS = ("contact_name", "contact_phone", "contact_email", "special_requests")


def _contact_keys(wizard: BookingWizard) -> dict[str, str]:
    # widget keys are per wizard so a reopened dialog starts from empty inputs
    return {name: f"{id(wizard)}_{name}" for name in CONTACT_FIELDS}


def _contact_values(wizard: BookingWizard) -> list[str]:
    keys = _contact_keys(wizard)
    return [st.session_state.get(keys[name], "") for name in CONTACT_FIELDS]


def _on_blur(wizard: BookingWizard, field_name: str) -> None:
    wizard.check_field(field_name, *_contact_values(wizard))


def render_details(wizard: BookingWizard) -> None:
    state = wizard.state
    keys = _contact_keys(wizard)

    col1, col2 = st.columns([4, 1])
    with col1:
        st.info(f"👥 {state.guests} · 📅 {_short_date(state.date)} · 🕒 {state.time}")
    with col2:
        if st.button("Edit"):
            wizard.back()
            st.rerun()

    inputs = (
        ("contact_name", "Name", state.contact.name, "John Doe"),
        ("contact_phone", "Phone", state.contact.phone, "+880 1XXX-XXXXXX"),
        ("contact_email", "Email", state.contact.email, "john@example.com"),
    )
    for field_name, label, value, placeholder in inputs:
        st.text_input(label, value=value, placeholder=placeholder, key=keys[field_name],
                      on_change=_on_blur, args=(wizard, field_name))
        if field_name in state.errors:
            st.error(state.errors[field_name])
    st.text_area(
        "Special Requests (Optional)",
        value=state.contact.special_requests,
        placeholder="High chair needed, birthday celebration, dietary requirements...",
        key=keys["special_requests"]
    )
    for key in ("guests", "date", "time"):
        if key in state.errors:
            st.error(state.errors[key])

    back_col, next_col = st.columns(2)
    with back_col:
        if st.button("Back", key="details_back", use_container_width=True):
            wizard.back()
            st.rerun()
    with next_col:
        if st.button("Continue", type="primary", use_container_width=True):
            wizard.submit_details(*_contact_values(wizard))
            st.rerun()


def render_confirm(wizard: BookingWizard) -> None:
    state = wizard.state

    st.markdown("#### Booking Summary")
    st.markdown(f"""
| | |
|---|---|
| Restaurant | **{wizard.restaurant.name}** |
| Date | **{_long_date(state.date)}** |
| Time | **{state.time}** |
| Party Size | **{state.guests} guests** |
| Contact | **{state.contact.name}** |
""")
    if state.contact.special_requests:
        st.markdown(f"*Special Requests:* {state.contact.special_requests}")

    st.warning("You'll receive a confirmation email and SMS. Please arrive 10 minutes before your reservation.")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Back", use_container_width=True, disabled=state.is_submitting):
            wizard.back()
            st.rerun()
    with col2:
        if st.button("Confirm Booking", type="primary", use_container_width=True,
                     disabled=state.is_submitting):
            with st.spinner("Confirming..."):
                asyncio.run(wizard.confirm())
            st.rerun()


def render_success(wizard: BookingWizard) -> None:
    state = wizard.state

    st.success(f"Booking Confirmed! Your table at {wizard.restaurant.name} is reserved")
    st.markdown("Confirmation Code")
    st.markdown(f"## `{state.confirmation_code}`")
    st.markdown(f"📅 {_long_date(state.date)}  \n🕒 {state.time}  \n👥 {state.guests} guests")

    url = wizard.calendar_url()
    if url:
        st.link_button("📆 Add to Calendar", url, use_container_width=True)
    if st.button("Done", type="primary", use_container_width=True):
        wizard.close()
        st.rerun()


STEP_RENDERERS = {
    STEP_SELECT: render_select,
    STEP_DETAILS: render_details,
    STEP_CONFIRM: render_confirm,
    STEP_SUCCESS: render_success,
}


def main():
    st.set_page_config(
        page_title="Anfi - Book a Table",
        page_icon="🍽️",
        layout="wide",
        initial_sidebar_state="expanded"
    )

    st.markdown("""
        <style>
        #MainMenu, footer, .stDeployButton {display: none !important;}
        .main .block-container {max-width: 900px; padding: 1rem 2rem 3rem 2rem;}
        .stButton > button[kind="primary"] {background: #f97316; border: none;}
        .stButton > button:disabled {text-decoration: line-through; opacity: 0.5;}
        </style>
    """, unsafe_allow_html=True)

    for key, default in (("toasts", []), ("bookings", []), ("wizard", None), ("selected_restaurant", None)):
        if key not in st.session_state:
            st.session_state[key] = default

    conn = init_db()
    seed_restaurants_if_empty(conn)
    restaurants = load_restaurants(conn)
    logger.debug("Loaded %d restaurants", len(restaurants))

    with st.sidebar:
        st.markdown("### 🍽️ Restaurants")
        st.caption("Pick a place to book a table")
        for rest in restaurants:
            with st.expander(rest.name, expanded=False):
                st.markdown(f"**{rest.address}** · {rest.cuisine}\n\n⭐ {rest.rating} ({rest.review_count} reviews)")
                if rest.description:
                    st.caption(rest.description)
                if st.button("Book a table", key=f"book_{rest.id}", use_container_width=True):
                    if st.session_state.wizard is not None:
                        st.session_state.wizard.close()
                    st.session_state.selected_restaurant = rest
                    st.rerun()

        st.divider()
        st.metric("Bookings this session", len(st.session_state.bookings))
        if check_health():
            st.caption("🟢 Anfi backend online")
        else:
            st.caption("🟠 Backend offline, showing the local catalog")

    _show_toasts()

    restaurant = st.session_state.selected_restaurant
    if restaurant is None:
        st.markdown("## Book a table in Sylhet")
        st.markdown("Choose a restaurant from the sidebar to get started.")
        return

    wizard = _open_wizard(restaurant)
    render_header(restaurant)
    if wizard.step != STEP_SUCCESS and st.button("✕ Cancel"):
        wizard.close()
        st.rerun()
    STEP_RENDERERS[wizard.step](wizard)


if __name__ == "__main__":
    main()
