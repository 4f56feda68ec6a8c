"""
Anfi table booking
==================
Book a table at a restaurant in Sylhet:
- Streamlit booking panel (party size, date, time, contact details)
- Restaurants from the Anfi backend, or the local SQLite catalog
- Confirmation code and Google Calendar export

Run with: streamlit run main.py
"""

import logging

from anfi_booking.config import LOG_LEVEL, LOG_FORMAT
from anfi_booking.ui_streamlit import main

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

main()
