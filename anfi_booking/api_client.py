"""
Talks to the Anfi REST backend for restaurant data.
"""

import json
import logging
import sqlite3
from typing import Optional, Union

import requests

from .config import ANFI_API_URL, ANFI_HEALTH_URL, API_TIMEOUT
from .db import list_restaurants
from .models import Restaurant

logger = logging.getLogger(__name__)


def call_anfi_api(path: str, params: Optional[dict] = None) -> dict:
    """GET from the backend. Failures come back as {"error": ...}."""
    url = f"{ANFI_API_URL}/{path.lstrip('/')}"
    try:
        resp = requests.get(url, params=params, timeout=API_TIMEOUT)

        if resp.status_code != 200:
            try:
                err_json = resp.json()
                message = err_json.get("message") or json.dumps(err_json)
            except ValueError:
                message = resp.text
            logger.warning("Anfi API %s returned %s", url, resp.status_code)
            return {"error": f"Anfi API error {resp.status_code}: {message}"}

        body = resp.json()
        if not isinstance(body, dict):
            logger.warning("Anfi API %s returned a %s body", url, type(body).__name__)
            return {"error": "Unexpected Anfi API response format"}
        return body

    except requests.exceptions.RequestException as e:
        logger.warning("Anfi API request to %s failed: %s", url, e)
        return {"error": f"Anfi API request failed: {str(e)}"}
    except ValueError as e:
        return {"error": f"Failed to parse Anfi API response: {str(e)}"}


def restaurant_from_api(doc: dict) -> Restaurant:
    """Map a backend restaurant document onto our Restaurant."""
    address = doc.get("address") or {}
    if isinstance(address, dict):
        street, city = address.get("street", ""), address.get("city", "")
        address_text = ", ".join(part for part in (street, city) if part)
    else:
        city, address_text = "", str(address)

    rating = doc.get("rating") or {}
    if isinstance(rating, dict):
        average, count = rating.get("average", 0), rating.get("count", 0)
    else:
        average, count = rating, 0

    images = doc.get("images") or {}
    image = ""
    if isinstance(images, dict):
        image = images.get("coverPhoto") or images.get("logo") or ""

    cuisine = doc.get("cuisineType") or []
    if isinstance(cuisine, list):
        cuisine = ", ".join(cuisine)

    return Restaurant(
        id=str(doc.get("_id") or doc.get("id") or ""),
        name=doc.get("name", ""),
        address=address_text,
        rating=float(average or 0),
        image=image,
        cuisine=cuisine,
        city=city,
        description=doc.get("description", "") or "",
        review_count=int(count or 0)
    )


def fetch_restaurants() -> Union[list[Restaurant], dict]:
    """Active, approved restaurants from GET /restaurants."""
    result = call_anfi_api("restaurants")
    if "error" in result:
        return result
    if not result.get("success", True):
        return {"error": result.get("message", "Failed to fetch restaurants")}
    docs = result.get("data") or []
    if not isinstance(docs, list):
        return {"error": "Unexpected Anfi API response format"}
    return [restaurant_from_api(doc) for doc in docs if isinstance(doc, dict)]


def check_health() -> bool:
    try:
        resp = requests.get(ANFI_HEALTH_URL, timeout=API_TIMEOUT)
        return resp.status_code == 200
    except requests.exceptions.RequestException as e:
        logger.warning("Anfi health check failed: %s", e)
        return False


def load_restaurants(conn: sqlite3.Connection) -> list[Restaurant]:
    """Backend first, local catalog if the backend is down or empty."""
    restaurants = fetch_restaurants()
    if isinstance(restaurants, list) and restaurants:
        return restaurants
    if isinstance(restaurants, dict):
        logger.info("Using local restaurant catalog (%s)", restaurants["error"])
    return list_restaurants(conn)
