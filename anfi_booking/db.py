"""
SQLite restaurant catalog - creates the table and seeds the Anfi restaurants.
"""

import sqlite3
from typing import Optional

from .config import DB_PATH, DEFAULT_CITY
from .models import Restaurant


SEED_RESTAURANTS = [
    ("Panshi", "123 Mirpur Road", "Dhaka", "Bangladeshi", 4.7, 124,
     "https://images.unsplash.com/photo-1517248135467-4c7edcad34c4?w=800&h=400&fit=crop",
     "Authentic Kacchi Biryani and traditional Bangladeshi cuisine from Sylhet."),
    ("Kacchi Bhai", "456 Dhanmondi Road", "Dhaka", "Biryani", 4.5, 98,
     "https://images.unsplash.com/photo-1513104890138-7c749659a591?w=800&h=400&fit=crop",
     "Dhaka-style Kacchi Biryani with premium ingredients."),
    ("Woondaal", "789 Gulshan Avenue", "Dhaka", "Indian", 4.4, 76,
     "https://images.unsplash.com/photo-1552566626-52f8b828add9?w=800&h=400&fit=crop",
     "North Indian curries, tandoor and lentil specialties."),
    ("Sylhet Tea House", "321 Old Airport Road", DEFAULT_CITY, "Sylheti", 4.8, 152,
     "https://images.unsplash.com/photo-1544787219-7f47ccb76574?w=800&h=400&fit=crop",
     "Seven-layer tea, shatkora beef and Sylheti snacks near the tea gardens."),
    ("Chillox", "555 Banani Main Road", "Dhaka", "American", 4.3, 210,
     "https://images.unsplash.com/photo-1571091718767-18b5b1457add?w=800&h=400&fit=crop",
     "Smash burgers, fries and shakes."),
    ("Nando's Bangladesh", "777 Panthapath", "Dhaka", "Continental", 4.2, 87,
     "https://images.unsplash.com/photo-1598515214211-89d3c73ae83b?w=800&h=400&fit=crop",
     "Flame-grilled PERi-PERi chicken."),
]


def init_db(path: str = DB_PATH) -> sqlite3.Connection:
    """Connect to DB and create tables if needed."""
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    cursor = conn.cursor()

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS restaurants(
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            street TEXT NOT NULL,
            city TEXT NOT NULL,
            cuisine TEXT NOT NULL,
            rating REAL NOT NULL DEFAULT 0,
            review_count INTEGER NOT NULL DEFAULT 0,
            image TEXT,
            description TEXT
        )
    """)

    conn.commit()
    return conn


def seed_restaurants_if_empty(conn: sqlite3.Connection) -> None:
    """Add the sample restaurants if the table is empty."""
    cursor = conn.cursor()
    cursor.execute("SELECT COUNT(*) FROM restaurants")
    if cursor.fetchone()[0] > 0:
        return

    cursor.executemany("""
        INSERT INTO restaurants (name, street, city, cuisine, rating, review_count, image, description)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, SEED_RESTAURANTS)
    conn.commit()


def _row_to_restaurant(row: sqlite3.Row) -> Restaurant:
    return Restaurant(
        id=str(row["id"]),
        name=row["name"],
        address=f"{row['street']}, {row['city']}",
        rating=row["rating"],
        image=row["image"] or "",
        cuisine=row["cuisine"],
        city=row["city"],
        description=row["description"] or "",
        review_count=row["review_count"]
    )


def list_restaurants(conn: sqlite3.Connection, city: Optional[str] = None) -> list[Restaurant]:
    """All restaurants, best rated first, optionally for one city."""
    cursor = conn.cursor()
    query = "SELECT * FROM restaurants"
    params = []
    if city:
        query += " WHERE LOWER(city) = LOWER(?)"
        params.append(city)
    query += " ORDER BY rating DESC, name"
    cursor.execute(query, params)
    return [_row_to_restaurant(row) for row in cursor.fetchall()]
