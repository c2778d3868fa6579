"""
Add travel breakdown fields and in-app notifications

Migration to add:
- bookings.travel_per_km_portion (per-km part of the charged travel cost)
- bookings.travel_waives_on_hire (provider waives travel when hired)
- notifications table (inbox entries for clients and providers)

Existing bookings keep null values; only new bookings record them.

Run with: python migrations/add_booking_travel_breakdown_fields.py
"""

import logging
import sys

from sqlalchemy import inspect, text

from myserv.database import engine as default_engine
from myserv.models import Notification

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

NEW_COLUMNS = {
    "travel_per_km_portion": "FLOAT",
    "travel_waives_on_hire": "BOOLEAN",
}


def upgrade(engine=default_engine):
    """Add the breakdown columns and the notifications table"""
    with engine.connect() as conn:
        existing_columns = {c["name"] for c in inspect(conn).get_columns("bookings")}

        for column, column_type in NEW_COLUMNS.items():
            if column not in existing_columns:
                conn.execute(text(f"ALTER TABLE bookings ADD COLUMN {column} {column_type}"))
                logger.info(f"✅ Added {column} column")
            else:
                logger.info(f"ℹ️  {column} column already exists")

        Notification.__table__.create(conn, checkfirst=True)
        logger.info("✅ notifications table ready")

        conn.commit()
        logger.info("\n✅ Migration completed successfully!")


if __name__ == "__main__":
    try:
        upgrade()
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
