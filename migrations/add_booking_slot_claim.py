"""
Add the slot claim to the bookings table

Migration to add:
- slot_key (YYYY-MM-DDTHH:MM while the booking holds its slot)
- unique index uq_bookings_provider_slot on (provider_id, slot_key)

Existing live scheduled bookings are backfilled; when legacy data already has
two live bookings on one slot, the oldest keeps the claim.

Run with: python migrations/add_booking_slot_claim.py [upgrade|downgrade]
"""

import logging
import sys
from datetime import datetime

from sqlalchemy import inspect, text

from myserv.database import engine as default_engine

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

INDEX_NAME = "uq_bookings_provider_slot"
LIVE_STATUSES = ("PENDING", "ACCEPTED", "COMPLETED")


def _as_datetime(value):
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def backfill_slot_keys(conn, now: datetime) -> int:
    rows = conn.execute(
        text(
            """
            SELECT id, provider_id, scheduled_date, scheduled_time, status, expires_at
            FROM bookings
            WHERE scheduled_date IS NOT NULL AND slot_key IS NULL
            ORDER BY created_at, id
            """
        )
    ).fetchall()

    existing = conn.execute(text("SELECT provider_id, slot_key FROM bookings WHERE slot_key IS NOT NULL"))
    claimed = {(provider_id, key) for provider_id, key in existing}
    updated = 0
    for booking_id, provider_id, scheduled_date, scheduled_time, status, expires_at in rows:
        expires_at = _as_datetime(expires_at)
        live = status in LIVE_STATUSES or (status == "HOLD" and (expires_at is None or expires_at > now))
        if not live:
            continue

        start = _as_datetime(scheduled_date)
        key = f"{start.date().isoformat()}T{scheduled_time or start.strftime('%H:%M')}"
        if (provider_id, key) in claimed:
            logger.warning(f"⚠️ Booking {booking_id} double-books {key} for provider {provider_id}, left unclaimed")
            continue

        conn.execute(text("UPDATE bookings SET slot_key = :key WHERE id = :id"), {"key": key, "id": booking_id})
        claimed.add((provider_id, key))
        updated += 1

    return updated


def upgrade(engine=default_engine):
    """Add slot_key and its unique index"""
    with engine.connect() as conn:
        inspector = inspect(conn)
        existing_columns = {c["name"] for c in inspector.get_columns("bookings")}

        if "slot_key" not in existing_columns:
            conn.execute(text("ALTER TABLE bookings ADD COLUMN slot_key VARCHAR(16)"))
            logger.info("✅ Added slot_key column")
        else:
            logger.info("ℹ️  slot_key column already exists")

        updated = backfill_slot_keys(conn, datetime.now())
        logger.info(f"✅ Backfilled {updated} slot claim(s)")

        existing_indexes = {i["name"] for i in inspect(conn).get_indexes("bookings")}
        existing_indexes |= {u["name"] for u in inspect(conn).get_unique_constraints("bookings")}
        if INDEX_NAME not in existing_indexes:
            conn.execute(text(f"CREATE UNIQUE INDEX {INDEX_NAME} ON bookings (provider_id, slot_key)"))
            logger.info(f"✅ Created unique index {INDEX_NAME}")
        else:
            logger.info(f"ℹ️  {INDEX_NAME} already exists")

        conn.commit()
        logger.info("\n✅ Migration completed successfully!")


def downgrade(engine=default_engine):
    """Drop the unique index; the column is kept (SQLite cannot drop it everywhere)"""
    with engine.connect() as conn:
        conn.execute(text(f"DROP INDEX IF EXISTS {INDEX_NAME}"))
        conn.execute(text("UPDATE bookings SET slot_key = NULL"))
        conn.commit()
        logger.info("✅ Downgrade completed")


if __name__ == "__main__":
    action = sys.argv[1] if len(sys.argv) > 1 else "upgrade"
    try:
        if action == "downgrade":
            downgrade()
        else:
            upgrade()
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
