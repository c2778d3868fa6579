"""Tests for the booking migrations and the SQL migration runner."""

import pytest
from sqlalchemy import create_engine, inspect, text

from migrations.add_booking_slot_claim import upgrade
from migrations.add_booking_travel_breakdown_fields import upgrade as upgrade_travel_breakdown
from run_migration import run_migration, split_statements

LEGACY_BOOKINGS = """
CREATE TABLE bookings (
    id INTEGER PRIMARY KEY,
    provider_id INTEGER NOT NULL,
    status VARCHAR(20) NOT NULL,
    scheduled_date DATETIME,
    scheduled_time VARCHAR(5),
    expires_at DATETIME,
    created_at DATETIME
)
"""


def legacy_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
    with engine.connect() as conn:
        conn.execute(text(LEGACY_BOOKINGS))
        rows = [
            (1, 1, "ACCEPTED", "2030-01-08 10:00:00", "10:00", None, "2030-01-01 08:00:00"),
            # Legacy double booking on the same slot: the older row keeps it
            (2, 1, "PENDING", "2030-01-08 10:00:00", "10:00", None, "2030-01-01 09:00:00"),
            (3, 1, "CANCELLED", "2030-01-08 11:00:00", "11:00", None, "2030-01-01 09:00:00"),
            (4, 1, "HOLD", "2030-01-08 12:00:00", "12:00", "2000-01-01 00:00:00", "2030-01-01 09:00:00"),
            (5, 2, "HOLD", "2030-01-08 10:00:00", "10:00", "2999-01-01 00:00:00", "2030-01-01 09:00:00"),
            (6, 1, "PENDING", None, None, None, "2030-01-01 09:00:00"),
        ]
        for row in rows:
            conn.execute(
                text(
                    "INSERT INTO bookings (id, provider_id, status, scheduled_date, scheduled_time, expires_at, created_at) "
                    "VALUES (:id, :provider_id, :status, :scheduled_date, :scheduled_time, :expires_at, :created_at)"
                ),
                dict(zip(["id", "provider_id", "status", "scheduled_date", "scheduled_time", "expires_at", "created_at"], row)),
            )
        conn.commit()
    return engine


class TestAddBookingSlotClaim:
    def test_adds_column_index_and_backfills(self, tmp_path):
        engine = legacy_engine(tmp_path)
        upgrade(engine)

        with engine.connect() as conn:
            keys = dict(conn.execute(text("SELECT id, slot_key FROM bookings ORDER BY id")).fetchall())
        assert keys == {
            1: "2030-01-08T10:00",
            2: None,
            3: None,
            4: None,
            5: "2030-01-08T10:00",
            6: None,
        }
        index_names = {i["name"] for i in inspect(engine).get_indexes("bookings")}
        assert "uq_bookings_provider_slot" in index_names

    def test_is_idempotent(self, tmp_path):
        engine = legacy_engine(tmp_path)
        upgrade(engine)
        upgrade(engine)

        columns = [c["name"] for c in inspect(engine).get_columns("bookings")]
        assert columns.count("slot_key") == 1


class TestAddBookingTravelBreakdownFields:
    def test_adds_columns_and_notifications_table(self, tmp_path):
        engine = legacy_engine(tmp_path)
        upgrade_travel_breakdown(engine)
        upgrade_travel_breakdown(engine)

        columns = [c["name"] for c in inspect(engine).get_columns("bookings")]
        assert columns.count("travel_per_km_portion") == 1
        assert columns.count("travel_waives_on_hire") == 1
        assert "notifications" in inspect(engine).get_table_names()
        with engine.connect() as conn:
            assert conn.execute(text("SELECT travel_per_km_portion FROM bookings WHERE id = 1")).scalar() is None

class TestRunMigration:
    def test_split_statements_drops_comments(self):
        sql = "-- header\nCREATE TABLE a (id INTEGER);\n\n-- only a comment;\nINSERT INTO a VALUES (1);"
        assert split_statements(sql) == ["CREATE TABLE a (id INTEGER)", "INSERT INTO a VALUES (1)"]

    def test_runs_sql_file(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'run.db'}")
        script = tmp_path / "001.sql"
        script.write_text("CREATE TABLE a (id INTEGER);\nINSERT INTO a VALUES (1);\nINSERT INTO a VALUES (2);\n")

        run_migration(str(script), engine)

        with engine.connect() as conn:
            assert conn.execute(text("SELECT COUNT(*) FROM a")).scalar() == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            run_migration(str(tmp_path / "nope.sql"))
