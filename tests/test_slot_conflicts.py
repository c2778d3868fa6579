"""Tests for slot conflict detection and the expired-hold sweep."""

from datetime import datetime, timedelta

import pytest

from myserv.domain.bookings.conflicts import SlotConflictResolver
from myserv.domain.bookings.repository import BookingRepository
from myserv.models import Booking, User

from conftest import NOW, TOMORROW, seed_provider


@pytest.fixture
def client_user(db):
    user = User(name="Cliente", email="cliente@example.com")
    db.add(user)
    db.commit()
    return user


def add_booking(db, link, client_user, status, hhmm="10:00", day=TOMORROW, expires_at=None, claim=True):
    booking = Booking(
        client_id=client_user.id,
        provider_id=link.service_provider_id,
        service_id=link.service_id,
        description="Limpeza",
        request_type="SCHEDULING",
        status=status,
        scheduled_date=datetime.combine(day, datetime.strptime(hhmm, "%H:%M").time()),
        scheduled_time=hhmm,
        slot_key=f"{day.isoformat()}T{hhmm}" if claim else None,
        expires_at=expires_at,
    )
    db.add(booking)
    db.commit()
    return booking


class TestHasConflict:
    def test_free_slot(self, db):
        link = seed_provider(db)
        assert not SlotConflictResolver(db).has_conflict(link.service_provider_id, TOMORROW, "10:00", NOW)

    @pytest.mark.parametrize("status", ["PENDING", "ACCEPTED", "COMPLETED"])
    def test_live_booking_conflicts(self, db, client_user, status):
        link = seed_provider(db)
        add_booking(db, link, client_user, status)
        assert SlotConflictResolver(db).has_conflict(link.service_provider_id, TOMORROW, "10:00", NOW)

    @pytest.mark.parametrize("status", ["REJECTED", "CANCELLED"])
    def test_released_booking_does_not_conflict(self, db, client_user, status):
        link = seed_provider(db)
        add_booking(db, link, client_user, status, claim=False)
        assert not SlotConflictResolver(db).has_conflict(link.service_provider_id, TOMORROW, "10:00", NOW)

    def test_hold_conflicts_only_until_expiry(self, db, client_user):
        link = seed_provider(db)
        add_booking(db, link, client_user, "HOLD", expires_at=NOW + timedelta(minutes=15))
        resolver = SlotConflictResolver(db)
        assert resolver.has_conflict(link.service_provider_id, TOMORROW, "10:00", NOW)
        assert not resolver.has_conflict(link.service_provider_id, TOMORROW, "10:00", NOW + timedelta(minutes=15))

    def test_other_time_other_day_other_provider(self, db, client_user):
        link = seed_provider(db)
        other = seed_provider(db)
        add_booking(db, link, client_user, "ACCEPTED")
        resolver = SlotConflictResolver(db)
        assert not resolver.has_conflict(link.service_provider_id, TOMORROW, "11:00", NOW)
        assert not resolver.has_conflict(link.service_provider_id, TOMORROW + timedelta(days=1), "10:00", NOW)
        assert not resolver.has_conflict(other.service_provider_id, TOMORROW, "10:00", NOW)


class TestCountLiveOnDay:
    def test_counts_only_live_bookings_of_that_day(self, db, client_user):
        link = seed_provider(db)
        add_booking(db, link, client_user, "ACCEPTED", hhmm="08:00")
        add_booking(db, link, client_user, "HOLD", hhmm="10:00", expires_at=NOW + timedelta(minutes=5))
        add_booking(db, link, client_user, "HOLD", hhmm="12:00", expires_at=NOW - timedelta(minutes=5))
        add_booking(db, link, client_user, "CANCELLED", hhmm="14:00", claim=False)
        add_booking(db, link, client_user, "ACCEPTED", hhmm="10:00", day=TOMORROW + timedelta(days=1))

        assert SlotConflictResolver(db).count_live_on_day(link.service_provider_id, TOMORROW, NOW) == 2


class TestReleaseExpiredHolds:
    def test_only_expired_holds_lose_their_claim(self, db, client_user):
        link = seed_provider(db)
        expired = add_booking(db, link, client_user, "HOLD", hhmm="08:00", expires_at=NOW - timedelta(minutes=1))
        fresh = add_booking(db, link, client_user, "HOLD", hhmm="10:00", expires_at=NOW + timedelta(minutes=10))
        accepted = add_booking(db, link, client_user, "ACCEPTED", hhmm="12:00")

        released = BookingRepository.release_expired_holds(db, NOW)

        assert released == 1
        db.expire_all()
        assert expired.slot_key is None
        assert expired.status == "HOLD"
        assert fresh.slot_key == f"{TOMORROW.isoformat()}T10:00"
        assert accepted.slot_key == f"{TOMORROW.isoformat()}T12:00"
        assert BookingRepository.release_expired_holds(db, NOW) == 0
