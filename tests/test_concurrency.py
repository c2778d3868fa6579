"""Simultaneous requests for one slot against a shared file-backed database."""

import asyncio
import threading

from myserv.domain.bookings.errors import SchedulingConflictError
from myserv.domain.bookings.service import BookingService
from myserv.domain.travel.calculator import TravelPricingEngine
from myserv.models import Booking

from conftest import FakeGeoClient, FakeNotifier, FixedClock, booking_request, make_session_factory, seed_provider

WORKERS = 6


def test_only_one_live_booking_per_slot(tmp_path):
    engine, factory = make_session_factory(f"sqlite:///{tmp_path / 'race.db'}", busy_timeout=30)
    setup = factory()
    link = seed_provider(setup)
    requests = [booking_request(link, client_email=f"client{i}@example.com") for i in range(WORKERS)]
    setup.close()

    barrier = threading.Barrier(WORKERS)
    outcomes = []
    lock = threading.Lock()

    def attempt(request):
        session = factory()
        service = BookingService(
            session,
            travel_engine=TravelPricingEngine(FakeGeoClient()),
            notifier=FakeNotifier(),
            clock=FixedClock(),
        )
        try:
            barrier.wait()
            booking = asyncio.run(service.create_booking(request))
            result = ("ok", booking.id)
        except SchedulingConflictError:
            result = ("conflict", None)
        except Exception as e:  # surfaced through the assertion below
            result = ("error", repr(e))
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(r,)) for r in requests]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    kinds = [kind for kind, _ in outcomes]
    assert kinds.count("ok") == 1, outcomes
    assert kinds.count("conflict") == WORKERS - 1, outcomes

    check = factory()
    try:
        claims = check.query(Booking).filter(Booking.slot_key.isnot(None)).all()
        assert len(claims) == 1
        assert claims[0].status == "HOLD"
    finally:
        check.close()
        engine.dispose()
