"""Shared test fixtures and helpers."""

import itertools
from datetime import date, datetime, timedelta
from typing import Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from myserv.database import Base
from myserv.domain.bookings.schemas import BookingCreate
from myserv.domain.bookings.service import BookingService
from myserv.domain.travel.calculator import TravelPricingEngine
from myserv.domain.travel.geo_client import RouteResult
from myserv.models import Service, ServiceProvider, ServiceProviderService, User

# Monday 09:00, local time
NOW = datetime(2030, 1, 7, 9, 0)
TOMORROW = NOW.date() + timedelta(days=1)

_ids = itertools.count(1)


class FixedClock:
    """Injectable clock that only moves when told to"""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeGeoClient:
    """Stands in for Nominatim/OSRM; geocodes from a dict and returns a fixed route"""

    def __init__(self, addresses: Optional[dict] = None, route_km: Optional[float] = 3.0, route_minutes: float = 9.0):
        self.addresses = addresses or {}
        self.route_km = route_km
        self.route_minutes = route_minutes
        self.geocode_calls = []
        self.route_calls = []

    async def geocode(self, address):
        self.geocode_calls.append(address)
        return self.addresses.get(address)

    async def route(self, origin, destination):
        self.route_calls.append((origin, destination))
        if self.route_km is None:
            return None
        return RouteResult(distance_km=self.route_km, duration_minutes=self.route_minutes)


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.new_requests = []
        self.status_changes = []

    async def notify_new_request(self, payload, notify_whatsapp=True):
        self.new_requests.append((payload, notify_whatsapp))
        if self.fail:
            raise RuntimeError("notification backend down")
        return {"email_sent": True, "whatsapp_sent": notify_whatsapp}

    async def notify_status_changed(self, payload):
        self.status_changes.append(payload)
        if self.fail:
            raise RuntimeError("notification backend down")
        return {"email_sent": True, "whatsapp_sent": True}


def make_session_factory(url: str = "sqlite://", busy_timeout: Optional[float] = None):
    connect_args = {"check_same_thread": False}
    if busy_timeout is not None:
        connect_args["timeout"] = busy_timeout
    if url == "sqlite://":
        engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    else:
        engine = create_engine(url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    engine, factory = make_session_factory()
    session = factory()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def geo():
    return FakeGeoClient()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def booking_service(db, geo, notifier, clock):
    return BookingService(
        db,
        travel_engine=TravelPricingEngine(geo),
        notifier=notifier,
        clock=clock,
        hold_ttl_minutes=15,
    )


def seed_provider(
    db,
    *,
    schedule_settings=None,
    charges_travel: bool = False,
    base_price: Optional[float] = 100.0,
    quote_fee: Optional[float] = None,
    rate_per_km: Optional[float] = 2.0,
    fixed_fee: Optional[float] = 5.0,
    minimum_fee: Optional[float] = 20.0,
    waives_travel_on_hire: bool = False,
    latitude: Optional[float] = -23.5505,
    longitude: Optional[float] = -46.6333,
    link_active: bool = True,
    service_active: bool = True,
    user_active: bool = True,
) -> ServiceProviderService:
    """Provider user + profile + service + pricing link; returns the link"""
    n = next(_ids)
    user = User(
        name=f"Provider {n}",
        email=f"provider{n}@example.com",
        phone="+5511988887777",
        user_type="PROVIDER",
        is_active=user_active,
    )
    provider = ServiceProvider(
        user=user,
        street="Avenida Paulista",
        number="1000",
        district="Bela Vista",
        city="São Paulo",
        state="SP",
        zip_code="01310-100",
        latitude=latitude,
        longitude=longitude,
        charges_travel=charges_travel,
        travel_rate_per_km=rate_per_km,
        travel_fixed_fee=fixed_fee,
        travel_minimum_fee=minimum_fee,
        waives_travel_on_hire=waives_travel_on_hire,
        schedule_settings=schedule_settings,
    )
    service = Service(name=f"Faxina {n}", is_active=service_active)
    link = ServiceProviderService(
        provider=provider,
        service=service,
        base_price=base_price,
        charges_travel=charges_travel,
        quote_fee=quote_fee,
        is_active=link_active,
    )
    db.add_all([user, provider, service, link])
    db.commit()
    db.refresh(link)
    return link


def booking_request(
    link: ServiceProviderService,
    preferred_date: Optional[date] = TOMORROW,
    preferred_time: Optional[str] = "10:00",
    **overrides,
) -> BookingCreate:
    data = {
        "service_id": link.service_id,
        "provider_id": link.service_provider_id,
        "description": "Limpeza completa do apartamento",
        "preferred_date": preferred_date.isoformat() if preferred_date else None,
        "preferred_time": preferred_time,
        "client_name": "Maria Souza",
        "client_phone": "(11) 99999-1234",
        "client_email": "maria@example.com",
        "address": "Rua Augusta, 500",
        "city": "São Paulo",
        "state": "SP",
        "zip_code": "01305-000",
        "client_lat": -23.5530,
        "client_lng": -46.6570,
    }
    data.update(overrides)
    return BookingCreate(**data)
