"""HTTP tests through FastAPI's TestClient with database and collaborators overridden."""

import pytest
from fastapi.testclient import TestClient

from myserv.database import get_db
from myserv.domain.bookings.router import get_booking_service
from myserv.domain.bookings.service import BookingService
from myserv.domain.travel.calculator import TravelPricingEngine
from myserv.domain.travel.router import get_travel_engine
from myserv.main import app

from conftest import TOMORROW, seed_provider


@pytest.fixture
def client(db, geo, notifier, clock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_travel_engine] = lambda: TravelPricingEngine(geo)
    app.dependency_overrides[get_booking_service] = lambda: BookingService(
        db, travel_engine=TravelPricingEngine(geo), notifier=notifier, clock=clock
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def booking_body(link, **overrides):
    body = {
        "serviceId": link.service_id,
        "providerId": link.service_provider_id,
        "description": "Limpeza completa do apartamento",
        "preferredDate": TOMORROW.isoformat(),
        "preferredTime": "10:00",
        "clientName": "Maria Souza",
        "clientPhone": "(11) 99999-1234",
        "clientEmail": "maria@example.com",
        "address": "Rua Augusta, 500",
        "city": "São Paulo",
        "state": "SP",
        "zipCode": "01305-000",
        "clientLat": -23.5530,
        "clientLng": -46.6570,
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestBookingEndpoints:
    def test_create_returns_201_with_pricing(self, client, db):
        link = seed_provider(db, charges_travel=True)
        resp = client.post("/bookings", json=booking_body(link))

        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        booking = data["booking"]
        assert booking["status"] == "HOLD"
        assert booking["requestType"] == "SCHEDULING"
        assert booking["estimatedPrice"] == 120.0
        assert booking["travelCost"] == 20.0
        assert booking["travel"]["breakdown"]["appliedMinimum"] is True
        assert booking["scheduledTime"] == "10:00"
        assert booking["expiresAt"] is not None

    def test_validation_errors_are_400_with_fields(self, client, db):
        link = seed_provider(db)
        resp = client.post("/bookings", json=booking_body(link, description="curta", clientPhone="123"))

        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "validation_error"
        fields = {e["field"] for e in data["errors"]}
        assert {"description", "clientPhone"} <= fields

    def test_time_without_date_is_rejected(self, client, db):
        link = seed_provider(db)
        resp = client.post("/bookings", json=booking_body(link, preferredDate=None))
        assert resp.status_code == 400

    def test_conflict_is_409(self, client, db):
        link = seed_provider(db)
        assert client.post("/bookings", json=booking_body(link)).status_code == 201
        resp = client.post("/bookings", json=booking_body(link, clientEmail="outra@example.com"))
        assert resp.status_code == 409
        assert resp.json()["error"] == "scheduling_conflict"

    def test_policy_violation_names_rule(self, client, db):
        link = seed_provider(db, schedule_settings={"maxAdvanceDays": 1})
        resp = client.post("/bookings", json=booking_body(link, preferredDate="2030-03-01"))
        assert resp.status_code == 400
        assert resp.json()["rule"] == "max_advance_days"

    def test_pricing_failure_is_400_with_warnings(self, client, db):
        link = seed_provider(db, charges_travel=True)
        resp = client.post("/bookings", json=booking_body(link, clientLat=None, clientLng=None))
        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "pricing_failure"
        assert data["warnings"]

    def test_unknown_provider_is_404(self, client, db):
        link = seed_provider(db)
        resp = client.post("/bookings", json=booking_body(link, providerId=9999))
        assert resp.status_code == 404

    def test_list_and_get(self, client, db):
        link = seed_provider(db)
        created = client.post("/bookings", json=booking_body(link)).json()["booking"]

        listing = client.get("/bookings", params={"providerId": link.service_provider_id}).json()
        assert [b["id"] for b in listing["bookings"]] == [created["id"]]
        assert listing["bookings"][0]["serviceName"] == link.service.name

        assert client.get("/bookings", params={"status": "ACCEPTED"}).json()["bookings"] == []
        assert client.get(f"/bookings/{created['id']}").json()["booking"]["clientName"] == "Maria Souza"
        assert client.get("/bookings/9999").status_code == 404

    def test_status_transitions(self, client, db):
        link = seed_provider(db)
        booking_id = client.post("/bookings", json=booking_body(link)).json()["booking"]["id"]

        resp = client.patch(f"/bookings/{booking_id}/status", json={"status": "ACCEPTED"})
        assert resp.status_code == 200
        assert resp.json()["booking"]["status"] == "ACCEPTED"
        assert resp.json()["booking"]["expiresAt"] is None

        resp = client.patch(f"/bookings/{booking_id}/status", json={"status": "CANCELLED"})
        assert resp.status_code == 400

        resp = client.patch(
            f"/bookings/{booking_id}/status",
            json={"status": "CANCELLED", "cancelReason": "Imprevisto", "cancelledBy": "PROVIDER"},
        )
        assert resp.status_code == 200
        assert resp.json()["booking"]["cancelledBy"] == "PROVIDER"

        resp = client.patch(f"/bookings/{booking_id}/status", json={"status": "ACCEPTED"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "invalid_transition"

    def test_schedule_quote(self, client, db):
        link = seed_provider(db)
        quote = client.post("/bookings", json=booking_body(link, preferredDate=None, preferredTime=None)).json()["booking"]
        assert quote["requestType"] == "QUOTE"

        resp = client.patch(
            f"/bookings/{quote['id']}/schedule",
            json={"scheduledDate": TOMORROW.isoformat(), "scheduledTime": "15:00"},
        )
        assert resp.status_code == 200
        booking = resp.json()["booking"]
        assert booking["requestType"] == "SCHEDULING"
        assert booking["status"] == "ACCEPTED"
        assert booking["scheduledTime"] == "15:00"

    def test_schedule_quote_conflict_is_409(self, client, db):
        link = seed_provider(db)
        client.post("/bookings", json=booking_body(link, clientEmail="outra@example.com"))
        quote = client.post("/bookings", json=booking_body(link, preferredDate=None, preferredTime=None)).json()["booking"]

        resp = client.patch(
            f"/bookings/{quote['id']}/schedule",
            json={"scheduledDate": TOMORROW.isoformat(), "scheduledTime": "10:00"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "scheduling_conflict"

    def test_schedule_quote_rejects_bad_time(self, client, db):
        link = seed_provider(db)
        quote = client.post("/bookings", json=booking_body(link, preferredDate=None, preferredTime=None)).json()["booking"]
        resp = client.patch(
            f"/bookings/{quote['id']}/schedule",
            json={"scheduledDate": TOMORROW.isoformat(), "scheduledTime": "25:00"},
        )
        assert resp.status_code == 400

    def test_release_expired_holds(self, client, db, clock):
        link = seed_provider(db)
        client.post("/bookings", json=booking_body(link))
        clock.advance(minutes=30)
        assert client.post("/bookings/holds/release-expired").json() == {"released": 1}


class TestTravelQuoteEndpoint:
    def test_quote_preview(self, client, db):
        link = seed_provider(db, charges_travel=True, base_price=80.0)
        resp = client.post(
            "/travel/quote",
            json={"providerId": link.service_provider_id, "serviceId": link.service_id, "clientLat": -23.56, "clientLng": -46.65},
        )
        assert resp.status_code == 200
        travel = resp.json()["travel"]
        assert travel["travelCost"] == 20.0
        assert travel["estimatedTotal"] == 100.0
        assert resp.json()["serviceName"] == link.service.name

    def test_quote_requires_a_location(self, client, db):
        link = seed_provider(db)
        resp = client.post("/travel/quote", json={"providerId": link.service_provider_id})
        assert resp.status_code == 400

    def test_quote_unknown_provider(self, client):
        resp = client.post("/travel/quote", json={"providerId": 9999, "clientLat": -23.5, "clientLng": -46.6})
        assert resp.status_code == 404


class TestScheduleSettingsEndpoints:
    def test_get_and_put(self, client, db):
        link = seed_provider(db)
        url = f"/providers/{link.service_provider_id}/schedule-settings"

        resp = client.get(url)
        assert resp.status_code == 200
        assert resp.json()["providerId"] == link.service_provider_id
        assert resp.json()["settings"]["maxDaily"] == 0

        resp = client.put(url, json={"maxDaily": 3, "autoAccept": True})
        assert resp.status_code == 200
        assert resp.json()["settings"]["maxDaily"] == 3
        assert client.get(url).json()["settings"]["autoAccept"] is True

    def test_put_rejects_invalid_values(self, client, db):
        link = seed_provider(db)
        resp = client.put(f"/providers/{link.service_provider_id}/schedule-settings", json={"maxDaily": -1})
        assert resp.status_code == 400

    def test_unknown_provider(self, client):
        assert client.get("/providers/9999/schedule-settings").status_code == 404
