import asyncio
from datetime import datetime, timedelta, timezone

from app.models.conversation import SchedulingState

PHONE = "5511981598027"


def test_schedule_visit_returns_link(client, container):
    response = client.post(
        "/api/schedule-visit",
        json={"customerPhone": "(11) 98159-8027", "customerName": "Maria", "propertyId": 125},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["propertyTitle"] == "Apartamento Vila Virgínia"
    assert body["customerName"] == "Maria"
    assert PHONE in body["schedulingLink"]
    session = asyncio.run(container.sessions.get(PHONE))
    assert session.scheduling_state == SchedulingState.LINK_SENT
    lead = asyncio.run(container.leads.get(PHONE))
    assert lead.source.value == "manual"


def test_schedule_visit_missing_fields(client):
    response = client.post("/api/schedule-visit", json={"customerPhone": "11981598027", "propertyId": 125})
    assert response.status_code == 400


def test_schedule_visit_unknown_or_inactive_property(client):
    for property_id in (999, 140):
        response = client.post(
            "/api/schedule-visit",
            json={"customerPhone": "11981598027", "customerName": "Maria", "propertyId": property_id},
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Property not found"}


def test_schedule_visit_provider_failure(client, link_provider):
    link_provider.fail = True
    response = client.post(
        "/api/schedule-visit",
        json={"customerPhone": "11981598027", "customerName": "Maria", "propertyId": "125"},
    )
    assert response.status_code == 500
    assert response.json()["success"] is False


def test_reminders_listing(client, container):
    event_time = datetime.now(timezone.utc) + timedelta(days=1)
    asyncio.run(container.reminders.schedule(
        event_uri="https://api.calendly.com/scheduled_events/EV9",
        customer_name="Maria",
        customer_phone=PHONE,
        property_title="Apartamento Vila Virgínia",
        property_address="Vila Virgínia, Itaquaquecetuba",
        event_time=event_time,
    ))

    response = client.get("/api/reminders")

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["reminders"][0]["customer_phone"] == PHONE
