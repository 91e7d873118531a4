import asyncio
from datetime import datetime, timedelta, timezone

from app.models.dialogue import DialogueSignals, Generation
from app.models.webhook import WebhookSource

PHONE = "5511981598027"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_conversations(client, container):
    asyncio.run(container.dialogue.handle_inbound_message(PHONE, "Oi"))

    listing = client.get("/admin/conversations").json()
    assert listing["count"] == 1
    assert listing["conversations"][0]["phoneNumber"] == PHONE

    detail = client.get("/admin/conversations/11981598027")
    assert detail.status_code == 200
    assert len(detail.json()["history"]) == 2

    assert client.get("/admin/conversations/5511900000000").status_code == 404


def test_manual_lead_and_quality_filter(client):
    response = client.post(
        "/admin/leads",
        json={
            "phoneNumber": "11981598027",
            "name": "Maria",
            "preferences": {"purchase_budget": "até 300 mil", "timeframe": "imediato", "financing": "aprovado"},
        },
    )
    assert response.status_code == 200
    lead = response.json()["lead"]
    assert lead["source"] == "manual"
    assert lead["score"] == 55
    assert lead["quality"] == "warm"

    assert client.get("/admin/leads", params={"quality": "warm"}).json()["count"] == 1
    assert client.get("/admin/leads", params={"quality": "hot"}).json()["count"] == 0
    assert client.get(f"/admin/leads/{PHONE}").json()["name"] == "Maria"
    assert client.get("/admin/leads/5511900000000").status_code == 404


def test_manual_lead_requires_phone(client):
    response = client.post("/admin/leads", json={"name": "Maria"})
    assert response.status_code == 400


def test_metrics(client):
    client.post("/admin/leads", json={"phoneNumber": "11981598027"})
    metrics = client.get("/admin/metrics").json()
    assert metrics["total_leads"] == 1
    assert metrics["leads_by_quality"] == {"hot": 0, "warm": 0, "cold": 1}


def test_send_message(client, provider):
    response = client.post("/admin/send-message", json={"phoneNumber": "11981598027", "message": "Olá!"})
    assert response.status_code == 200
    assert provider.texts_to(PHONE) == ["Olá!"]

    assert client.post("/admin/send-message", json={"message": "Olá!"}).status_code == 400


def test_test_ai_does_not_send(client, provider, generator):
    generator.reply(Generation(reply_text="Oi! Sou a Susi 😊", signals=DialogueSignals()))

    response = client.post("/admin/test-ai", json={"message": "Oi", "phoneNumber": "11981598027"})

    assert response.status_code == 200
    assert response.json()["reply"] == "Oi! Sou a Susi 😊"
    assert response.json()["branch"] == "reply"
    assert provider.texts == []


def test_catalog_invalidate(client):
    response = client.post("/admin/catalog/invalidate")
    assert response.json() == {"status": "ok", "active_properties": 2}


def test_reminder_job(client, container, provider, settings):
    asyncio.run(container.reminders.schedule(
        event_uri="EV1",
        customer_name="Maria",
        customer_phone=PHONE,
        property_title="Apartamento Vila Virgínia",
        property_address="Vila Virgínia, Itaquaquecetuba",
        event_time=datetime.now(timezone.utc) + timedelta(minutes=30),
        now=datetime.now(timezone.utc) - timedelta(hours=1),
    ))

    response = client.post("/admin/jobs/reminders")

    assert response.json() == {"reminders_sent": 1}
    assert len(provider.texts_to(PHONE)) == 1
    assert len(provider.texts_to(settings.realtor_phone)) == 1


def test_purge_receipts_job(client, container):
    old = datetime.now(timezone.utc) - timedelta(days=10)
    asyncio.run(container.gate.check(WebhookSource.WHATSAPP, "OLD-1", now=old))
    asyncio.run(container.gate.check(WebhookSource.WHATSAPP, "NEW-1"))

    response = client.post("/admin/jobs/purge-receipts")

    assert response.json()["receipts_purged"] == 1
