import asyncio

from app.config import TypebotFieldSettings
from app.modules.leads.intake import MissingPhoneError, extract_field, extract_lead_signal

FIELDS = TypebotFieldSettings()


def test_phone_from_direct_field():
    signal = extract_lead_signal({"phone": "(11) 98159-8027"}, FIELDS, "55")
    assert signal.phone_number == "5511981598027"


def test_phone_from_answer_block_id():
    payload = {
        "resultId": "r-1",
        "answers": [
            {"blockId": "nome_block", "value": "Maria"},
            {"blockId": "telefone_block", "value": "11 98159 8027"},
        ],
    }
    signal = extract_lead_signal(payload, FIELDS, "55")
    assert signal.phone_number == "5511981598027"
    assert signal.name == "Maria"
    assert signal.result_id == "r-1"


def test_phone_from_named_variable():
    payload = {"variables": [{"name": "WhatsApp", "value": "+55 11 98159-8027"}]}
    assert extract_lead_signal(payload, FIELDS, "55").phone_number == "5511981598027"


def test_missing_phone_raises():
    try:
        extract_lead_signal({"answers": [{"blockId": "nome", "value": "Maria"}]}, FIELDS, "55")
    except MissingPhoneError as e:
        assert str(e) == "Phone number is required"
    else:
        raise AssertionError("MissingPhoneError not raised")


def test_direct_field_wins_over_answers():
    payload = {"email": "direto@example.com", "answers": [{"variableId": "email", "value": "answer@example.com"}]}
    assert extract_field(payload, FIELDS.email) == "direto@example.com"


def test_attributes_and_unmapped_answers():
    payload = {
        "phone": "11981598027",
        "answers": [
            {"blockId": "tipoImovel", "value": "Apartamento"},
            {"blockId": "budgetCompra", "value": "até 300 mil"},
            {"blockId": "prazo", "value": "3 meses"},
            {"blockId": "pets", "value": "tenho 2 cachorros"},
        ],
    }
    signal = extract_lead_signal(payload, FIELDS, "55")
    assert signal.typebot_data.property_type == "Apartamento"
    assert signal.typebot_data.purchase_budget == "até 300 mil"
    assert signal.typebot_data.timeframe == "3 meses"
    assert signal.typebot_data.extra_answers == {"pets": "tenho 2 cachorros"}


def test_webhook_without_phone_is_rejected_and_creates_no_lead(client, container):
    response = client.post("/typebot/webhook", json={"answers": [{"blockId": "nome", "value": "Maria"}]})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Phone number is required"}
    assert asyncio.run(container.leads.list_all()) == []


def test_webhook_creates_lead(client, container):
    response = client.post(
        "/typebot/webhook",
        json={"resultId": "r-10", "phone": "(11) 98159-8027", "name": "Maria", "email": "maria@example.com"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "phoneNumber": "5511981598027"}
    lead = asyncio.run(container.leads.get("5511981598027"))
    assert lead.source.value == "typebot"
    assert lead.email == "maria@example.com"


def test_null_email_never_clears_stored_email(client, container):
    client.post("/typebot/webhook", json={"resultId": "r-1", "phone": "11981598027", "email": "maria@example.com"})
    response = client.post(
        "/typebot/webhook",
        json={"resultId": "r-2", "phone": "11981598027", "email": None, "localizacao": "Itaquá"},
    )

    assert response.status_code == 200
    lead = asyncio.run(container.leads.get("5511981598027"))
    assert lead.email == "maria@example.com"
    assert lead.typebot_data.location == "Itaquá"


def test_redelivered_submission_is_acknowledged_once(client, container):
    payload = {"resultId": "r-7", "phone": "11981598027", "name": "Maria"}
    first = client.post("/typebot/webhook", json=payload)
    second = client.post("/typebot/webhook", json={**payload, "name": "Outra"})

    assert first.status_code == second.status_code == 200
    lead = asyncio.run(container.leads.get("5511981598027"))
    assert lead.name == "Maria"
