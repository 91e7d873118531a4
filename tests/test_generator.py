import json
from datetime import datetime, timezone

from app.models.conversation import ConversationTurn, CustomerInfo, Role
from app.models.dialogue import GenerationContext
from app.models.property import Property
from app.modules.agent.classifier import (
    detect_property_info_request,
    detect_scheduling_intent,
    extract_property_reference,
    keyword_signals,
)
from app.modules.agent.generator import build_messages, build_system_prompt, parse_generation

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _context(message="Oi", history=None, active_property=None):
    history = history if history is not None else [ConversationTurn(role=Role.CUSTOMER, text=message, timestamp=NOW)]
    return GenerationContext(
        phone_number="5511981598027",
        message=message,
        history=history,
        customer_info=CustomerInfo(),
        active_property=active_property,
        lead_profile="- Nome: Maria",
        catalog=[Property(id=125, title="Apartamento Vila Virgínia")],
    )


def test_structured_output_is_parsed():
    raw = json.dumps({
        "reply": "Bora agendar!",
        "shouldSendPropertyDetails": False,
        "propertyToSend": None,
        "schedulingInfo": {"wantsToSchedule": True, "propertyId": "125"},
        "customerInfo": {"name": "Maria", "email": None},
    })
    generation = parse_generation(raw, _context())

    assert generation.structured is True
    assert generation.reply_text == "Bora agendar!"
    assert generation.signals.scheduling_info.wants_to_schedule is True
    assert generation.signals.scheduling_info.property_id == 125
    assert generation.signals.customer_info.name == "Maria"
    assert generation.signals.customer_info.email is None


def test_json_wrapped_in_text_is_found():
    raw = 'Aqui está:\n{"reply": "Oi!", "shouldSendPropertyDetails": true, "propertyToSend": 125}'
    generation = parse_generation(raw, _context())
    assert generation.reply_text == "Oi!"
    assert generation.signals.should_send_property_details is True
    assert generation.signals.property_to_send == 125


def test_plain_text_falls_back_to_keyword_signals():
    context = _context(message="Quero agendar visita no imóvel 125")
    generation = parse_generation("Claro, vamos marcar!", context)

    assert generation.structured is False
    assert generation.reply_text == "Claro, vamos marcar!"
    assert generation.signals.scheduling_info.wants_to_schedule is True
    assert generation.signals.scheduling_info.property_id == 125


def test_keyword_signals_use_active_property_for_photo_requests():
    signals = keyword_signals("me manda as fotos", active_property_id=130)
    assert signals.should_send_property_details is True
    assert signals.property_to_send == 130
    assert signals.scheduling_info.wants_to_schedule is False


def test_keyword_detectors():
    assert detect_scheduling_intent("Quando posso ir ver o apê?")
    assert not detect_scheduling_intent("Qual o valor do condomínio?")
    assert detect_property_info_request("Quero ver foto da sala")
    assert not detect_property_info_request("Obrigado!")
    assert extract_property_reference("Me fala do ID 130") == 130
    assert extract_property_reference("código nº 77") == 77
    assert extract_property_reference("tenho 2 filhos") is None


def test_messages_alternate_and_start_with_customer():
    history = [
        ConversationTurn(role=Role.AGENT, text="Oi! Sou a Susi", timestamp=NOW),
        ConversationTurn(role=Role.CUSTOMER, text="Oi", timestamp=NOW),
        ConversationTurn(role=Role.CUSTOMER, text="Tem apê?", timestamp=NOW),
    ]
    messages = build_messages(_context(message="Tem apê?", history=history))
    assert messages == [{"role": "user", "content": "Oi\nTem apê?"}]


def test_system_prompt_carries_catalog_profile_and_active_property():
    prop = Property(id=125, title="Apartamento Vila Virgínia", neighborhood="Vila Virgínia")
    prompt = build_system_prompt(_context(active_property=prop), "(11) 98159-8027")
    assert "Susi" in prompt
    assert "Apartamento Vila Virgínia" in prompt
    assert "- Nome: Maria" in prompt
    assert "ID 125" in prompt
    assert "(11) 98159-8027" in prompt
