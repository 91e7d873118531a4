"""
Keyword Classifier: detects scheduling intent, photo/detail requests and
property references directly from the customer text. Used when the model
answers in plain text instead of the structured format.
"""

import re

from app.models.conversation import CustomerInfo
from app.models.dialogue import DialogueSignals, SchedulingInfo

SCHEDULING_KEYWORDS = [
    "agendar",
    "visita",
    "visitar",
    "conhecer pessoalmente",
    "ir ver",
    "horário",
    "horario",
    "quando posso",
    "disponibilidade",
]

PROPERTY_INFO_KEYWORDS = [
    "me envia",
    "envia",
    "manda",
    "me manda",
    "quero ver foto",
    "mostra foto",
    "ver foto",
    "ver imagem",
    "fotos do",
    "fotos da",
    "imagens do",
    "imagens da",
    "detalhes do",
    "detalhes da",
    "informações do",
    "informações da",
    "mais sobre o",
    "mais sobre a",
    "mais sobre esse",
    "mais sobre este",
    "quero saber mais sobre",
    "me fala sobre o",
    "me fala sobre a",
]

PROPERTY_REFERENCE_RE = re.compile(r"\b(?:im[óo]vel|id|c[óo]digo|ref\.?)\s*(?:n[ºo°]\.?\s*)?#?\s*(\d+)", re.IGNORECASE)


def detect_scheduling_intent(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in SCHEDULING_KEYWORDS)


def detect_property_info_request(text: str) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in PROPERTY_INFO_KEYWORDS)


def extract_property_reference(text: str) -> int | None:
    """'imóvel 125', 'ID 125', 'código 125' -> 125."""
    match = PROPERTY_REFERENCE_RE.search(text)
    return int(match.group(1)) if match else None


def keyword_signals(text: str, active_property_id: int | None = None) -> DialogueSignals:
    property_id = extract_property_reference(text) or active_property_id
    wants_to_schedule = detect_scheduling_intent(text)
    wants_details = not wants_to_schedule and detect_property_info_request(text)
    return DialogueSignals(
        should_send_property_details=wants_details,
        property_to_send=property_id if wants_details else None,
        scheduling_info=SchedulingInfo(
            wants_to_schedule=wants_to_schedule,
            property_id=property_id if wants_to_schedule else None,
        ),
        customer_info=CustomerInfo(),
    )
