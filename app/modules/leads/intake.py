"""
Typebot lead intake: turns a form submission into a normalized phone number
plus the lead attributes the SDR agent uses as context.

Each attribute is looked up in three tiers, first match wins:
direct payload field -> answers (blockId / variableId) -> variables (name).
"""

from pydantic import BaseModel

from app.config import TypebotFieldSettings
from app.models.lead import LeadUpdate, TypebotData
from app.modules.leads.phone import normalize_phone

TYPEBOT_ATTRIBUTES = (
    "transaction_type",
    "property_type",
    "purchase_budget",
    "rental_budget",
    "location",
    "timeframe",
    "financing",
    "message",
)


class MissingPhoneError(ValueError):
    def __init__(self):
        super().__init__("Phone number is required")


class LeadSignal(BaseModel):
    phone_number: str
    name: str | None = None
    email: str | None = None
    typebot_data: TypebotData
    result_id: str | None = None

    def to_update(self) -> LeadUpdate:
        return LeadUpdate(name=self.name, email=self.email, typebot_data=self.typebot_data)


def _as_text(value) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, list):
        return ", ".join(str(v) for v in value if v not in (None, "")) or None
    return str(value)


def _answers(payload: dict) -> list[dict]:
    answers = payload.get("answers")
    return [a for a in answers if isinstance(a, dict)] if isinstance(answers, list) else []


def _variables(payload: dict) -> list[dict]:
    variables = payload.get("variables")
    return [v for v in variables if isinstance(v, dict)] if isinstance(variables, list) else []


def extract_field(payload: dict, names: list[str]):
    """Three-tier lookup of an attribute by its synonym names."""
    for name in names:
        if payload.get(name):
            return payload[name]

    lowered = [n.lower() for n in names]
    for answer in _answers(payload):
        block_id = str(answer.get("blockId") or "").lower()
        variable_id = str(answer.get("variableId") or "").lower()
        for name in lowered:
            if name in block_id or name in variable_id:
                return answer.get("value")

    for variable in _variables(payload):
        var_name = str(variable.get("name") or "").lower()
        for name in lowered:
            if name in var_name:
                return variable.get("value")

    return None


def extract_phone(payload: dict, fields: TypebotFieldSettings, country_code: str) -> str | None:
    return normalize_phone(_as_text(extract_field(payload, fields.phone)), country_code)


def _unmapped_answers(payload: dict, fields: TypebotFieldSettings) -> dict[str, str]:
    mapped = [
        name.lower()
        for attr in ("phone", "name", "email", *TYPEBOT_ATTRIBUTES)
        for name in getattr(fields, attr)
    ]
    extra = {}
    for index, answer in enumerate(_answers(payload)):
        key = answer.get("blockId") or answer.get("variableId") or f"answer_{index}"
        value = _as_text(answer.get("value"))
        if value and not any(name in str(key).lower() for name in mapped):
            extra[str(key)] = value
    return extra


def extract_lead_signal(payload: dict, fields: TypebotFieldSettings, country_code: str) -> LeadSignal:
    """Raises MissingPhoneError when no phone-bearing field, answer or variable exists."""
    if not isinstance(payload, dict):
        raise MissingPhoneError()

    phone = extract_phone(payload, fields, country_code)
    if not phone:
        raise MissingPhoneError()

    data = TypebotData(
        **{attr: _as_text(extract_field(payload, getattr(fields, attr))) for attr in TYPEBOT_ATTRIBUTES},
        extra_answers=_unmapped_answers(payload, fields),
    )
    return LeadSignal(
        phone_number=phone,
        name=_as_text(extract_field(payload, fields.name)),
        email=_as_text(extract_field(payload, fields.email)),
        typebot_data=data,
        result_id=_as_text(payload.get("resultId")),
    )
