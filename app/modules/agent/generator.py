"""
Reply Generator: asks Claude for the next reply plus structured dialogue signals.
When the model ignores the JSON format, the raw text is the reply and the
signals come from the keyword classifier.
"""

import json
import logging
from typing import Protocol

import anthropic
from anthropic import AsyncAnthropic

from app.models.conversation import CustomerInfo, Role
from app.models.dialogue import DialogueSignals, Generation, GenerationContext, SchedulingInfo
from app.modules.agent.classifier import keyword_signals
from app.modules.agent.prompts import ACTIVE_PROPERTY_BLOCK, SDR_SYSTEM_PROMPT
from app.modules.catalog.resolver import format_catalog_for_prompt

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    pass


class ReplyGenerator(Protocol):
    async def generate(self, context: GenerationContext) -> Generation:
        ...


def build_system_prompt(context: GenerationContext, human_phone: str) -> str:
    active = ""
    if context.active_property:
        prop = context.active_property
        active = ACTIVE_PROPERTY_BLOCK.format(id=prop.id, title=prop.title, address=prop.address or "-")
    return SDR_SYSTEM_PROMPT.format(
        human_phone=human_phone,
        catalog=format_catalog_for_prompt(context.catalog),
        active_property=active,
        lead_profile=context.lead_profile or "Nenhuma informação ainda.",
    )


def build_messages(context: GenerationContext) -> list[dict]:
    """History as alternating turns; the current message is already the last history entry."""
    messages = []
    for turn in context.history:
        role = "user" if turn.role == Role.CUSTOMER else "assistant"
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n" + turn.text
        else:
            messages.append({"role": role, "content": turn.text})
    if not messages or messages[-1]["role"] != "user":
        messages.append({"role": "user", "content": context.message})
    if messages[0]["role"] != "user":
        messages = messages[1:]
    return messages


def _as_int(value) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _signals_from_json(data: dict) -> DialogueSignals:
    scheduling = data.get("schedulingInfo") or {}
    customer = data.get("customerInfo") or {}
    return DialogueSignals(
        should_send_property_details=bool(data.get("shouldSendPropertyDetails")),
        property_to_send=_as_int(data.get("propertyToSend")),
        scheduling_info=SchedulingInfo(
            wants_to_schedule=bool(scheduling.get("wantsToSchedule")),
            property_id=_as_int(scheduling.get("propertyId")),
        ),
        customer_info=CustomerInfo(
            name=customer.get("name") or None,
            email=customer.get("email") or None,
        ),
    )


def parse_generation(raw: str, context: GenerationContext) -> Generation:
    """JSON object anywhere in the output wins; otherwise plain text with keyword signals."""
    raw = raw.strip()
    data = None
    try:
        if raw.startswith("{"):
            data = json.loads(raw)
        else:
            json_start = raw.find("{")
            json_end = raw.rfind("}") + 1
            if json_start >= 0 and json_end > json_start:
                data = json.loads(raw[json_start:json_end])
    except (json.JSONDecodeError, ValueError):
        data = None

    if isinstance(data, dict) and isinstance(data.get("reply"), str):
        return Generation(reply_text=data["reply"].strip(), signals=_signals_from_json(data))

    logger.info("Model answered in plain text for %s, using keyword signals", context.phone_number)
    active_id = context.active_property.id if context.active_property else None
    return Generation(
        reply_text=raw,
        signals=keyword_signals(context.message, active_id),
        structured=False,
    )


class AnthropicReplyGenerator:
    def __init__(
        self,
        api_key: str,
        model: str,
        timeout_seconds: float = 30.0,
        max_tokens: int = 400,
        human_phone: str = "",
    ):
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout_seconds, max_retries=1)
        self.model = model
        self.max_tokens = max_tokens
        self.human_phone = human_phone

    async def generate(self, context: GenerationContext) -> Generation:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=build_system_prompt(context, self.human_phone),
                messages=build_messages(context),
            )
        except anthropic.APIError as e:
            raise GenerationError(f"Claude request failed: {e}") from e

        if not response.content:
            raise GenerationError("Claude returned an empty response")
        raw = response.content[0].text
        if not raw.strip():
            raise GenerationError("Claude returned an empty response")
        return parse_generation(raw, context)
