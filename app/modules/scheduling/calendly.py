"""
Calendly integration: booking links with prefilled customer/property answers,
and parsing of invitee webhooks back into bookings.

Prefilled custom questions:
  a1 = customer phone, a2 = "Imóvel ID: <id> - <title>", a3 = address, a4 = property page
"""

import logging
import re
from datetime import datetime
from urllib.parse import urlencode

import httpx

from app.models.scheduling import CalendarBooking, SchedulingRequest

logger = logging.getLogger(__name__)

PROPERTY_ANSWER_RE = re.compile(r"Im[óo]vel ID:\s*(\d+)\s*-\s*(.+)", re.IGNORECASE)
PHONE_QUESTIONS = ("phone", "telefone", "whatsapp", "celular")
ADDRESS_QUESTIONS = ("endereço", "endereco", "address")


class BookingLinkError(Exception):
    pass


class CalendlyClient:
    def __init__(
        self,
        public_url: str,
        api_key: str = "",
        api_url: str = "https://api.calendly.com",
        event_type_uri: str = "",
        timeout: float = 15.0,
    ):
        self.public_url = public_url
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.event_type_uri = event_type_uri
        self.timeout = timeout

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    @staticmethod
    def prefill_params(request: SchedulingRequest) -> dict:
        digits = re.sub(r"\D", "", request.phone_number)
        return {
            "name": request.customer_name,
            "email": request.customer_email or f"{digits}@cliente.temp",
            "a1": request.phone_number,
            "a2": f"Imóvel ID: {request.property_id} - {request.property_title}",
            "a3": request.property_address or "",
            "a4": request.property_link or "",
        }

    def public_link(self, request: SchedulingRequest) -> str:
        if not self.public_url:
            raise BookingLinkError("Calendly public URL not configured")
        return f"{self.public_url}?{urlencode(self.prefill_params(request))}"

    async def create_booking_link(self, request: SchedulingRequest) -> str:
        """Single-use link when the API is configured, else the public prefilled link."""
        if not self.api_key or not self.event_type_uri:
            return self.public_link(request)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.api_url}/scheduling_links",
                    json={
                        "max_event_count": 1,
                        "owner": self.event_type_uri,
                        "owner_type": "EventType",
                    },
                    headers=self._headers(),
                )
            response.raise_for_status()
            booking_url = response.json()["resource"]["booking_url"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("Single-use Calendly link failed, using public link: %s", e)
            return self.public_link(request)

        return f"{booking_url}?{urlencode(self.prefill_params(request))}"

    async def fetch_invitees(self, event_uri: str) -> list[dict]:
        if not self.api_key or not event_uri:
            return []
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{event_uri}/invitees", headers=self._headers())
            response.raise_for_status()
            return response.json().get("collection", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Failed to fetch Calendly invitees for %s: %s", event_uri, e)
            return []


def parse_questions(questions_and_answers) -> dict:
    """Recover phone and property data from the prefilled custom questions."""
    info = {"phone": None, "property_id": None, "property_title": None, "address": None, "link": None}
    if not isinstance(questions_and_answers, list):
        return info

    for qa in questions_and_answers:
        if not isinstance(qa, dict):
            continue
        question = str(qa.get("question") or "").lower()
        answer = str(qa.get("answer") or "").strip()
        if not answer:
            continue

        if any(token in question for token in PHONE_QUESTIONS):
            info["phone"] = answer
        match = PROPERTY_ANSWER_RE.search(answer)
        if match:
            info["property_id"] = int(match.group(1))
            info["property_title"] = match.group(2).strip()
        if any(token in question for token in ADDRESS_QUESTIONS):
            info["address"] = answer
        if answer.startswith("http"):
            info["link"] = answer

    return info


def _parse_time(value) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_booking(webhook: dict) -> CalendarBooking | None:
    """Map an invitee webhook envelope to a CalendarBooking. None for malformed envelopes."""
    if not isinstance(webhook, dict):
        return None
    event_type = webhook.get("event")
    payload = webhook.get("payload")
    if not event_type or not isinstance(payload, dict):
        return None

    scheduled_event = payload.get("scheduled_event")
    if not isinstance(scheduled_event, dict):
        scheduled_event = {}

    event_uri = payload.get("event") if isinstance(payload.get("event"), str) else scheduled_event.get("uri")
    invitee_uri = payload.get("uri") or payload.get("invitee")
    info = parse_questions(payload.get("questions_and_answers"))

    return CalendarBooking(
        event_type=event_type,
        phone_number=info["phone"],
        customer_name=payload.get("name"),
        customer_email=payload.get("email"),
        property_id=info["property_id"],
        property_title=info["property_title"],
        property_address=info["address"],
        property_link=info["link"],
        event_uri=event_uri,
        invitee_uri=invitee_uri if isinstance(invitee_uri, str) else None,
        event_time=_parse_time(scheduled_event.get("start_time")),
    )
