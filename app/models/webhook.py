from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class WebhookSource(str, Enum):
    WHATSAPP = "whatsapp"
    TYPEBOT = "typebot"
    CALENDLY = "calendly"


class GateDecision(str, Enum):
    ACCEPT = "accept"
    DUPLICATE = "duplicate"


class WebhookReceipt(BaseModel):
    source_system: WebhookSource
    external_event_id: str
    first_seen_at: datetime
