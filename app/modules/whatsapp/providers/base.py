"""
Base interface for WhatsApp providers.
The rest of the app works with IncomingMessage and never touches provider-specific formats.
"""

from dataclasses import dataclass, field
from typing import Protocol


class MessagingError(Exception):
    """Outbound send failed (network error or provider rejection)."""


@dataclass
class IncomingMessage:
    """Normalized message format, provider-agnostic."""
    sender_phone: str
    message_id: str | None
    message_type: str  # "text", "audio", "image", "document", "other"
    text: str | None = None
    push_name: str | None = None
    raw: dict = field(default_factory=dict)


class WhatsAppProvider(Protocol):
    def parse_webhook(self, body: dict) -> list[IncomingMessage]:
        """Parse an incoming webhook body into normalized messages."""
        ...

    async def send_text(self, to: str, text: str) -> dict:
        ...

    async def send_image(self, to: str, image_url: str, caption: str | None = None) -> dict:
        ...
