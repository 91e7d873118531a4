"""Evolution API WhatsApp provider."""

import logging

import httpx

from app.modules.whatsapp.providers.base import IncomingMessage, MessagingError

logger = logging.getLogger(__name__)

JID_SUFFIXES = ("@s.whatsapp.net", "@c.us")
MEDIA_TYPES = {
    "audioMessage": "audio",
    "imageMessage": "image",
    "documentMessage": "document",
    "videoMessage": "video",
}


def _message_text(message: dict) -> str | None:
    text = message.get("conversation") or message.get("extendedTextMessage", {}).get("text")
    if text:
        return text
    for media_key in ("imageMessage", "videoMessage", "documentMessage"):
        caption = message.get(media_key, {}).get("caption")
        if caption:
            return caption
    return None


def parse_webhook(body: dict) -> list[IncomingMessage]:
    """Only inbound `messages.upsert` events from customers produce messages."""
    if body.get("event") != "messages.upsert":
        return []

    data = body.get("data") or {}
    key = data.get("key") or {}
    if key.get("fromMe") is not False:
        return []

    remote_jid = key.get("remoteJid") or ""
    if remote_jid.endswith("@g.us"):
        return []
    sender = remote_jid
    for suffix in JID_SUFFIXES:
        sender = sender.replace(suffix, "")
    if not sender:
        return []

    message = data.get("message") or {}
    text = _message_text(message)
    message_type = "text"
    for media_key, media_type in MEDIA_TYPES.items():
        if media_key in message:
            message_type = media_type
            break
    if not text and message_type == "text":
        message_type = "other"

    return [IncomingMessage(
        sender_phone=sender,
        message_id=key.get("id"),
        message_type=message_type,
        text=text,
        push_name=data.get("pushName"),
        raw=data,
    )]


class EvolutionProvider:
    def __init__(
        self,
        api_url: str,
        api_key: str,
        instance: str,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.instance = instance
        self.timeout = timeout
        self.transport = transport

    def parse_webhook(self, body: dict) -> list[IncomingMessage]:
        return parse_webhook(body)

    async def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.api_url}/{path}/{self.instance}"
        headers = {"apikey": self.api_key}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise MessagingError(f"Evolution API unreachable: {e}") from e

        if response.is_error:
            raise MessagingError(f"Evolution API error: {response.status_code} - {response.text[:200]}")
        try:
            return response.json()
        except ValueError:
            logger.warning("Evolution API returned a non-JSON body for %s: %s", path, response.text[:200])
            return {}

    async def send_text(self, to: str, text: str) -> dict:
        return await self._post("message/sendText", {"number": to, "text": text})

    async def send_image(self, to: str, image_url: str, caption: str | None = None) -> dict:
        payload = {
            "number": to,
            "mediatype": "image",
            "media": image_url,
            "caption": caption or "",
        }
        return await self._post("message/sendMedia", payload)
