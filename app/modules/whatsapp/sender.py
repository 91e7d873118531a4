"""
Public API for sending WhatsApp messages through the configured provider.
Send failures are logged and reported as False; they never propagate.
"""

import asyncio
import logging

from app.models.property import Property
from app.modules.whatsapp.providers.base import MessagingError, WhatsAppProvider
from app.modules.whatsapp.templates import property_details

logger = logging.getLogger(__name__)


class WhatsAppSender:
    def __init__(self, provider: WhatsAppProvider, media_delay_seconds: float = 1.0, max_images: int = 3):
        self.provider = provider
        self.media_delay_seconds = media_delay_seconds
        self.max_images = max_images

    async def send_message(self, to: str, text: str) -> bool:
        try:
            await self.provider.send_text(to, text)
        except MessagingError as e:
            logger.warning("Failed to send message to %s: %s", to, e)
            return False
        logger.info("Sent message to %s: %s", to, text[:80])
        return True

    async def send_media_for_property(self, to: str, prop: Property) -> bool:
        """Details message followed by up to max_images photos, the first captioned."""
        if not await self.send_message(to, property_details(prop)):
            return False

        for index, image_url in enumerate(prop.images[: self.max_images]):
            if index > 0 and self.media_delay_seconds:
                await asyncio.sleep(self.media_delay_seconds)
            try:
                await self.provider.send_image(to, image_url, prop.title if index == 0 else None)
            except MessagingError as e:
                logger.warning("Failed to send image %d of property %s to %s: %s", index, prop.id, to, e)
                return False

        logger.info("Sent property %s details to %s", prop.id, to)
        return True
