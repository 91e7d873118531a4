"""
Response Sanitizer: catches replies where the model announces an action it is
not actually performing (e.g. "vou enviar as fotos" while the system sends them).
"""

import logging

logger = logging.getLogger(__name__)


class ResponseSanitizer:
    def __init__(self, leak_phrases: list[str], ack_token: str):
        self.leak_phrases = [p.lower() for p in leak_phrases if p]
        self.ack_token = ack_token

    def find_leak(self, text: str) -> str | None:
        lowered = text.lower()
        for phrase in self.leak_phrases:
            if phrase in lowered:
                return phrase
        return None

    def sanitize(self, candidate: str, was_about_to_send_media: bool) -> str:
        """Whole-reply replacement only; partial edits leave broken sentences."""
        if not was_about_to_send_media:
            return candidate
        phrase = self.find_leak(candidate)
        if phrase is None:
            return candidate
        logger.info("Filtered reply announcing media send (matched %r)", phrase)
        return self.ack_token
