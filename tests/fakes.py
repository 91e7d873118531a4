"""Fakes for the outbound collaborators: WhatsApp provider, reply generator, booking links."""

from app.models.dialogue import Generation
from app.models.scheduling import SchedulingRequest
from app.modules.scheduling.calendly import BookingLinkError
from app.modules.whatsapp.providers.base import MessagingError
from app.modules.whatsapp.providers.evolution import parse_webhook


class FakeProvider:
    def __init__(self):
        self.texts: list[tuple[str, str]] = []
        self.images: list[tuple[str, str, str | None]] = []
        self.fail = False

    def parse_webhook(self, body):
        return parse_webhook(body)

    async def send_text(self, to, text):
        if self.fail:
            raise MessagingError("provider down")
        self.texts.append((to, text))
        return {}

    async def send_image(self, to, image_url, caption=None):
        if self.fail:
            raise MessagingError("provider down")
        self.images.append((to, image_url, caption))
        return {}

    def texts_to(self, phone):
        return [text for to, text in self.texts if to == phone]


class FakeGenerator:
    """Returns queued generations (or raises queued exceptions) in order."""

    def __init__(self):
        self.queue: list = []
        self.contexts = []

    def reply(self, generation: Generation):
        self.queue.append(generation)

    def fail(self, error: Exception):
        self.queue.append(error)

    async def generate(self, context):
        self.contexts.append(context)
        item = self.queue.pop(0) if self.queue else Generation(reply_text="Oi! Sou a Susi 😊")
        if isinstance(item, Exception):
            raise item
        return item


class FakeLinkProvider:
    def __init__(self):
        self.requests: list[SchedulingRequest] = []
        self.invitees: list[dict] = []
        self.fail = False

    async def create_booking_link(self, request):
        self.requests.append(request)
        if self.fail:
            raise BookingLinkError("calendar provider rejected the request")
        return f"https://calendly.com/bs-consultoria?a1={request.phone_number}"

    async def fetch_invitees(self, event_uri):
        return self.invitees
