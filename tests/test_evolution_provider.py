import asyncio

import httpx
import pytest

from app.modules.whatsapp.providers.base import MessagingError
from app.modules.whatsapp.providers.evolution import EvolutionProvider
from app.modules.whatsapp.sender import WhatsAppSender


def _provider(handler):
    return EvolutionProvider(
        "https://evolution.test/",
        "key",
        "bs",
        transport=httpx.MockTransport(handler),
    )


def test_send_text_posts_to_instance_endpoint():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(201, json={"key": {"id": "OUT1"}})

    result = asyncio.run(_provider(handler).send_text("5511981598027", "Olá"))

    assert result == {"key": {"id": "OUT1"}}
    [request] = requests
    assert request.url == "https://evolution.test/message/sendText/bs"
    assert request.headers["apikey"] == "key"


def test_plain_text_success_body_is_not_an_error():
    provider = _provider(lambda request: httpx.Response(200, text="OK"))

    assert asyncio.run(provider.send_text("5511981598027", "Olá")) == {}
    assert asyncio.run(WhatsAppSender(provider).send_message("5511981598027", "Olá")) is True


def test_rejected_send_raises_messaging_error():
    provider = _provider(lambda request: httpx.Response(400, text="bad number"))

    with pytest.raises(MessagingError):
        asyncio.run(provider.send_text("5511981598027", "Olá"))
    assert asyncio.run(WhatsAppSender(provider).send_message("5511981598027", "Olá")) is False
