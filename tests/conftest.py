"""Shared fixtures: in-memory storage and fakes for every outbound collaborator."""

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.container import build_container, set_container
from app.models.property import Property
from app.modules.storage import MemoryStore
from tests.fakes import FakeGenerator, FakeLinkProvider, FakeProvider


@pytest.fixture
def properties():
    return [
        Property(
            id=125,
            title="Apartamento Vila Virgínia",
            price="R$ 230.000",
            type="Venda",
            category="Apartamento",
            city="Itaquaquecetuba",
            neighborhood="Vila Virgínia",
            bedrooms=2,
            bathrooms=1,
            parking_spaces=1,
            area="48m²",
            description="Apartamento com varanda e lazer completo.",
            images=["https://img.test/125-1.jpg", "https://img.test/125-2.jpg",
                    "https://img.test/125-3.jpg", "https://img.test/125-4.jpg"],
        ),
        Property(
            id=130,
            title="Sobrado Parque Scaffidi",
            price="R$ 420.000",
            category="Sobrado",
            city="Itaquaquecetuba",
            neighborhood="Parque Residencial Scaffidi",
            bedrooms=3,
        ),
        Property(id=140, title="Casa Desativada", active=False),
    ]


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        storage_backend="memory",
        anthropic_api_key="test-key",
        media_send_delay_seconds=0,
        realtor_phone="5511999990000",
    )


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def link_provider():
    return FakeLinkProvider()


@pytest.fixture
def container(settings, provider, generator, link_provider, properties):
    async def fetch():
        return list(properties)

    return build_container(
        settings,
        store=MemoryStore(),
        provider=provider,
        generator=generator,
        link_provider=link_provider,
        catalog_fetch=fetch,
    )


@pytest.fixture
def client(container):
    from app.main import app

    set_container(container)
    with TestClient(app) as test_client:
        yield test_client
    set_container(None)
