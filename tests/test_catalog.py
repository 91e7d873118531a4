import asyncio

from app.models.property import Property
from app.modules.catalog.cache import PropertyCache
from app.modules.catalog.resolver import PropertyResolver


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _catalog(*fetch_results):
    calls = {"count": 0}
    results = list(fetch_results)

    async def fetch():
        calls["count"] += 1
        item = results.pop(0) if len(results) > 1 else results[0]
        if isinstance(item, Exception):
            raise item
        return item

    return fetch, calls


def test_cache_serves_fresh_list_without_refetching():
    clock = Clock()
    fetch, calls = _catalog([Property(id=1, title="Apartamento Centro")])
    cache = PropertyCache(fetch, max_age_seconds=300, clock=clock)

    asyncio.run(cache.get())
    clock.now += 299
    asyncio.run(cache.get())

    assert calls["count"] == 1


def test_cache_refreshes_after_freshness_window():
    clock = Clock()
    fetch, calls = _catalog([Property(id=1, title="Antigo")], [Property(id=2, title="Novo")])
    cache = PropertyCache(fetch, max_age_seconds=300, clock=clock)

    asyncio.run(cache.get())
    clock.now += 301
    properties = asyncio.run(cache.get())

    assert calls["count"] == 2
    assert [p.id for p in properties] == [2]


def test_failed_refresh_serves_last_good_list():
    clock = Clock()
    fetch, _ = _catalog([Property(id=1, title="Apartamento Centro")], RuntimeError("baserow down"))
    cache = PropertyCache(fetch, max_age_seconds=300, clock=clock)

    asyncio.run(cache.get())
    clock.now += 301
    properties = asyncio.run(cache.get())

    assert [p.id for p in properties] == [1]


def test_cold_start_failure_is_empty_list():
    fetch, _ = _catalog(RuntimeError("baserow down"))
    cache = PropertyCache(fetch, max_age_seconds=300)
    assert asyncio.run(cache.get()) == []


def test_invalidate_forces_refetch():
    fetch, calls = _catalog([Property(id=1, title="Apartamento Centro")])
    cache = PropertyCache(fetch, max_age_seconds=300)

    asyncio.run(cache.get())
    cache.invalidate()
    asyncio.run(cache.get())

    assert calls["count"] == 2


def test_from_baserow_maps_variant_columns():
    row = {
        "id": 125,
        "Título": "Apartamento Vila Virgínia",
        "Preço": "R$ 230.000",
        "Tipo": {"id": 3, "value": "Venda"},
        "Bairro": "Vila Virgínia",
        "Cidade": "Itaquaquecetuba",
        "Quartos": "2",
        "images": [{"url": "https://img.test/1.jpg"}, "https://img.test/2.jpg"],
        "Ativo": True,
    }
    prop = Property.from_baserow(row)

    assert prop.id == 125
    assert prop.title == "Apartamento Vila Virgínia"
    assert prop.price == "R$ 230.000"
    assert prop.type == "Venda"
    assert prop.bedrooms == 2
    assert prop.address == "Vila Virgínia, Itaquaquecetuba"
    assert prop.images == ["https://img.test/1.jpg", "https://img.test/2.jpg"]
    assert prop.active is True


def test_from_baserow_skips_rows_without_title_and_reads_inactive_flag():
    assert Property.from_baserow({"id": 1}) is None
    assert Property.from_baserow({"id": 2, "Title": "Casa", "Active": False}).active is False


def test_from_baserow_splits_newline_joined_image_text():
    row = {"id": 7, "Title": "Casa", "images": "https://img.test/a.jpg\n https://img.test/b.jpg\n\n"}

    assert Property.from_baserow(row).images == ["https://img.test/a.jpg", "https://img.test/b.jpg"]


def test_resolver_ignores_inactive_and_matches_text(properties):
    async def fetch():
        return properties

    resolver = PropertyResolver(PropertyCache(fetch, max_age_seconds=300))

    assert asyncio.run(resolver.resolve(125)).title == "Apartamento Vila Virgínia"
    assert asyncio.run(resolver.resolve(140)) is None
    assert asyncio.run(resolver.resolve(None)) is None
    assert asyncio.run(resolver.match_text("quero saber do sobrado no scaffidi")).id == 130
    assert asyncio.run(resolver.match_text("tem algo barato?")) is None
