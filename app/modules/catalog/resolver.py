"""
Property Resolver: maps property references from the dialogue to catalog data.
"""

import json

from app.models.property import Property
from app.modules.catalog.cache import PropertyCache


class PropertyResolver:
    def __init__(self, cache: PropertyCache):
        self.cache = cache

    async def active_properties(self) -> list[Property]:
        return [p for p in await self.cache.get() if p.active]

    async def resolve(self, property_id: int | None) -> Property | None:
        if property_id is None:
            return None
        for prop in await self.active_properties():
            if prop.id == property_id:
                return prop
        return None

    async def match_text(self, text: str) -> Property | None:
        """First active property whose title or neighborhood has a word (4+ chars) in text."""
        lowered = text.lower()
        for prop in await self.active_properties():
            words = prop.title.lower().split() + (prop.neighborhood or "").lower().split()
            if any(len(word) > 3 and word in lowered for word in words):
                return prop
        return None


def format_catalog_for_prompt(properties: list[Property]) -> str:
    """Compact JSON listing of the catalog for the system prompt."""
    rows = [
        {
            "id": p.id,
            "titulo": p.title,
            "preco": p.price,
            "tipo": p.type,
            "categoria": p.category,
            "cidade": p.city,
            "bairro": p.neighborhood,
            "quartos": p.bedrooms,
            "banheiros": p.bathrooms,
            "area": p.area,
            "descricao": p.description,
        }
        for p in properties
    ]
    return json.dumps(rows, ensure_ascii=False, indent=2)
