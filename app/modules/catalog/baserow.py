"""Baserow property catalog client."""

import logging

import httpx

from app.models.property import Property

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    pass


class BaserowCatalog:
    def __init__(self, api_url: str, token: str, table_id: str, timeout: float = 15.0):
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.table_id = table_id
        self.timeout = timeout

    async def fetch_properties(self) -> list[Property]:
        """All rows of the property table, following Baserow pagination."""
        if not self.token or not self.table_id:
            raise CatalogError("Baserow not configured")

        url = f"{self.api_url}/api/database/rows/table/{self.table_id}/"
        params = {"user_field_names": "true", "size": 200}
        headers = {"Authorization": f"Token {self.token}"}
        properties = []

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                while url:
                    response = await client.get(url, params=params, headers=headers)
                    response.raise_for_status()
                    data = response.json()
                    for row in data.get("results", []):
                        prop = Property.from_baserow(row)
                        if prop:
                            properties.append(prop)
                    url = data.get("next")
                    params = None  # next already carries the query string
        except httpx.HTTPError as e:
            raise CatalogError(f"Baserow request failed: {e}") from e

        return properties
