"""
Key-value storage shared by leads, sessions, webhook receipts and reminders.
Supports an in-process backend (development, tests) and Postgres via asyncpg.
"""

import copy
import json
import logging
from typing import Protocol

from app.database import get_pool

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Durable key-value semantics keyed by namespaced strings (e.g. lead:5511...)."""

    async def get(self, key: str) -> dict | None:
        ...

    async def set(self, key: str, value: dict) -> None:
        ...

    async def set_if_absent(self, key: str, value: dict) -> bool:
        """Store value only when key is new. Returns True if it was stored."""
        ...

    async def delete(self, key: str) -> None:
        ...

    async def keys(self, prefix: str) -> list[str]:
        ...


class MemoryStore:
    """In-process store. Values are deep-copied so callers never share state."""

    def __init__(self):
        self._data: dict[str, dict] = {}

    async def get(self, key: str) -> dict | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: dict) -> None:
        self._data[key] = copy.deepcopy(value)

    async def set_if_absent(self, key: str, value: dict) -> bool:
        if key in self._data:
            return False
        self._data[key] = copy.deepcopy(value)
        return True

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def keys(self, prefix: str) -> list[str]:
        return sorted(k for k in self._data if k.startswith(prefix))


class PostgresStore:
    """kv_store table with a JSONB value column (see app.database.KV_SCHEMA)."""

    async def get(self, key: str) -> dict | None:
        pool = await get_pool()
        raw = await pool.fetchval("SELECT value FROM kv_store WHERE key = $1", key)
        if raw is None:
            return None
        return json.loads(raw) if isinstance(raw, str) else raw

    async def set(self, key: str, value: dict) -> None:
        pool = await get_pool()
        await pool.execute(
            """
            INSERT INTO kv_store (key, value, updated_at) VALUES ($1, $2::jsonb, NOW())
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
            """,
            key,
            json.dumps(value),
        )

    async def set_if_absent(self, key: str, value: dict) -> bool:
        pool = await get_pool()
        stored = await pool.fetchval(
            """
            INSERT INTO kv_store (key, value) VALUES ($1, $2::jsonb)
            ON CONFLICT (key) DO NOTHING
            RETURNING key
            """,
            key,
            json.dumps(value),
        )
        return stored is not None

    async def delete(self, key: str) -> None:
        pool = await get_pool()
        await pool.execute("DELETE FROM kv_store WHERE key = $1", key)

    async def keys(self, prefix: str) -> list[str]:
        pool = await get_pool()
        rows = await pool.fetch(
            "SELECT key FROM kv_store WHERE starts_with(key, $1) ORDER BY key",
            prefix,
        )
        return [r["key"] for r in rows]


def build_store(backend: str) -> KeyValueStore:
    if backend == "postgres":
        logger.info("Using Postgres key-value store")
        return PostgresStore()
    logger.info("Using in-memory key-value store")
    return MemoryStore()
