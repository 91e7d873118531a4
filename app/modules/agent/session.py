"""
Session Manager: ephemeral conversation state per phone number.
Sessions expire after an inactivity window; the lead record is never touched here.

Callers hold the per-phone lock (app.modules.locks) around read-modify-write.
"""

import logging
from datetime import datetime, timedelta, timezone

from app.models.conversation import ConversationSession
from app.modules.storage import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_PREFIX = "session:"


class SessionStore:
    def __init__(self, store: KeyValueStore, ttl: timedelta, history_limit: int = 20):
        self.store = store
        self.ttl = ttl
        self.history_limit = history_limit

    def is_expired(self, session: ConversationSession, now: datetime) -> bool:
        return now - session.last_activity > self.ttl

    async def get(self, phone: str, now: datetime | None = None) -> ConversationSession | None:
        """Live session for phone, or None when absent or expired."""
        now = now or datetime.now(timezone.utc)
        raw = await self.store.get(SESSION_PREFIX + phone)
        if not raw:
            return None
        session = ConversationSession.model_validate(raw)
        if self.is_expired(session, now):
            return None
        return session

    async def get_or_create(self, phone: str, now: datetime | None = None) -> ConversationSession:
        now = now or datetime.now(timezone.utc)
        session = await self.get(phone, now)
        if session is None:
            logger.info("Starting conversation session for %s", phone)
            session = ConversationSession(phone_number=phone, created_at=now, last_activity=now)
        return session

    async def save(self, session: ConversationSession) -> None:
        await self.store.set(SESSION_PREFIX + session.phone_number, session.model_dump(mode="json"))

    async def list_active(self, now: datetime | None = None) -> list[ConversationSession]:
        now = now or datetime.now(timezone.utc)
        sessions = []
        for key in await self.store.keys(SESSION_PREFIX):
            session = await self.get(key[len(SESSION_PREFIX):], now)
            if session:
                sessions.append(session)
        return sessions

    async def purge_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        purged = 0
        for key in await self.store.keys(SESSION_PREFIX):
            raw = await self.store.get(key)
            if raw and self.is_expired(ConversationSession.model_validate(raw), now):
                await self.store.delete(key)
                purged += 1
        return purged
