"""
Lead Store: one durable record per normalized phone number, merged from every
source. Score, quality and indicators are recomputed on each write.

Callers hold the per-phone lock (app.modules.locks) around apply().
"""

import logging
from datetime import datetime, timezone

from app.config import LeadScoringSettings
from app.models.conversation import ConversationSession
from app.models.lead import Lead, LeadQuality, LeadSource, LeadUpdate
from app.modules.leads.qualification import merge_lead, score_lead
from app.modules.storage import KeyValueStore

logger = logging.getLogger(__name__)

LEAD_PREFIX = "lead:"


class LeadStore:
    def __init__(self, store: KeyValueStore, weights: LeadScoringSettings):
        self.store = store
        self.weights = weights

    async def get(self, phone: str) -> Lead | None:
        raw = await self.store.get(LEAD_PREFIX + phone)
        return Lead.model_validate(raw) if raw else None

    async def list_all(self, quality: LeadQuality | None = None) -> list[Lead]:
        leads = []
        for key in await self.store.keys(LEAD_PREFIX):
            raw = await self.store.get(key)
            if not raw:
                continue
            lead = Lead.model_validate(raw)
            if quality is None or lead.quality == quality:
                leads.append(lead)
        return leads

    async def apply(
        self,
        phone: str,
        update: LeadUpdate,
        source: LeadSource,
        session: ConversationSession | None = None,
        now: datetime | None = None,
    ) -> Lead:
        """Create or merge the lead for phone and rescore it. Source is only set on creation."""
        now = now or datetime.now(timezone.utc)
        existing = await self.get(phone)
        if existing is None:
            existing = Lead(phone_number=phone, source=source, created_at=now)
            logger.info("New lead %s from %s", phone, source.value)

        lead = merge_lead(existing, update, now)
        self._rescore(lead, session, now)
        await self.store.set(LEAD_PREFIX + phone, lead.model_dump(mode="json"))
        return lead

    async def rescore(
        self,
        phone: str,
        session: ConversationSession | None = None,
        now: datetime | None = None,
    ) -> Lead | None:
        now = now or datetime.now(timezone.utc)
        lead = await self.get(phone)
        if lead is None:
            return None
        self._rescore(lead, session, now)
        await self.store.set(LEAD_PREFIX + phone, lead.model_dump(mode="json"))
        return lead

    def _rescore(self, lead: Lead, session: ConversationSession | None, now: datetime) -> None:
        previous = lead.quality
        result = score_lead(lead, session, self.weights, now)
        lead.score = result.score
        lead.quality = result.quality
        lead.indicators = result.indicators
        lead.last_evaluated = now
        if previous != lead.quality:
            logger.info("Lead %s quality %s -> %s (score=%s)", lead.phone_number, previous.value, lead.quality.value, lead.score)
