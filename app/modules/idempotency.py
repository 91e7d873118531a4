"""
Webhook Idempotency Gate: drops re-delivered webhook events.

The receipt is stored before any processing starts, so a crash mid-processing
means the provider's retry is seen as a duplicate. This is best-effort
at-most-once, not transactional with the effects.
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta, timezone

from app.models.webhook import GateDecision, WebhookReceipt, WebhookSource
from app.modules.storage import KeyValueStore

logger = logging.getLogger(__name__)

RECEIPT_PREFIX = "webhook:"


def content_hash(payload) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class IdempotencyGate:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def check(
        self,
        source: WebhookSource,
        external_id: str | None,
        payload=None,
        now: datetime | None = None,
    ) -> GateDecision:
        """Record the receipt and accept, or report a duplicate. Falls back to a content hash."""
        event_id = external_id or f"sha256:{content_hash(payload)}"
        receipt = WebhookReceipt(
            source_system=source,
            external_event_id=event_id,
            first_seen_at=now or datetime.now(timezone.utc),
        )
        stored = await self.store.set_if_absent(
            f"{RECEIPT_PREFIX}{source.value}:{event_id}",
            receipt.model_dump(mode="json"),
        )
        if not stored:
            logger.info("Duplicate %s webhook %s ignored", source.value, event_id)
            return GateDecision.DUPLICATE
        return GateDecision.ACCEPT

    async def purge(self, retention: timedelta, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        purged = 0
        for key in await self.store.keys(RECEIPT_PREFIX):
            raw = await self.store.get(key)
            if raw and now - WebhookReceipt.model_validate(raw).first_seen_at > retention:
                await self.store.delete(key)
                purged += 1
        return purged
