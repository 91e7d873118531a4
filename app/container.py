"""
Service wiring: builds every collaborator from settings once per process.
Routers receive it through Depends(get_container); tests swap it with set_container().
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from zoneinfo import ZoneInfo

from app.config import Settings, get_settings
from app.modules.agent.generator import AnthropicReplyGenerator, ReplyGenerator
from app.modules.agent.lead_handler import DialogueOrchestrator
from app.modules.agent.sanitizer import ResponseSanitizer
from app.modules.agent.session import SessionStore
from app.modules.catalog.baserow import BaserowCatalog
from app.modules.catalog.cache import PropertyCache
from app.modules.catalog.resolver import PropertyResolver
from app.modules.idempotency import IdempotencyGate
from app.modules.leads.store import LeadStore
from app.modules.locks import KeyedLocks
from app.modules.scheduling.calendly import CalendlyClient
from app.modules.scheduling.orchestrator import BookingLinkProvider, SchedulingOrchestrator
from app.modules.scheduling.reminders import ReminderStore
from app.modules.storage import KeyValueStore, build_store
from app.modules.whatsapp.providers.base import WhatsAppProvider
from app.modules.whatsapp.providers.evolution import EvolutionProvider
from app.modules.whatsapp.sender import WhatsAppSender

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    store: KeyValueStore
    locks: KeyedLocks
    gate: IdempotencyGate
    sessions: SessionStore
    leads: LeadStore
    catalog: PropertyCache
    resolver: PropertyResolver
    sender: WhatsAppSender
    reminders: ReminderStore
    scheduling: SchedulingOrchestrator
    dialogue: DialogueOrchestrator


def build_container(
    settings: Settings,
    store: KeyValueStore | None = None,
    provider: WhatsAppProvider | None = None,
    generator: ReplyGenerator | None = None,
    link_provider: BookingLinkProvider | None = None,
    catalog_fetch=None,
) -> Container:
    """Assemble the services. Any collaborator can be passed in to replace the real adapter."""
    ZoneInfo(settings.timezone)  # fail fast on a bad timezone name

    store = store or build_store(settings.storage_backend)
    locks = KeyedLocks()
    sessions = SessionStore(
        store,
        ttl=timedelta(hours=settings.session_ttl_hours),
        history_limit=settings.session_history_limit,
    )
    leads = LeadStore(store, settings.lead_scoring)

    if catalog_fetch is None:
        catalog_fetch = BaserowCatalog(
            settings.baserow_api_url, settings.baserow_token, settings.baserow_table_id,
        ).fetch_properties
    catalog = PropertyCache(catalog_fetch, max_age_seconds=settings.catalog_cache_seconds)
    resolver = PropertyResolver(catalog)

    provider = provider or EvolutionProvider(
        settings.evolution_api_url, settings.evolution_api_key, settings.evolution_instance,
    )
    sender = WhatsAppSender(
        provider,
        media_delay_seconds=settings.media_send_delay_seconds,
        max_images=settings.media_max_images,
    )

    link_provider = link_provider or CalendlyClient(
        public_url=settings.calendly_public_url,
        api_key=settings.calendly_api_key,
        api_url=settings.calendly_api_url,
        event_type_uri=settings.calendly_event_type_uri,
    )
    reminders = ReminderStore(store, lead_time=timedelta(minutes=settings.reminder_lead_minutes))
    scheduling = SchedulingOrchestrator(sessions, leads, locks, link_provider, sender, reminders, settings)

    generator = generator or AnthropicReplyGenerator(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        timeout_seconds=settings.anthropic_timeout_seconds,
        max_tokens=settings.anthropic_max_tokens,
        human_phone=settings.human_fallback_phone,
    )
    dialogue = DialogueOrchestrator(
        sessions=sessions,
        leads=leads,
        locks=locks,
        generator=generator,
        sanitizer=ResponseSanitizer(settings.sanitizer_leak_phrases, settings.sanitizer_ack_token),
        resolver=resolver,
        scheduling=scheduling,
        sender=sender,
        fallback_phone=settings.human_fallback_phone,
    )

    return Container(
        settings=settings,
        store=store,
        locks=locks,
        gate=IdempotencyGate(store),
        sessions=sessions,
        leads=leads,
        catalog=catalog,
        resolver=resolver,
        sender=sender,
        reminders=reminders,
        scheduling=scheduling,
        dialogue=dialogue,
    )


_container: Container | None = None


def get_container() -> Container:
    global _container
    if _container is None:
        _container = build_container(get_settings())
    return _container


def set_container(container: Container | None) -> None:
    global _container
    _container = container
