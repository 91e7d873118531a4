"""
Lead Handler: orchestrates the response flow for inbound WhatsApp messages.

Per message: record the turn, ask the generator for a reply plus signals,
then branch (first match wins):
  1. scheduling intent   -> booking link via the Scheduling Orchestrator
  2. property details    -> sanitized text + property media
  3. anything else       -> sanitized text reply
Every branch merges customer info into the lead and rescores it.
"""

import logging
from datetime import datetime, timezone

from app.models.conversation import Role
from app.models.dialogue import (
    DialogueBranch,
    DialogueOutcome,
    GenerationContext,
    SideEffect,
    SideEffectKind,
)
from app.models.lead import LeadSource, LeadUpdate
from app.models.property import Property
from app.modules.agent.classifier import extract_property_reference
from app.modules.agent.generator import ReplyGenerator
from app.modules.agent.sanitizer import ResponseSanitizer
from app.modules.agent.session import SessionStore
from app.modules.catalog.resolver import PropertyResolver
from app.modules.leads.qualification import format_lead_profile
from app.modules.leads.store import LeadStore
from app.modules.locks import KeyedLocks
from app.modules.scheduling.orchestrator import SchedulingOrchestrator
from app.modules.whatsapp import templates
from app.modules.whatsapp.sender import WhatsAppSender

logger = logging.getLogger(__name__)


class DialogueOrchestrator:
    def __init__(
        self,
        sessions: SessionStore,
        leads: LeadStore,
        locks: KeyedLocks,
        generator: ReplyGenerator,
        sanitizer: ResponseSanitizer,
        resolver: PropertyResolver,
        scheduling: SchedulingOrchestrator,
        sender: WhatsAppSender,
        fallback_phone: str,
    ):
        self.sessions = sessions
        self.leads = leads
        self.locks = locks
        self.generator = generator
        self.sanitizer = sanitizer
        self.resolver = resolver
        self.scheduling = scheduling
        self.sender = sender
        self.fallback_phone = fallback_phone

    async def handle_inbound_message(
        self,
        phone: str,
        text: str,
        push_name: str | None = None,
    ) -> DialogueOutcome:
        """Decide the reply and side effects for one customer message. Never raises on collaborator failures."""
        now = datetime.now(timezone.utc)
        async with self.locks.hold(phone):
            session = await self.sessions.get_or_create(phone, now)
            session.append(Role.CUSTOMER, text, now, self.sessions.history_limit)
            await self.sessions.save(session)
            lead = await self.leads.get(phone)

        catalog = await self.resolver.active_properties()
        active_property = await self.resolver.resolve(session.active_property_id)
        context = GenerationContext(
            phone_number=phone,
            message=text,
            history=session.history,
            customer_info=session.customer_info,
            active_property=active_property,
            lead_profile=format_lead_profile(lead),
            catalog=catalog,
        )

        try:
            generation = await self.generator.generate(context)
        except Exception as e:
            logger.warning("Reply generation failed for %s: %s", phone, e)
            outcome = DialogueOutcome(
                phone_number=phone,
                reply_text=templates.technical_difficulties(self.fallback_phone),
                branch=DialogueBranch.REPLY,
            )
            outcome.side_effects.append(SideEffect(kind=SideEffectKind.SEND_TEXT, text=outcome.reply_text))
            await self._record_reply(phone, outcome, engaged_property=None)
            return outcome

        signals = generation.signals
        name = signals.customer_info.name or session.customer_info.name or (lead.name if lead else None)
        email = signals.customer_info.email or session.customer_info.email or (lead.email if lead else None)

        if signals.scheduling_info.wants_to_schedule:
            prop = await self._resolve_property(signals.scheduling_info.property_id, text, session.active_property_id)
            outcome = await self._scheduling_branch(phone, name or push_name, email, prop)
            engaged = prop
        else:
            prop = None
            if signals.should_send_property_details:
                prop = await self._resolve_property(signals.property_to_send, text, session.active_property_id)
            if prop is not None:
                reply = self.sanitizer.sanitize(generation.reply_text, was_about_to_send_media=True)
                outcome = DialogueOutcome(
                    phone_number=phone,
                    reply_text=reply,
                    branch=DialogueBranch.PROPERTY_DETAILS,
                    side_effects=[
                        SideEffect(kind=SideEffectKind.SEND_TEXT, text=reply),
                        SideEffect(kind=SideEffectKind.SEND_PROPERTY_MEDIA, property=prop),
                    ],
                )
            else:
                reply = self.sanitizer.sanitize(generation.reply_text, was_about_to_send_media=False)
                outcome = DialogueOutcome(
                    phone_number=phone,
                    reply_text=reply,
                    branch=DialogueBranch.REPLY,
                    side_effects=[SideEffect(kind=SideEffectKind.SEND_TEXT, text=reply)],
                )
            engaged = prop

        outcome.signals = signals
        await self._record_reply(phone, outcome, engaged_property=engaged)
        logger.info("Dialogue for %s: branch=%s structured=%s", phone, outcome.branch.value, generation.structured)
        return outcome

    async def _resolve_property(self, property_id: int | None, text: str, active_id: int | None) -> Property | None:
        """Explicit id, then a reference in the text, then the session's property, then a title/neighborhood match."""
        for candidate in (property_id, extract_property_reference(text), active_id):
            prop = await self.resolver.resolve(candidate)
            if prop is not None:
                return prop
        return await self.resolver.match_text(text)

    async def _scheduling_branch(
        self,
        phone: str,
        name: str | None,
        email: str | None,
        prop: Property | None,
    ) -> DialogueOutcome:
        link = None
        if prop is None:
            logger.info("Scheduling intent from %s without a resolvable property", phone)
            reply = templates.scheduling_pick_property()
        else:
            result = await self.scheduling.request_visit(phone, name, email, prop)
            if result.success:
                link = result.scheduling_link
                reply = templates.scheduling_link(name, prop.title, link)
            else:
                reply = templates.scheduling_failed(self.fallback_phone)

        return DialogueOutcome(
            phone_number=phone,
            reply_text=reply,
            branch=DialogueBranch.SCHEDULING,
            side_effects=[SideEffect(kind=SideEffectKind.SEND_TEXT, text=reply)],
            scheduling_link=link,
        )

    async def _record_reply(self, phone: str, outcome: DialogueOutcome, engaged_property: Property | None) -> None:
        now = datetime.now(timezone.utc)
        customer = outcome.signals.customer_info
        async with self.locks.hold(phone):
            session = await self.sessions.get_or_create(phone, now)
            session.append(Role.AGENT, outcome.reply_text, now, self.sessions.history_limit)
            if customer.name:
                session.customer_info.name = customer.name
            if customer.email:
                session.customer_info.email = customer.email
            if engaged_property is not None:
                session.active_property_id = engaged_property.id
            await self.sessions.save(session)
            await self.leads.apply(
                phone,
                LeadUpdate(
                    name=customer.name,
                    email=customer.email,
                    property_id=engaged_property.id if engaged_property else None,
                    new_messages=1,
                ),
                source=LeadSource.WHATSAPP,
                session=session,
                now=now,
            )

    async def dispatch(self, outcome: DialogueOutcome) -> bool:
        """Perform the outcome's side effects in order. False when any send failed."""
        delivered = True
        for effect in outcome.side_effects:
            if effect.kind == SideEffectKind.SEND_TEXT and effect.text:
                delivered = await self.sender.send_message(outcome.phone_number, effect.text) and delivered
            elif effect.kind == SideEffectKind.SEND_PROPERTY_MEDIA and effect.property:
                delivered = await self.sender.send_media_for_property(outcome.phone_number, effect.property) and delivered
        if not delivered:
            logger.warning("Not every message reached %s (branch=%s)", outcome.phone_number, outcome.branch.value)
        return delivered

    async def process_inbound_message(self, phone: str, text: str, push_name: str | None = None) -> DialogueOutcome:
        outcome = await self.handle_inbound_message(phone, text, push_name)
        await self.dispatch(outcome)
        return outcome
