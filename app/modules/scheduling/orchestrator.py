"""
Scheduling Orchestrator: turns a visit request into a booking link and
reconciles calendar webhooks with the conversation's scheduling state.

State per phone (ConversationSession.scheduling_state):
    none -> requested -> link-sent -> booked
    requested | link-sent | booked -> cancelled
    cancelled -> requested (new visit cycle)

The booking-link call runs outside the per-phone lock. A failed link leaves
the state at requested; there is no automatic retry, the customer asks again.
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from pydantic import BaseModel

from app.config import Settings
from app.models.conversation import SchedulingState
from app.models.lead import LeadSource, LeadUpdate
from app.models.property import Property
from app.models.scheduling import CalendarBooking, SchedulingRequest, SchedulingResult
from app.modules.agent.session import SessionStore
from app.modules.leads.phone import normalize_phone
from app.modules.leads.qualification import BOOKED_TAG, SCHEDULING_TAG
from app.modules.leads.store import LeadStore
from app.modules.locks import KeyedLocks
from app.modules.scheduling.calendly import parse_booking, parse_questions
from app.modules.scheduling.reminders import ReminderStore
from app.modules.whatsapp import templates
from app.modules.whatsapp.sender import WhatsAppSender

logger = logging.getLogger(__name__)

CALENDAR_EVENT_STATES = {
    "invitee.created": SchedulingState.BOOKED,
    "invitee.canceled": SchedulingState.CANCELLED,
}


class BookingLinkProvider(Protocol):
    async def create_booking_link(self, request: SchedulingRequest) -> str:
        ...

    async def fetch_invitees(self, event_uri: str) -> list[dict]:
        ...


class ReconcileOutcome(BaseModel):
    phone_number: str
    event_type: str
    target: SchedulingState
    applied: bool
    previous: SchedulingState | None = None


class SchedulingOrchestrator:
    def __init__(
        self,
        sessions: SessionStore,
        leads: LeadStore,
        locks: KeyedLocks,
        link_provider: BookingLinkProvider,
        sender: WhatsAppSender,
        reminders: ReminderStore,
        settings: Settings,
    ):
        self.sessions = sessions
        self.leads = leads
        self.locks = locks
        self.link_provider = link_provider
        self.sender = sender
        self.reminders = reminders
        self.settings = settings

    def property_link(self, property_id: int) -> str:
        return f"{self.settings.site_base_url.rstrip('/')}/imovel/{property_id}"

    async def request_visit(
        self,
        phone: str,
        customer_name: str | None,
        customer_email: str | None,
        prop: Property,
        source: LeadSource = LeadSource.WHATSAPP,
    ) -> SchedulingResult:
        now = datetime.now(timezone.utc)
        async with self.locks.hold(phone):
            session = await self.sessions.get_or_create(phone, now)
            if session.scheduling_state in (SchedulingState.NONE, SchedulingState.CANCELLED):
                session.transition(SchedulingState.REQUESTED)
                logger.info("Scheduling %s: -> requested (property %s)", phone, prop.id)
            session.active_property_id = prop.id
            session.scheduling.property_id = prop.id
            session.scheduling.property_title = prop.title
            session.scheduling.updated_at = now
            session.last_activity = now
            await self.sessions.save(session)
            await self.leads.apply(
                phone,
                LeadUpdate(name=customer_name, email=customer_email or None, property_id=prop.id, add_tags=[SCHEDULING_TAG]),
                source=source,
                session=session,
                now=now,
            )

        request = SchedulingRequest(
            phone_number=phone,
            customer_name=customer_name or "Cliente",
            customer_email=customer_email or None,
            property_id=prop.id,
            property_title=prop.title,
            property_address=prop.address or None,
            property_link=self.property_link(prop.id),
        )
        try:
            link = await self.link_provider.create_booking_link(request)
        except Exception as e:
            logger.warning("Booking link for %s (property %s) failed: %s", phone, prop.id, e)
            return SchedulingResult(
                success=False,
                property_title=prop.title,
                customer_name=customer_name,
                error=str(e) or "Failed to create scheduling link",
            )

        async with self.locks.hold(phone):
            session = await self.sessions.get_or_create(phone)
            if session.scheduling_state == SchedulingState.REQUESTED:
                session.transition(SchedulingState.LINK_SENT)
                logger.info("Scheduling %s: requested -> link-sent", phone)
            session.scheduling.scheduling_link = link
            session.scheduling.updated_at = datetime.now(timezone.utc)
            await self.sessions.save(session)
            await self.leads.rescore(phone, session)

        return SchedulingResult(
            success=True,
            scheduling_link=link,
            property_title=prop.title,
            customer_name=customer_name,
        )

    async def _complete_booking(self, booking: CalendarBooking) -> CalendarBooking:
        """Fill phone/property from the invitees API when the envelope lacks the answers."""
        if booking.phone_number or not booking.event_uri:
            return booking
        invitees = await self.link_provider.fetch_invitees(booking.event_uri)
        if not invitees:
            return booking
        invitee = invitees[0]
        info = parse_questions(invitee.get("questions_and_answers"))
        return booking.model_copy(update={
            "phone_number": info["phone"],
            "customer_name": booking.customer_name or invitee.get("name"),
            "customer_email": booking.customer_email or invitee.get("email"),
            "property_id": booking.property_id or info["property_id"],
            "property_title": booking.property_title or info["property_title"],
            "property_address": booking.property_address or info["address"],
            "property_link": booking.property_link or info["link"],
        })

    async def reconcile_calendar_webhook(self, webhook: dict) -> ReconcileOutcome | None:
        """Apply a calendar event to the scheduling state. Unknown or malformed events return None."""
        booking = parse_booking(webhook)
        if booking is None:
            logger.warning("Malformed calendar webhook ignored")
            return None

        target = CALENDAR_EVENT_STATES.get(booking.event_type)
        if target is None:
            logger.info("Unhandled calendar event: %s", booking.event_type)
            return None

        booking = await self._complete_booking(booking)
        phone = normalize_phone(booking.phone_number, self.settings.home_country_code)
        if not phone:
            logger.warning("Calendar %s without customer phone (event %s)", booking.event_type, booking.event_uri)
            return None

        async with self.locks.hold(phone):
            session = await self.sessions.get(phone)
            previous = session.scheduling_state if session else None
            applied = session is not None and session.can_transition(target)
            if applied:
                session.transition(target)
                if booking.event_uri:
                    session.scheduling.event_uri = booking.event_uri
                if booking.event_time:
                    session.scheduling.event_time = booking.event_time
                session.scheduling.updated_at = datetime.now(timezone.utc)
                await self.sessions.save(session)
                logger.info("Scheduling %s: %s -> %s", phone, previous.value, target.value)
            else:
                logger.warning(
                    "Calendar %s for %s does not apply to scheduling state %s",
                    booking.event_type, phone, previous.value if previous else "no session",
                )

            if target == SchedulingState.BOOKED:
                update = LeadUpdate(
                    name=booking.customer_name,
                    email=booking.customer_email,
                    property_id=booking.property_id,
                    add_tags=[BOOKED_TAG],
                    touched=False,
                )
            else:
                update = LeadUpdate(remove_tags=[BOOKED_TAG], touched=False)
            if await self.leads.get(phone) is not None:
                await self.leads.apply(phone, update, source=LeadSource.WHATSAPP, session=session)
            else:
                logger.info("Calendar %s for %s without a lead record, lead not created", booking.event_type, phone)

        if target == SchedulingState.BOOKED:
            await self._notify_booked(phone, booking)
        else:
            await self._notify_cancelled(phone, booking)

        return ReconcileOutcome(
            phone_number=phone,
            event_type=booking.event_type,
            target=target,
            applied=applied,
            previous=previous,
        )

    async def _notify_booked(self, phone: str, booking: CalendarBooking) -> None:
        tz = self.settings.timezone
        name = booking.customer_name or "cliente"
        title = booking.property_title or "Imóvel"
        address = booking.property_address or "A definir"

        if booking.event_time is None:
            logger.warning("Booking for %s has no start time, skipping confirmations", phone)
            return

        await self.sender.send_message(
            phone, templates.customer_confirmation(name, title, address, booking.event_time, tz),
        )
        await self.sender.send_message(
            self.settings.realtor_phone,
            templates.realtor_notification(name, phone, title, address, booking.property_link, booking.event_time, tz),
        )
        if booking.event_uri:
            await self.reminders.schedule(
                event_uri=booking.event_uri,
                customer_name=name,
                customer_phone=phone,
                property_title=title,
                property_address=address,
                event_time=booking.event_time,
            )

    async def _notify_cancelled(self, phone: str, booking: CalendarBooking) -> None:
        if booking.event_uri:
            await self.reminders.cancel(booking.event_uri)
        title = booking.property_title or "imóvel"
        await self.sender.send_message(phone, templates.customer_cancellation(title))
        await self.sender.send_message(
            self.settings.realtor_phone,
            templates.realtor_cancellation(booking.customer_name or "Cliente", phone, title),
        )
