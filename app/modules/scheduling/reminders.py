"""
Visit reminders: stored when a visit is booked, sent by the cron job
(POST /admin/jobs/reminders) once their reminder time has passed.
"""

import logging
from datetime import datetime, timedelta, timezone

from app.models.scheduling import Reminder
from app.modules.storage import KeyValueStore
from app.modules.whatsapp.sender import WhatsAppSender
from app.modules.whatsapp.templates import realtor_reminder, visit_reminder

logger = logging.getLogger(__name__)

REMINDER_PREFIX = "reminder:"


class ReminderStore:
    def __init__(self, store: KeyValueStore, lead_time: timedelta):
        self.store = store
        self.lead_time = lead_time

    async def schedule(
        self,
        event_uri: str,
        customer_name: str,
        customer_phone: str,
        property_title: str,
        property_address: str,
        event_time: datetime,
        now: datetime | None = None,
    ) -> Reminder | None:
        """Store a reminder lead_time before the visit. Skipped when that moment already passed."""
        now = now or datetime.now(timezone.utc)
        reminder_time = event_time - self.lead_time
        if reminder_time <= now:
            logger.info("Reminder time for %s is in the past, skipping", event_uri)
            return None

        reminder = Reminder(
            event_uri=event_uri,
            customer_name=customer_name,
            customer_phone=customer_phone,
            property_title=property_title,
            property_address=property_address,
            event_time=event_time,
            reminder_time=reminder_time,
            scheduled_at=now,
        )
        await self.store.set(REMINDER_PREFIX + event_uri, reminder.model_dump(mode="json"))
        logger.info("Reminder for %s scheduled at %s", customer_phone, reminder_time.isoformat())
        return reminder

    async def cancel(self, event_uri: str) -> None:
        await self.store.delete(REMINDER_PREFIX + event_uri)

    async def list_all(self) -> list[Reminder]:
        reminders = []
        for key in await self.store.keys(REMINDER_PREFIX):
            raw = await self.store.get(key)
            if raw:
                reminders.append(Reminder.model_validate(raw))
        return sorted(reminders, key=lambda r: r.reminder_time)

    async def due(self, now: datetime | None = None) -> list[Reminder]:
        now = now or datetime.now(timezone.utc)
        return [r for r in await self.list_all() if r.reminder_time <= now]


async def send_due_reminders(
    reminders: ReminderStore,
    sender: WhatsAppSender,
    realtor_phone: str,
    tz: str,
    now: datetime | None = None,
) -> int:
    """Send every due reminder to customer and realtor. Returns how many visits were reminded."""
    sent = 0
    for reminder in await reminders.due(now):
        customer_ok = await sender.send_message(
            reminder.customer_phone,
            visit_reminder(reminder.customer_name, reminder.property_title, reminder.property_address, reminder.event_time, tz),
        )
        if not customer_ok:
            logger.warning("Reminder for %s not delivered, will retry on next run", reminder.customer_phone)
            continue
        await sender.send_message(
            realtor_phone,
            realtor_reminder(
                reminder.customer_name,
                reminder.customer_phone,
                reminder.property_title,
                reminder.property_address,
                reminder.event_time,
                tz,
            ),
        )
        await reminders.cancel(reminder.event_uri)
        sent += 1
    return sent
