from datetime import datetime

from pydantic import BaseModel


class SchedulingRequest(BaseModel):
    phone_number: str
    customer_name: str
    customer_email: str | None = None
    property_id: int
    property_title: str
    property_address: str | None = None
    property_link: str | None = None


class SchedulingResult(BaseModel):
    success: bool
    scheduling_link: str | None = None
    property_title: str | None = None
    customer_name: str | None = None
    error: str | None = None


class CalendarBooking(BaseModel):
    """Booking data recovered from a calendar webhook."""
    event_type: str
    phone_number: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    property_id: int | None = None
    property_title: str | None = None
    property_address: str | None = None
    property_link: str | None = None
    event_uri: str | None = None
    invitee_uri: str | None = None
    event_time: datetime | None = None


class Reminder(BaseModel):
    event_uri: str
    customer_name: str
    customer_phone: str
    property_title: str
    property_address: str
    event_time: datetime
    reminder_time: datetime
    scheduled_at: datetime
