from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    CUSTOMER = "customer"
    AGENT = "agent"


class SchedulingState(str, Enum):
    NONE = "none"
    REQUESTED = "requested"
    LINK_SENT = "link-sent"
    BOOKED = "booked"
    CANCELLED = "cancelled"


# cancelled -> requested starts a new visit cycle after a cancellation
SCHEDULING_TRANSITIONS: dict[SchedulingState, set[SchedulingState]] = {
    SchedulingState.NONE: {SchedulingState.REQUESTED},
    SchedulingState.REQUESTED: {SchedulingState.LINK_SENT, SchedulingState.CANCELLED},
    SchedulingState.LINK_SENT: {SchedulingState.BOOKED, SchedulingState.CANCELLED},
    SchedulingState.BOOKED: {SchedulingState.CANCELLED},
    SchedulingState.CANCELLED: {SchedulingState.REQUESTED},
}


class InvalidSchedulingTransition(Exception):
    def __init__(self, current: SchedulingState, target: SchedulingState):
        super().__init__(f"Cannot move scheduling state from {current.value} to {target.value}")
        self.current = current
        self.target = target


class ConversationTurn(BaseModel):
    role: Role
    text: str
    timestamp: datetime


class CustomerInfo(BaseModel):
    name: str | None = None
    email: str | None = None


class SchedulingData(BaseModel):
    property_id: int | None = None
    property_title: str | None = None
    scheduling_link: str | None = None
    event_uri: str | None = None
    event_time: datetime | None = None
    updated_at: datetime | None = None


class ConversationSession(BaseModel):
    phone_number: str
    history: list[ConversationTurn] = Field(default_factory=list)
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    active_property_id: int | None = None
    scheduling_state: SchedulingState = SchedulingState.NONE
    scheduling: SchedulingData = Field(default_factory=SchedulingData)
    created_at: datetime
    last_activity: datetime

    def can_transition(self, target: SchedulingState) -> bool:
        return target in SCHEDULING_TRANSITIONS[self.scheduling_state]

    def transition(self, target: SchedulingState) -> None:
        if not self.can_transition(target):
            raise InvalidSchedulingTransition(self.scheduling_state, target)
        self.scheduling_state = target

    def append(self, role: Role, text: str, at: datetime, limit: int) -> None:
        self.history.append(ConversationTurn(role=role, text=text, timestamp=at))
        if len(self.history) > limit:
            self.history = self.history[-limit:]
        self.last_activity = at
