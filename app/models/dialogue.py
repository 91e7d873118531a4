from enum import Enum

from pydantic import BaseModel, Field

from app.models.conversation import ConversationTurn, CustomerInfo
from app.models.property import Property


class SchedulingInfo(BaseModel):
    wants_to_schedule: bool = False
    property_id: int | None = None


class DialogueSignals(BaseModel):
    should_send_property_details: bool = False
    property_to_send: int | None = None
    scheduling_info: SchedulingInfo = Field(default_factory=SchedulingInfo)
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)


class Generation(BaseModel):
    reply_text: str
    signals: DialogueSignals = Field(default_factory=DialogueSignals)
    structured: bool = True  # False when the model answered in plain text


class GenerationContext(BaseModel):
    phone_number: str
    message: str
    history: list[ConversationTurn]
    customer_info: CustomerInfo
    active_property: Property | None = None
    lead_profile: str = ""
    catalog: list[Property] = Field(default_factory=list)


class SideEffectKind(str, Enum):
    SEND_TEXT = "send_text"
    SEND_PROPERTY_MEDIA = "send_property_media"


class SideEffect(BaseModel):
    kind: SideEffectKind
    text: str | None = None
    property: Property | None = None


class DialogueBranch(str, Enum):
    SCHEDULING = "scheduling"
    PROPERTY_DETAILS = "property_details"
    REPLY = "reply"


class DialogueOutcome(BaseModel):
    phone_number: str
    reply_text: str
    branch: DialogueBranch
    side_effects: list[SideEffect] = Field(default_factory=list)
    signals: DialogueSignals = Field(default_factory=DialogueSignals)
    scheduling_link: str | None = None
