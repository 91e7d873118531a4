from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class LeadSource(str, Enum):
    WHATSAPP = "whatsapp"
    TYPEBOT = "typebot"
    MANUAL = "manual"


class LeadQuality(str, Enum):
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class TypebotData(BaseModel):
    """Answers captured by the Typebot form."""
    transaction_type: str | None = None  # compra, locação
    property_type: str | None = None  # apartamento, sobrado, casa
    purchase_budget: str | None = None
    rental_budget: str | None = None
    location: str | None = None
    timeframe: str | None = None
    financing: str | None = None
    message: str | None = None
    extra_answers: dict[str, str] = Field(default_factory=dict)


class Lead(BaseModel):
    phone_number: str
    name: str | None = None
    email: str | None = None
    score: int = 0
    quality: LeadQuality = LeadQuality.COLD
    indicators: list[str] = Field(default_factory=list)
    source: LeadSource
    typebot_data: TypebotData | None = None
    property_id: int | None = None
    total_messages: int = 0
    tags: list[str] = Field(default_factory=list)
    observations: str | None = None
    last_contact_at: datetime | None = None
    last_evaluated: datetime | None = None
    created_at: datetime


class LeadUpdate(BaseModel):
    """Incoming data for a lead. None means "no information", never "clear"."""
    name: str | None = None
    email: str | None = None
    typebot_data: TypebotData | None = None
    property_id: int | None = None
    observations: str | None = None
    add_tags: list[str] = Field(default_factory=list)
    remove_tags: list[str] = Field(default_factory=list)
    new_messages: int = 0
    touched: bool = True  # counts as contact for staleness


class LeadScore(BaseModel):
    score: int
    quality: LeadQuality
    indicators: list[str]
