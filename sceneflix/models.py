# sceneflix/models.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Venue(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    city: Optional[str] = None


class Category(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    slug: str


class Event(BaseModel):
    """
    One listed event, as joined by the events query
    (``venue:venues(...)``, ``category:categories(...)``).
    Never mutated locally; replaced wholesale by a re-fetch.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str
    description: str = ""
    cover_image: str = ""
    hero_image: Optional[str] = None

    start_time: datetime
    end_time: Optional[datetime] = None

    price_start: float = Field(default=0, ge=0)   # whole display units

    venue: Optional[Venue] = None
    category: Optional[Category] = None
    is_trending: bool = False


class TicketOffering(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    event_id: str
    type: str                          # free-form label, e.g. "GA", "VIP"
    price: float = Field(ge=0)


class UserProfile(BaseModel):
    """The signed-in identity held by the session store."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[Literal["user", "organizer"]] = None


# Fields a signed-in user may change on their own profile row.
EDITABLE_PROFILE_FIELDS: frozenset[str] = frozenset({"full_name", "phone", "avatar_url"})


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class BookingRecord(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    user_id: str
    event_id: str
    ticket_id: str
    quantity: int = Field(ge=1)
    total_price: float = Field(ge=0)
    status: BookingStatus
    created_at: datetime

    # present when fetched with ``event:events(*)``
    event: Optional[dict[str, Any]] = None
