from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventDetails(BaseModel):
    model_config = ConfigDict(extra="allow")

    event_name: str = Field(..., min_length=1)


class OrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    caterer_id: str = Field(..., alias="catererId", min_length=1)
    event_details: EventDetails = Field(..., alias="eventDetails")
    phone_number: str = Field(..., alias="phoneNumber", min_length=1)


class Order(BaseModel):
    id: str
    user_id: str
    caterer_id: str
    event_details: dict[str, Any]
    created_at: datetime


class OrderState(str, Enum):
    requested = "requested"
    persisted = "persisted"
    notified = "notified"
    notify_failed = "notify_failed"
    persist_failed = "persist_failed"


class NotificationAttempt(BaseModel):
    to: str
    body: str
    sent: bool
    error: str | None = None


class FulfillmentOutcome(BaseModel):
    state: OrderState
    order: Order | None = None
    notification: NotificationAttempt | None = None
    error: str | None = None
