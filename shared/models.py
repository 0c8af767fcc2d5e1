from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field

# event name -> BusinessMetrics counter
COUNTER_BY_EVENT = {
    "business_listing_viewed": "views",
    "business_contact_clicked": "contacts",
    "business_registration_started": "registrations",
    "business_registration_completed": "completions",
}


class Event(BaseModel):
    id: str
    name: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime

    class Config:
        frozen = True

    @property
    def timestamp(self) -> str:
        return self.properties["timestamp"]


class BusinessMetrics(BaseModel):
    views: int = 0
    contacts: int = 0
    registrations: int = 0
    completions: int = 0

    def apply(self, event_name: str) -> None:
        counter = COUNTER_BY_EVENT.get(event_name)
        if counter is not None:
            setattr(self, counter, getattr(self, counter) + 1)
