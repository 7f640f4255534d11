from dataclasses import dataclass, field
from typing import List, Optional
from datetime import datetime


@dataclass
class PropertyContext:
    id: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.id or self.name or self.url)


@dataclass
class LeadNote:
    note: str
    added_at: datetime


@dataclass
class LeadDto:
    id: str
    name: str
    phone: str
    email: Optional[str]
    city: str
    property: PropertyContext
    source: str
    status: str
    priority: str
    notes: List[LeadNote] = field(default_factory=list)
    created_at: Optional[datetime] = None


class LeadRepository:
    def create(self, name: str, phone: str, email: Optional[str], city: str, property: PropertyContext,
               source: str, status: str, priority: str, notes: List[LeadNote], now: datetime) -> LeadDto:
        ...
