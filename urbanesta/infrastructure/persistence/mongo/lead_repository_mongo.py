from datetime import datetime
from typing import List, Optional

from pymongo.database import Database

from .client import LEADS
from ....application.ports.lead_repo import LeadRepository, LeadDto, LeadNote, PropertyContext


class MongoLeadRepository(LeadRepository):
    def __init__(self, db: Database):
        self.collection = db[LEADS]

    def create(self, name: str, phone: str, email: Optional[str], city: str, property: PropertyContext,
               source: str, status: str, priority: str, notes: List[LeadNote], now: datetime) -> LeadDto:
        doc = {
            "name": name,
            "phone": phone,
            "email": email,
            "city": city,
            "property": property.id,
            "propertyName": property.name,
            "propertyUrl": property.url,
            "source": source,
            "status": status,
            "priority": priority,
            "notes": [{"note": n.note, "addedAt": n.added_at} for n in notes],
            "createdAt": now,
            "updatedAt": now,
        }
        result = self.collection.insert_one(doc)
        return LeadDto(
            id=str(result.inserted_id),
            name=name,
            phone=phone,
            email=email,
            city=city,
            property=property,
            source=source,
            status=status,
            priority=priority,
            notes=list(notes),
            created_at=now,
        )
