import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..ports.lead_repo import LeadRepository, LeadDto, LeadNote, PropertyContext
from ..ports.user_repo import UserDto

logger = logging.getLogger(__name__)

LEAD_STATUS_NEW = "new"
LEAD_PRIORITY_MEDIUM = "medium"


@dataclass
class LeadRecorder:
    lead_repo: LeadRepository
    source: str = "otp_verification"

    def record(self, user: UserDto, raw_phone: str, property: PropertyContext, channel: str,
               capture_source: Optional[str], now: datetime) -> Optional[LeadDto]:
        """Append one lead for a verified contact.

        A failed write is logged and swallowed: the caller's identity has
        already been stored and must not be rolled back over an analytics record.
        """
        note = f"Lead captured via {channel.upper()} OTP verification"
        if capture_source:
            note += f" from {capture_source}"
        if property.name:
            note += f" for {property.name}"
        try:
            lead = self.lead_repo.create(
                name=user.name,
                phone=raw_phone,
                email=user.email,
                city=user.city,
                property=property,
                source=self.source,
                status=LEAD_STATUS_NEW,
                priority=LEAD_PRIORITY_MEDIUM,
                notes=[LeadNote(note=note, added_at=now)],
                now=now,
            )
        except Exception:
            logger.exception(f"Failed to record lead for user {user.id}")
            return None
        logger.info(f"Lead {lead.id} recorded for user {user.id}")
        return lead
