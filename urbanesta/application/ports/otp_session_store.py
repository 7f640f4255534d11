from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class OtpSession:
    session_id: str
    phone_number: str
    raw_phone: str
    display_name: Optional[str]
    city: Optional[str]
    property_id: Optional[str]
    property_name: Optional[str]
    property_url: Optional[str]
    created_at: datetime
    attempts: int = 0
    verified: bool = False
    channel: str = "sms"


@dataclass
class SessionFields:
    phone_number: str
    raw_phone: str
    display_name: Optional[str] = None
    city: Optional[str] = None
    property_id: Optional[str] = None
    property_name: Optional[str] = None
    property_url: Optional[str] = None
    channel: str = "sms"


class OtpSessionStore(Protocol):
    def create(self, session_id: str, fields: SessionFields) -> OtpSession:
        ...

    def get(self, session_id: str) -> Optional[OtpSession]:
        ...

    def increment_attempts(self, session_id: str) -> int:
        ...

    def mark_verified(self, session_id: str) -> bool:
        ...

    def delete(self, session_id: str) -> bool:
        ...

    def sweep_expired(self, now: datetime) -> None:
        ...
