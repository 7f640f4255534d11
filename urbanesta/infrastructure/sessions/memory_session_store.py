import threading
from datetime import datetime, timedelta
from typing import Dict, Optional
import logging

from ...application.ports.otp_session_store import OtpSession, OtpSessionStore, SessionFields
from ...utils import utcnow

logger = logging.getLogger(__name__)


class InMemoryOtpSessionStore(OtpSessionStore):
    """Process-local session map. Sessions are lost on restart and are not
    visible to other instances; use the redis store when running more than one."""

    def __init__(self, ttl_minutes: int = 10, clock=utcnow) -> None:
        self._sessions: Dict[str, OtpSession] = {}
        self._lock = threading.Lock()
        self._ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock

    def create(self, session_id: str, fields: SessionFields) -> OtpSession:
        now = self._clock()
        self.sweep_expired(now)
        session = OtpSession(
            session_id=session_id,
            phone_number=fields.phone_number,
            raw_phone=fields.raw_phone,
            display_name=fields.display_name,
            city=fields.city,
            property_id=fields.property_id,
            property_name=fields.property_name,
            property_url=fields.property_url,
            created_at=now,
            attempts=0,
            verified=False,
            channel=fields.channel,
        )
        with self._lock:
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[OtpSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            # hand out a copy so callers never mutate shared state unlocked
            return OtpSession(**session.__dict__) if session else None

    def increment_attempts(self, session_id: str) -> int:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return 0
            session.attempts += 1
            return session.attempts

    def mark_verified(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.verified:
                return False
            session.verified = True
            return True

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def sweep_expired(self, now: datetime) -> None:
        cutoff = now - self._ttl
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.created_at <= cutoff]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(f"Swept {len(expired)} expired OTP sessions")

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
