import json
from datetime import datetime
from typing import Optional

try:
    import redis
except Exception:  # pragma: no cover
    redis = None

from ...application.ports.otp_session_store import OtpSession, OtpSessionStore, SessionFields
from ...utils import utcnow

# EXISTS and the write run as one server-side step; a deleted session is never recreated.
INCREMENT_ATTEMPTS_SCRIPT = """
if redis.call("EXISTS", KEYS[1]) == 1 then
    return redis.call("HINCRBY", KEYS[1], "attempts", 1)
end
return 0
"""

CLAIM_VERIFIED_SCRIPT = """
if redis.call("EXISTS", KEYS[1]) == 1 then
    return redis.call("HSETNX", KEYS[1], "verified_at", ARGV[1])
end
return 0
"""


class RedisOtpSessionStore(OtpSessionStore):
    """Shared session store: one hash per session, expired by redis itself."""

    def __init__(self, url: str, ttl_minutes: int = 10, prefix: str = "otp:session:", client=None, clock=utcnow) -> None:
        if client is None:
            if redis is None:
                raise RuntimeError("redis package is not installed")
            client = redis.Redis.from_url(url, decode_responses=True)
        self.client = client
        self.prefix = prefix
        self.ttl_seconds = ttl_minutes * 60
        self._clock = clock
        self._increment = client.register_script(INCREMENT_ATTEMPTS_SCRIPT)
        self._claim = client.register_script(CLAIM_VERIFIED_SCRIPT)

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}{session_id}"

    def create(self, session_id: str, fields: SessionFields) -> OtpSession:
        now = self._clock()
        key = self._key(session_id)
        mapping = {
            "phone_number": fields.phone_number,
            "raw_phone": fields.raw_phone,
            "context": json.dumps({
                "display_name": fields.display_name,
                "city": fields.city,
                "property_id": fields.property_id,
                "property_name": fields.property_name,
                "property_url": fields.property_url,
            }),
            "channel": fields.channel,
            "created_at": now.isoformat(),
            "attempts": 0,
        }
        pipe = self.client.pipeline()
        pipe.delete(key)
        pipe.hset(key, mapping=mapping)
        pipe.expire(key, self.ttl_seconds)
        pipe.execute()
        return OtpSession(
            session_id=session_id,
            phone_number=fields.phone_number,
            raw_phone=fields.raw_phone,
            display_name=fields.display_name,
            city=fields.city,
            property_id=fields.property_id,
            property_name=fields.property_name,
            property_url=fields.property_url,
            created_at=now,
            channel=fields.channel,
        )

    def get(self, session_id: str) -> Optional[OtpSession]:
        data = self.client.hgetall(self._key(session_id))
        if not data or "phone_number" not in data:
            return None
        context = json.loads(data.get("context") or "{}")
        return OtpSession(
            session_id=session_id,
            phone_number=data["phone_number"],
            raw_phone=data["raw_phone"],
            display_name=context.get("display_name"),
            city=context.get("city"),
            property_id=context.get("property_id"),
            property_name=context.get("property_name"),
            property_url=context.get("property_url"),
            created_at=datetime.fromisoformat(data["created_at"]),
            attempts=int(data.get("attempts", 0)),
            verified="verified_at" in data,
            channel=data.get("channel", "sms"),
        )

    def increment_attempts(self, session_id: str) -> int:
        return int(self._increment(keys=[self._key(session_id)]))

    def mark_verified(self, session_id: str) -> bool:
        return bool(self._claim(keys=[self._key(session_id)], args=[self._clock().isoformat()]))

    def delete(self, session_id: str) -> bool:
        return bool(self.client.delete(self._key(session_id)))

    def sweep_expired(self, now: datetime) -> None:
        # keys carry their own EXPIRE
        return None
