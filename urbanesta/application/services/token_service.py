from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

import jwt

from ..ports.user_repo import UserDto
from ...exceptions import ConfigurationError
from ...utils import utcnow

INSECURE_DEFAULT_SECRET = "change-me-in-prod"


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class TokenIssuer:
    secret_key: str
    refresh_secret_key: Optional[str] = None
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=30)
    allow_insecure_secret: bool = True

    def _check_secret(self, secret: str) -> str:
        if not secret or (secret == INSECURE_DEFAULT_SECRET and not self.allow_insecure_secret):
            raise ConfigurationError("SECRET_KEY not properly configured")
        return secret

    def _encode(self, user: UserDto, token_type: str, ttl: timedelta, secret: str, now: datetime) -> str:
        payload: Dict[str, Any] = {
            "sub": user.id,
            "id": user.id,
            "phoneNumber": user.phone_number,
            "type": token_type,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self._check_secret(secret), algorithm=self.algorithm)

    def issue(self, user: UserDto, now: Optional[datetime] = None) -> TokenPair:
        now = now or utcnow()
        return TokenPair(
            access_token=self._encode(user, "access", self.access_ttl, self.secret_key, now),
            refresh_token=self._encode(user, "refresh", self.refresh_ttl, self.refresh_secret_key or self.secret_key, now),
        )

    def issue_access(self, user: UserDto, now: Optional[datetime] = None) -> str:
        return self._encode(user, "access", self.access_ttl, self.secret_key, now or utcnow())

    def _decode(self, token: str, secret: str, token_type: str) -> Optional[Dict[str, Any]]:
        if not token:
            return None
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except jwt.InvalidTokenError:
            return None
        if payload.get("type") != token_type or not payload.get("sub"):
            return None
        return payload

    def decode_access(self, token: str) -> Optional[Dict[str, Any]]:
        return self._decode(token, self.secret_key, "access")

    def decode_refresh(self, token: str) -> Optional[Dict[str, Any]]:
        return self._decode(token, self.refresh_secret_key or self.secret_key, "refresh")
