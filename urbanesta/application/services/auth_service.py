import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..ports.audit_logger import AuditLogger
from ..ports.lead_repo import LeadDto, PropertyContext
from ..ports.otp_gateway import OtpGateway
from ..ports.otp_session_store import OtpSessionStore, SessionFields
from ..ports.user_repo import UserDto
from .identity_service import IdentityService
from .lead_service import LeadRecorder
from .token_service import TokenIssuer, TokenPair
from ...exceptions import SessionError, ValidationError, InvalidCodeError
from ...utils import format_phone_for_api, format_phone_for_storage, is_valid_local_phone, utcnow

logger = logging.getLogger(__name__)

OTP_CODE_RE = re.compile(r"^\d{4,6}$")

SESSION_INVALID = "Invalid or expired session. Please request a new OTP."
SESSION_EXPIRED = "Session expired. Please request a new OTP."
ATTEMPTS_EXCEEDED = "Maximum attempts exceeded. Please request a new OTP."


@dataclass
class SendOtpResult:
    session_id: str
    channel: str
    message: str


@dataclass
class VerifyOtpResult:
    user: UserDto
    is_new: bool
    lead: Optional[LeadDto]
    tokens: TokenPair
    raw_phone: str


@dataclass
class OtpAuthService:
    """Phone login: send a code, verify it, then upsert the user, record a
    lead and issue tokens.

    A session moves NoSession -> AwaitingCode -> Verified | Expired |
    AttemptsExhausted and is single-use: it is deleted once verification
    succeeds, whatever happens afterwards.
    """
    gateway: OtpGateway
    sessions: OtpSessionStore
    identity: IdentityService
    leads: LeadRecorder
    tokens: TokenIssuer
    audit: Optional[AuditLogger] = None
    session_ttl: timedelta = timedelta(minutes=10)
    max_attempts: int = 3
    clock: Callable[[], datetime] = field(default=utcnow)

    def _audit(self, action: str, phone: str, **kwargs) -> None:
        if self.audit is not None:
            self.audit.log(action, phone, **kwargs)

    def send_otp(self, phone: str, name: Optional[str] = None, city: Optional[str] = None,
                 property: Optional[PropertyContext] = None, ip_address: Optional[str] = None) -> SendOtpResult:
        phone = (phone or "").strip()
        if not is_valid_local_phone(phone):
            raise ValidationError("Please enter a valid 10-digit phone number")
        property = property or PropertyContext()

        api_phone = format_phone_for_api(phone)
        try:
            delivery = self.gateway.request_code(api_phone)
        except Exception as e:
            self._audit("send_otp", phone, ip_address=ip_address, success=False, details={"error": str(getattr(e, "detail", e))})
            raise

        self.sessions.create(delivery.session_id, SessionFields(
            phone_number=format_phone_for_storage(phone),
            raw_phone=phone,
            display_name=(name or "").strip() or None,
            city=(city or "").strip() or None,
            property_id=property.id,
            property_name=property.name,
            property_url=property.url,
            channel=delivery.channel,
        ))
        self._audit("send_otp", phone, session_id=delivery.session_id, ip_address=ip_address, details={"channel": delivery.channel})

        if delivery.channel == "voice":
            message = "Unable to send SMS OTP. Voice OTP has been sent to your number."
        else:
            message = "OTP sent successfully"
        return SendOtpResult(session_id=delivery.session_id, channel=delivery.channel, message=message)

    def verify_otp(self, session_id: str, otp: str, name: Optional[str] = None, city: Optional[str] = None,
                   property: Optional[PropertyContext] = None, source: Optional[str] = None,
                   ip_address: Optional[str] = None) -> VerifyOtpResult:
        session_id = (session_id or "").strip()
        otp = (otp or "").strip()
        if not session_id:
            raise ValidationError("Session ID is required")
        if not OTP_CODE_RE.match(otp):
            raise ValidationError("Please enter a valid OTP")

        session = self.sessions.get(session_id)
        if session is None:
            raise SessionError(SESSION_INVALID)

        now = self.clock()
        if now - session.created_at >= self.session_ttl:
            self.sessions.delete(session_id)
            self._audit("verify_otp", session.raw_phone, session_id=session_id, ip_address=ip_address, success=False, details={"reason": "expired"})
            raise SessionError(SESSION_EXPIRED)
        if session.attempts >= self.max_attempts:
            self.sessions.delete(session_id)
            raise SessionError(ATTEMPTS_EXCEEDED)

        if not self.gateway.verify_code(session_id, otp):
            attempts = self.sessions.increment_attempts(session_id)
            if attempts == 0:
                # deleted by a concurrent request while we were at the gateway
                raise SessionError(SESSION_INVALID)
            self._audit("verify_otp", session.raw_phone, session_id=session_id, ip_address=ip_address, success=False, details={"attempts": attempts})
            if attempts >= self.max_attempts:
                self.sessions.delete(session_id)
                raise SessionError(ATTEMPTS_EXCEEDED)
            raise InvalidCodeError(self.max_attempts - attempts)

        if not self.sessions.mark_verified(session_id):
            # another request already consumed this session
            raise SessionError(SESSION_INVALID)

        try:
            return self._complete_login(session, name, city, property, source, ip_address)
        finally:
            self.sessions.delete(session_id)

    def _complete_login(self, session, name, city, property, source, ip_address) -> VerifyOtpResult:
        now = self.clock()
        context = property if property is not None and not property.is_empty() else PropertyContext(
            id=session.property_id, name=session.property_name, url=session.property_url,
        )
        user, is_new = self.identity.upsert_verified(
            session.phone_number,
            name if name and name.strip() else session.display_name,
            city if city and city.strip() else session.city,
            now,
        )
        lead = self.leads.record(user, session.raw_phone, context, session.channel, source, now)
        tokens = self.tokens.issue(user, now)
        self._audit("verify_otp", session.raw_phone, user_id=user.id, session_id=session.session_id, ip_address=ip_address,
                    details={"is_new": is_new, "lead_id": lead.id if lead else None})
        return VerifyOtpResult(user=user, is_new=is_new, lead=lead, tokens=tokens, raw_phone=session.raw_phone)
