from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from urbanesta.application.ports.lead_repo import LeadDto
from urbanesta.application.ports.otp_gateway import OtpDelivery
from urbanesta.application.ports.user_repo import UserDto, DuplicateUserError
from urbanesta.application.services.auth_service import OtpAuthService
from urbanesta.application.services.identity_service import IdentityService
from urbanesta.application.services.lead_service import LeadRecorder
from urbanesta.application.services.token_service import TokenIssuer
from urbanesta.exceptions import GatewayError
from urbanesta.infrastructure.sessions.memory_session_store import InMemoryOtpSessionStore

TEST_SECRET = "test-secret-key-0123456789"


class FakeClock:
    def __init__(self):
        self.now = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeUserRepo:
    def __init__(self):
        self.users = {}
        self._id = 0
        self.creates = 0

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        return next((u for u in self.users.values() if u.phone_number == phone_number), None)

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        return self.users.get(user_id)

    def get_by_email(self, email: str) -> Optional[UserDto]:
        return next((u for u in self.users.values() if u.email == email), None)

    def create(self, phone_number, name, city, now):
        if self.get_by_phone(phone_number):
            raise DuplicateUserError(phone_number)
        self._id += 1
        self.creates += 1
        user = UserDto(id=f"user-{self._id}", phone_number=phone_number, name=name, city=city,
                       email=None, join_date=now, last_login=now)
        self.users[user.id] = user
        return user

    def record_login(self, user_id, now, name=None, city=None):
        user = self.users.get(user_id)
        if not user:
            return None
        user.last_login = now
        if name is not None:
            user.name = name
        if city is not None:
            user.city = city
        return user

    def update_profile(self, user_id, name, city, email):
        user = self.users.get(user_id)
        if not user:
            return None
        user.name, user.city, user.email = name, city, email
        return user

    def add_to_watchlist(self, user_id, property_id):
        user = self.users[user_id]
        if property_id not in user.watchlist:
            user.watchlist.append(property_id)

    def remove_from_watchlist(self, user_id, property_id):
        user = self.users[user_id]
        user.watchlist = [p for p in user.watchlist if p != property_id]


class FakeLeadRepo:
    def __init__(self, fail: bool = False):
        self.leads = []
        self.fail = fail

    def create(self, name, phone, email, city, property, source, status, priority, notes, now):
        if self.fail:
            raise RuntimeError("leads collection unavailable")
        lead = LeadDto(id=f"lead-{len(self.leads) + 1}", name=name, phone=phone, email=email, city=city,
                       property=property, source=source, status=status, priority=priority,
                       notes=list(notes), created_at=now)
        self.leads.append(lead)
        return lead


class FakeGateway:
    def __init__(self, code: str = "123456", channel: str = "sms"):
        self.code = code
        self.channel = channel
        self.sent = []
        self.verifications = []
        self.send_error: Optional[str] = None
        self.verify_error: Optional[str] = None

    def request_code(self, api_phone: str) -> OtpDelivery:
        if self.send_error:
            raise GatewayError(self.send_error)
        self.sent.append(api_phone)
        return OtpDelivery(session_id=f"sess-{len(self.sent)}", channel=self.channel)

    def verify_code(self, session_id: str, code: str) -> bool:
        if self.verify_error:
            raise GatewayError(self.verify_error)
        self.verifications.append((session_id, code))
        return code == self.code

    def get_balance(self) -> str:
        return "42"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def user_repo():
    return FakeUserRepo()


@pytest.fixture
def lead_repo():
    return FakeLeadRepo()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def sessions(clock):
    return InMemoryOtpSessionStore(ttl_minutes=10, clock=clock)


@pytest.fixture
def token_issuer():
    return TokenIssuer(secret_key=TEST_SECRET)


@pytest.fixture
def otp_service(gateway, sessions, user_repo, lead_repo, token_issuer, clock):
    return OtpAuthService(
        gateway=gateway,
        sessions=sessions,
        identity=IdentityService(user_repo),
        leads=LeadRecorder(lead_repo),
        tokens=token_issuer,
        session_ttl=timedelta(minutes=10),
        max_attempts=3,
        clock=clock,
    )
