import logging
import secrets
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import settings
from .cookies import ACCESS_COOKIE
from .exceptions import APIException, AuthenticationError
from .application.ports.otp_session_store import OtpSessionStore
from .application.ports.rate_limiter import RateLimiter
from .application.services.auth_service import OtpAuthService
from .application.services.identity_service import IdentityService
from .application.services.lead_service import LeadRecorder
from .application.services.profile_service import ProfileService
from .application.services.token_service import TokenIssuer
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.otp.two_factor_gateway import TwoFactorGateway
from .infrastructure.persistence.mongo.client import mongo
from .infrastructure.persistence.mongo.lead_repository_mongo import MongoLeadRepository
from .infrastructure.persistence.mongo.user_repository_mongo import MongoUserRepository
from .infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter
from .infrastructure.rate_limit.redis_rate_limiter import RedisRateLimiter
from .infrastructure.sessions.memory_session_store import InMemoryOtpSessionStore
from .infrastructure.sessions.redis_session_store import RedisOtpSessionStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_session_store() -> OtpSessionStore:
    if settings.REDIS_URL:
        logger.info("Using redis OTP session store")
        return RedisOtpSessionStore(settings.REDIS_URL, ttl_minutes=settings.OTP_SESSION_TTL_MINUTES)
    return InMemoryOtpSessionStore(ttl_minutes=settings.OTP_SESSION_TTL_MINUTES)


@lru_cache()
def get_rate_limiter() -> RateLimiter:
    if settings.REDIS_URL:
        return RedisRateLimiter(settings.REDIS_URL)
    return InMemoryRateLimiter()


@lru_cache()
def get_gateway() -> TwoFactorGateway:
    return TwoFactorGateway()


@lru_cache()
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(
        secret_key=settings.SECRET_KEY,
        refresh_secret_key=settings.refresh_secret,
        algorithm=settings.ALGORITHM,
        access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        allow_insecure_secret=not settings.is_production,
    )


def get_user_repo() -> MongoUserRepository:
    return MongoUserRepository(mongo.database())


def get_lead_repo() -> MongoLeadRepository:
    return MongoLeadRepository(mongo.database())


def get_otp_service(
    user_repo: MongoUserRepository = Depends(get_user_repo),
    lead_repo: MongoLeadRepository = Depends(get_lead_repo),
    gateway: TwoFactorGateway = Depends(get_gateway),
    sessions: OtpSessionStore = Depends(get_session_store),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> OtpAuthService:
    return OtpAuthService(
        gateway=gateway,
        sessions=sessions,
        identity=IdentityService(user_repo, default_name=settings.DEFAULT_USER_NAME, default_city=settings.DEFAULT_CITY),
        leads=LeadRecorder(lead_repo, source=settings.LEAD_SOURCE),
        tokens=tokens,
        audit=StdAuditLogger(),
        session_ttl=timedelta(minutes=settings.OTP_SESSION_TTL_MINUTES),
        max_attempts=settings.OTP_MAX_ATTEMPTS,
    )


def get_profile_service(user_repo: MongoUserRepository = Depends(get_user_repo)) -> ProfileService:
    return ProfileService(user_repo=user_repo)


def client_ip(request: Request) -> str:
    peer = request.client.host if request.client else "unknown"
    # X-Forwarded-For is client-controlled unless the peer is one of our proxies
    if peer in settings.trusted_proxies_list:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[-1].strip()
    return peer


def auth_rate_limit(request: Request, limiter: RateLimiter = Depends(get_rate_limiter)) -> None:
    key = f"auth:{client_ip(request)}"
    if not limiter.allow(key, settings.AUTH_RATE_LIMIT_MAX, settings.AUTH_RATE_LIMIT_WINDOW_SEC):
        logger.warning(f"Auth rate limit exceeded for {key}")
        raise APIException(429, "Too many authentication attempts, please try again later.")


def require_api_key(request: Request) -> None:
    if not settings.API_KEY:
        return
    supplied = request.headers.get("x-api-key") or ""
    if not secrets.compare_digest(supplied, settings.API_KEY):
        raise AuthenticationError("Valid API key required")


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> str:
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise AuthenticationError("Access token required")
    payload = tokens.decode_access(token)
    if not payload:
        raise AuthenticationError("Invalid or expired token")
    return payload["sub"]
