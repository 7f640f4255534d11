# Schemas package
from .auth import (
    SendOtpRequest, SendOtpResponse, VerifyOtpRequest, VerifyOtpResponse,
    VerifiedUser, LeadSummary, BalanceResponse, ServiceHealthResponse,
)
from .user import (
    UserProfile, ProfileResponse, UpdateProfileRequest, WatchlistRequest, WatchlistResponse,
)
from .common import MessageResponse

__all__ = [
    "SendOtpRequest", "SendOtpResponse", "VerifyOtpRequest", "VerifyOtpResponse",
    "VerifiedUser", "LeadSummary", "BalanceResponse", "ServiceHealthResponse",
    "UserProfile", "ProfileResponse", "UpdateProfileRequest", "WatchlistRequest", "WatchlistResponse",
    "MessageResponse",
]
