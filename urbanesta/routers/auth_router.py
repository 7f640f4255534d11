from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import auth_rate_limit
from ..schemas.auth import ServiceHealthResponse
from ..utils import utcnow

router = APIRouter(prefix="/api/auth", tags=["Authentication"], dependencies=[Depends(auth_rate_limit)])


def _gone(message: str, **endpoints) -> JSONResponse:
    return JSONResponse(
        status_code=410,
        content={
            "success": False,
            "error": "Firebase authentication has been deprecated",
            "message": message,
            **endpoints,
        },
    )


@router.get("/health", response_model=ServiceHealthResponse)
def health():
    return ServiceHealthResponse(
        message="2Factor SMS OTP Authentication Service is running",
        service="2Factor.in SMS OTP",
        timestamp=utcnow().isoformat(),
    )


@router.post("/sessionLogin")
def session_login():
    return _gone(
        "Please use /api/2factor/send-otp and /api/2factor/verify-otp for SMS OTP authentication",
        newEndpoints={"sendOtp": "/api/2factor/send-otp", "verifyOtp": "/api/2factor/verify-otp"},
    )


@router.post("/sessionLogout")
def session_logout():
    return _gone("Please use /api/user/logout for JWT-based logout", newEndpoint="/api/user/logout")


@router.get("/me")
def me():
    return _gone("Please use /api/user/profile for user information", newEndpoint="/api/user/profile")
