from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Optional


class APIException(HTTPException):
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class ValidationError(APIException):
    """Malformed input the caller can correct."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class SessionError(APIException):
    """OTP session is missing, expired or exhausted; the client should resend."""

    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)


class InvalidCodeError(APIException):
    def __init__(self, remaining_attempts: int):
        self.remaining_attempts = remaining_attempts
        super().__init__(
            status_code=400,
            detail=f"Invalid OTP. {remaining_attempts} attempts remaining.",
        )


class GatewayError(APIException):
    """Upstream OTP gateway failed to deliver or verify."""

    def __init__(self, detail: str):
        super().__init__(status_code=502, detail=detail)


class ConfigurationError(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=500, detail=detail)


class AuthenticationError(APIException):
    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=401, detail=detail)


class NotFoundError(APIException):
    def __init__(self, detail: str):
        super().__init__(status_code=404, detail=detail)


class PersistenceError(APIException):
    def __init__(self, detail: str = "Database unavailable"):
        super().__init__(status_code=503, detail=detail)


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "message": error_message,
        "error": error_message,
    }

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), exc.status_code),
        headers=getattr(exc, "headers", None),
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message: Optional[str] = None
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    return JSONResponse(
        status_code=400,
        content=create_error_response(message or "Invalid request", 400),
    )
