from fastapi import APIRouter, Depends, Request, Response
import logging

from ..application.services.auth_service import OtpAuthService
from ..cookies import set_auth_cookies
from ..dependencies import get_otp_service, get_gateway, auth_rate_limit, require_api_key, client_ip
from ..infrastructure.otp.two_factor_gateway import TwoFactorGateway
from ..schemas.auth import (
    SendOtpRequest, SendOtpResponse, VerifyOtpRequest, VerifyOtpResponse,
    VerifiedUser, LeadSummary, BalanceResponse, ServiceHealthResponse,
)
from ..utils import mask_phone, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/2factor", tags=["2Factor OTP"], dependencies=[Depends(auth_rate_limit)])


@router.get("/health", response_model=ServiceHealthResponse)
def health():
    return ServiceHealthResponse(
        message="2Factor SMS OTP Authentication Service is running",
        service="2Factor.in SMS OTP",
        timestamp=utcnow().isoformat(),
    )


@router.post("/send-otp", response_model=SendOtpResponse)
def send_otp(body: SendOtpRequest, request: Request, service: OtpAuthService = Depends(get_otp_service)):
    logger.info(f"OTP requested for {mask_phone(body.phone or '')}")
    result = service.send_otp(
        body.phone,
        name=body.name,
        city=body.city,
        property=body.property_context(),
        ip_address=client_ip(request),
    )
    return SendOtpResponse(message=result.message, sessionId=result.session_id, type=result.channel)


@router.post("/verify-otp", response_model=VerifyOtpResponse)
def verify_otp(body: VerifyOtpRequest, request: Request, response: Response,
               service: OtpAuthService = Depends(get_otp_service)):
    result = service.verify_otp(
        body.sessionId,
        body.otp,
        name=body.name,
        city=body.city,
        property=body.property_context(),
        source=body.source,
        ip_address=client_ip(request),
    )
    user = result.user
    set_auth_cookies(response, result.tokens.access_token, result.tokens.refresh_token, user.id)
    lead = None
    if result.lead is not None:
        lead = LeadSummary(id=result.lead.id, propertyName=result.lead.property.name)
    return VerifyOtpResponse(
        message="Welcome back!" if not result.is_new else "Account created successfully",
        user=VerifiedUser(
            id=user.id,
            name=user.name,
            phone=result.raw_phone,
            phoneNumber=user.phone_number,
            city=user.city,
            email=user.email,
            isReturning=not result.is_new,
            isNew=result.is_new,
        ),
        lead=lead,
        token=result.tokens.access_token,
        refreshToken=result.tokens.refresh_token,
    )


@router.get("/balance", response_model=BalanceResponse, dependencies=[Depends(require_api_key)])
def balance(gateway: TwoFactorGateway = Depends(get_gateway)):
    return BalanceResponse(balance=gateway.get_balance())
