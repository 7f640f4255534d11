from pydantic import BaseModel, Field, validator
from typing import Optional

from ..application.ports.lead_repo import PropertyContext


class PropertyFields(BaseModel):
    propertyId: Optional[str] = Field(None, description="Property the visitor was looking at")
    propertyName: Optional[str] = None
    propertyUrl: Optional[str] = None

    @validator('propertyId', 'propertyName', 'propertyUrl')
    def blank_to_none(cls, v):
        if v is None:
            return v
        v = str(v).strip()
        return v or None

    def property_context(self) -> PropertyContext:
        return PropertyContext(id=self.propertyId, name=self.propertyName, url=self.propertyUrl)


class SendOtpRequest(PropertyFields):
    phone: Optional[str] = Field(None, description="10-digit local phone number")
    name: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)

    @validator('phone', pre=True)
    def phone_as_string(cls, v):
        return None if v is None else str(v).strip()


class SendOtpResponse(BaseModel):
    success: bool = True
    message: str
    sessionId: str
    type: str


class VerifyOtpRequest(PropertyFields):
    sessionId: Optional[str] = Field(None, description="Session id returned by send-otp")
    otp: Optional[str] = Field(None, description="Code received by SMS or voice call")
    name: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    source: Optional[str] = Field(None, max_length=100, description="Where on the site the login started")

    @validator('otp', pre=True)
    def otp_as_string(cls, v):
        return None if v is None else str(v).strip()


class VerifiedUser(BaseModel):
    id: str
    name: str
    phone: str
    phoneNumber: str
    city: str
    email: Optional[str] = None
    isReturning: bool
    isNew: bool


class LeadSummary(BaseModel):
    id: str
    propertyName: Optional[str] = None


class VerifyOtpResponse(BaseModel):
    success: bool = True
    message: str
    user: VerifiedUser
    lead: Optional[LeadSummary] = None
    token: str
    refreshToken: str


class BalanceResponse(BaseModel):
    success: bool = True
    balance: str
    message: str = "Balance retrieved successfully"


class ServiceHealthResponse(BaseModel):
    success: bool = True
    message: str
    service: str
    timestamp: str
