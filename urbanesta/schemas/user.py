from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from ..application.ports.user_repo import UserDto


class UserProfile(BaseModel):
    id: str
    phoneNumber: str
    name: str
    city: str
    email: Optional[str] = None
    joinDate: Optional[datetime] = None
    lastLogin: Optional[datetime] = None

    @classmethod
    def from_dto(cls, user: UserDto) -> "UserProfile":
        return cls(
            id=user.id,
            phoneNumber=user.phone_number,
            name=user.name,
            city=user.city,
            email=user.email,
            joinDate=user.join_date,
            lastLogin=user.last_login,
        )


class ProfileResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserProfile


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=254)


class WatchlistRequest(BaseModel):
    propertyId: Optional[str] = None


class WatchlistResponse(BaseModel):
    success: bool = True
    watchlist: List[str]
