from fastapi import APIRouter, Depends, Request, Response
import logging

from ..application.services.profile_service import ProfileService
from ..application.services.token_service import TokenIssuer
from ..cookies import REFRESH_COOKIE, set_access_cookies, clear_auth_cookies
from ..dependencies import get_current_user_id, get_profile_service, get_token_issuer, get_user_repo
from ..exceptions import AuthenticationError
from ..schemas.common import MessageResponse
from ..schemas.user import (
    UserProfile, ProfileResponse, UpdateProfileRequest, WatchlistRequest, WatchlistResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user", tags=["User"])


@router.post("/refresh-token", response_model=MessageResponse)
def refresh_token(request: Request, response: Response,
                  tokens: TokenIssuer = Depends(get_token_issuer),
                  user_repo=Depends(get_user_repo)):
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise AuthenticationError("Refresh token not found")
    payload = tokens.decode_refresh(token)
    if not payload:
        raise AuthenticationError("Invalid or expired refresh token")
    user = user_repo.get_by_id(payload["sub"])
    if not user:
        raise AuthenticationError("User not found")
    set_access_cookies(response, tokens.issue_access(user))
    return MessageResponse(message="Token refreshed successfully")


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    clear_auth_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user_id: str = Depends(get_current_user_id), service: ProfileService = Depends(get_profile_service)):
    return ProfileResponse(user=UserProfile.from_dto(service.get_profile(user_id)))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(body: UpdateProfileRequest, user_id: str = Depends(get_current_user_id),
                   service: ProfileService = Depends(get_profile_service)):
    user = service.update_profile(user_id, body.name, body.city, body.email)
    logger.info(f"Profile updated for user {user_id}")
    return ProfileResponse(message="Profile updated successfully", user=UserProfile.from_dto(user))


@router.get("/watchlist", response_model=WatchlistResponse)
def get_watchlist(user_id: str = Depends(get_current_user_id), service: ProfileService = Depends(get_profile_service)):
    return WatchlistResponse(watchlist=service.watchlist(user_id))


@router.post("/watchlist", response_model=MessageResponse)
def add_to_watchlist(body: WatchlistRequest, user_id: str = Depends(get_current_user_id),
                     service: ProfileService = Depends(get_profile_service)):
    service.add_to_watchlist(user_id, body.propertyId)
    logger.info(f"Property {body.propertyId} added to watchlist of user {user_id}")
    return MessageResponse(message="Property added to watchlist")


@router.delete("/watchlist/{property_id}", response_model=MessageResponse)
def remove_from_watchlist(property_id: str, user_id: str = Depends(get_current_user_id),
                          service: ProfileService = Depends(get_profile_service)):
    service.remove_from_watchlist(user_id, property_id)
    logger.info(f"Property {property_id} removed from watchlist of user {user_id}")
    return MessageResponse(message="Property removed from watchlist")
