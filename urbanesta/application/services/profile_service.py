from dataclasses import dataclass
from typing import List, Optional

from ..ports.user_repo import UserRepository, UserDto, DuplicateUserError
from ...exceptions import NotFoundError, ValidationError
from ...utils import is_valid_email, utcnow


@dataclass
class ProfileService:
    user_repo: UserRepository

    def _require(self, user_id: str) -> UserDto:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, user_id: str) -> UserDto:
        user = self._require(user_id)
        return self.user_repo.record_login(user.id, utcnow()) or user

    def update_profile(self, user_id: str, name: Optional[str], city: Optional[str], email: Optional[str]) -> UserDto:
        name = (name or "").strip()
        city = (city or "").strip()
        email = (email or "").strip().lower()
        if not name:
            raise ValidationError("Name is required")
        if not city:
            raise ValidationError("City is required")
        if not email:
            raise ValidationError("Email is required")
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email address")

        user = self._require(user_id)
        if user.email != email:
            owner = self.user_repo.get_by_email(email)
            if owner and owner.id != user.id:
                raise ValidationError("Email address is already in use by another account")
        try:
            updated = self.user_repo.update_profile(user.id, name, city, email)
        except DuplicateUserError:
            raise ValidationError("Email address is already in use by another account")
        if not updated:
            raise NotFoundError("User not found")
        return updated

    def watchlist(self, user_id: str) -> List[str]:
        return self._require(user_id).watchlist

    def add_to_watchlist(self, user_id: str, property_id: Optional[str]) -> None:
        if not property_id:
            raise ValidationError("Property ID is required")
        self._require(user_id)
        self.user_repo.add_to_watchlist(user_id, property_id)

    def remove_from_watchlist(self, user_id: str, property_id: str) -> None:
        self._require(user_id)
        self.user_repo.remove_from_watchlist(user_id, property_id)
