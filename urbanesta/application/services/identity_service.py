import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..ports.user_repo import UserRepository, UserDto, DuplicateUserError

logger = logging.getLogger(__name__)


@dataclass
class IdentityService:
    user_repo: UserRepository
    default_name: str = "User"
    default_city: str = "Gurgaon"

    def _supplied(self, value: Optional[str], default: str) -> Optional[str]:
        value = (value or "").strip()
        if not value or value == default:
            return None
        return value

    def upsert_verified(self, phone_number: str, name: Optional[str], city: Optional[str], now: datetime) -> Tuple[UserDto, bool]:
        """Find or create the user owning ``phone_number``; returns (user, is_new)."""
        new_name = self._supplied(name, self.default_name)
        new_city = self._supplied(city, self.default_city)

        user = self.user_repo.get_by_phone(phone_number)
        if user is None:
            try:
                user = self.user_repo.create(
                    phone_number,
                    new_name or self.default_name,
                    new_city or self.default_city,
                    now,
                )
                logger.info(f"Created user {user.id}")
                return user, True
            except DuplicateUserError:
                # a concurrent verification for the same phone won the insert
                user = self.user_repo.get_by_phone(phone_number)
                if user is None:
                    raise

        changed_name = new_name if new_name and new_name != user.name else None
        changed_city = new_city if new_city and new_city != user.city else None
        updated = self.user_repo.record_login(user.id, now, name=changed_name, city=changed_city)
        return (updated or user), False
