from dataclasses import dataclass, field
from typing import Protocol, Optional, List
from datetime import datetime


@dataclass
class UserDto:
    id: str
    phone_number: str
    name: str
    city: str
    email: Optional[str]
    join_date: datetime
    last_login: Optional[datetime]
    watchlist: List[str] = field(default_factory=list)
    my_properties: List[str] = field(default_factory=list)


class DuplicateUserError(Exception):
    """A user with the same phone number or email already exists."""


class UserRepository(Protocol):
    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def create(self, phone_number: str, name: str, city: str, now: datetime) -> UserDto:
        ...

    def record_login(self, user_id: str, now: datetime, name: Optional[str] = None, city: Optional[str] = None) -> Optional[UserDto]:
        ...

    def update_profile(self, user_id: str, name: str, city: str, email: str) -> Optional[UserDto]:
        ...

    def add_to_watchlist(self, user_id: str, property_id: str) -> None:
        ...

    def remove_from_watchlist(self, user_id: str, property_id: str) -> None:
        ...
