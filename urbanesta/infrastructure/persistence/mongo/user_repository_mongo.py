from datetime import datetime
from typing import Optional, Dict, Any

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .client import USERS
from ....application.ports.user_repo import UserRepository, UserDto, DuplicateUserError
from ....utils import utcnow


def _object_id(user_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


class MongoUserRepository(UserRepository):
    def __init__(self, db: Database):
        self.collection = db[USERS]

    def _to_dto(self, doc: Dict[str, Any]) -> UserDto:
        return UserDto(
            id=str(doc["_id"]),
            phone_number=doc["phoneNumber"],
            name=doc.get("name") or "",
            city=doc.get("city") or "",
            email=doc.get("email"),
            join_date=doc.get("joinDate"),
            last_login=doc.get("lastLogin"),
            watchlist=[str(p) for p in doc.get("watchlist", [])],
            my_properties=[str(p) for p in doc.get("myProperties", [])],
        )

    def get_by_phone(self, phone_number: str) -> Optional[UserDto]:
        doc = self.collection.find_one({"phoneNumber": phone_number})
        return self._to_dto(doc) if doc else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        oid = _object_id(user_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return self._to_dto(doc) if doc else None

    def get_by_email(self, email: str) -> Optional[UserDto]:
        doc = self.collection.find_one({"email": email})
        return self._to_dto(doc) if doc else None

    def create(self, phone_number: str, name: str, city: str, now: datetime) -> UserDto:
        doc = {
            "phoneNumber": phone_number,
            "name": name,
            "city": city,
            "email": None,
            "joinDate": now,
            "lastLogin": now,
            "watchlist": [],
            "myProperties": [],
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise DuplicateUserError(str(e))
        doc["_id"] = result.inserted_id
        return self._to_dto(doc)

    def record_login(self, user_id: str, now: datetime, name: Optional[str] = None, city: Optional[str] = None) -> Optional[UserDto]:
        updates: Dict[str, Any] = {"lastLogin": now, "updatedAt": now}
        if name is not None:
            updates["name"] = name
        if city is not None:
            updates["city"] = city
        doc = self.collection.find_one_and_update(
            {"_id": _object_id(user_id)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_dto(doc) if doc else None

    def update_profile(self, user_id: str, name: str, city: str, email: str) -> Optional[UserDto]:
        try:
            doc = self.collection.find_one_and_update(
                {"_id": _object_id(user_id)},
                {"$set": {"name": name, "city": city, "email": email, "updatedAt": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise DuplicateUserError(str(e))
        return self._to_dto(doc) if doc else None

    def add_to_watchlist(self, user_id: str, property_id: str) -> None:
        self.collection.update_one({"_id": _object_id(user_id)}, {"$addToSet": {"watchlist": property_id}})

    def remove_from_watchlist(self, user_id: str, property_id: str) -> None:
        self.collection.update_one({"_id": _object_id(user_id)}, {"$pull": {"watchlist": property_id}})
