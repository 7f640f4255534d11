"""
MongoDB connection for users and leads.
"""
import logging
from typing import Optional

from pymongo import MongoClient, ASCENDING
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, PyMongoError

from ....config import settings
from ....exceptions import PersistenceError

logger = logging.getLogger(__name__)

USERS = "users"
LEADS = "leads"


class MongoConnection:
    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self.uri = (settings.MONGODB_URI if uri is None else uri).strip()
        self.db_name = db_name or settings.MONGODB_DB
        self.client: Optional[MongoClient] = None
        self.db: Optional[Database] = None

    def connect(self) -> None:
        if not self.uri:
            logger.warning("MONGODB_URI not set. Running in offline mode; persistence is unavailable.")
            return
        try:
            self.client = MongoClient(
                self.uri,
                serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
                connectTimeoutMS=settings.MONGODB_TIMEOUT_MS,
                maxPoolSize=10,
                socketTimeoutMS=45000,
            )
            self.client.admin.command("ping")
            self.db = self.client[self.db_name]
            logger.info("MongoDB connected successfully")
            self._ensure_indexes()
        except ConnectionFailure as e:
            logger.error(f"MongoDB connection error: {e}")
            self.client = None
            self.db = None

    def _ensure_indexes(self) -> None:
        try:
            self.db[USERS].create_index([("phoneNumber", ASCENDING)], unique=True)
            # unique only among documents that actually carry a string email
            self.db[USERS].create_index(
                [("email", ASCENDING)],
                unique=True,
                partialFilterExpression={"email": {"$type": "string"}},
            )
            self.db[LEADS].create_index([("phone", ASCENDING), ("createdAt", -1)])
        except PyMongoError as exc:
            logger.warning(f"Unable to create indexes: {exc}")

    @property
    def connected(self) -> bool:
        return self.db is not None

    def database(self) -> Database:
        if self.db is None:
            raise PersistenceError()
        return self.db

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("Database connection closed")
        self.client = None
        self.db = None


mongo = MongoConnection()
