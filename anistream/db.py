"""Подключение к MongoDB: клиент, коллекции и индексы."""

from __future__ import annotations

from pymongo import ASCENDING, MongoClient
from pymongo.database import Database as MongoDatabase
from pymongo.collection import Collection

from logger.logger import app_logger

DEFAULT_DB_NAME = "animeStreamingDB"


class Database:
    """Владеет MongoClient и отдаёт коллекции users/animes.

    Клиент можно передать снаружи (например, mongomock в тестах);
    иначе он создаётся по mongo_uri и закрывается в close().
    """

    def __init__(self, mongo_uri: str, client: MongoClient | None = None):
        self._owns_client = client is None
        self.client = client if client is not None else MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
        db_name = self._db_name_from_uri(mongo_uri)
        self.db: MongoDatabase = self.client[db_name]
        self.name = db_name

    @staticmethod
    def _db_name_from_uri(uri: str) -> str:
        """Имя БД из пути URI (mongodb://host/<name>?...), по умолчанию animeStreamingDB."""
        rest = uri.split("://", 1)[-1]
        if "/" not in rest:
            return DEFAULT_DB_NAME
        name = rest.split("/", 1)[1].split("?", 1)[0]
        return name or DEFAULT_DB_NAME

    @property
    def users(self) -> Collection:
        return self.db["users"]

    @property
    def animes(self) -> Collection:
        return self.db["animes"]

    def ensure_indexes(self) -> None:
        """Создаёт уникальный индекс по username."""
        self.users.create_index([("username", ASCENDING)], unique=True, name="username_unique")
        app_logger.info("Indexes ensured for database %s", self.name)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
