"""Хранилище пользователей: поиск по имени/id и создание с проверкой уникальности."""

from __future__ import annotations

from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from werkzeug.security import generate_password_hash

from logger.logger import app_logger

from anistream.db import Database
from anistream.errors import Conflict
from anistream.models import User


class UserStore:
    def __init__(self, database: Database):
        self.collection = database.users

    def find_by_username(self, username: str) -> User | None:
        doc = self.collection.find_one({"username": username})
        return User.from_doc(doc) if doc else None

    def find_by_id(self, user_id: ObjectId) -> User | None:
        doc = self.collection.find_one({"_id": user_id})
        return User.from_doc(doc) if doc else None

    def create(self, username: str, password: str) -> User:
        """Сохраняет пользователя с солёным хэшем пароля.

        Конфликт имени ловится дважды: явной проверкой и уникальным индексом
        (на случай параллельной регистрации). В обоих случаях: Conflict.
        """
        if self.find_by_username(username) is not None:
            raise Conflict("Username already exists.")
        user = User(username=username, password=generate_password_hash(password))
        try:
            result = self.collection.insert_one(user.to_doc())
        except DuplicateKeyError as e:
            app_logger.warning("Duplicate username on insert: %s", username)
            raise Conflict("Username already exists.") from e
        user.id = result.inserted_id
        return user
