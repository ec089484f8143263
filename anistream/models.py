"""Модели данных и их преобразование в документы MongoDB и обратно."""

from __future__ import annotations

from typing import Any
from dataclasses import field, dataclass

from bson import ObjectId


@dataclass
class User:
    """Пользователь. password хранит только соль+хэш, никогда не открытый текст."""

    username: str
    password: str
    id: ObjectId | None = None

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"username": self.username, "password": self.password}
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> "User":
        return cls(username=doc["username"], password=doc["password"], id=doc.get("_id"))


@dataclass
class Episode:
    """Эпизод, встроенный в документ Anime. video_path относителен директории загрузок."""

    title: str
    video_path: str
    duration: float | None = None
    id: ObjectId | None = field(default_factory=ObjectId)

    def to_doc(self) -> dict[str, Any]:
        return {"_id": self.id, "title": self.title, "videoPath": self.video_path, "duration": self.duration}

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> "Episode":
        return cls(
            title=doc.get("title", ""),
            video_path=doc.get("videoPath", ""),
            duration=doc.get("duration"),
            id=doc.get("_id"),
        )

    def public(self) -> dict[str, Any]:
        """Представление для клиента: без пути к файлу."""
        return {"_id": str(self.id), "title": self.title, "duration": self.duration}


@dataclass
class Anime:
    title: str
    description: str
    episodes: list[Episode] = field(default_factory=list)
    id: ObjectId | None = None

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "episodes": [e.to_doc() for e in self.episodes],
        }
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> "Anime":
        return cls(
            title=doc.get("title", ""),
            description=doc.get("description", ""),
            # эпизоды без _id (вставленные вручную) адресовать нельзя
            episodes=[Episode.from_doc(e) for e in doc.get("episodes", []) if e.get("_id") is not None],
            id=doc.get("_id"),
        )

    def episode(self, episode_id: ObjectId) -> Episode | None:
        return next((e for e in self.episodes if e.id == episode_id), None)

    def public(self) -> dict[str, Any]:
        return {
            "_id": str(self.id),
            "title": self.title,
            "description": self.description,
            "episodes": [e.public() for e in self.episodes],
        }


def parse_object_id(raw: str) -> ObjectId | None:
    """Возвращает ObjectId или None, если строка не является корректным идентификатором."""
    if not ObjectId.is_valid(raw):
        return None
    return ObjectId(raw)
