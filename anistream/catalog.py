"""Каталог аниме: список названий, поиск эпизода, привязка загруженного файла и демо-данные."""

from __future__ import annotations

from typing import Any

from bson import ObjectId
from pymongo.errors import PyMongoError

from logger.logger import app_logger

from anistream.db import Database
from anistream.errors import NotFound
from anistream.models import Anime, Episode, parse_object_id

SAMPLE_ANIME = Anime(
    title="Sample Anime",
    description="A sample anime for testing purposes.",
    episodes=[
        Episode(title="Episode 1", video_path="sample_anime_episode_1.mp4"),
        Episode(title="Episode 2", video_path="sample_anime_episode_2.mp4"),
    ],
)


class CatalogStore:
    def __init__(self, database: Database):
        self.collection = database.animes

    def list_titles(self) -> list[dict[str, Any]]:
        """Только _id и title: описания и пути к файлам сюда не попадают."""
        docs = self.collection.find({}, {"title": 1})
        return [{"_id": str(doc["_id"]), "title": doc.get("title", "")} for doc in docs]

    def get_anime(self, anime_id: str) -> Anime:
        oid = parse_object_id(anime_id)
        doc = self.collection.find_one({"_id": oid}) if oid else None
        if doc is None:
            raise NotFound("Anime not found.")
        return Anime.from_doc(doc)

    def get_episode(self, anime_id: str, episode_id: str) -> tuple[Anime, Episode]:
        """Сначала аниме, затем встроенный эпизод; любой промах: NotFound."""
        anime = self.get_anime(anime_id)
        oid = parse_object_id(episode_id)
        episode = anime.episode(oid) if oid else None
        if episode is None:
            raise NotFound("Episode not found.")
        return anime, episode

    def insert(self, anime: Anime) -> ObjectId:
        doc = anime.to_doc()
        doc.pop("_id", None)
        anime.id = self.collection.insert_one(doc).inserted_id
        return anime.id

    def add_episode(self, anime_id: str, title: str, video_path: str, duration: float | None = None) -> Episode:
        """Дописывает эпизод в конец списка эпизодов аниме."""
        oid = parse_object_id(anime_id)
        episode = Episode(title=title, video_path=video_path, duration=duration)
        result = self.collection.update_one({"_id": oid}, {"$push": {"episodes": episode.to_doc()}}) if oid else None
        if result is None or result.matched_count == 0:
            raise NotFound("Anime not found.")
        app_logger.info("Linked %s to anime %s as episode %s", video_path, anime_id, episode.id)
        return episode

    def seed_sample(self) -> ObjectId | None:
        """Создаёт демо-аниме, если его ещё нет. Ошибки только логируются."""
        try:
            existing = self.collection.find_one({"title": SAMPLE_ANIME.title}, {"_id": 1})
            if existing:
                return existing["_id"]
            anime = Anime(
                title=SAMPLE_ANIME.title,
                description=SAMPLE_ANIME.description,
                episodes=[Episode(title=e.title, video_path=e.video_path) for e in SAMPLE_ANIME.episodes],
            )
            oid = self.insert(anime)
            app_logger.info("Sample anime created: %s", oid)
            return oid
        except PyMongoError as e:
            app_logger.error("Error creating sample anime: %s", e)
            return None
