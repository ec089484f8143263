"""Фикстуры и утилиты для тестов веб-приложения."""

from __future__ import annotations

import tempfile
from os import environ

import pytest
import mongomock

# ВАЖНО: эти переменные должны быть установлены до импорта приложения.
environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="anistream_logs_"))
environ.pop("USER_LOG_PATH", None)

from app import create_app  # pylint: disable=wrong-import-position
from anistream.models import Anime, Episode  # pylint: disable=wrong-import-position
from anistream.settings import Settings  # pylint: disable=wrong-import-position

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"
PASSWORD = "password1"


@pytest.fixture()
def upload_dir(tmp_path):
    """Временная директория загрузок."""
    d = tmp_path / "uploads"
    d.mkdir()
    return d


@pytest.fixture()
def settings(upload_dir):
    """Настройки для тестов: временные загрузки, без жёсткого rate-limit."""
    return Settings(
        mongo_uri="mongodb://localhost/animeTestDB",
        secret_key=TEST_SECRET,
        token_secret=TEST_SECRET,
        upload_dir=str(upload_dir),
        rate_limit_max_requests=1000,
    )


@pytest.fixture()
def flask_app(settings):
    """Flask app поверх mongomock: своя БД на каждый тест."""
    app = create_app(settings, mongo_client=mongomock.MongoClient())
    app.testing = True
    return app


@pytest.fixture()
def components(flask_app):
    """Компоненты приложения (users, catalog, auth, ...)."""
    return flask_app.extensions["anistream"]


@pytest.fixture()
def client(flask_app):  # pylint: disable=redefined-outer-name
    """Возвращает тестовый клиент Flask для каждого теста."""
    return flask_app.test_client()


@pytest.fixture()
def anime_with_file(components, upload_dir):
    """Аниме с двумя эпизодами; файл есть только у первого."""
    (upload_dir / "ep1.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42fake-video")
    anime = Anime(
        title="Test Anime",
        description="desc",
        episodes=[Episode(title="Episode 1", video_path="ep1.mp4"), Episode(title="Episode 2", video_path="gone.mp4")],
    )
    components["catalog"].insert(anime)
    return anime


def register(client, username: str = "abc", password: str = PASSWORD):
    """POST /register с JSON-телом."""
    return client.post("/register", json={"username": username, "password": password})


def login(client, username: str = "abc", password: str = PASSWORD):
    """POST /login формой."""
    return client.post("/login", data={"username": username, "password": password})
