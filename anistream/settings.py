"""Конфигурация сервиса: один объект Settings, собираемый из окружения при старте."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _bool(env: str, default: bool) -> bool:
    """Читает булеву переменную окружения: '1,true,yes,y,on' → True, иначе False."""
    v = os.getenv(env, str(default)).strip().lower()
    return v in ("1", "true", "yes", "y", "on")


def _int(env: str, default: int) -> int:
    """Читает целое из окружения; пустое значение трактуется как default."""
    raw = os.getenv(env, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{env} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Настройки процесса. Создаются один раз и передаются компонентам явно."""

    port: int = 3000
    mongo_uri: str = "mongodb://localhost:27017/animeStreamingDB"
    secret_key: str = "dev-insecure-change-me"
    token_secret: str = "dev-insecure-change-me"
    token_ttl_sec: int = 3600
    session_ttl_sec: int = 86400
    upload_dir: str = "./uploads"
    uploads_require_token: bool = False
    max_content_length: int = 500 * 1024 * 1024
    rate_limit_window_sec: int = 60
    rate_limit_max_requests: int = 20
    seed_sample: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Собирает Settings из переменных окружения (значения по умолчанию см. в полях класса)."""
        secret_key = os.getenv("SECRET_KEY") or cls.secret_key
        return cls(
            port=_int("PORT", cls.port),
            mongo_uri=os.getenv("MONGO_URI") or cls.mongo_uri,
            secret_key=secret_key,
            token_secret=os.getenv("TOKEN_SECRET") or secret_key,
            token_ttl_sec=_int("TOKEN_TTL_SEC", cls.token_ttl_sec),
            session_ttl_sec=_int("SESSION_TTL_SEC", cls.session_ttl_sec),
            upload_dir=os.getenv("UPLOAD_DIR") or cls.upload_dir,
            uploads_require_token=_bool("UPLOADS_REQUIRE_TOKEN", cls.uploads_require_token),
            max_content_length=_int("MAX_CONTENT_LENGTH", cls.max_content_length),
            rate_limit_window_sec=_int("RATE_LIMIT_WINDOW_SEC", cls.rate_limit_window_sec),
            rate_limit_max_requests=_int("RATE_LIMIT_MAX_REQUESTS", cls.rate_limit_max_requests),
            seed_sample=_bool("SEED_SAMPLE", cls.seed_sample),
        )

    @property
    def upload_path(self) -> str:
        """Абсолютный путь к директории загрузок."""
        return os.path.abspath(self.upload_dir)
