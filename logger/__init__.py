"""Логирование для anistream.

Экспортирует:
- app_logger: основной логгер приложения
- user_logger: JSON-логгер пользовательских событий (по USER_LOG_PATH)
- log_user_event: запись события в user_logger
"""

from .logger import app_logger, user_logger, log_user_event  # noqa: F401

__all__ = ["app_logger", "user_logger", "log_user_event"]
