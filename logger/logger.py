"""Логирование для anistream.

Содержит два логгера:
- app_logger: основной логгер сервиса (консоль + файл с ротацией).
- user_logger: JSON-логгер пользовательских событий (если указан путь через USER_LOG_PATH).
"""

import os
import json
import logging
from logging.handlers import RotatingFileHandler

LOG_DIR = os.environ.get("LOG_DIR", "./logs")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
if not os.path.exists(LOG_DIR):
    os.makedirs(LOG_DIR, exist_ok=True)

# --- App logger ---
app_logger = logging.getLogger("app")
app_formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
for _h in list(app_logger.handlers):
    app_logger.removeHandler(_h)
    _h.close()

app_handler = RotatingFileHandler(os.path.join(LOG_DIR, "app.log"), maxBytes=10 * 1024 * 1024, backupCount=5)
app_handler.setFormatter(app_formatter)
app_logger.addHandler(app_handler)

console_handler = logging.StreamHandler()
console_handler.setFormatter(app_formatter)
app_logger.addHandler(console_handler)

app_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
app_logger.propagate = False


# --- User logger (JSON, only if path set) ---
class JsonFileHandler(logging.FileHandler):
    """Пишет каждую запись отдельной JSON-строкой."""

    def emit(self, record):
        try:
            log_entry = self.format(record)
            self.stream.write(log_entry + "\n")
            self.flush()
        except Exception:
            self.handleError(record)


class JsonFormatter(logging.Formatter):
    """Сериализует запись в JSON; поля из extra={"extra": {...}} попадают на верхний уровень."""

    def format(self, record):
        data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        if hasattr(record, "extra"):
            data.update(record.extra)
        return json.dumps(data, ensure_ascii=False, default=str)


def get_user_logger():
    """Создаёт JSON-логгер пользовательских событий, если задан USER_LOG_PATH.

    USER_LOG_PATH может указывать на директорию (тогда пишем в user_events.json)
    или на конкретный файл.

    :return: logging.Logger или None, если путь не задан или логгер не удалось создать."""
    base_path = os.environ.get("USER_LOG_PATH")
    if not base_path:
        return None
    log_file_path = os.path.join(base_path, "user_events.json") if os.path.isdir(base_path) else base_path
    logger = logging.getLogger("user_events")
    for h in list(logger.handlers):
        if getattr(h, "baseFilename", None) != os.path.abspath(log_file_path):
            logger.removeHandler(h)
            h.close()
    if not logger.handlers:
        try:
            handler = JsonFileHandler(log_file_path)
            handler.setFormatter(JsonFormatter())
            logger.addHandler(handler)
            logger.setLevel(logging.INFO)
        except OSError as e:
            app_logger.error("Failed to setup user logger: %s", e)
            return None
    logger.propagate = False
    return logger


user_logger = get_user_logger()


def log_user_event(event: str, level: str = "info", **fields) -> None:
    """Пишет событие пользователя в user_logger (если он включён).

    Пароли и прочие секреты сюда передавать нельзя.
    """
    if user_logger is None:
        return
    payload = {"event": event, **fields}
    getattr(user_logger, level)(event, extra={"extra": payload})
