"""
Модуль для работы с загруженными файлами: сохранение под уникальным именем
и чтение длительности медиа через mutagen.
"""

from __future__ import annotations

import os
import time
import secrets

import mutagen
from mutagen import MutagenError
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from logger.logger import app_logger

from anistream.errors import InternalError


def unique_filename(field_name: str, original_name: str | None) -> str:
    """
    <поле>-<epoch ms>-<случайный суффикс><расширение>, например video-1700000000000-3f9a1c.mp4.
    Имя поля и расширение приходят от клиента и проходят через secure_filename.
    """
    field = secure_filename(field_name or "") or "file"
    ext = secure_filename(os.path.splitext(original_name or "")[1])
    ext = f".{ext}" if ext else ""
    return f"{field}-{int(time.time() * 1000)}-{secrets.token_hex(3)}{ext}"


class UploadHandler:
    """Пишет файлы в фиксированную директорию загрузок. Без проверки типа и размера."""

    def __init__(self, upload_dir: str):
        self.upload_dir = upload_dir
        os.makedirs(self.upload_dir, exist_ok=True)

    def save(self, field_name: str, file: FileStorage) -> str:
        """
        Сохраняет файл и возвращает его имя относительно upload_dir.
        Запись не транзакционная: при сбое может остаться частичный файл.
        """
        name = unique_filename(field_name, file.filename)
        path = os.path.join(self.upload_dir, name)
        try:
            file.save(path)
        except OSError as e:
            app_logger.error("Failed to save upload %s: %s", file.filename, e)
            raise InternalError("Failed to save upload") from e
        app_logger.info("Stored upload %s as %s", file.filename, name)
        return name

    def save_all(self, files) -> list[tuple[str, str, str]]:
        """
        Сохраняет по одному файлу на каждое поле multipart-формы.
        :param files: request.files (MultiDict)
        :return: [(поле, исходное имя, сохранённое имя), ...]
        """
        stored = []
        for field_name in files:
            file = files.get(field_name)
            if not file or not (file.filename or "").strip():
                continue
            stored.append((field_name, file.filename, self.save(field_name, file)))
        return stored

    def probe_duration(self, stored_name: str) -> float | None:
        """Длительность медиа в секундах или None, если формат не распознан."""
        path = os.path.join(self.upload_dir, stored_name)
        try:
            media = mutagen.File(path)
        except (MutagenError, OSError) as e:
            app_logger.warning("Failed to probe %s: %s", stored_name, e)
            return None
        if media is None or media.info is None:
            return None
        length = getattr(media.info, "length", None)
        return round(float(length), 3) if length else None
