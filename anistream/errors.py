"""Таксономия ошибок сервиса и их отображение в JSON-ответы Flask."""

from __future__ import annotations

from flask import Flask, Response, jsonify
from pymongo.errors import PyMongoError

from logger.logger import app_logger

__all__ = [
    "AppError",
    "ValidationError",
    "InvalidCredentials",
    "Unauthorized",
    "NotFound",
    "Conflict",
    "InternalError",
    "register_error_handlers",
]


class AppError(Exception):
    """Базовая ошибка уровня обработчика: несёт HTTP-код и сообщение для клиента."""

    status = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> tuple[Response, int]:
        return jsonify({"error": self.message}), self.status


class ValidationError(AppError):
    """Некорректный ввод. Хранит список ошибок по полям."""

    status = 400
    default_message = "Validation failed"

    def __init__(self, errors: list[dict[str, str]], message: str | None = None):
        super().__init__(message)
        self.errors = errors

    def to_response(self) -> tuple[Response, int]:
        return jsonify({"errors": self.errors}), self.status


class InvalidCredentials(AppError):
    status = 401
    default_message = "Invalid username or password."


class Unauthorized(AppError):
    status = 401
    default_message = "Unauthorized"


class NotFound(AppError):
    status = 404
    default_message = "Not found."


class Conflict(AppError):
    status = 409
    default_message = "Conflict."


class InternalError(AppError):
    status = 500


def _handle_app_error(err: AppError) -> tuple[Response, int]:
    if err.status >= 500:
        app_logger.error("Server error: %s", err.message)
    else:
        app_logger.warning("Client error %d: %s", err.status, err.message)
    return err.to_response()


def _handle_store_error(err: PyMongoError) -> tuple[Response, int]:
    app_logger.error("Store failure: %s", err)
    return InternalError().to_response()


def handle_413(max_content_length: int):
    """Фабрика обработчика ошибки 413 (слишком большой запрос).

    :param max_content_length: Максимальный размер тела запроса в байтах
    :return: callable для `app.register_error_handler(413, ...)`
    """

    def _handler(_e) -> tuple[Response, int]:
        app_logger.error("Request entity too large")
        mb = max_content_length / (1024 * 1024)
        return jsonify({"error": f"The total upload is too large (> {mb} MB)."}), 413

    return _handler


def register_error_handlers(app: Flask, max_content_length: int) -> None:
    """Регистрирует обработчики: AppError → его код, ошибки Mongo → 500, 413 → JSON."""
    app.register_error_handler(AppError, _handle_app_error)
    app.register_error_handler(PyMongoError, _handle_store_error)
    app.register_error_handler(413, handle_413(max_content_length))
