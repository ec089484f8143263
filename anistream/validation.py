"""Валидация данных регистрации.

Модуль разбивает проверки на мелкие функции:
- _check_username: длина 3–20 и только [a-zA-Z0-9_];
- _check_password: минимум 8 символов без учёта пробелов по краям;
- validate_registration: собирает все ошибки сразу и формирует единый результат.
"""

import re
from typing import Any, NamedTuple
from collections.abc import Mapping

USERNAME_MIN = 3
USERNAME_MAX = 20
PASSWORD_MIN = 8
USERNAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")


class RegistrationInput(NamedTuple):
    """Результат валидации регистрации.

    Attributes:
        username: Очищенное имя пользователя (после trim).
        password: Пароль как есть.
        errors: Список ошибок вида {"field": ..., "message": ...}; пустой при успехе.
    """

    username: str
    password: str
    errors: list[dict[str, str]]


def _check_username(username: str) -> str | None:
    if not USERNAME_MIN <= len(username) <= USERNAME_MAX:
        return f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters long"
    if not USERNAME_RE.match(username):
        return "Username may contain only letters, digits and underscores"
    return None


def _check_password(password: str) -> str | None:
    if len(password.strip()) < PASSWORD_MIN:
        return f"Password must be at least {PASSWORD_MIN} characters long"
    return None


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def validate_registration(data: Mapping[str, Any]) -> RegistrationInput:
    """Проверяет username/password из JSON или формы. Пароль в ошибки не попадает."""
    username = _as_str(data.get("username")).strip()
    password = _as_str(data.get("password"))

    errors: list[dict[str, str]] = []
    for field_name, err in (("username", _check_username(username)), ("password", _check_password(password))):
        if err:
            errors.append({"field": field_name, "message": err})

    return RegistrationInput(username, password, errors)
