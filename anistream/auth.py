"""Аутентификация: проверка учётных данных, серверные сессии и маршруты входа.

- authenticate(): чистая функция, возвращает AuthResult (user или ошибку);
- SessionStore: сессии в памяти процесса (теряются при перезапуске);
- AuthService: логин/логаут, проверка сессии, декоратор login_required и Blueprint
  с /register, /login, /logout.
"""

from __future__ import annotations

import time
import secrets
import threading
from typing import NamedTuple
from functools import wraps

from flask import Blueprint, g, jsonify, request, session, url_for, redirect
from werkzeug.security import check_password_hash

from logger.logger import app_logger, log_user_event

from anistream.errors import Unauthorized, ValidationError, InvalidCredentials
from anistream.limits import RateLimiter
from anistream.models import User, parse_object_id
from anistream.users import UserStore
from anistream.validation import validate_registration

SESSION_KEY = "sid"


class AuthResult(NamedTuple):
    user: User | None
    error: InvalidCredentials | None


def authenticate(users: UserStore, username: str, password: str) -> AuthResult:
    """Ищет пользователя и сверяет хэш пароля. Причина отказа наружу не раскрывается."""
    user = users.find_by_username(username)
    if user is None or not check_password_hash(user.password, password):
        return AuthResult(None, InvalidCredentials())
    return AuthResult(user, None)


class SessionStore:
    """Серверное хранилище сессий: sid → (user_id, истекает_в). Потокобезопасно."""

    def __init__(self, ttl_sec: int):
        self.ttl_sec = ttl_sec
        self._sessions: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def create(self, user_id: str) -> str:
        sid = secrets.token_urlsafe(32)
        now = time.monotonic()
        with self._lock:
            self._sweep(now)
            self._sessions[sid] = (user_id, now + self.ttl_sec)
        return sid

    def _sweep(self, now: float) -> None:
        """Удаляет все просроченные сессии. Вызывается под локом."""
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if now >= expires_at]
        for sid in expired:
            del self._sessions[sid]

    def get(self, sid: str | None) -> str | None:
        """Возвращает user_id для живой сессии; просроченную удаляет."""
        if not sid:
            return None
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            user_id, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._sessions[sid]
                return None
            return user_id

    def delete(self, sid: str | None) -> None:
        if not sid:
            return
        with self._lock:
            self._sessions.pop(sid, None)

    def __len__(self) -> int:
        return len(self._sessions)


class AuthService:
    """Логин/логаут и проверка сессии поверх UserStore и SessionStore."""

    def __init__(self, users: UserStore, sessions: SessionStore, limiter: RateLimiter):
        self.users = users
        self.sessions = sessions
        self.limiter = limiter

    def login(self, username: str, password: str) -> AuthResult:
        """Проверяет учётные данные и, при успехе, открывает сессию в cookie."""
        result = authenticate(self.users, username, password)
        if result.user is not None:
            session.clear()
            session[SESSION_KEY] = self.sessions.create(str(result.user.id))
        return result

    def logout(self) -> None:
        self.sessions.delete(session.get(SESSION_KEY))
        session.clear()

    def current_user(self) -> User | None:
        """Пользователь текущей сессии или None (нет cookie, сессия истекла, пользователь удалён)."""
        user_id = self.sessions.get(session.get(SESSION_KEY))
        oid = parse_object_id(user_id) if user_id else None
        if oid is None:
            return None
        return self.users.find_by_id(oid)

    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    def login_required(self, f):
        """Flask-декоратор: требует живую сессию, иначе 401. Кладёт пользователя в g.current_user."""

        @wraps(f)
        def decorated(*args, **kwargs):
            user = self.current_user()
            if user is None:
                log_user_event("unauthorized", level="warning", ip=request.remote_addr, path=request.path)
                raise Unauthorized()
            g.current_user = user
            return f(*args, **kwargs)

        return decorated

    def blueprint(self) -> Blueprint:
        """Создаёт Blueprint с /register, /login и /logout."""
        bp = Blueprint("auth", __name__)

        @bp.route("/register", methods=["POST"])
        @self.limiter.limit
        def register():
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                data = request.form
            form = validate_registration(data)
            if form.errors:
                raise ValidationError(form.errors)

            user = self.users.create(form.username, form.password)
            app_logger.info("User registered: %s", user.username)
            log_user_event("register", username=user.username, ip=request.remote_addr)
            return jsonify({"message": "User registered successfully."}), 201

        @bp.route("/login", methods=["POST"])
        @self.limiter.limit
        def login():
            username = request.form.get("username", "").strip()
            password = request.form.get("password", "")
            result = self.login(username, password)
            if result.error is not None:
                log_user_event("login", level="warning", username=username, ip=request.remote_addr, status="fail")
                return redirect(url_for("pages.index"))
            log_user_event("login", username=username, ip=request.remote_addr, status="success")
            return redirect(url_for("pages.dashboard"))

        @bp.route("/logout", methods=["GET"])
        def logout():
            user = self.current_user()
            self.logout()
            if user is not None:
                log_user_event("logout", username=user.username, ip=request.remote_addr)
            return redirect(url_for("pages.index"))

        return bp
