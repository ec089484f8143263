"""
Simple in-memory rate limiter for /login and /register.

Notes:
- Not multi-process safe (у каждого gunicorn-воркера свои бакеты).
- Сбрасывается при перезапуске процесса.
"""

import time
import threading
from functools import wraps
from collections import deque, defaultdict

from flask import jsonify, request

from logger.logger import app_logger


class RateLimiter:
    """Sliding-window rate limiter, keyed by endpoint + client IP."""

    def __init__(self, window_sec: int, max_req: int) -> None:
        """
        :param window_sec: Длина окна (секунды).
        :param max_req: Максимум запросов на ключ за окно.
        """
        self.window = window_sec
        self.max_req = max_req
        # ключ -> очередь меток времени
        self.bucket: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    @staticmethod
    def _key() -> str:
        return f"{request.endpoint}:{request.remote_addr or 'unknown'}"

    def check(self) -> bool:
        """
        Проверить и записать текущий запрос.
        Возвращает True, если лимит НЕ превышен.
        """
        now = time.monotonic()
        key = self._key()
        with self._lock:
            q = self.bucket[key]

            # выкидываем старые элементы за пределами окна
            limit_from = now - self.window
            while q and q[0] <= limit_from:
                q.popleft()

            if len(q) >= self.max_req:
                return False

            q.append(now)
            return True

    def limit(self, f):
        """Flask-декоратор: 429, если лимит для клиента исчерпан."""

        @wraps(f)
        def decorated(*args, **kwargs):
            if not self.check():
                app_logger.warning("Rate limit hit: %s", self._key())
                return jsonify({"error": "Too many requests"}), 429
            return f(*args, **kwargs)

        return decorated
