"""Подписанные токены доставки видео (JWT, HS256).

Токен выпускается на каждый запрос /video/<anime>/<episode> и кладётся в
заголовок x-auth-token. Проверяется в /uploads/*, если включён UPLOADS_REQUIRE_TOKEN.
"""

from __future__ import annotations

from typing import Any
from datetime import datetime, timezone, timedelta

import jwt

from anistream.errors import Unauthorized

ALGORITHM = "HS256"
TOKEN_HEADER = "x-auth-token"


class DeliveryTokens:
    def __init__(self, secret: str, ttl_sec: int = 3600):
        self.secret = secret
        self.ttl_sec = ttl_sec

    def mint(self, user_id: str, anime_id: str, episode_id: str) -> str:
        """Выпускает токен с claims {userId, animeId, episodeId, iat, exp}."""
        now = datetime.now(tz=timezone.utc)
        payload = {
            "userId": str(user_id),
            "animeId": str(anime_id),
            "episodeId": str(episode_id),
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_sec),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token: str | None) -> dict[str, Any]:
        """Проверяет подпись и срок действия. Возвращает claims или бросает Unauthorized."""
        if not token:
            raise Unauthorized("Missing delivery token")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "userId", "animeId", "episodeId"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise Unauthorized("Delivery token expired") from e
        except jwt.InvalidTokenError as e:
            raise Unauthorized("Invalid delivery token") from e
        return claims
