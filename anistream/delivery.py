"""Маршруты каталога и доставки видео.

- /api/animeList, /api/anime/<id>: публичный каталог без путей к файлам;
- /video/<anime>/<episode>: файл целиком, только для залогиненных, с x-auth-token;
- /upload: загрузка файлов и (опционально) привязка к аниме как новый эпизод;
- /uploads/<path>: прямой доступ к файлам (публичный или по токену).
"""

from __future__ import annotations

import os

from flask import Blueprint, g, jsonify, request, send_file, send_from_directory
from werkzeug.security import safe_join

from logger.logger import log_user_event

from anistream.auth import AuthService
from anistream.errors import NotFound, Unauthorized, ValidationError
from anistream.tokens import TOKEN_HEADER, DeliveryTokens
from anistream.catalog import CatalogStore
from anistream.uploads import UploadHandler


class DeliveryService:
    def __init__(
        self,
        catalog: CatalogStore,
        auth: AuthService,
        tokens: DeliveryTokens,
        uploads: UploadHandler,
        uploads_require_token: bool = False,
    ):
        self.catalog = catalog
        self.auth = auth
        self.tokens = tokens
        self.uploads = uploads
        self.uploads_require_token = uploads_require_token

    def resolve_file(self, video_path: str) -> str:
        """Путь к файлу внутри директории загрузок; выход за её пределы или отсутствие файла: NotFound."""
        path = safe_join(self.uploads.upload_dir, video_path) if video_path else None
        if path is None or not os.path.isfile(path):
            raise NotFound("Video file not found.")
        return path

    def check_upload_token(self, filename: str) -> None:
        """Токен из ?token= должен быть валиден и выписан ровно на этот файл."""
        claims = self.tokens.verify(request.args.get("token"))
        try:
            _, episode = self.catalog.get_episode(claims["animeId"], claims["episodeId"])
        except NotFound as e:
            raise Unauthorized("Invalid delivery token") from e
        if episode.video_path != filename:
            raise Unauthorized("Token does not grant access to this file")

    def blueprint(self) -> Blueprint:
        bp = Blueprint("delivery", __name__)

        @bp.route("/api/animeList", methods=["GET"])
        def anime_list():
            return jsonify(self.catalog.list_titles())

        @bp.route("/api/anime/<anime_id>", methods=["GET"])
        def anime_detail(anime_id):
            return jsonify(self.catalog.get_anime(anime_id).public())

        @bp.route("/video/<anime_id>/<episode_id>", methods=["GET"])
        @self.auth.login_required
        def video(anime_id, episode_id):
            _, episode = self.catalog.get_episode(anime_id, episode_id)
            path = self.resolve_file(episode.video_path)

            # TODO: проверка прав на конкретный эпизод, когда появятся подписки
            token = self.tokens.mint(str(g.current_user.id), anime_id, episode_id)
            log_user_event(
                "video",
                username=g.current_user.username,
                anime_id=anime_id,
                episode_id=episode_id,
                ip=request.remote_addr,
            )
            response = send_file(path, conditional=False)
            response.headers[TOKEN_HEADER] = token
            return response

        @bp.route("/upload", methods=["POST"])
        @self.auth.login_required
        def upload():
            stored = self.uploads.save_all(request.files)
            if not stored:
                raise ValidationError([{"field": "file", "message": "No files provided"}])

            files = [{"field": f, "filename": orig, "path": name} for f, orig, name in stored]
            log_user_event("upload", username=g.current_user.username, files=[f["path"] for f in files])

            anime_id = request.form.get("animeId", "").strip()
            if not anime_id:
                return jsonify({"files": files, "episode": None}), 201

            _, original, name = stored[0]
            title = request.form.get("episodeTitle", "").strip() or os.path.splitext(original)[0]
            episode = self.catalog.add_episode(anime_id, title, name, self.uploads.probe_duration(name))
            return jsonify({"files": files, "episode": episode.public()}), 201

        @bp.route("/uploads/<path:filename>", methods=["GET"])
        def uploaded_file(filename):
            if self.uploads_require_token:
                self.check_upload_token(filename)
            return send_from_directory(self.uploads.upload_dir, filename)

        return bp
