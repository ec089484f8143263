"""Flask-приложение anistream: регистрация/логин, каталог аниме и выдача видео только залогиненным."""

import atexit

from flask_compress import Compress
from pymongo.errors import PyMongoError
from werkzeug.middleware.proxy_fix import ProxyFix
from flask import Flask, Blueprint, jsonify, url_for, redirect, render_template

from app_version import __version__

from logger.logger import app_logger

from anistream.db import Database
from anistream.auth import AuthService, SessionStore
from anistream.users import UserStore
from anistream.errors import register_error_handlers
from anistream.limits import RateLimiter
from anistream.tokens import DeliveryTokens
from anistream.catalog import CatalogStore
from anistream.uploads import UploadHandler
from anistream.delivery import DeliveryService
from anistream.settings import Settings


def _pages_blueprint(auth: AuthService) -> Blueprint:
    """HTML-страницы: главная (формы входа/регистрации) и дашборд (каталог + плеер)."""
    bp = Blueprint("pages", __name__)

    @bp.route("/")
    def index():
        return render_template("index.html", version=__version__)

    @bp.route("/dashboard")
    def dashboard():
        user = auth.current_user()
        if user is None:
            return redirect(url_for("pages.index"))
        return render_template("dashboard.html", username=user.username, version=__version__)

    return bp


def create_app(settings: Settings | None = None, mongo_client=None) -> Flask:
    """
    Собирает приложение из явного объекта настроек.
    :param settings: Settings; по умолчанию Settings.from_env()
    :param mongo_client: готовый MongoClient (например, mongomock в тестах)
    """
    settings = settings or Settings.from_env()

    app = Flask(__name__)
    Compress(app)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)
    app.secret_key = settings.secret_key
    app.config["MAX_CONTENT_LENGTH"] = settings.max_content_length

    # ---- Components ----
    database = Database(settings.mongo_uri, client=mongo_client)
    try:
        database.ensure_indexes()
    except PyMongoError as err:
        app_logger.warning("Could not ensure indexes (database unreachable?): %s", err)
    atexit.register(database.close)

    users = UserStore(database)
    catalog = CatalogStore(database)
    limiter = RateLimiter(settings.rate_limit_window_sec, settings.rate_limit_max_requests)
    auth = AuthService(users, SessionStore(settings.session_ttl_sec), limiter)
    delivery = DeliveryService(
        catalog,
        auth,
        DeliveryTokens(settings.token_secret, settings.token_ttl_sec),
        UploadHandler(settings.upload_path),
        uploads_require_token=settings.uploads_require_token,
    )
    app.extensions["anistream"] = {
        "settings": settings,
        "database": database,
        "users": users,
        "catalog": catalog,
        "auth": auth,
        "delivery": delivery,
        "limiter": limiter,
    }

    # ---- Routes / errors ----
    app.register_blueprint(_pages_blueprint(auth))
    app.register_blueprint(auth.blueprint())
    app.register_blueprint(delivery.blueprint())
    register_error_handlers(app, settings.max_content_length)

    @app.route("/healthz", methods=["GET"])
    def healthz():
        """Healthcheck: версия, директория загрузок и имя БД."""
        return (
            jsonify(
                {
                    "status": "ok",
                    "version": __version__,
                    "upload_dir": settings.upload_path,
                    "database": database.name,
                }
            ),
            200,
        )

    @app.cli.command("seed-sample")
    def seed_sample_command():
        """Создаёт демо-аниме с двумя эпизодами."""
        oid = catalog.seed_sample()
        if oid is None:
            raise SystemExit(1)
        print(f"Sample anime: {oid}")

    if settings.seed_sample:
        catalog.seed_sample()

    return app


if __name__ == "__main__":
    _settings = Settings.from_env()
    app_logger.info("Starting anistream %s on http://localhost:%d", __version__, _settings.port)
    create_app(_settings).run(host="0.0.0.0", port=_settings.port, debug=True)
