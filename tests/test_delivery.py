"""Тесты каталога, /video, /upload и /uploads."""

import io

import pytest
from bson import ObjectId
from werkzeug.datastructures import FileStorage

from conftest import login, register

from anistream.models import Anime
from anistream.tokens import DeliveryTokens

# ---------- каталог ----------


def test_anime_list_titles_only(client, anime_with_file):
    """Список не содержит описаний и путей к файлам."""
    r = client.get("/api/animeList")
    assert r.status_code == 200
    data = r.get_json()
    assert data == [{"_id": str(anime_with_file.id), "title": "Test Anime"}]
    assert "videoPath" not in r.get_data(as_text=True)
    assert "ep1.mp4" not in r.get_data(as_text=True)


def test_anime_list_empty(client):
    assert client.get("/api/animeList").get_json() == []


def test_anime_detail_hides_paths(client, anime_with_file):
    r = client.get(f"/api/anime/{anime_with_file.id}")
    assert r.status_code == 200
    data = r.get_json()
    assert [e["title"] for e in data["episodes"]] == ["Episode 1", "Episode 2"]
    assert "videoPath" not in r.get_data(as_text=True)


@pytest.mark.parametrize("anime_id", ["not-an-id", str(ObjectId())])
def test_anime_detail_404(client, anime_id):
    r = client.get(f"/api/anime/{anime_id}")
    assert r.status_code == 404
    assert r.get_json()["error"] == "Anime not found."


def test_anime_detail_skips_episodes_without_id(client, components):
    """Эпизод, вставленный вручную без _id, не ломает карточку аниме."""
    anime_id = components["database"].animes.insert_one(
        {
            "title": "Manual",
            "episodes": [{"title": "No id", "videoPath": "x.mp4"}, {"_id": ObjectId(), "title": "Ok"}],
        }
    ).inserted_id
    r = client.get(f"/api/anime/{anime_id}")
    assert r.status_code == 200
    assert [e["title"] for e in r.get_json()["episodes"]] == ["Ok"]
    assert client.get("/api/animeList").get_json() == [{"_id": str(anime_id), "title": "Manual"}]


def test_seed_sample_idempotent(components):
    catalog = components["catalog"]
    first = catalog.seed_sample()
    second = catalog.seed_sample()
    assert first == second
    assert [a["title"] for a in catalog.list_titles()] == ["Sample Anime"]
    _, episode = catalog.get_episode(str(first), str(catalog.get_anime(str(first)).episodes[1].id))
    assert episode.video_path == "sample_anime_episode_2.mp4"


def test_seed_sample_cli(flask_app):
    result = flask_app.test_cli_runner().invoke(args=["seed-sample"])
    assert result.exit_code == 0
    assert "Sample anime" in result.output


# ---------- /video ----------


@pytest.fixture()
def logged_in(client):
    """Клиент с активной сессией."""
    register(client)
    login(client)
    return client


def test_video_unauthenticated_always_401(client, anime_with_file):
    """Даже для существующей пары anime/episode без сессии: 401."""
    r = client.get(f"/video/{anime_with_file.id}/{anime_with_file.episodes[0].id}")
    assert r.status_code == 401


def test_video_unauthenticated_before_lookup(client):
    r = client.get(f"/video/{ObjectId()}/{ObjectId()}")
    assert r.status_code == 401


def test_video_unknown_episode_404(logged_in, anime_with_file):
    r = logged_in.get(f"/video/{anime_with_file.id}/{ObjectId()}")
    assert r.status_code == 404
    assert r.get_json()["error"] == "Episode not found."


def test_video_unknown_anime_404(logged_in):
    r = logged_in.get(f"/video/{ObjectId()}/{ObjectId()}")
    assert r.status_code == 404
    assert r.get_json()["error"] == "Anime not found."


def test_video_malformed_ids_404(logged_in, anime_with_file):
    assert logged_in.get("/video/xyz/abc").status_code == 404
    assert logged_in.get(f"/video/{anime_with_file.id}/abc").status_code == 404


def test_video_missing_file_404(logged_in, anime_with_file):
    r = logged_in.get(f"/video/{anime_with_file.id}/{anime_with_file.episodes[1].id}")
    assert r.status_code == 404
    assert r.get_json()["error"] == "Video file not found."


def test_video_path_escape_404(logged_in, components, tmp_path):
    """videoPath с выходом из директории загрузок не отдаётся."""
    (tmp_path / "secret.txt").write_text("secret")
    anime_id = components["catalog"].insert(Anime(title="Evil", description=""))
    episode = components["catalog"].add_episode(str(anime_id), "Leak", "../secret.txt")
    r = logged_in.get(f"/video/{anime_id}/{episode.id}")
    assert r.status_code == 404


def test_video_ignores_range_header(logged_in, anime_with_file):
    """Частичный контент не поддерживается: всегда весь файл."""
    r = logged_in.get(
        f"/video/{anime_with_file.id}/{anime_with_file.episodes[0].id}",
        headers={"Range": "bytes=0-3"},
    )
    assert r.status_code == 200
    assert len(r.data) > 4
    r.close()


# ---------- /upload ----------


def test_upload_requires_session(client):
    r = client.post("/upload", data={"video": (io.BytesIO(b"x"), "a.mp4")}, content_type="multipart/form-data")
    assert r.status_code == 401


def test_upload_stores_unique_name(logged_in, upload_dir):
    r = logged_in.post(
        "/upload",
        data={"video": (io.BytesIO(b"payload"), "clip.mp4")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 201
    body = r.get_json()
    assert body["episode"] is None
    stored = body["files"][0]["path"]
    assert stored.startswith("video-") and stored.endswith(".mp4")
    assert (upload_dir / stored).read_bytes() == b"payload"


def test_upload_field_name_cannot_escape_upload_dir(logged_in, upload_dir):
    """Имя multipart-поля с ../ всё равно сохраняется внутри директории загрузок."""
    r = logged_in.post(
        "/upload",
        data={"../outside/pwn": (io.BytesIO(b"owned"), "x.mp4")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 201
    stored = r.get_json()["files"][0]["path"]
    assert stored.startswith("outside_pwn-")
    assert (upload_dir / stored).read_bytes() == b"owned"
    assert not (upload_dir.parent / "outside").exists()


def test_upload_save_failure_json_500(logged_in, monkeypatch):
    def disk_full(self, dst, *a, **k):
        raise OSError("disk full")

    monkeypatch.setattr(FileStorage, "save", disk_full)
    r = logged_in.post(
        "/upload",
        data={"video": (io.BytesIO(b"x"), "a.mp4")},
        content_type="multipart/form-data",
    )
    assert r.status_code == 500
    assert r.get_json() == {"error": "Failed to save upload"}


def test_upload_no_files_400(logged_in):
    r = logged_in.post("/upload", data={}, content_type="multipart/form-data")
    assert r.status_code == 400


def test_upload_links_episode_and_serves_it(logged_in, anime_with_file):
    """Загрузка с animeId добавляет эпизод, который затем отдаётся через /video."""
    r = logged_in.post(
        "/upload",
        data={
            "video": (io.BytesIO(b"new-episode"), "ep3.mp4"),
            "animeId": str(anime_with_file.id),
            "episodeTitle": "Episode 3",
        },
        content_type="multipart/form-data",
    )
    assert r.status_code == 201
    episode = r.get_json()["episode"]
    assert episode["title"] == "Episode 3"
    assert episode["duration"] is None

    detail = logged_in.get(f"/api/anime/{anime_with_file.id}").get_json()
    assert [e["title"] for e in detail["episodes"]][-1] == "Episode 3"

    v = logged_in.get(f"/video/{anime_with_file.id}/{episode['_id']}")
    assert v.status_code == 200
    assert v.data == b"new-episode"
    v.close()


def test_upload_default_episode_title(logged_in, anime_with_file):
    r = logged_in.post(
        "/upload",
        data={"video": (io.BytesIO(b"x"), "Opening Night.mp4"), "animeId": str(anime_with_file.id)},
        content_type="multipart/form-data",
    )
    assert r.get_json()["episode"]["title"] == "Opening Night"


def test_upload_unknown_anime_404_keeps_file(logged_in, upload_dir):
    r = logged_in.post(
        "/upload",
        data={"video": (io.BytesIO(b"x"), "a.mp4"), "animeId": str(ObjectId())},
        content_type="multipart/form-data",
    )
    assert r.status_code == 404
    assert any(p.name.startswith("video-") for p in upload_dir.iterdir())


# ---------- /uploads ----------


def test_uploads_public_by_default(client, anime_with_file):
    r = client.get("/uploads/ep1.mp4")
    assert r.status_code == 200
    r.close()


def test_uploads_missing_404(client):
    assert client.get("/uploads/nothing.mp4").status_code == 404


@pytest.fixture()
def token_gated(flask_app):
    """Включает проверку токена для /uploads."""
    flask_app.extensions["anistream"]["delivery"].uploads_require_token = True
    return flask_app


def test_uploads_token_required(token_gated, logged_in, anime_with_file):  # pylint: disable=unused-argument
    anime_id = str(anime_with_file.id)
    ep1, ep2 = (str(e.id) for e in anime_with_file.episodes)

    assert logged_in.get("/uploads/ep1.mp4").status_code == 401
    assert logged_in.get("/uploads/ep1.mp4?token=garbage").status_code == 401

    video = logged_in.get(f"/video/{anime_id}/{ep1}")
    token = video.headers["x-auth-token"]
    video.close()

    r = logged_in.get(f"/uploads/ep1.mp4?token={token}")
    assert r.status_code == 200
    r.close()

    tokens = token_gated.extensions["anistream"]["delivery"].tokens
    other = tokens.mint("someone", anime_id, ep2)
    assert logged_in.get(f"/uploads/ep1.mp4?token={other}").status_code == 401


def test_uploads_token_signed_with_other_secret(token_gated, client, anime_with_file):  # pylint: disable=unused-argument
    foreign = DeliveryTokens("another-secret-that-is-long-enough-for-hs256")
    token = foreign.mint("u", str(anime_with_file.id), str(anime_with_file.episodes[0].id))
    assert client.get(f"/uploads/ep1.mp4?token={token}").status_code == 401
