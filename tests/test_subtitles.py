import httpx
import pytest

from moviestream.subtitles import SubtitleError, SubtitleGenerator, build_subtitle_tracks, get_subtitle_generator


def _write(directory, *names):
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_text("WEBVTT\n", encoding="utf-8")


def test_build_tracks_missing_directory(tmp_path):
    assert build_subtitle_tracks("1", str(tmp_path / "nope")) == []


def test_build_tracks_spanish_is_default(tmp_path):
    _write(tmp_path, "5.en.vtt", "5.es.vtt", "5.pt-BR.vtt", "55.fr.vtt", "5.en.srt")
    tracks = build_subtitle_tracks("5", str(tmp_path))

    assert [t["lang"] for t in tracks] == ["en", "es", "pt-BR"]
    assert [t["default"] for t in tracks] == [False, True, False]
    assert tracks[2]["label"] == "Português (Brasil)"
    assert tracks[0]["src"] == "/subtitles/5.en.vtt"


def test_build_tracks_first_is_default_without_spanish(tmp_path):
    _write(tmp_path, "7.ko.vtt", "7.en.vtt")
    tracks = build_subtitle_tracks("7", str(tmp_path))

    assert [t["lang"] for t in tracks] == ["en", "ko"]
    assert tracks[0]["default"] is True
    assert tracks[1]["label"] == "KO"


def test_list_subtitles_endpoint(client, tmp_path):
    _write(tmp_path / "subtitles", "abc.es.vtt")
    r = client.get("/api/subtitles/abc")
    assert r.status_code == 200
    assert r.json() == {
        "movieId": "abc",
        "subtitles": [{"lang": "es", "label": "Español", "src": "/subtitles/abc.es.vtt", "default": True}],
    }
    assert client.get("/api/subtitles/other").json()["subtitles"] == []


def test_vtt_files_are_served_as_text_vtt(client, tmp_path):
    _write(tmp_path / "subtitles", "abc.es.vtt")

    r = client.get("/subtitles/abc.es.vtt")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/vtt")
    assert r.text == "WEBVTT\n"

    assert client.get("/subtitles/missing.es.vtt").status_code == 404
    assert client.get("/subtitles/notes.txt").status_code == 404


def _whisper_transport(calls):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.host == "media.example.com":
            return httpx.Response(200, content=b"\x00\x01fake-mp4")
        if request.url.path.endswith("/audio/transcriptions"):
            return httpx.Response(200, text="WEBVTT\n\n00:00.000 --> 00:01.000\nHola\n")
        if request.url.path.endswith("/audio/translations"):
            return httpx.Response(200, text="WEBVTT\n\n00:00.000 --> 00:01.000\nHello\n")
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def test_generator_writes_both_languages(tmp_path):
    calls = []
    gen = SubtitleGenerator(
        "sk-test",
        str(tmp_path / "subs"),
        str(tmp_path / "tmp"),
        http=httpx.Client(transport=_whisper_transport(calls)),
    )

    urls = gen.generate("42", "https://media.example.com/42.mp4")

    assert urls == {"es": "/subtitles/42.es.vtt", "en": "/subtitles/42.en.vtt"}
    assert "Hola" in (tmp_path / "subs" / "42.es.vtt").read_text(encoding="utf-8")
    assert "Hello" in (tmp_path / "subs" / "42.en.vtt").read_text(encoding="utf-8")
    assert calls == ["/42.mp4", "/v1/audio/transcriptions", "/v1/audio/translations"]
    # 임시 영상 파일은 정리됨
    assert list((tmp_path / "tmp").iterdir()) == []


def test_generator_failure_cleans_up(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    gen = SubtitleGenerator("sk-test", str(tmp_path / "subs"), str(tmp_path / "tmp"), http=httpx.Client(transport=transport))

    with pytest.raises(SubtitleError):
        gen.generate("42", "https://media.example.com/42.mp4")
    assert list((tmp_path / "tmp").iterdir()) == []


def test_generator_rejects_path_like_ids(tmp_path):
    gen = SubtitleGenerator("sk-test", str(tmp_path / "subs"), str(tmp_path / "tmp"))
    with pytest.raises(ValueError):
        gen.generate("../etc", "https://media.example.com/x.mp4")
    gen.close()


def test_auto_endpoint(client, app, tmp_path):
    calls = []
    gen = SubtitleGenerator(
        "sk-test",
        str(tmp_path / "subtitles"),
        str(tmp_path / "tmp"),
        http=httpx.Client(transport=_whisper_transport(calls)),
    )
    app.dependency_overrides[get_subtitle_generator] = lambda: gen

    r = client.post("/api/subtitles/auto", json={"movieId": "9", "videoUrl": "https://media.example.com/9.mp4"})
    assert r.status_code == 200
    assert r.json() == {
        "movieId": "9",
        "subtitles": [
            {"lang": "es", "label": "Español", "src": "/subtitles/9.es.vtt", "default": True},
            {"lang": "en", "label": "English", "src": "/subtitles/9.en.vtt", "default": False},
        ],
    }
    assert client.get("/subtitles/9.en.vtt").status_code == 200


def test_auto_endpoint_validation_and_config(client):
    assert client.post("/api/subtitles/auto", json={"movieId": "9"}).status_code == 400
    r = client.post("/api/subtitles/auto", json={"movieId": "9", "videoUrl": "https://media.example.com/9.mp4"})
    assert r.status_code == 503
