import httpx
import pytest
from fastapi.testclient import TestClient

from moviestream.config import Settings
from moviestream.mailer import get_mailer
from moviestream.main import create_app
from moviestream.pexels import PEXELS_BASE, PexelsClient, get_pexels

PASSWORD = "Secret123!"


class FakeMailer:
    configured = True

    def __init__(self):
        self.sent = []

    def send_recovery_email(self, email, token):
        self.sent.append((email, token))


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        subtitles_dir=str(tmp_path / "subtitles"),
        tmp_dir=str(tmp_path / "tmp"),
        log_level="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(client):
    session = client.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer(app):
    fake = FakeMailer()
    app.dependency_overrides[get_mailer] = lambda: fake
    return fake


class MockPexels:
    """
    Pexels 응답을 흉내내는 MockTransport.
    routes[path] = (status, json) 으로 응답을 지정하고, calls 로 요청을 확인합니다.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        status, payload = self.routes.get(request.url.path, (404, {"error": "not found"}))
        return httpx.Response(status, json=payload)


@pytest.fixture
def pexels_mock(app):
    mock = MockPexels()
    client = PexelsClient(
        "test-key",
        http=httpx.Client(base_url=PEXELS_BASE, transport=httpx.MockTransport(mock.handler)),
    )
    app.dependency_overrides[get_pexels] = lambda: client
    return mock


def make_user(client, email="ana@example.com", password=PASSWORD, **extra):
    body = {
        "firstName": "Ana",
        "lastName": "García",
        "age": 30,
        "email": email,
        "password": password,
    }
    body.update(extra)
    r = client.post("/api/users", json=body)
    assert r.status_code == 201, r.text
    return r.json()["user"]


def make_movie(client, title="The Matrix", video_url="https://cdn.example.com/matrix.mp4"):
    r = client.post(
        "/api/movies",
        json={
            "title": title,
            "genre": "Sci-Fi",
            "author": "Wachowski",
            "videoUrl": video_url,
            "image": "https://cdn.example.com/matrix.jpg",
        },
    )
    assert r.status_code == 201, r.text
    return r.json()
