from conftest import make_movie


def test_create_movie_starts_with_zero_rating(client):
    movie = make_movie(client)
    assert movie["rating"] == 0
    assert movie["comments"] == []
    assert movie["videoUrl"] == "https://cdn.example.com/matrix.mp4"


def test_create_movie_requires_fields(client):
    r = client.post("/api/movies", json={"title": "No media"})
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Invalid request"
    assert "videoUrl" in body["error"] or "video_url" in body["error"]


def test_list_movies_search_is_case_insensitive_partial(client):
    make_movie(client, title="Spider-Man", video_url="https://cdn.example.com/1.mp4")
    make_movie(client, title="Batman Begins", video_url="https://cdn.example.com/2.mp4")
    make_movie(client, title="Amélie", video_url="https://cdn.example.com/3.mp4")

    titles = [m["title"] for m in client.get("/api/movies", params={"search": "MAN"}).json()]
    assert titles == ["Spider-Man", "Batman Begins"]

    assert len(client.get("/api/movies").json()) == 3
    assert len(client.get("/api/movies", params={"search": "   "}).json()) == 3


def test_get_update_delete_movie(client):
    movie = make_movie(client)

    r = client.get(f"/api/movies/{movie['id']}")
    assert r.status_code == 200
    assert r.json()["subtitles"] == []

    r = client.put(f"/api/movies/{movie['id']}", json={"genre": "Action"})
    assert r.status_code == 200
    assert r.json()["genre"] == "Action"
    assert r.json()["title"] == "The Matrix"

    r = client.delete(f"/api/movies/{movie['id']}")
    assert r.json() == {"message": "Deleted", "id": movie["id"]}
    assert client.get(f"/api/movies/{movie['id']}").status_code == 404


def test_movie_not_found(client):
    assert client.get("/api/movies/999").json() == {"message": "Movie not found"}
    assert client.put("/api/movies/999", json={"title": "x"}).status_code == 404
    assert client.delete("/api/movies/999").status_code == 404


def test_comment_rating_scenario(client):
    movie = make_movie(client)
    assert movie["rating"] == 0

    r = client.post(f"/api/movies/{movie['id']}/comments", json={"user": "a", "text": "good", "rating": 5})
    assert r.status_code == 201
    assert r.json()["rating"] == 5.0

    r = client.post(f"/api/movies/{movie['id']}/comments", json={"user": "b", "text": "ok", "rating": 3})
    assert r.json()["rating"] == 4.0
    first_id = r.json()["comments"][0]["id"]

    r = client.delete(f"/api/movies/{movie['id']}/comments/{first_id}")
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Comment deleted"
    assert body["movie"]["rating"] == 3.0
    assert [c["user"] for c in body["movie"]["comments"]] == ["b"]

    # 이미 삭제된 댓글은 404
    r = client.delete(f"/api/movies/{movie['id']}/comments/{first_id}")
    assert r.status_code == 404
    assert r.json() == {"message": "Comment not found"}


def test_last_comment_removed_resets_rating(client):
    movie = make_movie(client)
    r = client.post(f"/api/movies/{movie['id']}/comments", json={"user": "a", "text": "meh", "rating": 2})
    comment_id = r.json()["comments"][0]["id"]

    r = client.delete(f"/api/movies/{movie['id']}/comments/{comment_id}")
    assert r.json()["movie"]["rating"] == 0
    assert r.json()["movie"]["comments"] == []


def test_comment_rating_is_clamped_not_rejected(client):
    movie = make_movie(client)
    url = f"/api/movies/{movie['id']}/comments"

    low = client.post(url, json={"user": "a", "text": "x", "rating": 0})
    assert low.status_code == 201
    assert low.json()["comments"][-1]["rating"] == 1

    high = client.post(url, json={"user": "b", "text": "y", "rating": 7})
    assert high.json()["comments"][-1]["rating"] == 5

    junk = client.post(url, json={"user": "c", "text": "z", "rating": "lots"})
    assert junk.json()["comments"][-1]["rating"] == 3

    default = client.post(url, json={"user": "d", "text": "w"})
    assert default.json()["comments"][-1]["rating"] == 3
    assert default.json()["rating"] == round((1 + 5 + 3 + 3) / 4, 2)


def test_comment_requires_user_and_text(client):
    movie = make_movie(client)
    url = f"/api/movies/{movie['id']}/comments"

    assert client.post(url, json={"text": "no author"}).status_code == 400
    assert client.post(url, json={"user": "a", "text": "   "}).status_code == 400


def test_comment_on_missing_movie(client):
    r = client.post("/api/movies/999/comments", json={"user": "a", "text": "hi"})
    assert r.status_code == 404
    assert client.delete("/api/movies/999/comments/1").status_code == 404


def test_movie_detail_lists_subtitle_tracks(client, tmp_path):
    movie = make_movie(client)
    subs = tmp_path / "subtitles"
    subs.mkdir()
    (subs / f"{movie['id']}.en.vtt").write_text("WEBVTT\n", encoding="utf-8")
    (subs / f"{movie['id']}.es.vtt").write_text("WEBVTT\n", encoding="utf-8")
    (subs / f"{movie['id']}99.es.vtt").write_text("WEBVTT\n", encoding="utf-8")

    tracks = client.get(f"/api/movies/{movie['id']}").json()["subtitles"]
    assert [t["lang"] for t in tracks] == ["en", "es"]
    assert [t["default"] for t in tracks] == [False, True]
    assert tracks[1]["label"] == "Español"
    assert tracks[1]["src"] == f"/subtitles/{movie['id']}.es.vtt"


def test_huge_comment_rating_is_clamped(client):
    movie = make_movie(client)
    huge = int("9" * 400)

    r = client.post(f"/api/movies/{movie['id']}/comments", json={"user": "a", "text": "t", "rating": huge})
    assert r.status_code == 201
    assert r.json()["comments"][-1]["rating"] == 5
    assert r.json()["rating"] == 5.0


def test_ids_beyond_integer_range_are_rejected(client):
    big = 10 ** 20
    assert client.get(f"/api/movies/{big}").status_code == 400
    assert client.put(f"/api/movies/{big}", json={"title": "x"}).status_code == 400
    assert client.delete(f"/api/movies/{big}").status_code == 400
    r = client.delete(f"/api/movies/1/comments/{big}")
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid request"
