"""Tests for the PhotoPrism REST client."""

from __future__ import annotations

import json
from typing import Any, Callable, List, Optional

import pytest
import requests

from picturedb.sync import AuthenticationError, PhotoPrismClient, PhotoPrismError

BASE = "https://photos.example"


def _response(
    status: int = 200,
    payload: Any = None,
    *,
    headers: Optional[dict[str, str]] = None,
    url: str = BASE,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.url = url
    response._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    response.headers.update(headers or {})
    return response


class _FakeSession(requests.Session):
    """Session answering from a queue of canned responses."""

    def __init__(self, *responses: requests.Response | Callable[[], requests.Response]) -> None:
        super().__init__()
        self.queue = list(responses)
        self.calls: List[dict[str, Any]] = []

    def request(  # type: ignore[override]
        self, method: str, url: str, **kwargs: Any
    ) -> requests.Response:
        self.calls.append({"method": method, "url": url, **kwargs})
        item = self.queue.pop(0)
        return item() if callable(item) else item


def _client(*responses: Any, **kwargs: Any) -> tuple[PhotoPrismClient, _FakeSession]:
    session = _FakeSession(*responses)
    return PhotoPrismClient(f"{BASE}/", session=session, **kwargs), session


def test_authenticate_sets_session_headers() -> None:
    client, session = _client(_response(payload={"id": "sess-1", "access_token": "tok-1"}))

    client.authenticate("admin", "secret")

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{BASE}/api/v1/session"
    assert call["json"] == {"username": "admin", "password": "secret"}
    assert session.headers["X-Session-ID"] == "tok-1"
    assert session.headers["Authorization"] == "Bearer tok-1"


def test_authenticate_falls_back_to_session_header() -> None:
    client, session = _client(_response(payload={}, headers={"X-Session-ID": "hdr-1"}))

    client.authenticate("admin", "secret")

    assert session.headers["X-Session-ID"] == "hdr-1"


def test_authenticate_rejected_credentials() -> None:
    client, _ = _client(_response(401, {"error": "Invalid credentials"}))

    with pytest.raises(AuthenticationError):
        client.authenticate("admin", "wrong")


def test_authenticate_without_token_fails() -> None:
    client, _ = _client(_response(payload={"config": {}}))

    with pytest.raises(AuthenticationError, match="no session token"):
        client.authenticate("admin", "secret")


def test_list_albums_follows_pagination() -> None:
    client, session = _client(
        _response(payload=[{"UID": "a1", "Title": "One"}, {"UID": "a2", "Title": "Two"}]),
        _response(payload=[{"UID": "a3", "Title": "Three"}]),
        album_page_size=2,
    )

    albums = client.list_albums()

    assert [album.title for album in albums] == ["One", "Two", "Three"]
    assert [call["params"]["offset"] for call in session.calls] == [0, 2]


def test_create_album_posts_title() -> None:
    client, session = _client(_response(payload={"UID": "new", "Title": "Trip"}))

    album = client.create_album("Trip")

    assert album.uid == "new"
    assert session.calls[0]["json"] == {"Title": "Trip"}


def test_list_photos_requests_album_members() -> None:
    client, session = _client(
        _response(payload=[{"UID": "p1", "Path": "2024", "Name": "a.jpg", "Type": "image"}])
    )

    photos = client.list_photos("a1", 1000)

    assert photos[0].uid == "p1"
    assert photos[0].display_name == "2024/a.jpg"
    assert session.calls[0]["params"] == {"album": "a1", "count": 1000, "offset": 0}


def test_find_photos_by_filename_builds_wildcard_query() -> None:
    client, session = _client(_response(payload=[]))

    assert client.find_photos_by_filename("2024/a.jpg") == []
    assert session.calls[0]["params"] == {"q": 'filename:"*2024/a.jpg*"', "count": 1}


def test_add_and_remove_photos_send_uid_batches() -> None:
    client, session = _client(_response(payload={}), _response())

    client.add_photos("a1", ["p1", "p2"])
    client.remove_photos("a1", ["p3"])

    assert [(call["method"], call["url"], call["json"]) for call in session.calls] == [
        ("POST", f"{BASE}/api/v1/albums/a1/photos", {"photos": ["p1", "p2"]}),
        ("DELETE", f"{BASE}/api/v1/albums/a1/photos", {"photos": ["p3"]}),
    ]


def test_http_errors_raise_photoprism_error() -> None:
    client, _ = _client(_response(500, {"error": "boom"}))

    with pytest.raises(PhotoPrismError, match="500"):
        client.list_albums()


def test_connection_errors_raise_photoprism_error() -> None:
    def _refuse() -> requests.Response:
        raise requests.ConnectionError("connection refused")

    client, _ = _client(_refuse)

    with pytest.raises(PhotoPrismError, match="connection refused"):
        client.create_album("Trip")


def test_unexpected_payload_raises_photoprism_error() -> None:
    client, _ = _client(_response(payload=[{"Title": "no uid"}]))

    with pytest.raises(PhotoPrismError):
        client.list_photos("a1", 10)


def test_requests_use_configured_timeout() -> None:
    client, session = _client(_response(payload=[]), timeout=5.0)

    client.list_photos("a1", 10)

    assert session.calls[0]["timeout"] == 5.0
