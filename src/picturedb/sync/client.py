"""Minimal PhotoPrism REST client covering album membership."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from .errors import AuthenticationError, PhotoPrismError
from .models import Album, Photo

LOGGER = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class PhotoPrismClient:
    """Talk to the ``/api/v1`` endpoints of a PhotoPrism server.

    Every failed request raises ``PhotoPrismError``; nothing is retried.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 30.0,
        album_page_size: int = 500,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the client.

        Args:
            url: Base URL of the PhotoPrism instance, e.g. ``https://photos.example``.
            timeout: Seconds to wait for each HTTP response.
            album_page_size: Number of albums requested per page when listing.
            session: Optional pre-configured ``requests`` session.
        """
        self.base_url = url.rstrip("/")
        self.timeout = timeout
        self.album_page_size = album_page_size
        self._session = session or requests.Session()

    def authenticate(self, username: str, password: str) -> None:
        """Open a session and attach its token to subsequent requests.

        Raises:
            AuthenticationError: If the server rejects the credentials or
                returns no session token.
        """
        try:
            response = self._request(
                "POST", "session", json={"username": username, "password": password}
            )
        except PhotoPrismError as exc:
            raise AuthenticationError(f"PhotoPrism login failed: {exc}") from exc

        payload = self._json(response, "session")
        if not isinstance(payload, dict):
            payload = {}
        token = (
            payload.get("access_token")
            or payload.get("id")
            or response.headers.get("X-Session-ID")
        )
        if not token:
            raise AuthenticationError("PhotoPrism login returned no session token.")
        self._session.headers["X-Session-ID"] = token
        self._session.headers["Authorization"] = f"Bearer {token}"
        LOGGER.debug("opened PhotoPrism session on %s", self.base_url)

    def list_albums(self) -> List[Album]:
        """Return every album on the server, following offset pagination."""
        albums: List[Album] = []
        offset = 0
        while True:
            response = self._request(
                "GET", "albums", params={"count": self.album_page_size, "offset": offset}
            )
            page = self._json(response, "albums") or []
            albums.extend(_parse(Album, item) for item in page)
            if len(page) < self.album_page_size:
                return albums
            offset += len(page)

    def create_album(self, title: str) -> Album:
        response = self._request("POST", "albums", json={"Title": title})
        return _parse(Album, self._json(response, "albums"))

    def list_photos(self, album_uid: str, count: int) -> List[Photo]:
        """Return up to ``count`` members of an album."""
        response = self._request(
            "GET", "photos", params={"album": album_uid, "count": count, "offset": 0}
        )
        return [_parse(Photo, item) for item in self._json(response, "photos") or []]

    def find_photos_by_filename(self, substring: str, count: int = 1) -> List[Photo]:
        """Return photos whose file name contains ``substring``."""
        query = f'filename:"*{substring}*"'
        response = self._request("GET", "photos", params={"q": query, "count": count})
        return [_parse(Photo, item) for item in self._json(response, "photos") or []]

    def add_photos(self, album_uid: str, photo_uids: Iterable[str]) -> None:
        self._request("POST", f"albums/{album_uid}/photos", json={"photos": list(photo_uids)})

    def remove_photos(self, album_uid: str, photo_uids: Iterable[str]) -> None:
        self._request("DELETE", f"albums/{album_uid}/photos", json={"photos": list(photo_uids)})

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}/api/v1/{endpoint}"
        LOGGER.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise PhotoPrismError(f"{method} {url} failed: {exc}") from exc
        return response

    @staticmethod
    def _json(response: requests.Response, endpoint: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise PhotoPrismError(f"Invalid JSON from PhotoPrism {endpoint}: {exc}") from exc


def _parse(model: Type[_ModelT], payload: Any) -> _ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise PhotoPrismError(
            f"Unexpected {model.__name__} payload from PhotoPrism: {exc}"
        ) from exc


__all__ = ["PhotoPrismClient"]
