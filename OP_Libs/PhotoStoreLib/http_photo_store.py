"""
REST photo store client.

Talks to the photo API:

    GET    /photos            list (plain list or paginated {"data": [...]})
    GET    /photos/{id}       metadata
    GET    /photos/{id}/raw   image bytes
    POST   /photos            multipart upload: 'photo' file + 'title'
    PUT    /photos/{id}       {"title": ...}
    DELETE /photos/{id}

Requests carry an 'Authorization: Bearer <token>' header when a token is
set. Connection problems and non-2xx responses raise PhotoStoreError;
404 raises PhotoNotFoundError.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from OP_Libs.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_PHOTO_TITLE, PHOTO_MIME_EXTENSIONS
from OP_Libs.errors import PhotoNotFoundError, PhotoStoreError
from OP_Libs.PhotoStoreLib.photo_store import (
    Photo,
    PhotoStore,
    normalize_mime_type,
    sanitize_filename,
    validate_upload,
)

logger = logging.getLogger(__name__)


class HttpPhotoStore(PhotoStore):
    """Photo store backed by the REST photo API."""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: API root, e.g. 'http://localhost:8000/api/v1'
            token: Bearer token (None for unauthenticated APIs)
            timeout: Seconds per request
            session: Optional requests session (one is created otherwise)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if token:
            self.session.headers.update({"Authorization": f"Bearer {token}"})

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, photo_id: Optional[int] = None, **kwargs: Any) -> requests.Response:
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise PhotoStoreError(f"{method} {url} failed: {e}", details={"url": url}) from e

        if response.status_code == 404 and photo_id is not None:
            raise PhotoNotFoundError(photo_id)
        if not 200 <= response.status_code < 300:
            raise PhotoStoreError(
                f"{method} {url} returned HTTP {response.status_code}",
                details={"url": url, "status": response.status_code, "body": response.text[:500]},
            )
        logger.debug(f"{method} {url} -> {response.status_code}")
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise PhotoStoreError(f"Invalid JSON from {response.url}: {e}") from e

    def fetch(self, photo_id: int) -> Photo:
        record = self._json(self._request("GET", f"photos/{photo_id}", photo_id=photo_id))
        if not isinstance(record, dict):
            raise PhotoStoreError(f"Unexpected photo record for {photo_id}")

        raw = self._request("GET", f"photos/{photo_id}/raw", photo_id=photo_id)
        photo = Photo.from_record(record, raw.content)
        content_type = raw.headers.get("Content-Type", "").split(";")[0].strip()
        if content_type.startswith("image/"):
            photo.mime_type = normalize_mime_type(content_type)
        return photo

    def upload(self, content: bytes, mime_type: str, title: str = DEFAULT_PHOTO_TITLE) -> Photo:
        width, height = validate_upload(content, mime_type)
        mime_type = normalize_mime_type(mime_type)
        title = title or DEFAULT_PHOTO_TITLE
        filename = f"{sanitize_filename(title)}{PHOTO_MIME_EXTENSIONS[mime_type]}"

        response = self._request(
            "POST",
            "photos",
            files={"photo": (filename, content, mime_type)},
            data={"title": title},
        )
        payload = self._json(response)
        record: Dict[str, Any] = payload.get("photo", payload) if isinstance(payload, dict) else {}

        photo = Photo.from_record(record, content)
        photo.mime_type = mime_type
        photo.width = photo.width or width
        photo.height = photo.height or height
        logger.info(f"Uploaded photo {photo.id} ({title!r}, {len(content)} bytes)")
        return photo

    def delete(self, photo_id: int) -> None:
        self._request("DELETE", f"photos/{photo_id}", photo_id=photo_id)
        logger.info(f"Deleted photo {photo_id}")

    def list(self) -> List[Photo]:
        payload = self._json(self._request("GET", "photos"))
        records = payload.get("data", []) if isinstance(payload, dict) else payload
        return [Photo.from_record(r) for r in records or [] if isinstance(r, dict)]

    def update_title(self, photo_id: int, title: str) -> Photo:
        payload = self._json(self._request("PUT", f"photos/{photo_id}", photo_id=photo_id, json={"title": title}))
        record = payload.get("photo", payload) if isinstance(payload, dict) else {}
        return Photo.from_record(record)
