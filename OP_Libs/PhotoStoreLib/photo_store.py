"""
Photo storage for Open Photo.

The editor treats the photo store as an opaque collaborator: it fetches
original bytes by id and uploads edited results as new photos. Nothing is
overwritten in place.

Local photos live in a Photos/ directory next to an index.json catalogue:

    {
      "next_id": 3,
      "photos": [
        {"id": 1, "title": "...", "filename": "1_beach.jpg", "mime_type": "image/jpeg",
         "size": 52311, "width": 800, "height": 600, "created_at": "2024-05-01T10:00:00"}
      ]
    }

Classes:
    Photo: Photo record (content may be empty for listings)
    PhotoStore: Interface shared by the local and HTTP stores
    LocalPhotoStore: Directory-backed store

Functions:
    validate_upload: Check mime type, size and decodability of an upload
    sanitize_filename: Make a title safe for use in a filename
"""

import io
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from OP_Libs.constants import (
    DEFAULT_PHOTO_TITLE,
    FIELD_CREATED_AT,
    FIELD_FILENAME,
    FIELD_HEIGHT,
    FIELD_MIME_TYPE,
    FIELD_NEXT_ID,
    FIELD_PHOTO_ID,
    FIELD_PHOTOS,
    FIELD_SIZE,
    FIELD_TITLE,
    FIELD_WIDTH,
    FILENAME_REPLACEMENT_CHAR,
    PHOTO_INDEX_FILE,
    PHOTO_MAX_BYTES,
    PHOTO_MIME_EXTENSIONS,
    PHOTOS_DIR_NAME,
    SAFE_FILENAME_CHARS,
)
from OP_Libs.errors import PhotoNotFoundError, PhotoStoreError

logger = logging.getLogger(__name__)


@dataclass
class Photo:
    """A stored photo.

    Attributes:
        id: Numeric id assigned by the store
        content: Encoded image bytes (empty in listings)
        mime_type: e.g. 'image/jpeg'
        title: Human-readable title
        width, height: Pixel dimensions (0 when unknown)
        created_at: ISO timestamp
    """
    id: int
    content: bytes = b""
    mime_type: str = "image/jpeg"
    title: str = ""
    width: int = 0
    height: int = 0
    created_at: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    def metadata(self) -> Dict[str, Any]:
        """Record without the content bytes."""
        data = asdict(self)
        data.pop("content")
        return data

    @classmethod
    def from_record(cls, record: Dict[str, Any], content: bytes = b"") -> "Photo":
        """Create from a catalogue or API record."""
        return cls(
            id=int(record.get(FIELD_PHOTO_ID, 0)),
            content=content,
            mime_type=str(record.get(FIELD_MIME_TYPE) or "image/jpeg"),
            title=str(record.get(FIELD_TITLE) or ""),
            width=int(record.get(FIELD_WIDTH) or 0),
            height=int(record.get(FIELD_HEIGHT) or 0),
            created_at=str(record.get(FIELD_CREATED_AT) or ""),
        )


def sanitize_filename(title: str) -> str:
    """Keep alphanumerics and safe characters; fall back to the default title."""
    safe_name = "".join(
        c if c.isalnum() or c in SAFE_FILENAME_CHARS else FILENAME_REPLACEMENT_CHAR
        for c in title
    ).strip(FILENAME_REPLACEMENT_CHAR)
    return safe_name or DEFAULT_PHOTO_TITLE


def normalize_mime_type(mime_type: str) -> str:
    mime_type = str(mime_type or "").lower().strip()
    return "image/jpeg" if mime_type == "image/jpg" else mime_type


def validate_upload(content: bytes, mime_type: str) -> Tuple[int, int]:
    """
    Validate an upload the way the photo API does.

    Args:
        content: Encoded image bytes
        mime_type: Declared mime type

    Returns:
        (width, height) of the image

    Raises:
        PhotoStoreError: If the type is not jpeg/png/gif, the content is
                         empty or larger than 10 MB, or not a readable image
    """
    mime_type = normalize_mime_type(mime_type)
    if mime_type not in PHOTO_MIME_EXTENSIONS:
        raise PhotoStoreError(
            f"Unsupported photo type: {mime_type}. "
            f"Accepted types: {', '.join(PHOTO_MIME_EXTENSIONS)}",
            details={"mime_type": mime_type},
        )
    if not content:
        raise PhotoStoreError("Photo content is empty")
    if len(content) > PHOTO_MAX_BYTES:
        raise PhotoStoreError(
            f"Photo is {len(content)} bytes; the limit is {PHOTO_MAX_BYTES}",
            details={"size": len(content), "limit": PHOTO_MAX_BYTES},
        )

    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise PhotoStoreError(f"Photo content is not a readable image: {e}") from e


class PhotoStore:
    """Interface for photo stores."""

    def fetch(self, photo_id: int) -> Photo:
        """Return the photo with its content. Raises PhotoNotFoundError."""
        raise NotImplementedError

    def upload(self, content: bytes, mime_type: str, title: str = DEFAULT_PHOTO_TITLE) -> Photo:
        """Store content as a new photo and return its record."""
        raise NotImplementedError

    def delete(self, photo_id: int) -> None:
        """Remove a photo. Raises PhotoNotFoundError."""
        raise NotImplementedError

    def list(self) -> List[Photo]:
        """All photos, newest first, without content."""
        raise NotImplementedError

    def update_title(self, photo_id: int, title: str) -> Photo:
        """Rename a photo (metadata only)."""
        raise NotImplementedError


class LocalPhotoStore(PhotoStore):
    """Photo store backed by a Photos/ directory."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.photos_dir = self.base_dir / PHOTOS_DIR_NAME
        self.photos_dir.mkdir(parents=True, exist_ok=True)
        self.index_path = self.photos_dir / PHOTO_INDEX_FILE

    def _load_index(self) -> Dict[str, Any]:
        if not self.index_path.exists():
            return {FIELD_NEXT_ID: 1, FIELD_PHOTOS: []}

        try:
            payload = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            raise PhotoStoreError(f"Cannot read photo index {self.index_path}: {e}") from e

        if not isinstance(payload, dict):
            raise PhotoStoreError(f"Photo index {self.index_path} must contain a JSON object")

        photos = [p for p in payload.get(FIELD_PHOTOS, []) if isinstance(p, dict)]
        highest = max((int(p.get(FIELD_PHOTO_ID, 0)) for p in photos), default=0)
        payload[FIELD_PHOTOS] = photos
        payload[FIELD_NEXT_ID] = max(int(payload.get(FIELD_NEXT_ID) or 1), highest + 1)
        return payload

    def _save_index(self, payload: Dict[str, Any]) -> None:
        self.index_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _find(self, payload: Dict[str, Any], photo_id: int) -> Optional[Dict[str, Any]]:
        for record in payload[FIELD_PHOTOS]:
            if int(record.get(FIELD_PHOTO_ID, 0)) == int(photo_id):
                return record
        return None

    def fetch(self, photo_id: int) -> Photo:
        payload = self._load_index()
        record = self._find(payload, photo_id)
        if record is None:
            raise PhotoNotFoundError(photo_id)

        path = self.photos_dir / str(record.get(FIELD_FILENAME, ""))
        try:
            content = path.read_bytes()
        except OSError as e:
            raise PhotoStoreError(f"Cannot read photo {photo_id} from {path}: {e}") from e
        return Photo.from_record(record, content)

    def upload(self, content: bytes, mime_type: str, title: str = DEFAULT_PHOTO_TITLE) -> Photo:
        width, height = validate_upload(content, mime_type)
        mime_type = normalize_mime_type(mime_type)

        payload = self._load_index()
        photo_id = payload[FIELD_NEXT_ID]
        title = title or DEFAULT_PHOTO_TITLE
        filename = f"{photo_id}_{sanitize_filename(title)}{PHOTO_MIME_EXTENSIONS[mime_type]}"

        (self.photos_dir / filename).write_bytes(content)

        record = {
            FIELD_PHOTO_ID: photo_id,
            FIELD_TITLE: title,
            FIELD_FILENAME: filename,
            FIELD_MIME_TYPE: mime_type,
            FIELD_SIZE: len(content),
            FIELD_WIDTH: width,
            FIELD_HEIGHT: height,
            FIELD_CREATED_AT: datetime.now().isoformat(timespec="seconds"),
        }
        payload[FIELD_PHOTOS].append(record)
        payload[FIELD_NEXT_ID] = photo_id + 1
        self._save_index(payload)

        logger.info(f"Stored photo {photo_id} ({title!r}, {len(content)} bytes) in {self.photos_dir}")
        return Photo.from_record(record, content)

    def delete(self, photo_id: int) -> None:
        payload = self._load_index()
        record = self._find(payload, photo_id)
        if record is None:
            raise PhotoNotFoundError(photo_id)

        payload[FIELD_PHOTOS].remove(record)
        self._save_index(payload)

        path = self.photos_dir / str(record.get(FIELD_FILENAME, ""))
        if path.is_file():
            path.unlink()
        logger.info(f"Deleted photo {photo_id}")

    def list(self) -> List[Photo]:
        payload = self._load_index()
        photos = [Photo.from_record(record) for record in payload[FIELD_PHOTOS]]
        return sorted(photos, key=lambda p: (p.created_at, p.id), reverse=True)

    def update_title(self, photo_id: int, title: str) -> Photo:
        payload = self._load_index()
        record = self._find(payload, photo_id)
        if record is None:
            raise PhotoNotFoundError(photo_id)

        record[FIELD_TITLE] = title
        self._save_index(payload)
        return Photo.from_record(record)
