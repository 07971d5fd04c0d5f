"""Storage for uploaded payment receipts.

The booking core only needs ``store`` (bytes in, reference URL out) and
``delete``; ``LocalBlobStore`` keeps files on disk under the configured
upload directory and hands back URLs under ``/uploads/payment-slips``.
"""

import logging
import os
import time
import uuid
from typing import Optional, Protocol

from backend.app.core.errors import StorageError
from backend.app.core.settings import get_settings

logger = logging.getLogger(__name__)

EXTENSIONS_BY_MIME = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/pdf": "pdf",
}


class BlobStore(Protocol):
    def store(self, data: bytes, mime_type: str, name_hint: str = "evidence") -> str:
        ...

    def delete(self, url: str) -> None:
        ...


class LocalBlobStore:
    def __init__(self, root_dir: str, url_prefix: str = "/uploads/payment-slips"):
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip("/")

    def _filename(self, mime_type: str, name_hint: str) -> str:
        extension = EXTENSIONS_BY_MIME.get(mime_type, "bin")
        timestamp = int(time.time() * 1000)
        return f"{name_hint}_{timestamp}_{uuid.uuid4().hex[:8]}.{extension}"

    def _path_for(self, url: str) -> Optional[str]:
        if not url.startswith(self.url_prefix + "/"):
            return None
        name = url[len(self.url_prefix) + 1 :]
        if not name or "/" in name or name in (".", ".."):
            return None
        return os.path.join(self.root_dir, name)

    def store(self, data: bytes, mime_type: str, name_hint: str = "evidence") -> str:
        filename = self._filename(mime_type, name_hint)
        path = os.path.join(self.root_dir, filename)
        try:
            os.makedirs(self.root_dir, exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(data)
        except OSError as exc:
            logger.error("Failed to save payment slip: %s", exc)
            raise StorageError("Failed to save payment slip") from exc
        return f"{self.url_prefix}/{filename}"

    def delete(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            raise StorageError("Unknown evidence reference", url=url)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError("Failed to delete payment slip", url=url) from exc


def get_blob_store() -> BlobStore:
    settings = get_settings()
    return LocalBlobStore(settings.upload_dir, settings.upload_url_prefix)
