"""Document storage for wizard uploads.

Wizard code only sees the DocumentStore protocol:

    store(file, folder, visibility)       -> storage path
    delete(path, visibility)              -> True if a file was removed
    url(path, visibility, ttl_seconds)    -> link, or None if missing

LocalDocumentStore keeps files on disk under

    {storage_root}/{visibility}/{folder}/{uuid}_{filename}

and returns the path relative to the visibility root, e.g.
`tenant-profiles/id_document_front/3f2c..._passport.pdf`. Public files
are linked directly; private files get a signed link that expires.

An upload is any object with `filename` and `size`, plus either
`content` bytes (UploadedDocument) or a readable `file` (FastAPI's
UploadFile).
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from rentflow.auth.jwt import create_document_token
from rentflow.config import settings

logger = logging.getLogger(__name__)


class Visibility(str, enum.Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class DocumentStore(Protocol):
    def store(self, file: Any, folder: str, visibility: Visibility) -> str: ...

    def delete(self, path: str, visibility: Visibility) -> bool: ...

    def url(
        self, path: str, visibility: Visibility, ttl_seconds: int | None = None
    ) -> str | None: ...


@dataclass
class UploadedDocument:
    """An in-memory upload, used by the CLI and tests."""

    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)


def is_upload(value: Any) -> bool:
    return bool(getattr(value, "filename", None)) and hasattr(value, "size")


def read_upload(file: Any) -> bytes:
    content = getattr(file, "content", None)
    if isinstance(content, bytes):
        return content
    handle = file.file
    handle.seek(0)
    return handle.read()


def content_type_of(file: Any) -> str | None:
    return getattr(file, "content_type", None)


class LocalDocumentStore:
    """Filesystem-backed DocumentStore."""

    def __init__(self, storage_root: str | Path | None = None):
        self._storage_root = Path(storage_root or settings.storage_root)
        for visibility in Visibility:
            (self._storage_root / visibility.value).mkdir(parents=True, exist_ok=True)

    @property
    def storage_root(self) -> Path:
        return self._storage_root

    @staticmethod
    def _sanitise_filename(filename: str) -> str:
        safe = filename.replace("/", "_").replace("\\", "_").replace("..", "_")
        safe = safe.strip().strip(".")
        return safe or "document"

    def resolve(self, path: str, visibility: Visibility) -> Path:
        """Absolute location of `path`; rejects paths escaping the root."""
        base = (self._storage_root / Visibility(visibility).value).resolve()
        target = (base / path).resolve()
        if base not in target.parents:
            raise ValueError(f"Storage path escapes {visibility} root: {path}")
        return target

    def store(self, file: Any, folder: str, visibility: Visibility) -> str:
        name = f"{uuid.uuid4().hex}_{self._sanitise_filename(file.filename)}"
        relative = f"{folder.strip('/')}/{name}"
        target = self.resolve(relative, visibility)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(read_upload(file))
        logger.info("Stored %s document %s (%s bytes)", Visibility(visibility).value, relative, file.size)
        return relative

    def delete(self, path: str, visibility: Visibility) -> bool:
        target = self.resolve(path, visibility)
        if not target.is_file():
            return False
        target.unlink()
        logger.info("Deleted %s document %s", Visibility(visibility).value, path)
        return True

    def exists(self, path: str, visibility: Visibility) -> bool:
        try:
            return self.resolve(path, visibility).is_file()
        except ValueError:
            return False

    def url(
        self, path: str, visibility: Visibility, ttl_seconds: int | None = None
    ) -> str | None:
        if not self.exists(path, visibility):
            return None
        base = settings.public_base_url.rstrip("/")
        if Visibility(visibility) is Visibility.PUBLIC:
            return f"{base}/storage/{path}"
        token = create_document_token(
            path, Visibility.PRIVATE.value, ttl_seconds or settings.document_url_ttl_seconds
        )
        return f"{base}/api/documents/{token}"


# ── Singleton ───────────────────────────────────────────────

_store_instance: LocalDocumentStore | None = None


def get_document_store() -> DocumentStore:
    """FastAPI dependency returning the process-wide store."""
    global _store_instance
    if _store_instance is None:
        _store_instance = LocalDocumentStore()
    return _store_instance
