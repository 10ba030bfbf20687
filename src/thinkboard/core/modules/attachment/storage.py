"""Blob storage for attachment files."""

import asyncio
import mimetypes
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from thinkboard.errors import BlobNotFoundError, BlobStoreError


class BlobStore(Protocol):
    async def put(self, data: bytes, content_type: str, extension: str = "") -> str:
        """Store bytes and return the opaque path under which they can be read back."""
        ...

    async def get(self, path: str) -> bytes:
        """Raises BlobNotFoundError if the path does not exist."""
        ...

    async def delete(self, path: str) -> None:
        """Remove a blob. A missing blob is not an error."""
        ...


class LocalBlobStore:
    """Blobs stored as files under a root directory, fanned out by name prefix."""

    def __init__(self, root_dir: str | Path) -> None:
        self._root = Path(root_dir)

    def _resolve(self, path: str) -> Path:
        root = self._root.resolve()
        file_path = (root / path).resolve()
        if not file_path.is_relative_to(root):
            raise BlobNotFoundError(f"Blob path outside storage root: {path}")
        return file_path

    async def put(self, data: bytes, content_type: str, extension: str = "") -> str:
        name = f"{uuid4().hex}{extension or mimetypes.guess_extension(content_type) or ''}"
        path = f"{name[:2]}/{name}"
        file_path = self._resolve(path)

        def write() -> None:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(data)

        try:
            await asyncio.to_thread(write)
        except OSError as e:
            raise BlobStoreError(f"Failed to write blob {path}: {e}") from e
        return path

    async def get(self, path: str) -> bytes:
        file_path = self._resolve(path)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"Blob not found: {path}") from e
        except OSError as e:
            raise BlobStoreError(f"Failed to read blob {path}: {e}") from e

    async def delete(self, path: str) -> None:
        file_path = self._resolve(path)
        try:
            await asyncio.to_thread(file_path.unlink, missing_ok=True)
        except OSError as e:
            raise BlobStoreError(f"Failed to delete blob {path}: {e}") from e
