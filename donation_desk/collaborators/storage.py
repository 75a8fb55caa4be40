import asyncio
from pathlib import Path
from typing import Optional

from donation_desk.collaborators.base import BlobStore
from donation_desk.config import settings
from donation_desk.errors import StorageError


class LocalBlobStore(BlobStore):
    """
    Filesystem-backed blob store.
    Refs are paths relative to the media root; URLs are served under MEDIA_URL.
    """

    def __init__(self, root: Optional[Path] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.media_root)
        self.base_url = (base_url if base_url is not None else settings.media_url).rstrip("/")

    def _path(self, ref: str) -> Path:
        path = (self.root / ref).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Invalid blob reference: {ref}")
        return path

    async def put(self, name: str, data: bytes) -> str:
        path = self._path(name)
        try:
            await asyncio.to_thread(path.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise StorageError(f"Could not store {name}: {e}") from e
        return name

    async def get(self, ref: str) -> Optional[bytes]:
        path = self._path(ref)
        if not path.is_file():
            return None
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise StorageError(f"Could not read {ref}: {e}") from e

    def get_url(self, ref: str) -> str:
        return f"{self.base_url}/{ref}"
