"""
Blob Storage

Document files are written once under a unique name and read back by name.

- B2Storage: Backblaze B2 native API over httpx
- LocalFileStorage: filesystem directory, used when B2 credentials are absent
- FileCache: local read-through cache in front of either store
"""

import asyncio
import hashlib
import logging
from collections import defaultdict
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote
from uuid import uuid4

import httpx
from fastapi import Request

from admission_portal.core.config import Settings

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class StorageError(Exception):
    """Raised when the blob store cannot complete a read or write."""


class FileNotFoundInStorage(StorageError):
    """Raised when the requested blob does not exist."""


class BlobStorage(Protocol):
    async def put(self, data: bytes, name: str, mime_type: str) -> str: ...

    def get_stream(self, name: str) -> AsyncIterator[bytes]: ...

    async def close(self) -> None: ...


def validate_blob_name(name: str) -> str:
    """Reject names that could escape the storage namespace."""
    if not name or name != Path(name).name or name in (".", ".."):
        raise StorageError(f"Invalid file name: {name!r}")
    return name


class B2Storage:
    """
    Minimal client for the Backblaze B2 native API.

    Flow for an upload: authorize account, resolve bucket id, fetch an upload
    URL, then POST the bytes with their SHA-1. Authorization is cached and
    dropped whenever B2 answers 401.
    """

    def __init__(
        self,
        *,
        key_id: str,
        application_key: str,
        bucket_name: str,
        api_url: str = "https://api.backblazeb2.com/b2api/v2",
        public_url: str = "https://f000.backblazeb2.com",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._key_id = key_id
        self._application_key = application_key
        self.bucket_name = bucket_name
        self._auth_url = f"{api_url.rstrip('/')}/b2_authorize_account"
        self._public_url = public_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._auth: dict[str, Any] | None = None
        self._bucket_id: str | None = None

    async def _authorize(self) -> dict[str, Any]:
        if self._auth is None:
            r = await self._client.get(
                self._auth_url, auth=(self._key_id, self._application_key)
            )
            r.raise_for_status()
            self._auth = r.json()
            logger.info("Authorized with B2")
        return self._auth

    async def _api(self, operation: str, payload: dict[str, Any]) -> dict[str, Any]:
        auth = await self._authorize()
        url = f"{auth['apiUrl']}/b2api/v2/{operation}"
        r = await self._client.post(
            url, headers={"Authorization": auth["authorizationToken"]}, json=payload
        )
        if r.status_code == 401:
            self._auth = None
        r.raise_for_status()
        return r.json()

    async def _get_bucket_id(self) -> str:
        if self._bucket_id is None:
            auth = await self._authorize()
            data = await self._api(
                "b2_list_buckets",
                {"accountId": auth["accountId"], "bucketName": self.bucket_name},
            )
            buckets = data.get("buckets", [])
            if not buckets:
                raise StorageError(f"Bucket not found: {self.bucket_name}")
            self._bucket_id = buckets[0]["bucketId"]
        return self._bucket_id

    def public_url(self, name: str) -> str:
        return f"{self._public_url}/file/{self.bucket_name}/{name}"

    async def put(self, data: bytes, name: str, mime_type: str) -> str:
        """
        Upload bytes under ``name``.

        Returns:
            The public URL of the stored file

        Raises:
            StorageError: If any B2 call fails
        """
        validate_blob_name(name)
        try:
            bucket_id = await self._get_bucket_id()
            upload = await self._api("b2_get_upload_url", {"bucketId": bucket_id})
            r = await self._client.post(
                upload["uploadUrl"],
                headers={
                    "Authorization": upload["authorizationToken"],
                    "X-Bz-File-Name": quote(name),
                    "Content-Type": mime_type,
                    "Content-Length": str(len(data)),
                    "X-Bz-Content-Sha1": hashlib.sha1(data).hexdigest(),
                },
                content=data,
            )
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"B2 upload failed for {name}: {e}", exc_info=True)
            raise StorageError(f"Failed to upload {name}") from e

        logger.info(f"Uploaded {name} to B2 ({len(data)} bytes)")
        return self.public_url(name)

    async def get_stream(self, name: str) -> AsyncIterator[bytes]:
        """Yield the stored file in chunks."""
        validate_blob_name(name)
        try:
            auth = await self._authorize()
            url = f"{auth['downloadUrl']}/file/{self.bucket_name}/{quote(name)}"
            async with self._client.stream(
                "GET", url, headers={"Authorization": auth["authorizationToken"]}
            ) as r:
                if r.status_code == 404:
                    raise FileNotFoundInStorage(name)
                if r.status_code == 401:
                    self._auth = None
                r.raise_for_status()
                async for chunk in r.aiter_bytes(CHUNK_SIZE):
                    yield chunk
        except httpx.HTTPError as e:
            logger.error(f"B2 download failed for {name}: {e}", exc_info=True)
            raise StorageError(f"Failed to download {name}") from e

    async def close(self) -> None:
        await self._client.aclose()


class LocalFileStorage:
    """Stores blobs in a local directory. Write-once per name."""

    def __init__(self, root: str | Path, *, base_url: str = "/api/v1/files") -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/{name}"

    async def put(self, data: bytes, name: str, mime_type: str) -> str:
        path = self.root / validate_blob_name(name)

        def _write() -> None:
            self.root.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as f:
                f.write(data)

        try:
            await asyncio.to_thread(_write)
        except FileExistsError as e:
            raise StorageError(f"File already exists: {name}") from e
        except OSError as e:
            logger.error(f"Local write failed for {name}: {e}", exc_info=True)
            raise StorageError(f"Failed to store {name}") from e

        logger.info(f"Stored {name} locally ({len(data)} bytes, {mime_type})")
        return self.public_url(name)

    async def get_stream(self, name: str) -> AsyncIterator[bytes]:
        path = self.root / validate_blob_name(name)
        if not path.is_file():
            raise FileNotFoundInStorage(name)

        with path.open("rb") as f:
            while True:
                chunk = await asyncio.to_thread(f.read, CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    async def close(self) -> None:
        return None


class FileCache:
    """
    Read-through cache of blobs on local disk.

    A cached copy is served when present; otherwise the blob is streamed from
    the store into a temporary file that is renamed into place once complete.
    Fills of the same name are serialized, so concurrent misses download once.
    """

    def __init__(self, storage: BlobStorage, cache_dir: str | Path) -> None:
        self.storage = storage
        self.cache_dir = Path(cache_dir)
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def fetch(self, name: str) -> Path:
        path = self.cache_dir / validate_blob_name(name)
        if path.is_file():
            logger.debug(f"Serving {name} from cache")
            return path

        lock = self._locks[name]
        try:
            async with lock:
                # Another request may have filled it while we waited
                if path.is_file():
                    return path
                await self._fill(name, path)
        finally:
            if not lock.locked():
                self._locks.pop(name, None)

        logger.info(f"Cached {name}")
        return path

    async def _fill(self, name: str, path: Path) -> None:
        await asyncio.to_thread(self.cache_dir.mkdir, parents=True, exist_ok=True)
        partial = path.with_name(f"{path.name}.{uuid4().hex}.part")
        try:
            with partial.open("wb") as f:
                async for chunk in self.storage.get_stream(name):
                    await asyncio.to_thread(f.write, chunk)
            partial.replace(path)
        finally:
            partial.unlink(missing_ok=True)


def create_storage(settings: Settings) -> BlobStorage:
    """Build the configured blob store."""
    if settings.b2_configured:
        return B2Storage(
            key_id=settings.b2_key_id,
            application_key=settings.b2_application_key,
            bucket_name=settings.b2_bucket_name,
            api_url=settings.b2_api_url,
            public_url=settings.b2_download_url,
        )

    logger.warning("B2 credentials not set - storing uploads on local disk")
    return LocalFileStorage(settings.local_storage_dir)


def get_storage(request: Request) -> BlobStorage:
    """FastAPI dependency returning the application's blob store."""
    return request.app.state.storage


def get_file_cache(request: Request) -> FileCache:
    return request.app.state.file_cache
