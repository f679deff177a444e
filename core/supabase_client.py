# core/supabase_client.py
# Object storage for uploaded files (Supabase Storage, local media fallback)

import logging
import mimetypes
import posixpath
import secrets
import time
from typing import List

import httpx
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from supabase import ClientOptions, create_client

from .exceptions import Timeout, UpstreamFailure

logger = logging.getLogger("market.storage")


class StorageError(Exception):
    """Raised by storage backends when a single file operation fails."""

    def __init__(self, message, retryable=False):
        super().__init__(message)
        self.retryable = retryable

    def as_api_error(self):
        if self.retryable:
            return Timeout()
        return UpstreamFailure()


def build_object_name(prefix: str, filename: str) -> str:
    """
    Unique object name under `prefix`, keeping the original extension.

    e.g. projects/42/1718000000000-a1b2c3d4.png
    """
    ext = ""
    if filename and "." in filename:
        ext = "." + filename.rsplit(".", 1)[-1].lower()
    stamp = int(time.time() * 1000)
    return f"{prefix.rstrip('/')}/{stamp}-{secrets.token_hex(4)}{ext}"


class SupabaseStorage:
    """
    Thin wrapper around one Supabase Storage bucket.

    Every call is bounded by the client's storage timeout; timeouts are
    reported as retryable StorageError, everything else as plain StorageError.
    """

    name = "supabase"

    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def upload(self, path: str, content: bytes, content_type: str | None = None) -> str:
        content_type = content_type or mimetypes.guess_type(path)[0] or "application/octet-stream"
        try:
            self._bucket().upload(
                path,
                content,
                file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"},
            )
        except httpx.TimeoutException as e:
            raise StorageError(f"Upload timed out: {path}", retryable=True) from e
        except Exception as e:
            raise StorageError(f"Upload failed for {path}: {e}") from e

        logger.info(f"Uploaded object to storage: {self.bucket}/{path}")
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return self._bucket().get_public_url(path)

    def list(self, prefix: str) -> List[str]:
        prefix = prefix.rstrip("/")
        try:
            entries = self._bucket().list(prefix)
        except httpx.TimeoutException as e:
            raise StorageError(f"Listing timed out: {prefix}", retryable=True) from e
        except Exception as e:
            raise StorageError(f"Listing failed for {prefix}: {e}") from e

        return [f"{prefix}/{entry['name']}" for entry in entries or [] if entry.get("name")]

    def remove(self, paths: List[str]) -> List[str]:
        if not paths:
            return []
        try:
            removed = self._bucket().remove(paths)
        except httpx.TimeoutException as e:
            raise StorageError("Removal timed out", retryable=True) from e
        except Exception as e:
            raise StorageError(f"Removal failed: {e}") from e

        # Supabase answers with the objects it actually deleted
        names = {entry.get("name") for entry in removed or [] if isinstance(entry, dict)}
        if not names:
            return list(paths)
        return [p for p in paths if p in names or posixpath.basename(p) in names]


class LocalMediaStorage:
    """
    Same interface on top of Django's default storage (MEDIA_ROOT).
    Used for local development and tests.
    """

    name = "local"

    def __init__(self, storage=None):
        self._storage = storage

    @property
    def storage(self):
        return self._storage or default_storage

    def upload(self, path: str, content: bytes, content_type: str | None = None) -> str:
        try:
            saved = self.storage.save(path, ContentFile(content))
        except OSError as e:
            raise StorageError(f"Upload failed for {path}: {e}") from e
        return self.storage.url(saved)

    def public_url(self, path: str) -> str:
        return self.storage.url(path)

    def list(self, prefix: str) -> List[str]:
        prefix = prefix.rstrip("/")
        try:
            if not self.storage.exists(prefix):
                return []
            _dirs, files = self.storage.listdir(prefix)
        except OSError as e:
            raise StorageError(f"Listing failed for {prefix}: {e}") from e
        return [f"{prefix}/{name}" for name in sorted(files)]

    def remove(self, paths: List[str]) -> List[str]:
        removed = []
        for path in paths:
            try:
                self.storage.delete(path)
                removed.append(path)
            except OSError as e:
                logger.warning(f"Failed to delete local media {path}: {e}")
        return removed


def build_storage():
    """
    Construct the storage backend from settings.

    Called once from CoreConfig.ready(); services receive the result
    through their constructor instead of importing a module global.
    """
    url = getattr(settings, "SUPABASE_URL", "")
    key = getattr(settings, "SUPABASE_SERVICE_ROLE_KEY", "")

    if not url or not key:
        logger.info("Supabase credentials not configured, using local media storage")
        return LocalMediaStorage()

    timeout = getattr(settings, "BACKEND_TIMEOUT_SECONDS", 10)
    client = create_client(
        url,
        key,
        options=ClientOptions(
            storage_client_timeout=timeout,
            postgrest_client_timeout=timeout,
        ),
    )
    logger.info("Supabase storage client initialized")
    return SupabaseStorage(client, settings.SUPABASE_STORAGE_BUCKET)


def get_storage():
    """Storage backend built at startup for this process."""
    from django.apps import apps

    return apps.get_app_config("core").storage
