from functools import lru_cache
import logging
from typing import Protocol

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage
from google.cloud.storage import exceptions as storage_exceptions

from upload_quarantine.errors import StorageError

logger = logging.getLogger("quarantine.storage")

# Credential and transfer-integrity failures are not GoogleAPIErrors.
_STORAGE_FAILURES = (
    gcloud_exceptions.GoogleAPIError,
    auth_exceptions.GoogleAuthError,
    storage_exceptions.DataCorruption,
    storage_exceptions.InvalidResponse,
)


class ObjectStore(Protocol):
    def read_object(self, bucket: str, name: str) -> bytes: ...

    def copy_object(self, source_bucket: str, name: str, destination_bucket: str) -> None: ...

    def delete_object(self, bucket: str, name: str) -> None: ...


@lru_cache
def get_storage_client() -> storage.Client:
    return storage.Client()


class GCSObjectStore:
    """Cloud Storage primitives; every failure surfaces as StorageError."""

    def __init__(self, client: storage.Client | None = None, timeout: float = 10.0):
        self._client = client
        self.timeout = timeout

    @property
    def client(self) -> storage.Client:
        if self._client is None:
            try:
                self._client = get_storage_client()
            except _STORAGE_FAILURES as exc:
                raise StorageError(f"cannot create storage client: {exc}") from exc
        return self._client

    def read_object(self, bucket: str, name: str) -> bytes:
        try:
            return self.client.bucket(bucket).blob(name).download_as_bytes(timeout=self.timeout)
        except gcloud_exceptions.NotFound as exc:
            raise StorageError(f"gs://{bucket}/{name} not found", missing=True) from exc
        except _STORAGE_FAILURES as exc:
            raise StorageError(f"reading gs://{bucket}/{name} failed: {exc}") from exc

    def copy_object(self, source_bucket: str, name: str, destination_bucket: str) -> None:
        """Server-side rewrite; large or cross-location objects need several calls."""
        src = self.client.bucket(source_bucket).blob(name)
        dst = self.client.bucket(destination_bucket).blob(name)
        try:
            token, written, total = dst.rewrite(src, timeout=self.timeout)
            while token is not None:
                logger.debug("Rewrite of %s to %s at %s/%s bytes", name, destination_bucket, written, total)
                token, written, total = dst.rewrite(src, token=token, timeout=self.timeout)
        except gcloud_exceptions.NotFound as exc:
            raise StorageError(f"gs://{source_bucket}/{name} not found", missing=True) from exc
        except _STORAGE_FAILURES as exc:
            raise StorageError(
                f"copying gs://{source_bucket}/{name} to gs://{destination_bucket} failed: {exc}"
            ) from exc

    def delete_object(self, bucket: str, name: str) -> None:
        try:
            self.client.bucket(bucket).blob(name).delete(timeout=self.timeout)
        except gcloud_exceptions.NotFound as exc:
            raise StorageError(f"gs://{bucket}/{name} not found", missing=True) from exc
        except _STORAGE_FAILURES as exc:
            raise StorageError(f"deleting gs://{bucket}/{name} failed: {exc}") from exc
