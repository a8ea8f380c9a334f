"""
Object storage for odometer photos.

Talks to an S3-compatible bucket through the MinIO client. The client is
synchronous, so calls are pushed to the threadpool.
"""

import io
import logging
from functools import lru_cache

from fastapi.concurrency import run_in_threadpool
from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from fleetdesk.app.core.config import settings
from fleetdesk.app.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class MinioObjectStore:
    """Upload, resolve and delete objects in a MinIO/S3 bucket."""

    def __init__(self, client: Minio, public_base_url: str):
        self.client = client
        self.public_base_url = public_base_url.rstrip("/")
        self._known_buckets = set()

    def _ensure_bucket(self, bucket: str) -> None:
        if bucket in self._known_buckets:
            return
        if not self.client.bucket_exists(bucket):
            self.client.make_bucket(bucket)
            logger.info("Created bucket %s", bucket)
        self._known_buckets.add(bucket)

    def _put(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        self._ensure_bucket(bucket)
        self.client.put_object(
            bucket,
            path,
            io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        return path

    async def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """
        Store ``data`` under ``bucket/path``.

        Returns:
            The stored object path

        Raises:
            StorageError: If the store rejects the write or is unreachable
        """
        try:
            return await run_in_threadpool(self._put, bucket, path, data, content_type)
        except (S3Error, HTTPError) as exc:
            logger.error("Upload of %s/%s failed: %s", bucket, path, exc)
            raise StorageError(f"Failed to upload photo: {exc}") from exc

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{path}"

    async def delete(self, bucket: str, path: str) -> None:
        try:
            await run_in_threadpool(self.client.remove_object, bucket, path)
        except (S3Error, HTTPError) as exc:
            logger.error("Delete of %s/%s failed: %s", bucket, path, exc)
            raise StorageError(f"Failed to delete photo: {exc}") from exc


@lru_cache
def get_object_store() -> MinioObjectStore:
    """FastAPI dependency returning the process-wide object store."""
    client = Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )
    return MinioObjectStore(client, settings.storage_public_url)
