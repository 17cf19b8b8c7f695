from __future__ import annotations
import io
from functools import lru_cache
from typing import Protocol
from uuid import UUID, uuid4
import structlog
from minio import Minio
from minio.error import S3Error
from partysnap.clock import utcnow
from partysnap.config import settings
from partysnap.services.errors import UploadError

log = structlog.get_logger()


class MediaStore(Protocol):
    def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store `data` under `key` and return its public URL. Raises UploadError."""
        ...

    def remove(self, key: str) -> None:
        ...


def photo_key(event_id: UUID, participant_id: UUID, ext: str = "jpg") -> str:
    # event/participant/<ms timestamp>-<nonce>.<ext>
    return f"{event_id}/{participant_id}/{int(utcnow().timestamp() * 1000)}-{uuid4().hex[:8]}.{ext}"


def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure


class MinioMediaStore:
    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket: str, public_url: str = ""):
        host, secure = _parse_endpoint(endpoint)
        self.client = Minio(host, access_key=access_key, secret_key=secret_key, secure=secure)
        self.bucket = bucket
        self.public_url = (public_url or endpoint).rstrip("/")
        self._bucket_checked = False

    def _ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
        except S3Error as e:
            # Creation may race with another worker; fine if it exists now
            if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise
        self._bucket_checked = True

    def upload(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self._ensure_bucket()
            self.client.put_object(self.bucket, key, io.BytesIO(data), length=len(data), content_type=content_type)
        except Exception as e:
            log.warning("media_upload_failed", key=key, error=str(e))
            raise UploadError(f"Storage upload failed: {e}") from e
        return f"{self.public_url}/{self.bucket}/{key}"

    def remove(self, key: str) -> None:
        try:
            self.client.remove_object(self.bucket, key)
        except S3Error as e:
            log.warning("media_remove_failed", key=key, error=str(e))


@lru_cache(maxsize=1)
def get_media_store() -> MediaStore:
    return MinioMediaStore(
        settings.s3_endpoint,
        settings.s3_access_key,
        settings.s3_secret_key,
        settings.s3_bucket_media,
        settings.s3_public_url,
    )
