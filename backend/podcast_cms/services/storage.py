"""MinIO object storage for uploaded images, audio and PDFs."""
import io
import logging
import uuid
from datetime import timedelta

from minio import Minio
from minio.error import S3Error

from podcast_cms.core.config import Settings

logger = logging.getLogger(__name__)

_MISSING_CODES = ("NoSuchKey", "NoSuchObject")

# upload kind -> allowed MIME types
ALLOWED_CONTENT_TYPES: dict[str, tuple[str, ...]] = {
    "images": ("image/jpeg", "image/png", "image/webp", "image/gif", "image/svg+xml"),
    "audio": ("audio/mpeg", "audio/mp4", "audio/x-m4a", "audio/wav", "audio/ogg"),
    "pdfs": ("application/pdf",),
}


def object_name_for(kind: str, filename: str) -> str:
    safe = "".join(c if c.isalnum() or c in "._-" else "_" for c in (filename or "upload"))
    return f"{kind}/{uuid.uuid4().hex}-{safe}"


class MediaStorage:
    """Thin wrapper over a Minio client bound to one bucket.

    Built once at application start-up and shared through a dependency.
    """

    def __init__(self, client: Minio, bucket: str, url_expiry_seconds: int = 3600):
        self.client = client
        self.bucket = bucket
        self.url_expiry_seconds = url_expiry_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "MediaStorage":
        client = Minio(
            endpoint=settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
        )
        return cls(client, settings.MINIO_BUCKET_NAME, settings.MEDIA_URL_EXPIRE_SECONDS)

    def ensure_bucket(self) -> None:
        """Create the bucket if it does not already exist. Called on startup."""
        try:
            if not self.client.bucket_exists(self.bucket):
                self.client.make_bucket(self.bucket)
                logger.info("Created MinIO bucket: %s", self.bucket)
            else:
                logger.debug("MinIO bucket already exists: %s", self.bucket)
        except S3Error as exc:
            logger.error("Failed to ensure MinIO bucket %s: %s", self.bucket, exc)
            raise

    def upload(self, object_name: str, data: bytes, content_type: str) -> str:
        """Upload bytes. Returns the object name."""
        self.client.put_object(
            bucket_name=self.bucket,
            object_name=object_name,
            data=io.BytesIO(data),
            length=len(data),
            content_type=content_type,
        )
        logger.info("Uploaded %s/%s (%d bytes)", self.bucket, object_name, len(data))
        return object_name

    def presigned_url(self, object_name: str) -> str:
        """Return a pre-signed GET URL valid for the configured expiry."""
        return self.client.presigned_get_object(
            bucket_name=self.bucket,
            object_name=object_name,
            expires=timedelta(seconds=self.url_expiry_seconds),
        )

    def delete(self, object_name: str) -> None:
        """Remove an object. Raises LookupError when it does not exist."""
        try:
            self.client.stat_object(bucket_name=self.bucket, object_name=object_name)
        except S3Error as exc:
            if exc.code in _MISSING_CODES:
                raise LookupError(f"Object {object_name} not found") from exc
            raise
        self.client.remove_object(bucket_name=self.bucket, object_name=object_name)
        logger.info("Deleted %s/%s", self.bucket, object_name)
