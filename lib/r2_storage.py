# =============================================================================
# lib/r2_storage.py - Cloudflare R2 Object Storage
# =============================================================================
# S3-compatible client for the bucket that receives migrated assets.
# Handles:
# - Deterministic object key construction
# - Uploads (put is idempotent: same key, same bytes, same result)
# - Existence probes (HEAD object)
# - Public URL issuance under CLOUDFLARE_R2_PUBLIC_URL
#
# boto3 clients are thread-safe, so one R2Storage instance is shared by
# the verifier's worker threads.
# =============================================================================

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from app.exceptions import StorageProbeError, StorageUploadError
from lib.utils import now_ms

logger = logging.getLogger(__name__)

# MIME type -> file extension. Anything else is stored as .bin
MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/avif": "avif",
    "image/svg+xml": "svg",
}

EXTENSION_MIMES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "avif": "image/avif",
    "svg": "image/svg+xml",
}

_UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def extension_for_mime(mime: str | None) -> str:
    """Map a MIME type (parameters ignored) to a file extension."""
    if not mime:
        return "bin"
    base = mime.split(";", 1)[0].strip().lower()
    return MIME_EXTENSIONS.get(base, "bin")


def mime_from_url(url: str) -> str:
    """Guess a MIME type from a URL's extension, defaulting to JPEG."""
    path = url.split("?", 1)[0].split("#", 1)[0]
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return EXTENSION_MIMES.get(extension, "image/jpeg")


def safe_key_part(value: str) -> str:
    return _UNSAFE_KEY_CHARS.sub("_", value)


def build_object_key(
    module: str,
    owner_id: str,
    label: str,
    extension: str,
    document_id: str | None = None,
    index: int | None = None,
    timestamp_ms: int | None = None,
    sequence: int | None = None,
) -> str:
    """
    Build the storage path for a migrated asset.

    Format: <module>/<ownerId>/<timestamp>_<label>[_<documentId>][_<index>][_s<sequence>].<ext>

    sequence disambiguates two assets that would otherwise share a name
    within the same millisecond.

    Example:
        build_object_key("fastfood", "b1", "product", "png", document_id="p9")
        # -> "fastfood/b1/1718000000000_product_p9.png"
    """
    ts = timestamp_ms if timestamp_ms is not None else now_ms()
    name = label
    if document_id:
        name += f"_{document_id}"
    if index is not None:
        name += f"_{index}"
    if sequence is not None:
        name += f"_s{sequence}"
    return f"{safe_key_part(module)}/{safe_key_part(owner_id)}/{ts}_{safe_key_part(name)}.{extension}"


@dataclass(frozen=True)
class UploadResult:
    """Where an uploaded object lives."""
    key: str
    url: str


class R2Storage:
    """
    R2 bucket wrapper.

    Example:
        storage = R2Storage.from_settings(settings)
        result = storage.put("logos/b1/1_logo.png", png_bytes, "image/png")
        storage.exists(result.key)  # True
    """

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        endpoint_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client: Any = None,
    ) -> None:
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        if client is None:
            extra = {} if endpoint_url is None else {"endpoint_url": endpoint_url}
            client = boto3.client(
                "s3",
                region_name="auto",
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                config=Config(signature_version="s3v4"),
                **extra,
            )
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> R2Storage:
        """
        Build the storage client from settings.

        Raises:
            ConfigurationError: If any R2 credential is missing
        """
        settings.require_r2()
        return cls(
            bucket=settings.CLOUDFLARE_R2_BUCKET_NAME,
            public_base_url=settings.canonical_base_url,
            endpoint_url=settings.r2_endpoint_url,
            access_key=settings.CLOUDFLARE_R2_ACCESS_KEY_ID,
            secret_key=settings.CLOUDFLARE_R2_SECRET_ACCESS_KEY,
        )

    def public_url_for(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    def put(self, key: str, body: bytes, content_type: str) -> UploadResult:
        """
        Upload bytes under key and return the public URL.

        Raises:
            StorageUploadError: If the put fails
        """
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageUploadError(key, str(e)) from e

        logger.info(f"Uploaded object to R2: {key} ({len(body)} bytes)")
        return UploadResult(key=key, url=self.public_url_for(key))

    def exists(self, key: str) -> bool:
        """
        Return True if an object exists under key.

        Raises:
            StorageProbeError: For failures other than "not found"
        """
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES:
                return False
            raise StorageProbeError(key, str(e)) from e
        except BotoCoreError as e:
            raise StorageProbeError(key, str(e)) from e

    def delete(self, key: str) -> None:
        """Remove an object. Used to clean up uploads whose document rewrite failed."""
        self._client.delete_object(Bucket=self.bucket, Key=key)
        logger.info(f"Deleted object from R2: {key}")
