import logging
import re
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Callable, Optional
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from storage.aws import client_kwargs

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads/"
# S3 caps presigned URLs at seven days
MAX_PRESIGN_SECONDS = 7 * 24 * 3600
_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class S3Client:
    def __init__(self, config: dict):
        self.bucket = config["bucket_name"]
        self.region = config["aws_region"]
        self.client = boto3.client("s3", **client_kwargs(config))

    def verify_connection(self) -> bool:
        try:
            self.client.list_buckets()
            return True
        except ClientError as e:
            # An AccessDenied error still means credentials are valid
            if e.response["Error"]["Code"] in ("AccessDenied", "403"):
                return True
            return False
        except NoCredentialsError:
            return False

    def ensure_bucket_exists(self) -> None:
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            if error_code not in ("404", "NoSuchBucket"):
                logger.error("Error accessing bucket %s: %s", self.bucket, e)
                raise
            logger.warning("Bucket %s not found. Creating it...", self.bucket)
            try:
                if self.region == "us-east-1":
                    self.client.create_bucket(Bucket=self.bucket)
                else:
                    self.client.create_bucket(
                        Bucket=self.bucket,
                        CreateBucketConfiguration={"LocationConstraint": self.region},
                    )
            except ClientError as create_error:
                logger.error("Failed to create bucket %s: %s", self.bucket, create_error)
                raise
            logger.info("Bucket %s created", self.bucket)

    # ------------------------------------------------------------------
    # Keys and URLs
    # ------------------------------------------------------------------

    def object_key_for(self, filename: str, now: datetime | None = None) -> str:
        """uploads/<unix-ts>_<stem><ext>, with the stem reduced to [A-Za-z0-9_-]."""
        if now is None:
            now = datetime.now(timezone.utc)
        path = PurePosixPath(filename.replace("\\", "/")).name
        stem, suffix = PurePosixPath(path).stem, PurePosixPath(path).suffix
        safe_stem = _UNSAFE_KEY_CHARS.sub("", stem.replace(" ", "_")) or "file"
        safe_suffix = _UNSAFE_KEY_CHARS.sub("", suffix.lstrip("."))
        name = f"{int(now.timestamp())}_{safe_stem}"
        if safe_suffix:
            name = f"{name}.{safe_suffix}"
        return UPLOAD_PREFIX + name

    def public_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{quote(key)}"

    def key_from_url(self, url: str) -> str | None:
        """Return the object key if url points into this bucket, else None."""
        parsed = urlparse(url)
        host = parsed.netloc.lower()
        path = unquote(parsed.path.lstrip("/"))
        if host.startswith(f"{self.bucket}.s3.") and host.endswith(".amazonaws.com"):
            return path or None
        if host.startswith("s3.") and host.endswith(".amazonaws.com"):
            bucket, _, key = path.partition("/")
            if bucket == self.bucket and key:
                return key
        return None

    # ------------------------------------------------------------------
    # Signed access
    # ------------------------------------------------------------------

    def presign_upload(self, filename: str, expires_in: int = 900) -> dict:
        """
        Parameters for a browser to POST a file straight to S3.

        The client sends the returned fields plus the file as multipart form data
        to url, then registers fileUrl with the registry.
        """
        key = self.object_key_for(filename)
        post = self.client.generate_presigned_post(
            Bucket=self.bucket,
            Key=key,
            ExpiresIn=expires_in,
        )
        return {
            "url": post["url"],
            "fields": post["fields"],
            "key": key,
            "fileUrl": self.public_url(key),
        }

    def presigned_download_url(self, key: str, expires_in: int) -> str:
        expires_in = max(1, min(int(expires_in), MAX_PRESIGN_SECONDS))
        return self.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket, "Key": key},
            ExpiresIn=expires_in,
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def upload_file(
        self,
        local_path: Path,
        s3_key: str,
        callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        self.client.upload_file(
            str(local_path),
            self.bucket,
            s3_key,
            Callback=callback,
        )

    def object_size(self, s3_key: str) -> int:
        response = self.client.head_object(Bucket=self.bucket, Key=s3_key)
        return response["ContentLength"]

    def download_file(
        self,
        s3_key: str,
        local_path: Path,
        callback: Optional[Callable[[int], None]] = None,
    ) -> None:
        local_path.parent.mkdir(parents=True, exist_ok=True)
        self.client.download_file(
            self.bucket,
            s3_key,
            str(local_path),
            Callback=callback,
        )
