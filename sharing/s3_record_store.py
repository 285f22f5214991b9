import json
import logging

from botocore.exceptions import ClientError

from sharing.errors import StoreUnavailable
from sharing.record import ShareRecord
from sharing.record_store import RecordStore, error_code, store_errors
from storage.s3_client import S3Client

logger = logging.getLogger(__name__)

# Stored at a reserved prefix that won't collide with uploaded files
_CODES_PREFIX = "_system/codes/"
_CONFLICT_CODES = ("PreconditionFailed", "ConditionalRequestConflict", "412", "409")
_MISSING_CODES = ("NoSuchKey", "404")
_MAX_UPDATE_ATTEMPTS = 3


class S3RecordStore(RecordStore):
    """
    Stores each share code as its own JSON object at _system/codes/<CODE>.json.

    Creates use S3 conditional writes (IfNoneMatch="*"), so two callers racing
    for the same code cannot both succeed. Updates are read-modify-write guarded
    by IfMatch on the ETag that was read. There is no TTL: an expired object
    keeps its code until a lookup deletes it.
    """

    def __init__(self, s3_client: S3Client):
        self._boto = s3_client.client
        self._bucket = s3_client.bucket

    # ------------------------------------------------------------------
    # RecordStore interface
    # ------------------------------------------------------------------

    def create_if_absent(self, record: ShareRecord) -> bool:
        with store_errors("S3", "create", record.code):
            try:
                self._write(record.code, record.to_item(), IfNoneMatch="*")
            except ClientError as e:
                if error_code(e) in _CONFLICT_CODES:
                    return False
                raise
        return True

    def get(self, code: str) -> ShareRecord | None:
        with store_errors("S3", "read", code):
            found = self._read(code)
        return ShareRecord.from_item(found[0]) if found else None

    def set(self, code: str, fields: dict, merge: bool = True, expected: dict | None = None) -> bool:
        with store_errors("S3", "update", code):
            if not merge:
                self._write(code, {**fields, "code": code})
                return True
            for _ in range(_MAX_UPDATE_ATTEMPTS):
                found = self._read(code)
                if found is None:
                    return False
                item, etag = found
                if any(item.get(name) != value for name, value in (expected or {}).items()):
                    return False
                try:
                    self._write(code, {**item, **fields}, IfMatch=etag)
                    return True
                except ClientError as e:
                    if error_code(e) in _MISSING_CODES:
                        return False
                    if error_code(e) not in _CONFLICT_CODES:
                        raise
                    logger.debug("Share code %s changed during update, retrying", code)
        raise StoreUnavailable(f"Record for code {code} kept changing during update.", code=code)

    def delete(self, code: str) -> None:
        with store_errors("S3", "delete", code):
            self._boto.delete_object(Bucket=self._bucket, Key=_key(code))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read(self, code: str) -> tuple[dict, str] | None:
        try:
            response = self._boto.get_object(Bucket=self._bucket, Key=_key(code))
        except ClientError as e:
            if error_code(e) in _MISSING_CODES:
                return None
            raise
        return json.loads(response["Body"].read()), response["ETag"]

    def _write(self, code: str, item: dict, **conditions) -> None:
        self._boto.put_object(
            Bucket=self._bucket,
            Key=_key(code),
            Body=json.dumps(item, indent=2).encode(),
            ContentType="application/json",
            **conditions,
        )


def _key(code: str) -> str:
    return f"{_CODES_PREFIX}{code}.json"
