import logging
from datetime import datetime, timezone
from typing import Callable

from sharing.codes import MAX_ATTEMPTS, draw_code, is_valid_code, normalize_code
from sharing.errors import CodeSpaceExhausted, Expired, InvalidInput, NotFound, ShareError
from sharing.expiration import canonical_selector, compute_expiration
from sharing.record import ShareRecord, expiration_fields
from sharing.record_store import RecordStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CodeRegistry:
    """
    Creates, extends, revokes and looks up share records.

    Holds no state of its own: every call goes through the record store, and
    expiration is enforced when a record is read rather than by a sweeper.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Callable[[], datetime] | None = None,
        max_attempts: int = MAX_ATTEMPTS,
    ):
        self._store = store
        self._clock = clock or _utcnow
        self._max_attempts = max_attempts

    def now(self) -> datetime:
        """The registry's notion of the current instant."""
        return self._clock()

    def create(self, filename: str, file_url: str, duration: str | None = None) -> ShareRecord:
        filename = (filename or "").strip()
        file_url = (file_url or "").strip()
        if not filename or not file_url:
            raise InvalidInput("Both filename and fileUrl are required.")

        # Taken draws and write conflicts count against the same budget
        for attempt in range(1, self._max_attempts + 1):
            now = self._clock()
            code = draw_code(self._store, now)
            if code is None:
                continue
            record = ShareRecord(
                code=code,
                filename=filename,
                file_url=file_url,
                created_at=now,
                expires_at=compute_expiration(duration, now),
            )
            if self._store.create_if_absent(record):
                logger.info(
                    "Created share code %s for %s (expires %s)",
                    record.code, filename, record.expires_at.isoformat(),
                )
                return record
            logger.info(
                "Share code %s was claimed concurrently (attempt %d/%d)",
                record.code, attempt, self._max_attempts,
            )
        raise CodeSpaceExhausted(
            f"Could not persist a unique share code after {self._max_attempts} attempts"
        )

    def update_expiration(self, code: str, duration: str | None = None) -> ShareRecord:
        code = self._require_code(code)
        now = self._clock()
        record = self._store.get(code)
        # An expired record is gone as far as callers are concerned; never extend it
        if record is None or record.is_expired(now):
            raise NotFound(f"No active share for code {code}.", code=code)

        updated = record.with_expiration(compute_expiration(duration, now))
        # created_at pins the write to this share, not one reissued under the same code
        same_share = {"created_at": record.created_at.isoformat()}
        if not self._store.set(
            code, expiration_fields(updated.expires_at), merge=True, expected=same_share
        ):
            raise NotFound(f"No active share for code {code}.", code=code)

        logger.info(
            "Share code %s now expires %s (%s)",
            code, updated.expires_at.isoformat(), canonical_selector(duration),
        )
        return updated

    def lookup(self, code: str) -> ShareRecord:
        code = self._require_code(code)
        record = self._store.get(code)
        if record is None:
            raise NotFound(f"No file found for code {code}.", code=code)

        now = self._clock()
        if record.is_expired(now):
            self._evict(code, now)
            raise Expired("This file has expired and is no longer available.", code=code)
        return record

    def revoke(self, code: str) -> None:
        code = self._require_code(code)
        record = self._store.get(code)
        if record is None or record.is_expired(self._clock()):
            raise NotFound(f"No active share for code {code}.", code=code)
        self._store.delete(code)
        logger.info("Revoked share code %s", code)

    def _require_code(self, raw: str | None) -> str:
        code = normalize_code(raw)
        if not code:
            raise InvalidInput("A share code is required.")
        if not is_valid_code(code):
            raise InvalidInput(f"'{code}' is not a valid share code.", code=code)
        return code

    def _evict(self, code: str, now: datetime) -> None:
        # The caller already gets Expired; a failed delete only leaves a dead record behind
        try:
            deleted = self._store.delete_if_expired(code, now)
        except ShareError as e:
            logger.warning("Could not delete expired share code %s: %s", code, e)
            return
        if deleted:
            logger.info("Deleted expired share code %s", code)
        else:
            logger.info("Share code %s was reissued or removed before it could be evicted", code)
