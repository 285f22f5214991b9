import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime

from botocore.exceptions import BotoCoreError, ClientError

from sharing.errors import StoreUnavailable
from sharing.record import ShareRecord

logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """
    Abstract interface over the durable store that holds share records.

    Swap implementations (DynamoDB, S3, etc.) by injecting a different concrete
    subclass; the registry only depends on this interface. Every method raises
    StoreUnavailable when the backend times out or fails.
    """

    @abstractmethod
    def create_if_absent(self, record: ShareRecord) -> bool:
        """Persist a new record. Return False if a live record already holds its code."""
        ...

    @abstractmethod
    def get(self, code: str) -> ShareRecord | None:
        """Return the record stored under code, expired or not, or None."""
        ...

    @abstractmethod
    def set(self, code: str, fields: dict, merge: bool = True, expected: dict | None = None) -> bool:
        """
        Write fields for code.

        With merge=True only the given fields of an existing record change, and
        False is returned if the record no longer exists or any field named in
        expected no longer holds that value. With merge=False the fields are
        written as the whole document.
        """
        ...

    @abstractmethod
    def delete(self, code: str) -> None:
        """Remove the record for code. Silent if it does not exist."""
        ...

    def delete_if_expired(self, code: str, now: datetime) -> bool:
        """
        Remove the record for code only if it is expired at now.

        Returns False when the record is gone or was replaced by a live one.
        Stores that can reissue an expired code should override this with a
        conditional delete.
        """
        record = self.get(code)
        if record is None or not record.is_expired(now):
            return False
        self.delete(code)
        return True

    def ensure_ready(self) -> None:
        """Create any backing resources the store needs. No-op by default."""


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


@contextmanager
def store_errors(backend: str, action: str, code: str):
    """Re-raise botocore failures (timeouts included) as StoreUnavailable."""
    try:
        yield
    except (BotoCoreError, ClientError) as e:
        logger.error("%s failed to %s share code %s: %s", backend, action, code, e)
        raise StoreUnavailable(f"Record store failed to {action} code {code}.", code=code) from e
