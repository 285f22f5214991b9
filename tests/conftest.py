import threading
from datetime import datetime, timedelta, timezone

import pytest

from sharing.errors import StoreUnavailable
from sharing.record import ShareRecord
from sharing.record_store import RecordStore
from sharing.registry import CodeRegistry

T0 = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


class FakeRecordStore(RecordStore):
    """In-memory RecordStore with the same create-if-absent semantics as the real backends."""

    def __init__(self):
        self.items: dict[str, ShareRecord] = {}
        self.fail_delete = False
        self._lock = threading.Lock()

    def create_if_absent(self, record):
        with self._lock:
            existing = self.items.get(record.code)
            if existing is not None and not existing.is_expired(record.created_at):
                return False
            self.items[record.code] = record
            return True

    def get(self, code):
        with self._lock:
            return self.items.get(code)

    def set(self, code, fields, merge=True, expected=None):
        with self._lock:
            if merge:
                current = self.items.get(code)
                if current is None:
                    return False
                item = current.to_item()
                if any(item.get(name) != value for name, value in (expected or {}).items()):
                    return False
                item.update(fields)
            else:
                item = {**fields, "code": code}
            self.items[code] = ShareRecord.from_item(item)
            return True

    def delete(self, code):
        if self.fail_delete:
            raise StoreUnavailable("delete failed", code=code)
        with self._lock:
            self.items.pop(code, None)

    def delete_if_expired(self, code, now):
        if self.fail_delete:
            raise StoreUnavailable("delete failed", code=code)
        with self._lock:
            current = self.items.get(code)
            if current is None or not current.is_expired(now):
                return False
            del self.items[code]
            return True


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_record(code="ABC12", expires_in=timedelta(days=1), created_at=T0, **overrides):
    fields = {
        "code": code,
        "filename": "report.pdf",
        "file_url": "https://test-bucket.s3.us-east-1.amazonaws.com/uploads/1705314600_report.pdf",
        "created_at": created_at,
        "expires_at": created_at + expires_in,
    }
    fields.update(overrides)
    return ShareRecord(**fields)


@pytest.fixture
def store():
    return FakeRecordStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(store, clock):
    return CodeRegistry(store, clock=clock)
