import logging
import secrets
import string
from datetime import datetime

from sharing.errors import CodeSpaceExhausted
from sharing.record_store import RecordStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 5
MAX_ATTEMPTS = 10


def random_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def normalize_code(raw: str | None) -> str:
    return (raw or "").strip().upper()


def is_valid_code(code: str) -> bool:
    return len(code) == CODE_LENGTH and all(ch in CODE_ALPHABET for ch in code)


def draw_code(store: RecordStore, now: datetime) -> str | None:
    """Draw one random code; return it if no live record holds it, else None."""
    code = random_code()
    existing = store.get(code)
    if existing is None or existing.is_expired(now):
        return code
    logger.debug("Code %s is taken", code)
    return None


def generate_code(
    store: RecordStore, now: datetime, max_attempts: int = MAX_ATTEMPTS
) -> str:
    """
    Draw codes until one is not held by a live record.

    The check is advisory: another caller may claim the same code before it is
    persisted, so callers must still write with create_if_absent.
    """
    for _ in range(max_attempts):
        code = draw_code(store, now)
        if code is not None:
            return code
    raise CodeSpaceExhausted(f"No free share code found after {max_attempts} attempts")
