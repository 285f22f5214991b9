from dataclasses import dataclass, replace
from datetime import datetime, timezone


@dataclass(frozen=True)
class ShareRecord:
    """
    One share code and the file it points at.

    Document shape (DynamoDB item or S3 JSON object):
    {
        "code": "K7Q2M",
        "filename": "report.pdf",
        "file_url": "https://bucket.s3.us-east-1.amazonaws.com/uploads/...",
        "created_at": "2024-01-15T10:30:00+00:00",
        "expires_at": "2024-01-16T10:30:00+00:00",
        "expires_at_epoch": 1705401000
    }
    """

    code: str
    filename: str
    file_url: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def with_expiration(self, expires_at: datetime) -> "ShareRecord":
        return replace(self, expires_at=expires_at)

    def to_item(self) -> dict:
        return {
            "code": self.code,
            "filename": self.filename,
            "file_url": self.file_url,
            "created_at": self.created_at.isoformat(),
            **expiration_fields(self.expires_at),
        }

    @classmethod
    def from_item(cls, item: dict) -> "ShareRecord":
        return cls(
            code=item["code"],
            filename=item["filename"],
            file_url=item["file_url"],
            created_at=_parse_instant(item["created_at"]),
            expires_at=_parse_instant(item["expires_at"]),
        )


def expiration_fields(expires_at: datetime) -> dict:
    """The document fields that change when a record's expiration is replaced."""
    return {
        "expires_at": expires_at.isoformat(),
        "expires_at_epoch": int(expires_at.timestamp()),
    }


def _parse_instant(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    # Documents written by hand may lack an offset; treat them as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
