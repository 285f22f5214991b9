from sharing.dynamo_record_store import DynamoRecordStore
from sharing.record_store import RecordStore
from sharing.registry import CodeRegistry
from sharing.s3_record_store import S3RecordStore
from storage.s3_client import S3Client

BACKENDS = ("dynamodb", "s3")


def make_record_store(config: dict, s3_client: S3Client | None = None) -> RecordStore:
    backend = (config.get("record_backend") or "dynamodb").lower()
    if backend == "dynamodb":
        return DynamoRecordStore(config)
    if backend == "s3":
        return S3RecordStore(s3_client or S3Client(config))
    raise ValueError(f"Unknown record backend '{backend}'. Expected one of: {', '.join(BACKENDS)}")


def make_registry(config: dict, s3_client: S3Client | None = None) -> CodeRegistry:
    return CodeRegistry(make_record_store(config, s3_client))
