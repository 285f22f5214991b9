from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from storage.s3_client import MAX_PRESIGN_SECONDS, S3Client

TEST_CONFIG = {
    "aws_access_key": "fake_key",
    "aws_secret_key": "fake_secret",
    "aws_region": "us-east-1",
    "bucket_name": "test-bucket",
    "table_name": "test-codes",
}

NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "test"}}, "TestOp")


@pytest.fixture
def mock_boto(monkeypatch):
    mock_instance = MagicMock()
    monkeypatch.setattr("storage.s3_client.boto3.client", lambda *a, **kw: mock_instance)
    return mock_instance


# --- construction ---

def test_client_gets_credentials_and_timeouts(monkeypatch):
    captured = {}

    def fake_client(service, **kwargs):
        captured["service"] = service
        captured.update(kwargs)
        return MagicMock()

    monkeypatch.setattr("storage.s3_client.boto3.client", fake_client)
    S3Client({**TEST_CONFIG, "store_timeout": "3"})

    assert captured["service"] == "s3"
    assert captured["aws_access_key_id"] == "fake_key"
    assert captured["aws_secret_access_key"] == "fake_secret"
    assert captured["config"].read_timeout == 3.0


def test_missing_credentials_fall_back_to_default_chain(monkeypatch):
    captured = {}
    monkeypatch.setattr(
        "storage.s3_client.boto3.client",
        lambda service, **kw: captured.update(kw) or MagicMock(),
    )
    S3Client({"aws_region": "eu-west-1", "bucket_name": "b"})

    assert captured["aws_access_key_id"] is None
    assert captured["aws_secret_access_key"] is None
    assert captured["config"].read_timeout == 5.0


# --- verify_connection ---

def test_verify_connection_returns_true_on_success(mock_boto):
    client = S3Client(TEST_CONFIG)
    assert client.verify_connection() is True
    mock_boto.list_buckets.assert_called_once()


def test_verify_connection_returns_false_on_no_credentials(mock_boto):
    mock_boto.list_buckets.side_effect = NoCredentialsError()
    client = S3Client(TEST_CONFIG)
    assert client.verify_connection() is False


def test_verify_connection_returns_true_on_access_denied(mock_boto):
    # AccessDenied means credentials ARE valid, just restricted
    mock_boto.list_buckets.side_effect = _client_error("AccessDenied")
    client = S3Client(TEST_CONFIG)
    assert client.verify_connection() is True


def test_verify_connection_returns_false_on_other_client_error(mock_boto):
    mock_boto.list_buckets.side_effect = _client_error("SomeOtherError")
    client = S3Client(TEST_CONFIG)
    assert client.verify_connection() is False


# --- ensure_bucket_exists ---

def test_ensure_bucket_exists_does_nothing_when_bucket_found(mock_boto):
    client = S3Client(TEST_CONFIG)
    client.ensure_bucket_exists()
    mock_boto.head_bucket.assert_called_once_with(Bucket="test-bucket")
    mock_boto.create_bucket.assert_not_called()


def test_ensure_bucket_creates_bucket_when_not_found(mock_boto):
    mock_boto.head_bucket.side_effect = _client_error("404")
    client = S3Client(TEST_CONFIG)
    client.ensure_bucket_exists()
    mock_boto.create_bucket.assert_called_once_with(Bucket="test-bucket")


def test_ensure_bucket_uses_location_constraint_outside_us_east_1(mock_boto):
    config = {**TEST_CONFIG, "aws_region": "us-west-2"}
    mock_boto.head_bucket.side_effect = _client_error("404")
    client = S3Client(config)
    client.ensure_bucket_exists()
    mock_boto.create_bucket.assert_called_once_with(
        Bucket="test-bucket",
        CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
    )


def test_ensure_bucket_raises_on_unexpected_error(mock_boto):
    mock_boto.head_bucket.side_effect = _client_error("403")
    client = S3Client(TEST_CONFIG)
    with pytest.raises(ClientError):
        client.ensure_bucket_exists()


# --- keys and URLs ---

def test_object_key_is_timestamped_and_sanitised(mock_boto):
    client = S3Client(TEST_CONFIG)
    assert client.object_key_for("My Report (final).pdf", NOW) == (
        f"uploads/{int(NOW.timestamp())}_My_Report_final.pdf"
    )


def test_object_key_drops_directories(mock_boto):
    client = S3Client(TEST_CONFIG)
    key = client.object_key_for("C:\\Users\\alice\\notes.txt", NOW)
    assert key == f"uploads/{int(NOW.timestamp())}_notes.txt"


def test_object_key_falls_back_when_name_has_no_safe_chars(mock_boto):
    client = S3Client(TEST_CONFIG)
    assert client.object_key_for("ünïcødé", NOW) == f"uploads/{int(NOW.timestamp())}_ncd"
    assert client.object_key_for("***", NOW) == f"uploads/{int(NOW.timestamp())}_file"


def test_public_url_points_at_bucket(mock_boto):
    client = S3Client(TEST_CONFIG)
    assert client.public_url("uploads/1_a b.txt") == (
        "https://test-bucket.s3.us-east-1.amazonaws.com/uploads/1_a%20b.txt"
    )


def test_key_from_url_round_trips_public_url(mock_boto):
    client = S3Client(TEST_CONFIG)
    url = client.public_url("uploads/1_a b.txt")
    assert client.key_from_url(url) == "uploads/1_a b.txt"


def test_key_from_url_accepts_path_style_urls(mock_boto):
    client = S3Client(TEST_CONFIG)
    url = "https://s3.us-east-1.amazonaws.com/test-bucket/uploads/1_a.txt"
    assert client.key_from_url(url) == "uploads/1_a.txt"


@pytest.mark.parametrize(
    "url",
    [
        "https://x/a.txt",
        "https://other-bucket.s3.us-east-1.amazonaws.com/uploads/1_a.txt",
        "https://s3.us-east-1.amazonaws.com/other-bucket/uploads/1_a.txt",
        "https://test-bucket.s3.us-east-1.amazonaws.com/",
    ],
)
def test_key_from_url_ignores_foreign_urls(mock_boto, url):
    client = S3Client(TEST_CONFIG)
    assert client.key_from_url(url) is None


# --- signed access ---

def test_presign_upload_returns_post_parameters_and_public_url(mock_boto):
    mock_boto.generate_presigned_post.return_value = {
        "url": "https://test-bucket.s3.amazonaws.com/",
        "fields": {"key": "uploads/x", "policy": "p", "x-amz-signature": "s"},
    }
    client = S3Client(TEST_CONFIG)

    result = client.presign_upload("a.txt", expires_in=60)

    kwargs = mock_boto.generate_presigned_post.call_args[1]
    assert kwargs["Bucket"] == "test-bucket"
    assert kwargs["ExpiresIn"] == 60
    assert kwargs["Key"].startswith("uploads/") and kwargs["Key"].endswith("_a.txt")
    assert result["url"] == "https://test-bucket.s3.amazonaws.com/"
    assert result["fields"]["policy"] == "p"
    assert result["key"] == kwargs["Key"]
    assert result["fileUrl"] == client.public_url(kwargs["Key"])


def test_presigned_download_url_is_clamped(mock_boto):
    mock_boto.generate_presigned_url.return_value = "https://signed"
    client = S3Client(TEST_CONFIG)

    assert client.presigned_download_url("uploads/a", 10**9) == "https://signed"
    assert mock_boto.generate_presigned_url.call_args[1]["ExpiresIn"] == MAX_PRESIGN_SECONDS

    client.presigned_download_url("uploads/a", -5)
    assert mock_boto.generate_presigned_url.call_args[1]["ExpiresIn"] == 1
    assert mock_boto.generate_presigned_url.call_args[1]["Params"] == {
        "Bucket": "test-bucket", "Key": "uploads/a",
    }


# --- transfers ---

def test_upload_file_calls_boto_with_correct_args(mock_boto, tmp_path):
    test_file = tmp_path / "report.pdf"
    test_file.write_text("hello")

    client = S3Client(TEST_CONFIG)
    client.upload_file(test_file, "uploads/1_report.pdf")

    mock_boto.upload_file.assert_called_once_with(
        str(test_file), "test-bucket", "uploads/1_report.pdf", Callback=None
    )


def test_download_file_creates_parent_directory(mock_boto, tmp_path):
    dest = tmp_path / "nested" / "report.pdf"
    callback = MagicMock()

    client = S3Client(TEST_CONFIG)
    client.download_file("uploads/1_report.pdf", dest, callback=callback)

    assert dest.parent.is_dir()
    mock_boto.download_file.assert_called_once_with(
        "test-bucket", "uploads/1_report.pdf", str(dest), Callback=callback
    )


def test_object_size_reads_content_length(mock_boto):
    mock_boto.head_object.return_value = {"ContentLength": 2048}
    client = S3Client(TEST_CONFIG)
    assert client.object_size("uploads/a") == 2048
