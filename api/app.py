"""
JSON HTTP API over the code registry.

Routes match the paths and payloads the web front end already calls: a single
POST /api/upload creates a share or, with updateExpiration set, changes its
expiration; GET /api/retrieve redeems a code; and
POST /api/get-upload-signature hands the browser presigned S3 POST parameters.
"""

import logging
from datetime import datetime

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from config import load_env_config, validate_env_config
from log_setup import setup_logging
from sharing.errors import Expired, ShareError
from sharing.expiration import canonical_selector
from sharing.factory import make_registry
from sharing.record import ShareRecord
from sharing.registry import CodeRegistry
from storage.s3_client import S3Client

logger = logging.getLogger(__name__)


def create_app(registry: CodeRegistry, s3_client: S3Client | None = None) -> Flask:
    """
    Build the Flask app around an already-wired registry.

    s3_client is optional: without it the upload-signature route answers 503
    and lookups return the stored fileUrl without a presigned download link.
    """
    app = Flask(__name__)

    @app.post("/api/upload")
    def upload():
        body = _json_body()
        expiration = _text(body, "expiration")

        if body.get("updateExpiration"):
            record = registry.update_expiration(_text(body, "code"), expiration)
            return jsonify(
                message="Expiration updated successfully!",
                code=record.code,
                expiration=canonical_selector(expiration),
                expiresAt=_iso(record.expires_at),
            )

        record = registry.create(_text(body, "filename"), _text(body, "fileUrl"), expiration)
        return jsonify(
            code=record.code,
            filename=record.filename,
            fileUrl=record.file_url,
            expiresAt=_iso(record.expires_at),
        )

    @app.get("/api/retrieve")
    def retrieve():
        record = registry.lookup(request.args.get("code"))
        payload = {
            "filename": record.filename,
            "fileUrl": record.file_url,
            "expiresAt": _iso(record.expires_at),
        }
        download_url = _download_url(s3_client, record, registry.now())
        if download_url:
            payload["downloadUrl"] = download_url
        return jsonify(payload)

    @app.post("/api/get-upload-signature")
    def upload_signature():
        if s3_client is None:
            return _error("storage_unconfigured", "File storage is not configured.", 503)
        body = _json_body()
        return jsonify(s3_client.presign_upload(_text(body, "filename") or "file"))

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    @app.errorhandler(ShareError)
    def handle_share_error(error: ShareError):
        if error.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error)
        payload = {"error": error.category, "message": error.message}
        if isinstance(error, Expired):
            payload["expired"] = True
        return jsonify(payload), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        name = (error.name or "error").lower().replace(" ", "_")
        return _error(name, error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("Unhandled error serving %s %s", request.method, request.path)
        return _error("system_error", "Internal Server Error", 500)

    return app


def create_app_from_env(env_file: str | None = None) -> Flask:
    setup_logging()
    config = load_env_config(env_file)
    problems = validate_env_config(config)
    if problems:
        raise RuntimeError(f"Missing or invalid settings: {', '.join(problems)}")

    s3_client = S3Client(config)
    app = create_app(make_registry(config, s3_client), s3_client)
    logger.info(
        "pyShare API ready (bucket=%s, backend=%s)",
        config["bucket_name"], config["record_backend"],
    )
    return app


def _download_url(s3_client: S3Client | None, record: ShareRecord, now: datetime) -> str | None:
    if s3_client is None:
        return None
    key = s3_client.key_from_url(record.file_url)
    if key is None:
        return None
    # The link must not outlive the share itself
    remaining = (record.expires_at - now).total_seconds()
    return s3_client.presigned_download_url(key, int(remaining))


def _text(body: dict, key: str) -> str | None:
    value = body.get(key)
    return value if isinstance(value, str) else None


def _iso(instant: datetime) -> str:
    return instant.isoformat()


def _error(category: str, message: str, status: int):
    return jsonify(error=category, message=message), status


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}
