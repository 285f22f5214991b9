from botocore.config import Config

DEFAULT_STORE_TIMEOUT = 5.0
_MAX_ATTEMPTS = 3


def client_kwargs(config: dict) -> dict:
    """
    Keyword arguments for boto3.client / boto3.resource built from a pyShare config.

    Missing credentials are passed as None so boto3 falls back to its default
    chain (environment, instance role). Every call is bounded by the configured
    timeout so a stalled backend surfaces as an error instead of a hang.
    """
    timeout = float(config.get("store_timeout") or DEFAULT_STORE_TIMEOUT)
    return {
        "aws_access_key_id": config.get("aws_access_key") or None,
        "aws_secret_access_key": config.get("aws_secret_key") or None,
        "region_name": config["aws_region"],
        "config": Config(
            connect_timeout=timeout,
            read_timeout=timeout,
            retries={"max_attempts": _MAX_ATTEMPTS, "mode": "standard"},
        ),
    }
