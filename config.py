import json
import os
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt

CONFIG_DIR = Path.home() / ".pyshare"
CONFIG_FILE = CONFIG_DIR / "config.json"

_REQUIRED_KEYS = {"aws_access_key", "aws_secret_key", "aws_region", "bucket_name", "table_name"}
_BACKENDS = ("dynamodb", "s3")

# Server settings come from the environment; credentials may be left to boto3's default chain
_ENV_KEYS = {
    "aws_access_key": "PYSHARE_AWS_ACCESS_KEY",
    "aws_secret_key": "PYSHARE_AWS_SECRET_KEY",
    "aws_region": "PYSHARE_AWS_REGION",
    "bucket_name": "PYSHARE_BUCKET",
    "table_name": "PYSHARE_TABLE",
    "record_backend": "PYSHARE_RECORD_BACKEND",
    "store_timeout": "PYSHARE_STORE_TIMEOUT",
}

console = Console()


def load_config() -> dict | None:
    if not CONFIG_FILE.exists():
        return None
    try:
        with open(CONFIG_FILE) as f:
            return json.load(f)
    except (json.JSONDecodeError, KeyError):
        return None


def validate_config(config: dict) -> bool:
    """Return True if config has all required keys with non-empty values."""
    if not isinstance(config, dict):
        return False
    if not all(str(config.get(key, "")).strip() for key in _REQUIRED_KEYS):
        return False
    return _valid_optional_settings(config)


def save_config(config: dict) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w") as f:
        json.dump(config, f, indent=2)


def load_env_config(env_file: str | None = None) -> dict:
    """Build a config dict from PYSHARE_* variables, reading a .env file first if present."""
    load_dotenv(env_file or os.path.join(os.getcwd(), ".env"))
    config = {}
    for key, var in _ENV_KEYS.items():
        value = os.getenv(var, "").strip()
        if value:
            config[key] = value
    config.setdefault("aws_region", os.getenv("AWS_REGION", "us-east-1"))
    config.setdefault("record_backend", "dynamodb")
    return config


def validate_env_config(config: dict) -> list[str]:
    """Return the names of missing or invalid settings; empty when the config is usable."""
    problems = [
        _ENV_KEYS[key]
        for key in ("aws_region", "bucket_name")
        if not str(config.get(key, "")).strip()
    ]
    if config.get("record_backend") == "dynamodb" and not config.get("table_name"):
        problems.append(_ENV_KEYS["table_name"])
    if not _valid_optional_settings(config):
        problems.append(f"{_ENV_KEYS['record_backend']} / {_ENV_KEYS['store_timeout']}")
    return problems


def run_setup_wizard() -> dict:
    console.print("[bold]AWS Configuration Setup[/bold]\n")
    console.print(
        "You'll need an AWS account with an IAM user that has S3 and DynamoDB permissions.\n"
        "Uploaded files go to the S3 bucket; share codes are kept in the DynamoDB table.\n"
    )

    access_key = Prompt.ask("[cyan]AWS Access Key ID[/cyan]").strip()
    secret_key = Prompt.ask("[cyan]AWS Secret Access Key[/cyan]", password=True)
    region = Prompt.ask("[cyan]AWS Region[/cyan]", default="us-east-1")
    bucket = Prompt.ask("[cyan]S3 Bucket Name[/cyan]", default="pyshare-files")
    backend = Prompt.ask(
        "[cyan]Store share codes in[/cyan]", choices=list(_BACKENDS), default="dynamodb"
    )
    table = Prompt.ask("[cyan]DynamoDB Table Name[/cyan]", default="pyshare-codes")

    return {
        "aws_access_key": access_key,
        "aws_secret_key": secret_key,
        "aws_region": region,
        "bucket_name": bucket,
        "table_name": table,
        "record_backend": backend,
    }


def _valid_optional_settings(config: dict) -> bool:
    backend = config.get("record_backend")
    if backend is not None and str(backend).lower() not in _BACKENDS:
        return False
    timeout = config.get("store_timeout")
    if timeout is None:
        return True
    try:
        return float(timeout) > 0
    except (TypeError, ValueError):
        return False
