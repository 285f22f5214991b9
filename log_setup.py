import logging
import os
import sys

from rich.logging import RichHandler

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


def setup_logging(level: str | None = None, rich: bool = False) -> None:
    """
    Configure the root logger once per process.

    The terminal client logs through rich so messages don't tear its progress
    bars; the HTTP server writes plain lines to stdout. Later calls only adjust
    the level.
    """
    global _configured

    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_name, None)
    if not isinstance(resolved, int):
        resolved = logging.INFO
    root = logging.getLogger()
    if _configured:
        root.setLevel(resolved)
        return

    if rich:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
    root.handlers[:] = [handler]
    root.setLevel(resolved)
    # boto's own DEBUG output drowns everything else
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(max(resolved, logging.WARNING))
    _configured = True
