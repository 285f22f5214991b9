class ShareError(Exception):
    """Base class for every failure the registry surfaces to its callers."""

    category = "system_error"
    status_code = 500

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidInput(ShareError):
    """Missing or malformed request fields. Never retried."""

    category = "invalid_input"
    status_code = 400


class NotFound(ShareError):
    category = "not_found"
    status_code = 404


class Expired(ShareError):
    """The record existed but its expiration instant has passed."""

    category = "expired"
    status_code = 410


class CodeSpaceExhausted(ShareError):
    category = "code_space_exhausted"
    status_code = 500


class StoreUnavailable(ShareError):
    """The record store timed out or failed."""

    category = "store_unavailable"
    status_code = 503
