"""Exceptions raised by the image host layer.

Validation never raises: a failed connection test is reported as ``False``.
Everything else surfaces as one of the exceptions below.
"""


class ImageHostError(Exception):
    """Base exception for image host errors."""


class ConfigurationError(ImageHostError):
    """Raised when a provider configuration is incomplete or malformed."""

    def __init__(self, message: str, missing_fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


class SizeLimitExceeded(ImageHostError):
    """Raised when a file is larger than the global upload ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"Image is too large: {size} bytes > {limit // (1024 * 1024)}MB limit"
        )
        self.size = size
        self.limit = limit


class UploadFailure(ImageHostError):
    """Raised when the remote storage API rejects or fails an upload."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"Upload failed ({provider}): {message}")
        self.provider = provider
        self.reason = message
