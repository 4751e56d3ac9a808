"""Error vocabulary for the image edit endpoint.

Every error that reaches a client carries a stable machine-readable code and
a message written here, never the text of an upstream exception.
"""
from typing import Any, Dict, Optional


class ImageEditError(Exception):
    code: str = "INTERNAL"
    message: str = "Internal server error"
    http_status: int = 500

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None, http_status: Optional[int] = None):
        if code is not None:
            self.code = code
        if message is not None:
            self.message = message
        if http_status is not None:
            self.http_status = http_status
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }


class ValidationError(ImageEditError):
    """Malformed, missing or oversized input. Never forwarded to the backend."""

    code = "INVALID_REQUEST"
    message = "Invalid request"
    http_status = 400


class GenerationError(ImageEditError):
    """The generation backend rejected or failed the request."""

    code = "GENERATION_FAILED"
    message = "Image generation failed"
    http_status = 502

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None,
                 http_status: Optional[int] = None, *, internal_message: Optional[str] = None):
        super().__init__(code, message, http_status)
        # Operator-facing text; goes to logs and the usage record only
        self.internal_message = internal_message or self.message


class LoggingError(ImageEditError):
    """Writing a usage record failed. Only ever reported through metrics and logs."""

    code = "USAGE_LOG_FAILED"
    message = "Failed to write usage record"
    http_status = 500
