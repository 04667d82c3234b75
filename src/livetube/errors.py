from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NO_STREAM_FOUND = "NO_STREAM_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"


class LivetubeError(Exception):
    """Raised by request handlers for all expected failure conditions.

    Caught by server.py and serialised into the JSON error response.
    Per-candidate failures never surface as this error; they are downgraded
    to absence inside the orchestrator. Only total exhaustion does.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            },
        }
