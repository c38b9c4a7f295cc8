"""Custom exceptions for API layer."""

from typing import Any, Dict, Optional


class APIError(Exception):
    """Base class for API errors."""

    def __init__(
        self,
        error_code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class InvalidStateError(APIError):
    """Workflow is in the wrong state for the requested command."""

    def __init__(self, message: str, current_state: str):
        super().__init__(
            error_code="INVALID_STATE",
            message=message,
            status_code=409,
            details={"current_state": current_state},
        )


class ServiceUnavailableError(APIError):
    """Workflow controller is not available."""

    def __init__(self, message: str = "Workflow controller is not configured"):
        super().__init__(
            error_code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=503,
        )
