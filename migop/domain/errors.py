"""Domain exceptions.

Every failure that can end a workflow run derives from MigopError so the
controller can turn it into an ERROR transition with the cause attached.
"""

from typing import Any, Dict, List, Optional


class MigopError(Exception):
    """Base class for MIGOP Editor errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class GatewayError(MigopError):
    """Document gateway unreachable or returned an HTTP/transport failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


class GatewayTimeoutError(GatewayError):
    """A tracked gateway call exceeded its policy timeout."""

    def __init__(self, operation: str, timeout_seconds: float, call_id: str):
        self.operation = operation
        self.timeout_seconds = timeout_seconds
        self.call_id = call_id
        super().__init__(
            f"{operation} timed out after {timeout_seconds:g} seconds",
            details={"call_id": call_id, "timeout_seconds": timeout_seconds},
        )


class InvalidGatewayResultError(GatewayError):
    """Gateway answered, but the result is missing, malformed or unsuccessful."""


class StaleCallError(MigopError):
    """A tracked call completed after it was invalidated (timeout or reset)."""


class DocxProcessingError(MigopError):
    """DOCX container or XML could not be processed."""


class VersionError(MigopError):
    """Version identifier problem."""


class InvalidVersionTypeError(VersionError):
    """Version type is not one of B, A, O."""


class InvalidVersionIdentifierError(VersionError):
    """Version identifier does not have the expected shape."""


class WorkflowValidationError(MigopError):
    """User-supplied or generated data failed validation before a write."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        super().__init__(message, details={"errors": self.errors} if self.errors else None)
