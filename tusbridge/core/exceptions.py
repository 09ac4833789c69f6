"""
Exception hierarchy for the tus bridge.

Every error raised by the bridge itself derives from TusBridgeError and
carries a short error code that the API layer can expose.
"""

from typing import Any, Dict, Optional


class TusBridgeError(Exception):
    """Base exception for all bridge errors."""

    def __init__(self, message: str, error_code: str = "TUSBRIDGE_ERROR",
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class HelperStartupError(TusBridgeError):
    """The helper process could not be launched or never became ready.

    Fatal: the service is useless without the helper.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "HELPER_STARTUP_ERROR", details)


class HelperNotRunningError(TusBridgeError):
    """An operation needed the helper process but it is not running."""

    def __init__(self, message: str = "Tus server is not running") -> None:
        super().__init__(message, "HELPER_NOT_RUNNING")


class SessionCreationError(TusBridgeError):
    """Base class for control-plane failures while creating a session."""

    def __init__(self, message: str, error_code: str = "SESSION_CREATION_ERROR",
                 oid: Optional[str] = None) -> None:
        super().__init__(message, error_code, {"oid": oid} if oid else None)
        self.oid = oid


class UnexpectedStatusError(SessionCreationError):
    """The helper answered with something other than 201 Created."""

    def __init__(self, status: int, oid: Optional[str] = None) -> None:
        super().__init__(
            f"Expected tus status code 201, got {status}",
            "UNEXPECTED_STATUS",
            oid,
        )
        self.status = status
        self.details["status"] = status


class MissingLocationError(SessionCreationError):
    """The helper answered 201 without a Location header."""

    def __init__(self, oid: Optional[str] = None) -> None:
        super().__init__("Missing Location header in tus response",
                         "MISSING_LOCATION", oid)


class SessionTransportError(SessionCreationError):
    """The control request never got an HTTP response."""

    def __init__(self, message: str, oid: Optional[str] = None) -> None:
        super().__init__(message, "SESSION_TRANSPORT_ERROR", oid)


class UploadNotFoundError(TusBridgeError):
    """No session has been registered for the object id."""

    def __init__(self, oid: str) -> None:
        super().__init__(f"Unable to find upload for {oid}",
                         "UPLOAD_NOT_FOUND", {"oid": oid})
        self.oid = oid


class UnsafeUploadPathError(TusBridgeError):
    """The session location does not map to a plain file name."""

    def __init__(self, location: str) -> None:
        super().__init__(f"Refusing unsafe upload location: {location!r}",
                         "UNSAFE_UPLOAD_PATH", {"location": location})
        self.location = location
