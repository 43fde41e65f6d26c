# ABOUTME: Exception hierarchy for command dispatch and file uploads
# ABOUTME: Structural errors abort the current operation, transport errors only the current file

"""Exceptions raised by the stackshell dispatch and upload engine."""

from typing import Any


class StackShellError(Exception):
    """Base exception for all stackshell errors."""

    def __init__(self, message: str, code: str = "SHELL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class UnknownCommand(StackShellError):
    """Raised when user input does not resolve to a known command or API."""

    def __init__(self, message: str = "unknown command or API requested") -> None:
        super().__init__(message, code="CMD_UNKNOWN")


class MissingRequiredArgs(StackShellError):
    """Raised when a resolved API is missing required parameters."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Missing required parameters: {', '.join(self.missing)}", code="CMD_MISSING_ARGS")


class InvalidSubCommandValue(StackShellError):
    """Raised when a sub-command is given a value outside its permitted options."""

    def __init__(self, sub_command: str, allowed: tuple[str, ...] | list[str]) -> None:
        self.sub_command = sub_command
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid value for {sub_command}. Supported values: {', '.join(self.allowed)}",
            code="CMD_INVALID_VALUE",
        )


class InvalidApiCache(StackShellError):
    """Raised when a profile's API cache exists but cannot be read or parsed."""

    def __init__(self, path: Any, reason: str) -> None:
        self.path = path
        super().__init__(
            f"API cache {path} is unreadable ({reason}). Run 'stackshell sync' to rebuild it.",
            code="CACHE_INVALID",
        )


class InvalidUploadParams(StackShellError):
    """Raised when the upload-credential response is malformed or incomplete."""

    def __init__(self, message: str = "Invalid response format for getuploadparams.") -> None:
        super().__init__(message, code="UPLOAD_INVALID_PARAMS")


class MissingFiles(StackShellError):
    """Raised when one or more user supplied paths do not exist."""

    def __init__(self, paths: list[str]) -> None:
        self.paths = list(paths)
        super().__init__(
            f"File(s) do not exist or are not accessible: {', '.join(self.paths)}", code="UPLOAD_MISSING_FILES"
        )


class NoValidFiles(StackShellError):
    """Raised when the path list is empty after trimming."""

    def __init__(self) -> None:
        super().__init__("No valid files to upload.", code="UPLOAD_NO_FILES")


class UploadTransportFailure(StackShellError):
    """Raised when the upload endpoint answers with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"upload failed: {body}", code="UPLOAD_TRANSPORT_FAILURE")


class Cancelled(StackShellError):
    """Raised when the current operation was cancelled by the user."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message, code="CANCELLED")


class ApiError(StackShellError):
    """Raised by an API invoker; may carry a partial response body."""

    def __init__(self, message: str, response: dict[str, Any] | None = None) -> None:
        self.response = response
        super().__init__(message, code="API_ERROR")


def is_cancellation(error: BaseException) -> bool:
    """Return True if the error represents an upstream cancellation."""
    if isinstance(error, Cancelled):
        return True
    text = str(error)
    return text.endswith("context canceled") or text.endswith("context cancelled")
