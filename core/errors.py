"""
Error types raised by the Gmail MCP tools.

Every tool-level failure derives from GmailToolError so the dispatch boundary
(core.utils.handle_http_errors) can turn it into a single error line.
"""

from typing import Optional


class GmailToolError(Exception):
    """Base class for all tool-level failures."""

    def __init__(self, message: str = "Gmail tool error"):
        self.message = message
        super().__init__(self.message)


class UserInputError(GmailToolError):
    """Raised when tool arguments are invalid. Never reaches the remote API."""


class AddressInvalid(UserInputError):
    """Raised when a recipient address fails the syntax check."""

    FIELD_LABELS = {"to": "Recipient", "cc": "CC", "bcc": "BCC"}

    def __init__(self, address: str, field: str = "to"):
        label = self.FIELD_LABELS.get(field, field)
        super().__init__(f"{label} email address is invalid: {address}")
        self.address = address
        self.field = field


class AuthenticationMissing(GmailToolError):
    """Raised when a tool is called without a bearer token."""

    def __init__(
        self,
        message: str = "No valid authentication token provided. Please provide an access token.",
    ):
        super().__init__(message)


class RemoteCallFailed(GmailToolError):
    """Raised when the Gmail API rejects a call."""

    def __init__(self, status_code: Optional[int], message: str):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class LabelOperationFailed(GmailToolError):
    """Raised when a label call fails for a reason without a dedicated type."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error


class LabelAlreadyExists(LabelOperationFailed):
    def __init__(self, name: str, original_error: Optional[Exception] = None):
        super().__init__(
            f'Label "{name}" already exists. Please use a different name.',
            original_error,
        )
        self.name = name


class LabelNotFound(LabelOperationFailed):
    def __init__(self, label_id: str, original_error: Optional[Exception] = None):
        super().__init__(f'Label with ID "{label_id}" not found.', original_error)
        self.label_id = label_id


class SystemLabelProtected(LabelOperationFailed):
    def __init__(self, label_id: str):
        super().__init__(f'Cannot delete system label with ID "{label_id}".')
        self.label_id = label_id


class DecodeError(GmailToolError):
    """Raised when a message body payload cannot be decoded."""
