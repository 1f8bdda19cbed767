"""
Exception Classes - Strongly typed exception hierarchy.

Every failure of a transaction fetch maps onto exactly one of these kinds.
Each kind carries the message shown to the user in ``user_message``.
"""

from enum import Enum


class TransactionFeedError(Exception):
    """Base exception for all transaction feed errors."""

    @property
    def user_message(self) -> str:
        """Message suitable for display in place of the transaction list."""
        return str(self)


class MalformedRequestError(TransactionFeedError):
    """Raised when the filters cannot be assembled into a valid request URL."""

    USER_MESSAGE = "Invalid request URL"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Malformed request: {message}")

    @property
    def user_message(self) -> str:
        return self.USER_MESSAGE


class TransportError(TransactionFeedError):
    """Raised when the request fails at the network level or the body is not JSON."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DecodingErrorKind(str, Enum):
    """Why a payload could not be decoded."""

    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    DATA_CORRUPTED = "data_corrupted"


class DecodingError(TransactionFeedError):
    """Raised when a payload does not match the expected wire shape."""

    USER_MESSAGE = "Unable to read transactions from server"

    def __init__(self, key: str | None, kind: DecodingErrorKind, detail: str) -> None:
        self.key = key
        self.kind = kind
        self.detail = detail
        location = f" at '{key}'" if key else ""
        super().__init__(f"Decoding error ({kind.value}){location}: {detail}")

    @property
    def user_message(self) -> str:
        return self.USER_MESSAGE


class ApplicationError(TransactionFeedError):
    """Raised when the backend answers with an explicit error response."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
