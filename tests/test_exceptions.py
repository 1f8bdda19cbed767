"""
Tests for exception classes.

Covers all exception types, their attributes, and user-facing messages.
"""

import pytest

from iap_transactions.exceptions import (
    ApplicationError,
    DecodingError,
    DecodingErrorKind,
    MalformedRequestError,
    TransactionFeedError,
    TransportError,
)


class TestTransactionFeedError:
    """Tests for base TransactionFeedError."""

    def test_is_exception(self):
        assert issubclass(TransactionFeedError, Exception)

    def test_can_be_raised(self):
        with pytest.raises(TransactionFeedError):
            raise TransactionFeedError("test error")

    def test_user_message_defaults_to_str(self):
        assert TransactionFeedError("boom").user_message == "boom"

    @pytest.mark.parametrize(
        "exc",
        [
            MalformedRequestError("bad"),
            TransportError("down"),
            DecodingError(None, DecodingErrorKind.TYPE_MISMATCH, "x"),
            ApplicationError("rejected"),
        ],
    )
    def test_all_kinds_are_feed_errors(self, exc):
        assert isinstance(exc, TransactionFeedError)


class TestMalformedRequestError:
    """Tests for MalformedRequestError."""

    def test_attributes(self):
        exc = MalformedRequestError("no scheme")
        assert exc.message == "no scheme"
        assert "no scheme" in str(exc)

    def test_user_message_fixed(self):
        assert MalformedRequestError("no scheme").user_message == "Invalid request URL"


class TestTransportError:
    """Tests for TransportError."""

    def test_user_message_is_description(self):
        exc = TransportError("Connection refused")
        assert exc.message == "Connection refused"
        assert exc.user_message == "Connection refused"


class TestDecodingError:
    """Tests for DecodingError."""

    def test_attributes(self):
        exc = DecodingError("purchaseDate", DecodingErrorKind.DATA_CORRUPTED, "Invalid date format")
        assert exc.key == "purchaseDate"
        assert exc.kind == DecodingErrorKind.DATA_CORRUPTED
        assert exc.detail == "Invalid date format"

    def test_message_format(self):
        exc = DecodingError("purchaseDate", DecodingErrorKind.DATA_CORRUPTED, "Invalid date format")
        assert "data_corrupted" in str(exc)
        assert "purchaseDate" in str(exc)
        assert "Invalid date format" in str(exc)

    def test_message_without_key(self):
        exc = DecodingError(None, DecodingErrorKind.TYPE_MISMATCH, "expected array, got dict")
        assert " at " not in str(exc)

    def test_user_message_generic(self):
        exc = DecodingError("productID", DecodingErrorKind.MISSING_FIELD, "absent")
        assert exc.user_message == "Unable to read transactions from server"


class TestApplicationError:
    """Tests for ApplicationError."""

    def test_message_verbatim(self):
        exc = ApplicationError("bad date range")
        assert exc.message == "bad date range"
        assert str(exc) == "bad date range"
        assert exc.user_message == "bad date range"
