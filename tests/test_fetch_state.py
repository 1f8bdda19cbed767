"""
Tests for fetch result variants and the observable state holder.
"""

from unittest.mock import MagicMock

from iap_transactions.exceptions import ApplicationError, DecodingError, DecodingErrorKind
from iap_transactions.models.state import FetchFailure, FetchLoading, FetchState, FetchSuccess


class TestFetchFailure:
    """Tests for FetchFailure."""

    def test_application_error_message_verbatim(self):
        failure = FetchFailure(ApplicationError("bad date range"))
        assert failure.message == "bad date range"

    def test_decoding_error_message_generic(self):
        failure = FetchFailure(
            DecodingError("purchaseDate", DecodingErrorKind.DATA_CORRUPTED, "Invalid date format")
        )
        assert failure.message == "Unable to read transactions from server"


class TestFetchState:
    """Tests for FetchState."""

    def test_initial_state(self):
        state = FetchState()
        assert state.status is None
        assert state.is_loading is False
        assert state.error_message is None

    def test_loading(self):
        state = FetchState()
        state.publish(FetchLoading())
        assert state.is_loading is True
        assert state.error_message is None

    def test_failure(self):
        state = FetchState()
        state.publish(FetchFailure(ApplicationError("nope")))
        assert state.is_loading is False
        assert state.error_message == "nope"

    def test_loading_clears_error(self):
        state = FetchState()
        state.publish(FetchFailure(ApplicationError("nope")))
        state.publish(FetchLoading())
        assert state.error_message is None

    def test_success(self):
        state = FetchState()
        state.publish(FetchSuccess(()))
        assert state.is_loading is False
        assert state.error_message is None

    def test_observers_notified(self):
        state = FetchState()
        observer = MagicMock()
        state.subscribe(observer)

        status = FetchLoading()
        state.publish(status)

        observer.assert_called_once_with(status)

    def test_unsubscribe(self):
        state = FetchState()
        observer = MagicMock()
        unsubscribe = state.subscribe(observer)

        unsubscribe()
        unsubscribe()
        state.publish(FetchLoading())

        observer.assert_not_called()

    def test_observer_sees_new_status(self):
        """State is already updated when observers run."""
        state = FetchState()
        seen: list[bool] = []
        state.subscribe(lambda status: seen.append(state.is_loading))

        state.publish(FetchLoading())
        state.publish(FetchSuccess(()))

        assert seen == [True, False]
