"""
Fetch state models - Tagged result variants and the observable state holder.

A fetch is always in exactly one of three states: loading, succeeded with
a list of transactions, or failed with a message. The presentation layer
subscribes to ``FetchState`` instead of reading shared mutable flags.
"""

from collections.abc import Callable
from dataclasses import dataclass

from iap_transactions.exceptions import TransactionFeedError
from iap_transactions.models.transaction import Transaction


@dataclass(frozen=True)
class FetchLoading:
    """A fetch is in flight."""


@dataclass(frozen=True)
class FetchSuccess:
    """The fetch returned transactions, most recent first."""

    transactions: tuple[Transaction, ...]


@dataclass(frozen=True)
class FetchFailure:
    """The fetch failed; the result list is empty."""

    error: TransactionFeedError

    @property
    def message(self) -> str:
        """User-facing message for the failure."""
        return self.error.user_message


FetchResult = FetchSuccess | FetchFailure
FetchStatus = FetchLoading | FetchSuccess | FetchFailure

Observer = Callable[[FetchStatus], None]


class FetchState:
    """
    Latest fetch status, with synchronous change notification.

    Observers run inside ``publish``, so they see every transition before the
    fetch that caused it returns to its caller.
    """

    def __init__(self) -> None:
        self._status: FetchStatus | None = None
        self._observers: list[Observer] = []

    @property
    def status(self) -> FetchStatus | None:
        """Most recently published status, or None before the first fetch."""
        return self._status

    @property
    def is_loading(self) -> bool:
        return isinstance(self._status, FetchLoading)

    @property
    def error_message(self) -> str | None:
        if isinstance(self._status, FetchFailure):
            return self._status.message
        return None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def publish(self, status: FetchStatus) -> None:
        """Replace the current status and notify observers."""
        self._status = status
        for observer in list(self._observers):
            observer(status)
