"""
Transaction Fetch Service.

Builds the filtered request, performs it, and turns the response into a
sorted list of transactions or a typed failure. No error escapes the
service boundary: every failure becomes a ``FetchFailure``.
"""

import asyncio
import time
from datetime import date

import httpx
from pydantic import ValidationError
from structlog import get_logger

from iap_transactions.config import settings
from iap_transactions.exceptions import (
    ApplicationError,
    DecodingError,
    MalformedRequestError,
    TransactionFeedError,
    TransportError,
)
from iap_transactions.models.api import ErrorResponse, TransactionFilters
from iap_transactions.models.state import (
    FetchFailure,
    FetchLoading,
    FetchResult,
    FetchState,
    FetchSuccess,
)
from iap_transactions.models.transaction import Transaction, decode_transactions
from iap_transactions.observability.logging import log_context
from iap_transactions.observability.metrics import FetchOutcome, metrics

logger = get_logger(__name__)

_OUTCOMES: dict[type[TransactionFeedError], FetchOutcome] = {
    MalformedRequestError: FetchOutcome.MALFORMED_REQUEST,
    TransportError: FetchOutcome.TRANSPORT_ERROR,
    DecodingError: FetchOutcome.DECODING_ERROR,
    ApplicationError: FetchOutcome.APPLICATION_ERROR,
}


def _parse_error_response(body: object) -> ErrorResponse | None:
    try:
        return ErrorResponse.model_validate(body)
    except ValidationError:
        return None


class TransactionService:
    """
    Fetches transactions from the backend.

    ``fetch`` is the pure form: it returns a result and touches no shared
    state. ``fetch_transactions`` additionally publishes loading / success /
    failure to ``state`` for observers.
    """

    def __init__(
        self,
        transactions_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
        dedupe_fallback_ids: bool | None = None,
        state: FetchState | None = None,
    ) -> None:
        self.transactions_url = transactions_url or settings.transactions_url
        self.dedupe_fallback_ids = (
            settings.dedupe_fallback_ids if dedupe_fallback_ids is None else dedupe_fallback_ids
        )
        self.state = state or FetchState()
        self._http_client = http_client
        self._generation = 0

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "TransactionService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def build_url(self, filters: TransactionFilters) -> str:
        """
        Build the request URL for the given filters.

        Only supplied filters become query parameters.

        Raises:
            MalformedRequestError: If no valid absolute URL can be assembled
        """
        try:
            url = httpx.URL(self.transactions_url).copy_merge_params(filters.query_params())
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise MalformedRequestError(str(exc)) from exc

        if url.scheme not in ("http", "https") or not url.host:
            raise MalformedRequestError(f"Not an absolute http(s) URL: {self.transactions_url}")

        return str(url)

    async def _request(self, filters: TransactionFilters) -> list[Transaction]:
        url = self.build_url(filters)
        logger.info("transactions_fetch_started", url=url)

        try:
            response = await self.http_client.get(url)
        except httpx.InvalidURL as exc:
            raise MalformedRequestError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TransportError(str(exc) or type(exc).__name__) from exc

        # The backend reports rejected filters in the body, so the status code
        # alone does not decide between success and failure.
        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Response is not valid JSON (HTTP {response.status_code})"
            ) from exc

        try:
            transactions = decode_transactions(
                body, dedupe_fallback_ids=self.dedupe_fallback_ids
            )
        except DecodingError as exc:
            error_response = _parse_error_response(body)
            if error_response is None:
                raise
            raise ApplicationError(error_response.error) from exc

        transactions.sort(key=lambda tx: tx.purchase_date, reverse=True)

        fallback_count = sum(1 for tx in transactions if tx.fallback_id)
        if fallback_count:
            logger.warning("transactions_fallback_ids_substituted", count=fallback_count)
            metrics.record_fallback_ids(fallback_count)

        return transactions

    async def fetch(self, filters: TransactionFilters | None = None) -> FetchResult:
        """
        Fetch transactions for the given filters.

        Args:
            filters: Optional date range / product bounds

        Returns:
            FetchSuccess with transactions sorted most recent first, or
            FetchFailure carrying the typed error
        """
        filters = filters or TransactionFilters()
        started_at = time.perf_counter()

        try:
            transactions = await self._request(filters)
        except TransactionFeedError as exc:
            metrics.record_fetch(_OUTCOMES[type(exc)], time.perf_counter() - started_at)
            logger.warning(
                "transactions_fetch_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return FetchFailure(exc)

        metrics.record_fetch(
            FetchOutcome.SUCCESS, time.perf_counter() - started_at, len(transactions)
        )
        logger.info("transactions_fetch_succeeded", count=len(transactions))
        return FetchSuccess(tuple(transactions))

    async def fetch_transactions(
        self,
        start_time: str | date | None = None,
        end_time: str | date | None = None,
        product_id: str | None = None,
    ) -> list[Transaction]:
        """
        Fetch transactions and publish loading / result state.

        Calls may overlap; only the most recently started call publishes its
        outcome, so a slow earlier response never replaces a newer one.

        Args:
            start_time: Inclusive start, yyyy-MM-dd string or date
            end_time: Inclusive end, yyyy-MM-dd string or date
            product_id: Product ID to restrict to

        Returns:
            Transactions sorted most recent first; empty on any failure
        """
        self._generation += 1
        generation = self._generation

        with log_context(fetch_generation=generation):
            self.state.publish(FetchLoading())

            result: FetchResult
            try:
                filters = TransactionFilters(
                    start_time=start_time, end_time=end_time, product_id=product_id
                )
            except ValidationError as exc:
                logger.warning("transactions_filters_invalid", errors=exc.error_count())
                result = FetchFailure(MalformedRequestError(str(exc)))
            else:
                try:
                    result = await self.fetch(filters)
                except asyncio.CancelledError:
                    # Leave a terminal status behind, otherwise the state stays loading
                    if generation == self._generation:
                        self.state.publish(FetchFailure(TransportError("Request cancelled")))
                    logger.info("transactions_fetch_cancelled")
                    raise

            if generation == self._generation:
                self.state.publish(result)
            else:
                logger.info("transactions_fetch_superseded", latest_generation=self._generation)

        if isinstance(result, FetchSuccess):
            return list(result.transactions)
        return []
