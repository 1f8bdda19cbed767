"""
Pytest Configuration and Centralized Fixtures.

Provides reusable fixtures for testing:
- Wire payloads in the backend's JSON shape
- Fake HTTP transports for the fetch service
- Transaction service wired to a fake transport
"""

import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest

# Set environment variables BEFORE importing package modules
os.environ.setdefault("IAP_TRANSACTIONS_URL", "https://www.mehealthapp.cn/api/getAllTransactions")
os.environ.setdefault("IAP_LOG_FORMAT", "console")

from iap_transactions.services.transaction_service import TransactionService

BASE_URL = "https://www.mehealthapp.cn/api/getAllTransactions"

# ============================================================================
# Wire Payload Fixtures
# ============================================================================


def make_wire_transaction(**overrides: Any) -> dict[str, Any]:
    """Build a wire transaction object as the backend sends it."""
    payload: dict[str, Any] = {
        "transactionID": 2000000871234567,
        "productID": "Me.Monthly.Pro",
        "purchaseDate": "Mon, 17 Mar 2025 08:30:00 GMT",
        "expirationDate": "Thu, 17 Apr 2025 08:30:00 GMT",
        "revocationDate": None,
        "price": "5.00",
        "currency": 'Optional("CNY")',
        "environment": 'Environment(rawValue: "Production")',
        "appleSignID": "000123.4f9a2b.0815",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def wire_transaction() -> dict[str, Any]:
    """A single well-formed wire transaction."""
    return make_wire_transaction()


@pytest.fixture
def wire_transactions() -> list[dict[str, Any]]:
    """Three wire transactions, deliberately out of date order."""
    return [
        make_wire_transaction(transactionID=1, purchaseDate="Wed, 01 Jan 2025 00:00:00 GMT"),
        make_wire_transaction(transactionID=2, purchaseDate="Sat, 01 Mar 2025 00:00:00 GMT"),
        make_wire_transaction(transactionID=3, purchaseDate="Sat, 01 Feb 2025 00:00:00 GMT"),
    ]


# ============================================================================
# HTTP Fixtures
# ============================================================================


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> Any:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def json_transport() -> Callable[..., RecordingTransport]:
    """Factory for a transport that answers every request with a fixed JSON body."""

    def _create(body: Any, status_code: int = 200) -> RecordingTransport:
        return RecordingTransport(lambda request: httpx.Response(status_code, json=body))

    return _create


@pytest.fixture
def service_factory() -> Callable[..., TransactionService]:
    """Factory for a TransactionService using the given transport."""

    def _create(
        transport: httpx.AsyncBaseTransport,
        transactions_url: str = BASE_URL,
        **kwargs: Any,
    ) -> TransactionService:
        return TransactionService(
            transactions_url=transactions_url,
            http_client=httpx.AsyncClient(transport=transport),
            **kwargs,
        )

    return _create
