"""
Transaction domain model - Immutable dataclass plus its wire mapping.

The backend serves one JSON object per purchase:

    {
        "transactionID": 2000000871234567,
        "productID": "Me.Monthly.Pro",
        "purchaseDate": "Mon, 17 Mar 2025 08:30:00 GMT",
        "expirationDate": "Thu, 17 Apr 2025 08:30:00 GMT",
        "revocationDate": null,
        "price": "5.00",
        "currency": "Optional(\"CNY\")",
        "environment": "Environment(rawValue: \"Production\")",
        "appleSignID": "000123.abc..."
    }

``Transaction.from_wire`` is the only place that knows about this shape.
Everything downstream works with clean, typed values.
"""

import re
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta, timezone
from email.utils import format_datetime, parsedate_tz

from iap_transactions.exceptions import DecodingError, DecodingErrorKind

# TECH DEBT: this backend writes the debug description of its own Optional /
# enum wrappers instead of the bare value. These markers are specific to it
# and are not a JSON convention; drop them once the server is fixed.
_CURRENCY_PREFIX = "Optional("
_CURRENCY_SUFFIX = ")"
_ENVIRONMENT_PREFIX = 'Environment(rawValue: "'
_ENVIRONMENT_SUFFIX = '")'

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

# "EEE, dd MMM yyyy HH:mm:ss zzz"
_WIRE_DATE_LAYOUT = re.compile(
    r"(?P<weekday>[A-Z][a-z]{2}), \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} \S+\Z",
    re.ASCII,
)
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_DECIMAL_LITERAL = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def parse_wire_date(value: object) -> datetime | None:
    """
    Parse an RFC-1123 date-time such as ``"Mon, 17 Mar 2025 08:30:00 GMT"``.

    Every part of the layout is required and the weekday must agree with the
    date. Month and weekday names are matched in English regardless of the
    process locale. Zones are GMT/UT/UTC, numeric offsets, or the North
    American abbreviations ``parsedate_tz`` knows; any other zone is rejected
    rather than guessed. Returns an aware UTC datetime, or None.
    """
    if not isinstance(value, str):
        return None
    match = _WIRE_DATE_LAYOUT.match(value.strip())
    if match is None:
        return None

    fields = parsedate_tz(match.group(0))
    if fields is None or fields[9] is None:
        return None
    try:
        parsed = datetime(*fields[:6], tzinfo=timezone(timedelta(seconds=fields[9])))
    except (OverflowError, ValueError):
        return None

    if _WEEKDAYS[parsed.weekday()] != match.group("weekday"):
        return None
    return parsed.astimezone(UTC)


def format_wire_date(value: datetime) -> str:
    """Format a datetime as RFC-1123 in GMT."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return format_datetime(value.astimezone(UTC), usegmt=True)


def unwrap_currency(raw: str) -> str:
    """Strip the ``Optional(...)`` marker and quotes from a currency value."""
    value = raw
    while value.startswith(_CURRENCY_PREFIX) and value.endswith(_CURRENCY_SUFFIX):
        value = value[len(_CURRENCY_PREFIX) : -len(_CURRENCY_SUFFIX)]
    return value.strip('"')


def unwrap_environment(raw: str) -> str:
    """Strip the ``Environment(rawValue: "...")`` marker from an environment value."""
    return raw.removeprefix(_ENVIRONMENT_PREFIX).removesuffix(_ENVIRONMENT_SUFFIX)


def _require_str(payload: Mapping[str, object], key: str) -> str:
    value = payload.get(key)
    if value is None:
        raise DecodingError(key, DecodingErrorKind.MISSING_FIELD, "required field is absent")
    if not isinstance(value, str):
        raise DecodingError(
            key, DecodingErrorKind.TYPE_MISMATCH, f"expected string, got {type(value).__name__}"
        )
    return value


def _read_transaction_id(payload: Mapping[str, object]) -> tuple[int, bool]:
    """Return (id, substituted) for the payload's transactionID."""
    raw = payload.get("transactionID")
    if raw is None:
        raise DecodingError(
            "transactionID", DecodingErrorKind.MISSING_FIELD, "required field is absent"
        )
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        raise DecodingError(
            "transactionID",
            DecodingErrorKind.TYPE_MISMATCH,
            f"expected integer, got {type(raw).__name__}",
        )
    if isinstance(raw, float) and not raw.is_integer():
        raise DecodingError(
            "transactionID", DecodingErrorKind.TYPE_MISMATCH, f"expected integer, got {raw}"
        )

    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise DecodingError(
            "transactionID", DecodingErrorKind.DATA_CORRUPTED, f"{value} does not fit in 64 bits"
        )
    if value > 0:
        return value, False
    # Not collision-free: see decode_transactions(dedupe_fallback_ids=True)
    return int(time.time()), True


def _read_price(value: object) -> float | None:
    if isinstance(value, str):
        # float() alone would also take "1_000", " 5 " and "nan"
        if _DECIMAL_LITERAL.fullmatch(value) is None:
            return None
        return float(value)
    if isinstance(value, int | float) and not isinstance(value, bool):
        return float(value)
    return None


@dataclass(frozen=True)
class Transaction:
    """One completed or refunded in-app purchase."""

    id: int  # Always positive
    product_id: str  # App Store product ID (SKU)
    purchase_date: datetime  # Aware, UTC
    environment: str  # "Production" or "Sandbox"; "" when the backend omits it
    apple_sign_id: str  # Opaque signer / account identifier

    expiration_date: datetime | None = None  # For subscriptions
    revocation_date: datetime | None = None  # If refunded or revoked
    price: float | None = None
    currency: str | None = None

    # True when the backend sent a non-positive transactionID
    fallback_id: bool = field(default=False, compare=False)

    def __post_init__(self) -> None:
        """Validate normalized invariants."""
        if self.id <= 0:
            raise ValueError(f"Transaction id must be positive: {self.id}")
        if self.purchase_date.tzinfo is None:
            raise ValueError("purchase_date must be timezone-aware")

    def is_revoked(self) -> bool:
        """Check if the purchase was refunded or revoked."""
        return self.revocation_date is not None

    def is_sandbox(self) -> bool:
        """Check if this is a sandbox (test) transaction."""
        return self.environment.lower() == "sandbox"

    def is_active(self, at: datetime | None = None) -> bool:
        """Check if the purchase still grants access at the given instant."""
        if self.is_revoked():
            return False
        if self.expiration_date is None:
            return True
        return self.expiration_date > (at or datetime.now(UTC))

    @classmethod
    def from_wire(cls, payload: object) -> "Transaction":
        """
        Decode one wire object into a Transaction.

        Args:
            payload: A decoded JSON object

        Returns:
            Normalized transaction

        Raises:
            DecodingError: If a required field is absent, has the wrong type,
                or purchaseDate cannot be parsed
        """
        if not isinstance(payload, Mapping):
            raise DecodingError(
                None,
                DecodingErrorKind.TYPE_MISMATCH,
                f"expected object, got {type(payload).__name__}",
            )

        transaction_id, substituted = _read_transaction_id(payload)
        product_id = _require_str(payload, "productID")

        purchase_date = parse_wire_date(payload.get("purchaseDate"))
        if purchase_date is None:
            raise DecodingError(
                "purchaseDate", DecodingErrorKind.DATA_CORRUPTED, "Invalid date format"
            )

        raw_currency = payload.get("currency")
        raw_environment = payload.get("environment")

        return cls(
            id=transaction_id,
            product_id=product_id,
            purchase_date=purchase_date,
            environment=(
                unwrap_environment(raw_environment) if isinstance(raw_environment, str) else ""
            ),
            apple_sign_id=_require_str(payload, "appleSignID"),
            expiration_date=parse_wire_date(payload.get("expirationDate")),
            revocation_date=parse_wire_date(payload.get("revocationDate")),
            price=_read_price(payload.get("price")),
            currency=unwrap_currency(raw_currency) if isinstance(raw_currency, str) else None,
            fallback_id=substituted,
        )

    def to_wire(self) -> dict[str, object]:
        """Encode back to the wire shape, without any wrapper markers."""
        data: dict[str, object] = {
            "transactionID": self.id,
            "productID": self.product_id,
            "purchaseDate": format_wire_date(self.purchase_date),
        }
        if self.expiration_date is not None:
            data["expirationDate"] = format_wire_date(self.expiration_date)
        if self.revocation_date is not None:
            data["revocationDate"] = format_wire_date(self.revocation_date)
        if self.price is not None:
            data["price"] = f"{self.price:.2f}"
        if self.currency is not None:
            data["currency"] = self.currency
        data["environment"] = self.environment
        data["appleSignID"] = self.apple_sign_id
        return data


def decode_transactions(
    payload: object,
    *,
    dedupe_fallback_ids: bool = False,
) -> list[Transaction]:
    """
    Decode a wire array into transactions.

    One bad element fails the whole batch.

    Args:
        payload: A decoded JSON value, expected to be an array of objects
        dedupe_fallback_ids: Bump substituted ids that collide within the batch

    Raises:
        DecodingError: If the payload is not an array or any element fails
    """
    if not isinstance(payload, list):
        raise DecodingError(
            None,
            DecodingErrorKind.TYPE_MISMATCH,
            f"expected array, got {type(payload).__name__}",
        )

    transactions = [Transaction.from_wire(item) for item in payload]

    if dedupe_fallback_ids:
        seen = {tx.id for tx in transactions if not tx.fallback_id}
        for index, tx in enumerate(transactions):
            if not tx.fallback_id:
                continue
            unique_id = tx.id
            while unique_id in seen:
                unique_id += 1
            seen.add(unique_id)
            if unique_id != tx.id:
                transactions[index] = replace(tx, id=unique_id)

    return transactions
