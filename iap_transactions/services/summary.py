"""
Transaction summary - per-tier counts and estimated proceeds for a list.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from iap_transactions.config import settings
from iap_transactions.models.transaction import Transaction
from iap_transactions.services.product_catalog import MembershipTier, find_product


@dataclass(frozen=True)
class TransactionSummary:
    """Totals shown above the transaction list."""

    total: int  # All records, including free and unknown products
    lifetime: int
    monthly: int
    annual: int
    estimated_proceeds: float  # List price total after the store commission

    def describe(self) -> str:
        return (
            f"{self.total} records ({self.monthly} monthly, {self.annual} annual, "
            f"{self.lifetime} lifetime) | proceeds ≈ {self.estimated_proceeds:.1f}"
        )


def summarize(
    transactions: Iterable[Transaction],
    proceeds_rate: float | None = None,
) -> TransactionSummary:
    """
    Summarize a list of transactions.

    Only paid records of known products are counted per tier. A record with
    price exactly 0 is a free trial or offer; a record with no price at all is
    still counted. Proceeds use catalog list prices, not the record price,
    since the backend's price field is not always populated.
    """
    rate = settings.proceeds_rate if proceeds_rate is None else proceeds_rate

    counts = dict.fromkeys(MembershipTier, 0)
    total = 0
    gross = 0.0
    for tx in transactions:
        total += 1
        if tx.price == 0:
            continue
        product = find_product(tx.product_id)
        if product is None:
            continue
        counts[product.tier] += 1
        gross += product.list_price

    return TransactionSummary(
        total=total,
        lifetime=counts[MembershipTier.LIFETIME],
        monthly=counts[MembershipTier.MONTHLY],
        annual=counts[MembershipTier.ANNUAL],
        estimated_proceeds=gross * rate,
    )
