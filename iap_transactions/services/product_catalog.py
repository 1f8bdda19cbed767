"""
Membership product catalog configuration.

Maps App Store product IDs to membership tiers and list prices.
Product IDs must match those configured in App Store Connect.
"""

from dataclasses import dataclass
from enum import Enum


class MembershipTier(str, Enum):
    """Membership tier sold by a product."""

    LIFETIME = "lifetime"
    MONTHLY = "monthly"
    ANNUAL = "annual"


@dataclass(frozen=True)
class MembershipProduct:
    """Membership product configuration."""

    product_id: str  # App Store Connect product ID
    tier: MembershipTier
    name: str  # Display name
    list_price: float  # CNY, before the store commission

    def __post_init__(self) -> None:
        """Validate product configuration."""
        if not self.product_id:
            raise ValueError("Product ID required")
        if not self.name:
            raise ValueError("Name required")
        if self.list_price <= 0:
            raise ValueError(f"List price must be positive: {self.list_price}")


# Product catalog (must match App Store Connect configuration).
# "Me.LifeTimeRro" is the ID as registered, typo included.
MEMBERSHIP_PRODUCTS: dict[str, MembershipProduct] = {
    "Me.LifeTimeRro": MembershipProduct(
        product_id="Me.LifeTimeRro",
        tier=MembershipTier.LIFETIME,
        name="Lifetime Membership",
        list_price=68.0,
    ),
    "Me.Monthly.Pro": MembershipProduct(
        product_id="Me.Monthly.Pro",
        tier=MembershipTier.MONTHLY,
        name="Monthly",
        list_price=5.0,
    ),
    "Me.Annual.Pro": MembershipProduct(
        product_id="Me.Annual.Pro",
        tier=MembershipTier.ANNUAL,
        name="Annual",
        list_price=48.0,
    ),
}


def find_product(product_id: str) -> MembershipProduct | None:
    """
    Look up a product by ID.

    Unknown IDs return None; callers decide how to present them.
    """
    return MEMBERSHIP_PRODUCTS.get(product_id)


def get_product(product_id: str) -> MembershipProduct:
    """
    Get product configuration by ID.

    Args:
        product_id: App Store product ID

    Returns:
        Product configuration

    Raises:
        ValueError: If product ID not found
    """
    product = find_product(product_id)
    if not product:
        raise ValueError(f"Unknown product ID: {product_id}")
    return product
