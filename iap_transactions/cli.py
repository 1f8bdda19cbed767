"""
Command-line transaction list.

Fetches transactions for a date range / product and prints them most
recent first, followed by a summary line.

Examples:
  # Default window: one month back to two days ahead, all products
  iap-transactions

  # Monthly subscriptions in January, as JSON
  iap-transactions --start 2025-01-01 --end 2025-01-31 --product Me.Monthly.Pro --json
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import date

from iap_transactions.models.api import ALL_PRODUCTS, TransactionFilters
from iap_transactions.models.transaction import Transaction
from iap_transactions.observability import setup_logging
from iap_transactions.services.product_catalog import MEMBERSHIP_PRODUCTS, find_product
from iap_transactions.services.summary import summarize
from iap_transactions.services.transaction_service import TransactionService


def format_row(tx: Transaction) -> str:
    """One line of the transaction list."""
    product = find_product(tx.product_id)
    name = product.name if product else tx.product_id
    marker = "*" if tx.is_revoked() else " "
    price = f"{tx.price or 0.0:.2f} {tx.currency or ''}".rstrip()
    return f"{marker} {tx.purchase_date:%Y-%m-%d %a}  {name:<20} {price:>12}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iap-transactions",
        description="List in-app-purchase transactions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--start", type=date.fromisoformat, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--end", type=date.fromisoformat, help="End date (YYYY-MM-DD)")
    parser.add_argument(
        "--product",
        default=ALL_PRODUCTS,
        help=f"Product ID to restrict to, one of {', '.join(MEMBERSHIP_PRODUCTS)} (default: All)",
    )
    parser.add_argument("--url", help="Override the transactions endpoint")
    parser.add_argument("--json", action="store_true", help="Print records as JSON")
    return parser


async def run(args: argparse.Namespace) -> int:
    default = TransactionFilters.default_window(product_selection=args.product)
    filters = TransactionFilters(
        start_time=args.start or default.start_time,
        end_time=args.end or default.end_time,
        product_id=default.product_id,
    )

    async with TransactionService(transactions_url=args.url) as service:
        transactions = await service.fetch_transactions(
            start_time=filters.start_time,
            end_time=filters.end_time,
            product_id=filters.product_id,
        )
        error_message = service.state.error_message

    if error_message is not None:
        print(error_message, file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([tx.to_wire() for tx in transactions], ensure_ascii=False, indent=2))
        return 0

    if not transactions:
        print("No transactions")
    for tx in transactions:
        print(format_row(tx))
    print(summarize(transactions).describe())
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
