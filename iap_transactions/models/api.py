"""
API Models - Pydantic models for the request filters and the error body.

NO DICTIONARIES - Query parameters are built from a typed model.
"""

import calendar
from datetime import date, datetime, timedelta

from pydantic import BaseModel, ConfigDict, field_validator

# Picker sentinel meaning "no product filter"
ALL_PRODUCTS = "All"


def _months_before(day: date, months: int) -> date:
    """Same day-of-month `months` earlier, clamped to the target month's length."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    return day.replace(
        year=year, month=month, day=min(day.day, calendar.monthrange(year, month)[1])
    )


class TransactionFilters(BaseModel):
    """Optional bounds applied to one fetch. Absent bounds are not sent."""

    model_config = ConfigDict(frozen=True)

    start_time: str | None = None  # yyyy-MM-dd, inclusive
    end_time: str | None = None  # yyyy-MM-dd, inclusive
    product_id: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def format_date(cls, value: object) -> object:
        """Render date values in the yyyy-MM-dd form the backend expects."""
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return value

    @field_validator("start_time", "end_time", "product_id")
    @classmethod
    def empty_as_absent(cls, value: str | None) -> str | None:
        """Treat empty strings as an absent filter."""
        return value or None

    def query_params(self) -> list[tuple[str, str]]:
        """Query parameters for the supplied filters, in wire order."""
        params: list[tuple[str, str]] = []
        if self.start_time is not None:
            params.append(("start_time", self.start_time))
        if self.end_time is not None:
            params.append(("end_time", self.end_time))
        if self.product_id is not None:
            params.append(("productID", self.product_id))
        return params

    @classmethod
    def from_selection(
        cls,
        start: date,
        end: date,
        product_selection: str = ALL_PRODUCTS,
    ) -> "TransactionFilters":
        """Build filters from a date range and a product picker selection."""
        return cls(
            start_time=start,
            end_time=end,
            product_id=None if product_selection == ALL_PRODUCTS else product_selection,
        )

    @classmethod
    def default_window(
        cls,
        today: date | None = None,
        product_selection: str = ALL_PRODUCTS,
    ) -> "TransactionFilters":
        """
        The initial range of the transaction list: one month back to two days ahead.

        The end bound is pushed forward so purchases made today in time zones
        ahead of the backend's are not cut off.
        """
        today = today or date.today()
        return cls.from_selection(
            _months_before(today, 1),
            today + timedelta(days=2),
            product_selection,
        )


class ErrorResponse(BaseModel):
    """Body returned instead of a transaction array when the backend rejects a request."""

    error: str
