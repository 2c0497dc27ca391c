"""Translate list/statistics query parameters into a repository query."""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from core.entities.transaction import TRANSACTION_TYPES
from core.errors import INVALID_DATE, FieldError, TransactionValidationError
from core.services.dates import end_of_day, month_bounds, parse_datetime, year_bounds

# (поле, направление) - сначала по дате, потом по времени создания
DEFAULT_SORT: Tuple[Tuple[str, str], ...] = (("date", "desc"), ("created_at", "desc"))

# OFFSET в sqlite - знаковое 64-битное целое
MAX_OFFSET = 2 ** 63 - 1


@dataclass
class DateRange:
    start: datetime
    end: datetime


@dataclass
class TransactionFilter:
    user_id: int
    type: Optional[str] = None
    category: Optional[str] = None
    date_range: Optional[DateRange] = None


@dataclass
class PageRequest:
    page: int = 1
    limit: int = 10
    sort: Tuple[Tuple[str, str], ...] = field(default=DEFAULT_SORT)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.limit) if total else 0


def _invalid_date(field_name: str, message: str) -> TransactionValidationError:
    return TransactionValidationError([FieldError(INVALID_DATE, field_name, message)])


def resolve_date_range(
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> Optional[DateRange]:
    """Pick the date window: explicit range, then month+year, then year alone."""
    if start_date and end_date:
        try:
            start, _ = parse_datetime(start_date)
        except ValueError:
            raise _invalid_date("startDate", "startDate must be a valid ISO date")
        try:
            end, date_only = parse_datetime(end_date)
        except ValueError:
            raise _invalid_date("endDate", "endDate must be a valid ISO date")
        return DateRange(start=start, end=end_of_day(end) if date_only else end)

    if month is not None and year is not None:
        try:
            start, end = month_bounds(int(year), int(month))
        except ValueError:
            raise _invalid_date("month", "Month must be between 1 and 12 and year must be valid")
        return DateRange(start=start, end=end)

    if year is not None:
        try:
            start, end = year_bounds(int(year))
        except ValueError:
            raise _invalid_date("year", "Year must be valid")
        return DateRange(start=start, end=end)

    return None


def build_transaction_filter(
    user_id: int,
    type: Optional[str] = None,
    category: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
) -> TransactionFilter:
    return TransactionFilter(
        user_id=user_id,
        # неизвестный тип просто игнорируем, это не ошибка
        type=type if type in TRANSACTION_TYPES else None,
        category=category or None,
        date_range=resolve_date_range(start_date, end_date, month, year),
    )


def build_page_request(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    default_limit: int = 10,
    max_limit: int = 100,
) -> PageRequest:
    page = max(1, int(page or 1))
    limit = max(1, min(max_limit, int(limit or default_limit)))
    page = min(page, MAX_OFFSET // limit + 1)
    return PageRequest(page=page, limit=limit)
