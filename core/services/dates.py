import calendar
import re
from datetime import date, datetime, time, timezone
from typing import Tuple, Union

from pydantic import TypeAdapter, ValidationError

# только календарный день, без времени: верхняя граница растягивается до конца дня
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_date_adapter = TypeAdapter(date)
_datetime_adapter = TypeAdapter(datetime)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC, aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    try:
        return value.astimezone(timezone.utc)
    except OverflowError:
        raise ValueError("Date is out of range")


def parse_datetime(value: Union[str, date, datetime]) -> Tuple[datetime, bool]:
    """Parse an ISO-8601 date or datetime with pydantic.

    Returns the UTC datetime and whether the input carried only a calendar day,
    so callers can stretch an inclusive upper bound to the end of that day.
    Raises ValueError when the value can't be parsed or leaves the datetime range.
    """
    if isinstance(value, str) and _DATE_ONLY_RE.match(value.strip()):
        try:
            day = _date_adapter.validate_python(value.strip())
        except ValidationError as e:
            raise ValueError(f"Invalid date: {value!r}") from e
        return datetime.combine(day, time.min, tzinfo=timezone.utc), True
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc), True
    try:
        parsed = _datetime_adapter.validate_python(value)
    except ValidationError as e:
        raise ValueError(f"Invalid date: {value!r}") from e
    return as_utc(parsed), False


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.max, tzinfo=value.tzinfo or timezone.utc)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise ValueError("Month must be between 1 and 12")
    try:
        last_day = calendar.monthrange(year, month)[1]
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        end = datetime(year, month, last_day, tzinfo=timezone.utc)
    except OverflowError:
        raise ValueError("Year is out of range")
    return start, end_of_day(end)


def year_bounds(year: int) -> Tuple[datetime, datetime]:
    try:
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year, 12, 31, tzinfo=timezone.utc)
    except OverflowError:
        raise ValueError("Year is out of range")
    return start, end_of_day(end)
