"""Date helpers for report ranges and result rows.

two formats show up everywhere: queries take ISO dates (2010-01-31) while
the api hands back the date dimension compacted (20100131). everything here
is a plain function on values - no shared formatter objects to trip over.
"""

from datetime import date, datetime, timedelta

from seriesforge.exceptions import DateFormatError

QUERY_DATE_FORMAT = "%Y-%m-%d"
RESULT_DATE_FORMAT = "%Y%m%d"


def parse_query_date(value: date | str) -> date:
    """Parse an ISO query date, passing date objects through."""
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, QUERY_DATE_FORMAT).date()
    except (TypeError, ValueError) as e:
        raise DateFormatError(f"Invalid query date {value!r}: {e}") from e


def parse_result_date(value: str) -> date:
    """Parse a YYYYMMDD date as returned by the api.

    strptime happily accepts single-digit months and days, which makes
    "2010011" ambiguous - so insist on exactly eight digits first.
    """
    if not isinstance(value, str) or len(value) != 8 or not value.isdigit():
        raise DateFormatError(f"Invalid result date {value!r}: expected YYYYMMDD")
    try:
        return datetime.strptime(value, RESULT_DATE_FORMAT).date()
    except ValueError as e:
        raise DateFormatError(f"Invalid result date {value!r}: {e}") from e


def number_of_days(start: date | str, end: date | str) -> int:
    """Number of days in the range, counting both ends."""
    return (parse_query_date(end) - parse_query_date(start)).days + 1


def list_of_dates(start: date | str, end: date | str) -> list[str]:
    """Every date in the range as YYYY-MM-DD, oldest first."""
    first = parse_query_date(start)
    return [
        (first + timedelta(days=offset)).strftime(QUERY_DATE_FORMAT)
        for offset in range(number_of_days(start, end))
    ]


def to_result_date_format(query_date: date | str) -> str:
    """Convert a query date into the compact format the api returns."""
    return parse_query_date(query_date).strftime(RESULT_DATE_FORMAT)


def next_result_date(value: str) -> str:
    """The day after a YYYYMMDD date, in the same format."""
    return (parse_result_date(value) + timedelta(days=1)).strftime(RESULT_DATE_FORMAT)


def days_between(start: str, end: str) -> int:
    """Whole days from start to end (both YYYYMMDD). Negative if end is earlier."""
    return (parse_result_date(end) - parse_result_date(start)).days
