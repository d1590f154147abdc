"""Token level classification: NULL spellings, numbers, dates and booleans."""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Iterator, Optional

from dateutil import parser as dateparser

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

NULL_SPELLINGS = frozenset({"null", "n/a", "#n/a", "<null>", "(null)"})

BIT_TRUE = frozenset({"true", "yes", "1", "on", "t", "y"})
BIT_FALSE = frozenset({"false", "no", "0", "off", "f", "n"})
BOOLEAN_LITERALS = frozenset({"true", "false", "yes", "no", "on", "off", "0", "1"})

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_LEADING_ZERO_RE = re.compile(r"^[+-]?0[0-9]")
_DECIMAL_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")

_MONTH = (
    r"(?:jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    r"aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)\.?"
)
_WEEKDAY = r"(?:mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)(?:day|nesday|sday|urday)?\.?"
_TIME = r"(?:[ T]\d{1,2}:\d{2}(?::\d{2}(?:\.\d{1,7})?)?(?:\s*[ap]m)?)?"

DATE_PATTERNS = [
    # ISO-8601
    re.compile(r"^\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}:\d{2}(?:\.\d{1,7})?(?:Z|[+-]\d{2}:?\d{2})?$"),
    re.compile(r"^\d{4}-\d{2}-\d{2}$"),
    # US M/D/YYYY and EU D/M/YYYY share a shape
    re.compile(r"^\d{1,2}/\d{1,2}/\d{4}" + _TIME + r"$", re.IGNORECASE),
    re.compile(r"^\d{1,2}[.-]\d{1,2}[.-]\d{4}" + _TIME + r"$", re.IGNORECASE),
    # March 5, 2024 / 5 March 2024
    re.compile(r"^" + _MONTH + r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}" + _TIME + r"$", re.IGNORECASE),
    re.compile(r"^\d{1,2}(?:st|nd|rd|th)?\s+" + _MONTH + r",?\s+\d{4}" + _TIME + r"$", re.IGNORECASE),
    # Tuesday, March 5, 2024 / Tue, 05 Mar 2024 10:00:00
    re.compile(r"^" + _WEEKDAY + r",?\s+.*" + _MONTH + r".*\d{4}", re.IGNORECASE),
]

_NUMERIC_DATE_SHAPE = re.compile(r"^(\d{1,4})[-/.](\d{1,2})[-/.](\d{1,4})(?:$|[ T])")
_MONTH_WORD = re.compile(r"\b" + _MONTH + r"(?:\b|$)", re.IGNORECASE)

# Missing date parts are filled from here so parsing never depends on today.
_DEFAULT_DATE = datetime(1900, 1, 1)

# .NET System.Decimal: at most 96-bit magnitude and 28 fractional digits.
DECIMAL_LIMIT = Decimal("79228162514264337593543950336")
MAX_DECIMAL_SCALE = 28


class DateCulture(str, Enum):
    """
    Culture used as the fallback when invariant date parsing fails.

    Invariant parsing is month-first (``03/05/2024`` is March 5th). The
    European culture retries day-first, so ``13/05/2024`` still parses.
    """

    INVARIANT = "invariant"
    EUROPEAN = "eu"

    @property
    def dayfirst(self) -> bool:
        return self is DateCulture.EUROPEAN


DEFAULT_CULTURE = DateCulture.EUROPEAN


def is_null_representation(value: Optional[str]) -> bool:
    """Check whether a raw value stands for SQL NULL."""
    if value is None:
        return True
    text = value.strip()
    return not text or text.lower() in NULL_SPELLINGS


def strip_thousands(value: str) -> str:
    """Remove ``.`` and ``,`` grouping characters for integer parsing."""
    return value.replace(".", "").replace(",", "")


def normalize_decimal(value: str) -> str:
    """
    Rewrite a European decimal (``1.234,5``) to dot notation (``1234.5``).

    Values without a comma are returned unchanged.
    """
    if "," in value:
        return value.replace(".", "").replace(",", ".")
    return value


def parse_int64(value: str) -> Optional[int]:
    """Parse a signed 64-bit integer, or return None."""
    text = value.strip()
    if not _INT_RE.match(text):
        return None
    number = int(text)
    if INT64_MIN <= number <= INT64_MAX:
        return number
    return None


def parse_decimal(value: str) -> Optional[Decimal]:
    """
    Parse a decimal after European comma normalization, or return None.

    Values outside the SQL Server / .NET decimal range give None. Digits
    beyond 28 decimal places are rounded away, so the result always has a
    short fixed-point form.
    """
    text = normalize_decimal(value.strip())
    if not _DECIMAL_RE.match(text):
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None

    if number.copy_abs() >= DECIMAL_LIMIT:
        return None
    if number.as_tuple().exponent < -MAX_DECIMAL_SCALE:
        # 29 integer digits + 28 fractional digits fit in 60
        with localcontext() as ctx:
            ctx.prec = 60
            number = number.quantize(Decimal(1).scaleb(-MAX_DECIMAL_SCALE))
    return number


def has_leading_zero(value: str) -> bool:
    """True for zero padded codes like ``0001`` (but not ``0``)."""
    return bool(_LEADING_ZERO_RE.match(value.strip()))


def has_decimal_separator(value: str) -> bool:
    return "." in value or "," in value


def matches_date_pattern(value: str) -> bool:
    """Check a value against the fixed ISO, US, EU and textual date patterns."""
    text = value.strip()
    return any(p.match(text) for p in DATE_PATTERNS)


def _looks_like_date(text: str) -> bool:
    # dateutil happily turns "12", "1.5" or "Sep" into dates; only feed it
    # separated numeric dates or strings naming a month next to a number.
    if _NUMERIC_DATE_SHAPE.match(text):
        return True
    return bool(_MONTH_WORD.search(text)) and any(c.isdigit() for c in text)


def _dayfirst_order(culture: DateCulture) -> Iterator[bool]:
    yield False
    if culture.dayfirst:
        yield True


def _month_first_month(text: str) -> Optional[int]:
    """Month a numeric date must have when read month first (year-first ISO reads it second)."""
    match = _NUMERIC_DATE_SHAPE.match(text)
    if not match:
        return None
    first, second, _ = match.groups()
    return int(second) if len(first) == 4 else int(first)


def parse_datetime(value: str, culture: DateCulture = DEFAULT_CULTURE) -> Optional[datetime]:
    """
    Parse a date/time, trying the invariant culture first, then ``culture``.

    The invariant pass is strictly month first. dateutil swaps day and month
    when the first number cannot be a month, so such results are rejected
    there and only accepted by a day-first culture.

    Args:
        value: Raw value
        culture: Fallback culture

    Returns:
        Parsed datetime or None
    """
    text = value.strip()
    if not text or not _looks_like_date(text):
        return None

    expected_month = _month_first_month(text)

    for dayfirst in _dayfirst_order(culture):
        try:
            parsed = dateparser.parse(text, dayfirst=dayfirst, default=_DEFAULT_DATE)
        except (ValueError, OverflowError):
            continue
        if not dayfirst and expected_month is not None and parsed.month != expected_month:
            continue
        return parsed
    return None


def is_boolean_literal(value: str) -> bool:
    """Detection set for BIT columns: true/false, yes/no, on/off, 0/1."""
    return value.strip().lower() in BOOLEAN_LITERALS


def parse_bit(value: str) -> Optional[bool]:
    """Map a boolean spelling to True/False, or return None."""
    cleaned = strip_thousands(value.strip().lower())
    if cleaned in BIT_TRUE:
        return True
    if cleaned in BIT_FALSE:
        return False
    return None
