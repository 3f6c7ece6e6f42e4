"""
Value objects for the numeric field types that have a human-readable form.

- ``Timestamp``: seconds since the Unix epoch, stored as an int.
- ``JulianDay``: a date stored as its Julian Day Number.
- ``Currency``: US currency stored as integer pennies.
- ``parse_number`` / ``readable_number``: numeric coercion and grouped-digit display.

Timestamps and Julian days are interpreted in local time.
"""

from __future__ import annotations

import re
import time
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

Number = Union[int, float]

_NUMERIC_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")

# Formats tried, in order, for human-entered dates and times.
_DATETIME_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%b %d %Y",
)

# Offset between date.toordinal() (0001-01-01 == 1) and the Julian Day Number.
_JDN_OFFSET = 1721425


def is_numeric(value: Any) -> bool:
    """True for ints, floats, Decimals and strings that spell a number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value))


def parse_number(value: Any) -> Number:
    """
    Convert a numeric value or numeric text to an int (when integral) or float.

    Raises
    ------
    ValueError
        If the value is not numeric.
    """
    if not is_numeric(value):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, int):
        return value
    number = Decimal(str(value).strip())
    if number == number.to_integral_value() and "e" not in str(value).lower():
        return int(number)
    return float(number)


def readable_number(value: Any) -> str:
    """Format a number with thousands separators; empty values become ''."""
    if value is None or value == "":
        return ""
    return f"{parse_number(value):,}"


def parse_readable_number(text: Any) -> Optional[Number]:
    """Inverse of readable_number: strips separators and parses the result."""
    if text is None or (isinstance(text, str) and not text.strip()):
        return None
    if isinstance(text, str):
        text = text.replace(",", "").strip()
    return parse_number(text)


def _parse_datetime_text(text: str) -> datetime:
    cleaned = " ".join(text.strip().split())
    keyword = cleaned.lower()
    if keyword == "now":
        return datetime.now()
    today = datetime.combine(date.today(), datetime.min.time())
    if keyword == "today":
        return today
    if keyword == "yesterday":
        return today - timedelta(days=1)
    if keyword == "tomorrow":
        return today + timedelta(days=1)
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        pass
    for fmt in _DATETIME_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date or time: {text!r}")


class Timestamp:
    """A point in time stored as whole seconds since the Unix epoch."""

    default_format = "%Y-%m-%d %H:%M:%S"

    def __init__(self, value: Optional[int]) -> None:
        self.value = value

    @classmethod
    def parse(cls, value: Any) -> "Timestamp":
        """Accept epoch seconds, numeric text, a datetime/date, or a human-entered string."""
        if value is None or value == "":
            return cls(None)
        if isinstance(value, Timestamp):
            return cls(value.value)
        if isinstance(value, datetime):
            return cls(int(value.timestamp()))
        if isinstance(value, date):
            return cls(int(datetime.combine(value, datetime.min.time()).timestamp()))
        if is_numeric(value):
            return cls(int(parse_number(value)))
        if isinstance(value, str):
            return cls(int(_parse_datetime_text(value).timestamp()))
        raise ValueError(f"Cannot interpret {value!r} as a timestamp")

    @classmethod
    def current(cls) -> "Timestamp":
        return cls(int(time.time()))

    def to_datetime(self) -> Optional[datetime]:
        if self.value is None:
            return None
        return datetime.fromtimestamp(self.value)

    def readable(self, fmt: Optional[str] = None) -> str:
        moment = self.to_datetime()
        if moment is None:
            return ""
        return moment.strftime(fmt or self.default_format)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Timestamp) and other.value == self.value

    def __repr__(self) -> str:
        return f"Timestamp({self.value!r})"


class JulianDay:
    """A calendar date stored as its Julian Day Number."""

    default_format = "%m/%d/%Y"

    def __init__(self, value: Optional[int]) -> None:
        self.value = value

    @classmethod
    def from_date(cls, day: date) -> "JulianDay":
        return cls(day.toordinal() + _JDN_OFFSET)

    @classmethod
    def parse(cls, value: Any) -> "JulianDay":
        """Accept a day number, numeric text, a date/datetime, or a human-entered string."""
        if value is None or value == "":
            return cls(None)
        if isinstance(value, JulianDay):
            return cls(value.value)
        if isinstance(value, datetime):
            return cls.from_date(value.date())
        if isinstance(value, date):
            return cls.from_date(value)
        if is_numeric(value):
            return cls(int(parse_number(value)))
        if isinstance(value, str):
            return cls.from_date(_parse_datetime_text(value).date())
        raise ValueError(f"Cannot interpret {value!r} as a date")

    @classmethod
    def current(cls) -> "JulianDay":
        return cls.from_date(date.today())

    def to_date(self) -> Optional[date]:
        if self.value is None:
            return None
        return date.fromordinal(self.value - _JDN_OFFSET)

    def readable(self, fmt: Optional[str] = None) -> str:
        day = self.to_date()
        if day is None:
            return ""
        return day.strftime(fmt or self.default_format)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, JulianDay) and other.value == self.value

    def __repr__(self) -> str:
        return f"JulianDay({self.value!r})"


class Currency:
    """US currency amounts held as integer pennies."""

    symbol = "$"
    _CENT = Decimal("0.01")

    @classmethod
    def has_symbol(cls, text: str) -> bool:
        return text.strip().lstrip("-+( ").startswith(cls.symbol)

    @classmethod
    def parse(cls, value: Any) -> Optional[int]:
        """
        Convert a raw value to pennies.

        Numbers and plain numeric text are taken as pennies already; text with
        a leading currency symbol (``$1,234.50``, ``-$3``, ``($3.00)``) is read as
        dollars and converted.
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if isinstance(value, str) and cls.has_symbol(value):
            return cls.parse_dollars(value)
        return int(round(parse_number(value)))

    @classmethod
    def parse_dollars(cls, text: Any) -> Optional[int]:
        """Read dollars (with or without symbol and separators) and return pennies."""
        if text is None or (isinstance(text, str) and not text.strip()):
            return None
        raw = str(text).strip()
        negative = raw.startswith("-") or (raw.startswith("(") and raw.endswith(")"))
        digits = raw.strip("()").replace(cls.symbol, "").replace(",", "").strip().lstrip("-+").strip()
        try:
            dollars = Decimal(digits)
        except InvalidOperation as exc:
            raise ValueError(f"Not a currency value: {text!r}") from exc
        pennies = int((dollars / cls._CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return -pennies if negative else pennies

    @classmethod
    def readable(cls, pennies: Any) -> str:
        """Format pennies as ``$1,234.56``; empty values become ''."""
        if pennies is None or pennies == "":
            return ""
        amount = Decimal(int(parse_number(pennies))) * cls._CENT
        sign = "-" if amount < 0 else ""
        return f"{sign}{cls.symbol}{abs(amount):,.2f}"


__all__ = [
    "Currency",
    "JulianDay",
    "Timestamp",
    "is_numeric",
    "parse_number",
    "parse_readable_number",
    "readable_number",
]
