"""Command line flag values: date methods, date ranges, server error policy, extensions."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo

ON_SERVER_ERRORS_STOP = 0
ON_SERVER_ERRORS_STOP_AFTER = 1
ON_SERVER_ERRORS_NEVER_STOP = -1


class DateMethod(str, enum.Enum):
    """Where the capture date of an asset is taken from."""

    NONE = "NONE"
    NAME = "FILENAME"
    EXIF = "EXIF"
    NAME_THEN_EXIF = "FILENAME-EXIF"
    EXIF_THEN_NAME = "EXIF-FILENAME"

    def __str__(self) -> str:
        return self.value


def parse_date_method(value: str) -> DateMethod:
    """Parse a date method name, case-insensitively; an empty value means NONE."""
    text = value.upper().strip()
    if text == "":
        text = DateMethod.NONE.value
    try:
        return DateMethod(text)
    except ValueError:
        raise ValueError(
            f"invalid DateMethod: {text}, expecting NONE|FILENAME|EXIF|FILENAME-EXIF|EXIF-FILENAME"
        ) from None


_YEAR_RE = re.compile(r"([0-9]{4})")
_MONTH_RE = re.compile(r"([0-9]{4})-([0-9]{2})")
_DAY_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")


def _parse_date(text: str, pattern: re.Pattern[str], tz: tzinfo | None) -> datetime:
    match = pattern.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid date range:{text}")
    parts = [int(g) for g in match.groups()]
    parts += [1] * (3 - len(parts))
    try:
        return datetime(parts[0], parts[1], parts[2], tzinfo=tz)
    except ValueError as exc:
        raise ValueError(f"invalid date range:{exc}") from exc


def _next_month(d: datetime) -> datetime:
    if d.month == 12:
        return d.replace(year=d.year + 1, month=1)
    return d.replace(month=d.month + 1)


class DateRange:
    """A range of capture dates: a day, a month, a year or two days.

    Accepted forms: ``2022``, ``2022-01``, ``2022-01-01`` and
    ``2022-01-01,2022-12-31``. A time zone of None means local time.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz
        self.after: datetime | None = None
        self.before: datetime | None = None
        self._day = False
        self._month = False
        self._year = False
        self._set = False
        self._s = ""

    def is_set(self) -> bool:
        return self._set

    def __str__(self) -> str:
        if not self._set or self.after is None or self.before is None:
            return "unset"
        a = self.after
        if self._day:
            return f"{a.year:04d}-{a.month:02d}-{a.day:02d}"
        if self._month:
            return f"{a.year:04d}-{a.month:02d}"
        if self._year:
            return f"{a.year:04d}"
        b = self.before - timedelta(days=1)
        return f"{a.year:04d}-{a.month:02d}-{a.day:02d},{b.year:04d}-{b.month:02d}-{b.day:02d}"

    def set_tz(self, tz: tzinfo | None) -> None:
        """Change the time zone, recomputing the range when it is set."""
        self.tz = tz
        if self._set:
            self.set(self._s)

    def set(self, value: str) -> None:
        """Parse the range; raise ValueError when it is not valid."""
        day = month = year = False
        length = len(value)
        if length == 4:
            year = True
            after = _parse_date(value, _YEAR_RE, self.tz)
            before = after.replace(year=after.year + 1)
        elif length == 7:
            month = True
            after = _parse_date(value, _MONTH_RE, self.tz)
            before = _next_month(after)
        elif length == 10:
            day = True
            after = _parse_date(value, _DAY_RE, self.tz)
            before = after + timedelta(days=1)
        elif length == 21:
            after = _parse_date(value[:10], _DAY_RE, self.tz)
            before = _parse_date(value[11:], _DAY_RE, self.tz) + timedelta(days=1)
        else:
            self._set = False
            raise ValueError(f"invalid date range:{value}")
        self.after, self.before = after, before
        self._day, self._month, self._year = day, month, year
        self._set = True
        self._s = value

    def _align(self, d: datetime) -> datetime:
        assert self.after is not None
        if self.after.tzinfo is None and d.tzinfo is not None:
            return d.astimezone().replace(tzinfo=None)
        if self.after.tzinfo is not None and d.tzinfo is None:
            return d.astimezone()
        return d

    def in_range(self, d: datetime) -> bool:
        """Tell whether d is within the range; an unset range holds every date."""
        if not self._set or self.after is None or self.before is None:
            return True
        d = self._align(d)
        return self.after <= d < self.before


def init_date_range(tz: tzinfo | None, s: str) -> DateRange:
    """Build a date range from a string, ignoring errors."""
    dr = DateRange(tz)
    try:
        dr.set(s)
    except ValueError:
        pass
    return dr


_INT_RE = re.compile(r"[+-]?[0-9]+")


def parse_on_server_errors(value: str) -> int:
    """Parse the on-server-errors policy: stop (0), continue (-1) or a count."""
    lowered = value.lower()
    if lowered == "stop":
        return ON_SERVER_ERRORS_STOP
    if lowered == "continue":
        return ON_SERVER_ERRORS_NEVER_STOP
    if _INT_RE.fullmatch(value) is None:
        raise ValueError(f"invalid value for on-server-errors: {value}")
    return int(value)


def describe_on_server_errors(value: int) -> str:
    """Describe an on-server-errors policy value."""
    if value == ON_SERVER_ERRORS_STOP:
        return "stop"
    if value == ON_SERVER_ERRORS_NEVER_STOP:
        return "continue"
    if value >= ON_SERVER_ERRORS_STOP_AFTER:
        return f"stop after {value} errors"
    return "unknown"


class ExtensionList(list):
    """A list of file extensions such as ``.jpg``."""

    def validate(self) -> "ExtensionList":
        """Return the list with extensions lower-cased and prefixed with a dot."""
        out = ExtensionList()
        for ext in self:
            ext = ext.strip().lower()
            if not ext.startswith("."):
                ext = "." + ext
            out.append(ext)
        return out

    def include(self, ext: str) -> bool:
        """An empty list includes everything."""
        if not self:
            return True
        return ext.lower() in self

    def exclude(self, ext: str) -> bool:
        """An empty list excludes nothing."""
        if not self:
            return False
        return ext.lower() in self

    def add(self, value: str) -> None:
        """Append the comma separated extensions of value."""
        for ext in value.split(","):
            ext = ext.strip()
            if ext:
                self.append(ext)

    def __str__(self) -> str:
        return ", ".join(self)


@dataclass
class InclusionFlags:
    """Flags that select which files are taken."""

    excluded_extensions: ExtensionList = field(default_factory=ExtensionList)
    included_extensions: ExtensionList = field(default_factory=ExtensionList)
    date_range: DateRange = field(default_factory=DateRange)

    def validate(self) -> None:
        self.excluded_extensions = ExtensionList(self.excluded_extensions).validate()
        self.included_extensions = ExtensionList(self.included_extensions).validate()