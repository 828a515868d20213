"""
Date pattern formatting and parsing for rollbox.

Archive suffixes are described with Qt-style date patterns such as
``".yyyy-MM-dd"``. The same pattern is used to format the suffix of a file
being rotated out and to parse the suffix back when looking for old archives,
so both directions live here.

Supported fields:

    yyyy, yy        year (four digits, two digits)
    MMMM, MMM       month name (January, Jan)
    MM, M           month number (zero padded, plain)
    dddd, ddd       day name (Monday, Mon)
    dd, d           day of month
    HH, H           hour, 0-23
    hh, h           hour, 0-23, or 1-12 when an AM/PM marker is present
    mm, m           minute
    ss, s           second
    zzz, z          millisecond
    AP, A           AM/PM marker
    ap, a           am/pm marker
    ww, w           week of year, weeks starting on Sunday

Text inside single quotes is literal, ``''`` is a literal quote, and any other
character (including unrecognized letters) is copied as is. Names are always
English so that file names do not depend on the process locale.
"""

import re
from datetime import date, datetime, timedelta
from functools import lru_cache
from typing import List, Optional, Tuple

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# Longest tokens first so that "yyyy" wins over "yy" and "AP" over "A"
FIELD_TOKENS = (
    "yyyy", "yy",
    "MMMM", "MMM", "MM", "M",
    "dddd", "ddd", "dd", "d",
    "HH", "H", "hh", "h",
    "mm", "m",
    "ss", "s",
    "zzz", "z",
    "AP", "A", "ap", "a",
    "ww", "w",
)

MARKER_TOKENS = ("AP", "A", "ap", "a")

_FIELD_REGEX = {
    "yyyy": r"\d{4}",
    "yy": r"\d{2}",
    "MMMM": "|".join(MONTH_NAMES),
    "MMM": "|".join(name[:3] for name in MONTH_NAMES),
    "MM": r"\d{2}",
    "M": r"\d{1,2}",
    "dddd": "|".join(DAY_NAMES),
    "ddd": "|".join(name[:3] for name in DAY_NAMES),
    "dd": r"\d{2}",
    "d": r"\d{1,2}",
    "HH": r"\d{2}",
    "H": r"\d{1,2}",
    "hh": r"\d{2}",
    "h": r"\d{1,2}",
    "mm": r"\d{2}",
    "m": r"\d{1,2}",
    "ss": r"\d{2}",
    "s": r"\d{1,2}",
    "zzz": r"\d{3}",
    "z": r"\d{1,3}",
    "AP": "AM|PM",
    "A": "AM|PM",
    "ap": "am|pm",
    "a": "am|pm",
    "ww": r"\d{2}",
    "w": r"\d{1,2}",
}


@lru_cache(maxsize=64)
def tokenize(pattern: str) -> Tuple[Tuple[str, str], ...]:
    """
    Split a date pattern into ("field", token) and ("literal", text) parts.

    Args:
        pattern: Qt-style date pattern

    Returns:
        Tuple of (kind, value) pairs, adjacent literals merged
    """
    tokens: List[Tuple[str, str]] = []

    def add_literal(text):
        if tokens and tokens[-1][0] == "literal":
            tokens[-1] = ("literal", tokens[-1][1] + text)
        else:
            tokens.append(("literal", text))

    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "'":
            if pattern.startswith("''", i):
                add_literal("'")
                i += 2
                continue
            end = pattern.find("'", i + 1)
            if end == -1:
                end = len(pattern)
            add_literal(pattern[i + 1:end])
            i = end + 1
            continue

        for token in FIELD_TOKENS:
            if pattern.startswith(token, i):
                tokens.append(("field", token))
                i += len(token)
                break
        else:
            add_literal(char)
            i += 1

    return tuple(tokens)


def has_marker(pattern: str) -> bool:
    """Check whether a pattern contains an AM/PM marker."""
    return any(kind == "field" and value in MARKER_TOKENS for kind, value in tokenize(pattern))


def week_of_year(value) -> int:
    """Week number of the year, weeks starting on Sunday (strftime %U)."""
    return int(value.strftime("%U"))


def week_start(year: int, week: int) -> date:
    """
    Get the Sunday that starts the given week of the given year.

    Week 1 starts on the first Sunday of the year; the days before it belong to
    week 0, whose Sunday falls in the previous year.
    """
    jan1 = date(year, 1, 1)
    first_sunday = jan1 + timedelta(days=(6 - jan1.weekday()) % 7)
    return first_sunday + timedelta(weeks=week - 1)


def _format_field(token, value, twelve_hour):
    if token == "yyyy":
        return f"{value.year:04d}"
    if token == "yy":
        return f"{value.year % 100:02d}"
    if token == "MMMM":
        return MONTH_NAMES[value.month - 1]
    if token == "MMM":
        return MONTH_NAMES[value.month - 1][:3]
    if token == "MM":
        return f"{value.month:02d}"
    if token == "M":
        return str(value.month)
    if token == "dddd":
        return DAY_NAMES[value.weekday()]
    if token == "ddd":
        return DAY_NAMES[value.weekday()][:3]
    if token == "dd":
        return f"{value.day:02d}"
    if token == "d":
        return str(value.day)
    if token in ("hh", "h"):
        hour = (value.hour % 12 or 12) if twelve_hour else value.hour
        return f"{hour:02d}" if token == "hh" else str(hour)
    if token == "HH":
        return f"{value.hour:02d}"
    if token == "H":
        return str(value.hour)
    if token == "mm":
        return f"{value.minute:02d}"
    if token == "m":
        return str(value.minute)
    if token == "ss":
        return f"{value.second:02d}"
    if token == "s":
        return str(value.second)
    if token == "zzz":
        return f"{value.microsecond // 1000:03d}"
    if token == "z":
        return str(value.microsecond // 1000)
    if token in ("AP", "A"):
        return "AM" if value.hour < 12 else "PM"
    if token in ("ap", "a"):
        return "am" if value.hour < 12 else "pm"
    if token == "ww":
        return f"{week_of_year(value):02d}"
    return str(week_of_year(value))


def format_datetime(value: datetime, pattern: str) -> str:
    """
    Format a datetime with a date pattern.

    Args:
        value: datetime to format
        pattern: Qt-style date pattern

    Returns:
        Formatted string

    Example:
        >>> format_datetime(datetime(2024, 3, 10, 23, 59), ".yyyy-MM-dd")
        '.2024-03-10'
    """
    twelve_hour = has_marker(pattern)
    parts = []
    for kind, token in tokenize(pattern):
        if kind == "literal":
            parts.append(token)
        else:
            parts.append(_format_field(token, value, twelve_hour))
    return "".join(parts)


@lru_cache(maxsize=64)
def _compile(pattern):
    fields = []
    regex = []
    for kind, token in tokenize(pattern):
        if kind == "literal":
            regex.append(re.escape(token))
        else:
            regex.append(f"(?P<f{len(fields)}>{_FIELD_REGEX[token]})")
            fields.append(token)
    return re.compile("".join(regex)), tuple(fields)


def parse_datetime(text: str, pattern: str) -> Optional[datetime]:
    """
    Parse a string produced by format_datetime back into a datetime.

    Fields missing from the pattern default to 1900-01-01 00:00:00, two digit
    years land in 2000-2099. A week number is only used when the pattern has
    no month or day field.

    Args:
        text: String to parse, e.g. an archive suffix
        pattern: Qt-style date pattern

    Returns:
        datetime object, or None if the text does not match the pattern
    """
    regex, fields = _compile(pattern)
    match = regex.fullmatch(text)
    if match is None:
        return None

    values = {}
    for index, token in enumerate(fields):
        values[token] = match.group(f"f{index}")

    year = 1900
    if "yyyy" in values:
        year = int(values["yyyy"])
    elif "yy" in values:
        year = 2000 + int(values["yy"])

    month = 1
    if "MMMM" in values:
        month = MONTH_NAMES.index(values["MMMM"]) + 1
    elif "MMM" in values:
        month = [name[:3] for name in MONTH_NAMES].index(values["MMM"]) + 1
    for token in ("MM", "M"):
        if token in values:
            month = int(values[token])

    day = 1
    for token in ("dd", "d"):
        if token in values:
            day = int(values[token])

    marker = None
    for token in MARKER_TOKENS:
        if token in values:
            marker = values[token].lower()

    hour = 0
    for token in ("HH", "H"):
        if token in values:
            hour = int(values[token])
    for token in ("hh", "h"):
        if token in values:
            hour = int(values[token])
            if marker is not None:
                if not 1 <= hour <= 12:
                    return None
                hour = hour % 12
    if marker == "pm" and hour < 12:
        hour += 12

    minute = int(values.get("mm", values.get("m", 0)))
    second = int(values.get("ss", values.get("s", 0)))
    millisecond = int(values.get("zzz", values.get("z", 0)))

    try:
        has_calendar_day = any(token in values for token in ("MMMM", "MMM", "MM", "M", "dd", "d"))
        week = values.get("ww", values.get("w"))
        if week is not None and not has_calendar_day:
            week = int(week)
            if week > 53:
                return None
            start = week_start(year, week)
            year, month, day = start.year, start.month, start.day
        return datetime(year, month, day, hour, minute, second, millisecond * 1000)
    except (ValueError, OverflowError):
        return None
