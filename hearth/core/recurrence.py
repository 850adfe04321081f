"""
Hearth — Recurrence Rules.

Typed model of the calendar recurrence subset the app supports, with a strict
parser for the textual form ("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE"), a
canonical serializer and a short English description for display.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum


class ParseError(ValueError):
    """Raised when rule text is malformed or violates a rule invariant."""


class Freq(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class Weekday(Enum):
    """Weekdays keyed by their two-letter code.

    ``offset`` counts days from Monday, matching ``date.weekday()``.
    """

    MO = (0, "Mon")
    TU = (1, "Tue")
    WE = (2, "Wed")
    TH = (3, "Thu")
    FR = (4, "Fri")
    SA = (5, "Sat")
    SU = (6, "Sun")

    def __init__(self, offset: int, label: str) -> None:
        self.offset = offset
        self.label = label

    @property
    def code(self) -> str:
        return self.name


_DIGITS = re.compile(r"[0-9]+")
_UNTIL_DATETIME = re.compile(r"[0-9]{8}T[0-9]{6}Z")
_UNTIL_DATE = re.compile(r"[0-9]{8}")
_UNTIL_FORMAT = "%Y%m%dT%H%M%SZ"

# Canonical serialization order.
_KEYS = ("FREQ", "INTERVAL", "BYDAY", "BYMONTHDAY", "COUNT", "UNTIL")


@dataclass(frozen=True)
class RecurrenceRule:
    """An immutable recurrence rule.

    ``by_month_day == 0`` means "same day as the event start" and
    ``count == 0`` means unbounded.
    """

    freq: Freq
    interval: int = 1
    by_day: tuple[Weekday, ...] = ()
    by_month_day: int = 0
    count: int = 0
    until: datetime | None = None

    def __post_init__(self) -> None:
        if self.interval < 1:
            raise ParseError(f"interval must be >= 1, got {self.interval}")
        if self.count < 0:
            raise ParseError(f"count must be >= 0, got {self.count}")
        if not 0 <= self.by_month_day <= 31:
            raise ParseError(f"by_month_day out of range: {self.by_month_day}")
        if self.count > 0 and self.until is not None:
            raise ParseError("COUNT and UNTIL are mutually exclusive")
        if self.by_day and self.freq is not Freq.WEEKLY:
            raise ParseError("BYDAY is only supported with FREQ=WEEKLY")
        if self.by_month_day and self.freq is not Freq.MONTHLY:
            raise ParseError("BYMONTHDAY is only supported with FREQ=MONTHLY")

    def __str__(self) -> str:
        return serialize_rule(self)

    def describe(self) -> str:
        return describe_rule(self)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _positive_int(key: str, value: str) -> int:
    if not _DIGITS.fullmatch(value) or int(value) < 1:
        raise ParseError(f"invalid {key}: {value!r}")
    return int(value)


def _parse_until(value: str) -> datetime:
    if _UNTIL_DATETIME.fullmatch(value):
        fmt = _UNTIL_FORMAT
    elif _UNTIL_DATE.fullmatch(value):
        fmt = "%Y%m%d"
    else:
        raise ParseError(f"invalid UNTIL: {value!r}")
    try:
        return datetime.strptime(value, fmt).replace(tzinfo=timezone.utc)
    except ValueError as exc:
        raise ParseError(f"invalid UNTIL: {value!r}") from exc


def _parse_by_day(value: str) -> tuple[Weekday, ...]:
    days = []
    for code in value.split(","):
        code = code.strip()
        try:
            days.append(Weekday[code])
        except KeyError:
            raise ParseError(f"unknown day: {code!r}") from None
    return tuple(days)


def parse_rule(text: str) -> RecurrenceRule:
    """Parse rule text into a RecurrenceRule.

    Raises ParseError on empty text, a part that is not KEY=VALUE, a missing
    or unknown FREQ, bad numeric values, unknown day codes, a malformed
    UNTIL, a repeated key or any key outside the supported subset.
    """
    if not text:
        raise ParseError("empty rule")

    fields: dict[str, object] = {}
    seen: set[str] = set()

    for part in text.split(";"):
        key, sep, value = part.partition("=")
        if not sep:
            raise ParseError(f"invalid rule part: {part!r}")
        if key not in _KEYS:
            raise ParseError(f"unsupported rule key: {key!r}")
        if key in seen:
            raise ParseError(f"duplicate rule key: {key!r}")
        seen.add(key)

        if key == "FREQ":
            try:
                fields["freq"] = Freq(value)
            except ValueError:
                raise ParseError(f"unknown frequency: {value!r}") from None
        elif key == "INTERVAL":
            fields["interval"] = _positive_int(key, value)
        elif key == "BYDAY":
            fields["by_day"] = _parse_by_day(value)
        elif key == "BYMONTHDAY":
            day = _positive_int(key, value)
            if day > 31:
                raise ParseError(f"invalid BYMONTHDAY: {value!r}")
            fields["by_month_day"] = day
        elif key == "COUNT":
            fields["count"] = _positive_int(key, value)
        else:
            fields["until"] = _parse_until(value)

    if "freq" not in fields:
        raise ParseError("FREQ is required")

    return RecurrenceRule(**fields)


# ---------------------------------------------------------------------------
# Serialization and description
# ---------------------------------------------------------------------------


def serialize_rule(rule: RecurrenceRule) -> str:
    """Emit the canonical text form: FREQ, INTERVAL, BYDAY, BYMONTHDAY, COUNT, UNTIL."""
    parts = [f"FREQ={rule.freq.value}"]
    if rule.interval > 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.by_day:
        parts.append("BYDAY=" + ",".join(d.code for d in rule.by_day))
    if rule.by_month_day > 0:
        parts.append(f"BYMONTHDAY={rule.by_month_day}")
    if rule.count > 0:
        parts.append(f"COUNT={rule.count}")
    if rule.until is not None:
        until = rule.until
        if until.tzinfo is not None:
            until = until.astimezone(timezone.utc)
        parts.append("UNTIL=" + until.strftime(_UNTIL_FORMAT))
    return ";".join(parts)


def describe_rule(rule: RecurrenceRule) -> str:
    """Return a short English phrase such as "Repeats weekly on Mon, Wed, Fri"."""
    n = rule.interval
    if rule.freq is Freq.DAILY:
        return f"Repeats every {n} days" if n > 1 else "Repeats daily"

    if rule.freq is Freq.WEEKLY:
        prefix = f"Repeats every {n} weeks" if n > 1 else "Repeats weekly"
        if rule.by_day:
            return prefix + " on " + ", ".join(d.label for d in rule.by_day)
        return prefix

    if rule.freq is Freq.MONTHLY:
        return f"Repeats every {n} months" if n > 1 else "Repeats monthly"

    return f"Repeats every {n} years" if n > 1 else "Repeats yearly"
