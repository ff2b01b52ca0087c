"""
Date Components: certainty-tracked calendar fields

Every parser extraction and every merge produces a fresh ParsingComponents
store. Each field of the store is in exactly one of three states (unset,
implied, certain). A store resolves to one timezone-aware instant anchored to
the reference instant of the parse call.
"""
from datetime import date, timedelta
from enum import IntEnum, StrEnum
from typing import Dict, Iterable, List, Optional, Set

import pendulum

from chronoparse.errors import ResolutionError


# ============================================================================
# FIELD MODEL
# ============================================================================

class Field(IntEnum):
    """Calendar/time fields. Values double as slots in the per-store arrays."""
    YEAR = 0
    MONTH = 1
    DAY = 2
    WEEKDAY = 3
    HOUR = 4
    MINUTE = 5
    SECOND = 6
    MILLISECOND = 7
    MERIDIEM = 8
    TIMEZONE_OFFSET = 9
    ISO_WEEK = 10
    ISO_WEEK_YEAR = 11
    QUARTER = 12


class Certainty(IntEnum):
    """Per-field state; ordered so that certainty only moves upwards."""
    UNSET = 0
    IMPLIED = 1
    CERTAIN = 2


class Meridiem(IntEnum):
    AM = 0
    PM = 1


class Weekday(IntEnum):
    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


class WeekdayModifier(StrEnum):
    """Qualifier attached to a weekday mention ("this", "next", "last")."""
    THIS = "this"
    NEXT = "next"
    LAST = "last"


# Fields that make a result a "date" for merge classification
DATE_FIELDS = (Field.YEAR, Field.MONTH, Field.DAY, Field.WEEKDAY)

# Fields that make a result a "time" for merge classification
CLOCK_FIELDS = (Field.HOUR, Field.MINUTE, Field.SECOND, Field.MILLISECOND)

# Fields copied from the time side when a date and a time are merged
TIME_FIELDS = (
    Field.HOUR,
    Field.MINUTE,
    Field.SECOND,
    Field.MILLISECOND,
    Field.MERIDIEM,
    Field.TIMEZONE_OFFSET,
)

# Fields that describe the specificity of a date for range merging
CALENDAR_FIELDS = DATE_FIELDS + (Field.ISO_WEEK, Field.ISO_WEEK_YEAR, Field.QUARTER)


# ============================================================================
# CALENDAR HELPERS
# ============================================================================

def reference_weekday(instant: pendulum.DateTime) -> int:
    """Weekday of an instant using the Sunday=0 convention of the Weekday field."""
    return (instant.weekday() + 1) % 7


def weekday_offset(current: int, target: int, modifier: Optional[WeekdayModifier] = None) -> int:
    """
    Day offset from the `current` weekday to the `target` weekday.

    No modifier: next occurrence at or after today (same weekday is today).
    LAST: strictly before today. NEXT: strictly after today. THIS: at or after today.
    """
    offset = target - current
    if modifier == WeekdayModifier.LAST:
        if offset >= 0:
            offset -= 7
    elif modifier == WeekdayModifier.NEXT:
        if offset <= 0:
            offset += 7
    elif offset < 0:
        offset += 7
    return offset


def days_in_month(year: int, month: int) -> int:
    """Number of days in a month of the proleptic Gregorian calendar."""
    return pendulum.date(year, month, 1).days_in_month


def is_valid_date(year: Optional[int], month: int, day: int) -> bool:
    """Check a day/month (and optional year) combination before it becomes a candidate."""
    if not 1 <= month <= 12 or day < 1:
        return False
    if year is None:
        # Leap-day is allowed when the year is unknown
        return day <= (29 if month == 2 else days_in_month(2000, month))
    if not 1 <= year <= 9999:
        return False
    return day <= days_in_month(year, month)


def is_valid_time(hour: int, minute: int = 0, second: int = 0) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59


def find_most_likely_ad_year(year_number: int) -> int:
    """Expand a two-digit year ('97 -> 1997, '21 -> 2021)."""
    if year_number < 100:
        if year_number > 50:
            return year_number + 1900
        return year_number + 2000
    return year_number


def find_year_closest_to_reference(reference: pendulum.DateTime, month: int, day: int) -> int:
    """
    Year (reference year or a neighbour) that puts day/month closest to the reference.

    "Dec 30" read on Jan 2 means last year; "Jan 2" read on Dec 30 means next year.
    """
    ref_date = date(reference.year, reference.month, reference.day)
    candidates = [
        y for y in (reference.year - 1, reference.year, reference.year + 1)
        if is_valid_date(y, month, day)
    ]
    if not candidates:
        return reference.year
    return min(candidates, key=lambda y: abs((date(y, month, day) - ref_date).days))


# ============================================================================
# COMPONENT STORE
# ============================================================================

class ParsingComponents:
    """
    Mapping Field -> (certainty, value) for one parser extraction or one merge.

    Stores are owned by exactly one result. Refiners must clone() a store taken
    from an existing result before changing it.
    """

    def __init__(
        self,
        reference: pendulum.DateTime,
        known_values: Optional[Dict[Field, int]] = None,
        implied_values: Optional[Dict[Field, int]] = None,
    ):
        self.reference = reference
        self.weekday_modifier: Optional[WeekdayModifier] = None
        self._certainty: List[Certainty] = [Certainty.UNSET] * len(Field)
        self._values: List[Optional[int]] = [None] * len(Field)
        self._tags: Set[str] = set()

        for field, value in (known_values or {}).items():
            self.assign(field, value)
        for field, value in (implied_values or {}).items():
            self.imply(field, value)

    # ------------------------------------------------------------------
    # Field access
    # ------------------------------------------------------------------

    def get(self, field: Field) -> Optional[int]:
        """Value of an implied or certain field, None when unset."""
        return self._values[field]

    def certainty(self, field: Field) -> Certainty:
        return self._certainty[field]

    def is_certain(self, field: Field) -> bool:
        return self._certainty[field] == Certainty.CERTAIN

    def assign(self, field: Field, value: int) -> "ParsingComponents":
        """Mark `field` certain with `value`, whatever its previous state."""
        self._certainty[field] = Certainty.CERTAIN
        self._values[field] = int(value)
        return self

    def imply(self, field: Field, value: int) -> "ParsingComponents":
        """Set `field` as implied, only if it is currently unset."""
        if self._certainty[field] == Certainty.UNSET:
            self._certainty[field] = Certainty.IMPLIED
            self._values[field] = int(value)
        return self

    def certain_components(self) -> List[Field]:
        return [f for f in Field if self._certainty[f] == Certainty.CERTAIN]

    def known_values(self) -> Dict[Field, int]:
        return {f: self._values[f] for f in Field if self._certainty[f] == Certainty.CERTAIN}

    def implied_values(self) -> Dict[Field, int]:
        return {f: self._values[f] for f in Field if self._certainty[f] == Certainty.IMPLIED}

    def is_only_date(self) -> bool:
        """At least one date field certain and no clock field certain."""
        return (
            any(self.is_certain(f) for f in DATE_FIELDS)
            and not any(self.is_certain(f) for f in CLOCK_FIELDS)
        )

    def is_only_time(self) -> bool:
        """Hour certain and no date field certain."""
        return self.is_certain(Field.HOUR) and not any(self.is_certain(f) for f in DATE_FIELDS)

    def certain_calendar_fields(self) -> Set[Field]:
        return {f for f in CALENDAR_FIELDS if self.is_certain(f)}

    # ------------------------------------------------------------------
    # Parser helpers
    # ------------------------------------------------------------------

    def assign_similar_date(self, instant: pendulum.DateTime) -> "ParsingComponents":
        """Assign year/month/day of `instant` as certain."""
        self.assign(Field.YEAR, instant.year)
        self.assign(Field.MONTH, instant.month)
        self.assign(Field.DAY, instant.day)
        return self

    def assign_similar_time(self, instant: pendulum.DateTime) -> "ParsingComponents":
        self.assign(Field.HOUR, instant.hour)
        self.assign(Field.MINUTE, instant.minute)
        self.assign(Field.SECOND, instant.second)
        self.assign(Field.MILLISECOND, instant.microsecond // 1000)
        return self

    def imply_similar_date(self, instant: pendulum.DateTime) -> "ParsingComponents":
        self.imply(Field.YEAR, instant.year)
        self.imply(Field.MONTH, instant.month)
        self.imply(Field.DAY, instant.day)
        return self

    def imply_similar_time(self, instant: pendulum.DateTime) -> "ParsingComponents":
        """Imply hour/minute/second/millisecond of `instant`."""
        self.imply(Field.HOUR, instant.hour)
        self.imply(Field.MINUTE, instant.minute)
        self.imply(Field.SECOND, instant.second)
        self.imply(Field.MILLISECOND, instant.microsecond // 1000)
        return self

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, tag: str) -> "ParsingComponents":
        self._tags.add(tag)
        return self

    def add_tags(self, tags: Iterable[str]) -> "ParsingComponents":
        self._tags.update(tags)
        return self

    def tags(self) -> Set[str]:
        return set(self._tags)

    # ------------------------------------------------------------------
    # Copy & resolution
    # ------------------------------------------------------------------

    def clone(self) -> "ParsingComponents":
        """Independent deep copy (arrays, modifier and tags)."""
        copy = ParsingComponents(self.reference)
        copy._certainty = list(self._certainty)
        copy._values = list(self._values)
        copy.weekday_modifier = self.weekday_modifier
        copy._tags = set(self._tags)
        return copy

    def _value_or(self, field: Field, default: int) -> int:
        value = self._values[field]
        return default if value is None else value

    def _base_date(self) -> date:
        """Date the day-less fields (ISO week, quarter, weekday) point at."""
        ref = self.reference
        base = date(ref.year, ref.month, ref.day)
        if self.get(Field.DAY) is not None:
            return base

        iso_week = self.get(Field.ISO_WEEK)
        quarter = self.get(Field.QUARTER)
        weekday = self.get(Field.WEEKDAY)

        if iso_week is not None:
            week_year = self._value_or(Field.ISO_WEEK_YEAR, ref.isocalendar()[0])
            return date.fromisocalendar(week_year, iso_week, 1)

        if quarter is not None and self.get(Field.MONTH) is None:
            if not 1 <= quarter <= 4:
                raise ValueError(f"quarter out of range: {quarter}")
            return date(base.year, (quarter - 1) * 3 + 1, 1)

        if weekday is not None:
            offset = weekday_offset(reference_weekday(ref), weekday, self.weekday_modifier)
            return base + timedelta(days=offset)

        return base

    def resolve(self) -> pendulum.DateTime:
        """
        Resolve to an absolute instant.

        Certain values win over implied ones, which win over the reference
        instant. Day-less stores are anchored through ISO week, quarter or
        weekday. Certain meridiem adjusts the hour; certain timezone offset
        fixes the zone of the local time. Invalid calendar values raise
        ResolutionError.
        """
        ref = self.reference
        try:
            base = self._base_date()

            year = self._value_or(Field.YEAR, base.year)
            month = self._value_or(Field.MONTH, base.month)
            day = self._value_or(Field.DAY, base.day)
            hour = self._value_or(Field.HOUR, ref.hour)
            minute = self._value_or(Field.MINUTE, ref.minute)
            second = self._value_or(Field.SECOND, ref.second)
            millisecond = self._value_or(Field.MILLISECOND, ref.microsecond // 1000)

            if self.is_certain(Field.MERIDIEM):
                meridiem = self.get(Field.MERIDIEM)
                if meridiem == Meridiem.PM and hour < 12:
                    hour += 12
                elif meridiem == Meridiem.AM and hour == 12:
                    hour = 0

            if self.is_certain(Field.TIMEZONE_OFFSET):
                tz = pendulum.fixed_timezone(self.get(Field.TIMEZONE_OFFSET) * 60)
            else:
                tz = ref.tzinfo

            instant = pendulum.datetime(
                year,
                month,
                day,
                hour=hour,
                minute=minute,
                second=second,
                microsecond=millisecond * 1000,
                tz=tz,
            )
            return instant.in_timezone(ref.tzinfo)
        except (ValueError, OverflowError) as e:
            raise ResolutionError(f"Cannot resolve {self!r}: {e}") from e

    def date(self) -> Optional[pendulum.DateTime]:
        """Resolved instant, or None when the fields do not form a valid date."""
        try:
            return self.resolve()
        except ResolutionError:
            return None

    def __repr__(self) -> str:
        known = {f.name.lower(): v for f, v in self.known_values().items()}
        implied = {f.name.lower(): v for f, v in self.implied_values().items()}
        return f"ParsingComponents(known={known}, implied={implied})"
