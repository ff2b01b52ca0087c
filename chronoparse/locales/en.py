"""
English locale pack

Casual mode understands relative and colloquial expressions ("tomorrow",
"next Friday", "3 days ago", "this evening"); strict mode keeps only formal
dates and times ("3 May 2021", "May 5, 2021", "5/3/2021", "15:30").
"""
import re
from datetime import date
from typing import Optional

from chronoparse.components import (
    Field,
    Meridiem,
    WeekdayModifier,
    find_most_likely_ad_year,
    find_year_closest_to_reference,
    is_valid_date,
)
from chronoparse.context import ParsingContext
from chronoparse.contracts import AbstractParserWithWordBoundaryChecking, ExtractionResult
from chronoparse.pack import LocalePack, include_common_configuration, match_any_pattern
from chronoparse.refiners import (
    MergeDateRangeRefiner,
    MergeDateTimeRefiner,
    PrioritizeWeekNumberRefiner,
)


# ============================================================================
# DICTIONARIES
# ============================================================================

WEEKDAY_DICTIONARY = {
    "sunday": 0, "sun": 0,
    "monday": 1, "mon": 1,
    "tuesday": 2, "tue": 2, "tues": 2,
    "wednesday": 3, "wed": 3,
    "thursday": 4, "thu": 4, "thur": 4, "thurs": 4,
    "friday": 5, "fri": 5,
    "saturday": 6, "sat": 6,
}

MONTH_DICTIONARY = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

INTEGER_WORD_DICTIONARY = {
    "a": 1, "an": 1, "one": 1,
    "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}

# Unit word -> pendulum duration keyword
TIME_UNIT_DICTIONARY = {
    "sec": "seconds", "secs": "seconds", "second": "seconds", "seconds": "seconds",
    "min": "minutes", "mins": "minutes", "minute": "minutes", "minutes": "minutes",
    "hr": "hours", "hrs": "hours", "hour": "hours", "hours": "hours",
    "day": "days", "days": "days",
    "week": "weeks", "weeks": "weeks",
    "month": "months", "months": "months",
    "year": "years", "years": "years",
}

WEEKDAY_MODIFIERS = {
    "this": WeekdayModifier.THIS,
    "coming": WeekdayModifier.THIS,
    "next": WeekdayModifier.NEXT,
    "last": WeekdayModifier.LAST,
    "past": WeekdayModifier.LAST,
    "previous": WeekdayModifier.LAST,
}

WEEKDAY_PATTERN = match_any_pattern(WEEKDAY_DICTIONARY)
MONTH_PATTERN = match_any_pattern(MONTH_DICTIONARY)
NUMBER_PATTERN = r"(?:\d+|" + match_any_pattern(INTEGER_WORD_DICTIONARY) + r")"
TIME_UNIT_PATTERN = match_any_pattern(TIME_UNIT_DICTIONARY)
ORDINAL_SUFFIX = r"(?:st|nd|rd|th)?"


def parse_number(text: str) -> int:
    """'3' -> 3, 'three' -> 3, 'a' -> 1."""
    word = text.lower()
    if word in INTEGER_WORD_DICTIONARY:
        return INTEGER_WORD_DICTIONARY[word]
    return int(word)


def _imply_year(components, context: ParsingContext, month: int, day: int) -> None:
    components.imply(Field.YEAR, find_year_closest_to_reference(context.reference, month, day))


# ============================================================================
# CASUAL PARSERS
# ============================================================================

class ENCasualDateParser(AbstractParserWithWordBoundaryChecking):
    """now, today, tonight, tomorrow, yesterday, last night."""

    def inner_pattern(self, context: ParsingContext) -> str:
        return r"(now|today|tonight|tomorrow|tmrw?|yesterday|last\s*night)(?=\W|$)"

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        word = re.sub(r"\s+", " ", match.group(1).lower())
        ref = context.reference
        components = context.create_components()

        if word == "now":
            components.assign_similar_date(ref)
            components.assign_similar_time(ref)
        elif word == "today":
            components.assign_similar_date(ref)
            components.imply_similar_time(ref)
        elif word == "tonight":
            components.assign_similar_date(ref)
            components.imply(Field.HOUR, 22)
            components.imply(Field.MINUTE, 0)
            components.imply(Field.SECOND, 0)
            components.imply(Field.MERIDIEM, Meridiem.PM)
        elif word in ("tomorrow", "tmr", "tmrw"):
            components.assign_similar_date(ref.add(days=1))
            components.imply_similar_time(ref)
        elif word == "yesterday":
            components.assign_similar_date(ref.subtract(days=1))
            components.imply_similar_time(ref)
        else:
            # "last night" said after 6am is the previous evening
            night = ref.subtract(days=1) if ref.hour > 6 else ref
            components.assign_similar_date(night)
            components.imply(Field.HOUR, 0)
            components.imply(Field.MINUTE, 0)
            components.imply(Field.SECOND, 0)

        return components


class ENCasualTimeParser(AbstractParserWithWordBoundaryChecking):
    """(this) morning / afternoon / evening / night, noon, midnight."""

    PERIOD_HOURS = {
        "morning": (9, Meridiem.AM),
        "afternoon": (15, Meridiem.PM),
        "evening": (20, Meridiem.PM),
        "night": (23, Meridiem.PM),
        "noon": (12, Meridiem.PM),
        "midday": (12, Meridiem.PM),
        "midnight": (0, Meridiem.AM),
    }

    def inner_pattern(self, context: ParsingContext) -> str:
        return r"(?:(this)\s+)?(morning|afternoon|evening|night|noon|midday|midnight)(?=\W|$)"

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        period = match.group(2).lower()
        # A bare "night" is too vague ("at night", "night shift")
        if period == "night" and match.group(1) is None:
            return None

        hour, meridiem = self.PERIOD_HOURS[period]
        components = context.create_components()
        components.assign(Field.HOUR, hour)
        components.assign(Field.MINUTE, 0)
        components.assign(Field.MERIDIEM, meridiem)
        components.imply(Field.SECOND, 0)
        components.imply(Field.MILLISECOND, 0)
        return components


class ENWeekdayParser(AbstractParserWithWordBoundaryChecking):
    """
    Weekday names with an optional modifier.

    The day is not fixed here: the store keeps the weekday and its modifier
    and resolution picks the matching day around the reference.
    """

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:(this|coming|next|last|past|previous)\s+)?"
            r"(" + WEEKDAY_PATTERN + r")"
            r"(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        weekday = WEEKDAY_DICTIONARY[match.group(2).lower()]
        components = context.create_components()
        components.assign(Field.WEEKDAY, weekday)
        if match.group(1) is not None:
            components.weekday_modifier = WEEKDAY_MODIFIERS[match.group(1).lower()]
        return components


class ENRelativeDateFormatParser(AbstractParserWithWordBoundaryChecking):
    """this/next/last month, year, quarter."""

    DIRECTIONS = {"this": 0, "next": 1, "last": -1, "past": -1, "previous": -1}

    def inner_pattern(self, context: ParsingContext) -> str:
        return r"(this|next|last|past|previous)\s+(month|year|quarter)(?=\W|$)"

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        delta = self.DIRECTIONS[match.group(1).lower()]
        unit = match.group(2).lower()
        ref = context.reference
        components = context.create_components()

        if unit == "month":
            target = ref.add(months=delta)
            components.assign(Field.YEAR, target.year)
            components.assign(Field.MONTH, target.month)
            components.imply(Field.DAY, 1)
        elif unit == "year":
            components.assign(Field.YEAR, ref.year + delta)
            components.imply(Field.MONTH, 1)
            components.imply(Field.DAY, 1)
        else:
            index = ref.year * 4 + (ref.month - 1) // 3 + delta
            components.assign(Field.YEAR, index // 4)
            components.assign(Field.QUARTER, index % 4 + 1)

        components.imply(Field.HOUR, 0)
        components.imply(Field.MINUTE, 0)
        components.imply(Field.SECOND, 0)
        components.imply(Field.MILLISECOND, 0)
        return components


class ENRelativeWeekParser(AbstractParserWithWordBoundaryChecking):
    """
    Whole weeks relative to the reference.

    - this/last/next week
    - the week before last / the week after next
    - 2 weeks ago, 3 weeks from now, in 2 weeks

    Resolves to the Monday of the target ISO week.
    """

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:"
            r"(this|last|next|past|previous|coming)\s+week"
            r"|the\s+week\s+(before\s+last|after\s+next)"
            r"|(" + NUMBER_PATTERN + r")\s+weeks?\s+(ago|from\s+now|later)"
            r"|in\s+(" + NUMBER_PATTERN + r")\s+weeks?"
            r")(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        if match.group(1) is not None:
            offset = {"this": 0, "coming": 0, "next": 1}.get(match.group(1).lower(), -1)
        elif match.group(2) is not None:
            offset = -2 if match.group(2).lower().startswith("before") else 2
        elif match.group(3) is not None:
            offset = parse_number(match.group(3))
            if match.group(4).lower() == "ago":
                offset = -offset
        else:
            offset = parse_number(match.group(5))

        try:
            monday = context.reference.add(weeks=offset).start_of("week")
        except (ValueError, OverflowError):
            return None

        week_year, week, _ = monday.isocalendar()
        components = context.create_components()
        components.assign(Field.ISO_WEEK, week)
        components.assign(Field.ISO_WEEK_YEAR, week_year)
        components.assign_similar_date(monday)
        components.imply(Field.HOUR, 12)
        components.imply(Field.MINUTE, 0)
        components.imply(Field.SECOND, 0)
        components.imply(Field.MILLISECOND, 0)
        return components


class ENTimeUnitRelativeParser(AbstractParserWithWordBoundaryChecking):
    """3 days ago, 2 hours later, 5 minutes from now, in a month, within 2 days."""

    PAST_SUFFIXES = {"ago", "before", "earlier"}
    CLOCK_UNITS = {"hours", "minutes", "seconds"}

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:(in|within)\s+)?"
            r"(" + NUMBER_PATTERN + r")\s*"
            r"(" + TIME_UNIT_PATTERN + r")"
            r"(?:\s+(ago|before|earlier|later|after|from\s+now|hence))?"
            r"(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        suffix = match.group(4).lower() if match.group(4) else None
        if suffix in self.PAST_SUFFIXES:
            sign = -1
        elif suffix is not None or match.group(1) is not None:
            sign = 1
        else:
            return None

        amount = parse_number(match.group(2))
        unit = TIME_UNIT_DICTIONARY[match.group(3).lower()]
        try:
            target = context.reference.add(**{unit: sign * amount})
        except (ValueError, OverflowError):
            return None

        components = context.create_components()
        components.assign_similar_date(target)
        if unit in self.CLOCK_UNITS:
            components.assign(Field.HOUR, target.hour)
            components.assign(Field.MINUTE, target.minute)
            components.assign(Field.SECOND, target.second)
        components.imply_similar_time(target)
        return components


# ============================================================================
# FORMAL PARSERS
# ============================================================================

class ENTimeExpressionParser(AbstractParserWithWordBoundaryChecking):
    """
    Clock times: 3pm, 3:30 p.m., at 15:30, 7:05:10.

    A bare number needs a prefix ("at 3") to count as a time. The hour is
    stored on the 24-hour clock and the meridiem is recorded alongside.
    """

    PATTERN = (
        r"(?:(at|@|from|after|before|by)\s*)?"
        r"(\d{1,2})"
        r"(?::(\d{2})(?::(\d{2}))?)?"
        r"(?:\s*(a\.?m\.?|p\.?m\.?|o'?clock))?"
        r"(?=\W|$)"
    )

    PREFIX_GROUP = 1
    HOUR_GROUP = 2
    MINUTE_GROUP = 3
    SECOND_GROUP = 4
    SUFFIX_GROUP = 5

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        suffix = match.group(self.SUFFIX_GROUP)
        if (
            match.group(self.MINUTE_GROUP) is None
            and suffix is None
            and match.group(self.PREFIX_GROUP) is None
        ):
            return None

        hour = int(match.group(self.HOUR_GROUP))
        minute = int(match.group(self.MINUTE_GROUP) or 0)
        second = int(match.group(self.SECOND_GROUP) or 0)
        if hour > 23 or minute > 59 or second > 59:
            return None

        meridiem: Optional[Meridiem] = None
        if suffix is not None and suffix.lower()[0] in "ap":
            if hour == 0 or hour > 12:
                return None
            meridiem = Meridiem.AM if suffix.lower().startswith("a") else Meridiem.PM
            if meridiem == Meridiem.PM and hour < 12:
                hour += 12
            elif meridiem == Meridiem.AM and hour == 12:
                hour = 0

        components = context.create_components()
        components.assign(Field.HOUR, hour)

        if match.group(self.MINUTE_GROUP) is not None:
            components.assign(Field.MINUTE, minute)
        else:
            components.imply(Field.MINUTE, 0)

        if match.group(self.SECOND_GROUP) is not None:
            components.assign(Field.SECOND, second)
        else:
            components.imply(Field.SECOND, 0)
        components.imply(Field.MILLISECOND, 0)

        if meridiem is not None:
            components.assign(Field.MERIDIEM, meridiem)
        else:
            components.imply(Field.MERIDIEM, Meridiem.PM if hour >= 12 else Meridiem.AM)

        return components


class ENMonthNameLittleEndianParser(AbstractParserWithWordBoundaryChecking):
    """
    Day before month: 3 May, 3rd of May 2021, 3-5 May 2021, 3 to 5 May.

    A day range produces both the start and the end of the result.
    """

    PATTERN = (
        r"(\d{1,2})" + ORDINAL_SUFFIX +
        r"(?:\s*(?:to|-|–|until|through|till)\s*(\d{1,2})" + ORDINAL_SUFFIX + r")?"
        r"\s*(?:of\s+)?"
        r"(" + MONTH_PATTERN + r")"
        r"(?:(?:\s*,\s*|\s+)(\d{4}))?"
        r"(?=\W|$)"
    )

    DAY_GROUP = 1
    END_DAY_GROUP = 2
    MONTH_GROUP = 3
    YEAR_GROUP = 4

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        month = MONTH_DICTIONARY[match.group(self.MONTH_GROUP).lower()]
        day = int(match.group(self.DAY_GROUP))
        year = int(match.group(self.YEAR_GROUP)) if match.group(self.YEAR_GROUP) else None
        if not is_valid_date(year, month, day):
            return None

        components = context.create_components()
        components.assign(Field.DAY, day)
        components.assign(Field.MONTH, month)
        if year is not None:
            components.assign(Field.YEAR, year)
        else:
            _imply_year(components, context, month, day)

        if match.group(self.END_DAY_GROUP) is None:
            return components

        end_day = int(match.group(self.END_DAY_GROUP))
        if not is_valid_date(year, month, end_day):
            return None
        end = components.clone().assign(Field.DAY, end_day)
        return context.create_result(match.start(), match.group(0), components, end)


class ENMonthNameMiddleEndianParser(AbstractParserWithWordBoundaryChecking):
    """Month before day: May 5, May 5th 2021, Jan 3-5, 2021."""

    PATTERN = (
        r"(" + MONTH_PATTERN + r")"
        r"(?:-|/|\s*,\s*|\s+)"
        r"(\d{1,2})" + ORDINAL_SUFFIX +
        r"(?:\s*(?:to|-|–)\s*(\d{1,2})" + ORDINAL_SUFFIX + r")?"
        r"(?:(?:,\s*|\s+)(\d{4}))?"
        r"(?=\W|$)"
    )

    MONTH_GROUP = 1
    DAY_GROUP = 2
    END_DAY_GROUP = 3
    YEAR_GROUP = 4

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        month = MONTH_DICTIONARY[match.group(self.MONTH_GROUP).lower()]
        day = int(match.group(self.DAY_GROUP))
        year = int(match.group(self.YEAR_GROUP)) if match.group(self.YEAR_GROUP) else None
        if not is_valid_date(year, month, day):
            return None

        components = context.create_components()
        components.assign(Field.MONTH, month)
        components.assign(Field.DAY, day)
        if year is not None:
            components.assign(Field.YEAR, year)
        else:
            _imply_year(components, context, month, day)

        if match.group(self.END_DAY_GROUP) is None:
            return components

        end_day = int(match.group(self.END_DAY_GROUP))
        if not is_valid_date(year, month, end_day):
            return None
        end = components.clone().assign(Field.DAY, end_day)
        return context.create_result(match.start(), match.group(0), components, end)


class ENMonthNameParser(AbstractParserWithWordBoundaryChecking):
    """
    A month without a day: May 2021, in May, during March.

    A bare month name needs either a year or a preposition.
    """

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:(in|of|during)\s+)?"
            r"(" + MONTH_PATTERN + r")"
            r"(?:(?:\s*[,-]\s*|\s+)(\d{4}))?"
            r"(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        if match.group(1) is None and match.group(3) is None:
            return None

        month = MONTH_DICTIONARY[match.group(2).lower()]
        components = context.create_components()
        components.assign(Field.MONTH, month)
        components.imply(Field.DAY, 1)
        if match.group(3) is not None:
            year = int(match.group(3))
            if not 1 <= year <= 9999:
                return None
            components.assign(Field.YEAR, year)
        else:
            _imply_year(components, context, month, 1)
        return components


class ENSlashDateFormatParser(AbstractParserWithWordBoundaryChecking):
    """US order M/D, M/D/YY, M/D/YYYY."""

    PATTERN = r"(?<!/)(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?(?=\W|$)(?!/\d)"

    MONTH_GROUP = 1
    DAY_GROUP = 2
    YEAR_GROUP = 3

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        month = int(match.group(self.MONTH_GROUP))
        day = int(match.group(self.DAY_GROUP))
        year = None
        if match.group(self.YEAR_GROUP) is not None:
            year = find_most_likely_ad_year(int(match.group(self.YEAR_GROUP)))
        if not is_valid_date(year, month, day):
            return None

        components = context.create_components()
        components.assign(Field.MONTH, month)
        components.assign(Field.DAY, day)
        if year is not None:
            components.assign(Field.YEAR, year)
        else:
            _imply_year(components, context, month, day)
        return components


class ENISOWeekNumberParser(AbstractParserWithWordBoundaryChecking):
    """week 15, week 15 of 2023, wk 7, 2023-W15, W15, W15/2023."""

    PATTERN = (
        r"(?:"
        r"(?:week|wk)\s*(?:number\s*|no\.?\s*|#\s*)?(\d{1,2})(?:\s*(?:of|,)\s*(\d{4}))?"
        r"|(\d{4})-?W(\d{1,2})"
        r"|W(\d{1,2})(?:[-/](\d{4}))?"
        r")(?=\W|$)"
    )

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        if match.group(1) is not None:
            week, year = match.group(1), match.group(2)
        elif match.group(4) is not None:
            week, year = match.group(4), match.group(3)
        else:
            week, year = match.group(5), match.group(6)

        week = int(week)
        week_year = int(year) if year is not None else context.reference.isocalendar()[0]
        try:
            date.fromisocalendar(week_year, week, 1)
        except ValueError:
            return None

        components = context.create_components()
        components.assign(Field.ISO_WEEK, week)
        if year is not None:
            components.assign(Field.ISO_WEEK_YEAR, week_year)
        else:
            components.imply(Field.ISO_WEEK_YEAR, week_year)
        return components


# ============================================================================
# REFINERS
# ============================================================================

class ENMergeDateTimeRefiner(MergeDateTimeRefiner):
    CONNECTOR_PATTERN = r"^\s*(?:T|at|after|before|on|of|,|-|\.|:)?\s*$"


class ENMergeDateRangeRefiner(MergeDateRangeRefiner):
    CONNECTOR_PATTERN = r"^\s*(?:to|-|–|~|through|until|till|til)\s*$"


class ENPrioritizeWeekNumberRefiner(PrioritizeWeekNumberRefiner):
    WEEK_TAGS = frozenset({"ENISOWeekNumberParser", "ENRelativeWeekParser"})


# ============================================================================
# CONFIGURATIONS
# ============================================================================

def _formal_parsers():
    return [
        ENTimeExpressionParser(),
        ENMonthNameLittleEndianParser(),
        ENMonthNameMiddleEndianParser(),
        ENMonthNameParser(),
        ENSlashDateFormatParser(),
        ENISOWeekNumberParser(),
    ]


def _refiners():
    return [
        ENMergeDateTimeRefiner(),
        ENMergeDateRangeRefiner(),
        ENPrioritizeWeekNumberRefiner(),
    ]


def create_casual_configuration() -> LocalePack:
    """English pack with casual and relative expressions."""
    parsers = _formal_parsers() + [
        ENCasualDateParser(),
        ENCasualTimeParser(),
        ENWeekdayParser(),
        ENRelativeDateFormatParser(),
        # Week parsers before the generic unit parser: overlap removal keeps the first of two identical spans
        ENRelativeWeekParser(),
        ENTimeUnitRelativeParser(),
    ]
    return include_common_configuration("en-casual", parsers, _refiners())


def create_strict_configuration() -> LocalePack:
    """English pack with formal dates and times only."""
    return include_common_configuration("en-strict", _formal_parsers(), _refiners(), strict_mode=True)
