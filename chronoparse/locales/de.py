"""
German locale pack

Casual: heute, morgen, übermorgen, gestern, nächsten Montag, vor 3 Tagen,
in 2 Wochen, heute abend. Strict: 3. Mai 2021, 03.05.2021, um 15 Uhr.
"""
import re

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
    "sonntag": 0,
    "montag": 1,
    "dienstag": 2,
    "mittwoch": 3,
    "donnerstag": 4,
    "freitag": 5,
    "samstag": 6, "sonnabend": 6,
}

MONTH_DICTIONARY = {
    "januar": 1, "jänner": 1, "jan": 1,
    "februar": 2, "feb": 2,
    "märz": 3, "maerz": 3, "mär": 3, "mrz": 3,
    "april": 4, "apr": 4,
    "mai": 5,
    "juni": 6, "jun": 6,
    "juli": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "oktober": 10, "okt": 10,
    "november": 11, "nov": 11,
    "dezember": 12, "dez": 12,
}

INTEGER_WORD_DICTIONARY = {
    "ein": 1, "eine": 1, "einem": 1, "einen": 1, "einer": 1, "eins": 1,
    "zwei": 2, "drei": 3, "vier": 4, "fünf": 5, "fuenf": 5, "sechs": 6,
    "sieben": 7, "acht": 8, "neun": 9, "zehn": 10, "elf": 11, "zwölf": 12, "zwoelf": 12,
}

# Unit word -> pendulum duration keyword
TIME_UNIT_DICTIONARY = {
    "sekunde": "seconds", "sekunden": "seconds", "sek": "seconds",
    "minute": "minutes", "minuten": "minutes", "min": "minutes",
    "stunde": "hours", "stunden": "hours", "std": "hours",
    "tag": "days", "tage": "days", "tagen": "days",
    "woche": "weeks", "wochen": "weeks",
    "monat": "months", "monate": "months", "monaten": "months",
    "jahr": "years", "jahre": "years", "jahren": "years",
}

WEEKDAY_PATTERN = match_any_pattern(WEEKDAY_DICTIONARY)
MONTH_PATTERN = match_any_pattern(MONTH_DICTIONARY)
NUMBER_PATTERN = r"(?:\d+|" + match_any_pattern(INTEGER_WORD_DICTIONARY) + r")"
TIME_UNIT_PATTERN = match_any_pattern(TIME_UNIT_DICTIONARY)

# Inflected adjectives: diese, diesen, diesem, dieser, dieses
MODIFIER_PATTERN = r"(diese|nächste|naechste|kommende|letzte|vorige|vergangene)[nmrs]?"

MODIFIERS = {
    "diese": WeekdayModifier.THIS,
    "kommende": WeekdayModifier.THIS,
    "nächste": WeekdayModifier.NEXT,
    "naechste": WeekdayModifier.NEXT,
    "letzte": WeekdayModifier.LAST,
    "vorige": WeekdayModifier.LAST,
    "vergangene": WeekdayModifier.LAST,
}


def parse_number(text: str) -> int:
    word = text.lower()
    if word in INTEGER_WORD_DICTIONARY:
        return INTEGER_WORD_DICTIONARY[word]
    return int(word)


# ============================================================================
# CASUAL PARSERS
# ============================================================================

class DECasualDateParser(AbstractParserWithWordBoundaryChecking):
    """jetzt, heute, morgen, übermorgen, gestern, vorgestern, letzte Nacht."""

    DAY_OFFSETS = {
        "heute": 0,
        "morgen": 1,
        "übermorgen": 2,
        "uebermorgen": 2,
        "gestern": -1,
        "vorgestern": -2,
    }

    def inner_pattern(self, context: ParsingContext) -> str:
        return r"(jetzt|heute|übermorgen|uebermorgen|morgen|vorgestern|gestern|letzte\s+nacht)(?=\W|$)"

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        word = re.sub(r"\s+", " ", match.group(1).lower())
        ref = context.reference
        components = context.create_components()

        if word == "jetzt":
            components.assign_similar_date(ref)
            components.assign_similar_time(ref)
        elif word == "letzte nacht":
            night = ref.subtract(days=1) if ref.hour > 6 else ref
            components.assign_similar_date(night)
            components.imply(Field.HOUR, 0)
            components.imply(Field.MINUTE, 0)
            components.imply(Field.SECOND, 0)
        else:
            components.assign_similar_date(ref.add(days=self.DAY_OFFSETS[word]))
            components.imply_similar_time(ref)

        return components


class DECasualTimeParser(AbstractParserWithWordBoundaryChecking):
    """morgens, vormittags, mittags, nachmittags, abends, nachts, Mitternacht."""

    PERIOD_HOURS = {
        "morgen": (6, Meridiem.AM),
        "vormittag": (9, Meridiem.AM),
        "mittag": (12, Meridiem.PM),
        "nachmittag": (15, Meridiem.PM),
        "abend": (18, Meridiem.PM),
        "nacht": (22, Meridiem.PM),
        "mitternacht": (0, Meridiem.AM),
    }

    def inner_pattern(self, context: ParsingContext) -> str:
        # "morgen" alone means tomorrow; the morning needs the adverb form
        return r"(morgens|vormittags?|mittags?|nachmittags?|abends?|nachts?|mitternacht)(?=\W|$)"

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        period = match.group(1).lower()
        if period != "mitternacht" and period.endswith("s"):
            period = period[:-1]

        hour, meridiem = self.PERIOD_HOURS[period]
        components = context.create_components()
        components.assign(Field.HOUR, hour)
        components.assign(Field.MINUTE, 0)
        components.assign(Field.MERIDIEM, meridiem)
        components.imply(Field.SECOND, 0)
        components.imply(Field.MILLISECOND, 0)
        return components


class DEWeekdayParser(AbstractParserWithWordBoundaryChecking):
    """(am) Montag, nächsten Freitag, letzten Sonntag, diesen Mittwoch."""

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:(?:am|an)\s+)?"
            r"(?:" + MODIFIER_PATTERN + r"\s+)?"
            r"(" + WEEKDAY_PATTERN + r")"
            r"(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        components = context.create_components()
        components.assign(Field.WEEKDAY, WEEKDAY_DICTIONARY[match.group(2).lower()])
        if match.group(1) is not None:
            components.weekday_modifier = MODIFIERS[match.group(1).lower()]
        return components


class DERelativeWeekParser(AbstractParserWithWordBoundaryChecking):
    """
    diese/letzte/nächste Woche, vorletzte/übernächste Woche,
    vor 2 Wochen, in 3 Wochen. Resolves to the Monday of that ISO week.
    """

    OFFSETS = {
        "diese": 0,
        "kommende": 1,
        "nächste": 1,
        "naechste": 1,
        "letzte": -1,
        "vorige": -1,
        "vorletzte": -2,
        "übernächste": 2,
        "uebernaechste": 2,
    }

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:"
            r"(diese|letzte|vorige|nächste|naechste|kommende|vorletzte|übernächste|uebernaechste)[nrs]?\s+woche"
            r"|(vor|in)\s+(" + NUMBER_PATTERN + r")\s+wochen?"
            r")(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        if match.group(1) is not None:
            offset = self.OFFSETS[match.group(1).lower()]
        else:
            offset = parse_number(match.group(3))
            if match.group(2).lower() == "vor":
                offset = -offset

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


class DETimeUnitRelativeParser(AbstractParserWithWordBoundaryChecking):
    """vor 3 Tagen, in 2 Stunden, innerhalb von 5 Minuten."""

    CLOCK_UNITS = {"hours", "minutes", "seconds"}

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(vor|in|innerhalb\s+von)\s+"
            r"(" + NUMBER_PATTERN + r")\s*"
            r"(" + TIME_UNIT_PATTERN + r")"
            r"(?=\W|$)"
        )

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        sign = -1 if match.group(1).lower() == "vor" else 1
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

class DETimeExpressionParser(AbstractParserWithWordBoundaryChecking):
    """
    Clock times: um 15 Uhr, 15:30 Uhr, 15.30 Uhr, gegen 9, 7:05.

    A time needs "Uhr", a preposition or a colon-separated minute.
    """

    PATTERN = (
        r"(?:(um|gegen|ab|circa|ca\.)\s*)?"
        r"(\d{1,2})"
        r"(?:([:.])(\d{2})(?::(\d{2}))?)?"
        r"(?:\s*(uhr|h))?"
        r"(?=\W|$)"
    )

    PREFIX_GROUP = 1
    HOUR_GROUP = 2
    SEPARATOR_GROUP = 3
    MINUTE_GROUP = 4
    SECOND_GROUP = 5
    SUFFIX_GROUP = 6

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        has_suffix = match.group(self.SUFFIX_GROUP) is not None
        has_prefix = match.group(self.PREFIX_GROUP) is not None
        has_colon = match.group(self.SEPARATOR_GROUP) == ":"
        if not (has_suffix or has_prefix or has_colon):
            return None

        hour = int(match.group(self.HOUR_GROUP))
        minute = int(match.group(self.MINUTE_GROUP) or 0)
        second = int(match.group(self.SECOND_GROUP) or 0)
        if hour > 23 or minute > 59 or second > 59:
            return None

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
        components.imply(Field.MERIDIEM, Meridiem.PM if hour >= 12 else Meridiem.AM)
        return components


class DEMonthNameLittleEndianParser(AbstractParserWithWordBoundaryChecking):
    """3. Mai, 3. Mai 2021, 3.-5. Mai 2021, 3. bis 5. Mai."""

    PATTERN = (
        r"(\d{1,2})\.?"
        r"(?:\s*(?:-|–|bis(?:\s+(?:zum|am))?)\s*(\d{1,2})\.?)?"
        r"\s*(" + MONTH_PATTERN + r")"
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
            components.imply(Field.YEAR, find_year_closest_to_reference(context.reference, month, day))

        if match.group(self.END_DAY_GROUP) is None:
            return components

        end_day = int(match.group(self.END_DAY_GROUP))
        if not is_valid_date(year, month, end_day):
            return None
        end = components.clone().assign(Field.DAY, end_day)
        return context.create_result(match.start(), match.group(0), components, end)


class DEMonthNameParser(AbstractParserWithWordBoundaryChecking):
    """Mai 2021, im Mai, seit März."""

    def inner_pattern(self, context: ParsingContext) -> str:
        return (
            r"(?:(im|in|ab|seit)\s+)?"
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
            components.imply(Field.YEAR, find_year_closest_to_reference(context.reference, month, 1))
        return components


class DEDottedDateParser(AbstractParserWithWordBoundaryChecking):
    """Numeric day-first dates: 03.05.2021, 3.5.21, 3.5."""

    PATTERN = r"(\d{1,2})\.(\d{1,2})\.(\d{4}|\d{2})?(?=\W|$)(?!\d)"

    DAY_GROUP = 1
    MONTH_GROUP = 2
    YEAR_GROUP = 3

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        day = int(match.group(self.DAY_GROUP))
        month = int(match.group(self.MONTH_GROUP))
        year = None
        if match.group(self.YEAR_GROUP) is not None:
            year = find_most_likely_ad_year(int(match.group(self.YEAR_GROUP)))
        if not is_valid_date(year, month, day):
            return None

        components = context.create_components()
        components.assign(Field.DAY, day)
        components.assign(Field.MONTH, month)
        if year is not None:
            components.assign(Field.YEAR, year)
        else:
            components.imply(Field.YEAR, find_year_closest_to_reference(context.reference, month, day))
        return components


# ============================================================================
# REFINERS
# ============================================================================

class DEMergeDateTimeRefiner(MergeDateTimeRefiner):
    CONNECTOR_PATTERN = r"^\s*(?:T|um|am|,|-)?\s*$"


class DEMergeDateRangeRefiner(MergeDateRangeRefiner):
    CONNECTOR_PATTERN = r"^\s*(?:bis(?:\s+(?:zum|am))?|-|–)\s*$"


class DEPrioritizeWeekNumberRefiner(PrioritizeWeekNumberRefiner):
    WEEK_TAGS = frozenset({"DERelativeWeekParser"})


# ============================================================================
# CONFIGURATIONS
# ============================================================================

def _formal_parsers():
    return [
        DETimeExpressionParser(),
        DEMonthNameLittleEndianParser(),
        DEMonthNameParser(),
        DEDottedDateParser(),
    ]


def _refiners():
    return [
        DEMergeDateTimeRefiner(),
        DEMergeDateRangeRefiner(),
        DEPrioritizeWeekNumberRefiner(),
    ]


def create_casual_configuration() -> LocalePack:
    """German pack with casual and relative expressions."""
    parsers = _formal_parsers() + [
        DECasualDateParser(),
        DECasualTimeParser(),
        DEWeekdayParser(),
        # Overlap removal keeps the first of two identical spans ("in 2 Wochen")
        DERelativeWeekParser(),
        DETimeUnitRelativeParser(),
    ]
    return include_common_configuration("de-casual", parsers, _refiners())


def create_strict_configuration() -> LocalePack:
    """German pack with formal dates and times only."""
    return include_common_configuration("de-strict", _formal_parsers(), _refiners(), strict_mode=True)
