"""
Parsers shared by every locale pack.
"""
import re

from chronoparse.components import Field, is_valid_date, is_valid_time
from chronoparse.context import ParsingContext
from chronoparse.contracts import AbstractParserWithWordBoundaryChecking, ExtractionResult


class ISOFormatParser(AbstractParserWithWordBoundaryChecking):
    """
    ISO 8601 dates and date-times.

    - YYYY-MM-DD
    - YYYY-MM-DDThh:mm
    - YYYY-MM-DDThh:mm:ss[.s]
    - each time form optionally followed by Z, ±hh, ±hh:mm or ±hhmm
    """

    PATTERN = (
        r"([0-9]{4})\-([0-9]{1,2})\-([0-9]{1,2})"
        r"(?:T([0-9]{1,2}):([0-9]{1,2})"
        r"(?::([0-9]{1,2})(?:\.(\d{1,4}))?)?"
        r"([zZ]|([+-]\d{2}):?(\d{2})?)?)?"
        r"(?=\W|$)"
    )

    YEAR_GROUP = 1
    MONTH_GROUP = 2
    DAY_GROUP = 3
    HOUR_GROUP = 4
    MINUTE_GROUP = 5
    SECOND_GROUP = 6
    MILLISECOND_GROUP = 7
    TZD_GROUP = 8
    TZD_HOUR_OFFSET_GROUP = 9
    TZD_MINUTE_OFFSET_GROUP = 10

    def inner_pattern(self, context: ParsingContext) -> str:
        return self.PATTERN

    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        year = int(match.group(self.YEAR_GROUP))
        month = int(match.group(self.MONTH_GROUP))
        day = int(match.group(self.DAY_GROUP))
        if not is_valid_date(year, month, day):
            return None

        components = context.create_components({
            Field.YEAR: year,
            Field.MONTH: month,
            Field.DAY: day,
        })

        if match.group(self.HOUR_GROUP) is not None:
            hour = int(match.group(self.HOUR_GROUP))
            minute = int(match.group(self.MINUTE_GROUP))
            second = int(match.group(self.SECOND_GROUP) or 0)
            if not is_valid_time(hour, minute, second):
                return None

            components.assign(Field.HOUR, hour)
            components.assign(Field.MINUTE, minute)

            if match.group(self.SECOND_GROUP) is not None:
                components.assign(Field.SECOND, second)

            if match.group(self.MILLISECOND_GROUP) is not None:
                # ".5" is 500ms, ".05" is 50ms
                fraction = match.group(self.MILLISECOND_GROUP)
                components.assign(Field.MILLISECOND, int(fraction.ljust(3, "0")[:3]))

            if match.group(self.TZD_GROUP) is not None:
                offset = 0
                if match.group(self.TZD_HOUR_OFFSET_GROUP) is not None:
                    hour_offset = int(match.group(self.TZD_HOUR_OFFSET_GROUP))
                    minute_offset = int(match.group(self.TZD_MINUTE_OFFSET_GROUP) or 0)
                    offset = hour_offset * 60
                    if match.group(self.TZD_HOUR_OFFSET_GROUP).startswith("-"):
                        offset -= minute_offset
                    else:
                        offset += minute_offset
                components.assign(Field.TIMEZONE_OFFSET, offset)

        return components
