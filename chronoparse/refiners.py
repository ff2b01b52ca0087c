"""
Generic refiners shared by every locale pack.

Each refiner is a pure function of (context, results): it never mutates a
component store it did not create, and it keeps no state between calls.
Locale packs specialize the merge and prioritization refiners through class
attributes (connector vocabulary, gap threshold, week parser tags).
"""
import re
from typing import Dict, FrozenSet, List, Optional, Tuple

import pendulum

from chronoparse.components import (
    TIME_FIELDS,
    Field,
    ParsingComponents,
    days_in_month,
)
from chronoparse.context import ParsingContext
from chronoparse.contracts import Refiner
from chronoparse.logger import get_logger
from chronoparse.results import ParsingResult

logger = get_logger(__name__)

SECONDS_PER_DAY = 86400


# ============================================================================
# OVERLAP REMOVAL
# ============================================================================

class OverlapRemovalRefiner(Refiner):
    """
    Remove results whose span lies inside another result's span.

    Candidates are visited by (start ASC, length DESC), so every container is
    seen before what it contains and identical spans keep the first one
    encountered. A candidate that only partially overlaps a kept result
    replaces it when strictly longer and is dropped otherwise, so the output
    never holds two overlapping spans.
    """

    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        if len(results) <= 1:
            return list(results)

        ordered = sorted(results, key=lambda r: (r.index, -len(r.text)))
        kept: List[ParsingResult] = []

        for candidate in ordered:
            span = candidate.span
            if any(k is not candidate and k.span.contains(span) for k in kept):
                context.debug(f"{self.name}: dropped contained '{candidate.text}' at {candidate.index}")
                continue

            overlapping = [k for k in kept if k.span.overlaps(span)]
            if overlapping:
                if all(len(candidate.text) > len(k.text) for k in overlapping):
                    kept = [k for k in kept if all(k is not o for o in overlapping)]
                else:
                    context.debug(f"{self.name}: dropped overlapping '{candidate.text}' at {candidate.index}")
                    continue

            kept.append(candidate)

        return sorted(kept, key=lambda r: r.index)


# ============================================================================
# DATE + TIME MERGE
# ============================================================================

def merge_date_and_time(
    context: ParsingContext,
    date_components: ParsingComponents,
    time_components: ParsingComponents,
) -> ParsingComponents:
    """
    Build a fresh store from a date-only store and a time-only store.

    Certain date fields come from the date side and certain time fields from
    the time side; implied time values of the time side take precedence over
    whatever the date side only implied.
    """
    merged = context.create_components()

    for field in Field:
        if field in TIME_FIELDS:
            if time_components.is_certain(field):
                merged.assign(field, time_components.get(field))
            elif date_components.is_certain(field):
                merged.assign(field, date_components.get(field))
        elif date_components.is_certain(field):
            merged.assign(field, date_components.get(field))

    for field in TIME_FIELDS:
        value = time_components.get(field)
        if value is not None:
            merged.imply(field, value)

    for field in Field:
        value = date_components.get(field)
        if value is not None:
            merged.imply(field, value)

    merged.weekday_modifier = date_components.weekday_modifier
    merged.add_tags(date_components.tags())
    merged.add_tags(time_components.tags())
    return merged


class MergeDateTimeRefiner(Refiner):
    """
    Merge a date-only result with an adjacent time-only result.

    "Monday" + "at 3:30pm" -> one result. Adjacency means the text between
    the two results is at most MAX_GAP characters and matches
    CONNECTOR_PATTERN. Both orders (date then time, time then date) merge.
    """

    CONNECTOR_PATTERN = r"^\s*(?:T|,|-)?\s*$"
    MAX_GAP = 5

    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        if len(results) < 2:
            return list(results)

        connector = re.compile(self.CONNECTOR_PATTERN, re.IGNORECASE)
        refined: List[ParsingResult] = []
        i = 0
        while i < len(results):
            current = results[i]
            if i + 1 < len(results):
                following = results[i + 1]
                pair = self._split_date_and_time(current, following)
                if pair is not None and self._is_adjacent(context, current, following, connector):
                    refined.append(self._merge(context, current, following, *pair))
                    i += 2
                    continue
            refined.append(current)
            i += 1

        return refined

    @staticmethod
    def _split_date_and_time(
        first: ParsingResult, second: ParsingResult
    ) -> Optional[Tuple[ParsingResult, ParsingResult]]:
        """Return (date_result, time_result) when the pair is mergeable."""
        if first.start.is_only_date() and second.start.is_only_time():
            return first, second
        if first.start.is_only_time() and second.start.is_only_date():
            return second, first
        return None

    def _is_adjacent(
        self,
        context: ParsingContext,
        first: ParsingResult,
        second: ParsingResult,
        connector: re.Pattern,
    ) -> bool:
        if second.index < first.end_index:
            return False
        gap = context.text[first.end_index:second.index]
        return len(gap) <= self.MAX_GAP and connector.match(gap) is not None

    def _merge(
        self,
        context: ParsingContext,
        first: ParsingResult,
        second: ParsingResult,
        date_result: ParsingResult,
        time_result: ParsingResult,
    ) -> ParsingResult:
        start = merge_date_and_time(context, date_result.start, time_result.start)

        end = None
        if date_result.end is not None or time_result.end is not None:
            end = merge_date_and_time(
                context,
                date_result.end or date_result.start,
                time_result.end or time_result.start,
            )

        index = first.index
        end_index = max(first.end_index, second.end_index)
        merged = context.create_result(index, context.text[index:end_index], start, end)
        merged.add_tags(first.tags())
        merged.add_tags(second.tags())
        merged.add_tag(self.name)

        context.debug(f"{self.name}: merged '{first.text}' + '{second.text}'")
        return merged


# ============================================================================
# DATE RANGE MERGE
# ============================================================================

class MergeDateRangeRefiner(Refiner):
    """
    Merge two adjacent date-only results separated by a range connector.

    Both sides must carry the same set of certain calendar fields. The end
    store inherits the year and month it lacks from the start store.
    """

    CONNECTOR_PATTERN = r"^\s*(?:-|–|~)\s*$"

    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        if len(results) < 2:
            return list(results)

        connector = re.compile(self.CONNECTOR_PATTERN, re.IGNORECASE)
        refined: List[ParsingResult] = []
        i = 0
        while i < len(results):
            current = results[i]
            if i + 1 < len(results) and self._should_merge(context, current, results[i + 1], connector):
                refined.append(self._merge(context, current, results[i + 1]))
                i += 2
                continue
            refined.append(current)
            i += 1

        return refined

    @staticmethod
    def _should_merge(
        context: ParsingContext,
        first: ParsingResult,
        second: ParsingResult,
        connector: re.Pattern,
    ) -> bool:
        if first.end is not None or second.end is not None:
            return False
        if not (first.start.is_only_date() and second.start.is_only_date()):
            return False
        if second.index < first.end_index:
            return False
        if first.start.certain_calendar_fields() != second.start.certain_calendar_fields():
            return False
        gap = context.text[first.end_index:second.index]
        return connector.match(gap) is not None

    def _merge(self, context: ParsingContext, first: ParsingResult, second: ParsingResult) -> ParsingResult:
        start = first.start.clone()
        end = second.start.clone()

        for field in (Field.YEAR, Field.MONTH):
            value = start.get(field)
            if value is None or end.is_certain(field):
                continue
            if start.is_certain(field):
                end.assign(field, value)
            else:
                end.imply(field, value)

        merged = context.create_result(
            first.index,
            context.text[first.index:second.end_index],
            start,
            end,
        )
        merged.add_tags(first.tags())
        merged.add_tags(second.tags())
        merged.add_tag(self.name)

        context.debug(f"{self.name}: merged range '{merged.text}'")
        return merged


# ============================================================================
# SAME-SPAN PRIORITIZATION
# ============================================================================

class PrioritizeWeekNumberRefiner(Refiner):
    """
    At each start offset, results from week-oriented parsers win.

    WEEK_TAGS holds the identities of the locale's ISO-week and relative-week
    parsers. Offsets without a week-tagged result keep all their results.
    """

    WEEK_TAGS: FrozenSet[str] = frozenset()

    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        if len(results) <= 1:
            return list(results)

        grouped: Dict[int, List[ParsingResult]] = {}
        for result in results:
            grouped.setdefault(result.index, []).append(result)

        filtered: List[ParsingResult] = []
        for index in sorted(grouped):
            group = grouped[index]
            week_results = [r for r in group if r.tags() & self.WEEK_TAGS]
            filtered.extend(week_results or group)

        return filtered


# ============================================================================
# FORWARD DATE
# ============================================================================

class ForwardDateRefiner(Refiner):
    """
    Push year-ambiguous results that sit 1 to 3 days in the past one year ahead.

    Active only with `options.forward_date`. Results exactly 0 days or more
    than MAX_DAYS_BEHIND days before the reference stay as they are.
    The end of a range moves along when its own year is not certain.
    """

    MAX_DAYS_BEHIND = 3

    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        if not context.options.forward_date:
            return list(results)
        return [self._forward(context, result) for result in results]

    def _forward(self, context: ParsingContext, result: ParsingResult) -> ParsingResult:
        if result.start.is_certain(Field.YEAR):
            return result

        resolved = result.start.date()
        if resolved is None or not resolved < context.reference:
            return result

        days_behind = int((context.reference.timestamp() - resolved.timestamp()) // SECONDS_PER_DAY)
        if not 1 <= days_behind <= self.MAX_DAYS_BEHIND:
            return result

        forwarded = result.clone()
        forwarded.start = self._shift_one_year(result.start, resolved)
        if result.end is not None and not result.end.is_certain(Field.YEAR):
            end_resolved = result.end.date()
            if end_resolved is not None:
                forwarded.end = self._shift_one_year(result.end, end_resolved)
        forwarded.add_tag(self.name)

        context.debug(f"{self.name}: moved '{result.text}' from {resolved} to year {forwarded.start.get(Field.YEAR)}")
        return forwarded

    @staticmethod
    def _shift_one_year(components: ParsingComponents, resolved: pendulum.DateTime) -> ParsingComponents:
        """Copy of `components` one year after `resolved` (Feb 29 becomes Feb 28)."""
        local = resolved
        if components.is_certain(Field.TIMEZONE_OFFSET):
            local = resolved.in_timezone(
                pendulum.fixed_timezone(components.get(Field.TIMEZONE_OFFSET) * 60)
            )
        shifted = local.add(years=1)

        moved = components.clone()
        moved.assign(Field.YEAR, shifted.year)
        for field, value in ((Field.MONTH, shifted.month), (Field.DAY, shifted.day)):
            current = moved.get(field)
            if current is None:
                moved.imply(field, value)
            elif current != value:
                moved.assign(field, value)
        return moved


# ============================================================================
# UNLIKELY FORMAT FILTER
# ============================================================================

class UnlikelyFormatFilter(Refiner):
    """
    Drop results with impossible field values.

    In strict mode a date-bearing result must also name a day and a month,
    a weekday, or an ISO week explicitly; time-only results pass.
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode

    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        filtered = []
        for result in results:
            if not self._has_plausible_values(result.start):
                context.debug(f"{self.name}: dropped implausible '{result.text}'")
                continue
            if result.end is not None and not self._has_plausible_values(result.end):
                context.debug(f"{self.name}: dropped implausible range '{result.text}'")
                continue
            if self.strict_mode and not self._is_explicit(result.start):
                context.debug(f"{self.name}: dropped vague '{result.text}'")
                continue
            filtered.append(result)
        return filtered

    @staticmethod
    def _has_plausible_values(components: ParsingComponents) -> bool:
        year = components.get(Field.YEAR)
        month = components.get(Field.MONTH)
        day = components.get(Field.DAY)

        if year is not None and not 0 <= year <= 9999:
            return False
        if month is not None and not 1 <= month <= 12:
            return False
        if day is not None:
            if not 1 <= day <= 31:
                return False
            if month is not None and year is not None and year >= 1:
                if day > days_in_month(year, month):
                    return False

        hour = components.get(Field.HOUR)
        minute = components.get(Field.MINUTE)
        second = components.get(Field.SECOND)
        millisecond = components.get(Field.MILLISECOND)

        if hour is not None:
            if not 0 <= hour <= 24:
                return False
            # 24:00 is only valid as the very end of a day
            if hour == 24 and any(v not in (None, 0) for v in (minute, second, millisecond)):
                return False
        if minute is not None and not 0 <= minute <= 59:
            return False
        if second is not None and not 0 <= second <= 59:
            return False
        return True

    @staticmethod
    def _is_explicit(components: ParsingComponents) -> bool:
        if components.is_only_time():
            return True
        if components.is_certain(Field.DAY) and components.is_certain(Field.MONTH):
            return True
        return components.is_certain(Field.WEEKDAY) or components.is_certain(Field.ISO_WEEK)
