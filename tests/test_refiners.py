from __future__ import annotations

import pendulum
import pytest

from chronoparse.components import Certainty, Field, Meridiem
from chronoparse.context import ParsingContext, ParsingOptions
from chronoparse.refiners import (
    ForwardDateRefiner,
    MergeDateRangeRefiner,
    MergeDateTimeRefiner,
    OverlapRemovalRefiner,
    PrioritizeWeekNumberRefiner,
    UnlikelyFormatFilter,
)

# Thursday
REF = pendulum.datetime(2024, 3, 7, 9, 15, 30, tz="UTC")


def make_result(context: ParsingContext, index: int, known, implied=None, length: int | None = None):
    text = context.text[index:index + length] if length is not None else context.text[index:]
    return context.create_result(index, text, context.create_components(known, implied))


def span_result(context: ParsingContext, start: int, end: int, tag: str | None = None):
    result = context.create_result(start, context.text[start:end], context.create_components({Field.DAY: 1}))
    if tag:
        result.add_tag(tag)
    return result


# ----------------------------------------------------------------------------
# Overlap removal
# ----------------------------------------------------------------------------

def test_overlap_removal_drops_contained_spans() -> None:
    ctx = ParsingContext("abcdefghij", REF)
    outer = span_result(ctx, 0, 6)
    inner = span_result(ctx, 2, 4)

    assert OverlapRemovalRefiner().refine(ctx, [inner, outer]) == [outer]


def test_overlap_removal_identical_spans_keep_first() -> None:
    ctx = ParsingContext("abcdefghij", REF)
    first = span_result(ctx, 0, 3, "first")
    second = span_result(ctx, 0, 3, "second")

    refined = OverlapRemovalRefiner().refine(ctx, [first, second])
    assert len(refined) == 1
    assert refined[0] is first


def test_overlap_removal_partial_overlap_keeps_longer() -> None:
    ctx = ParsingContext("abcdefghij", REF)
    kept = span_result(ctx, 0, 6)
    shorter = span_result(ctx, 4, 10)
    longer = span_result(ctx, 3, 10)

    assert OverlapRemovalRefiner().refine(ctx, [kept, shorter]) == [kept]
    assert OverlapRemovalRefiner().refine(ctx, [kept, longer]) == [longer]


def test_overlap_removal_keeps_disjoint_sorted() -> None:
    ctx = ParsingContext("abcdefghij", REF)
    a = span_result(ctx, 0, 2)
    b = span_result(ctx, 5, 8)

    assert OverlapRemovalRefiner().refine(ctx, [b, a]) == [a, b]


# ----------------------------------------------------------------------------
# Date + time merge
# ----------------------------------------------------------------------------

def test_merge_date_then_time() -> None:
    ctx = ParsingContext("Monday 3pm", REF)
    date_result = make_result(ctx, 0, {Field.WEEKDAY: 1}, length=6)
    time_result = make_result(ctx, 7, {Field.HOUR: 15, Field.MERIDIEM: Meridiem.PM}, {Field.MINUTE: 0})

    refined = MergeDateTimeRefiner().refine(ctx, [date_result, time_result])

    assert len(refined) == 1
    merged = refined[0]
    assert merged.text == "Monday 3pm"
    assert merged.index == 0
    assert merged.start.get(Field.WEEKDAY) == 1
    assert merged.start.is_certain(Field.HOUR)
    assert merged.start.certainty(Field.MINUTE) == Certainty.IMPLIED
    assert merged.has_tag("MergeDateTimeRefiner")
    assert merged.date() == pendulum.datetime(2024, 3, 11, 15, 0, 30, tz="UTC")


def test_merge_time_then_date() -> None:
    ctx = ParsingContext("3pm, Monday", REF)
    time_result = make_result(ctx, 0, {Field.HOUR: 15}, length=3)
    date_result = make_result(ctx, 5, {Field.WEEKDAY: 1})

    refined = MergeDateTimeRefiner().refine(ctx, [time_result, date_result])

    assert len(refined) == 1
    assert refined[0].text == "3pm, Monday"
    assert refined[0].start.get(Field.HOUR) == 15
    assert refined[0].start.get(Field.WEEKDAY) == 1


def test_merge_time_implied_values_beat_date_implied_values() -> None:
    ctx = ParsingContext("Monday 3pm", REF)
    date_result = make_result(ctx, 0, {Field.WEEKDAY: 1}, {Field.MINUTE: 15}, length=6)
    time_result = make_result(ctx, 7, {Field.HOUR: 15}, {Field.MINUTE: 0})

    merged = MergeDateTimeRefiner().refine(ctx, [date_result, time_result])[0]
    assert merged.start.get(Field.MINUTE) == 0


@pytest.mark.parametrize("text", ["Monday      3pm", "Monday and 3pm"])
def test_merge_needs_short_connector_gap(text: str) -> None:
    ctx = ParsingContext(text, REF)
    date_result = make_result(ctx, 0, {Field.WEEKDAY: 1}, length=6)
    time_result = make_result(ctx, len(text) - 3, {Field.HOUR: 15})

    refined = MergeDateTimeRefiner().refine(ctx, [date_result, time_result])
    assert refined == [date_result, time_result]


def test_merge_leaves_mixed_results_alone() -> None:
    ctx = ParsingContext("2024-01-15 3pm", REF)
    mixed = make_result(ctx, 0, {Field.DAY: 15, Field.HOUR: 10}, length=10)
    time_result = make_result(ctx, 11, {Field.HOUR: 15})

    refined = MergeDateTimeRefiner().refine(ctx, [mixed, time_result])
    assert len(refined) == 2


# ----------------------------------------------------------------------------
# Date range merge
# ----------------------------------------------------------------------------

def test_merge_date_range() -> None:
    ctx = ParsingContext("3 May - 5 May", REF)
    first = make_result(ctx, 0, {Field.DAY: 3, Field.MONTH: 5}, {Field.YEAR: 2021}, length=5)
    second = make_result(ctx, 8, {Field.DAY: 5, Field.MONTH: 5})

    refined = MergeDateRangeRefiner().refine(ctx, [first, second])

    assert len(refined) == 1
    merged = refined[0]
    assert merged.text == "3 May - 5 May"
    assert merged.start.get(Field.DAY) == 3
    assert merged.end.get(Field.DAY) == 5
    # year inherited from the start with the start's certainty
    assert merged.end.get(Field.YEAR) == 2021
    assert merged.end.certainty(Field.YEAR) == Certainty.IMPLIED
    # the source store is untouched
    assert second.start.get(Field.YEAR) is None


def test_merge_date_range_requires_same_certain_fields() -> None:
    ctx = ParsingContext("3 May 2021 - 5 May", REF)
    first = make_result(ctx, 0, {Field.DAY: 3, Field.MONTH: 5, Field.YEAR: 2021}, length=10)
    second = make_result(ctx, 13, {Field.DAY: 5, Field.MONTH: 5})

    assert len(MergeDateRangeRefiner().refine(ctx, [first, second])) == 2


def test_merge_date_range_requires_connector() -> None:
    ctx = ParsingContext("3 May or 5 May", REF)
    first = make_result(ctx, 0, {Field.DAY: 3, Field.MONTH: 5}, length=5)
    second = make_result(ctx, 9, {Field.DAY: 5, Field.MONTH: 5})

    assert len(MergeDateRangeRefiner().refine(ctx, [first, second])) == 2


# ----------------------------------------------------------------------------
# Same-span prioritization
# ----------------------------------------------------------------------------

class WeekFirstRefiner(PrioritizeWeekNumberRefiner):
    WEEK_TAGS = frozenset({"WeekParser"})


def test_week_results_win_at_same_offset() -> None:
    ctx = ParsingContext("next week, later", REF)
    week = span_result(ctx, 0, 9, "WeekParser")
    other = span_result(ctx, 0, 4, "OtherParser")
    elsewhere = span_result(ctx, 11, 16, "OtherParser")

    refined = WeekFirstRefiner().refine(ctx, [other, week, elsewhere])
    assert refined == [week, elsewhere]


def test_offsets_without_week_results_keep_everything() -> None:
    ctx = ParsingContext("abcdef", REF)
    a = span_result(ctx, 0, 3, "A")
    b = span_result(ctx, 0, 2, "B")

    assert WeekFirstRefiner().refine(ctx, [a, b]) == [a, b]


# ----------------------------------------------------------------------------
# Forward date
# ----------------------------------------------------------------------------

FORWARD = ParsingOptions(forward_date=True)


@pytest.mark.parametrize(
    "day, shifted",
    [
        (7, False),   # same day
        (6, True),    # 1 day behind
        (4, True),    # 3 days behind
        (3, False),   # 4 days behind
        (8, False),   # in the future
    ],
)
def test_forward_date_window(day: int, shifted: bool) -> None:
    ctx = ParsingContext("March x", REF, FORWARD)
    result = make_result(ctx, 0, {Field.MONTH: 3, Field.DAY: day}, {Field.YEAR: 2024})

    refined = ForwardDateRefiner().refine(ctx, [result])[0]

    if shifted:
        assert refined.start.get(Field.YEAR) == 2025
        assert refined.start.is_certain(Field.YEAR)
        assert (refined.start.get(Field.MONTH), refined.start.get(Field.DAY)) == (3, day)
        assert result.start.get(Field.YEAR) == 2024
    else:
        assert refined is result


def test_forward_date_ignores_certain_year() -> None:
    ctx = ParsingContext("March 6 2024", REF, FORWARD)
    result = make_result(ctx, 0, {Field.MONTH: 3, Field.DAY: 6, Field.YEAR: 2024})
    assert ForwardDateRefiner().refine(ctx, [result])[0] is result


def test_forward_date_disabled_by_default() -> None:
    ctx = ParsingContext("March 6", REF)
    result = make_result(ctx, 0, {Field.MONTH: 3, Field.DAY: 6}, {Field.YEAR: 2024})
    assert ForwardDateRefiner().refine(ctx, [result])[0].start.get(Field.YEAR) == 2024


def test_forward_date_leaves_unresolvable_results() -> None:
    ctx = ParsingContext("Feb 30", REF, FORWARD)
    result = make_result(ctx, 0, {Field.MONTH: 2, Field.DAY: 30})
    assert ForwardDateRefiner().refine(ctx, [result])[0] is result


# ----------------------------------------------------------------------------
# Unlikely format filter
# ----------------------------------------------------------------------------

def test_unlikely_filter_drops_impossible_values() -> None:
    ctx = ParsingContext("xxxxxxxx", REF)
    bad_month = make_result(ctx, 0, {Field.MONTH: 13, Field.DAY: 1})
    bad_minute = make_result(ctx, 0, {Field.HOUR: 10, Field.MINUTE: 75})
    fine = make_result(ctx, 0, {Field.MONTH: 12, Field.DAY: 1})

    assert UnlikelyFormatFilter().refine(ctx, [bad_month, bad_minute, fine]) == [fine]


def test_unlikely_filter_strict_mode_needs_explicit_dates() -> None:
    ctx = ParsingContext("xxxxxxxx", REF)
    month_only = make_result(ctx, 0, {Field.MONTH: 5})
    day_month = make_result(ctx, 0, {Field.MONTH: 5, Field.DAY: 3})
    weekday = make_result(ctx, 0, {Field.WEEKDAY: 2})
    time_only = make_result(ctx, 0, {Field.HOUR: 15})

    strict = UnlikelyFormatFilter(strict_mode=True)
    assert strict.refine(ctx, [month_only, day_month, weekday, time_only]) == [day_month, weekday, time_only]
    assert len(UnlikelyFormatFilter().refine(ctx, [month_only, day_month])) == 2


def test_forward_date_moves_leap_day_to_feb_28() -> None:
    ref = pendulum.datetime(2024, 3, 2, 12, 0, 0, tz="UTC")
    ctx = ParsingContext("Feb 29", ref, FORWARD)
    result = make_result(ctx, 0, {Field.MONTH: 2, Field.DAY: 29}, {Field.YEAR: 2024})

    refined = ForwardDateRefiner().refine(ctx, [result])[0]

    assert refined.date() == pendulum.datetime(2025, 2, 28, 12, 0, 0, tz="UTC")
    assert refined.start.is_certain(Field.DAY)


def test_forward_date_moves_range_end_too() -> None:
    ctx = ParsingContext("5-6 March", REF, FORWARD)
    start = ctx.create_components({Field.MONTH: 3, Field.DAY: 5}, {Field.YEAR: 2024})
    end = start.clone().assign(Field.DAY, 6)
    result = ctx.create_result(0, ctx.text, start, end)

    refined = ForwardDateRefiner().refine(ctx, [result])[0]

    assert refined.start.get(Field.YEAR) == 2025
    assert refined.end.get(Field.YEAR) == 2025
    assert refined.end.date().date() == pendulum.date(2025, 3, 6)
    assert result.end.get(Field.YEAR) == 2024
