from __future__ import annotations

import re
import time
from datetime import date, datetime, timedelta

import pendulum
import pytest

from chronoparse.common_parsers import ISOFormatParser
from chronoparse.components import Field
from chronoparse.config import ChronoConfig
from chronoparse.context import ParsingContext, ParsingOptions
from chronoparse.contracts import Parser, Refiner
from chronoparse.engine import Chrono, available_locales, build_chrono, create_locale_pack
from chronoparse.errors import UnknownLocaleError
from chronoparse.locales import de, en
from chronoparse.pack import LocalePack
from chronoparse.refiners import OverlapRemovalRefiner, PrioritizeWeekNumberRefiner, UnlikelyFormatFilter

# Thursday
REF = pendulum.datetime(2024, 3, 7, 9, 15, 30, tz="UTC")


@pytest.fixture
def chrono() -> Chrono:
    return Chrono(en.create_casual_configuration())


class ExplodingParser(Parser):
    def pattern(self, context: ParsingContext) -> str:
        return r"boom"

    def extract(self, context: ParsingContext, match: re.Match):
        raise RuntimeError("extract failed")


class BrokenPatternParser(Parser):
    def pattern(self, context: ParsingContext) -> str:
        return r"(unclosed"

    def extract(self, context: ParsingContext, match: re.Match):
        return context.create_components({Field.DAY: 1})


class PatternFailureParser(Parser):
    def pattern(self, context: ParsingContext) -> str:
        raise RuntimeError("pattern failed")

    def extract(self, context: ParsingContext, match: re.Match):
        return None


class EmptyMatchParser(Parser):
    def pattern(self, context: ParsingContext) -> str:
        return r"x*"

    def extract(self, context: ParsingContext, match: re.Match):
        return context.create_components({Field.DAY: 1})


class ExplodingRefiner(Refiner):
    def refine(self, context: ParsingContext, results):
        raise RuntimeError("refine failed")


# ----------------------------------------------------------------------------
# Totality & determinism
# ----------------------------------------------------------------------------

@pytest.mark.parametrize("text", [None, "", "   ", "The quick brown fox jumps over the lazy dog", "I have 3 apples"])
def test_text_without_dates_yields_nothing(chrono: Chrono, text) -> None:
    assert chrono.parse(text, REF) == []


def test_parse_is_deterministic(chrono: Chrono) -> None:
    text = "Lunch tomorrow at 12:30, then the review on 3 May 2021 and a call next Friday"
    first = [r.to_dict() for r in chrono.parse(text, REF)]
    second = [r.to_dict() for r in chrono.parse(text, REF)]
    assert first == second
    assert first


def test_results_never_overlap(chrono: Chrono) -> None:
    text = "Meet tomorrow at 5pm or on 3 May 2021, maybe next Friday or by 5 May, 3-5 June 2022"
    results = chrono.parse(text, REF)
    assert results

    spans = sorted((r.index, r.index + len(r.text)) for r in results)
    for (_, end), (start, _) in zip(spans, spans[1:]):
        assert end <= start


def test_result_text_is_a_substring(chrono: Chrono) -> None:
    text = "See you Monday   at 3:30pm!"
    for result in chrono.parse(text, REF):
        assert text[result.index:result.index + len(result.text)] == result.text


# ----------------------------------------------------------------------------
# Reference examples
# ----------------------------------------------------------------------------

def test_today_keeps_reference_time_as_implied(chrono: Chrono) -> None:
    ref = pendulum.datetime(2024, 3, 5, 0, 0, 0, tz="UTC")
    results = chrono.parse("today", ref)

    assert len(results) == 1
    result = results[0]
    assert (result.index, result.text) == (0, "today")
    assert result.start.date == ref
    for field in (Field.YEAR, Field.MONTH, Field.DAY):
        assert result.start.is_certain(field)
    for field in (Field.HOUR, Field.MINUTE, Field.SECOND):
        assert not result.start.is_certain(field)
        assert result.start.get(field) == 0


def test_tomorrow(chrono: Chrono) -> None:
    results = chrono.parse("tomorrow", pendulum.datetime(2024, 1, 15, tz="UTC"))
    assert len(results) == 1
    assert results[0].start.date.date() == date(2024, 1, 16)


def test_iso_datetime_fields_are_certain(chrono: Chrono) -> None:
    results = chrono.parse("2024-01-15T10:30:00Z", REF)

    assert len(results) == 1
    start = results[0].start
    assert start.known_values == {
        Field.YEAR: 2024,
        Field.MONTH: 1,
        Field.DAY: 15,
        Field.HOUR: 10,
        Field.MINUTE: 30,
        Field.SECOND: 0,
        Field.TIMEZONE_OFFSET: 0,
    }
    assert start.date == pendulum.datetime(2024, 1, 15, 10, 30, tz="UTC")
    assert "ISOFormatParser" in results[0].tags


def test_iso_offset_is_applied() -> None:
    results = Chrono(en.create_strict_configuration()).parse("at 2024-01-15T10:30:00+02:00", REF)
    assert len(results) == 1
    assert results[0].start.date == pendulum.datetime(2024, 1, 15, 8, 30, tz="UTC")
    assert results[0].start.get(Field.TIMEZONE_OFFSET) == 120


def test_weekday_and_time_merge(chrono: Chrono) -> None:
    results = chrono.parse("Monday at 3:30pm", REF)

    assert len(results) == 1
    assert results[0].text == "Monday at 3:30pm"
    assert results[0].start.date == pendulum.datetime(2024, 3, 11, 15, 30, tz="UTC")


def test_day_range_with_month_name(chrono: Chrono) -> None:
    results = chrono.parse("3-5 May 2021", REF)

    assert len(results) == 1
    result = results[0]
    assert result.text == "3-5 May 2021"
    assert result.start.date.date() == date(2021, 5, 3)
    assert result.end is not None
    assert result.end.date.date() == date(2021, 5, 5)
    assert result.end.get(Field.YEAR) == 2021
    assert result.end.get(Field.MONTH) == 5


def test_two_dates_with_connector_become_a_range(chrono: Chrono) -> None:
    results = chrono.parse("3 May 2021 to 5 May 2021", REF)

    assert len(results) == 1
    assert results[0].text == "3 May 2021 to 5 May 2021"
    assert results[0].end.date.date() == date(2021, 5, 5)


def test_forward_date_option(chrono: Chrono) -> None:
    assert chrono.parse("March 5", REF)[0].start.date.year == 2024

    forwarded = chrono.parse("March 5", REF, ParsingOptions(forward_date=True))
    assert forwarded[0].start.date.date() == date(2025, 3, 5)
    assert forwarded[0].start.is_certain(Field.YEAR)


def test_parse_date(chrono: Chrono) -> None:
    assert chrono.parse_date("see you tomorrow", REF).date() == date(2024, 3, 8)
    assert chrono.parse_date("nothing to see", REF) is None


# ----------------------------------------------------------------------------
# Reference handling
# ----------------------------------------------------------------------------

def test_naive_reference_uses_configured_timezone() -> None:
    chrono = build_chrono(ChronoConfig(timezone="Europe/Berlin"))
    results = chrono.parse("today", datetime(2024, 3, 5, 12, 0))

    assert results[0].start.date.utcoffset() == timedelta(hours=1)
    assert results[0].start.date.hour == 12


def test_aware_stdlib_reference_keeps_its_zone(chrono: Chrono) -> None:
    ref = datetime(2024, 3, 5, 12, 0, tzinfo=pendulum.timezone("Asia/Tokyo"))
    results = chrono.parse("today", ref)
    assert results[0].start.date.utcoffset() == timedelta(hours=9)


def test_missing_reference_means_now(chrono: Chrono) -> None:
    results = chrono.parse("today")
    assert results[0].start.date.date() == pendulum.now("UTC").date()


# ----------------------------------------------------------------------------
# Orchestrator resilience & extension
# ----------------------------------------------------------------------------

def test_parser_exception_is_a_reject(chrono: Chrono) -> None:
    results = chrono.with_parser(ExplodingParser()).parse("boom tomorrow", REF)
    assert [r.text for r in results] == ["tomorrow"]


def test_invalid_pattern_skips_parser(chrono: Chrono) -> None:
    results = chrono.with_parser(BrokenPatternParser()).parse("tomorrow", REF)
    assert [r.text for r in results] == ["tomorrow"]


def test_pattern_exception_skips_parser(chrono: Chrono) -> None:
    results = chrono.with_parser(PatternFailureParser()).parse("tomorrow", REF)
    assert [r.text for r in results] == ["tomorrow"]


def test_empty_matches_are_skipped(chrono: Chrono) -> None:
    results = chrono.with_parser(EmptyMatchParser()).parse("a xx tomorrow", REF)
    assert [r.text for r in results] == ["xx", "tomorrow"]


def test_refiner_exception_passes_results_through(chrono: Chrono) -> None:
    results = chrono.with_refiner(ExplodingRefiner()).parse("tomorrow", REF)
    assert [r.text for r in results] == ["tomorrow"]


def test_with_parser_returns_new_engine(chrono: Chrono) -> None:
    extended = chrono.with_parser(ExplodingParser())
    assert len(extended.parsers) == len(chrono.parsers) + 1
    assert not any(isinstance(p, ExplodingParser) for p in chrono.parsers)


def test_unresolvable_results_are_dropped(chrono: Chrono) -> None:
    class LeapDayParser(Parser):
        def pattern(self, context: ParsingContext) -> str:
            return r"leapday"

        def extract(self, context: ParsingContext, match: re.Match):
            return context.create_components({Field.YEAR: 2023, Field.MONTH: 2, Field.DAY: 29})

    results = chrono.with_parser(LeapDayParser()).parse("leapday or tomorrow", REF)
    assert [r.text for r in results] == ["tomorrow"]


def test_results_are_tagged_with_parser_name(chrono: Chrono) -> None:
    result = chrono.parse("tomorrow", REF)[0]
    assert "ENCasualDateParser" in result.tags


def test_to_dict_is_json_ready(chrono: Chrono) -> None:
    data = chrono.parse("tomorrow", REF)[0].to_dict()
    assert data["text"] == "tomorrow"
    assert data["start"]["known_values"] == {"year": 2024, "month": 3, "day": 8}
    assert data["start"]["date"].startswith("2024-03-08T09:15:30")
    assert data["end"] is None


# ----------------------------------------------------------------------------
# Locale registry
# ----------------------------------------------------------------------------

def test_available_locales() -> None:
    assert available_locales() == ["de", "en"]


def test_unknown_locale_raises() -> None:
    with pytest.raises(UnknownLocaleError):
        create_locale_pack("fr")
    with pytest.raises(UnknownLocaleError):
        build_chrono(ChronoConfig(locale="xx"))


def test_pack_layout() -> None:
    casual = create_locale_pack("EN")
    strict = create_locale_pack("en", strict=True)

    assert casual.name == "en-casual"
    assert strict.name == "en-strict"
    assert isinstance(casual.parsers[0], ISOFormatParser)
    assert isinstance(casual.refiners[0], OverlapRemovalRefiner)
    assert isinstance(strict.refiners[-1], UnlikelyFormatFilter)
    assert not any(isinstance(r, UnlikelyFormatFilter) for r in casual.refiners)


def test_strict_mode_ignores_casual_expressions() -> None:
    chrono = build_chrono(ChronoConfig(strict=True))
    assert chrono.parse("tomorrow", REF) == []
    assert len(chrono.parse("3 May 2021", REF)) == 1


def test_forward_date_keeps_leap_day_results(chrono: Chrono) -> None:
    ref = pendulum.datetime(2024, 3, 2, 12, 0, tz="UTC")

    assert chrono.parse("see you Feb 29", ref)[0].start.date == pendulum.datetime(2024, 2, 29, 12, 0, tz="UTC")

    forwarded = chrono.parse("see you Feb 29", ref, ParsingOptions(forward_date=True))
    assert [r.text for r in forwarded] == ["Feb 29"]
    assert forwarded[0].start.date == pendulum.datetime(2025, 2, 28, 12, 0, tz="UTC")


def test_same_span_week_result_wins_by_parser_order() -> None:
    pack = en.create_casual_configuration()
    without_priority = LocalePack(
        pack.name,
        pack.parsers,
        tuple(r for r in pack.refiners if not isinstance(r, PrioritizeWeekNumberRefiner)),
    )

    # Overlap removal keeps the first of two identical spans, which is the week parser's
    for chrono in (Chrono(pack), Chrono(without_priority)):
        results = chrono.parse("2 weeks ago", REF)
        assert len(results) == 1
        assert "ENRelativeWeekParser" in results[0].tags
        assert "ENTimeUnitRelativeParser" not in results[0].tags
        assert results[0].start.date.date() == date(2024, 2, 19)


@pytest.mark.parametrize(
    "factory, text",
    [
        (en.create_casual_configuration, "1 may" + " " * 20000 + "x"),
        (en.create_casual_configuration, "may" + " " * 20000 + "x"),
        (de.create_casual_configuration, "1. Mai" + " " * 20000 + "x"),
        (de.create_casual_configuration, "im Mai" + " " * 20000 + "x"),
    ],
)
def test_long_whitespace_runs_stay_fast(factory, text: str) -> None:
    chrono = Chrono(factory())
    started = time.perf_counter()
    chrono.parse(text, REF)
    assert time.perf_counter() - started < 2.0
