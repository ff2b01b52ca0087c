"""
Chrono: the scanning orchestrator

Runs every parser of a locale pack over the whole text, turns accepted
matches into candidate results, sorts them by position and passes them
through the pack's refiner chain.

1. The engine is total: any string (including None/empty) yields a list
2. Parsers never see each other's results; refiners see all of them
3. The pack is shared read-only across calls and threads
"""
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pendulum

from chronoparse.config import ChronoConfig
from chronoparse.context import ParsingContext, ParsingOptions, normalize_reference
from chronoparse.contracts import Parser, Refiner
from chronoparse.errors import ResolutionError, UnknownLocaleError
from chronoparse.locales import de, en
from chronoparse.logger import get_logger, set_log_level
from chronoparse.pack import LocalePack
from chronoparse.results import ParsedResult, ParsingResult

logger = get_logger(__name__)


# ============================================================================
# ORCHESTRATOR
# ============================================================================

class Chrono:
    """Natural-language date extraction over one locale pack."""

    def __init__(self, pack: LocalePack, timezone: str = "UTC"):
        self.pack = pack
        self.timezone = timezone

    @property
    def parsers(self) -> Tuple[Parser, ...]:
        return self.pack.parsers

    @property
    def refiners(self) -> Tuple[Refiner, ...]:
        return self.pack.refiners

    def with_parser(self, parser: Parser) -> "Chrono":
        """New engine whose pack has `parser` appended."""
        return Chrono(self.pack.with_parser(parser), self.timezone)

    def with_refiner(self, refiner: Refiner) -> "Chrono":
        """New engine whose pack has `refiner` appended."""
        return Chrono(self.pack.with_refiner(refiner), self.timezone)

    def parse(
        self,
        text: Optional[str],
        reference: Optional[datetime] = None,
        options: Optional[ParsingOptions] = None,
    ) -> List[ParsedResult]:
        """Find every date/time expression in `text`, resolved against `reference`."""
        context = ParsingContext(
            text=text or "",
            reference=normalize_reference(reference, self.timezone),
            options=options or ParsingOptions(),
        )

        candidates: List[ParsingResult] = []
        for parser in self.pack.parsers:
            candidates.extend(self._execute_parser(context, parser))

        results = sorted(candidates, key=lambda r: r.index)

        for refiner in self.pack.refiners:
            results = self._execute_refiner(context, refiner, results)

        parsed: List[ParsedResult] = []
        for result in results:
            try:
                parsed.append(result.to_public())
            except ResolutionError as e:
                logger.debug(f"Dropped unresolvable result '{result.text}': {e}")
        return parsed

    def parse_date(
        self,
        text: Optional[str],
        reference: Optional[datetime] = None,
        options: Optional[ParsingOptions] = None,
    ) -> Optional[pendulum.DateTime]:
        """Start instant of the first result, or None."""
        results = self.parse(text, reference, options)
        if not results:
            return None
        return results[0].start.date

    @staticmethod
    def _execute_parser(context: ParsingContext, parser: Parser) -> List[ParsingResult]:
        """Scan the whole text with one parser, left to right, without overlaps."""
        text = context.text
        if not text:
            return []

        try:
            regex = re.compile(parser.pattern(context), re.IGNORECASE)
        except re.error as e:
            logger.warning(f"Parser {parser.name} has an invalid pattern: {e}")
            return []
        except Exception as e:
            logger.warning(f"Parser {parser.name} failed to build its pattern: {e}")
            return []

        results: List[ParsingResult] = []
        position = 0
        while position < len(text):
            match = regex.search(text, position)
            if match is None:
                break

            if match.end() == match.start():
                position = match.start() + 1
                continue

            try:
                extracted = parser.extract(context, match)
            except Exception as e:
                logger.warning(f"Parser {parser.name} failed on '{match.group(0)}': {e}")
                extracted = None

            if extracted is None:
                position = match.start() + 1
                continue

            if isinstance(extracted, ParsingResult):
                result = extracted
            else:
                result = context.create_result(match.start(), match.group(0), extracted)
            result.add_tag(parser.name)

            context.debug(f"Parser {parser.name} extracted (at index={result.index}) '{result.text}'")
            results.append(result)
            position = max(match.end(), match.start() + 1)

        return results

    @staticmethod
    def _execute_refiner(
        context: ParsingContext,
        refiner: Refiner,
        results: List[ParsingResult],
    ) -> List[ParsingResult]:
        try:
            return refiner.refine(context, results)
        except Exception as e:
            logger.warning(f"Refiner {refiner.name} failed, keeping its input: {e}")
            return results


# ============================================================================
# LOCALE REGISTRY
# ============================================================================

LocaleFactories = Tuple[Callable[[], LocalePack], Callable[[], LocalePack]]

LOCALES: Dict[str, LocaleFactories] = {
    "en": (en.create_casual_configuration, en.create_strict_configuration),
    "de": (de.create_casual_configuration, de.create_strict_configuration),
}


def available_locales() -> List[str]:
    return sorted(LOCALES)


def create_locale_pack(locale: str, strict: bool = False) -> LocalePack:
    """Build a fresh pack for `locale`; callers cache it if they reuse it."""
    try:
        casual_factory, strict_factory = LOCALES[locale.lower()]
    except KeyError:
        raise UnknownLocaleError(
            f"Unknown locale {locale!r}; available: {', '.join(available_locales())}"
        ) from None
    return strict_factory() if strict else casual_factory()


def build_chrono(config: Optional[ChronoConfig] = None) -> Chrono:
    """Engine for a configuration (defaults to English casual, UTC)."""
    config = config or ChronoConfig()
    if config.log_level:
        set_log_level(config.log_level)
    return Chrono(create_locale_pack(config.locale, config.strict), timezone=config.timezone)


# ============================================================================
# CLI ENTRYPOINT
# ============================================================================

if __name__ == "__main__":
    from argparse import ArgumentParser

    parser = ArgumentParser(description="Extract dates and times from text")
    parser.add_argument("text", type=str, help="Text to parse")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (flags below override it)"
    )
    parser.add_argument(
        "--locale",
        type=str,
        default=None,
        help=f"Locale pack ({', '.join(available_locales())})"
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Use the strict pack (formal expressions only)"
    )
    parser.add_argument(
        "--forward-date",
        action="store_true",
        help="Move near-past, year-ambiguous dates into the future"
    )
    parser.add_argument(
        "--reference",
        type=str,
        default=None,
        help="Reference instant as ISO 8601 (default: now)"
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="Timezone for naive or missing reference instants"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    config = ChronoConfig.from_yaml(args.config) if args.config else ChronoConfig()
    overrides = {}
    if args.locale:
        overrides["locale"] = args.locale
    if args.strict:
        overrides["strict"] = True
    if args.forward_date:
        overrides["forward_date"] = True
    if args.timezone:
        overrides["timezone"] = args.timezone
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    if overrides:
        config = ChronoConfig.from_dict({**config.__dict__, **overrides})

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    chrono = build_chrono(config)
    reference = pendulum.parse(args.reference, tz=config.timezone) if args.reference else None

    results = chrono.parse(args.text, reference, config.options())
    print(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
