"""
Locale packs: the immutable (parsers, refiners) configuration of an engine.
"""
import re
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from chronoparse.common_parsers import ISOFormatParser
from chronoparse.contracts import Parser, Refiner
from chronoparse.refiners import ForwardDateRefiner, OverlapRemovalRefiner, UnlikelyFormatFilter


@dataclass(frozen=True)
class LocalePack:
    """Ordered parsers and refiners for one language and mode."""
    name: str
    parsers: Tuple[Parser, ...]
    refiners: Tuple[Refiner, ...]

    def with_parser(self, parser: Parser) -> "LocalePack":
        return LocalePack(self.name, self.parsers + (parser,), self.refiners)

    def with_refiner(self, refiner: Refiner) -> "LocalePack":
        return LocalePack(self.name, self.parsers, self.refiners + (refiner,))


def include_common_configuration(
    name: str,
    parsers: Sequence[Parser],
    refiners: Sequence[Refiner],
    strict_mode: bool = False,
) -> LocalePack:
    """
    Wrap a locale's own parsers/refiners with the shared ones.

    ISO parser first; overlap removal first; forward date last; the
    unlikely-format filter after it in strict mode.
    """
    all_parsers = [ISOFormatParser(), *parsers]
    all_refiners = [OverlapRemovalRefiner(), *refiners, ForwardDateRefiner()]
    if strict_mode:
        all_refiners.append(UnlikelyFormatFilter(strict_mode=True))
    return LocalePack(name=name, parsers=tuple(all_parsers), refiners=tuple(all_refiners))


def match_any_pattern(words: Iterable[str]) -> str:
    """Non-capturing alternation of dictionary words, longest first."""
    alternatives = sorted(set(words), key=lambda w: (-len(w), w))
    return "(?:" + "|".join(re.escape(w) for w in alternatives) + ")"
