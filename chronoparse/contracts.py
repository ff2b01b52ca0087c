"""
Parser and Refiner contracts.

A locale pack is an ordered list of Parser instances and an ordered list of
Refiner instances. Implementations must not keep per-instance mutable state:
one pack is shared, read-only, by every parse call.
"""
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from chronoparse.components import ParsingComponents
from chronoparse.context import ParsingContext
from chronoparse.results import ParsingResult

ExtractionResult = Optional[Union[ParsingComponents, ParsingResult]]


class Parser(ABC):
    """Produces a pattern to scan for and turns each match into components."""

    @property
    def name(self) -> str:
        """Identity used to tag the results this parser produces."""
        return type(self).__name__

    @abstractmethod
    def pattern(self, context: ParsingContext) -> str:
        """Regular expression scanned (case-insensitively) over the whole text."""
        pass

    @abstractmethod
    def extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        """
        Interpret one match.

        Return a component store, a complete ParsingResult (range-producing
        parsers), or None to reject the match.
        """
        pass


class Refiner(ABC):
    """Pure transformation of the full result list."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def refine(self, context: ParsingContext, results: List[ParsingResult]) -> List[ParsingResult]:
        pass


class AbstractParserWithWordBoundaryChecking(Parser):
    """
    Parser whose matches may not start in the middle of a word.

    Subclasses provide `inner_pattern` and `inner_extract`; the look-behind
    keeps the match index on the first character of the expression.
    """

    def pattern(self, context: ParsingContext) -> str:
        return r"(?<!\w)(?:" + self.inner_pattern(context) + ")"

    def extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        return self.inner_extract(context, match)

    @abstractmethod
    def inner_pattern(self, context: ParsingContext) -> str:
        pass

    @abstractmethod
    def inner_extract(self, context: ParsingContext, match: re.Match) -> ExtractionResult:
        pass
