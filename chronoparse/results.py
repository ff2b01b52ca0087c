"""
Results: located spans of source text with start/end component stores.

ParsingResult is the mutable working form passed between refiners.
ParsedResult / ParsedComponents are the resolved values handed to callers.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Set

import pendulum

from chronoparse.components import Field, ParsingComponents


@dataclass(frozen=True)
class TextSpan:
    """Represents a span of text with character offsets."""
    char_start: int
    char_end: int

    def overlaps(self, other: "TextSpan") -> bool:
        """Check if this span overlaps with another."""
        return self.char_start < other.char_end and other.char_start < self.char_end

    def contains(self, other: "TextSpan") -> bool:
        """Check if this span fully contains another."""
        return self.char_start <= other.char_start and self.char_end >= other.char_end

    def length(self) -> int:
        """Return the length of the span."""
        return self.char_end - self.char_start


# ============================================================================
# PUBLIC RESULTS
# ============================================================================

@dataclass(frozen=True)
class ParsedComponents:
    """A resolved instant together with the field values it came from."""
    date: pendulum.DateTime
    known_values: Dict[Field, int]
    implied_values: Dict[Field, int]

    def get(self, component: Field) -> Optional[int]:
        if component in self.known_values:
            return self.known_values[component]
        return self.implied_values.get(component)

    def is_certain(self, component: Field) -> bool:
        return component in self.known_values

    def to_dict(self) -> Dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "known_values": {f.name.lower(): v for f, v in sorted(self.known_values.items())},
            "implied_values": {f.name.lower(): v for f, v in sorted(self.implied_values.items())},
        }


@dataclass(frozen=True)
class ParsedResult:
    """One date/time expression found in the text."""
    index: int
    text: str
    start: ParsedComponents
    end: Optional[ParsedComponents] = None
    tags: FrozenSet[str] = frozenset()

    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "text": self.text,
            "start": self.start.to_dict(),
            "end": self.end.to_dict() if self.end is not None else None,
            "tags": sorted(self.tags),
        }


# ============================================================================
# WORKING RESULT
# ============================================================================

@dataclass
class ParsingResult:
    """A candidate result flowing through the refiner chain."""
    reference: pendulum.DateTime
    index: int
    text: str
    start: ParsingComponents
    end: Optional[ParsingComponents] = None
    _tags: Set[str] = field(default_factory=set)

    @property
    def end_index(self) -> int:
        return self.index + len(self.text)

    @property
    def span(self) -> TextSpan:
        return TextSpan(self.index, self.end_index)

    def add_tag(self, tag: str) -> "ParsingResult":
        self._tags.add(tag)
        return self

    def add_tags(self, tags) -> "ParsingResult":
        self._tags.update(tags)
        return self

    def tags(self) -> Set[str]:
        """Tags of the result and of its component stores."""
        combined = set(self._tags) | self.start.tags()
        if self.end is not None:
            combined |= self.end.tags()
        return combined

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags()

    def clone(self) -> "ParsingResult":
        return ParsingResult(
            reference=self.reference,
            index=self.index,
            text=self.text,
            start=self.start.clone(),
            end=self.end.clone() if self.end is not None else None,
            _tags=set(self._tags),
        )

    def date(self) -> Optional[pendulum.DateTime]:
        return self.start.date()

    def to_public(self) -> ParsedResult:
        """Resolve both stores; raises ResolutionError when either cannot be resolved."""
        start = ParsedComponents(
            date=self.start.resolve(),
            known_values=self.start.known_values(),
            implied_values=self.start.implied_values(),
        )
        end = None
        if self.end is not None:
            end = ParsedComponents(
                date=self.end.resolve(),
                known_values=self.end.known_values(),
                implied_values=self.end.implied_values(),
            )
        return ParsedResult(
            index=self.index,
            text=self.text,
            start=start,
            end=end,
            tags=frozenset(self.tags()),
        )

    def __repr__(self) -> str:
        return f"ParsingResult(index={self.index}, text={self.text!r}, start={self.start!r}, end={self.end!r})"
