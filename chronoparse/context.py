"""
Parsing context: the immutable per-call state shared by parsers and refiners.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

import pendulum

from chronoparse.components import Field, ParsingComponents
from chronoparse.logger import get_logger
from chronoparse.results import ParsingResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class ParsingOptions:
    """Per-call options."""
    # Nudge near-past results with an uncertain year into the future
    forward_date: bool = False


def normalize_reference(
    reference: Optional[datetime] = None,
    timezone: str = "UTC",
) -> pendulum.DateTime:
    """
    Turn a caller-supplied reference into a timezone-aware pendulum DateTime.

    Naive datetimes are read as wall-clock time in `timezone`; aware ones keep
    their own zone; None means "now" in `timezone`.
    """
    if reference is None:
        return pendulum.now(timezone)
    if reference.tzinfo is None:
        return pendulum.instance(reference, tz=timezone)
    if isinstance(reference, pendulum.DateTime):
        return reference
    return pendulum.instance(reference)


@dataclass(frozen=True)
class ParsingContext:
    """Source text, reference instant and options of one parse call."""
    text: str
    reference: pendulum.DateTime
    options: ParsingOptions = ParsingOptions()

    def create_components(
        self,
        known_values: Optional[Dict[Field, int]] = None,
        implied_values: Optional[Dict[Field, int]] = None,
    ) -> ParsingComponents:
        """Fresh component store anchored to this call's reference instant."""
        return ParsingComponents(self.reference, known_values, implied_values)

    def create_result(
        self,
        index: int,
        text: str,
        start: ParsingComponents,
        end: Optional[ParsingComponents] = None,
    ) -> ParsingResult:
        return ParsingResult(
            reference=self.reference,
            index=index,
            text=text,
            start=start,
            end=end,
        )

    def debug(self, message: str) -> None:
        logger.debug(message)
