"""Errors raised by chronoparse.

Parsing itself never raises: unusable matches are rejected inside parsers and
unresolvable results are dropped by the orchestrator. Only explicit resolution
and configuration loading surface these to callers.
"""


class ChronoError(Exception):
    """Base error for the date extraction engine."""


class ResolutionError(ChronoError, ValueError):
    """Raised when a component store cannot be turned into a calendar instant."""


class ConfigurationError(ChronoError):
    """Raised when an engine configuration is invalid or cannot be loaded."""


class UnknownLocaleError(ConfigurationError):
    """Raised when no locale pack is registered under the requested name."""
