"""
Error taxonomy for the object statistics collector.

Operational failures and invariant violations are fatal to a run. They are
raised by the query executor and the row decoders, then caught once by the
orchestrator, which attaches the database and category it was working on.
"""


class StatsError(Exception):
    """Base class for all collector errors."""

    def __init__(self, message, detail=None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self):
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class ConfigError(StatsError):
    """The run configuration is missing or invalid."""


class OperationalFailure(StatsError):
    """The query executor could not produce a result."""


class InvariantViolation(StatsError):
    """A query returned rows in a shape the decoders do not expect."""
