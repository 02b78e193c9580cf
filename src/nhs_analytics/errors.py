from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for errors raised by the analytics layer."""


class DataLoadError(AnalyticsError):
    """The dataset source is unreachable or cannot be parsed as a table."""


class UnknownFieldError(AnalyticsError, KeyError):
    """A (domain, sub-key, metric) combination is not part of the field schema."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown field"


class MalformedRowWarning(UserWarning):
    """Rows or cells were dropped or coerced while parsing the dataset."""
