"""Errors raised by the metrics engine when the source data cannot be trusted."""
from __future__ import annotations


class DataQualityError(ValueError):
    """A source value could not be read as its declared type; the run is aborted."""


class DuplicateKeyError(DataQualityError):
    """The same (location, date) key appears more than once in one input series."""

    def __init__(self, series: str, keys: list[tuple]):
        self.series = series
        self.keys = keys
        preview = ", ".join(f"{loc}@{day}" for loc, day in keys[:5])
        more = f" (+{len(keys) - 5} more)" if len(keys) > 5 else ""
        super().__init__(f"Duplicate (location, date) keys in {series}: {preview}{more}")
