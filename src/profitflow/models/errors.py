"""
Exception hierarchy for ProfitFlow.

Data problems inside an import are reported through result objects
(see records.IngestResult); these exceptions cover requests that cannot
be served at all.
"""

from typing import List, Optional


class ProfitFlowError(Exception):
    """Base class for every error raised by the engine."""


class FormatError(ProfitFlowError):
    """An export is missing required columns."""

    def __init__(self, missing_columns: List[str], source: str = "export"):
        self.missing_columns = list(missing_columns)
        self.source = source
        super().__init__(
            f"Invalid {source} format. Missing: {', '.join(self.missing_columns)}"
        )


class InvalidDateError(ProfitFlowError, ValueError):
    """A date parameter is not a YYYY-MM-DD string."""


class InvalidDateRangeError(InvalidDateError):
    """Report range whose start date is after its end date."""

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Start date {start} must not be after end date {end}")


class RestoreParseError(ProfitFlowError):
    """A backup payload could not be parsed; the ledger was not modified."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class UnknownSettingError(ProfitFlowError, KeyError):
    """Name that is not one of the global settings."""

    def __str__(self):
        return f"Unknown setting: {self.args[0]!r}"
