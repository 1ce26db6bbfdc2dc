"""
Models Package
===============
Records stored in the ledger and the errors raised by the engine.
"""

from .errors import (
    FormatError,
    InvalidDateError,
    InvalidDateRangeError,
    ProfitFlowError,
    RestoreParseError,
    UnknownSettingError,
)
from .records import (
    DailyAggregate,
    GlobalSettings,
    IngestResult,
    IngestStatus,
    Order,
    StockImportResult,
)

__all__ = [
    'FormatError',
    'InvalidDateError',
    'InvalidDateRangeError',
    'ProfitFlowError',
    'RestoreParseError',
    'UnknownSettingError',
    'DailyAggregate',
    'GlobalSettings',
    'IngestResult',
    'IngestStatus',
    'Order',
    'StockImportResult',
]
