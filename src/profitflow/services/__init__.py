"""
Services Package
=================
Core business logic of ProfitFlow.

Modules:
- ledger: Key-value store backends and the typed ledger
- settings_timeline: Effective-dated settings (ads cost per day)
- csv_parser: Tolerant line parser and cell parsers
- name_matcher: Similar-name suggestions
- order_ingestion: Orders export and stock report imports
- cost_resolution: Resolution of unknown product costs
- profit_calculator: Daily profit report
- inventory_forecaster: Stock depletion forecast
- output_generator: DataFrame views and exports
"""

from .ledger import InMemoryStore, JsonFileStore, KeyValueLedger
from .settings_timeline import AdsCostTimeline, EffectiveDatedSetting
from .csv_parser import CsvRecordParser
from .name_matcher import NameMatcher, longest_common_substring
from .order_ingestion import OrderIngestionPipeline, StockImporter
from .cost_resolution import CostRequest, CostResolver, ingest_until_resolved
from .profit_calculator import ProfitCalculator, ProfitReport
from .inventory_forecaster import ForecastRow, InventoryForecaster, Severity
from .output_generator import OutputGenerator

__all__ = [
    'InMemoryStore',
    'JsonFileStore',
    'KeyValueLedger',
    'AdsCostTimeline',
    'EffectiveDatedSetting',
    'CsvRecordParser',
    'NameMatcher',
    'longest_common_substring',
    'OrderIngestionPipeline',
    'StockImporter',
    'CostRequest',
    'CostResolver',
    'ingest_until_resolved',
    'ProfitCalculator',
    'ProfitReport',
    'ForecastRow',
    'InventoryForecaster',
    'Severity',
    'OutputGenerator',
]
