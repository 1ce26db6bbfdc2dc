"""
ProfitFlow - Shop Profit & Stock Ledger
========================================

Imports e-commerce order exports and stock reports into a key-value
ledger and derives daily profit reports and stock depletion forecasts.

Modules:
- config: Configuration management
- services.ledger: Persistent key-value ledger and backups
- services.order_ingestion: Orders and stock imports
- services.cost_resolution: Missing product cost prompts
- services.profit_calculator: Daily profit, averages and projection
- services.inventory_forecaster: Days-until-stockout ranking

Usage:
    from profitflow import KeyValueLedger, OrderIngestionPipeline, ProfitCalculator

    ledger = KeyValueLedger()
    OrderIngestionPipeline(ledger).ingest(csv_text)
    report = ProfitCalculator(ledger).report("2024-01-01", "2024-01-31")
"""

__version__ = "1.0.0"

from .config import Config, DEFAULT_CONFIG
from .services import (
    AdsCostTimeline,
    CostResolver,
    CsvRecordParser,
    EffectiveDatedSetting,
    InMemoryStore,
    InventoryForecaster,
    JsonFileStore,
    KeyValueLedger,
    NameMatcher,
    OrderIngestionPipeline,
    OutputGenerator,
    ProfitCalculator,
    StockImporter,
)

__all__ = [
    'Config',
    'DEFAULT_CONFIG',
    'AdsCostTimeline',
    'CostResolver',
    'CsvRecordParser',
    'EffectiveDatedSetting',
    'InMemoryStore',
    'InventoryForecaster',
    'JsonFileStore',
    'KeyValueLedger',
    'NameMatcher',
    'OrderIngestionPipeline',
    'OutputGenerator',
    'ProfitCalculator',
    'StockImporter',
]
