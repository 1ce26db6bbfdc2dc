"""
ProfitFlow - Configuration Module
==================================

Centralized configuration for ingestion, reporting and forecasting.
Supports environment-based settings for the ledger location and logging.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class OrderColumns:
    """Header names of the orders export (WooCommerce, Polish locale)"""
    date: str = 'Data'
    net_sales: str = 'Sprzedaż netto'
    net_income: str = 'Przychód netto (sformatowany)'
    products: str = 'Produkt(y)'

    # Optional columns, tried in order
    email: List[str] = field(default_factory=lambda: ['Customer Email', 'Email'])
    order_id: str = 'Numer zamówienia'

    @property
    def required(self) -> List[str]:
        return [self.date, self.net_sales, self.net_income, self.products]


@dataclass
class StockColumns:
    """Header names of the stock-level report"""
    stock: str = 'Stan magazynowy'
    # Title fallback chain; the first column is used if none match
    title: List[str] = field(default_factory=lambda: ['Tytuł produktu', 'Produkt', 'Nazwa'])


@dataclass
class ParsingConfig:
    """How money cells and channels are recognised"""
    currency_suffix: str = '\u00a0zł'
    marketplace_email_marker: str = 'allegromail'


@dataclass
class ReportConfig:
    """Profit report settings"""
    # Naive linear projection: average day x horizon
    projection_days: int = 30
    newest_first: bool = True


@dataclass
class ForecastConfig:
    """Inventory severity thresholds (days until stockout)"""
    critical_days: float = 30
    warning_days: float = 60


@dataclass
class MatchConfig:
    """Fuzzy suggestions for unknown product names"""
    # A candidate qualifies when its common substring is longer than this
    min_common_length: int = 3
    max_suggestions: int = 3


@dataclass
class Config:
    """
    Master configuration for ProfitFlow

    Usage:
        config = Config(ledger_path='data/ledger.json')
        config.forecast.critical_days = 14
    """

    ledger_path: Path = field(default_factory=lambda: Path.cwd() / 'data' / 'ledger.json')
    output_path: Path = field(default_factory=lambda: Path.cwd() / 'outputs')

    orders: OrderColumns = field(default_factory=OrderColumns)
    stock: StockColumns = field(default_factory=StockColumns)
    parsing: ParsingConfig = field(default_factory=ParsingConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    matching: MatchConfig = field(default_factory=MatchConfig)

    log_level: str = 'INFO'
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Convert string paths to Path objects"""
        if isinstance(self.ledger_path, str):
            self.ledger_path = Path(self.ledger_path)
        if isinstance(self.output_path, str):
            self.output_path = Path(self.output_path)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)

    @classmethod
    def from_env(cls, **overrides) -> 'Config':
        """
        Create config from environment variables.

        Recognised variables:
            PROFITFLOW_LEDGER     path of the JSON ledger file
            PROFITFLOW_OUTPUT     directory for exported tables
            PROFITFLOW_LOG_LEVEL  logging level name
            PROFITFLOW_LOG_FILE   optional log file

        Keyword overrides win over the environment.
        """
        values = {}
        if os.environ.get('PROFITFLOW_LEDGER'):
            values['ledger_path'] = os.environ['PROFITFLOW_LEDGER']
        if os.environ.get('PROFITFLOW_OUTPUT'):
            values['output_path'] = os.environ['PROFITFLOW_OUTPUT']
        if os.environ.get('PROFITFLOW_LOG_LEVEL'):
            values['log_level'] = os.environ['PROFITFLOW_LOG_LEVEL']
        if os.environ.get('PROFITFLOW_LOG_FILE'):
            values['log_file'] = os.environ['PROFITFLOW_LOG_FILE']
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# Default configuration instance
DEFAULT_CONFIG = Config()
