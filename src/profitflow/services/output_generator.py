"""
Output Generator Service
=========================
Tabular views and file exports of profit reports and forecasts.

Output Structure:
outputs/
├── profit/
│   ├── profit_daily_<start>_<end>.csv
│   ├── profit_orders_<start>_<end>.csv
│   └── profit_report_<start>_<end>.json
└── inventory/
    ├── forecast_<start>_<end>.csv
    └── forecast_<start>_<end>.json
"""

import json
import math
from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from profitflow.services.inventory_forecaster import ForecastRow
from profitflow.services.profit_calculator import ProfitReport, SUMMARY_FIELDS
from profitflow.utils.logger import get_logger

logger = get_logger(__name__)

DAILY_COLUMNS = ['date', 'missing', 'order_count', 'income', 'sales', 'product_costs',
                 'fees', 'tax', 'ads', 'fixed', 'total_cost', 'profit']


# =============================================================================
# DISPLAY FORMATTING
# =============================================================================


def format_days_left(row: ForecastRow) -> str:
    """'?' when stock is unknown, '∞' without sales, else whole days rounded up."""
    if row.expected_stock is None or row.days_left is None:
        return '?'
    if np.isinf(row.days_left):
        return '∞'
    return str(math.ceil(row.days_left))


def format_expected_stock(row: ForecastRow) -> str:
    if row.expected_stock is None:
        return '?'
    return str(math.floor(row.expected_stock))


def _forecast_record(row: ForecastRow) -> dict:
    """JSON-safe forecast record; unbounded or unknown days become '∞' or '?'."""
    record = row.to_dict()
    if row.days_left is None or np.isinf(row.days_left):
        record['days_left'] = format_days_left(row)
    return record


# =============================================================================
# DATAFRAME VIEWS
# =============================================================================


def report_daily_frame(report: ProfitReport) -> pd.DataFrame:
    """One row per date, missing dates included and flagged."""
    records = [{column: getattr(row, column) for column in DAILY_COLUMNS} for row in report.rows]
    return pd.DataFrame.from_records(records, columns=DAILY_COLUMNS)


def report_orders_frame(report: ProfitReport) -> pd.DataFrame:
    """Per-order breakdown of every date with data."""
    records = []
    for row in report.rows:
        for order in row.orders:
            record = {'date': row.date}
            record.update(vars(order))
            records.append(record)
    return pd.DataFrame.from_records(records)


def report_summary_frame(report: ProfitReport) -> pd.DataFrame:
    """Totals, average and projection; empty when no date had data."""
    rows = [r for r in (report.totals, report.average, report.projection) if r is not None]
    columns = ['label', 'days'] + SUMMARY_FIELDS
    return pd.DataFrame.from_records([vars(r) for r in rows], columns=columns)


def forecast_frame(rows: List[ForecastRow]) -> pd.DataFrame:
    """Forecast rows in ranking order, with display columns for days and stock."""
    frame = pd.DataFrame.from_records([row.to_dict() for row in rows])
    if frame.empty:
        return frame
    frame['expected_stock_display'] = [format_expected_stock(row) for row in rows]
    frame['days_left_display'] = [format_days_left(row) for row in rows]
    return frame


# =============================================================================
# EXPORT
# =============================================================================


class OutputGenerator:
    """
    Export reports and forecasts to CSV and JSON.

    Usage
    -----
    >>> generator = OutputGenerator(output_dir="./outputs")
    >>> generator.export_report(report)
    >>> generator.export_forecast(rows, "2024-01-01", "2024-01-31")
    """

    def __init__(self, output_dir: Union[str, Path] = 'outputs'):
        self.output_dir = Path(output_dir)

    def _subdir(self, name: str) -> Path:
        path = self.output_dir / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    def export_report(
        self,
        report: ProfitReport,
        formats: Optional[List[str]] = None
    ) -> Dict[str, str]:
        """
        Write a profit report.

        Parameters
        ----------
        report : ProfitReport
            The report to export
        formats : List[str], optional
            Export formats ('csv', 'json'). Default: both

        Returns
        -------
        Dict[str, str]
            Mapping of output type to file path
        """
        formats = formats or ['csv', 'json']
        exported = {}
        target = self._subdir('profit')
        suffix = f"{report.start}_{report.end}"

        if 'csv' in formats:
            path = target / f'profit_daily_{suffix}.csv'
            daily = report_daily_frame(report)
            pd.concat([daily, report_summary_frame(report).rename(columns={'label': 'date'})],
                      ignore_index=True).to_csv(path, index=False)
            exported['daily_csv'] = str(path)

            orders = report_orders_frame(report)
            if len(orders) > 0:
                path = target / f'profit_orders_{suffix}.csv'
                orders.to_csv(path, index=False)
                exported['orders_csv'] = str(path)

        if 'json' in formats:
            path = target / f'profit_report_{suffix}.json'
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(report.to_dict(), f, indent=2, ensure_ascii=False, default=str)
            exported['report_json'] = str(path)

        logger.info(f"Export complete: {len(exported)} files written")
        return exported

    def export_forecast(
        self,
        rows: List[ForecastRow],
        start: str,
        end: str,
        formats: Optional[List[str]] = None
    ) -> Dict[str, str]:
        """Write forecast rows; returns output type to file path."""
        formats = formats or ['csv', 'json']
        exported = {}
        target = self._subdir('inventory')
        suffix = f"{start}_{end}"

        if 'csv' in formats:
            path = target / f'forecast_{suffix}.csv'
            forecast_frame(rows).to_csv(path, index=False)
            exported['forecast_csv'] = str(path)

        if 'json' in formats:
            path = target / f'forecast_{suffix}.json'
            payload = [_forecast_record(row) for row in rows]
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False, default=str)
            exported['forecast_json'] = str(path)

        logger.info(f"Export complete: {len(exported)} files written")
        return exported
