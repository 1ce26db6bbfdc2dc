"""
Output Tests
=============
Display formatting, DataFrame views and CSV/JSON exports.
"""

import json

import numpy as np
import pandas as pd
import pytest

from profitflow.services.inventory_forecaster import ForecastRow, InventoryForecaster, Severity
from profitflow.services.order_ingestion import OrderIngestionPipeline
from profitflow.services.output_generator import (
    DAILY_COLUMNS,
    OutputGenerator,
    forecast_frame,
    format_days_left,
    format_expected_stock,
    report_daily_frame,
    report_orders_frame,
    report_summary_frame,
)
from profitflow.services.profit_calculator import ProfitCalculator


def make_row(expected_stock, days_left):
    return ForecastRow(
        title='Blue Mug', stock=expected_stock, expected_stock=expected_stock,
        sold=3, sold_since_update=0, cost=10.0, importance=30.0, velocity=1.5,
        days_left=days_left, severity=Severity.NORMAL,
    )


@pytest.fixture
def report(configured_ledger, orders_csv):
    OrderIngestionPipeline(configured_ledger).ingest(orders_csv)
    return ProfitCalculator(configured_ledger).report('2024-01-04', '2024-01-06')


def test_display_hints():
    assert format_days_left(make_row(None, None)) == '?'
    assert format_days_left(make_row(5.0, np.inf)) == '∞'
    assert format_days_left(make_row(40.0, 26.1)) == '27'
    assert format_expected_stock(make_row(None, None)) == '?'
    assert format_expected_stock(make_row(2.7, 1.8)) == '2'


def test_report_frames(report):
    daily = report_daily_frame(report)
    assert list(daily.columns) == DAILY_COLUMNS
    assert list(daily['date']) == ['2024-01-06', '2024-01-05', '2024-01-04']
    assert list(daily['missing']) == [False, False, True]

    orders = report_orders_frame(report)
    assert list(orders['order_id']) == ['1003', '1002', '1001']

    summary = report_summary_frame(report)
    assert list(summary['label']) == ['TOTAL', 'AVG', 'PROJ 30d']


def test_forecast_frame_display_columns(priced_ledger, orders_csv):
    OrderIngestionPipeline(priced_ledger).ingest(orders_csv)
    rows = InventoryForecaster(priced_ledger).forecast('2024-01-05', '2024-01-06')

    frame = forecast_frame(rows)
    assert list(frame['title']) == ['Blue Mug', 'Red Mug']
    assert list(frame['days_left_display']) == ['?', '?']
    assert list(frame['severity']) == ['neutral', 'neutral']


def test_forecast_frame_empty():
    assert forecast_frame([]).empty


def test_export_report(tmp_path, report):
    exported = OutputGenerator(tmp_path).export_report(report)

    assert set(exported) == {'daily_csv', 'orders_csv', 'report_json'}
    daily = pd.read_csv(exported['daily_csv'])
    assert list(daily['date']) == ['2024-01-06', '2024-01-05', '2024-01-04',
                                   'TOTAL', 'AVG', 'PROJ 30d']

    with open(exported['report_json'], encoding='utf-8') as f:
        payload = json.load(f)
    assert payload['start'] == '2024-01-04'
    assert payload['totals']['days'] == 2


def test_export_report_json_only(tmp_path, report):
    exported = OutputGenerator(tmp_path).export_report(report, formats=['json'])
    assert list(exported) == ['report_json']
    assert (tmp_path / 'profit' / 'profit_report_2024-01-04_2024-01-06.json').exists()


def test_export_forecast(tmp_path):
    rows = [make_row(5.0, np.inf), make_row(None, None)]
    exported = OutputGenerator(tmp_path).export_forecast(rows, '2024-01-01', '2024-01-31')

    with open(exported['forecast_json'], encoding='utf-8') as f:
        payload = json.load(f)
    assert [item['days_left'] for item in payload] == ['∞', '?']
    assert pd.read_csv(exported['forecast_csv'])['title'].tolist() == ['Blue Mug', 'Blue Mug']
