"""
Inventory Forecast Tests
=========================
Velocity, expected stock, exclusions and severity.
"""

import math
from datetime import date

import numpy as np
import pytest

from profitflow.config import ForecastConfig
from profitflow.models.errors import InvalidDateRangeError
from profitflow.services.inventory_forecaster import (
    InventoryForecaster,
    Severity,
    classify_severity,
)
from profitflow.services.order_ingestion import OrderIngestionPipeline

TODAY = date(2024, 1, 10)


@pytest.fixture
def imported(priced_ledger, orders_csv):
    OrderIngestionPipeline(priced_ledger).ingest(orders_csv)
    return priced_ledger


def rows_by_title(rows):
    return {row.title: row for row in rows}


def test_units_sold(imported):
    sold = InventoryForecaster(imported).units_sold(date(2024, 1, 5), date(2024, 1, 6))
    assert sold == {'Blue Mug': 3, 'Red Mug': 2}


def test_forecast_without_stock_is_neutral(imported):
    rows = InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)

    assert [row.title for row in rows] == ['Blue Mug', 'Red Mug']
    blue = rows[0]
    assert blue.importance == 30
    assert blue.velocity == pytest.approx(1.5)
    assert blue.expected_stock is None
    assert blue.days_left is None
    assert blue.severity is Severity.NEUTRAL


def test_expected_stock_uses_sales_since_update(imported):
    imported.set_product_stock('Blue Mug', 40)
    imported.set_product_stock('Red Mug', 3)
    imported.set_last_inventory_update('2024-01-06')

    rows = rows_by_title(
        InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)
    )

    # Only the 2024-01-06 order falls after the update
    assert rows['Blue Mug'].sold_since_update == 0
    assert rows['Blue Mug'].expected_stock == 40
    assert rows['Blue Mug'].days_left == pytest.approx(40 / 1.5)
    assert rows['Blue Mug'].severity is Severity.CRITICAL

    assert rows['Red Mug'].sold_since_update == 1
    assert rows['Red Mug'].expected_stock == 2
    assert rows['Red Mug'].days_left == pytest.approx(2)


def test_sales_before_update_are_not_subtracted(imported):
    imported.set_product_stock('Blue Mug', 60)
    imported.set_last_inventory_update('2024-01-07')

    rows = rows_by_title(
        InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)
    )
    assert rows['Blue Mug'].expected_stock == 60
    assert rows['Blue Mug'].severity is Severity.WARNING


def test_zero_and_unknown_cost_are_excluded(imported):
    imported.set_product_cost('Red Mug', 0)
    rows = InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)
    assert [row.title for row in rows] == ['Blue Mug']

    imported.store.set('Blue Mug', 'n/a')
    rows = InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)
    assert rows == []


def test_product_without_recorded_cost_is_excluded(imported):
    costs = imported.store.snapshot()
    del costs['Red Mug']
    imported.store.replace_all(costs)
    assert imported.get_product_cost('Red Mug') is None

    rows = InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)
    assert [row.title for row in rows] == ['Blue Mug']


@pytest.mark.parametrize('stored', ['Unknown', '2024-13-40'])
def test_unreadable_update_date_ignores_sales_since_update(imported, stored):
    imported.set_product_stock('Blue Mug', 40)
    imported.store.set('$last_inventory_update', stored)

    forecaster = InventoryForecaster(imported)
    assert forecaster.units_sold_since_update(TODAY) == {}

    rows = rows_by_title(forecaster.forecast('2024-01-05', '2024-01-06', today=TODAY))
    assert rows['Blue Mug'].sold_since_update == 0
    assert rows['Blue Mug'].expected_stock == 40


def test_velocity_counts_days_without_data(imported):
    rows = rows_by_title(
        InventoryForecaster(imported).forecast('2024-01-01', '2024-01-10', today=TODAY)
    )
    assert rows['Blue Mug'].velocity == pytest.approx(0.3)


def test_ranking_by_importance(imported):
    imported.set_product_cost('Red Mug', 100)
    rows = InventoryForecaster(imported).forecast('2024-01-05', '2024-01-06', today=TODAY)
    assert [row.title for row in rows] == ['Red Mug', 'Blue Mug']


def test_inverted_range_is_rejected(imported):
    with pytest.raises(InvalidDateRangeError):
        InventoryForecaster(imported).forecast('2024-01-06', '2024-01-05')


@pytest.mark.parametrize('expected, days_left, severity', [
    (None, None, Severity.NEUTRAL),
    (0, np.inf, Severity.CRITICAL),
    (-2, -1.0, Severity.CRITICAL),
    (10, 29.9, Severity.CRITICAL),
    (10, 30, Severity.WARNING),
    (10, 59.9, Severity.WARNING),
    (10, 60, Severity.NORMAL),
    (10, math.inf, Severity.NORMAL),
])
def test_classify_severity(expected, days_left, severity):
    assert classify_severity(expected, days_left) is severity


def test_custom_thresholds():
    config = ForecastConfig(critical_days=7, warning_days=14)
    assert classify_severity(10, 10, config) is Severity.WARNING
