"""
Inventory Depletion Forecast
=============================
Ranks products by sales importance and estimates days until stockout.

For a report range [start, end]:
1. sold        = units sold per product inside the range
2. sold_since  = units sold per product from the last inventory update
                 through today, independent of the range
3. velocity    = sold / number of days in range
   expected    = last recorded stock - sold_since   (unknown without stock)
   days_left   = expected / velocity, unbounded when velocity is 0
   importance  = sold * unit cost
4. Products without a cost, or with cost 0, are left out: they are
   usually free add-ons that nobody restocks.
5. Rows are ordered by importance, highest first.

Severity (display hint):
- NEUTRAL   expected stock unknown
- CRITICAL  expected stock <= 0 or fewer than 30 days left
- WARNING   fewer than 60 days left
- NORMAL    otherwise
"""

import math
from collections import Counter
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from profitflow.config import Config, DEFAULT_CONFIG, ForecastConfig
from profitflow.models.errors import InvalidDateError
from profitflow.services.csv_parser import parse_product_list
from profitflow.services.ledger import KeyValueLedger
from profitflow.utils.logger import get_logger
from profitflow.utils.validators import validate_date_range, validate_iso_date

logger = get_logger(__name__)


class Severity(Enum):
    """Stock risk levels"""
    NEUTRAL = "neutral"
    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"


@dataclass
class ForecastRow:
    """Depletion outlook for one product"""
    title: str
    stock: Optional[float]
    expected_stock: Optional[float]
    sold: int
    sold_since_update: int
    cost: float
    importance: float
    velocity: float
    days_left: Optional[float]
    severity: Severity

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'stock': self.stock,
            'expected_stock': self.expected_stock,
            'sold': self.sold,
            'sold_since_update': self.sold_since_update,
            'cost': self.cost,
            'importance': self.importance,
            'velocity': self.velocity,
            'days_left': self.days_left,
            'severity': self.severity.value,
        }


def classify_severity(
    expected_stock: Optional[float],
    days_left: Optional[float],
    config: Optional[ForecastConfig] = None
) -> Severity:
    config = config or ForecastConfig()
    if expected_stock is None:
        return Severity.NEUTRAL
    if expected_stock <= 0 or days_left < config.critical_days:
        return Severity.CRITICAL
    if days_left < config.warning_days:
        return Severity.WARNING
    return Severity.NORMAL


class InventoryForecaster:
    """
    Forecasts stock depletion from the daily aggregates in the ledger.

    Usage:
        forecaster = InventoryForecaster(ledger)
        rows = forecaster.forecast("2024-01-01", "2024-01-31")
    """

    def __init__(self, ledger: KeyValueLedger, config: Optional[Config] = None):
        self.ledger = ledger
        self.config = config or DEFAULT_CONFIG

    def units_sold(self, start: date, end: date) -> Counter:
        """Units sold per product over stored aggregates in [start, end]."""
        sold = Counter()
        for day in pd.date_range(start, end, freq='D'):
            aggregate = self.ledger.get_daily_data(day.strftime('%Y-%m-%d'))
            if aggregate is None:
                continue
            for order in aggregate.orders:
                for quantity, name in parse_product_list(order.products_summary):
                    sold[name] += quantity
        return sold

    def units_sold_since_update(self, today: date) -> Counter:
        """Units sold from the last inventory update through ``today``."""
        last_update = self.ledger.get_last_inventory_update()
        if not last_update:
            return Counter()
        try:
            update_date = validate_iso_date(last_update, "last inventory update")
        except InvalidDateError as e:
            logger.warning(f"Ignoring stored inventory update date: {e}")
            return Counter()
        if update_date > today:
            return Counter()
        return self.units_sold(update_date, today)

    def forecast(self, start: Any, end: Any, today: Optional[date] = None) -> List[ForecastRow]:
        """
        Forecast rows for products sold in [start, end], most important first.

        Raises
        ------
        InvalidDateRangeError
            If start is after end
        """
        start_date, end_date = validate_date_range(start, end)
        today = today or date.today()
        days_in_range = (end_date - start_date).days + 1

        sold_in_range = self.units_sold(start_date, end_date)
        sold_since = self.units_sold_since_update(today)

        rows = []
        for name, sold in sold_in_range.items():
            cost = self.ledger.get_product_cost(name)
            if cost is None or not math.isfinite(cost) or cost == 0:
                continue

            stock = self.ledger.get_product_stock(name)
            if stock is not None and not math.isfinite(stock):
                stock = None
            velocity = sold / days_in_range
            since = sold_since.get(name, 0)
            expected = stock - since if stock is not None else None

            if expected is None:
                days_left = None
            elif velocity > 0:
                days_left = expected / velocity
            else:
                days_left = np.inf

            rows.append(ForecastRow(
                title=name,
                stock=stock,
                expected_stock=expected,
                sold=sold,
                sold_since_update=since,
                cost=cost,
                importance=sold * cost,
                velocity=velocity,
                days_left=days_left,
                severity=classify_severity(expected, days_left, self.config.forecast),
            ))

        # sorted() is stable, so equal importance keeps first-sold order
        rows = sorted(rows, key=lambda row: row.importance, reverse=True)
        logger.info(
            f"Inventory forecast {start_date}..{end_date}: {len(rows)} products "
            f"({sum(r.severity is Severity.CRITICAL for r in rows)} critical)"
        )
        return rows
