"""
Profit Calculation
===================
Daily profit from stored aggregates, settings and the ads timeline.

Per day:
    tax        = sales * revenue_tax_percent / 100
    total_cost = product_costs + fees + tax + ads(date) + fixed_cost_per_day
    profit     = sales - total_cost

Profit is taken against ``sales`` (gross sale amount). The revenue shown
next to it is ``income`` (net formatted income); the two are different
columns of the export and stay separate.

Per order, the day's ads spend is split only across non-marketplace
orders while the fixed cost is split across all orders. This is plain
amortisation, not attribution.

The range summary averages over days that have data, and the projection
is that average times 30: a flat extrapolation with no trend or
seasonality.
"""

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

import pandas as pd

from profitflow.config import Config, DEFAULT_CONFIG
from profitflow.models.records import DailyAggregate, GlobalSettings, Order
from profitflow.services.ledger import KeyValueLedger
from profitflow.services.settings_timeline import AdsCostTimeline
from profitflow.utils.logger import get_logger
from profitflow.utils.validators import validate_date_range

logger = get_logger(__name__)


# =============================================================================
# PURE DAY / ORDER FORMULAS
# =============================================================================


def day_tax(day: DailyAggregate, settings: GlobalSettings) -> float:
    return day.sales * (settings.revenue_tax_percent / 100)


def day_total_cost(day: DailyAggregate, settings: GlobalSettings, ads_cost: float) -> float:
    return (day.product_costs + day.fees + day_tax(day, settings)
            + ads_cost + settings.fixed_cost_per_day)


def day_profit(day: DailyAggregate, settings: GlobalSettings, ads_cost: float) -> float:
    return day.sales - day_total_cost(day, settings, ads_cost)


def ads_per_order(day: DailyAggregate, ads_cost: float) -> float:
    """Ads share of one non-marketplace order."""
    count = day.non_marketplace_count
    return ads_cost / count if count > 0 else 0.0


def fixed_per_order(day: DailyAggregate, settings: GlobalSettings) -> float:
    """Fixed-cost share of any order."""
    return settings.fixed_cost_per_day / day.order_count if day.order_count > 0 else 0.0


def _order_sort_key(order: Order) -> int:
    try:
        return int(order.id)
    except (TypeError, ValueError):
        return 0


# =============================================================================
# REPORT ROWS
# =============================================================================


@dataclass
class OrderReportRow:
    """Cost breakdown of one order"""
    order_id: str
    products_summary: str
    is_marketplace: bool
    sales: float
    income: float
    product_costs: float
    fee: float
    tax: float
    ads: float
    fixed: float
    total_cost: float
    profit: float

    @classmethod
    def from_order(
        cls,
        order: Order,
        settings: GlobalSettings,
        ads_share: float,
        fixed_share: float
    ) -> 'OrderReportRow':
        tax = order.sales * (settings.revenue_tax_percent / 100)
        ads = 0.0 if order.is_marketplace else ads_share
        total = order.product_costs + order.fees + tax + ads + fixed_share
        return cls(
            order_id=order.id,
            products_summary=order.products_summary,
            is_marketplace=order.is_marketplace,
            sales=order.sales,
            income=order.income,
            product_costs=order.product_costs,
            fee=order.fees,
            tax=tax,
            ads=ads,
            fixed=fixed_share,
            total_cost=total,
            profit=order.sales - total,
        )


@dataclass
class DayReportRow:
    """
    One date of the report.

    ``missing`` rows stand for dates without a stored aggregate; their
    figures are None and they do not count towards the summary.
    """
    date: str
    missing: bool = False
    order_count: Optional[int] = None
    sales: Optional[float] = None
    income: Optional[float] = None
    product_costs: Optional[float] = None
    fees: Optional[float] = None
    tax: Optional[float] = None
    ads: Optional[float] = None
    fixed: Optional[float] = None
    total_cost: Optional[float] = None
    profit: Optional[float] = None
    orders: List[OrderReportRow] = field(default_factory=list)

    @classmethod
    def missing_day(cls, date_str: str) -> 'DayReportRow':
        return cls(date=date_str, missing=True)

    @classmethod
    def from_aggregate(
        cls,
        day: DailyAggregate,
        settings: GlobalSettings,
        ads_cost: float
    ) -> 'DayReportRow':
        ads_share = ads_per_order(day, ads_cost)
        fixed_share = fixed_per_order(day, settings)
        orders = sorted(day.orders, key=_order_sort_key, reverse=True)
        return cls(
            date=day.date,
            order_count=day.order_count,
            sales=day.sales,
            income=day.income,
            product_costs=day.product_costs,
            fees=day.fees,
            tax=day_tax(day, settings),
            ads=ads_cost,
            fixed=settings.fixed_cost_per_day,
            total_cost=day_total_cost(day, settings, ads_cost),
            profit=day_profit(day, settings, ads_cost),
            orders=[OrderReportRow.from_order(o, settings, ads_share, fixed_share) for o in orders],
        )


@dataclass
class SummaryRow:
    """Totals, average or projection over the days with data"""
    label: str
    days: int
    order_count: float = 0.0
    sales: float = 0.0
    income: float = 0.0
    product_costs: float = 0.0
    fees: float = 0.0
    tax: float = 0.0
    ads: float = 0.0
    fixed: float = 0.0
    total_cost: float = 0.0
    profit: float = 0.0

    def scaled(self, label: str, factor: float) -> 'SummaryRow':
        values = {name: getattr(self, name) * factor for name in SUMMARY_FIELDS}
        return SummaryRow(label=label, days=self.days, **values)


SUMMARY_FIELDS = [f.name for f in fields(SummaryRow) if f.name not in ('label', 'days')]


@dataclass
class ProfitReport:
    """Profit report over an inclusive date range"""
    start: str
    end: str
    rows: List[DayReportRow]
    totals: Optional[SummaryRow] = None
    average: Optional[SummaryRow] = None
    projection: Optional[SummaryRow] = None

    @property
    def days_with_data(self) -> int:
        return sum(1 for row in self.rows if not row.missing)

    @property
    def missing_dates(self) -> List[str]:
        return [row.date for row in self.rows if row.missing]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# CALCULATOR
# =============================================================================


class ProfitCalculator:
    """
    Builds profit reports from the ledger.

    Usage:
        calculator = ProfitCalculator(ledger)
        report = calculator.report("2024-01-01", "2024-01-31")
        report.average.profit
    """

    def __init__(self, ledger: KeyValueLedger, config: Optional[Config] = None):
        self.ledger = ledger
        self.config = config or DEFAULT_CONFIG
        self.ads_timeline = AdsCostTimeline(ledger)

    def day_row(self, date_str: str, settings: Optional[GlobalSettings] = None) -> DayReportRow:
        settings = settings or self.ledger.get_globals()
        day = self.ledger.get_daily_data(date_str)
        if day is None:
            return DayReportRow.missing_day(date_str)
        return DayReportRow.from_aggregate(day, settings, self.ads_timeline.resolve(date_str))

    def report(self, start: Any, end: Any) -> ProfitReport:
        """
        Report every date from ``start`` to ``end``, both included.

        Raises
        ------
        InvalidDateRangeError
            If start is after end
        """
        start_date, end_date = validate_date_range(start, end)
        settings = self.ledger.get_globals()

        rows = [self.day_row(d.strftime('%Y-%m-%d'), settings)
                for d in pd.date_range(start_date, end_date, freq='D')]

        totals, average, projection = self.summarize(rows)

        if self.config.report.newest_first:
            rows.reverse()

        report = ProfitReport(
            start=start_date.isoformat(),
            end=end_date.isoformat(),
            rows=rows,
            totals=totals,
            average=average,
            projection=projection,
        )
        logger.info(
            f"Profit report {report.start}..{report.end}: "
            f"{report.days_with_data} days with data, {len(report.missing_dates)} missing"
        )
        return report

    def summarize(self, rows: List[DayReportRow]):
        """Totals, average and projection over the rows that have data."""
        valid = [row for row in rows if not row.missing]
        if not valid:
            return None, None, None

        days = len(valid)
        totals = SummaryRow(
            label='TOTAL',
            days=days,
            **{name: sum(getattr(row, name) for row in valid) for name in SUMMARY_FIELDS}
        )
        average = SummaryRow(
            label='AVG',
            days=days,
            **{name: getattr(totals, name) / days for name in SUMMARY_FIELDS}
        )
        horizon = self.config.report.projection_days
        projection = average.scaled(f'PROJ {horizon}d', horizon)
        return totals, average, projection
