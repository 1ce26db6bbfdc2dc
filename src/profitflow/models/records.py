"""
Ledger Records
===============
Typed views of what the ledger stores and of what imports return.

Aggregates are serialized with the field names used by existing ledger
and backup files (product_costs, count, ordersList, is_allegro, ...).
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional

from profitflow.models.errors import FormatError


@dataclass
class GlobalSettings:
    """Process-wide cost settings; every field defaults to 0."""
    ads_cost_per_day: float = 0.0
    fixed_cost_per_day: float = 0.0
    payment_fee_percent: float = 0.0
    revenue_tax_percent: float = 0.0
    marketplace_fee_percent: float = 0.0

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def to_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in self.field_names()}


@dataclass
class Order:
    """A single order as it was priced during one ingestion pass."""
    id: str
    sales: float
    income: float
    product_costs: float = 0.0
    is_marketplace: bool = False
    fees: float = 0.0
    products_summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'sales': self.sales,
            'income': self.income,
            'product_costs': self.product_costs,
            'is_allegro': self.is_marketplace,
            'products_summary': self.products_summary,
            'fees': self.fees,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'Order':
        return cls(
            id=str(payload.get('id', '')),
            sales=float(payload.get('sales') or 0),
            income=float(payload.get('income') or 0),
            product_costs=float(payload.get('product_costs') or 0),
            is_marketplace=bool(payload.get('is_allegro', False)),
            fees=float(payload.get('fees') or 0),
            products_summary=payload.get('products_summary') or "",
        )


@dataclass
class DailyAggregate:
    """
    Rollup of every order of one date.

    Written as a single JSON blob under ``$db_<date>``; an import that
    touches the date replaces it wholesale.
    """
    date: str
    sales: float = 0.0
    income: float = 0.0
    product_costs: float = 0.0
    fees: float = 0.0
    order_count: int = 0
    orders: List[Order] = field(default_factory=list)

    def add_order(self, order: Order) -> None:
        self.sales += order.sales
        self.income += order.income
        self.product_costs += order.product_costs
        self.fees += order.fees
        self.order_count += 1
        self.orders.append(order)

    @property
    def non_marketplace_count(self) -> int:
        return sum(1 for order in self.orders if not order.is_marketplace)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sales': self.sales,
            'income': self.income,
            'product_costs': self.product_costs,
            'fees': self.fees,
            'count': self.order_count,
            'ordersList': [order.to_dict() for order in self.orders],
        }

    @classmethod
    def from_dict(cls, date: str, payload: Dict[str, Any]) -> 'DailyAggregate':
        orders = [Order.from_dict(item) for item in payload.get('ordersList') or []]
        return cls(
            date=date,
            sales=float(payload.get('sales') or 0),
            income=float(payload.get('income') or 0),
            product_costs=float(payload.get('product_costs') or 0),
            fees=float(payload.get('fees') or 0),
            order_count=int(payload.get('count') or len(orders)),
            orders=orders,
        )


class IngestStatus(Enum):
    """Outcome of an import"""
    SUCCESS = "success"
    NEEDS_COST_INPUT = "needs_cost_input"
    INVALID_FORMAT = "invalid_format"
    NO_DATA = "no_data"


@dataclass
class IngestResult:
    """
    Discriminated result of an orders import.

    Only SUCCESS has written anything to the ledger. NEEDS_COST_INPUT
    carries the de-duplicated unknown product names of the whole file,
    INVALID_FORMAT the missing header names.
    """
    status: IngestStatus
    days_imported: int = 0
    dates: List[str] = field(default_factory=list)
    missing_names: List[str] = field(default_factory=list)
    missing_columns: List[str] = field(default_factory=list)
    rows_skipped: int = 0

    @classmethod
    def success(cls, dates: List[str], rows_skipped: int = 0) -> 'IngestResult':
        return cls(IngestStatus.SUCCESS, days_imported=len(dates),
                   dates=list(dates), rows_skipped=rows_skipped)

    @classmethod
    def needs_cost_input(cls, missing_names: List[str], rows_skipped: int = 0) -> 'IngestResult':
        return cls(IngestStatus.NEEDS_COST_INPUT, missing_names=list(missing_names),
                   rows_skipped=rows_skipped)

    @classmethod
    def invalid_format(cls, missing_columns: List[str]) -> 'IngestResult':
        return cls(IngestStatus.INVALID_FORMAT, missing_columns=list(missing_columns))

    @classmethod
    def no_data(cls, rows_skipped: int = 0) -> 'IngestResult':
        return cls(IngestStatus.NO_DATA, rows_skipped=rows_skipped)

    @property
    def is_success(self) -> bool:
        return self.status is IngestStatus.SUCCESS

    def raise_for_format(self, source: str = "orders export") -> None:
        """Raise FormatError if the export was missing required columns."""
        if self.status is IngestStatus.INVALID_FORMAT:
            raise FormatError(self.missing_columns, source)


@dataclass
class StockImportResult:
    """Outcome of a stock-level import"""
    status: IngestStatus
    products_updated: int = 0
    update_date: Optional[str] = None
    missing_columns: List[str] = field(default_factory=list)
    rows_skipped: int = 0

    @property
    def is_success(self) -> bool:
        return self.status is IngestStatus.SUCCESS

    def raise_for_format(self, source: str = "stock report") -> None:
        """Raise FormatError if the report was missing required columns."""
        if self.status is IngestStatus.INVALID_FORMAT:
            raise FormatError(self.missing_columns, source)
