"""
Order & Stock Ingestion
========================
Turns shop exports into ledger entries.

Orders export -> one DailyAggregate per date.
- Every product in the file must have a recorded unit cost. If any is
  unknown the whole import stops before writing and reports the unknown
  names; once the costs are recorded the caller re-runs the import on
  the same text, which is recomputed from scratch.
- A successful import replaces the aggregate of every date it contains,
  so importing overlapping ranges again is idempotent.
- Malformed or short rows are skipped and counted.

Stock report -> ``$stock_<title>`` values and the last-inventory-update
date.

Usage:
    pipeline = OrderIngestionPipeline(ledger)
    result = pipeline.ingest(csv_text)
    if result.status is IngestStatus.NEEDS_COST_INPUT:
        ...  # record costs for result.missing_names, then ingest again
"""

import math
from datetime import date
from typing import Dict, List, Optional

from profitflow.config import Config, DEFAULT_CONFIG
from profitflow.models.records import (
    DailyAggregate,
    IngestResult,
    IngestStatus,
    Order,
    StockImportResult,
)
from profitflow.services.csv_parser import (
    CsvRecordParser,
    parse_money,
    parse_number,
    parse_product_list,
)
from profitflow.services.ledger import KeyValueLedger
from profitflow.utils.logger import get_logger, LogContext
from profitflow.utils.validators import find_column, parse_header, validate_required_columns

logger = get_logger(__name__)


class OrderIngestionPipeline:
    """
    Imports an orders export into the ledger.

    Fees are priced at import time with the settings in force then:
    marketplace orders pay ``sales * marketplace_fee_percent / 100``,
    all other orders ``income * payment_fee_percent / 100``.
    """

    def __init__(
        self,
        ledger: KeyValueLedger,
        config: Optional[Config] = None,
        parser: Optional[CsvRecordParser] = None
    ):
        self.ledger = ledger
        self.config = config or DEFAULT_CONFIG
        self.parser = parser or CsvRecordParser()

    def ingest(self, text: str) -> IngestResult:
        """
        Import an orders export.

        Returns
        -------
        IngestResult
            SUCCESS with the dates written; NEEDS_COST_INPUT with every
            unknown product name (nothing written); INVALID_FORMAT with the
            missing required headers (nothing written); NO_DATA when no row
            produced an order.
        """
        with LogContext(logger, "Importing orders export"):
            lines = self.parser.split_lines(text)
            headers = parse_header(lines[0]) if lines else []
            columns = self.config.orders

            validation = validate_required_columns(headers, columns.required, "orders export")
            if not validation.is_valid:
                return IngestResult.invalid_format(validation.info["missing_columns"])

            date_idx = headers.index(columns.date)
            sales_idx = headers.index(columns.net_sales)
            income_idx = headers.index(columns.net_income)
            products_idx = headers.index(columns.products)
            email_idx = find_column(headers, columns.email)
            id_idx = find_column(headers, [columns.order_id])
            if id_idx is None:
                id_idx = 0
            if email_idx is None:
                logger.info("No e-mail column; every order treated as a direct sale")

            settings = self.ledger.get_globals()
            currency = self.config.parsing.currency_suffix
            marker = self.config.parsing.marketplace_email_marker

            daily: Dict[str, DailyAggregate] = {}
            missing: Dict[str, None] = {}
            rows_skipped = 0

            for line_no, line in enumerate(lines[1:], start=2):
                row = self.parser.parse_line(line)
                if not row or len(row) < len(headers):
                    if line.strip():
                        logger.debug(f"Skipping line {line_no}: malformed or short row")
                        rows_skipped += 1
                    continue

                day = row[date_idx].split(' ')[0]
                if not day:
                    rows_skipped += 1
                    continue

                sales = parse_money(row[sales_idx], currency)
                income = parse_money(row[income_idx], currency)
                is_marketplace = email_idx is not None and marker in (row[email_idx] or '')

                if is_marketplace:
                    fee = sales * (settings.marketplace_fee_percent / 100)
                else:
                    fee = income * (settings.payment_fee_percent / 100)

                order = Order(
                    id=row[id_idx],
                    sales=sales,
                    income=income,
                    is_marketplace=is_marketplace,
                    fees=fee,
                    products_summary=row[products_idx],
                )

                for quantity, name in parse_product_list(order.products_summary):
                    cost = self.ledger.get_product_cost(name)
                    if cost is None or not math.isfinite(cost):
                        missing.setdefault(name)
                    else:
                        order.product_costs += cost * quantity

                daily.setdefault(day, DailyAggregate(date=day)).add_order(order)

            if rows_skipped:
                logger.warning(f"Skipped {rows_skipped} malformed or incomplete rows")

            if missing:
                names = list(missing)
                logger.warning(f"Import paused, no cost recorded for {len(names)} products: {names}")
                return IngestResult.needs_cost_input(names, rows_skipped=rows_skipped)

            if not daily:
                logger.warning("No valid data found in orders export")
                return IngestResult.no_data(rows_skipped=rows_skipped)

            with self.ledger.batch():
                for aggregate in daily.values():
                    self.ledger.save_daily_data(aggregate)

            dates = sorted(daily)
            logger.info(f"Imported {len(dates)} days of data ({dates[0]} to {dates[-1]})")
            return IngestResult.success(dates, rows_skipped=rows_skipped)


class StockImporter:
    """
    Imports a stock-level report.

    The stock column is required; the title column is the first header of
    the configured fallback chain that is present, else column 0.
    """

    def __init__(
        self,
        ledger: KeyValueLedger,
        config: Optional[Config] = None,
        parser: Optional[CsvRecordParser] = None
    ):
        self.ledger = ledger
        self.config = config or DEFAULT_CONFIG
        self.parser = parser or CsvRecordParser()

    def import_text(self, text: str, today: Optional[date] = None) -> StockImportResult:
        """
        Record stock levels and stamp the update date.

        ``today`` is the observation date stored as last inventory update;
        it defaults to the current date.
        """
        lines = self.parser.split_lines(text)
        headers = parse_header(lines[0]) if lines else []
        columns = self.config.stock

        validation = validate_required_columns(headers, [columns.stock], "stock report")
        if not validation.is_valid:
            return StockImportResult(
                IngestStatus.INVALID_FORMAT,
                missing_columns=validation.info["missing_columns"]
            )

        stock_idx = headers.index(columns.stock)
        title_idx = find_column(headers, columns.title)
        if title_idx is None:
            title_idx = 0
        min_fields = max(title_idx, stock_idx) + 1

        count = 0
        rows_skipped = 0
        update_date = (today or date.today()).isoformat()
        with self.ledger.batch():
            for line in lines[1:]:
                row = self.parser.parse_line(line)
                if not row or len(row) < min_fields:
                    if line.strip():
                        rows_skipped += 1
                    continue

                title = row[title_idx]
                if title:
                    self.ledger.set_product_stock(title, parse_number(row[stock_idx]))
                    count += 1

            self.ledger.set_last_inventory_update(update_date)
        logger.info(f"Updated stock levels for {count} products. Last update: {update_date}")
        return StockImportResult(
            IngestStatus.SUCCESS,
            products_updated=count,
            update_date=update_date,
            rows_skipped=rows_skipped,
        )
