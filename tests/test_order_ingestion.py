"""
Ingestion Tests
================
Orders export import (fees, gating, idempotence) and stock import.
"""

from datetime import date

import pytest

from profitflow.models.errors import FormatError
from profitflow.models.records import IngestStatus
from profitflow.services.ledger import JsonFileStore, KeyValueLedger
from profitflow.services.order_ingestion import OrderIngestionPipeline, StockImporter


def db_keys(ledger):
    return ledger.keys_with_prefix('$db_')


# =============================================================================
# ORDERS
# =============================================================================


def test_import_builds_daily_aggregates(configured_ledger, orders_csv):
    result = OrderIngestionPipeline(configured_ledger).ingest(orders_csv)

    assert result.status is IngestStatus.SUCCESS
    assert result.days_imported == 2
    assert result.dates == ['2024-01-05', '2024-01-06']

    day = configured_ledger.get_daily_data('2024-01-05')
    assert day.sales == pytest.approx(150)
    assert day.income == pytest.approx(135)
    assert day.product_costs == pytest.approx(35)
    assert day.order_count == 2
    assert [o.id for o in day.orders] == ['1001', '1002']


def test_fees_depend_on_channel(configured_ledger, orders_csv):
    """Marketplace orders pay a share of sales, direct orders a share of income."""
    OrderIngestionPipeline(configured_ledger).ingest(orders_csv)
    direct, marketplace = configured_ledger.get_daily_data('2024-01-05').orders

    assert not direct.is_marketplace
    assert direct.fees == pytest.approx(90 * 0.02)
    assert marketplace.is_marketplace
    assert marketplace.fees == pytest.approx(50 * 0.10)
    assert configured_ledger.get_daily_data('2024-01-05').fees == pytest.approx(6.8)


def test_reimport_is_idempotent(configured_ledger, orders_csv):
    pipeline = OrderIngestionPipeline(configured_ledger)
    pipeline.ingest(orders_csv)
    first = configured_ledger.store.snapshot()

    pipeline.ingest(orders_csv)
    assert configured_ledger.store.snapshot() == first


def test_unknown_cost_blocks_every_write(ledger, orders_csv):
    ledger.set_product_cost('Blue Mug', 10)

    result = OrderIngestionPipeline(ledger).ingest(orders_csv)

    assert result.status is IngestStatus.NEEDS_COST_INPUT
    assert result.missing_names == ['Red Mug']
    assert db_keys(ledger) == []


def test_missing_names_are_unique_in_first_seen_order(ledger, orders_csv):
    result = OrderIngestionPipeline(ledger).ingest(orders_csv)
    assert result.missing_names == ['Blue Mug', 'Red Mug']


def test_non_numeric_cost_counts_as_unknown(priced_ledger, orders_csv):
    priced_ledger.store.set('Red Mug', 'n/a')
    result = OrderIngestionPipeline(priced_ledger).ingest(orders_csv)
    assert result.missing_names == ['Red Mug']


def test_missing_columns(priced_ledger):
    result = OrderIngestionPipeline(priced_ledger).ingest('Data,Produkt(y)\n2024-01-05,1 × Blue Mug')

    assert result.status is IngestStatus.INVALID_FORMAT
    assert result.missing_columns == ['Sprzedaż netto', 'Przychód netto (sformatowany)']
    assert db_keys(priced_ledger) == []
    with pytest.raises(FormatError) as excinfo:
        result.raise_for_format()
    assert excinfo.value.missing_columns == result.missing_columns


def test_header_only_is_no_data(priced_ledger, orders_csv):
    header = orders_csv.split('\n')[0]
    result = OrderIngestionPipeline(priced_ledger).ingest(header + '\n')
    assert result.status is IngestStatus.NO_DATA


def test_malformed_and_short_rows_are_skipped(priced_ledger, orders_csv):
    text = orders_csv + 'garbage,"unterminated\n1004,2024-01-07\n'
    result = OrderIngestionPipeline(priced_ledger).ingest(text)

    assert result.status is IngestStatus.SUCCESS
    assert result.rows_skipped == 2
    assert result.dates == ['2024-01-05', '2024-01-06']


def test_without_email_column_every_order_is_direct(priced_ledger):
    priced_ledger.set_global('payment_fee_percent', 10)
    text = '\n'.join([
        'Numer zamówienia,Data,Sprzedaż netto,Przychód netto (sformatowany),Produkt(y)',
        '5,2024-03-01,"20,00\u00a0zł","18,00\u00a0zł",1 × Red Mug',
    ])
    OrderIngestionPipeline(priced_ledger).ingest(text)

    order = priced_ledger.get_daily_data('2024-03-01').orders[0]
    assert not order.is_marketplace
    assert order.fees == pytest.approx(1.8)
    assert order.product_costs == 5


def test_order_id_falls_back_to_first_column(priced_ledger):
    text = '\n'.join([
        'Ref,Data,Sprzedaż netto,Przychód netto (sformatowany),Produkt(y)',
        'A-77,2024-03-01,"20,00\u00a0zł","18,00\u00a0zł",1 × Red Mug',
    ])
    OrderIngestionPipeline(priced_ledger).ingest(text)
    assert priced_ledger.get_daily_data('2024-03-01').orders[0].id == 'A-77'


# =============================================================================
# STOCK
# =============================================================================


def test_stock_import(ledger, stock_csv):
    result = StockImporter(ledger).import_text(stock_csv, today=date(2024, 1, 10))

    assert result.is_success
    assert result.products_updated == 2
    assert ledger.get_product_stock('Blue Mug') == 40
    assert ledger.get_product_stock('Red Mug') == 3
    assert ledger.get_last_inventory_update() == '2024-01-10'


def test_stock_title_fallbacks(ledger):
    StockImporter(ledger).import_text('Nazwa,Stan magazynowy\nBlue Mug,7', today=date(2024, 1, 1))
    StockImporter(ledger).import_text('SKU,Stan magazynowy\nMUG-1,4', today=date(2024, 1, 1))

    assert ledger.get_product_stock('Blue Mug') == 7
    assert ledger.get_product_stock('MUG-1') == 4


def test_stock_import_requires_stock_column(ledger):
    result = StockImporter(ledger).import_text('Tytuł produktu,Ilość\nBlue Mug,7')

    assert result.status is IngestStatus.INVALID_FORMAT
    assert result.missing_columns == ['Stan magazynowy']
    assert ledger.get_last_inventory_update() is None
    assert ledger.get_product_stock('Blue Mug') is None


def test_stock_rows_without_title_or_fields_are_skipped(ledger):
    text = 'Tytuł produktu,Stan magazynowy\n,5\nBlue Mug\nRed Mug,2'
    result = StockImporter(ledger).import_text(text, today=date(2024, 1, 1))

    assert result.products_updated == 1
    assert result.rows_skipped == 1
    assert ledger.get_product_stock('Red Mug') == 2


# =============================================================================
# FILE-BACKED IMPORTS
# =============================================================================


@pytest.fixture
def file_ledger(tmp_path, monkeypatch):
    """Priced ledger on disk; ``flushes`` counts file rewrites after setup."""
    store = JsonFileStore(tmp_path / 'ledger.json')
    ledger = KeyValueLedger(store)
    ledger.set_product_cost('Blue Mug', 10)
    ledger.set_product_cost('Red Mug', 5)

    flushes = []
    flush = store._flush

    def counting_flush():
        flushes.append(1)
        flush()

    monkeypatch.setattr(store, '_flush', counting_flush)
    return ledger, flushes


def test_orders_import_rewrites_file_once(file_ledger, orders_csv):
    ledger, flushes = file_ledger

    result = OrderIngestionPipeline(ledger).ingest(orders_csv)

    assert result.days_imported == 2
    assert len(flushes) == 1
    reopened = KeyValueLedger(JsonFileStore(ledger.store.path))
    assert reopened.available_dates() == ['2024-01-05', '2024-01-06']


def test_gated_orders_import_does_not_touch_file(file_ledger, orders_csv):
    ledger, flushes = file_ledger
    ledger.store.replace_all({'Blue Mug': '10'})
    flushes.clear()

    result = OrderIngestionPipeline(ledger).ingest(orders_csv)

    assert result.status is IngestStatus.NEEDS_COST_INPUT
    assert flushes == []


def test_stock_import_rewrites_file_once(file_ledger, stock_csv):
    ledger, flushes = file_ledger

    StockImporter(ledger).import_text(stock_csv, today=date(2024, 1, 10))

    assert len(flushes) == 1
    reopened = KeyValueLedger(JsonFileStore(ledger.store.path))
    assert reopened.get_product_stock('Blue Mug') == 40
    assert reopened.get_product_stock('Red Mug') == 3
    assert reopened.get_last_inventory_update() == '2024-01-10'
