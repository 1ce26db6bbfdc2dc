"""
Shared fixtures: an in-memory ledger and small shop exports.
"""

import pytest

from profitflow.services.ledger import InMemoryStore, KeyValueLedger

ORDERS_HEADER = (
    'Numer zamówienia,Data,Customer Email,Sprzedaż netto,'
    'Przychód netto (sformatowany),Produkt(y)'
)

ORDERS_CSV = '\n'.join([
    ORDERS_HEADER,
    '1001,2024-01-05 10:15:00,jan@example.com,"100,00\u00a0zł","90,00\u00a0zł","2 × Blue Mug, 1 × Red Mug"',
    '1002,2024-01-05 12:00:00,buyer@allegromail.pl,"50,00\u00a0zł","45,00\u00a0zł","1 × Blue Mug"',
    '1003,2024-01-06 09:00:00,ola@example.com,"30,00\u00a0zł","28,00\u00a0zł","1 × Red Mug"',
    '',
])

STOCK_CSV = '\n'.join([
    'Tytuł produktu,Stan magazynowy',
    'Blue Mug,40',
    'Red Mug,3',
    '',
])


@pytest.fixture
def ledger():
    return KeyValueLedger(InMemoryStore())


@pytest.fixture
def priced_ledger(ledger):
    """Ledger that knows the cost of every product in ORDERS_CSV."""
    ledger.set_product_cost('Blue Mug', 10)
    ledger.set_product_cost('Red Mug', 5)
    return ledger


@pytest.fixture
def configured_ledger(priced_ledger):
    """Priced ledger with every global setting filled in."""
    priced_ledger.set_global('payment_fee_percent', 2)
    priced_ledger.set_global('marketplace_fee_percent', 10)
    priced_ledger.set_global('revenue_tax_percent', 10)
    priced_ledger.set_global('fixed_cost_per_day', 20)
    priced_ledger.set_global('ads_cost_per_day', 15)
    return priced_ledger


@pytest.fixture
def orders_csv():
    return ORDERS_CSV


@pytest.fixture
def stock_csv():
    return STOCK_CSV
