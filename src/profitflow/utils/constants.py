"""
System-Wide Constants
======================
Ledger key conventions and parsing constants.

The key layout is the on-disk format of the ledger and of backup files,
so these strings must never change between releases.
"""

from typing import Dict

# =============================================================================
# LEDGER KEY CONVENTIONS
# =============================================================================
# Every key the engine owns starts with INTERNAL_KEY_PREFIX. Anything else
# is a product cost keyed by the raw product name.

INTERNAL_KEY_PREFIX = "$"

STOCK_KEY_PREFIX = "$stock_"
ADS_KEY_PREFIX = "$ads_"
DAILY_AGGREGATE_KEY_PREFIX = "$db_"
LAST_INVENTORY_UPDATE_KEY = "$last_inventory_update"

# Global default for the ads timeline; shares the "$ads_" prefix but is not
# a dated entry.
ADS_DEFAULT_KEY = "$ads_cost_per_day"

# GlobalSettings field -> ledger key
GLOBAL_SETTING_KEYS: Dict[str, str] = {
    "ads_cost_per_day": ADS_DEFAULT_KEY,
    "fixed_cost_per_day": "$fixed_cost_per_day",
    "payment_fee_percent": "$payment_fee_percent",
    "revenue_tax_percent": "$revenue_tax_percent",
    "marketplace_fee_percent": "$allegro_fee_percent",
}

# =============================================================================
# DATE FORMATS
# =============================================================================

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
ISO_DATE_FORMAT = "%Y-%m-%d"

# =============================================================================
# EXPORT FORMAT
# =============================================================================

# Product list cells look like "2 × Blue Mug, 1 × Red Mug"
PRODUCT_TOKEN_SEPARATOR = ", "
PRODUCT_QUANTITY_SEPARATOR = "× "

# Backup files are written pretty-printed
BACKUP_JSON_INDENT = 2
