"""
Effective-Dated Settings
=========================
A value that changes at known dates, resolved for any day as
"latest change at or before that day".

Used for the ads budget: ``$ads_2024-02-01 = 20`` means 20 per day from
the 1st of February until the next change. Days before the first change
fall back to the global ``$ads_cost_per_day``.
"""

import re
from typing import List, Tuple

from profitflow.services.ledger import KeyValueLedger
from profitflow.utils.constants import ADS_DEFAULT_KEY, ADS_KEY_PREFIX, ISO_DATE_PATTERN
from profitflow.utils.logger import get_logger
from profitflow.utils.validators import validate_iso_date

logger = get_logger(__name__)

_DATE_SUFFIX_RE = re.compile(ISO_DATE_PATTERN)


class EffectiveDatedSetting:
    """
    Timeline of dated values stored as ``<prefix><YYYY-MM-DD>`` keys.

    Parameters
    ----------
    ledger : KeyValueLedger
        Store holding both the dated entries and the default
    prefix : str
        Key prefix of dated entries
    default_key : str
        Key of the fallback value; excluded from the timeline even though
        it shares the prefix
    """

    def __init__(
        self,
        ledger: KeyValueLedger,
        prefix: str = ADS_KEY_PREFIX,
        default_key: str = ADS_DEFAULT_KEY
    ):
        self.ledger = ledger
        self.prefix = prefix
        self.default_key = default_key

    def entries(self) -> List[Tuple[str, float]]:
        """Dated entries sorted ascending; one per date by construction."""
        timeline = []
        for key in self.ledger.keys_with_prefix(self.prefix):
            if key == self.default_key:
                continue
            date_part = key[len(self.prefix):]
            if _DATE_SUFFIX_RE.match(date_part):
                timeline.append((date_part, self.ledger.get(key)))
        timeline.sort(key=lambda entry: entry[0])
        return timeline

    def set_for(self, date: str, value) -> None:
        """Store or overwrite the value effective from ``date``."""
        date = validate_iso_date(date).isoformat()
        self.ledger.set(self.prefix + date, value)
        logger.info(f"{self.prefix}{date} = {value}")

    def default(self) -> float:
        return self.ledger.get(self.default_key, 0)

    def resolve(self, date: str) -> float:
        """Value in force on ``date``."""
        effective = self.default()
        for entry_date, value in self.entries():
            if entry_date <= date:
                effective = value
            else:
                # Later change points do not affect this date
                break
        return effective


class AdsCostTimeline(EffectiveDatedSetting):
    """Ads spend per day over time."""

    def __init__(self, ledger: KeyValueLedger):
        super().__init__(ledger, prefix=ADS_KEY_PREFIX, default_key=ADS_DEFAULT_KEY)
