"""
Key-Value Ledger
=================
Typed access to the persistent string-keyed store that holds product
costs, stock levels, settings and daily aggregates.

The store itself only knows strings. The ledger owns the key layout
(see utils.constants) and the conversion of numbers and JSON blobs.

Usage:
    ledger = KeyValueLedger(JsonFileStore("data/ledger.json"))
    ledger.set_product_cost("Blue Mug", 12.5)
    ledger.get_product_cost("Blue Mug")   # 12.5
"""

import json
import math
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from profitflow.models.errors import RestoreParseError, UnknownSettingError
from profitflow.models.records import DailyAggregate, GlobalSettings
from profitflow.utils.constants import (
    BACKUP_JSON_INDENT,
    DAILY_AGGREGATE_KEY_PREFIX,
    GLOBAL_SETTING_KEYS,
    INTERNAL_KEY_PREFIX,
    LAST_INVENTORY_UPDATE_KEY,
    STOCK_KEY_PREFIX,
)
from profitflow.utils.logger import get_logger

logger = get_logger(__name__)


def to_storage_string(value: Any) -> str:
    """
    Render a value the way the store keeps it.

    Strings pass through untouched; whole floats lose their ".0" so a cost
    entered as 10 reads back as "10".
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, int):
        return str(value)
    if value is None:
        return 'null'
    return json.dumps(value)


def parse_stored_number(raw: str) -> float:
    """Parse a stored string as float, NaN when it is not a number."""
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


# =============================================================================
# STORE BACKENDS
# =============================================================================


class InMemoryStore:
    """Dictionary-backed store, used by tests and throwaway sessions."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._batch_depth = 0
        self._pending = False

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self) -> Iterator[str]:
        return iter(list(self._data))

    def snapshot(self) -> Dict[str, str]:
        return dict(self._data)

    def replace_all(self, data: Mapping[str, str]) -> None:
        self._data = dict(data)

    def __len__(self) -> int:
        return len(self._data)

    @contextmanager
    def batch(self):
        """
        Group writes so a persistent backend commits them once.

        Usage:
            with store.batch():
                store.set("a", "1")
                store.set("b", "2")   # one commit on exit
        """
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending:
                self._pending = False
                self._commit()

    def _write_through(self) -> None:
        if self._batch_depth:
            self._pending = True
        else:
            self._commit()

    def _commit(self) -> None:
        """Persist the current state; nothing to do in memory."""


class JsonFileStore(InMemoryStore):
    """
    Store persisted as one JSON object on disk.

    Every write rewrites the file through a temporary file and
    os.replace, so readers never observe a half-written ledger. Inside
    ``batch()`` the rewrite happens once, when the outermost batch ends.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(self._load())
        logger.debug(f"Ledger file {self.path}: {len(self)} keys")

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            payload = json.load(f)
        if not isinstance(payload, dict):
            raise ValueError(f"Ledger file {self.path} does not hold a JSON object")
        return {str(k): to_storage_string(v) for k, v in payload.items()}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, ensure_ascii=False, indent=BACKUP_JSON_INDENT)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _commit(self) -> None:
        self._flush()

    def set(self, key: str, value: str) -> None:
        super().set(key, value)
        self._write_through()

    def replace_all(self, data: Mapping[str, str]) -> None:
        super().replace_all(data)
        self._write_through()


# =============================================================================
# LEDGER
# =============================================================================


class KeyValueLedger:
    """
    Typed wrapper over a string store.

    Numeric reads return the caller's default for missing keys and NaN for
    malformed values; nothing here validates business meaning. Multi-field
    entities (daily aggregates) are written as a single JSON value.
    """

    def __init__(self, store: Optional[InMemoryStore] = None):
        self.store = store if store is not None else InMemoryStore()

    # -- primitives -----------------------------------------------------------

    def get(self, key: str, default: Optional[float] = 0) -> Optional[float]:
        raw = self.store.get(key)
        if raw is None:
            return default
        return parse_stored_number(raw)

    def get_raw(self, key: str) -> Optional[str]:
        return self.store.get(key)

    def set(self, key: str, value: Any) -> None:
        self.store.set(key, to_storage_string(value))

    def get_json(self, key: str) -> Optional[Any]:
        raw = self.store.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Ledger key {key!r} does not hold valid JSON")
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.store.set(key, json.dumps(value, ensure_ascii=False))

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return [key for key in self.store.keys() if key.startswith(prefix)]

    def batch(self):
        """Context manager committing every write inside it at once."""
        return self.store.batch()

    # -- product costs and stock ----------------------------------------------

    def get_product_cost(self, name: str) -> Optional[float]:
        """Unit cost by exact product name; None when never recorded."""
        return self.get(name, None)

    def set_product_cost(self, name: str, cost: Any) -> None:
        self.set(name, cost)

    def product_costs(self) -> Dict[str, float]:
        """Every recorded product cost, by product name in lexical order."""
        names = sorted(k for k in self.store.keys() if not k.startswith(INTERNAL_KEY_PREFIX))
        return {name: self.get(name) for name in names}

    def get_product_stock(self, name: str) -> Optional[float]:
        return self.get(STOCK_KEY_PREFIX + name, None)

    def set_product_stock(self, name: str, stock: Any) -> None:
        self.set(STOCK_KEY_PREFIX + name, stock)

    def get_last_inventory_update(self) -> Optional[str]:
        return self.store.get(LAST_INVENTORY_UPDATE_KEY)

    def set_last_inventory_update(self, date: str) -> None:
        self.store.set(LAST_INVENTORY_UPDATE_KEY, date)

    # -- global settings ------------------------------------------------------

    def get_globals(self) -> GlobalSettings:
        return GlobalSettings(**{
            name: self.get(key, 0) for name, key in GLOBAL_SETTING_KEYS.items()
        })

    def set_global(self, name: str, value: Any) -> None:
        if name not in GLOBAL_SETTING_KEYS:
            raise UnknownSettingError(name)
        self.set(GLOBAL_SETTING_KEYS[name], value)
        logger.info(f"Setting {name} = {value}")

    # -- daily aggregates -----------------------------------------------------

    def save_daily_data(self, aggregate: DailyAggregate) -> None:
        self.set_json(DAILY_AGGREGATE_KEY_PREFIX + aggregate.date, aggregate.to_dict())

    def get_daily_data(self, date: str) -> Optional[DailyAggregate]:
        payload = self.get_json(DAILY_AGGREGATE_KEY_PREFIX + date)
        if not isinstance(payload, dict):
            return None
        try:
            return DailyAggregate.from_dict(date, payload)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Ignoring malformed aggregate for {date}: {e}")
            return None

    def available_dates(self) -> List[str]:
        prefix_len = len(DAILY_AGGREGATE_KEY_PREFIX)
        return sorted(key[prefix_len:] for key in self.keys_with_prefix(DAILY_AGGREGATE_KEY_PREFIX))

    # -- backup ---------------------------------------------------------------

    def export_backup(self) -> str:
        """Every key with its raw string value, as pretty-printed JSON."""
        return json.dumps(self.store.snapshot(), ensure_ascii=False, indent=BACKUP_JSON_INDENT)

    def restore_backup(self, payload: str) -> int:
        """
        Replace the whole ledger with a backup.

        The payload is fully parsed before anything is touched; on any
        parse problem RestoreParseError is raised and the current state is
        kept.

        Returns
        -------
        int
            Number of keys restored
        """
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            logger.error(f"Restore failed: {e}")
            raise RestoreParseError("Backup is not valid JSON", cause=e) from e

        if not isinstance(data, dict):
            logger.error("Restore failed: backup is not a JSON object")
            raise RestoreParseError("Backup must be a JSON object of key/value pairs")

        replacement = {str(key): to_storage_string(value) for key, value in data.items()}
        self.store.replace_all(replacement)
        logger.info(f"Restored {len(replacement)} ledger keys")
        return len(replacement)
