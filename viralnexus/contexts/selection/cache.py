"""
Selection result caching.

SelectionCache is the in-process cache owned by an ImageSelector (or shared
between selectors by passing the same instance). It can mirror entries to an
SqliteSelectionStore so results survive restarts.

Lookup order: in-process first, then the mirror. A mirror hit is promoted into
memory. When both hold a value for a key, the in-process value wins. Mirror
failures are logged and treated as misses.

Usage:
    cache = SelectionCache(store=SqliteSelectionStore("outs/selections.db"))
    selector = ImageSelector(cache=cache)
    ...
    cache.stats()   # CacheStats(size=..., keys=[...])
    cache.clear()   # drops in-process and mirrored entries
"""

import json
import sqlite3
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from viralnexus.contexts.selection.data_structures import SelectionResult
from viralnexus.contexts.selection.logger import _log_debug, _log_warning
from viralnexus.utils.timestamp import now_exact

STORE_KEY_PREFIX = "img_select_"


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the in-process cache."""

    size: int
    keys: List[str] = field(default_factory=list)


class SqliteSelectionStore:
    """
    Persistent mirror of selection results in a SQLite database.

    Rows are keyed by STORE_KEY_PREFIX + cache key and hold the result's
    to_dict() form as JSON.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize the store, creating the table if needed.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = str(db_path)
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS selections (
                    cache_key TEXT PRIMARY KEY,
                    result_json TEXT NOT NULL,
                    stored_at TEXT
                )
            """)
            conn.commit()

    def get(self, key: str) -> Optional[SelectionResult]:
        """
        Stored result for a cache key, or None.

        Raises:
            sqlite3.Error: On database failures
            ValueError: On rows that do not decode to a SelectionResult
        """
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT result_json FROM selections WHERE cache_key = ?",
                (STORE_KEY_PREFIX + key,),
            ).fetchone()

        if row is None:
            return None
        try:
            return SelectionResult.from_dict(json.loads(row[0]))
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Corrupt cached selection for {key}: {e}") from e

    def set(self, key: str, result: SelectionResult) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                "INSERT OR REPLACE INTO selections (cache_key, result_json, stored_at) VALUES (?, ?, ?)",
                (STORE_KEY_PREFIX + key, json.dumps(result.to_dict()), now_exact()),
            )
            conn.commit()

    def clear(self) -> int:
        """Delete all mirrored selections. Returns the number of rows removed."""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM selections WHERE cache_key LIKE ?", (STORE_KEY_PREFIX + "%",)
            )
            conn.commit()
            return cursor.rowcount

    def entries(self) -> List[Tuple[str, str, str]]:
        """All mirrored entries as (cache_key, result_json, stored_at), ordered by key."""
        with sqlite3.connect(self.db_path) as conn:
            rows = conn.execute(
                "SELECT cache_key, result_json, stored_at FROM selections "
                "WHERE cache_key LIKE ? ORDER BY cache_key",
                (STORE_KEY_PREFIX + "%",),
            ).fetchall()
        return [(key[len(STORE_KEY_PREFIX):], result_json, stored_at) for key, result_json, stored_at in rows]

    def keys(self) -> List[str]:
        return [key for key, _, _ in self.entries()]


class SelectionCache:
    """
    Thread-safe in-process cache of SelectionResults keyed by content identifier.

    Attributes:
        store: Optional persistent mirror
    """

    def __init__(self, store: Optional[SqliteSelectionStore] = None):
        self.store = store
        self._entries: Dict[str, SelectionResult] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[SelectionResult]:
        """Cached result for key, consulting the mirror on an in-process miss."""
        with self._lock:
            cached = self._entries.get(key)
        if cached is not None or self.store is None:
            return cached

        try:
            mirrored = self.store.get(key)
        except (sqlite3.Error, ValueError) as e:
            _log_warning(f"Ignoring unreadable mirrored selection for {key}: {e}")
            return None

        if mirrored is None:
            return None

        _log_debug(f"Promoted mirrored selection for {key}")
        with self._lock:
            # A concurrent in-process write takes precedence over the mirror
            return self._entries.setdefault(key, mirrored)

    def set(self, key: str, result: SelectionResult) -> SelectionResult:
        """
        Store a result unless one is already cached for key.

        Returns:
            The cached result for key (the first one stored wins)
        """
        with self._lock:
            existing = self._entries.get(key)
            if existing is not None:
                return existing
            self._entries[key] = result

        if self.store is not None:
            try:
                self.store.set(key, result)
            except sqlite3.Error as e:
                _log_warning(f"Could not mirror selection for {key}: {e}")
        return result

    def clear(self) -> None:
        """Drop every cached entry, including mirrored ones."""
        with self._lock:
            self._entries.clear()

        if self.store is not None:
            try:
                removed = self.store.clear()
                _log_debug(f"Cleared {removed} mirrored selections")
            except sqlite3.Error as e:
                _log_warning(f"Could not clear mirrored selections: {e}")

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(size=len(self._entries), keys=sorted(self._entries))

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
