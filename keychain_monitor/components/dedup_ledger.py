"""Bounded ledger of already-notified item identifiers."""

import logging
from typing import Dict, Hashable, List

logger = logging.getLogger(__name__)


class DeduplicationLedger:
    """
    Insertion-ordered set of notified item ids with a hard cap.

    When a new id arrives while the ledger is full, only the most recent
    cap // 2 ids are kept before the new one is added. An evicted id that
    shows up again may be notified again.
    """

    def __init__(self, max_size: int = 1000):
        if max_size < 2:
            raise ValueError("Ledger max_size must be at least 2")
        self.max_size = max_size
        # dict keys keep insertion order
        self._ids: Dict[str, None] = {}
        self.evictions = 0

    @staticmethod
    def _key(item_id: Hashable) -> str:
        return str(item_id)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, item_id: Hashable) -> bool:
        return self.has_notified(item_id)

    def has_notified(self, item_id: Hashable) -> bool:
        return self._key(item_id) in self._ids

    def record_notified(self, item_id: Hashable) -> None:
        key = self._key(item_id)
        if key in self._ids:
            return

        if len(self._ids) >= self.max_size:
            self._evict()

        self._ids[key] = None

    def ids(self) -> List[str]:
        """Ids from oldest to newest."""
        return list(self._ids)

    def clear(self) -> None:
        self._ids.clear()

    def _evict(self) -> None:
        keep = self.max_size // 2
        retained = list(self._ids)[-keep:]
        evicted = len(self._ids) - len(retained)
        self._ids = dict.fromkeys(retained)
        self.evictions += 1
        logger.debug(f"Ledger evicted {evicted} oldest ids, {len(self._ids)} retained")
