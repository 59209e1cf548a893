"""
Rule store management for the Keychain Monitor.

Owns the current RuleStore version. Every mutation validates the new
value, bumps the version and swaps it in as a whole, so readers always
see a consistent snapshot.
"""

import random
import string
import time
from dataclasses import replace
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union

from ..components.charm_table import CharmPriceTable
from ..models.rules import RuleStore, TargetEntry
from ..utils.logging import get_logger

logger = get_logger("rule.store")

EntryInput = Union[TargetEntry, Dict[str, Any]]


def generate_entry_id() -> str:
    """entry_<epoch millis>_<9 random chars>."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"entry_{int(time.time() * 1000)}_{suffix}"


def _to_entry(entry: EntryInput) -> TargetEntry:
    if isinstance(entry, TargetEntry):
        return entry
    return TargetEntry.from_dict(entry)


class RuleStoreManager:
    """Versioned holder of the matching rules."""

    def __init__(
        self,
        initial: Optional[RuleStore] = None,
        charm_table: Optional[CharmPriceTable] = None,
    ):
        self.charm_table = charm_table
        initial = initial or RuleStore()
        initial = replace(
            initial, enabled_keychains=self._known_keychains(initial.enabled_keychains)
        )
        initial.validate()
        self._current = initial

    @property
    def current(self) -> RuleStore:
        return self._current

    def replace_all(self, rules: RuleStore) -> RuleStore:
        """Swap in a whole rule set, e.g. after a configuration reload."""
        store = self._swap(
            min_above_recommended=rules.min_above_recommended,
            max_above_recommended=rules.max_above_recommended,
            keychain_threshold=rules.keychain_threshold,
            enabled_keychains=self._known_keychains(rules.enabled_keychains),
            target_entries=rules.target_entries,
        )
        logger.info("Rule store replaced", extra={"version": store.version})
        return store

    def replace_price_band(self, minimum: float, maximum: float) -> RuleStore:
        """
        Raises:
            ValueError: If min is greater than max.
        """
        store = self._swap(
            min_above_recommended=float(minimum), max_above_recommended=float(maximum)
        )
        logger.info(f"Price filter updated: {minimum}% to {maximum}%")
        return store

    def replace_keychain_threshold(self, percentage: float) -> RuleStore:
        store = self._swap(keychain_threshold=float(percentage))
        logger.info(f"Keychain percentage threshold updated: {percentage}%")
        return store

    def replace_enabled_keychains(self, names: Iterable[str]) -> RuleStore:
        store = self._swap(enabled_keychains=self._known_keychains(names))
        logger.info(
            f"Enabled keychains updated: {len(store.enabled_keychains)} enabled"
        )
        return store

    def replace_target_entries(self, entries: Iterable[EntryInput]) -> RuleStore:
        store = self._swap(target_entries=tuple(_to_entry(e) for e in entries))
        logger.info(f"Target entries updated: {len(store.target_entries)} entries")
        return store

    def add_target_entry(self, entry: EntryInput) -> TargetEntry:
        """Append an entry under a freshly generated id."""
        new_entry = _to_entry({**self._entry_dict(entry), "id": generate_entry_id()})
        self._swap(target_entries=self._current.target_entries + (new_entry,))
        logger.info(f"Added target entry: {new_entry.label}", extra={"id": new_entry.id})
        return new_entry

    def remove_target_entry(self, entry_id: str) -> bool:
        remaining = tuple(e for e in self._current.target_entries if e.id != entry_id)
        if len(remaining) == len(self._current.target_entries):
            logger.warning(f"Target entry not found for removal: {entry_id}")
            return False

        removed = next(e for e in self._current.target_entries if e.id == entry_id)
        self._swap(target_entries=remaining)
        logger.info(f"Removed target entry: {removed.label}", extra={"id": entry_id})
        return True

    def import_target_entries(self, entries: Iterable[EntryInput]) -> int:
        """
        Initial import step: append entries whose id is not present yet.

        Entries without an id are given one.

        Returns:
            Number of entries imported
        """
        existing_ids = {e.id for e in self._current.target_entries}
        imported = []
        for entry in entries:
            data = self._entry_dict(entry)
            if not data.get("id"):
                data["id"] = generate_entry_id()
            if data["id"] in existing_ids:
                continue
            existing_ids.add(data["id"])
            imported.append(_to_entry(data))

        if imported:
            self._swap(target_entries=self._current.target_entries + tuple(imported))
        logger.info(f"Imported {len(imported)} target entries")
        return len(imported)

    def _swap(self, **changes: Any) -> RuleStore:
        candidate = self._current.evolve(**changes)
        candidate.validate()
        self._current = candidate
        return candidate

    @staticmethod
    def _entry_dict(entry: EntryInput) -> Dict[str, Any]:
        if isinstance(entry, TargetEntry):
            return entry.to_dict()
        return dict(entry)

    def _known_keychains(self, names: Iterable[str]) -> FrozenSet[str]:
        names = list(names)
        if self.charm_table is None:
            return frozenset(names)

        known = []
        for name in names:
            charm = self.charm_table.find(name)
            if charm is None:
                logger.warning(f"Ignoring unknown keychain name: {name}")
                continue
            known.append(charm.name)
        return frozenset(known)
