"""
Protocol interfaces for the Keychain Monitor system.

These protocols mark the component boundaries so the orchestrator and
services can be wired with alternative implementations in tests.
"""

from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional, Protocol

from .models.item import Item
from .models.match import MatchResult
from .models.rules import RuleStore, TargetEntry

if TYPE_CHECKING:
    from .components.reference_prices import ReferencePrice
    from .models.config import Configuration


class IMatchingEngine(Protocol):
    """Protocol for classifying items against the rules."""

    def classify(self, item: Item, rules: RuleStore) -> MatchResult:
        """Classify one item as a target, keychain or universal match, or reject it."""
        ...

    def get_rejection_stats(self) -> Dict[str, int]:
        ...


class IPriceComparator(Protocol):
    """Protocol for reference price lookups."""

    def reference_price(self, market_name: str) -> Optional[float]:
        """Reference price in dollars for a market name, variant aware."""
        ...

    def percent_difference(self, item: Item) -> Optional[float]:
        """Reference price as a percentage of the item's listed price."""
        ...


class IReferencePriceSource(Protocol):
    """Protocol for the time-cached reference price table."""

    def get_table(self) -> Dict[str, "ReferencePrice"]:
        ...

    async def refresh_if_stale(self, force: bool = False) -> bool:
        """Refresh the table when it has expired."""
        ...


class IDeduplicationLedger(Protocol):
    """Protocol for the bounded set of already-notified item ids."""

    def has_notified(self, item_id: Any) -> bool:
        ...

    def record_notified(self, item_id: Any) -> None:
        ...


class IRuleStoreManager(Protocol):
    """Protocol for the versioned rule store."""

    @property
    def current(self) -> RuleStore:
        ...

    def replace_price_band(self, minimum: float, maximum: float) -> RuleStore:
        ...

    def replace_keychain_threshold(self, percentage: float) -> RuleStore:
        ...

    def replace_enabled_keychains(self, names: Iterable[str]) -> RuleStore:
        ...

    def replace_target_entries(self, entries: Iterable[Any]) -> RuleStore:
        ...

    def add_target_entry(self, entry: Any) -> TargetEntry:
        ...

    def remove_target_entry(self, entry_id: str) -> bool:
        ...


class IConfigurationManager(Protocol):
    """Protocol for configuration management."""

    def load_config(self) -> "Configuration":
        """Load and validate configuration from the configured path."""
        ...

    def get_config(self) -> "Configuration":
        ...

    def reload_if_changed(self) -> bool:
        """Reload configuration if the file changed since the last load."""
        ...


class INotifier(Protocol):
    """Protocol for delivering notification payloads."""

    def __call__(self, notification: Dict[str, Any]) -> Any:
        ...
