"""Matching engine that classifies feed items against the rule store."""

import logging
import math
from collections import Counter
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

from ..models.item import Item
from ..models.match import MatchCategory, MatchResult, RejectionReason
from ..models.rules import RuleStore, TargetEntry
from .charm_table import CharmPrice, CharmPriceTable
from .name_matching import NameMatchRule, match_keyword
from .price_comparator import PriceComparator

logger = logging.getLogger(__name__)


def band_check(value: Optional[float], minimum: float, maximum: float) -> bool:
    """Inclusive containment; an absent or NaN value never passes."""
    if value is None or math.isnan(value):
        return False
    return minimum <= value <= maximum


@dataclass(frozen=True)
class TargetScan:
    """Result of scanning the target list for one item name."""

    specific: Optional[TargetEntry] = None
    rule: Optional[NameMatchRule] = None
    universal: Optional[TargetEntry] = None
    skipped: bool = False


Strategy = Callable[[Item, RuleStore, TargetScan], Optional[MatchResult]]


class MatchingEngine:
    """
    Ordered classifier pipeline: specific keyword -> keychain -> universal.

    Each strategy returns None when it does not apply, an accepted result,
    or a rejection. The first accepted result wins. A terminal rejection
    (a specific keyword match that failed its filters) ends the pipeline;
    other rejections let the next strategy run and are reported only if
    nothing later accepts the item.
    """

    def __init__(
        self,
        charm_table: CharmPriceTable,
        comparator: Optional[PriceComparator] = None,
    ):
        self.charm_table = charm_table
        self.comparator = comparator
        self.rejection_counts: Counter = Counter()
        self.strategies: List[Strategy] = [
            self._classify_specific,
            self._classify_keychain,
            self._classify_universal,
        ]

    def classify(self, item: Item, rules: RuleStore) -> MatchResult:
        """Classify one item. Never raises for business reasons."""
        scan = self.scan_targets(item, rules)
        last_rejection: Optional[MatchResult] = None

        for strategy in self.strategies:
            result = strategy(item, rules, scan)
            if result is None:
                continue
            if result.accepted or result.terminal:
                return self._finish(item, result)
            last_rejection = result

        if last_rejection is None:
            last_rejection = MatchResult.rejected(
                RejectionReason.NO_MATCH, "No target, keychain or universal match"
            )
        return self._finish(item, last_rejection)

    def scan_targets(self, item: Item, rules: RuleStore) -> TargetScan:
        """
        Find the first specific keyword entry matching the item name.

        Universal entries are remembered as the scan goes, so the last one
        seen is the universal candidate when nothing specific matches.
        """
        if self.charm_table.is_accessory_name(item.market_name):
            return TargetScan(skipped=True)

        item_name = item.normalized_name
        universal: Optional[TargetEntry] = None

        for entry in rules.target_entries:
            if entry.universal:
                universal = entry
                continue

            rule = match_keyword(item_name, entry.normalized_keyword)
            if rule is not None:
                return TargetScan(specific=entry, rule=rule)

        return TargetScan(universal=universal)

    def get_rejection_stats(self) -> Dict[str, int]:
        return dict(self.rejection_counts)

    def reset_stats(self) -> None:
        self.rejection_counts.clear()

    # Strategies

    def _classify_specific(
        self, item: Item, rules: RuleStore, scan: TargetScan
    ) -> Optional[MatchResult]:
        if scan.specific is None:
            return None

        entry = scan.specific
        rejection = self._check_band(item, rules, entry)
        if rejection is None:
            rejection, percent = self._evaluate_sub_filters(item, entry)
        if rejection is not None:
            return replace(rejection, terminal=True)

        return MatchResult(
            category=MatchCategory.SPECIFIC_TARGET,
            entry=entry,
            percent_difference=percent,
            reason=f"Matched target '{entry.keyword}' ({scan.rule.value})",
        )

    def _classify_keychain(
        self, item: Item, rules: RuleStore, scan: TargetScan
    ) -> Optional[MatchResult]:
        if not item.keychains:
            return None

        if self.charm_table.is_accessory_name(item.market_name):
            return MatchResult.rejected(
                RejectionReason.MARKET_NAME_MATCHES_KEYCHAIN,
                f"Listing '{item.market_name}' is itself a charm",
            )

        item_name = item.normalized_name
        for entry in rules.specific_entries:
            if entry.normalized_keyword in item_name:
                return MatchResult.rejected(
                    RejectionReason.COVERED_BY_TARGET_KEYWORD,
                    f"Item name covered by target keyword '{entry.keyword}'",
                    entry=entry,
                )

        charm = self._resolve_charm(item)
        if charm is None:
            names = ", ".join(item.accessory_names)
            logger.info(f"Unknown keychain on item {item.id}: {names}")
            return MatchResult.rejected(
                RejectionReason.UNKNOWN_KEYCHAIN, f"Unknown keychain: {names}"
            )

        if not rules.is_keychain_enabled(charm.name):
            return MatchResult.rejected(
                RejectionReason.KEYCHAIN_DISABLED, f"Keychain '{charm.name}' is not enabled"
            )

        rejection = self._check_band(item, rules)
        if rejection is not None:
            return rejection

        market_dollars = item.market_value_dollars
        if not market_dollars or market_dollars <= 0:
            return MatchResult.rejected(
                RejectionReason.MISSING_MARKET_VALUE, "Item has no market value"
            )

        percentage = charm.price / market_dollars * 100
        if percentage < rules.keychain_threshold:
            return MatchResult.rejected(
                RejectionReason.KEYCHAIN_PERCENTAGE,
                f"Charm worth {percentage:.1f}% of item value, "
                f"below {rules.keychain_threshold}% threshold",
            )

        return MatchResult(
            category=MatchCategory.KEYCHAIN,
            accessory=charm.name,
            charm_category=charm.category.value,
            charm_price=charm.price,
            charm_percentage=percentage,
            reason=f"Charm '{charm.name}' worth {percentage:.1f}% of item value",
        )

    def _classify_universal(
        self, item: Item, rules: RuleStore, scan: TargetScan
    ) -> Optional[MatchResult]:
        if scan.universal is None:
            return None

        entry = scan.universal
        rejection = self._check_band(item, rules, entry)
        if rejection is None:
            rejection, percent = self._evaluate_sub_filters(item, entry)
        if rejection is not None:
            return rejection

        return MatchResult(
            category=MatchCategory.UNIVERSAL,
            entry=entry,
            percent_difference=percent,
            reason="Matched universal filter",
        )

    # Checks

    def _resolve_charm(self, item: Item) -> Optional[CharmPrice]:
        for accessory in item.keychains:
            charm = self.charm_table.find(accessory.name)
            if charm is not None:
                return charm
        return None

    def _check_band(
        self, item: Item, rules: RuleStore, entry: Optional[TargetEntry] = None
    ) -> Optional[MatchResult]:
        deviation = item.above_recommended_price
        if deviation is None or math.isnan(deviation):
            return MatchResult.rejected(
                RejectionReason.PRICE_FILTER,
                "Unknown percentage above recommended",
                entry=entry,
            )

        if not band_check(deviation, rules.min_above_recommended, rules.max_above_recommended):
            return MatchResult.rejected(
                RejectionReason.PRICE_FILTER,
                f"{deviation}% outside range {rules.min_above_recommended}% "
                f"to {rules.max_above_recommended}%",
                entry=entry,
            )

        return None

    def _evaluate_sub_filters(
        self, item: Item, entry: TargetEntry
    ) -> Tuple[Optional[MatchResult], Optional[float]]:
        """
        Float -> percent difference -> price. Disabled filters pass.

        Returns:
            (rejection or None, percent difference used if any)
        """
        float_filter = entry.float_filter
        if float_filter.enabled:
            if item.wear is None:
                return (
                    MatchResult.rejected(
                        RejectionReason.FLOAT_UNAVAILABLE, "Item has no float value", entry
                    ),
                    None,
                )
            if not float_filter.contains(item.wear):
                return (
                    MatchResult.rejected(
                        RejectionReason.FLOAT_FILTER,
                        f"Float {item.wear} outside {float_filter.min}-{float_filter.max}",
                        entry,
                    ),
                    None,
                )

        percent: Optional[float] = None
        percent_filter = entry.percent_diff_filter
        if percent_filter.enabled:
            if percent_filter.use_comparison and self.comparator is not None:
                percent = self.comparator.percent_difference(item)
            if percent is None:
                percent = item.above_recommended_price

            if percent is None or math.isnan(percent):
                return (
                    MatchResult.rejected(
                        RejectionReason.PERCENT_DIFF_UNAVAILABLE,
                        "No percentage difference available",
                        entry,
                    ),
                    None,
                )
            if not percent_filter.contains(percent):
                return (
                    MatchResult.rejected(
                        RejectionReason.PERCENT_DIFF_FILTER,
                        f"Percentage difference {percent:.2f}% outside "
                        f"{percent_filter.min} to {percent_filter.max}",
                        entry,
                    ),
                    percent,
                )

        price_filter = entry.price_filter
        if price_filter.enabled:
            price = item.market_value_dollars
            if price is None:
                return (
                    MatchResult.rejected(
                        RejectionReason.MISSING_MARKET_VALUE, "Item has no market value", entry
                    ),
                    percent,
                )
            if not price_filter.contains(price):
                return (
                    MatchResult.rejected(
                        RejectionReason.ITEM_PRICE_FILTER,
                        f"Price ${price:.2f} outside {price_filter.min} to {price_filter.max}",
                        entry,
                    ),
                    percent,
                )

        return None, percent

    def _finish(self, item: Item, result: MatchResult) -> MatchResult:
        if result.accepted:
            logger.info(
                f"Item {item.id} accepted as {result.category.value}: {result.reason}"
            )
        else:
            self.rejection_counts[result.rejection.value] += 1
            logger.debug(f"Item {item.id} rejected [{result.rejection.value}]: {result.reason}")
        return result
