"""
Reference price table for the price comparator.

Fetches external price lists over HTTP, merges them into one lookup
keyed by lower-cased market name, and caches the result for a long
horizon. Fetch failures never propagate: the provider keeps serving the
stale (or empty) table and marks itself degraded.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.config import ReferencePriceConfig, ReferenceSourceConfig
from ..utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    get_degradation_manager,
    get_error_tracker,
)

logger = logging.getLogger(__name__)

COMPONENT_NAME = "reference.prices"
STAR_GLYPH = "★"


def normalize_market_name(name: str) -> str:
    """Collapse whitespace and make sure a leading star glyph is followed by a space."""
    cleaned = re.sub(r"\s+", " ", name or "").strip()
    if cleaned.startswith(STAR_GLYPH):
        cleaned = f"{STAR_GLYPH} {cleaned[len(STAR_GLYPH):].lstrip()}"
    return cleaned


def lookup_key(name: str) -> str:
    return normalize_market_name(name).lower()


@dataclass
class ReferencePrice:
    """Reference price for one market name, with optional per-variant prices."""

    price: Optional[float] = None
    variants: Dict[str, float] = field(default_factory=dict)
    source: Optional[str] = None


def _positive_price(value: Any) -> Optional[float]:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None


def parse_reference_payload(
    payload: Any, multiplier: float = 1.0, source: Optional[str] = None
) -> Dict[str, ReferencePrice]:
    """
    Parse a source payload into a lookup table.

    Accepts either a mapping of name -> price | {price, variants} or a list
    of {item, price, variants?} records (optionally wrapped in {"items": [...]}).
    Unusable rows are skipped.
    """
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        payload = payload["items"]

    records: List[Dict[str, Any]] = []
    if isinstance(payload, dict):
        for name, value in payload.items():
            if isinstance(value, dict):
                records.append({"item": name, **value})
            else:
                records.append({"item": name, "price": value})
    elif isinstance(payload, list):
        records = [record for record in payload if isinstance(record, dict)]
    else:
        logger.warning(f"Unsupported reference payload type: {type(payload).__name__}")
        return {}

    table: Dict[str, ReferencePrice] = {}
    for record in records:
        name = record.get("item") or record.get("name") or record.get("market_hash_name")
        if not name:
            continue

        price = _positive_price(record.get("price"))
        variants = {}
        for variant, variant_price in (record.get("variants") or {}).items():
            parsed = _positive_price(variant_price)
            if parsed is not None:
                variants[str(variant).strip().title()] = parsed * multiplier

        if price is None and not variants:
            continue

        table[lookup_key(str(name))] = ReferencePrice(
            price=price * multiplier if price is not None else None,
            variants=variants,
            source=record.get("source") or source,
        )

    return table


class ReferencePriceProvider:
    """Time-cached provider of the reference price table."""

    def __init__(
        self,
        config: Optional[ReferencePriceConfig] = None,
        retry_after_failure_seconds: int = 300,
    ):
        self.config = config or ReferencePriceConfig()
        self.retry_after_failure_seconds = retry_after_failure_seconds

        self._table: Dict[str, ReferencePrice] = {}
        self.last_refresh: Optional[datetime] = None
        self.last_attempt: Optional[datetime] = None
        self.consecutive_failures = 0
        self._refresh_lock = asyncio.Lock()

        self.session = requests.Session()
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update(
            {"User-Agent": "Keychain-Monitor/1.0 (Reference Prices)"}
        )

    def get_table(self) -> Dict[str, ReferencePrice]:
        """Current table; possibly stale or empty, never raises."""
        return self._table

    def set_table(self, table: Dict[str, ReferencePrice]) -> None:
        """Install a table directly (seeding from a cache or tests)."""
        self._table = dict(table)
        self.last_refresh = datetime.now()

    def lookup(self, name: str) -> Optional[ReferencePrice]:
        return self._table.get(lookup_key(name))

    def is_stale(self) -> bool:
        if not self.config.sources:
            return False

        now = datetime.now()
        if self.last_attempt is not None and self.consecutive_failures > 0:
            if now - self.last_attempt < timedelta(
                seconds=self.retry_after_failure_seconds
            ):
                return False

        if self.last_refresh is None:
            return True
        return now - self.last_refresh >= timedelta(seconds=self.config.cache_ttl_seconds)

    def fetch_source(self, source: ReferenceSourceConfig) -> Optional[Dict[str, ReferencePrice]]:
        """
        Fetch and parse one source.

        Returns:
            Parsed table, or None if the fetch failed
        """
        label = source.name or source.url
        try:
            logger.debug(f"Fetching reference prices: {label}")
            response = self.session.get(source.url, timeout=self.config.request_timeout)
            response.raise_for_status()
            return parse_reference_payload(
                response.json(), source.price_multiplier, source.name or source.url
            )

        except requests.exceptions.Timeout as e:
            logger.warning(f"Timeout fetching reference prices from {label}")
            self._record_failure(label, e, ErrorSeverity.LOW)
        except requests.exceptions.ConnectionError as e:
            logger.warning(f"Connection error fetching reference prices from {label}")
            self._record_failure(label, e, ErrorSeverity.LOW)
        except requests.exceptions.HTTPError as e:
            logger.error(f"HTTP error {e.response.status_code} for reference source {label}")
            self._record_failure(label, e, ErrorSeverity.MEDIUM)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed for reference source {label}: {e}")
            self._record_failure(label, e, ErrorSeverity.MEDIUM)
        except ValueError as e:
            logger.error(f"Invalid JSON from reference source {label}: {e}")
            self._record_failure(label, e, ErrorSeverity.MEDIUM)

        return None

    def refresh(self) -> bool:
        """
        Fetch all sources and replace the table if any succeeded.

        Earlier sources win for names present in several sources.

        Returns:
            True if the table was replaced
        """
        self.last_attempt = datetime.now()
        merged: Dict[str, ReferencePrice] = {}
        succeeded = 0

        for source in self.config.sources:
            table = self.fetch_source(source)
            if table is None:
                continue
            succeeded += 1
            for key, price in table.items():
                merged.setdefault(key, price)

        degradation = get_degradation_manager()
        if succeeded == 0:
            self.consecutive_failures += 1
            degradation.degrade_component(
                COMPONENT_NAME,
                reason="All reference price sources failed",
                fallback_behavior=f"Serving cached table ({len(self._table)} prices)",
            )
            return False

        self._table = merged
        self.last_refresh = datetime.now()
        self.consecutive_failures = 0
        degradation.restore_component(COMPONENT_NAME)
        logger.info(
            f"Reference price table refreshed: {len(merged)} prices "
            f"from {succeeded}/{len(self.config.sources)} sources"
        )
        return True

    async def refresh_if_stale(self, force: bool = False) -> bool:
        """Refresh in the default executor when the cache horizon has passed."""
        async with self._refresh_lock:
            if not force and not self.is_stale():
                return False
            return await asyncio.get_running_loop().run_in_executor(None, self.refresh)

    def _record_failure(self, label: str, exception: Exception, severity: ErrorSeverity):
        get_error_tracker().record_error(
            component=COMPONENT_NAME,
            category=ErrorCategory.NETWORK,
            severity=severity,
            message=f"Reference price fetch failed for {label}",
            exception=exception,
            context={"source": label},
        )

    def close(self) -> None:
        self.session.close()
