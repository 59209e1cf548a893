"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Keychain Monitor test suite.
"""

import logging
import pytest
from pathlib import Path
import tempfile

from keychain_monitor.components.charm_table import CharmPriceTable
from keychain_monitor.components.matching_engine import MatchingEngine
from keychain_monitor.components.price_comparator import PriceComparator
from keychain_monitor.components.reference_prices import ReferencePrice
from keychain_monitor.models.item import Item
from keychain_monitor.models.rules import RangeFilter, RuleStore, TargetEntry
from keychain_monitor.utils import error_handling
from keychain_monitor.utils import logging as km_logging


def build_payload(**overrides):
    """Build a raw feed item payload."""
    payload = {
        "id": "1001",
        "market_name": "AK-47 | Redline",
        "market_value": 3907,
        "above_recommended_price": -4.7,
        "wear": 0.123,
        "keychains": [],
        "published_at": "2024-01-01T12:00:00Z",
    }
    payload.update(overrides)
    return payload


def build_item(**overrides):
    """Build an Item from a raw payload."""
    return Item.from_payload(build_payload(**overrides))


# Test data fixtures
@pytest.fixture
def make_payload():
    """Factory for raw feed item payloads."""
    return build_payload


@pytest.fixture
def make_item():
    """Factory for parsed items."""
    return build_item


@pytest.fixture
def charm_table():
    """The built-in charm price table."""
    return CharmPriceTable()


@pytest.fixture
def reference_table():
    """A small reference price table."""
    return {
        "ak-47 | redline": ReferencePrice(price=45.0),
        "ak-47 | case hardened (factory new)": ReferencePrice(
            price=300.0, variants={"Sapphire": 500.0}
        ),
        "★ karambit | doppler (factory new)": ReferencePrice(
            price=900.0, variants={"Phase 2": 1100.0, "Ruby": 2500.0}
        ),
    }


@pytest.fixture
def comparator(reference_table):
    """A price comparator over the sample reference table."""
    return PriceComparator(lambda: reference_table)


@pytest.fixture
def engine(charm_table, comparator):
    """A matching engine with the built-in charm table."""
    return MatchingEngine(charm_table, comparator)


@pytest.fixture
def redline_entry():
    """A specific target entry with no sub-filters."""
    return TargetEntry(id="entry_redline", keyword="AK-47 | Redline")


@pytest.fixture
def universal_entry():
    """A universal entry requiring the reference price to be 110% or more."""
    return TargetEntry(
        id="entry_universal",
        is_universal=True,
        percent_diff_filter=RangeFilter(enabled=True, min=110, use_comparison=True),
    )


@pytest.fixture
def rules():
    """Default rules with Hot Howl enabled."""
    return RuleStore(enabled_keychains=frozenset({"Hot Howl"}))


# Temporary directory fixtures
@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def reset_global_state():
    """Isolate the process-wide error tracker, degradation and logging managers."""
    yield
    error_handling._error_tracker = None
    error_handling._degradation_manager = None
    km_logging._logging_manager = None

    for name in [km_logging.ROOT_LOGGER_NAME] + [
        f"{km_logging.ROOT_LOGGER_NAME}.{component}" for component in km_logging.COMPONENTS
    ]:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Add unit marker to all tests by default
        if not any(
            marker.name in ["integration", "slow"] for marker in item.iter_markers()
        ):
            item.add_marker(pytest.mark.unit)
