"""
Service layer for the Keychain Monitor system.

This module contains the services that tie the components together:
configuration loading, versioned rule storage and the per-batch item
processing pipeline.
"""

from .config_manager import ConfigurationManager
from .item_processor import ItemProcessor
from .rule_store_manager import RuleStoreManager, generate_entry_id

__all__ = [
    "ConfigurationManager",
    "ItemProcessor",
    "RuleStoreManager",
    "generate_entry_id",
]
