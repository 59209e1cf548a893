"""
Keychain Monitor Item Matching System

Consumes a real-time marketplace listing feed, matches each item against
user-defined targets, keychain charm rules and price bands, and emits
de-duplicated notifications for the items worth looking at.
"""

__version__ = "0.1.0"
__author__ = "Keychain Monitor Team"
