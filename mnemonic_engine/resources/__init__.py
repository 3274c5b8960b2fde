"""
Resource loading - static game data.
"""

from mnemonic_engine.resources.database import Database, CATEGORIES

__all__ = [
    "Database",
    "CATEGORIES",
]
