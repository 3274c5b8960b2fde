"""
Mnemonic Engine

Shared infrastructure for the Mnemonic Realms combat core: data-only
components, a typed event bus, combat configuration and validated content
loading.

Quick Start:
    from mnemonic_engine.core import CombatConfig, EventBus
    from mnemonic_engine.resources import Database

    db = Database("game/data")
    db.load_all()
"""

__version__ = "0.1.0"

from mnemonic_engine.core import (
    Component,
    CombatConfig,
    EventBus,
)
from mnemonic_engine.resources import Database

__all__ = [
    "Component",
    "CombatConfig",
    "EventBus",
    "Database",
]
