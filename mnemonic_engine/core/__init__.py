"""
Core engine module.

Exports:
- Component: Pydantic base for data-only models
- CombatConfig: Combat tunables
- EventBus: Enum-keyed publish/subscribe
"""

from mnemonic_engine.core.component import Component
from mnemonic_engine.core.config import CombatConfig
from mnemonic_engine.core.events import EventBus

__all__ = [
    "Component",
    "CombatConfig",
    "EventBus",
]
