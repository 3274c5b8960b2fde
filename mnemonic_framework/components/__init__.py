"""
Combat components - data-only model definitions.

All components are Pydantic models containing only data.
Logic lives in the battle modules, not in components.
"""

from mnemonic_framework.components.character import (
    Attribute,
    CombatantStats,
)
from mnemonic_framework.components.combat import (
    Affinity,
    DeathTarget,
    EffectKind,
    Element,
    PassiveBonus,
    PassiveCondition,
    Restriction,
    StatusEffect,
)

__all__ = [
    # Character
    "Attribute",
    "CombatantStats",
    # Combat
    "Affinity",
    "DeathTarget",
    "EffectKind",
    "Element",
    "PassiveBonus",
    "PassiveCondition",
    "Restriction",
    "StatusEffect",
]
