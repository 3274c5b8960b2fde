"""
Turn order resolver.
"""

from __future__ import annotations

from mnemonic_framework.components import Attribute
from mnemonic_framework.battle.state import CombatState


def resolve_turn_order(state: CombatState) -> list[str]:
    """
    Get the acting order for a round.

    Living combatants sorted by effective agility, fastest first. sorted()
    is stable, so ties keep roster order (party before enemies). Call it
    once per round: agility modifiers can change between rounds.
    """
    living = [c for c in state.combatants if c.is_alive]
    ordered = sorted(living, key=lambda c: c.effective(Attribute.AGI), reverse=True)
    return [c.id for c in ordered]
