"""
Combat state - the aggregate every battle operation reads and returns.

Operations never mutate the state they are given: they clone it, change
the clone and return it. A CombatState holds no references into the
content database, so model_dump_json()/model_validate_json() round-trip
a battle in progress.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from mnemonic_engine.core.component import Component
from mnemonic_framework.battle.actions import CombatAction
from mnemonic_framework.battle.actor import Combatant


class CombatPhase(Enum):
    """State of the battle. Everything but ACTIVE is terminal."""
    ACTIVE = "active"
    VICTORY = "victory"
    DEFEAT = "defeat"
    FLED = "fled"


class CombatRewards(Component):
    """Rewards from winning a battle."""
    experience: int = 0
    currency: int = 0
    items: list[str] = Field(default_factory=list)


class CombatState(Component):
    """
    Attributes:
        phase: Current phase
        combatants: Party first, then enemies, each in roster order
        round: 1-based round counter
        turn_queue: Ids still to act this round
        action_queue: Actions committed ahead of the actor's turn
        inventory: Party item bag (item id -> count)
        can_flee: Whether the encounter allows escape
        rewards: Set once the phase becomes VICTORY
    """
    phase: CombatPhase = CombatPhase.ACTIVE
    combatants: list[Combatant] = Field(default_factory=list)
    round: int = Field(default=1, ge=1)
    turn_queue: list[str] = Field(default_factory=list)
    action_queue: list[CombatAction] = Field(default_factory=list)
    inventory: dict[str, int] = Field(default_factory=dict)
    can_flee: bool = True
    rewards: Optional[CombatRewards] = None

    @property
    def is_over(self) -> bool:
        return self.phase != CombatPhase.ACTIVE

    def get(self, combatant_id: str) -> Optional[Combatant]:
        """Find a combatant by id."""
        for combatant in self.combatants:
            if combatant.id == combatant_id:
                return combatant
        return None

    @property
    def party(self) -> list[Combatant]:
        return [c for c in self.combatants if c.is_player]

    @property
    def enemies(self) -> list[Combatant]:
        return [c for c in self.combatants if not c.is_player]

    def opponents_of(self, combatant: Combatant) -> list[Combatant]:
        """Living combatants on the other side, in roster order."""
        return [
            c for c in self.combatants
            if c.kind != combatant.kind and c.is_alive
        ]

    def allies_of(self, combatant: Combatant) -> list[Combatant]:
        """Living combatants on the same side (self included), in roster order."""
        return [
            c for c in self.combatants
            if c.kind == combatant.kind and c.is_alive
        ]
