"""
Combat notifications published by CombatSession.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from mnemonic_framework.battle.actions import CombatAction, TurnResult
from mnemonic_framework.battle.state import CombatPhase, CombatRewards, CombatState


class CombatEvent(Enum):
    """Events published by a combat session."""
    COMBAT_STARTED = auto()
    TURN_STARTED = auto()
    TURN_RESOLVED = auto()
    ACTION_REJECTED = auto()
    ROUND_ENDED = auto()
    COMBAT_ENDED = auto()


@dataclass(frozen=True)
class CombatNotice:
    """
    Payload of every CombatEvent.

    Attributes:
        type: Which event this is
        state: Combat state right after the event
        result: The TurnResult for TURN_STARTED, TURN_RESOLVED and ROUND_ENDED
        actor_id: Acting combatant (turn and rejection events)
        reason: Why the action was refused (ACTION_REJECTED)
        action: The refused action (ACTION_REJECTED)
    """
    type: CombatEvent
    state: CombatState
    result: Optional[TurnResult] = None
    actor_id: Optional[str] = None
    reason: Optional[str] = None
    action: Optional[CombatAction] = None

    @property
    def round(self) -> int:
        return self.state.round

    @property
    def phase(self) -> CombatPhase:
        return self.state.phase

    @property
    def rewards(self) -> Optional[CombatRewards]:
        return self.state.rewards
