"""
Combat end checker and reward calculator.

    ACTIVE -> VICTORY | DEFEAT | FLED   (all terminal)
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from mnemonic_framework.battle.content import ContentDatabase, DropEntry
from mnemonic_framework.battle.effects import clear_effects
from mnemonic_framework.battle.state import CombatPhase, CombatRewards, CombatState

logger = logging.getLogger(__name__)


def roll_drop(drops: Sequence[DropEntry], rng: random.Random) -> Optional[str]:
    """
    Roll a drop table once.

    One draw walks the cumulative chances; landing past the last entry
    (the remainder up to 100%) means no drop.
    """
    if not drops:
        return None
    roll = rng.random()
    cumulative = 0.0
    for drop in drops:
        cumulative += drop.chance
        if roll < cumulative:
            return drop.item_id
    return None


def calculate_rewards(
    state: CombatState,
    content: ContentDatabase,
    rng: random.Random,
) -> CombatRewards:
    """Sum yields and roll drops of every defeated enemy, in roster order."""
    rewards = CombatRewards()
    for enemy in state.enemies:
        if enemy.is_alive or enemy.template_id is None:
            continue
        template = content.get_enemy(enemy.template_id)
        if template is None:
            logger.warning(f"No enemy template '{enemy.template_id}' for rewards of {enemy.id}")
            continue
        rewards.experience += template.experience
        rewards.currency += template.currency
        item_id = roll_drop(template.drops, rng)
        if item_id is not None:
            rewards.items.append(item_id)
    return rewards


def check_combat_end(
    state: CombatState,
    content: ContentDatabase,
    rng: random.Random,
) -> CombatState:
    """
    Detect a terminal phase.

    Victory is checked before defeat, so a mutual knockout is a win. On
    any terminal phase effects are cleared; on victory rewards are rolled.
    """
    if state.phase == CombatPhase.ACTIVE:
        if all(not enemy.is_alive for enemy in state.enemies):
            phase = CombatPhase.VICTORY
        elif all(not member.is_alive for member in state.party):
            phase = CombatPhase.DEFEAT
        else:
            return state
        state = state.clone()
        state.phase = phase
        logger.info(f"Combat ended in round {state.round}: {phase.value}")

    needs_rewards = state.phase == CombatPhase.VICTORY and state.rewards is None
    needs_clear = any(c.active_effects or c.is_defending for c in state.combatants)
    if not (needs_rewards or needs_clear):
        return state

    state = clear_effects(state)
    if needs_rewards:
        state.rewards = calculate_rewards(state, content, rng)
        logger.info(
            f"Rewards: {state.rewards.experience} exp, {state.rewards.currency} currency, "
            f"drops {state.rewards.items}"
        )
    return state
