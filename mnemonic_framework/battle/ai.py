"""
Enemy AI selector.

Preference chain for one enemy turn:
1. conditional rules from the enemy's AI profile, in declared order
2. the strongest damaging skill it can currently use, leaving out
   skills whose rules did not fire this turn
3. a basic attack

Every candidate goes through validate_action(); rejected ones fall
through to the next. The attack at the end is never rejected for a
combatant that can act.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from mnemonic_framework.components import Attribute
from mnemonic_framework.battle.actions import CombatAction, validate_action
from mnemonic_framework.battle.actor import Combatant
from mnemonic_framework.battle.content import (
    AIProfile,
    AIRule,
    ContentDatabase,
    RuleCondition,
    SkillData,
    SkillEffect,
    TargetPolicy,
    TargetScope,
)
from mnemonic_framework.battle.damage import scaled_power
from mnemonic_framework.battle.errors import ActionInvalid, CombatError
from mnemonic_framework.battle.state import CombatState

logger = logging.getLogger(__name__)


def pick_target(
    candidates: list[Combatant],
    policy: TargetPolicy,
    rng: random.Random,
) -> Optional[Combatant]:
    """Choose one living opponent. Ties resolve to the first in roster order."""
    if not candidates:
        return None
    if policy == TargetPolicy.HIGHEST_AGILITY:
        return max(candidates, key=lambda c: c.effective(Attribute.AGI))
    if policy == TargetPolicy.LOWEST_HP:
        return min(candidates, key=lambda c: c.stats.hp)
    if policy == TargetPolicy.HIGHEST_HP:
        return max(candidates, key=lambda c: c.stats.hp)
    return rng.choice(candidates)


def rule_triggers(rule: AIRule, actor: Combatant, state: CombatState) -> bool:
    """Check whether a conditional rule fires this turn."""
    if rule.condition == RuleCondition.ALWAYS:
        return True
    if rule.condition == RuleCondition.HP_BELOW:
        return actor.stats.hp_percent < rule.threshold
    if rule.condition == RuleCondition.FIRST_ROUND:
        return state.round == 1
    if rule.condition == RuleCondition.EVERY_N_ROUNDS:
        return state.round % rule.interval == 0
    return actor.skill_uses.get(rule.skill_id, 0) == 0


def _skill_targets(
    skill: SkillData,
    actor: Combatant,
    state: CombatState,
    foe: Optional[Combatant],
) -> Optional[list[str]]:
    """Target ids for a skill, or None when the skill has nothing to aim at."""
    scope = skill.target
    if scope.is_group:
        return []
    if scope == TargetScope.SELF:
        return [actor.id]
    if scope == TargetScope.SINGLE_ENEMY:
        return [foe.id] if foe is not None else None
    if scope == TargetScope.SINGLE_ALLY:
        allies = state.allies_of(actor)
        weakest = min(allies, key=lambda c: c.stats.hp_percent)
        return [weakest.id]
    fallen = [c for c in state.combatants if c.kind == actor.kind and not c.is_alive]
    return [fallen[0].id] if fallen else None


def _is_valid(state: CombatState, action: CombatAction, content: ContentDatabase) -> bool:
    try:
        validate_action(state, action, content)
    except ActionInvalid as e:
        logger.debug(f"AI candidate rejected: {e}")
        return False
    return True


def select_enemy_action(
    state: CombatState,
    actor_id: str,
    content: ContentDatabase,
    rng: random.Random,
) -> CombatAction:
    """
    Choose an action for a non-player combatant.

    Deterministic for a given (state, actor_id, rng state).

    Raises:
        CombatError: actor_id is not in the combat
    """
    actor = state.get(actor_id)
    if actor is None:
        raise CombatError(f"unknown combatant '{actor_id}'")

    template = content.get_enemy(actor.template_id) if actor.template_id else None
    profile = template.ai if template is not None else AIProfile()
    foe = pick_target(state.opponents_of(actor), profile.targeting, rng)

    candidates: list[str] = [rule.skill_id for rule in profile.rules if rule_triggers(rule, actor, state)]

    # A skill named by a rule is only used on turns where one of its rules fires
    gated = {rule.skill_id for rule in profile.rules} - set(candidates)
    damaging = [
        skill for skill in (content.get_skill(skill_id) for skill_id in actor.skills)
        if skill is not None and skill.effect == SkillEffect.DAMAGE and skill.id not in gated
    ]
    damaging.sort(key=lambda skill: skill.hits * scaled_power(actor, skill), reverse=True)
    candidates.extend(skill.id for skill in damaging)

    for skill_id in candidates:
        skill = content.get_skill(skill_id)
        if skill is None:
            continue
        target_ids = _skill_targets(skill, actor, state, foe)
        if target_ids is None:
            continue
        action = CombatAction.skill(actor.id, skill.id, *target_ids)
        if _is_valid(state, action, content):
            logger.debug(f"{actor.id} chooses {skill.id} -> {target_ids}")
            return action

    if foe is None:
        return CombatAction.defend(actor.id)
    return CombatAction.attack(actor.id, foe.id)
