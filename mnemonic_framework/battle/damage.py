"""
Damage calculator - pure combat formulas.

    raw       = power * sum(coef * actor stat) - mitigation * target defense
    mitigated = max(raw, minimum_damage)
    final     = floor(mitigated * variance * element * multipliers)

Randomness is drawn only by the roll_* helpers, from the Random the
caller passes in; calculate_damage/calculate_healing take the rolled
values as inputs and are deterministic.
"""

from __future__ import annotations

import math
import random
from typing import Iterable, Optional

from mnemonic_engine.core.config import CombatConfig
from mnemonic_framework.components import (
    Affinity,
    Attribute,
    Element,
    PassiveCondition,
)
from mnemonic_framework.battle.actor import Combatant
from mnemonic_framework.battle.content import DamageClass, SkillData

# Absorbs float noise such as 20 * 1.3 landing just under 26
_EPSILON = 1e-9


def _floor(value: float) -> int:
    return math.floor(value + _EPSILON)


def _product(values: Iterable[float]) -> float:
    result = 1.0
    for value in values:
        result *= value
    return result


def roll_variance(band: float, rng: random.Random) -> float:
    """Draw a variance factor in [1 - band, 1 + band]. A zero band draws nothing."""
    if band <= 0:
        return 1.0
    return rng.uniform(1.0 - band, 1.0 + band)


def critical_chance(actor: Combatant, config: CombatConfig) -> float:
    agility = actor.effective(Attribute.AGI)
    return config.critical_base_chance + agility / config.critical_agility_divisor


def roll_critical(actor: Combatant, config: CombatConfig, rng: random.Random) -> bool:
    return rng.random() < critical_chance(actor, config)


def elemental_modifier(
    target: Combatant,
    element: Element,
    config: CombatConfig,
    weakness_multiplier: Optional[float] = None,
) -> float:
    """
    Look up the multiplier for an element against a target's affinity.

    Weak multiplies by the skill's weakness multiplier (config default when
    None), resist divides by config.resist_divisor, immune zeroes.
    """
    affinity = target.affinity(element)
    if affinity == Affinity.WEAK:
        if weakness_multiplier is None:
            return config.weakness_multiplier
        return weakness_multiplier
    if affinity == Affinity.RESIST:
        return 1.0 / config.resist_divisor
    if affinity == Affinity.IMMUNE:
        return 0.0
    return 1.0


def passive_multipliers(actor: Combatant, target: Combatant) -> list[float]:
    """Multipliers of the actor's passives whose condition holds, in order."""
    multipliers = []
    for passive in actor.passives:
        condition = passive.condition
        if condition == PassiveCondition.ALWAYS:
            holds = True
        elif condition == PassiveCondition.ACTOR_HP_BELOW:
            holds = actor.stats.hp_percent < passive.threshold
        elif condition == PassiveCondition.TARGET_HP_BELOW:
            holds = target.stats.hp_percent < passive.threshold
        elif condition == PassiveCondition.ACTOR_HAS_STATE:
            holds = passive.state_id is not None and actor.has_state(passive.state_id)
        else:
            holds = passive.state_id is not None and target.has_state(passive.state_id)
        if holds:
            multipliers.append(passive.multiplier)
    return multipliers


def offensive_multipliers(
    actor: Combatant,
    target: Combatant,
    config: CombatConfig,
    critical: bool = False,
) -> list[float]:
    """Ordered multipliers for one hit: critical, attacker passives, guard."""
    multipliers = []
    if critical:
        multipliers.append(config.critical_multiplier)
    multipliers.extend(passive_multipliers(actor, target))
    if target.is_defending:
        multipliers.append(config.guard_multiplier)
    return multipliers


def mitigation_for(skill: SkillData, config: CombatConfig) -> float:
    if skill.mitigation is not None:
        return skill.mitigation
    if skill.damage_class == DamageClass.MAGICAL:
        return config.magical_mitigation
    return config.physical_mitigation


def variance_band(skill: SkillData, config: CombatConfig) -> float:
    return config.variance if skill.variance is None else skill.variance


def scaled_power(actor: Combatant, skill: SkillData) -> float:
    """power * sum(coefficient * effective attribute)."""
    total = sum(
        coefficient * actor.effective(attribute)
        for attribute, coefficient in skill.coefficients.items()
    )
    return skill.power * total


def calculate_damage(
    actor: Combatant,
    target: Combatant,
    skill: SkillData,
    config: CombatConfig,
    variance: float = 1.0,
    multipliers: Iterable[float] = (),
) -> int:
    """
    Compute the damage of one offensive hit.

    Args:
        actor: Attacker
        target: Defender (its effective defense attribute mitigates)
        skill: Skill or basic attack being used
        config: Formula constants
        variance: Rolled variance factor (1.0 for none)
        multipliers: Ordered extra multipliers (critical, passives, guard)

    Returns:
        Final damage, never negative
    """
    mitigation = mitigation_for(skill, config) * target.effective(skill.defense_attribute)
    raw = scaled_power(actor, skill) - mitigation
    mitigated = max(raw, config.minimum_damage)
    element = elemental_modifier(target, skill.element, config, skill.weakness_multiplier)
    return max(0, _floor(mitigated * variance * element * _product(multipliers)))


def calculate_healing(
    actor: Combatant,
    skill: SkillData,
    variance: float = 1.0,
    charges: int = 0,
    multipliers: Iterable[float] = (),
) -> int:
    """
    Compute a heal: no mitigation, no element.

    The charge bonus grows the heal by skill.charge_bonus per charge held.
    """
    charge_factor = 1.0 + skill.charge_bonus * charges
    amount = scaled_power(actor, skill) * variance * charge_factor * _product(multipliers)
    return max(0, _floor(amount))


def calculate_fixed_damage(
    amount: int,
    target: Combatant,
    element: Element,
    config: CombatConfig,
) -> int:
    """Fixed item damage: element and guard stance apply, stats do not."""
    value = amount * elemental_modifier(target, element, config)
    if target.is_defending:
        value *= config.guard_multiplier
    return max(0, _floor(value))
