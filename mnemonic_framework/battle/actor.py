"""
Battle actors - participants in combat.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Optional

from pydantic import Field

from mnemonic_engine.core.component import Component
from mnemonic_framework.components import (
    Affinity,
    Attribute,
    CombatantStats,
    EffectKind,
    Element,
    PassiveBonus,
    Restriction,
    StatusEffect,
)
from mnemonic_framework.battle.content import ContentDatabase, EnemyData
from mnemonic_framework.battle.errors import ConfigurationError


class CombatantKind(Enum):
    """Side a combatant fights on."""
    PLAYER = "player"
    ENEMY = "enemy"


class Combatant(Component):
    """
    A participant in battle.

    A defeated combatant (hp == 0) stays in the roster until combat ends
    so that death reactions can still find it.

    Attributes:
        id: Unique within one combat
        name: Display name
        kind: Player or enemy
        stats: Pools and base attributes
        active_effects: Status effects in application order
        skills: Known skill ids
        affinities: Element -> affinity (missing means neutral)
        passives: Conditional outgoing damage multipliers, in order
        charges: Resource counter feeding charge-scaled heals
        is_defending: Guard stance until the combatant's next turn
        cooldowns: Skill id -> rounds until usable again
        skill_uses: Skill id -> uses this battle
        template_id: Enemy template the combatant was built from
    """
    id: str
    name: str
    kind: CombatantKind = CombatantKind.PLAYER
    stats: CombatantStats = Field(default_factory=CombatantStats)
    active_effects: list[StatusEffect] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    affinities: dict[Element, Affinity] = Field(default_factory=dict)
    passives: list[PassiveBonus] = Field(default_factory=list)
    charges: int = Field(default=0, ge=0)

    # Battle bookkeeping
    is_defending: bool = False
    cooldowns: dict[str, int] = Field(default_factory=dict)
    skill_uses: dict[str, int] = Field(default_factory=dict)
    template_id: Optional[str] = None

    @property
    def is_alive(self) -> bool:
        return not self.stats.is_defeated

    @property
    def is_player(self) -> bool:
        return self.kind == CombatantKind.PLAYER

    def effective(self, attribute: Attribute) -> int:
        """
        Get an attribute after status modifiers.

        floor(base * (1 + sum of rates) + sum of flat values), never below 0.
        Computed on every call; modifiers are never written into the stats.
        """
        rate = 0.0
        flat = 0.0
        for effect in self.active_effects:
            if attribute not in effect.modifiers:
                continue
            if effect.kind == EffectKind.STAT_RATE:
                rate += effect.modifiers[attribute]
            elif effect.kind == EffectKind.STAT_VALUE:
                flat += effect.modifiers[attribute]
        value = self.stats.base(attribute) * (1.0 + rate) + flat
        return max(0, math.floor(value + 1e-9))

    def affinity(self, element: Element) -> Affinity:
        """Get the affinity to an element."""
        return self.affinities.get(element, Affinity.NEUTRAL)

    def find_effect(self, state_id: str) -> Optional[StatusEffect]:
        """Get the first active instance of a state."""
        for effect in self.active_effects:
            if effect.state_id == state_id:
                return effect
        return None

    def has_state(self, state_id: str) -> bool:
        return self.find_effect(state_id) is not None

    def is_restricted(self, restriction: Restriction) -> bool:
        """Check if any active effect forbids an action kind."""
        return any(effect.restricts(restriction) for effect in self.active_effects)

    def effects_of_kind(self, kind: EffectKind) -> list[StatusEffect]:
        return [effect for effect in self.active_effects if effect.kind == kind]


def create_enemy_combatant(
    enemy: EnemyData,
    combatant_id: str,
    content: ContentDatabase,
) -> Combatant:
    """
    Create a fresh combatant from an enemy template.

    Innate states are attached as permanent effects sourced from the
    enemy itself.

    Raises:
        ConfigurationError: an innate state id is unknown
    """
    stats = CombatantStats(
        hp=enemy.hp,
        max_hp=max(1, enemy.hp),
        sp=enemy.sp,
        max_sp=enemy.sp,
        strength=enemy.strength,
        intelligence=enemy.intelligence,
        dexterity=enemy.dexterity,
        agility=enemy.agility,
    )

    effects = []
    for state_id in enemy.innate_states:
        state = content.get_state(state_id)
        if state is None:
            raise ConfigurationError(
                f"enemy '{enemy.id}' has unknown innate state '{state_id}'"
            )
        effects.append(state.instantiate(combatant_id, permanent=True))

    return Combatant(
        id=combatant_id,
        name=enemy.name,
        kind=CombatantKind.ENEMY,
        stats=stats,
        active_effects=effects,
        skills=list(enemy.skills),
        affinities=dict(enemy.affinities),
        passives=[passive.clone() for passive in enemy.passives],
        template_id=enemy.id,
    )
