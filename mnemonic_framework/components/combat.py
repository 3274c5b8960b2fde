"""
Combat components - elements, affinities, status effect instances.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import Field

from mnemonic_engine.core.component import Component
from mnemonic_framework.components.character import Attribute


class Element(Enum):
    """Elements an attack can carry."""
    FIRE = "fire"
    WATER = "water"
    WIND = "wind"
    EARTH = "earth"
    LIGHT = "light"
    DARK = "dark"
    NEUTRAL = "neutral"


class Affinity(Enum):
    """How a combatant reacts to an element."""
    NEUTRAL = "neutral"
    WEAK = "weak"
    RESIST = "resist"
    IMMUNE = "immune"


class EffectKind(Enum):
    """Tagged variants of status effects."""
    STAT_RATE = "stat_rate"              # percentage change to attributes
    STAT_VALUE = "stat_value"            # flat change to attributes
    RESTRICTION = "restriction"          # forbids action types
    PERIODIC_DAMAGE = "periodic_damage"  # HP loss at start of owner's turn
    PERIODIC_HEAL = "periodic_heal"      # HP gain at start of owner's turn
    REDIRECT = "redirect"                # single-target damage goes to the source
    SHIELD = "shield"                    # absorbs a pool of damage
    ON_DEATH = "on_death"                # parting damage when the owner falls


class Restriction(Enum):
    """Action restrictions a status effect can impose."""
    CANNOT_SKILL = "cannot_skill"
    CANNOT_ITEM = "cannot_item"
    CANNOT_ACT = "cannot_act"
    CANNOT_FLEE = "cannot_flee"


class DeathTarget(Enum):
    """Who receives on-death parting damage."""
    KILLER = "killer"
    ALL_OPPONENTS = "all_opponents"


class PassiveCondition(Enum):
    """Conditions under which a passive damage bonus holds."""
    ALWAYS = "always"
    ACTOR_HP_BELOW = "actor_hp_below"
    TARGET_HP_BELOW = "target_hp_below"
    ACTOR_HAS_STATE = "actor_has_state"
    TARGET_HAS_STATE = "target_has_state"


class PassiveBonus(Component):
    """
    A conditional multiplier on the owner's outgoing damage.

    Attributes:
        condition: When the bonus holds
        multiplier: Damage multiplier (1.2 = +20%)
        threshold: HP fraction for the *_HP_BELOW conditions
        state_id: State looked for by the *_HAS_STATE conditions
    """
    condition: PassiveCondition = PassiveCondition.ALWAYS
    multiplier: float = Field(default=1.0, ge=0.0)
    threshold: float = 0.5
    state_id: Optional[str] = None


class StatusEffect(Component):
    """
    A single status effect instance on a combatant.

    The parameters of the state record are copied in, so a saved combat
    does not depend on the content database to know what an effect does.

    Attributes:
        state_id: Content id of the state
        name: Display name
        kind: Effect variant
        remaining_turns: Rounds left before expiry
        stackable: Whether reapplication adds a new instance
        source_id: Combatant that applied the effect
        modifiers: Attribute -> rate (STAT_RATE) or flat value (STAT_VALUE)
        restrictions: Forbidden action kinds (RESTRICTION)
        rate: Fraction of max HP per tick (PERIODIC_*) or of owner max HP (ON_DEATH)
        amount: Flat tick amount, shield pool size, or flat parting damage
        shield_remaining: Damage the shield can still absorb
        death_target: Recipient of ON_DEATH damage
        permanent: Innate effect that never counts down
    """
    state_id: str
    name: str = ""
    kind: EffectKind
    remaining_turns: int = Field(default=3, ge=0)
    stackable: bool = False
    source_id: Optional[str] = None
    modifiers: dict[Attribute, float] = Field(default_factory=dict)
    restrictions: set[Restriction] = Field(default_factory=set)
    rate: float = 0.0
    amount: int = 0
    shield_remaining: int = 0
    death_target: DeathTarget = DeathTarget.KILLER
    permanent: bool = False

    @property
    def is_expired(self) -> bool:
        return not self.permanent and self.remaining_turns <= 0

    def restricts(self, restriction: Restriction) -> bool:
        """Check if this effect imposes a restriction."""
        return self.kind == EffectKind.RESTRICTION and restriction in self.restrictions
