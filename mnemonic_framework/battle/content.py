"""
Battle content - static records for skills, items, states, enemies and
encounters.

Records are immutable data keyed by id. Behavior differences between
skills or enemies are expressed as parameters here, never as subclasses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from mnemonic_engine.resources.database import Database
from mnemonic_framework.components import (
    Affinity,
    Attribute,
    DeathTarget,
    EffectKind,
    Element,
    PassiveBonus,
    PassiveCondition,
    Restriction,
    StatusEffect,
)
from mnemonic_framework.battle.errors import ConfigurationError

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class SkillEffect(Enum):
    """What a skill does to its targets."""
    DAMAGE = "damage"
    HEAL = "heal"
    BUFF = "buff"
    DEBUFF = "debuff"
    UTILITY = "utility"


class DamageClass(Enum):
    """Physical or magical; selects the default mitigation and scaling."""
    PHYSICAL = "physical"
    MAGICAL = "magical"


class TargetScope(Enum):
    """Action targeting scopes."""
    SINGLE_ENEMY = "single_enemy"
    ALL_ENEMIES = "all_enemies"
    SINGLE_ALLY = "single_ally"
    ALL_ALLIES = "all_allies"
    SELF = "self"
    DEAD_ALLY = "dead_ally"

    @property
    def is_group(self) -> bool:
        return self in (TargetScope.ALL_ENEMIES, TargetScope.ALL_ALLIES)

    @property
    def is_offensive(self) -> bool:
        return self in (TargetScope.SINGLE_ENEMY, TargetScope.ALL_ENEMIES)


class TargetPolicy(Enum):
    """How an enemy picks among living opponents."""
    HIGHEST_AGILITY = "highest_agility"
    LOWEST_HP = "lowest_hp"
    HIGHEST_HP = "highest_hp"
    RANDOM = "random"


class RuleCondition(Enum):
    """Triggers gating a conditional AI rule."""
    ALWAYS = "always"
    HP_BELOW = "hp_below"
    FIRST_ROUND = "first_round"
    EVERY_N_ROUNDS = "every_n_rounds"
    ONCE_PER_BATTLE = "once_per_battle"


def _enum(enum_cls: Type[E], value: Any, where: str) -> E:
    """Parse an enum value, turning a bad value into a ConfigurationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigurationError(
            f"{where}: '{value}' is not a valid {enum_cls.__name__}"
        ) from None


def _scaling(data: dict[str, float], where: str) -> dict[Attribute, float]:
    return {_enum(Attribute, key, where): float(value) for key, value in data.items()}


@dataclass(frozen=True)
class StateApplication:
    """A state a skill or item may apply, with its chance and duration."""
    state_id: str
    chance: float = 1.0
    duration: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | str) -> StateApplication:
        if isinstance(data, str):
            return cls(state_id=data)
        return cls(
            state_id=data["state"],
            chance=data.get("chance", 1.0),
            duration=data.get("duration"),
        )


@dataclass(frozen=True)
class DropEntry:
    """One line of an enemy drop table."""
    item_id: str
    chance: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DropEntry:
        return cls(item_id=data["item"], chance=data["chance"])


@dataclass(frozen=True)
class AIRule:
    """
    A conditional skill preference.

    Attributes:
        skill_id: Skill used when the rule fires
        condition: Trigger
        threshold: HP fraction for HP_BELOW
        interval: Round interval for EVERY_N_ROUNDS
    """
    skill_id: str
    condition: RuleCondition = RuleCondition.ALWAYS
    threshold: float = 0.5
    interval: int = 3

    @classmethod
    def from_dict(cls, data: dict[str, Any], where: str = "ai rule") -> AIRule:
        return cls(
            skill_id=data["skill"],
            condition=_enum(RuleCondition, data.get("condition", "always"), where),
            threshold=data.get("threshold", 0.5),
            interval=max(1, data.get("interval", 3)),
        )


@dataclass(frozen=True)
class AIProfile:
    """Decision policy of an enemy."""
    targeting: TargetPolicy = TargetPolicy.LOWEST_HP
    rules: tuple[AIRule, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any], where: str = "ai") -> AIProfile:
        return cls(
            targeting=_enum(TargetPolicy, data.get("targeting", "lowest_hp"), where),
            rules=tuple(AIRule.from_dict(r, where) for r in data.get("rules", [])),
        )


@dataclass(frozen=True)
class SkillData:
    """
    Static data for a skill.

    An empty scaling table falls back to STR for physical skills and INT
    for magical ones. None for mitigation, variance or weakness_multiplier
    means "use the CombatConfig default".
    """
    id: str
    name: str
    description: str = ""

    effect: SkillEffect = SkillEffect.DAMAGE
    damage_class: DamageClass = DamageClass.PHYSICAL
    target: TargetScope = TargetScope.SINGLE_ENEMY
    sp_cost: int = 0

    # Formula
    power: float = 1.0
    scaling: dict[Attribute, float] = field(default_factory=dict)
    mitigation: Optional[float] = None
    defense_attribute: Attribute = Attribute.DEX
    element: Element = Element.NEUTRAL
    hit_rate: float = 1.0
    hits: int = 1
    variance: Optional[float] = None
    independent_rolls: bool = False
    weakness_multiplier: Optional[float] = None
    can_crit: bool = True

    # States
    applies: tuple[StateApplication, ...] = ()
    removes: tuple[str, ...] = ()

    # Resources
    cooldown: int = 0
    max_uses: int = 0
    charge_bonus: float = 0.0
    charge_gain: int = 0

    @property
    def coefficients(self) -> dict[Attribute, float]:
        if self.scaling:
            return self.scaling
        if self.damage_class == DamageClass.MAGICAL:
            return {Attribute.INT: 1.0}
        return {Attribute.STR: 1.0}

    @property
    def rolls_per_hit(self) -> bool:
        """Multi-hit skills always draw variance per hit."""
        return self.independent_rolls or self.hits > 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SkillData:
        where = f"skill '{data['id']}'"
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            effect=_enum(SkillEffect, data.get("effect", "damage"), where),
            damage_class=_enum(DamageClass, data.get("damage_class", "physical"), where),
            target=_enum(TargetScope, data.get("target", "single_enemy"), where),
            sp_cost=data.get("sp_cost", 0),
            power=data.get("power", 1.0),
            scaling=_scaling(data.get("scaling", {}), where),
            mitigation=data.get("mitigation"),
            defense_attribute=_enum(Attribute, data.get("defense_attribute", "dex"), where),
            element=_enum(Element, data.get("element", "neutral"), where),
            hit_rate=data.get("hit_rate", 1.0),
            hits=max(1, data.get("hits", 1)),
            variance=data.get("variance"),
            independent_rolls=data.get("independent_rolls", False),
            weakness_multiplier=data.get("weakness_multiplier"),
            can_crit=data.get("can_crit", True),
            applies=tuple(StateApplication.from_dict(a) for a in data.get("applies", [])),
            removes=tuple(data.get("removes", [])),
            cooldown=data.get("cooldown", 0),
            max_uses=data.get("max_uses", 0),
            charge_bonus=data.get("charge_bonus", 0.0),
            charge_gain=data.get("charge_gain", 0),
        )


# Used for the plain "attack" command
BASIC_ATTACK = SkillData(
    id="attack",
    name="Attack",
    power=1.0,
    scaling={Attribute.STR: 1.0},
)


@dataclass(frozen=True)
class ItemData:
    """Static data for a usable item."""
    id: str
    name: str
    description: str = ""

    target: TargetScope = TargetScope.SINGLE_ALLY

    # Restoration
    hp_restore: int = 0
    hp_restore_percent: float = 0.0
    sp_restore: int = 0
    sp_restore_percent: float = 0.0

    # States
    removes: tuple[str, ...] = ()
    applies: tuple[StateApplication, ...] = ()

    # Special
    revive: bool = False
    revive_hp_percent: float = 0.5
    guaranteed_escape: bool = False

    # Offensive items deal fixed damage
    damage: int = 0
    element: Element = Element.NEUTRAL
    hit_rate: float = 1.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ItemData:
        where = f"item '{data['id']}'"
        default_target = "dead_ally" if data.get("revive") else "single_ally"
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            description=data.get("description", ""),
            target=_enum(TargetScope, data.get("target", default_target), where),
            hp_restore=data.get("hp_restore", 0),
            hp_restore_percent=data.get("hp_restore_percent", 0.0),
            sp_restore=data.get("sp_restore", 0),
            sp_restore_percent=data.get("sp_restore_percent", 0.0),
            removes=tuple(data.get("removes", [])),
            applies=tuple(StateApplication.from_dict(a) for a in data.get("applies", [])),
            revive=data.get("revive", False),
            revive_hp_percent=data.get("revive_hp_percent", 0.5),
            guaranteed_escape=data.get("guaranteed_escape", False),
            damage=data.get("damage", 0),
            element=_enum(Element, data.get("element", "neutral"), where),
            hit_rate=data.get("hit_rate", 1.0),
        )


@dataclass(frozen=True)
class StateData:
    """Static data for a status effect."""
    id: str
    name: str
    kind: EffectKind
    duration: int = 3
    stackable: bool = False
    modifiers: dict[Attribute, float] = field(default_factory=dict)
    restrictions: frozenset[Restriction] = frozenset()
    rate: float = 0.0
    amount: int = 0
    death_target: DeathTarget = DeathTarget.KILLER

    def instantiate(
        self,
        source_id: Optional[str],
        duration: Optional[int] = None,
        permanent: bool = False,
    ) -> StatusEffect:
        """Create a live effect carrying a copy of this record's parameters."""
        return StatusEffect(
            state_id=self.id,
            name=self.name,
            kind=self.kind,
            remaining_turns=self.duration if duration is None else duration,
            stackable=self.stackable,
            source_id=source_id,
            modifiers=dict(self.modifiers),
            restrictions=set(self.restrictions),
            rate=self.rate,
            amount=self.amount,
            shield_remaining=self.amount if self.kind == EffectKind.SHIELD else 0,
            death_target=self.death_target,
            permanent=permanent,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StateData:
        where = f"state '{data['id']}'"
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            kind=_enum(EffectKind, data["kind"], where),
            duration=data.get("duration", 3),
            stackable=data.get("stackable", False),
            modifiers=_scaling(data.get("modifiers", {}), where),
            restrictions=frozenset(
                _enum(Restriction, r, where) for r in data.get("restrictions", [])
            ),
            rate=data.get("rate", 0.0),
            amount=data.get("amount", 0),
            death_target=_enum(DeathTarget, data.get("death_target", "killer"), where),
        )


@dataclass(frozen=True)
class EnemyData:
    """Static data for enemy types."""
    id: str
    name: str

    # Base stats
    hp: int = 50
    sp: int = 0
    strength: int = 10
    intelligence: int = 10
    dexterity: int = 10
    agility: int = 10

    # Rewards
    experience: int = 10
    currency: int = 5
    drops: tuple[DropEntry, ...] = ()

    # Combat properties
    skills: tuple[str, ...] = ()
    affinities: dict[Element, Affinity] = field(default_factory=dict)
    passives: tuple[PassiveBonus, ...] = ()
    innate_states: tuple[str, ...] = ()
    ai: AIProfile = field(default_factory=AIProfile)

    def __post_init__(self):
        total = sum(drop.chance for drop in self.drops)
        if total > 1.0 + 1e-9:
            raise ConfigurationError(
                f"enemy '{self.id}': drop chances sum to {total:.2f}, over 100%"
            )
        if any(drop.chance < 0 for drop in self.drops):
            raise ConfigurationError(f"enemy '{self.id}': negative drop chance")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnemyData:
        where = f"enemy '{data['id']}'"
        stats = data.get("stats", {})
        passives = []
        for entry in data.get("passives", []):
            passives.append(PassiveBonus(
                condition=_enum(PassiveCondition, entry.get("condition", "always"), where),
                multiplier=entry.get("multiplier", 1.0),
                threshold=entry.get("threshold", 0.5),
                state_id=entry.get("state"),
            ))
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            hp=stats.get("hp", 50),
            sp=stats.get("sp", 0),
            strength=stats.get("str", 10),
            intelligence=stats.get("int", 10),
            dexterity=stats.get("dex", 10),
            agility=stats.get("agi", 10),
            experience=data.get("experience", 10),
            currency=data.get("currency", 5),
            drops=tuple(DropEntry.from_dict(d) for d in data.get("drops", [])),
            skills=tuple(data.get("skills", [])),
            affinities={
                _enum(Element, element, where): _enum(Affinity, affinity, where)
                for element, affinity in data.get("affinities", {}).items()
            },
            passives=tuple(passives),
            innate_states=tuple(data.get("innate_states", [])),
            ai=AIProfile.from_dict(data.get("ai", {}), where),
        )


@dataclass(frozen=True)
class EncounterData:
    """An ordered list of enemy template ids."""
    id: str
    enemies: tuple[str, ...]
    name: str = ""
    can_flee: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EncounterData:
        return cls(
            id=data["id"],
            enemies=tuple(data.get("enemies", [])),
            name=data.get("name", data["id"]),
            can_flee=data.get("can_flee", True),
        )


class ContentDatabase:
    """
    Read-only lookup tables consumed by the combat core.

    Populated either by register_* calls (tests, tools) or from a loaded
    engine Database via from_database().
    """

    def __init__(self):
        self.skills: dict[str, SkillData] = {}
        self.items: dict[str, ItemData] = {}
        self.states: dict[str, StateData] = {}
        self.enemies: dict[str, EnemyData] = {}
        self.encounters: dict[str, EncounterData] = {}

    def register_skill(self, skill: SkillData) -> None:
        """Register a skill."""
        self.skills[skill.id] = skill

    def register_item(self, item: ItemData) -> None:
        """Register an item."""
        self.items[item.id] = item

    def register_state(self, state: StateData) -> None:
        """Register a state."""
        self.states[state.id] = state

    def register_enemy(self, enemy: EnemyData) -> None:
        """Register an enemy type."""
        self.enemies[enemy.id] = enemy

    def register_encounter(self, encounter: EncounterData) -> None:
        """Register an encounter."""
        self.encounters[encounter.id] = encounter

    def get_skill(self, skill_id: str) -> Optional[SkillData]:
        return self.skills.get(skill_id)

    def get_item(self, item_id: str) -> Optional[ItemData]:
        return self.items.get(item_id)

    def get_state(self, state_id: str) -> Optional[StateData]:
        return self.states.get(state_id)

    def get_enemy(self, enemy_id: str) -> Optional[EnemyData]:
        return self.enemies.get(enemy_id)

    def get_encounter(self, encounter_id: str) -> Optional[EncounterData]:
        return self.encounters.get(encounter_id)

    @classmethod
    def from_database(cls, db: Database) -> ContentDatabase:
        """
        Build typed records from a loaded Database.

        Raises:
            ConfigurationError: a record is schema-valid but unusable
        """
        content = cls()
        for record in db.skills.values():
            content.register_skill(SkillData.from_dict(record))
        for record in db.items.values():
            content.register_item(ItemData.from_dict(record))
        for record in db.states.values():
            content.register_state(StateData.from_dict(record))
        for record in db.enemies.values():
            content.register_enemy(EnemyData.from_dict(record))
        for record in db.encounters.values():
            content.register_encounter(EncounterData.from_dict(record))
        logger.info(
            f"Built combat content: {len(content.skills)} skills, "
            f"{len(content.items)} items, {len(content.states)} states, "
            f"{len(content.enemies)} enemies, {len(content.encounters)} encounters"
        )
        return content

    def find_broken_references(self) -> list[str]:
        """List references to ids that are not registered."""
        problems: list[str] = []

        def check_states(owner: str, applications, removals) -> None:
            for application in applications:
                if application.state_id not in self.states:
                    problems.append(f"{owner} applies unknown state '{application.state_id}'")
            for state_id in removals:
                if state_id not in self.states:
                    problems.append(f"{owner} removes unknown state '{state_id}'")

        for skill in self.skills.values():
            check_states(f"skill '{skill.id}'", skill.applies, skill.removes)
        for item in self.items.values():
            check_states(f"item '{item.id}'", item.applies, item.removes)
        for enemy in self.enemies.values():
            owner = f"enemy '{enemy.id}'"
            for skill_id in enemy.skills:
                if skill_id not in self.skills:
                    problems.append(f"{owner} knows unknown skill '{skill_id}'")
            for rule in enemy.ai.rules:
                if rule.skill_id not in self.skills:
                    problems.append(f"{owner} AI uses unknown skill '{rule.skill_id}'")
            for drop in enemy.drops:
                if drop.item_id not in self.items:
                    problems.append(f"{owner} drops unknown item '{drop.item_id}'")
            for state_id in enemy.innate_states:
                if state_id not in self.states:
                    problems.append(f"{owner} has unknown innate state '{state_id}'")
        for encounter in self.encounters.values():
            for enemy_id in encounter.enemies:
                if enemy_id not in self.enemies:
                    problems.append(
                        f"encounter '{encounter.id}' lists unknown enemy '{enemy_id}'"
                    )
        return problems
