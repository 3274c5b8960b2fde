"""
Battle actions - requested actions, validation and resolved turn records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional

from pydantic import Field

from mnemonic_engine.core.component import Component
from mnemonic_framework.components import Restriction
from mnemonic_framework.battle.content import ContentDatabase, TargetScope
from mnemonic_framework.battle.errors import ActionInvalid

if TYPE_CHECKING:
    from mnemonic_framework.battle.actor import Combatant
    from mnemonic_framework.battle.state import CombatState


class ActionType(Enum):
    """Types of battle actions."""
    ATTACK = "attack"
    SKILL = "skill"
    ITEM = "item"
    DEFEND = "defend"
    FLEE = "flee"


class ResultKind(Enum):
    """What produced a TurnResult."""
    ACTION = "action"
    TURN_START = "turn_start"
    ROUND_END = "round_end"


class CombatAction(Component):
    """
    A requested action for one combatant's turn.

    Group-scoped skills and items ignore target_ids; their targets are
    expanded when the action executes.
    """
    type: ActionType
    actor_id: str
    target_ids: list[str] = Field(default_factory=list)
    skill_id: Optional[str] = None
    item_id: Optional[str] = None

    @classmethod
    def attack(cls, actor_id: str, target_id: str) -> CombatAction:
        return cls(type=ActionType.ATTACK, actor_id=actor_id, target_ids=[target_id])

    @classmethod
    def skill(cls, actor_id: str, skill_id: str, *target_ids: str) -> CombatAction:
        return cls(
            type=ActionType.SKILL,
            actor_id=actor_id,
            skill_id=skill_id,
            target_ids=list(target_ids),
        )

    @classmethod
    def item(cls, actor_id: str, item_id: str, *target_ids: str) -> CombatAction:
        return cls(
            type=ActionType.ITEM,
            actor_id=actor_id,
            item_id=item_id,
            target_ids=list(target_ids),
        )

    @classmethod
    def defend(cls, actor_id: str) -> CombatAction:
        return cls(type=ActionType.DEFEND, actor_id=actor_id)

    @classmethod
    def flee(cls, actor_id: str) -> CombatAction:
        return cls(type=ActionType.FLEE, actor_id=actor_id)


@dataclass(frozen=True)
class HitRecord:
    """
    Outcome of one sub-hit against one target.

    Attributes:
        target_id: Combatant that received the effect
        hit: False for a miss (all amounts are then zero)
        damage: HP damage after shields
        healing: HP restored
        critical: Whether the hit was critical
        element_modifier: Elemental multiplier used
        redirected_from: Nominal target when a protector took the hit
        absorbed: Damage soaked by shields
    """
    target_id: str
    hit: bool = True
    damage: int = 0
    healing: int = 0
    critical: bool = False
    element_modifier: float = 1.0
    redirected_from: Optional[str] = None
    absorbed: int = 0


@dataclass(frozen=True)
class EffectChange:
    """A status effect gained or lost by a combatant."""
    combatant_id: str
    state_id: str


@dataclass(frozen=True)
class TurnResult:
    """Immutable record of one resolved action, turn-start tick or round end."""
    kind: ResultKind
    actor_id: Optional[str] = None
    action: Optional[CombatAction] = None
    hits: tuple[HitRecord, ...] = ()
    hp_changes: dict[str, int] = field(default_factory=dict)
    sp_changes: dict[str, int] = field(default_factory=dict)
    effects_applied: tuple[EffectChange, ...] = ()
    effects_removed: tuple[EffectChange, ...] = ()
    deaths: tuple[str, ...] = ()
    revived: tuple[str, ...] = ()
    fled: bool = False
    skipped: bool = False
    messages: tuple[str, ...] = ()

    @property
    def total_damage(self) -> int:
        return sum(hit.damage for hit in self.hits)

    @property
    def caused_death(self) -> bool:
        return bool(self.deaths)

    def damage_to(self, combatant_id: str) -> int:
        return sum(hit.damage for hit in self.hits if hit.target_id == combatant_id)


@dataclass
class TurnLog:
    """Mutable accumulator frozen into a TurnResult once resolution ends."""
    kind: ResultKind
    actor_id: Optional[str] = None
    action: Optional[CombatAction] = None
    hits: list[HitRecord] = field(default_factory=list)
    hp_changes: dict[str, int] = field(default_factory=dict)
    sp_changes: dict[str, int] = field(default_factory=dict)
    effects_applied: list[EffectChange] = field(default_factory=list)
    effects_removed: list[EffectChange] = field(default_factory=list)
    deaths: list[str] = field(default_factory=list)
    revived: list[str] = field(default_factory=list)
    fled: bool = False
    skipped: bool = False
    messages: list[str] = field(default_factory=list)

    def hp(self, combatant_id: str, delta: int) -> None:
        if delta:
            self.hp_changes[combatant_id] = self.hp_changes.get(combatant_id, 0) + delta

    def sp(self, combatant_id: str, delta: int) -> None:
        if delta:
            self.sp_changes[combatant_id] = self.sp_changes.get(combatant_id, 0) + delta

    def applied(self, combatant_id: str, state_id: str) -> None:
        self.effects_applied.append(EffectChange(combatant_id, state_id))

    def removed(self, combatant_id: str, state_id: str) -> None:
        self.effects_removed.append(EffectChange(combatant_id, state_id))

    def freeze(self) -> TurnResult:
        return TurnResult(
            kind=self.kind,
            actor_id=self.actor_id,
            action=self.action,
            hits=tuple(self.hits),
            hp_changes=dict(self.hp_changes),
            sp_changes=dict(self.sp_changes),
            effects_applied=tuple(self.effects_applied),
            effects_removed=tuple(self.effects_removed),
            deaths=tuple(self.deaths),
            revived=tuple(self.revived),
            fled=self.fled,
            skipped=self.skipped,
            messages=tuple(self.messages),
        )


def _check_targets(
    state: CombatState,
    actor: Combatant,
    scope: TargetScope,
    target_ids: list[str],
) -> None:
    """Reject target ids that are unknown or on the wrong side."""
    if scope.is_group:
        return
    for target_id in target_ids:
        target = state.get(target_id)
        if target is None:
            raise ActionInvalid(f"unknown target '{target_id}'", actor.id)
        same_side = target.kind == actor.kind
        if scope.is_offensive and same_side:
            raise ActionInvalid(f"cannot target ally '{target_id}'", actor.id)
        if not scope.is_offensive and not same_side:
            raise ActionInvalid(f"cannot target opponent '{target_id}'", actor.id)
        if scope == TargetScope.SELF and target_id != actor.id:
            raise ActionInvalid("skill can only target its user", actor.id)


def validate_action(
    state: CombatState,
    action: CombatAction,
    content: ContentDatabase,
) -> None:
    """
    Check that an action can be performed right now.

    Raises:
        ActionInvalid: with the reason the action was rejected
    """
    if state.is_over:
        raise ActionInvalid("combat has ended", action.actor_id)

    actor = state.get(action.actor_id)
    if actor is None:
        raise ActionInvalid("unknown actor", action.actor_id)
    if not actor.is_alive:
        raise ActionInvalid("actor is defeated", actor.id)
    if actor.is_restricted(Restriction.CANNOT_ACT):
        raise ActionInvalid("actor cannot act", actor.id)

    if action.type == ActionType.ATTACK:
        _check_targets(state, actor, TargetScope.SINGLE_ENEMY, action.target_ids)

    elif action.type == ActionType.SKILL:
        skill = content.get_skill(action.skill_id) if action.skill_id else None
        if skill is None:
            raise ActionInvalid(f"unknown skill '{action.skill_id}'", actor.id)
        if skill.id not in actor.skills:
            raise ActionInvalid(f"does not know '{skill.id}'", actor.id)
        if actor.is_restricted(Restriction.CANNOT_SKILL):
            raise ActionInvalid("skills are sealed", actor.id)
        if actor.stats.sp < skill.sp_cost:
            raise ActionInvalid(
                f"not enough SP for '{skill.id}' ({actor.stats.sp}/{skill.sp_cost})",
                actor.id,
            )
        if actor.cooldowns.get(skill.id, 0) > 0:
            raise ActionInvalid(f"'{skill.id}' is on cooldown", actor.id)
        if skill.max_uses and actor.skill_uses.get(skill.id, 0) >= skill.max_uses:
            raise ActionInvalid(f"'{skill.id}' has no uses left", actor.id)
        _check_targets(state, actor, skill.target, action.target_ids)

    elif action.type == ActionType.ITEM:
        item = content.get_item(action.item_id) if action.item_id else None
        if item is None:
            raise ActionInvalid(f"unknown item '{action.item_id}'", actor.id)
        if not actor.is_player:
            raise ActionInvalid("only the party carries items", actor.id)
        if actor.is_restricted(Restriction.CANNOT_ITEM):
            raise ActionInvalid("items are sealed", actor.id)
        if state.inventory.get(item.id, 0) <= 0:
            raise ActionInvalid(f"no '{item.id}' left in the bag", actor.id)
        if item.guaranteed_escape:
            _check_flee(state, actor)
        _check_targets(state, actor, item.target, action.target_ids)

    elif action.type == ActionType.FLEE:
        _check_flee(state, actor)


def _check_flee(state: CombatState, actor: Combatant) -> None:
    if not actor.is_player:
        raise ActionInvalid("only the party can flee", actor.id)
    if not state.can_flee:
        raise ActionInvalid("cannot flee from this battle", actor.id)
    if actor.is_restricted(Restriction.CANNOT_FLEE):
        raise ActionInvalid("actor is bound to the fight", actor.id)
