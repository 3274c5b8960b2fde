"""
Action executor - resolves one CombatAction against a CombatState.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from mnemonic_engine.core.config import CombatConfig
from mnemonic_framework.components import Attribute
from mnemonic_framework.battle.actions import (
    ActionType,
    CombatAction,
    HitRecord,
    ResultKind,
    TurnLog,
    TurnResult,
    validate_action,
)
from mnemonic_framework.battle.actor import Combatant
from mnemonic_framework.battle.content import (
    BASIC_ATTACK,
    ContentDatabase,
    ItemData,
    SkillData,
    SkillEffect,
    StateApplication,
    TargetScope,
)
from mnemonic_framework.battle.damage import (
    calculate_damage,
    calculate_fixed_damage,
    calculate_healing,
    elemental_modifier,
    offensive_multipliers,
    roll_critical,
    roll_variance,
    variance_band,
)
from mnemonic_framework.battle.effects import (
    absorb_damage,
    apply_status,
    find_protector,
    handle_defeat,
    remove_status,
)
from mnemonic_framework.battle.outcome import check_combat_end
from mnemonic_framework.battle.state import CombatPhase, CombatState

logger = logging.getLogger(__name__)


def roll_chance(chance: float, rng: random.Random) -> bool:
    """Roll a probability. Certain outcomes draw nothing from the generator."""
    if chance >= 1.0:
        return True
    if chance <= 0.0:
        return False
    return rng.random() < chance


def flee_chance(state: CombatState, config: CombatConfig) -> float:
    """
    Escape chance from the average effective agility of both sides.

    clamp(base + (party avg - enemy avg) * factor, min, max)
    """
    party = [c for c in state.party if c.is_alive]
    enemies = [c for c in state.enemies if c.is_alive]
    if not party or not enemies:
        return config.flee_base_chance

    party_avg = sum(c.effective(Attribute.AGI) for c in party) / len(party)
    enemy_avg = sum(c.effective(Attribute.AGI) for c in enemies) / len(enemies)
    chance = config.flee_base_chance + (party_avg - enemy_avg) * config.flee_agility_factor
    return max(config.flee_min_chance, min(config.flee_max_chance, chance))


class ActionExecutor:
    """
    Executes battle actions and calculates results.

    execute() never mutates the state it receives. Apart from debug
    logging it has no side effects.
    """

    def __init__(self, content: ContentDatabase, config: Optional[CombatConfig] = None):
        self.content = content
        self.config = config or CombatConfig()

    def execute(
        self,
        state: CombatState,
        action: CombatAction,
        rng: random.Random,
    ) -> tuple[TurnResult, CombatState]:
        """
        Resolve one action.

        Returns:
            (TurnResult, next CombatState)

        Raises:
            ActionInvalid: the action cannot be performed; nothing was resolved
        """
        validate_action(state, action, self.content)

        state = state.clone()
        actor = state.get(action.actor_id)
        log = TurnLog(kind=ResultKind.ACTION, actor_id=actor.id, action=action)

        if action.type == ActionType.ATTACK:
            self._use_skill(state, actor, BASIC_ATTACK, action.target_ids, rng, log)
        elif action.type == ActionType.SKILL:
            skill = self.content.get_skill(action.skill_id)
            self._pay_for_skill(actor, skill, log)
            self._use_skill(state, actor, skill, action.target_ids, rng, log)
        elif action.type == ActionType.ITEM:
            self._use_item(state, actor, self.content.get_item(action.item_id), action.target_ids, rng, log)
        elif action.type == ActionType.DEFEND:
            actor.is_defending = True
            log.messages.append(f"{actor.name} is defending!")
        elif action.type == ActionType.FLEE:
            self._flee(state, actor, rng, log)

        logger.debug(
            f"{actor.id} {action.type.value}: hits={len(log.hits)} "
            f"hp={log.hp_changes} deaths={log.deaths}"
        )

        ended = check_combat_end(state, self.content, rng)
        if ended.is_over:
            # Effects stripped by the end of combat
            for combatant in state.combatants:
                for effect in combatant.active_effects:
                    log.removed(combatant.id, effect.state_id)
        return log.freeze(), ended

    # -- targeting -------------------------------------------------------

    def _resolve_targets(
        self,
        state: CombatState,
        actor: Combatant,
        scope: TargetScope,
        target_ids: Sequence[str],
        log: TurnLog,
    ) -> list[Combatant]:
        """Expand and re-check targets at execution time."""
        if scope == TargetScope.ALL_ENEMIES:
            return state.opponents_of(actor)
        if scope == TargetScope.ALL_ALLIES:
            return state.allies_of(actor)
        if scope == TargetScope.SELF:
            return [actor]

        nominal = state.get(target_ids[0]) if target_ids else None

        if scope == TargetScope.SINGLE_ENEMY:
            if nominal is not None and nominal.is_alive:
                return [nominal]
            opponents = state.opponents_of(actor)
            if not opponents:
                return []
            if nominal is not None:
                log.messages.append(f"{nominal.name} is down; {actor.name} turns to {opponents[0].name}.")
            return [opponents[0]]

        if scope == TargetScope.DEAD_ALLY:
            if nominal is not None:
                return [] if nominal.is_alive else [nominal]
            fallen = [c for c in state.combatants if c.kind == actor.kind and not c.is_alive]
            return fallen[:1]

        # SINGLE_ALLY
        if nominal is None:
            return [actor]
        return [nominal] if nominal.is_alive else []

    # -- skills ----------------------------------------------------------

    def _pay_for_skill(self, actor: Combatant, skill: SkillData, log: TurnLog) -> None:
        """Deduct SP, start the cooldown and count the use before resolving."""
        if skill.sp_cost:
            actor.stats.spend_sp(skill.sp_cost)
            log.sp(actor.id, -skill.sp_cost)
        if skill.cooldown > 0:
            actor.cooldowns[skill.id] = skill.cooldown
        actor.skill_uses[skill.id] = actor.skill_uses.get(skill.id, 0) + 1

    def _use_skill(
        self,
        state: CombatState,
        actor: Combatant,
        skill: SkillData,
        target_ids: Sequence[str],
        rng: random.Random,
        log: TurnLog,
    ) -> None:
        targets = self._resolve_targets(state, actor, skill.target, target_ids, log)
        if not targets:
            log.messages.append(f"{skill.name} has no target.")
            return

        log.messages.append(f"{actor.name} uses {skill.name}!")

        if skill.effect == SkillEffect.DAMAGE:
            self._strike(state, actor, skill, targets, rng, log)
        elif skill.effect == SkillEffect.HEAL:
            self._heal(state, actor, skill, targets, rng, log)
        else:
            for target in targets:
                if not roll_chance(skill.hit_rate, rng):
                    log.hits.append(HitRecord(target_id=target.id, hit=False))
                    continue
                log.hits.append(HitRecord(target_id=target.id))
                self._change_states(state, actor, target, skill.applies, skill.removes, rng, log)

        if skill.charge_gain and actor.is_alive:
            actor.charges = min(self.config.max_charges, actor.charges + skill.charge_gain)

    def _strike(
        self,
        state: CombatState,
        actor: Combatant,
        skill: SkillData,
        targets: list[Combatant],
        rng: random.Random,
        log: TurnLog,
    ) -> None:
        """Resolve every sub-hit of a damaging skill."""
        band = variance_band(skill, self.config)
        shared_variance = None if skill.rolls_per_hit else roll_variance(band, rng)
        area = skill.target.is_group

        for _ in range(skill.hits):
            for target in targets:
                if not actor.is_alive:
                    return
                if not target.is_alive:
                    continue
                if not roll_chance(skill.hit_rate, rng):
                    log.hits.append(HitRecord(target_id=target.id, hit=False))
                    continue

                variance = roll_variance(band, rng) if shared_variance is None else shared_variance
                critical = skill.can_crit and roll_critical(actor, self.config, rng)
                multipliers = offensive_multipliers(actor, target, self.config, critical)
                amount = calculate_damage(actor, target, skill, self.config, variance, multipliers)
                element = elemental_modifier(target, skill.element, self.config, skill.weakness_multiplier)

                receiver = self._deliver(
                    state, actor, target, amount, area, log,
                    critical=critical, element_modifier=element,
                )
                if receiver.is_alive:
                    self._change_states(state, actor, receiver, skill.applies, skill.removes, rng, log)

    def _deliver(
        self,
        state: CombatState,
        actor: Combatant,
        target: Combatant,
        amount: int,
        area: bool,
        log: TurnLog,
        critical: bool = False,
        element_modifier: float = 1.0,
    ) -> Combatant:
        """
        Apply computed damage, honoring redirects (single target only) and shields.

        Returns:
            The combatant that actually received the damage
        """
        receiver = target
        redirected_from = None
        if not area:
            protector = find_protector(state, target)
            if protector is not None:
                receiver = protector
                redirected_from = target.id
                log.messages.append(f"{protector.name} shields {target.name}!")

        absorbed = absorb_damage(receiver, amount, log)
        lost = receiver.stats.take_damage(amount - absorbed)
        log.hp(receiver.id, -lost)
        log.hits.append(HitRecord(
            target_id=receiver.id,
            damage=amount - absorbed,
            critical=critical,
            element_modifier=element_modifier,
            redirected_from=redirected_from,
            absorbed=absorbed,
        ))

        if not receiver.is_alive:
            handle_defeat(state, receiver, actor.id, log)
        return receiver

    def _heal(
        self,
        state: CombatState,
        actor: Combatant,
        skill: SkillData,
        targets: list[Combatant],
        rng: random.Random,
        log: TurnLog,
    ) -> None:
        band = variance_band(skill, self.config)
        shared_variance = None if skill.rolls_per_hit else roll_variance(band, rng)
        charges = actor.charges

        for _ in range(skill.hits):
            for target in targets:
                if not roll_chance(skill.hit_rate, rng):
                    log.hits.append(HitRecord(target_id=target.id, hit=False))
                    continue
                variance = roll_variance(band, rng) if shared_variance is None else shared_variance
                amount = calculate_healing(actor, skill, variance, charges)

                if not target.is_alive:
                    if skill.target != TargetScope.DEAD_ALLY:
                        continue
                    target.stats.hp = min(target.stats.max_hp, max(1, amount))
                    healed = target.stats.hp
                    log.revived.append(target.id)
                    log.messages.append(f"{target.name} is revived!")
                else:
                    healed = target.stats.heal(amount)
                log.hp(target.id, healed)
                log.hits.append(HitRecord(target_id=target.id, healing=healed))
                self._change_states(state, actor, target, skill.applies, skill.removes, rng, log)

        # Charge-scaled heals spend the charges they were boosted by
        if skill.charge_bonus and charges:
            actor.charges = 0

    def _change_states(
        self,
        state: CombatState,
        actor: Combatant,
        target: Combatant,
        applies: Sequence[StateApplication],
        removes: Sequence[str],
        rng: random.Random,
        log: TurnLog,
    ) -> None:
        """Cure then apply states on one target."""
        for state_id in removes:
            if remove_status(target, state_id):
                log.removed(target.id, state_id)

        for application in applies:
            record = self.content.get_state(application.state_id)
            if record is None:
                logger.warning(f"Unknown state '{application.state_id}' skipped")
                continue
            if not roll_chance(application.chance, rng):
                continue
            apply_status(target, record, actor.id, application.duration)
            log.applied(target.id, record.id)

    # -- items -----------------------------------------------------------

    def _use_item(
        self,
        state: CombatState,
        actor: Combatant,
        item: ItemData,
        target_ids: Sequence[str],
        rng: random.Random,
        log: TurnLog,
    ) -> None:
        remaining = state.inventory[item.id] - 1
        if remaining > 0:
            state.inventory[item.id] = remaining
        else:
            del state.inventory[item.id]
        log.messages.append(f"{actor.name} uses {item.name}!")

        if item.guaranteed_escape:
            state.phase = CombatPhase.FLED
            log.fled = True
            log.messages.append("Got away safely!")
            return

        scope = item.target
        targets = self._resolve_targets(state, actor, scope, target_ids, log)

        for target in targets:
            if item.revive and not target.is_alive:
                restored = target.stats.revive(item.revive_hp_percent)
                log.hp(target.id, restored)
                log.revived.append(target.id)
                log.messages.append(f"{target.name} is revived!")
            if not target.is_alive:
                continue

            if item.damage:
                if not roll_chance(item.hit_rate, rng):
                    log.hits.append(HitRecord(target_id=target.id, hit=False))
                    continue
                amount = calculate_fixed_damage(item.damage, target, item.element, self.config)
                element = elemental_modifier(target, item.element, self.config)
                receiver = self._deliver(
                    state, actor, target, amount, scope.is_group, log,
                    element_modifier=element,
                )
                if receiver.is_alive:
                    self._change_states(state, actor, receiver, item.applies, item.removes, rng, log)
                continue

            hp_amount = item.hp_restore + int(target.stats.max_hp * item.hp_restore_percent)
            healed = target.stats.heal(hp_amount)
            log.hp(target.id, healed)

            sp_amount = item.sp_restore + int(target.stats.max_sp * item.sp_restore_percent)
            restored_sp = target.stats.restore_sp(sp_amount)
            log.sp(target.id, restored_sp)

            log.hits.append(HitRecord(target_id=target.id, healing=healed))
            self._change_states(state, actor, target, item.applies, item.removes, rng, log)

    # -- flee ------------------------------------------------------------

    def _flee(
        self,
        state: CombatState,
        actor: Combatant,
        rng: random.Random,
        log: TurnLog,
    ) -> None:
        chance = flee_chance(state, self.config)
        if rng.random() < chance:
            state.phase = CombatPhase.FLED
            log.fled = True
            log.messages.append("Got away safely!")
            logger.info(f"Party fled in round {state.round} ({chance:.0%} chance)")
        else:
            log.messages.append("Couldn't escape!")
