"""
Status effect manager.

Timings:
- stat modifiers apply as soon as the effect is attached and are read
  through Combatant.effective(), so expiry reverts them automatically
- periodic damage/heal resolves in begin_turn(), before the owner acts
- durations count down in end_round(), after every combatant acted
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from mnemonic_framework.components import EffectKind, Restriction, DeathTarget, StatusEffect
from mnemonic_framework.battle.actions import HitRecord, ResultKind, TurnLog, TurnResult
from mnemonic_framework.battle.actor import Combatant
from mnemonic_framework.battle.content import StateData
from mnemonic_framework.battle.errors import CombatError
from mnemonic_framework.battle.state import CombatState

logger = logging.getLogger(__name__)


def apply_status(
    combatant: Combatant,
    state_record: StateData,
    source_id: Optional[str],
    duration: Optional[int] = None,
) -> StatusEffect:
    """
    Attach a state to a combatant in place.

    A non-stackable state already present is refreshed (duration and
    source reset, shield pool refilled) instead of added twice; stackable
    states add an independent instance.

    Returns:
        The new or refreshed effect instance
    """
    incoming = state_record.instantiate(source_id, duration)

    if not state_record.stackable:
        existing = combatant.find_effect(state_record.id)
        if existing is not None:
            existing.remaining_turns = incoming.remaining_turns
            existing.source_id = source_id
            existing.shield_remaining = incoming.shield_remaining
            return existing

    combatant.active_effects.append(incoming)
    return incoming


def remove_status(combatant: Combatant, state_id: str) -> int:
    """Remove every instance of a state in place. Returns how many were removed."""
    before = len(combatant.active_effects)
    combatant.active_effects = [
        effect for effect in combatant.active_effects if effect.state_id != state_id
    ]
    return before - len(combatant.active_effects)


def absorb_damage(combatant: Combatant, amount: int, log: TurnLog) -> int:
    """
    Let shield effects soak damage in application order.

    Depleted shields are removed. Returns the amount absorbed.
    """
    absorbed = 0
    for effect in combatant.effects_of_kind(EffectKind.SHIELD):
        if absorbed >= amount:
            break
        take = min(effect.shield_remaining, amount - absorbed)
        effect.shield_remaining -= take
        absorbed += take
        if effect.shield_remaining <= 0:
            combatant.active_effects.remove(effect)
            log.removed(combatant.id, effect.state_id)
    return absorbed


def find_protector(state: CombatState, target: Combatant) -> Optional[Combatant]:
    """Get the living combatant guarding a target through a redirect effect."""
    for effect in target.effects_of_kind(EffectKind.REDIRECT):
        if effect.source_id is None or effect.source_id == target.id:
            continue
        protector = state.get(effect.source_id)
        if protector is not None and protector.is_alive:
            return protector
    return None


def _parting_damage(victim: Combatant, effect: StatusEffect) -> int:
    return max(1, effect.amount + math.floor(victim.stats.max_hp * effect.rate))


def handle_defeat(
    state: CombatState,
    victim: Combatant,
    killer_id: Optional[str],
    log: TurnLog,
) -> None:
    """
    Process a combatant whose HP just reached 0.

    Ends its guard stance, fires its on-death reactions (unavoidable
    damage that can chain into further defeats), then strips its effects.
    """
    log.deaths.append(victim.id)
    log.messages.append(f"{victim.name} was defeated!")
    logger.debug(f"{victim.id} defeated by {killer_id}")
    victim.is_defending = False

    reactions = victim.effects_of_kind(EffectKind.ON_DEATH)

    for effect in list(victim.active_effects):
        log.removed(victim.id, effect.state_id)
    victim.active_effects = []

    for effect in reactions:
        if effect.death_target == DeathTarget.KILLER:
            killer = state.get(killer_id) if killer_id else None
            recipients = [killer] if killer is not None and killer.is_alive else []
        else:
            recipients = state.opponents_of(victim)

        amount = _parting_damage(victim, effect)
        for recipient in recipients:
            if not recipient.is_alive:
                continue
            lost = recipient.stats.take_damage(amount)
            log.hp(recipient.id, -lost)
            log.hits.append(HitRecord(target_id=recipient.id, damage=lost))
            log.messages.append(f"{effect.name or effect.state_id} strikes {recipient.name} for {lost}!")
            if not recipient.is_alive:
                handle_defeat(state, recipient, victim.id, log)


def _tick_amount(owner: Combatant, effect: StatusEffect) -> int:
    if effect.amount > 0:
        return effect.amount
    return max(1, math.floor(owner.stats.max_hp * effect.rate))


def begin_turn(state: CombatState, actor_id: str) -> tuple[TurnResult, CombatState]:
    """
    Start a combatant's turn.

    Ends its guard stance, resolves periodic damage and healing, and marks
    the turn skipped when the combatant is defeated or cannot act.

    Raises:
        CombatError: actor_id is not in the combat
    """
    state = state.clone()
    actor = state.get(actor_id)
    if actor is None:
        raise CombatError(f"unknown combatant '{actor_id}'")

    log = TurnLog(kind=ResultKind.TURN_START, actor_id=actor_id)

    if not actor.is_alive:
        log.skipped = True
        return log.freeze(), state

    actor.is_defending = False

    for effect in list(actor.active_effects):
        if not actor.is_alive:
            break
        if effect.kind == EffectKind.PERIODIC_DAMAGE:
            lost = actor.stats.take_damage(_tick_amount(actor, effect))
            log.hp(actor.id, -lost)
            log.hits.append(HitRecord(target_id=actor.id, damage=lost))
            log.messages.append(f"{actor.name} takes {lost} from {effect.name or effect.state_id}.")
            if not actor.is_alive:
                handle_defeat(state, actor, effect.source_id, log)
        elif effect.kind == EffectKind.PERIODIC_HEAL:
            healed = actor.stats.heal(_tick_amount(actor, effect))
            log.hp(actor.id, healed)
            log.hits.append(HitRecord(target_id=actor.id, healing=healed))

    if not actor.is_alive:
        log.skipped = True
    elif actor.is_restricted(Restriction.CANNOT_ACT):
        log.skipped = True
        log.messages.append(f"{actor.name} cannot move!")

    return log.freeze(), state


def end_round(state: CombatState) -> tuple[TurnResult, CombatState]:
    """
    Close a round.

    Counts every timed effect down once and removes those reaching 0,
    ticks skill cooldowns, advances the round counter.
    """
    state = state.clone()
    log = TurnLog(kind=ResultKind.ROUND_END)

    for combatant in state.combatants:
        kept = []
        for effect in combatant.active_effects:
            if not effect.permanent:
                effect.remaining_turns = max(0, effect.remaining_turns - 1)
            if effect.is_expired:
                log.removed(combatant.id, effect.state_id)
                log.messages.append(f"{effect.name or effect.state_id} wore off {combatant.name}.")
            else:
                kept.append(effect)
        combatant.active_effects = kept

        combatant.cooldowns = {
            skill_id: turns - 1
            for skill_id, turns in combatant.cooldowns.items()
            if turns > 1
        }

    state.round += 1
    state.turn_queue = []
    logger.debug(f"Round {state.round - 1} ended, {len(log.effects_removed)} effects expired")
    return log.freeze(), state


def clear_effects(state: CombatState) -> CombatState:
    """Strip every effect and guard stance; used when combat ends."""
    state = state.clone()
    for combatant in state.combatants:
        combatant.active_effects = []
        combatant.is_defending = False
    return state
