import pytest
from pydantic import ValidationError
from mnemonic_framework.components import (
    Attribute,
    CombatantStats,
    EffectKind,
    Element,
    Affinity,
    Restriction,
    StatusEffect,
)
from mnemonic_framework.battle.actor import Combatant, CombatantKind
from mnemonic_framework.battle.actions import CombatAction
from mnemonic_framework.battle.state import CombatState, CombatPhase

def test_stats_init():
    stats = CombatantStats(hp=150, max_hp=100, sp=5, max_sp=20, strength=12)
    assert stats.strength == 12

    # Pools are clamped to their maximum
    assert stats.hp == 100
    assert stats.sp == 5

def test_stats_reject_negative_pools():
    with pytest.raises(ValidationError):
        CombatantStats(hp=-1)

def test_take_damage_and_heal():
    stats = CombatantStats(hp=100, max_hp=100)

    assert stats.take_damage(30) == 30
    assert stats.hp == 70

    assert stats.heal(50) == 30
    assert stats.hp == 100

    assert stats.take_damage(500) == 100
    assert stats.hp == 0
    assert stats.is_defeated

    # Healing does not bring back the defeated
    assert stats.heal(20) == 0
    assert stats.revive(0.25) == 25
    assert not stats.is_defeated

def test_sp_spend_and_restore():
    stats = CombatantStats(sp=10, max_sp=20)
    assert not stats.spend_sp(11)
    assert stats.spend_sp(10)
    assert stats.sp == 0
    assert stats.restore_sp(50) == 20

def test_combatant_init():
    hero = Combatant(id="hero", name="Hero", stats=CombatantStats(hp=100, max_hp=100))

    assert hero.is_alive
    assert hero.is_player
    assert hero.affinity(Element.FIRE) == Affinity.NEUTRAL
    assert hero.effective(Attribute.STR) == 10

def test_effective_stats_are_not_baked_in():
    hero = Combatant(id="hero", name="Hero", stats=CombatantStats(dexterity=10))
    hero.active_effects.append(StatusEffect(
        state_id="weakness", kind=EffectKind.STAT_RATE, modifiers={Attribute.DEX: -0.3},
    ))
    hero.active_effects.append(StatusEffect(
        state_id="iron_skin", kind=EffectKind.STAT_VALUE, modifiers={Attribute.DEX: 8},
    ))

    assert hero.effective(Attribute.DEX) == 15
    assert hero.stats.dexterity == 10

    hero.active_effects = []
    assert hero.effective(Attribute.DEX) == 10

def test_effective_stat_never_negative():
    hero = Combatant(id="hero", name="Hero", stats=CombatantStats(agility=4))
    hero.active_effects.append(StatusEffect(
        state_id="crippled", kind=EffectKind.STAT_VALUE, modifiers={Attribute.AGI: -20},
    ))
    assert hero.effective(Attribute.AGI) == 0

def test_restrictions():
    hero = Combatant(id="hero", name="Hero")
    hero.active_effects.append(StatusEffect(
        state_id="silence", kind=EffectKind.RESTRICTION, restrictions={Restriction.CANNOT_SKILL},
    ))
    assert hero.is_restricted(Restriction.CANNOT_SKILL)
    assert not hero.is_restricted(Restriction.CANNOT_ITEM)

def test_status_effect_expiry():
    effect = StatusEffect(state_id="poison", kind=EffectKind.PERIODIC_DAMAGE, remaining_turns=0)
    assert effect.is_expired

    innate = StatusEffect(state_id="thorns", kind=EffectKind.ON_DEATH, remaining_turns=0, permanent=True)
    assert not innate.is_expired

def test_state_serializes_verbatim(make_combatant):
    hero = make_combatant("hero", affinities={Element.FIRE: Affinity.WEAK})
    hero.active_effects.append(StatusEffect(
        state_id="silence", kind=EffectKind.RESTRICTION,
        restrictions={Restriction.CANNOT_SKILL}, remaining_turns=2, source_id="wisp#1",
    ))
    slime = make_combatant("slime#1", kind=CombatantKind.ENEMY)
    state = CombatState(
        combatants=[hero, slime],
        round=3,
        action_queue=[CombatAction.attack("hero", "slime#1")],
        inventory={"potion": 2},
    )

    restored = CombatState.model_validate_json(state.model_dump_json())

    assert restored == state
    assert restored.phase == CombatPhase.ACTIVE
    assert restored.get("hero").affinity(Element.FIRE) == Affinity.WEAK

def test_clone_is_independent(make_combatant):
    state = CombatState(combatants=[make_combatant("hero")])
    copy = state.clone()
    copy.get("hero").stats.hp = 1

    assert state.get("hero").stats.hp == 100
