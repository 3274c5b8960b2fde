from mnemonic_framework.components import Attribute, EffectKind, StatusEffect
from mnemonic_framework.battle.actor import CombatantKind
from mnemonic_framework.battle.state import CombatState
from mnemonic_framework.battle.turn_order import resolve_turn_order

def make_state(make_combatant, agilities):
    combatants = []
    for combatant_id, kind, agility in agilities:
        combatants.append(make_combatant(combatant_id, kind=kind, agility=agility))
    return CombatState(combatants=combatants)

def test_sorted_by_agility(make_combatant):
    state = make_state(make_combatant, [
        ("knight", CombatantKind.PLAYER, 9),
        ("mage", CombatantKind.PLAYER, 12),
        ("viper#1", CombatantKind.ENEMY, 14),
    ])
    assert resolve_turn_order(state) == ["viper#1", "mage", "knight"]

def test_ties_keep_roster_order(make_combatant):
    state = make_state(make_combatant, [
        ("knight", CombatantKind.PLAYER, 10),
        ("mage", CombatantKind.PLAYER, 10),
        ("slime#1", CombatantKind.ENEMY, 10),
        ("slime#2", CombatantKind.ENEMY, 10),
    ])
    first = resolve_turn_order(state)
    assert first == ["knight", "mage", "slime#1", "slime#2"]
    # Repeated computation gives the same answer
    assert all(resolve_turn_order(state) == first for _ in range(5))

def test_defeated_are_skipped(make_combatant):
    state = make_state(make_combatant, [
        ("knight", CombatantKind.PLAYER, 10),
        ("slime#1", CombatantKind.ENEMY, 20),
    ])
    state.get("slime#1").stats.hp = 0
    assert resolve_turn_order(state) == ["knight"]

def test_agility_modifiers_are_recomputed(make_combatant):
    state = make_state(make_combatant, [
        ("knight", CombatantKind.PLAYER, 9),
        ("slime#1", CombatantKind.ENEMY, 12),
    ])
    assert resolve_turn_order(state) == ["slime#1", "knight"]

    state.get("knight").active_effects.append(StatusEffect(
        state_id="haste", kind=EffectKind.STAT_RATE, modifiers={Attribute.AGI: 0.5},
    ))
    assert resolve_turn_order(state) == ["knight", "slime#1"]

    state.get("knight").active_effects = []
    assert resolve_turn_order(state) == ["slime#1", "knight"]
