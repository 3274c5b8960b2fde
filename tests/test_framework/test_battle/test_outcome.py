import random
import pytest
from mnemonic_framework.battle.content import DropEntry, EnemyData
from mnemonic_framework.battle.effects import apply_status
from mnemonic_framework.battle.errors import ConfigurationError
from mnemonic_framework.battle.initializer import initialize_combat
from mnemonic_framework.battle.outcome import calculate_rewards, check_combat_end, roll_drop
from mnemonic_framework.battle.state import CombatPhase

def test_drop_frequencies_converge():
    drops = (DropEntry("potion", 0.3), DropEntry("slime_gel", 0.2))
    rng = random.Random(2024)
    trials = 20000
    counts = {"potion": 0, "slime_gel": 0, None: 0}

    for _ in range(trials):
        counts[roll_drop(drops, rng)] += 1

    assert counts["potion"] / trials == pytest.approx(0.3, abs=0.02)
    assert counts["slime_gel"] / trials == pytest.approx(0.2, abs=0.02)
    assert counts[None] / trials == pytest.approx(0.5, abs=0.02)

def test_empty_drop_table_draws_nothing():
    rng = random.Random(1)
    before = rng.getstate()
    assert roll_drop((), rng) is None
    assert rng.getstate() == before

def test_drop_table_over_one_hundred_percent():
    with pytest.raises(ConfigurationError):
        EnemyData(id="greedy", name="Greedy", drops=(DropEntry("potion", 0.7), DropEntry("ether", 0.4)))

    with pytest.raises(ConfigurationError):
        EnemyData(id="cursed", name="Cursed", drops=(DropEntry("potion", -0.1),))

def test_active_combat_is_unchanged(content, sample_party, rng):
    state = initialize_combat(sample_party, "meadow_pair", content)
    assert check_combat_end(state, content, rng) is state

def test_victory_with_rewards(content, sample_party, rng):
    state = initialize_combat(sample_party, "wisp_lights", content)
    for enemy in state.enemies:
        enemy.stats.hp = 0

    after = check_combat_end(state, content, rng)

    assert after.phase == CombatPhase.VICTORY
    # Two wisps and a sprite
    assert after.rewards.experience == 22 + 22 + 12
    assert after.rewards.currency == 12 + 12 + 6
    assert set(after.rewards.items) <= {"ether", "potion", "slime_gel"}
    assert state.phase == CombatPhase.ACTIVE

def test_rewards_are_computed_once(content, sample_party, rng):
    state = initialize_combat(sample_party, "meadow_pair", content)
    for enemy in state.enemies:
        enemy.stats.hp = 0
    after = check_combat_end(state, content, rng)

    assert check_combat_end(after, content, rng) is after

def test_victory_takes_precedence_over_defeat(content, sample_party, rng):
    state = initialize_combat(sample_party, "meadow_pair", content)
    for combatant in state.combatants:
        combatant.stats.hp = 0

    after = check_combat_end(state, content, rng)

    assert after.phase == CombatPhase.VICTORY
    assert after.rewards is not None

def test_defeat_has_no_rewards(content, sample_party, rng):
    state = initialize_combat(sample_party, "meadow_pair", content)
    apply_status(state.get("meadow_sprite#1"), content.get_state("haste"), "meadow_sprite#1")
    for member in state.party:
        member.stats.hp = 0

    after = check_combat_end(state, content, rng)

    assert after.phase == CombatPhase.DEFEAT
    assert after.rewards is None
    assert after.get("meadow_sprite#1").active_effects == []

def test_fled_clears_effects_without_rewards(content, sample_party, rng):
    state = initialize_combat(sample_party, "meadow_pair", content)
    apply_status(state.get("knight"), content.get_state("haste"), "knight")
    state.phase = CombatPhase.FLED

    after = check_combat_end(state, content, rng)

    assert after.phase == CombatPhase.FLED
    assert after.rewards is None
    assert after.get("knight").active_effects == []

def test_rewards_only_count_defeated(content, sample_party, rng):
    state = initialize_combat(sample_party, "viper_den", content)
    state.get("meadow_sprite#2").stats.hp = 0

    rewards = calculate_rewards(state, content, rng)

    assert rewards.experience == 12
    assert rewards.currency == 6

def test_drops_follow_roster_order(content, sample_party):
    state = initialize_combat(sample_party, "golem_gate", content)
    state.get("stone_golem#1").stats.hp = 0

    first = calculate_rewards(state, content, random.Random(3))
    second = calculate_rewards(state, content, random.Random(3))

    assert first == second
