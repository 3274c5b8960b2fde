import random
import pytest
from mnemonic_framework.battle.events import CombatEvent
from mnemonic_framework.battle.actions import ActionType, CombatAction, ResultKind
from mnemonic_framework.battle.errors import ActionInvalid, CombatError
from mnemonic_framework.battle.state import CombatPhase
from mnemonic_framework.battle.system import CombatSession

def attack_first_enemy(state, actor_id):
    actor = state.get(actor_id)
    return CombatAction.attack(actor_id, state.opponents_of(actor)[0].id)

@pytest.fixture
def session(content, event_bus):
    return CombatSession(content, rng=random.Random(5), events=event_bus)

def test_battle_runs_to_an_end(session, sample_party):
    session.start(sample_party, "meadow_pair")

    state = session.run(attack_first_enemy)

    assert state.is_over
    assert state.phase in (CombatPhase.VICTORY, CombatPhase.DEFEAT)
    assert all(c.active_effects == [] for c in state.combatants)

def test_round_advances(session, sample_party):
    session.start(sample_party, "meadow_pair")

    results = session.run_round(attack_first_enemy)

    assert session.state.round == 2
    assert results[-1].kind == ResultKind.ROUND_END
    actors = [r.actor_id for r in results if r.kind == ResultKind.ACTION]
    # Sprites (AGI 12) tie with the mage and follow roster order
    assert actors == ["mage", "meadow_sprite#1", "meadow_sprite#2", "cleric", "knight"]
    assert session.log == results

def test_events_published(session, sample_party, event_bus):
    notices = []
    event_bus.subscribe_many(CombatEvent, notices.append)

    session.start(sample_party, "meadow_pair")
    final = session.run(attack_first_enemy)

    seen = [notice.type for notice in notices]
    assert seen[0] == CombatEvent.COMBAT_STARTED
    assert seen[-1] == CombatEvent.COMBAT_ENDED
    assert seen.count(CombatEvent.COMBAT_ENDED) == 1
    assert CombatEvent.TURN_RESOLVED in seen
    assert CombatEvent.ROUND_ENDED in seen

    # Every logged TurnResult travels with a notice, in order
    assert [n.result for n in notices if n.result is not None] == session.log
    ended = notices[-1]
    assert ended.state == final
    assert ended.phase == final.phase
    assert ended.rewards == final.rewards

def test_turn_notice_carries_actor(session, sample_party, event_bus):
    resolved = []
    event_bus.subscribe(CombatEvent.TURN_RESOLVED, resolved.append)

    session.start(sample_party, "meadow_pair")
    session.run_round(attack_first_enemy)

    assert resolved[0].actor_id == "mage"
    assert resolved[0].result.actor_id == "mage"
    assert resolved[0].round == 1

def test_rejected_action_is_requested_again(session, sample_party, event_bus):
    rejected = []
    def on_rejected(event):
        rejected.append(event)
    event_bus.subscribe(CombatEvent.ACTION_REJECTED, on_rejected)

    calls = []
    def provider(state, actor_id):
        calls.append(actor_id)
        if actor_id == "knight" and calls.count("knight") == 1:
            return CombatAction.item("knight", "potion", "knight")
        return attack_first_enemy(state, actor_id)

    session.start(sample_party, "meadow_pair")
    session.run_round(provider)

    assert calls.count("knight") == 2
    assert len(rejected) == 1
    assert rejected[0].actor_id == "knight"
    assert "potion" in rejected[0].reason
    assert rejected[0].action == CombatAction.item("knight", "potion", "knight")

def test_out_of_attempts_defends(session, sample_party):
    def provider(state, actor_id):
        return CombatAction.skill(actor_id, "meteor", "meadow_sprite#1")

    session.start(sample_party, "meadow_pair")
    results = session.run_round(provider)

    party_actions = [r.action for r in results if r.kind == ResultKind.ACTION and r.actor_id in ("knight", "mage", "cleric")]
    assert len(party_actions) == 3
    assert all(action.type == ActionType.DEFEND for action in party_actions)

def test_queued_action_is_used(session, sample_party):
    calls = []
    def provider(state, actor_id):
        calls.append(actor_id)
        return attack_first_enemy(state, actor_id)

    session.start(sample_party, "meadow_pair")
    session.queue_action(CombatAction.defend("knight"))
    results = session.run_round(provider)

    knight_turn = next(r for r in results if r.kind == ResultKind.ACTION and r.actor_id == "knight")
    assert knight_turn.action.type == ActionType.DEFEND
    assert "knight" not in calls
    assert session.state.action_queue == []

@pytest.mark.parametrize("action", [
    CombatAction.attack("meadow_sprite#1", "knight"),
    CombatAction.defend("nobody"),
])
def test_only_party_members_queue(session, sample_party, action):
    session.start(sample_party, "meadow_pair")

    with pytest.raises(ActionInvalid):
        session.queue_action(action)

    assert session.state.action_queue == []

def test_missing_player_input(session, sample_party):
    session.start(sample_party, "meadow_pair")
    with pytest.raises(CombatError):
        session.run_round()

def test_not_started(session):
    with pytest.raises(CombatError):
        session.run_round(attack_first_enemy)

def test_finished_battle_runs_no_rounds(session, sample_party):
    session.start(sample_party, "meadow_pair", inventory={"smoke_bomb": 1})
    session.queue_action(CombatAction.item("mage", "smoke_bomb"))
    session.run_round(attack_first_enemy)

    assert session.state.phase == CombatPhase.FLED
    assert session.is_over
    assert session.run_round(attack_first_enemy) == []

def test_same_seed_same_battle(content, sample_party):
    outcomes = []
    for _ in range(2):
        session = CombatSession(content, rng=random.Random(77))
        session.start(sample_party, "viper_den", inventory={"potion": 2})
        state = session.run(attack_first_enemy)
        outcomes.append((state, session.log))

    assert outcomes[0] == outcomes[1]
