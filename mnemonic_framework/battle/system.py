"""
Battle system - turn-based combat controller.

Sequences one battle:

    initialize_combat
    loop:
        resolve_turn_order
        for each actor: begin_turn -> (queued | player | AI) action -> execute
        end_round

Every TurnResult is appended to the session log and published on the
EventBus as a CombatNotice so presentation code can animate it.
"""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Sequence, Union

from mnemonic_engine.core.config import CombatConfig
from mnemonic_engine.core.events import EventBus
from mnemonic_framework.battle.actions import CombatAction, TurnResult
from mnemonic_framework.battle.actor import Combatant
from mnemonic_framework.battle.ai import select_enemy_action
from mnemonic_framework.battle.content import ContentDatabase, EncounterData
from mnemonic_framework.battle.effects import begin_turn, end_round
from mnemonic_framework.battle.errors import ActionInvalid, CombatError
from mnemonic_framework.battle.events import CombatEvent, CombatNotice
from mnemonic_framework.battle.executor import ActionExecutor
from mnemonic_framework.battle.initializer import initialize_combat
from mnemonic_framework.battle.outcome import check_combat_end
from mnemonic_framework.battle.state import CombatState
from mnemonic_framework.battle.turn_order import resolve_turn_order

logger = logging.getLogger(__name__)

# (current state, actor id) -> the action the player picked
ActionProvider = Callable[[CombatState, str], CombatAction]


class CombatSession:
    """
    Drives one battle from start to a terminal phase.

    The session holds the latest CombatState; each step replaces it with
    the state returned by the battle functions.
    """

    def __init__(
        self,
        content: ContentDatabase,
        config: Optional[CombatConfig] = None,
        rng: Optional[random.Random] = None,
        events: Optional[EventBus] = None,
    ):
        self.content = content
        self.config = config or CombatConfig()
        self.rng = rng or random.Random()
        self.events = events or EventBus()
        self.executor = ActionExecutor(content, self.config)

        self.state: Optional[CombatState] = None
        self.log: list[TurnResult] = []

    @property
    def is_over(self) -> bool:
        return self.state is not None and self.state.is_over

    def start(
        self,
        party: Sequence[Combatant],
        encounter: Union[EncounterData, str],
        inventory: Optional[dict[str, int]] = None,
    ) -> CombatState:
        """
        Start a battle.

        Raises:
            ConfigurationError: the battle cannot start
        """
        self.state = initialize_combat(party, encounter, self.content, inventory)
        self.log = []
        self._notify(CombatEvent.COMBAT_STARTED)
        return self.state

    def queue_action(self, action: CombatAction) -> None:
        """
        Commit an action ahead of its actor's turn.

        Enemies pick their actions through the AI, so only party members
        can queue.

        Raises:
            ActionInvalid: the actor is not a party member of this battle
        """
        state = self._require_state()
        actor = state.get(action.actor_id)
        if actor is None or not actor.is_player:
            raise ActionInvalid("only party members can queue actions", action.actor_id)

        state = state.clone()
        state.action_queue.append(action)
        self.state = state

    def run_round(self, player_actions: Optional[ActionProvider] = None) -> list[TurnResult]:
        """
        Play one full round.

        Args:
            player_actions: Asked for each party member's action when none
                was queued

        Returns:
            The TurnResults produced this round
        """
        state = self._require_state()
        if state.is_over:
            return []

        produced: list[TurnResult] = []
        state = state.clone()
        state.turn_queue = resolve_turn_order(state)
        self.state = state
        logger.debug(f"Round {state.round} order: {state.turn_queue}")

        while self.state.turn_queue and not self.state.is_over:
            state = self.state.clone()
            actor_id = state.turn_queue.pop(0)
            self.state = state

            actor = state.get(actor_id)
            if actor is None or not actor.is_alive:
                continue

            result, state = begin_turn(state, actor_id)
            self.state = check_combat_end(state, self.content, self.rng)
            self._record(produced, CombatEvent.TURN_STARTED, result)
            if result.skipped or self.state.is_over:
                continue

            result = self._take_turn(actor_id, player_actions)
            self._record(produced, CombatEvent.TURN_RESOLVED, result)

        if not self.state.is_over:
            result, self.state = end_round(self.state)
            self._record(produced, CombatEvent.ROUND_ENDED, result)
        else:
            self._notify(CombatEvent.COMBAT_ENDED)
        return produced

    def run(
        self,
        player_actions: Optional[ActionProvider] = None,
        max_rounds: int = 100,
    ) -> CombatState:
        """Play rounds until combat ends or max_rounds have passed."""
        self._require_state()
        rounds = 0
        while not self.state.is_over and rounds < max_rounds:
            self.run_round(player_actions)
            rounds += 1
        if not self.state.is_over:
            logger.warning(f"Combat still active after {max_rounds} rounds")
        return self.state

    def _take_turn(
        self,
        actor_id: str,
        player_actions: Optional[ActionProvider],
    ) -> TurnResult:
        actor = self.state.get(actor_id)

        if not actor.is_player:
            action = select_enemy_action(self.state, actor_id, self.content, self.rng)
            return self._execute(action)

        action = self._pop_queued(actor_id)
        for attempt in range(self.config.max_action_attempts):
            if action is None:
                if player_actions is None:
                    raise CombatError(f"no action available for '{actor_id}'")
                action = player_actions(self.state, actor_id)
            try:
                return self._execute(action)
            except ActionInvalid as e:
                logger.warning(f"Rejected action (attempt {attempt + 1}): {e}")
                self._notify(
                    CombatEvent.ACTION_REJECTED,
                    actor_id=actor_id,
                    reason=e.reason,
                    action=action,
                )
                action = None

        logger.warning(f"{actor_id} ran out of attempts and defends")
        return self._execute(CombatAction.defend(actor_id))

    def _execute(self, action: CombatAction) -> TurnResult:
        result, self.state = self.executor.execute(self.state, action, self.rng)
        return result

    def _pop_queued(self, actor_id: str) -> Optional[CombatAction]:
        for index, action in enumerate(self.state.action_queue):
            if action.actor_id == actor_id:
                state = self.state.clone()
                state.action_queue.pop(index)
                self.state = state
                return action
        return None

    def _record(self, produced: list[TurnResult], event: CombatEvent, result: TurnResult) -> None:
        produced.append(result)
        self.log.append(result)
        self._notify(event, result=result, actor_id=result.actor_id)

    def _notify(self, event: CombatEvent, **details) -> None:
        self.events.publish(event, CombatNotice(type=event, state=self.state, **details))

    def _require_state(self) -> CombatState:
        if self.state is None:
            raise CombatError("combat has not started")
        return self.state
