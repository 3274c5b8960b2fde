"""
Combat initializer - builds the opening CombatState.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from mnemonic_framework.battle.actor import Combatant, CombatantKind, create_enemy_combatant
from mnemonic_framework.battle.content import ContentDatabase, EncounterData
from mnemonic_framework.battle.errors import ConfigurationError
from mnemonic_framework.battle.state import CombatPhase, CombatState

logger = logging.getLogger(__name__)


def initialize_combat(
    party: Sequence[Combatant],
    encounter: Union[EncounterData, str],
    content: ContentDatabase,
    inventory: Optional[dict[str, int]] = None,
) -> CombatState:
    """
    Start a battle.

    Party members are copied with their current HP/SP and any effects
    they carry in (remaining turns preserved). Enemies are built fresh
    from their templates with ids "<template>#<position>".

    Args:
        party: Player roster, in formation order
        encounter: Encounter record or its id
        content: Content lookups
        inventory: Party item bag (item id -> count)

    Raises:
        ConfigurationError: empty or duplicate roster, unknown encounter,
            empty encounter or unknown enemy template
    """
    if not party:
        raise ConfigurationError("party roster is empty")

    if isinstance(encounter, str):
        record = content.get_encounter(encounter)
        if record is None:
            raise ConfigurationError(f"unknown encounter '{encounter}'")
        encounter = record

    if not encounter.enemies:
        raise ConfigurationError(f"encounter '{encounter.id}' has no enemies")

    members = []
    seen = set()
    for member in party:
        if member.id in seen:
            raise ConfigurationError(f"duplicate party id '{member.id}'")
        seen.add(member.id)
        copy = member.clone()
        copy.kind = CombatantKind.PLAYER
        copy.is_defending = False
        copy.cooldowns = {}
        copy.skill_uses = {}
        members.append(copy)

    if not any(member.is_alive for member in members):
        raise ConfigurationError("every party member is already defeated")

    enemies = []
    for position, template_id in enumerate(encounter.enemies, start=1):
        template = content.get_enemy(template_id)
        if template is None:
            raise ConfigurationError(
                f"encounter '{encounter.id}' lists unknown enemy '{template_id}'"
            )
        combatant_id = f"{template_id}#{position}"
        if combatant_id in seen:
            raise ConfigurationError(f"enemy id '{combatant_id}' collides with a party id")
        enemies.append(create_enemy_combatant(template, combatant_id, content))

    state = CombatState(
        phase=CombatPhase.ACTIVE,
        combatants=members + enemies,
        round=1,
        inventory={k: v for k, v in (inventory or {}).items() if v > 0},
        can_flee=encounter.can_flee,
    )
    logger.info(
        f"Combat started: encounter '{encounter.id}', "
        f"{len(members)} party members vs {len(enemies)} enemies"
    )
    return state
