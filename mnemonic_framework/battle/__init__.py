"""
Battle module - turn-based combat core.

Provides:
- Content records (skills, items, states, enemies, encounters)
- Combatants and the CombatState aggregate
- Action validation and execution (attack, skill, item, defend, flee)
- Damage formulas and status effect timing
- Enemy AI, turn order, win/lose detection and rewards
- CombatSession, the round-by-round driver
"""

from mnemonic_framework.battle.errors import (
    CombatError,
    ActionInvalid,
    ConfigurationError,
)
from mnemonic_framework.battle.content import (
    AIProfile,
    AIRule,
    BASIC_ATTACK,
    ContentDatabase,
    DamageClass,
    DropEntry,
    EncounterData,
    EnemyData,
    ItemData,
    RuleCondition,
    SkillData,
    SkillEffect,
    StateApplication,
    StateData,
    TargetPolicy,
    TargetScope,
)
from mnemonic_framework.battle.actor import (
    Combatant,
    CombatantKind,
    create_enemy_combatant,
)
from mnemonic_framework.battle.actions import (
    ActionType,
    CombatAction,
    EffectChange,
    HitRecord,
    ResultKind,
    TurnResult,
    validate_action,
)
from mnemonic_framework.battle.state import (
    CombatPhase,
    CombatRewards,
    CombatState,
)
from mnemonic_framework.battle.initializer import initialize_combat
from mnemonic_framework.battle.turn_order import resolve_turn_order
from mnemonic_framework.battle.damage import (
    calculate_damage,
    calculate_healing,
    elemental_modifier,
)
from mnemonic_framework.battle.effects import (
    apply_status,
    begin_turn,
    clear_effects,
    end_round,
    remove_status,
)
from mnemonic_framework.battle.outcome import (
    calculate_rewards,
    check_combat_end,
    roll_drop,
)
from mnemonic_framework.battle.executor import ActionExecutor, flee_chance
from mnemonic_framework.battle.ai import select_enemy_action
from mnemonic_framework.battle.events import CombatEvent, CombatNotice
from mnemonic_framework.battle.system import CombatSession

__all__ = [
    # Errors
    "CombatError",
    "ActionInvalid",
    "ConfigurationError",
    # Content
    "AIProfile",
    "AIRule",
    "BASIC_ATTACK",
    "ContentDatabase",
    "DamageClass",
    "DropEntry",
    "EncounterData",
    "EnemyData",
    "ItemData",
    "RuleCondition",
    "SkillData",
    "SkillEffect",
    "StateApplication",
    "StateData",
    "TargetPolicy",
    "TargetScope",
    # Actor
    "Combatant",
    "CombatantKind",
    "create_enemy_combatant",
    # Actions
    "ActionType",
    "CombatAction",
    "EffectChange",
    "HitRecord",
    "ResultKind",
    "TurnResult",
    "validate_action",
    # State
    "CombatPhase",
    "CombatRewards",
    "CombatState",
    # Flow
    "initialize_combat",
    "resolve_turn_order",
    "calculate_damage",
    "calculate_healing",
    "elemental_modifier",
    "apply_status",
    "begin_turn",
    "clear_effects",
    "end_round",
    "remove_status",
    "calculate_rewards",
    "check_combat_end",
    "roll_drop",
    "ActionExecutor",
    "flee_chance",
    "select_enemy_action",
    # Events
    "CombatEvent",
    "CombatNotice",
    "CombatSession",
]
