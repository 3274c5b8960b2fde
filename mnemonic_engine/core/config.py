"""
Combat configuration.

Every tunable constant of the combat formulas lives here so that
content designers can rebalance a build without touching engine code.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class CombatConfig:
    """Configuration for the combat engine."""

    def __init__(
        self,
        minimum_damage: float = 1.0,
        physical_mitigation: float = 0.8,
        magical_mitigation: float = 0.4,
        variance: float = 0.1,
        weakness_multiplier: float = 1.5,
        resist_divisor: float = 2.0,
        critical_base_chance: float = 0.05,
        critical_agility_divisor: float = 200.0,
        critical_multiplier: float = 1.5,
        guard_multiplier: float = 0.5,
        flee_base_chance: float = 0.5,
        flee_agility_factor: float = 0.01,
        flee_min_chance: float = 0.1,
        flee_max_chance: float = 0.9,
        max_charges: int = 10,
        max_action_attempts: int = 3,
    ):
        self.minimum_damage = minimum_damage
        self.physical_mitigation = physical_mitigation
        self.magical_mitigation = magical_mitigation
        self.variance = variance
        self.weakness_multiplier = weakness_multiplier
        self.resist_divisor = resist_divisor
        self.critical_base_chance = critical_base_chance
        self.critical_agility_divisor = critical_agility_divisor
        self.critical_multiplier = critical_multiplier
        self.guard_multiplier = guard_multiplier
        self.flee_base_chance = flee_base_chance
        self.flee_agility_factor = flee_agility_factor
        self.flee_min_chance = flee_min_chance
        self.flee_max_chance = flee_max_chance
        self.max_charges = max_charges
        self.max_action_attempts = max_action_attempts

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CombatConfig:
        """
        Build a config from a dictionary.

        Unknown keys raise TypeError so typos in balance files are caught
        instead of silently ignored.
        """
        return cls(**data)

    @classmethod
    def from_file(cls, path: Path | str) -> CombatConfig:
        """Load a config from a JSON file."""
        with open(path, 'r') as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict[str, Any]:
        """Export config values."""
        return dict(vars(self))
