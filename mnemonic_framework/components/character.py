"""
Character components - attributes and resource pools.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, model_validator

from mnemonic_engine.core.component import Component


class Attribute(Enum):
    """
    Base attributes a combatant brings into battle.

    DEX doubles as the defense attribute: mitigation formulas read it.
    """
    STR = "str"
    INT = "int"
    DEX = "dex"
    AGI = "agi"


class CombatantStats(Component):
    """
    Current pools and base attributes of a combatant.

    Attributes:
        hp: Current HP
        max_hp: Maximum HP
        sp: Current SP (skill points)
        max_sp: Maximum SP
        strength: Physical power, scales physical skills
        intelligence: Magical power, scales magical skills and heals
        dexterity: Defense, mitigates incoming damage
        agility: Speed, drives turn order, criticals and fleeing
    """
    hp: int = Field(default=100, ge=0)
    max_hp: int = Field(default=100, ge=1)
    sp: int = Field(default=0, ge=0)
    max_sp: int = Field(default=0, ge=0)
    strength: int = Field(default=10, ge=0)
    intelligence: int = Field(default=10, ge=0)
    dexterity: int = Field(default=10, ge=0)
    agility: int = Field(default=10, ge=0)

    @model_validator(mode='after')
    def _clamp_pools(self) -> CombatantStats:
        """Ensure current pools don't exceed their maximum."""
        # object.__setattr__ avoids re-running validation on assignment
        if self.hp > self.max_hp:
            object.__setattr__(self, 'hp', self.max_hp)
        if self.sp > self.max_sp:
            object.__setattr__(self, 'sp', self.max_sp)
        return self

    def base(self, attribute: Attribute) -> int:
        """Get the unmodified value of an attribute."""
        return {
            Attribute.STR: self.strength,
            Attribute.INT: self.intelligence,
            Attribute.DEX: self.dexterity,
            Attribute.AGI: self.agility,
        }[attribute]

    @property
    def hp_percent(self) -> float:
        """Get HP as a fraction (0-1)."""
        return self.hp / self.max_hp

    @property
    def is_defeated(self) -> bool:
        return self.hp <= 0

    def take_damage(self, amount: int) -> int:
        """
        Take damage.

        Args:
            amount: Damage to take

        Returns:
            Actual HP lost
        """
        actual = max(0, min(amount, self.hp))
        self.hp -= actual
        return actual

    def heal(self, amount: int) -> int:
        """
        Heal HP. Defeated combatants stay defeated; use revive().

        Returns:
            Actual amount healed
        """
        if self.is_defeated or amount <= 0:
            return 0
        old = self.hp
        self.hp = min(self.hp + amount, self.max_hp)
        return self.hp - old

    def revive(self, percent: float) -> int:
        """Bring a defeated combatant back with a share of max HP (at least 1)."""
        if not self.is_defeated:
            return 0
        self.hp = min(self.max_hp, max(1, int(self.max_hp * percent)))
        return self.hp

    def spend_sp(self, amount: int) -> bool:
        """
        Spend SP.

        Returns:
            True if successful, False if insufficient SP
        """
        if self.sp >= amount:
            self.sp -= amount
            return True
        return False

    def restore_sp(self, amount: int) -> int:
        """Restore SP, returning the actual amount restored."""
        if amount <= 0:
            return 0
        old = self.sp
        self.sp = min(self.sp + amount, self.max_sp)
        return self.sp - old
