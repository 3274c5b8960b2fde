import os
import sys
import random
from pathlib import Path

import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())

DATA_PATH = Path(__file__).resolve().parent.parent / "game" / "data"


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from mnemonic_engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def rng():
    """Seeded random source so every run draws the same numbers."""
    return random.Random(1234)


@pytest.fixture
def config():
    from mnemonic_engine.core.config import CombatConfig
    return CombatConfig()


@pytest.fixture
def content():
    """Combat content built from the bundled game data."""
    from mnemonic_engine.resources.database import Database
    from mnemonic_framework.battle.content import ContentDatabase

    db = Database(DATA_PATH)
    db.load_all()
    return ContentDatabase.from_database(db)


@pytest.fixture
def make_combatant():
    """Factory for combatants; party members unless kind is given."""
    from mnemonic_framework.battle.actor import Combatant, CombatantKind
    from mnemonic_framework.components import CombatantStats

    def factory(combatant_id="hero", hp=100, sp=30, skills=(), kind=CombatantKind.PLAYER, **attributes):
        stats = CombatantStats(
            hp=hp,
            max_hp=attributes.pop("max_hp", hp),
            sp=sp,
            max_sp=attributes.pop("max_sp", sp),
            strength=attributes.pop("strength", 10),
            intelligence=attributes.pop("intelligence", 10),
            dexterity=attributes.pop("dexterity", 10),
            agility=attributes.pop("agility", 10),
        )
        return Combatant(
            id=combatant_id,
            name=combatant_id.title(),
            kind=kind,
            stats=stats,
            skills=list(skills),
            **attributes,
        )

    return factory


@pytest.fixture
def sample_party(make_combatant):
    """Knight, mage and cleric with the bundled skills."""
    return [
        make_combatant(
            "knight", hp=120, sp=30, strength=18, intelligence=6, dexterity=14, agility=9,
            skills=["power_strike", "cleave", "flurry", "guardians_shield", "vow_of_steel"],
        ),
        make_combatant(
            "mage", hp=70, sp=50, strength=6, intelligence=20, dexterity=6, agility=12,
            skills=["fire_bolt", "frost_wave", "hex"],
        ),
        make_combatant(
            "cleric", hp=85, sp=40, strength=8, intelligence=16, dexterity=9, agility=10,
            skills=["mend", "prayer", "purify", "resurrect"],
        ),
    ]
