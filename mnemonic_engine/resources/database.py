"""
Game Database.

Handles loading and validation of static combat data (skills, items,
enemies, states, encounters).
"""

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

# category attribute -> (folder under database/, schema file name)
CATEGORIES: dict[str, tuple[str, str]] = {
    "skills": ("skills", "skill.schema.json"),
    "items": ("items", "item.schema.json"),
    "enemies": ("enemies", "enemy.schema.json"),
    "states": ("states", "state.schema.json"),
    "encounters": ("encounters", "encounter.schema.json"),
}


class Database:
    """
    Central storage for static game data.

    Records are kept as validated plain dictionaries keyed by id; the
    battle layer turns them into typed records.
    """

    def __init__(self, data_path: Path | str):
        self._data_path = Path(data_path)
        self._schemas: dict[str, Any] = {}

        # Data stores
        self.skills: dict[str, Any] = {}
        self.items: dict[str, Any] = {}
        self.enemies: dict[str, Any] = {}
        self.states: dict[str, Any] = {}
        self.encounters: dict[str, Any] = {}

        self.logger = logging.getLogger(__name__)

    def load_all(self) -> None:
        """Load all data from disk."""
        self._load_schemas()

        for attr, (folder, schema_name) in CATEGORIES.items():
            setattr(self, attr, self._load_category(folder, schema_name))

        self.logger.info(
            f"Loaded {len(self.skills)} skills, "
            f"{len(self.items)} items, "
            f"{len(self.enemies)} enemies, "
            f"{len(self.states)} states, "
            f"{len(self.encounters)} encounters."
        )

    def _load_schemas(self) -> None:
        """Load JSON schemas."""
        schema_dir = self._data_path / "schemas"
        if not schema_dir.exists():
            self.logger.warning(f"Schema directory not found: {schema_dir}")
            return

        for schema_file in schema_dir.glob("*.schema.json"):
            try:
                with open(schema_file, 'r') as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load schema {schema_file}: {e}")

    def _load_category(self, folder: str, schema_name: str) -> dict[str, Any]:
        """Load all JSON files in a category folder."""
        category_dir = self._data_path / "database" / folder
        data_store: dict[str, Any] = {}

        if not category_dir.exists():
            self.logger.warning(f"Data directory not found: {category_dir}")
            return data_store

        schema = self._schemas.get(schema_name)
        if not schema:
            self.logger.warning(f"No schema found for {folder} ({schema_name})")
            return data_store

        for file_path in sorted(category_dir.glob("*.json")):
            try:
                with open(file_path, 'r') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load {file_path}: {e}")
                continue

            # A file holds either one record or a list of records
            records = data if isinstance(data, list) else [data]
            for record in records:
                try:
                    jsonschema.validate(instance=record, schema=schema)
                except jsonschema.ValidationError as e:
                    self.logger.error(f"Validation error in {file_path}: {e.message}")
                    continue
                if record["id"] in data_store:
                    self.logger.warning(f"Duplicate {folder} id '{record['id']}' in {file_path}")
                data_store[record["id"]] = record

        return data_store

    def get_skill(self, skill_id: str) -> dict[str, Any] | None:
        return self.skills.get(skill_id)

    def get_item(self, item_id: str) -> dict[str, Any] | None:
        return self.items.get(item_id)

    def get_enemy(self, enemy_id: str) -> dict[str, Any] | None:
        return self.enemies.get(enemy_id)

    def get_state(self, state_id: str) -> dict[str, Any] | None:
        return self.states.get(state_id)

    def get_encounter(self, encounter_id: str) -> dict[str, Any] | None:
        return self.encounters.get(encounter_id)
