import sys
import logging
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from mnemonic_engine.resources.database import Database
from mnemonic_framework.battle.content import ContentDatabase
from mnemonic_framework.battle.errors import ConfigurationError

def main():
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger("DataVerification")

    data_path = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("game/data")

    try:
        # Initialize Database
        db = Database(data_path)

        # Load all data
        logger.info(f"Loading database from {data_path}...")
        db.load_all()

        # Build typed combat records
        content = ContentDatabase.from_database(db)

        assert content.skills, "No skills loaded"
        assert content.enemies, "No enemies loaded"
        assert content.encounters, "No encounters loaded"

        # Cross references
        problems = content.find_broken_references()
        for problem in problems:
            logger.error(problem)
        assert not problems, f"{len(problems)} broken references"

        logger.info("VERIFICATION SUCCESSFUL: All data loaded and validated.")

    except (AssertionError, ConfigurationError) as e:
        logger.error(f"VERIFICATION FAILED: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
