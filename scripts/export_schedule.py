# File: scripts/export_schedule.py
"""
Export the visible class schedule to an .ics file.
Usage: python scripts/export_schedule.py [output_path]
"""

import sys
import time
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from calendar_modular.core.config_manager import Config
from calendar_modular.core.planner import PlannerFactory
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)


def main(argv=None) -> int:
    """
    Main execution function.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    argv = sys.argv[1:] if argv is None else argv
    output_path = Path(argv[0]) if argv else Config.EXPORT_FILE
    start_time = time.time()

    logger.info("=" * 60)
    logger.info("Starting Calendar Modular export")
    logger.info("=" * 60)

    try:
        planner = PlannerFactory.create()
        written = planner.export_to_file(output_path)

        elapsed = time.time() - start_time
        logger.info(f"Export completed in {elapsed:.2f} seconds")
        print(f"Schedule written to {written}")
        return 0

    except ValueError as e:
        logger.error("Configuration validation failed", exc_info=True)
        logger.error(str(e))
        return 1

    except OSError as e:
        logger.error("Could not write export file", exc_info=True)
        logger.error(f"Error: {e}")
        return 1

    except Exception as e:
        logger.error("Unexpected fatal error", exc_info=True)
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
