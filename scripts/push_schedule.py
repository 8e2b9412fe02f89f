# File: scripts/push_schedule.py
"""
Push the visible class schedule to Google Calendar.
Run with --login once to create token.json from credentials.json.
"""

import sys
import time
from pathlib import Path

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from calendar_modular.auth.google_auth import create_initial_token, get_calendar_service
from calendar_modular.core.planner import PlannerFactory
from calendar_modular.services.calendar_sink import GoogleCalendarSink
from calendar_modular.utils.logger import setup_logger

logger = setup_logger(__name__)


def main(argv=None) -> int:
    """
    Main execution function.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    argv = sys.argv[1:] if argv is None else argv
    start_time = time.time()

    logger.info("=" * 60)
    logger.info("Starting Calendar Modular push")
    logger.info("=" * 60)

    try:
        if '--login' in argv:
            return 0 if create_initial_token() else 1

        service = get_calendar_service()
        if service is None:
            raise ConnectionError(
                "Google authentication failed. Run 'python scripts/push_schedule.py --login' first."
            )

        planner = PlannerFactory.create()
        created = planner.push_to_sink(
            GoogleCalendarSink(service),
            clear_previous='--keep' not in argv
        )

        elapsed = time.time() - start_time
        logger.info(f"Push completed in {elapsed:.2f} seconds")
        print(f"Created {created} events in Google Calendar")
        return 0

    except ValueError as e:
        logger.error("Configuration validation failed", exc_info=True)
        logger.error(str(e))
        return 1

    except ConnectionError as e:
        logger.error("Authentication failed", exc_info=True)
        logger.error(str(e))
        return 1

    except KeyboardInterrupt:
        logger.warning("Push interrupted by user")
        return 1

    except Exception as e:
        logger.error("Unexpected fatal error", exc_info=True)
        logger.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
