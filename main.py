"""Entry point for the sleep tracker.

This script configures logging, opens the sleep database and launches the
``SleepTrackerApp`` window defined in ``sleeptracker.ui``.  Set
``SLEEP_TRACKER_DB`` to use a different database file and
``SLEEP_TRACKER_LOG_LEVEL`` to change logging verbosity.
"""

import logging
import os

from sleeptracker.data import SleepDatabase
from sleeptracker.ui import SleepTrackerApp


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("SLEEP_TRACKER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = SleepTrackerApp(SleepDatabase())
    app.mainloop()


if __name__ == "__main__":
    main()
