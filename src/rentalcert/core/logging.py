"""
Logging setup.

Modules log through ``logging.getLogger(__name__)``; this only configures the
root handler once at startup.
"""

import logging

from rentalcert.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )
    # APScheduler is chatty at INFO on every run
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
