# taskflow/logging_setup.py

import logging
import sys

from taskflow.config.settings import Settings


def setup_logging(level: str = None) -> None:
    """
    Configure root logging once at process start.

    Third-party libraries stay at WARNING so request logs are readable.
    """
    level_name = (level or Settings.LOGGING["level"]).upper()

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    for noisy in ("apscheduler", "httpx", "openai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
