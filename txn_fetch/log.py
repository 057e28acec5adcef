# Logging setup for txn-fetch command line use.
#
# Library modules only create module-level loggers; handlers are installed
# here, by the CLI or by an embedding application that wants the same format.

import logging
import sys

from txn_fetch.models import LoggingSettings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_LOG_LEVEL = "INFO"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logging(settings: LoggingSettings | None = None) -> None:
    """
    Configures root logging to stderr.

    Falls back to INFO on an unknown level name and sets the configured
    noisy libraries (httpx, httpcore by default) to WARNING.
    """
    settings = settings or LoggingSettings()
    level_name = settings.level.upper()

    if level_name not in VALID_LOG_LEVELS:
        print(
            f"WARNING: Invalid log level '{settings.level}'. "
            f"Defaulting to {DEFAULT_LOG_LEVEL}. "
            f"Valid levels are: {', '.join(VALID_LOG_LEVELS)}",
            file=sys.stderr,
        )
        level_name = DEFAULT_LOG_LEVEL

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name))

    for library in settings.quiet_libraries:
        logging.getLogger(library).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at %s", level_name)
