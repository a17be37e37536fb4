"""Functions for logging."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# libraries whose debug output drowns out our own
NOISY_LOGGERS = ("urllib3",)


def setup_logger(level: str) -> int:
    """Send all depwalk logging to stderr at `level` and return the numeric level used.

    An unknown level name falls back to WARNING, with a warning saying so. Connection-pool chatter from the
    HTTP stack is kept at INFO or above even when `level` is DEBUG.

    """
    level_value = logging.getLevelName(level.upper())
    known = isinstance(level_value, int)
    if not known:
        level_value = logging.WARNING
    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_value, logging.INFO))
    if not known:
        logging.getLogger(__name__).warning(f"Unknown log level {level!r}; using WARNING")
    return level_value
