"""
Logging configuration for the dashboard backend
"""

import logging
import sys

_HANDLER_NAME = "ga_dashboard.console"

QUIET_LOGGERS = ("httpx", "httpcore", "google", "urllib3", "uvicorn.access")


def setup_logging(level: str = "INFO") -> None:
    """Setup application logging configuration"""

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Calling twice (e.g. reloading the app) must not duplicate output
    if not any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(_HANDLER_NAME)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    for handler in root_logger.handlers:
        if handler.get_name() == _HANDLER_NAME:
            handler.setLevel(log_level)

    logging.getLogger("ga_dashboard").setLevel(log_level)
    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
