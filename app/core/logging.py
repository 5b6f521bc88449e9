import logging
import sys

from pythonjsonlogger import jsonlogger

from core.config import DEBUG_SELECTORS, LOG_LEVEL


def setup_logging():
    """
    Configures centralized JSON logging on stdout.
    Validator debug traces are only emitted when DEBUG_SELECTORS is set.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(LOG_LEVEL.upper())

    # Prevent duplicate logs by removing existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    log_handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        fmt='%(asctime)s %(levelname)s %(name)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%SZ'
    )
    log_handler.setFormatter(formatter)
    root_logger.addHandler(log_handler)

    logging.getLogger("validation").setLevel(logging.DEBUG if DEBUG_SELECTORS else LOG_LEVEL.upper())

    # Noise reduction for transport layers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    root_logger.info("Logging infrastructure initialized successfully.")
