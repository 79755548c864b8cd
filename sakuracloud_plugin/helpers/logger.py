import os
import logging
import structlog
from logging.handlers import RotatingFileHandler
from typing import Dict, Any

LOGGER_NAME = "sakuracloud-plugin"


class DetailedFormatter(logging.Formatter):
    """Formatter that adds module, function and line number to each record."""

    def format(self, record):
        record.caller_info = f"{record.module}.{record.funcName}:{record.lineno}"
        return super().format(record)


def setup_logging(config: Dict[str, Any]) -> structlog.stdlib.BoundLogger:
    """
    Set up structured logging for the plugin using structlog.

    The host reads the plugin's stdout as the operation result, so the
    stdout destination writes to stderr instead.

    Args:
        config: Configuration dictionary from ConfigurationManager.
    Returns:
        Configured structlog logger instance.
    """
    logging_config = config["LOGGING_CONFIG"]
    log_file = os.path.expandvars(logging_config["file"]["path"])
    log_format = "%(asctime)s - %(levelname)s - %(name)s [%(caller_info)s] - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, logging_config["level"].upper()))

    handlers = []

    if logging_config["destination"] in ("file", "both"):
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=logging_config["file"]["max_size_mb"] * 1024 * 1024,
            backupCount=logging_config["file"]["backup_count"]
        )
        file_handler.setFormatter(DetailedFormatter(log_format))
        handlers.append(file_handler)

    if logging_config["destination"] in ("stdout", "both"):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(DetailedFormatter(log_format))
        handlers.append(console_handler)

    # Remove any existing handlers and add new ones
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger(LOGGER_NAME)

    logger.debug(
        "Logging configured",
        log_level=logging_config["level"],
        log_destination=logging_config["destination"],
        log_file=log_file
    )

    return logger
