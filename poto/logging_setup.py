import logging
import logging.handlers
import os
from typing import Optional


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None,
                      max_size_mb: int = 10, backup_count: int = 5) -> logging.Logger:
    """Configure the root logger with a console handler and an optional rotating file."""
    level_name = (level or os.environ.get("POTO_LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    log_file = log_file or os.environ.get("POTO_LOG_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    root_logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        root_logger.addHandler(file_handler)

    # per-request access lines are noise next to scan progress
    logging.getLogger("uvicorn.access").setLevel(max(log_level, logging.WARNING))
    return root_logger
