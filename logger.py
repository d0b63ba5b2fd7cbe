import os
import logging
from logging.handlers import RotatingFileHandler

import config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(
    log_dir=config.LOG_DIRECTORY,
    log_level=config.LOG_LEVEL,
    log_file=config.LOG_NAME,
    max_bytes=config.LOG_MAX_BYTES,
    backup_count=5,
):
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    log_format = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Streamlit reruns the script on every interaction
    if root_logger.handlers:
        return root_logger

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(level)
    root_logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, log_file), maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
