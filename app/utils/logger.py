import logging
import os
from logging.handlers import RotatingFileHandler
from config.config import Config

APP_LOGGER_NAME = 'screening'


def setup_logger(name=APP_LOGGER_NAME, log_file=None, level=None):
    """Set up the application logger with console and optional rotating file output"""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO))

    # Importing several entry points (app, cron, tests) must not stack handlers
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = log_file if log_file is not None else Config.LOG_FILE
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=10
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name=None):
    """Get a logger that propagates to the application logger"""
    if not name or name == APP_LOGGER_NAME:
        return logging.getLogger(APP_LOGGER_NAME)
    if name.startswith(f"{APP_LOGGER_NAME}."):
        return logging.getLogger(name)
    # Module loggers hang under the application logger so they share its handlers
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")


# Create default logger
logger = setup_logger()
