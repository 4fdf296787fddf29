"""Centralized logging configuration for the server and the protocol layer."""

import logging
import sys

import config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# HTTP and model clients log every request at INFO.
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "urllib3")

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT,
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
for _name in QUIET_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)


def get_logger(name: str | None = None):
    level = logging.DEBUG if config.DEBUG_MODE else logging.INFO
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if name is None:
        return root_logger
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def excerpt(text: str | None, limit: int = 100) -> str:
    """Single-line excerpt of a chat message for log lines"""
    if not text:
        return ""
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."
