"""
logging_config.py — Operational Logging for the Quote Service

Operational events (startup, rejections, export failures, accepted quotes)
go to QUOTE_OPLOG_FILE and to stdout. This is separate from the quote log,
which only ever holds accepted records.
"""

import logging
import sys

from . import config

LOG_FORMAT = '%(asctime)s - %(levelname)s - [PID:%(process)d] - %(message)s'


def setup_logging(log_file: str = None):
    """
    Installs the file and stdout handlers on the root logger at INFO level.

    uvicorn's per-request access lines are raised to WARNING; every accepted
    quote already produces its own summary line.

    Args:
        log_file (str, optional): Overrides config.OPLOG_FILE.
    """
    logging.basicConfig(
        level=logging.INFO,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file or config.OPLOG_FILE, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ]
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name):
    """Named logger for a quote_service module; call with __name__."""
    return logging.getLogger(name)
