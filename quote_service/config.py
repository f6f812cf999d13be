"""
config.py — Runtime Settings for the Quote Service

All settings are plain module constants read from environment variables,
so a container or process manager can override them without code changes.

Settings:
    • QUOTE_DATA_DIR        base directory for persisted state
    • QUOTE_LOG_FILE        newline-delimited JSON append log
    • QUOTE_EXPORT_DIR      directory holding one .xlsx per quote
    • QUOTE_MIN_TOTAL       minimum order amount (yuan)
    • QUOTE_MAX_BODY_BYTES  hard cap on the request body
    • QUOTE_OPLOG_FILE      operational log written by logging_config
    • HOST / PORT           listener used by main.run()
"""

import os
from decimal import Decimal

DATA_DIR = os.environ.get("QUOTE_DATA_DIR", os.getcwd())
LOG_FILE = os.environ.get("QUOTE_LOG_FILE", os.path.join(DATA_DIR, "quote-log.jsonl"))
EXPORT_DIR = os.environ.get("QUOTE_EXPORT_DIR", os.path.join(DATA_DIR, "excel"))

MIN_TOTAL = Decimal(os.environ.get("QUOTE_MIN_TOTAL", "100"))
MAX_BODY_BYTES = int(os.environ.get("QUOTE_MAX_BODY_BYTES", str(1024 * 1024)))

OPLOG_FILE = os.environ.get("QUOTE_OPLOG_FILE", "quote_processing.log")

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))

API_PREFIX = "/api/huoguo-quote"
