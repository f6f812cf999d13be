"""
quote_log.py — Append-Only Log of Accepted Quotes

The log is the authoritative record of acceptance: one JSON object per line,
appended in arrival order, never rewritten. A single QuoteLog instance is
shared by all requests in the process; its lock guarantees that two appends
never interleave.
"""

import json
import os
import threading
from pathlib import Path

from .errors import PersistenceError
from .logging_config import get_logger
from .models import QuoteRecord

log = get_logger(__name__)


class QuoteLog:
    """Newline-delimited JSON log file with serialized, fsync'ed appends."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._appended = 0

    def ensure_directory(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def serialize(record: QuoteRecord) -> str:
        return json.dumps(record.to_payload(), ensure_ascii=False) + "\n"

    def append(self, record: QuoteRecord) -> int:
        """
        Appends exactly one line for the record.

        Line order is the order in which callers reach this method; records
        whose exports finish at different speeds may land out of id order.

        Args:
            record (QuoteRecord): The accepted record (with export fields if any).

        Returns:
            int: 1-based position of the line among appends made by this instance.

        Raises:
            PersistenceError: If the file cannot be opened, written or synced.
        """
        line = self.serialize(record).encode("utf-8")
        with self._lock:
            try:
                with open(self.path, "ab") as fh:
                    fh.write(line)
                    fh.flush()
                    os.fsync(fh.fileno())
            except OSError as e:
                log.critical(f"[Quote: {record.id}] 写入日志失败: {e}")
                raise PersistenceError(str(e)) from e
            self._appended += 1
            return self._appended
