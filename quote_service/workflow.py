"""
workflow.py — Core Orchestration Logic for Quote Confirmations

This module contains the submission pipeline for a single confirmation.
It runs every step in a fixed sequence, with no step ever revisited:

Workflow Overview:
1. Validate the raw submission against the business rules
2. Build the immutable record (identifier, timestamps, authoritative total)
3. Render and store the Excel export (failure here only degrades the result)
4. Append the record to the quote log (failure here fails the request)
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from . import config
from .errors import ExportError, QuoteRejected
from .excel_export import ExcelRenderer, ExportStore, RenderedExport
from .logging_config import get_logger
from .models import QuoteRecord
from .quote_log import QuoteLog
from .records import QuoteIdGenerator, build_record
from .validation import validate_submission

log = get_logger(__name__)


class QuoteStatus(str, Enum):
    ACCEPTED = "ACCEPTED"
    DEGRADED = "DEGRADED"  # accepted and logged, but no Excel export


@dataclass(frozen=True)
class QuoteOutcome:
    """
    Result of a successful run.

    Attributes:
        status (QuoteStatus): ACCEPTED, or DEGRADED when the export failed.
        record (QuoteRecord): The record exactly as it was logged.
        export (RenderedExport, optional): The rendered workbook, None when degraded.
        log_position (int): Position of the record's line in the quote log
            (counted from process start).
    """
    status: QuoteStatus
    record: QuoteRecord
    export: Optional[RenderedExport] = None
    log_position: int = 0

    @property
    def degraded(self) -> bool:
        return self.status is QuoteStatus.DEGRADED


class QuoteWorkflow:
    """
    Executes the complete submission pipeline for one confirmation.

    A single instance is shared by all requests; its collaborators are the
    process-wide resources (identifier source, export directory, quote log).
    """
    def __init__(self, quote_log: QuoteLog, export_store: ExportStore,
                 renderer: ExcelRenderer = None, id_generator: QuoteIdGenerator = None,
                 min_total: Decimal = None):
        self.quote_log = quote_log
        self.export_store = export_store
        self.renderer = renderer or ExcelRenderer()
        self.id_generator = id_generator or QuoteIdGenerator()
        self.min_total = config.MIN_TOTAL if min_total is None else Decimal(min_total)

    def startup(self):
        """Creates the export directory and the log's parent directory."""
        self.export_store.ensure_directory()
        self.quote_log.ensure_directory()
        log.info(f"导出目录: {self.export_store.export_dir}，日志文件: {self.quote_log.path}")

    def process(self, payload: dict, now: datetime = None) -> QuoteOutcome:
        """
        Runs validation, record building, export and logging for one payload.

        Args:
            payload (dict): Decoded JSON body from the client.
            now (datetime, optional): Receipt instant, defaults to current UTC time.

        Returns:
            QuoteOutcome: ACCEPTED with export, or DEGRADED without it.

        Raises:
            QuoteRejected: Validation failed; nothing was written.
            PersistenceError: The quote log could not be appended.
        """
        # --- 1. Validation ---
        try:
            submission = validate_submission(payload, self.min_total)
        except QuoteRejected as e:
            log.info(f"确认单被拒绝 ({e.reason.value}): {e.message}")
            raise

        # --- 2. Record ---
        record = build_record(submission, self.id_generator, now)
        log_prefix = f"[Quote: {record.id}]"

        # --- 3. Excel export (degradable) ---
        export = None
        try:
            export = self.renderer.render(record)
            path = self.export_store.save(export)
            record = record.with_export(export.filename, path)
        except ExportError as e:
            log.error(f"{log_prefix} 生成 Excel 失败，继续保存确认单: {e}", exc_info=True)
            export = None

        # --- 4. Append log (authoritative) ---
        log_position = self.quote_log.append(record)

        log.info(
            f"{log_prefix} 收到确认单，客户：{record.customerName}，"
            f"金额：{float(record.total):.2f} 元"
        )
        status = QuoteStatus.ACCEPTED if export else QuoteStatus.DEGRADED
        return QuoteOutcome(status=status, record=record, export=export,
                            log_position=log_position)
