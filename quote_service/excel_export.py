"""
excel_export.py — Spreadsheet Rendering and Export Storage

ExcelRenderer lays a QuoteRecord out as a single-sheet workbook (openpyxl) and
returns the encoded bytes together with a base64 copy for JSON responses.
ExportStore owns the export directory: it writes one file per quote and
resolves download requests after stripping every character that could be
used for path traversal.
"""

import base64
import io
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font

from .errors import ExportError
from .logging_config import get_logger
from .models import QuoteRecord

log = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_TITLE = "确认单"
ADDRESS_PLACEHOLDER = "—"
TABLE_HEADER = ["序号", "商品名称", "规格", "单价(元)", "数量", "小计(元)"]

_UNSAFE_ID_CHARS = re.compile(r"[^0-9A-Za-z_-]")


def sanitize_quote_id(raw_id: str) -> str:
    """Drops everything except ASCII letters, digits, '_' and '-'."""
    return _UNSAFE_ID_CHARS.sub("", raw_id or "")


def export_filename(quote_id: str) -> str:
    return f"{quote_id}.xlsx"


@dataclass(frozen=True)
class RenderedExport:
    """Encoded workbook for one record."""
    filename: str
    content: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


def _number(value):
    return value if isinstance(value, (int, float)) else 0


class ExcelRenderer:
    """Renders a QuoteRecord into the fixed confirmation layout."""

    def rows(self, record: QuoteRecord) -> list:
        """
        Builds the cell grid. Money and quantity cells stay numeric so the
        sheet can be summed in Excel/WPS.
        """
        rows = [
            ["确认单编号", record.id],
            ["下单时间", record.orderTime],
            ["后台接收时间", record.receivedAt],
            ["客户名称", record.customerName],
            ["联系方式", record.customerContact],
            ["送货地址", record.customerAddress or ADDRESS_PLACEHOLDER],
            ["总金额(元)", _number(record.total)],
            [],
            list(TABLE_HEADER),
        ]
        for index, item in enumerate(record.items, start=1):
            rows.append([
                index,
                item.name,
                item.spec,
                _number(item.price),
                _number(item.qty),
                _number(item.subtotal),
            ])
        rows.append([])
        rows.append(["确认金额", "", "", "", "", _number(record.total)])
        return rows

    def render(self, record: QuoteRecord) -> RenderedExport:
        """
        Encodes the record as an .xlsx workbook.

        Raises:
            ExportError: If openpyxl fails to build or save the workbook.
        """
        try:
            wb = Workbook()
            ws = wb.active
            ws.title = SHEET_TITLE
            for row in self.rows(record):
                ws.append(row)
            # openpyxl turns any "=..." string into a formula; client text stays text
            for row in ws.iter_rows():
                for cell in row:
                    if cell.data_type == "f":
                        cell.data_type = "s"

            header_row = 9
            for cell in ws[header_row]:
                cell.font = Font(bold=True)
            ws.column_dimensions["A"].width = 14
            ws.column_dimensions["B"].width = 26
            ws.column_dimensions["C"].width = 12

            buffer = io.BytesIO()
            wb.save(buffer)
        except Exception as e:
            raise ExportError(f"Excel 编码失败: {e}") from e

        return RenderedExport(filename=export_filename(record.id), content=buffer.getvalue())


class ExportStore:
    """
    Filesystem storage for rendered exports.

    Filenames are unique per quote identifier, so concurrent writers never
    touch the same file and no lock is needed here.
    """
    def __init__(self, export_dir, relative_to=None):
        self.export_dir = Path(export_dir)
        self.relative_to = relative_to

    def ensure_directory(self):
        self.export_dir.mkdir(parents=True, exist_ok=True)

    def save(self, export: RenderedExport) -> str:
        """
        Writes the export file and returns its path for the record.

        Raises:
            ExportError: If the directory or file cannot be written.
        """
        path = self.export_dir / export.filename
        try:
            self.ensure_directory()
            path.write_bytes(export.content)
        except OSError as e:
            raise ExportError(f"写入 Excel 失败: {e}") from e

        if self.relative_to:
            return os.path.relpath(path, self.relative_to)
        return str(path)

    def locate(self, raw_id: str) -> Optional[Path]:
        """
        Resolves a download request to an existing export file.

        The identifier is sanitized before any filesystem access. Returns None
        when nothing matches or the match is not a regular file.
        """
        safe_id = sanitize_quote_id(raw_id)
        if not safe_id:
            return None

        base = self.export_dir.resolve()
        path = (base / export_filename(safe_id)).resolve()
        if path.parent != base:
            log.warning(f"拒绝访问导出目录之外的路径: {raw_id!r}")
            return None
        if not path.is_file():
            return None
        return path
