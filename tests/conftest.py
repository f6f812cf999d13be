"""
Pytest configuration for the quote service tests.
Points every persisted artifact at temporary directories.
"""

import os
import tempfile

# Must be set before quote_service.config is imported
_test_data_dir = tempfile.mkdtemp(prefix="quote_test_")
os.environ.setdefault("QUOTE_DATA_DIR", _test_data_dir)
os.environ.setdefault("QUOTE_OPLOG_FILE", os.path.join(_test_data_dir, "quote_processing.log"))

import pytest
from fastapi.testclient import TestClient

from quote_service.excel_export import ExportStore
from quote_service.main import app, get_workflow
from quote_service.quote_log import QuoteLog
from quote_service.workflow import QuoteWorkflow


def make_payload(**overrides):
    payload = {
        "customerName": "张三",
        "customerContact": "13800138000",
        "customerAddress": "成都市武侯区科华北路 1 号",
        "items": [
            {"name": "牛油锅底", "spec": "鸳鸯", "price": 30, "qty": 2, "subtotal": 60},
            {"name": "鲜毛肚", "spec": "大份", "price": 50, "qty": 1, "subtotal": 50},
        ],
        "total": 110,
        "orderTime": "2026-10-19T11:30:00.000Z",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def payload():
    return make_payload()


@pytest.fixture
def workflow(tmp_path):
    wf = QuoteWorkflow(
        quote_log=QuoteLog(tmp_path / "quote-log.jsonl"),
        export_store=ExportStore(tmp_path / "excel", relative_to=tmp_path),
    )
    wf.startup()
    return wf


@pytest.fixture
def client(workflow):
    app.dependency_overrides[get_workflow] = lambda: workflow
    yield TestClient(app)
    app.dependency_overrides.clear()
