"""
main.py — FastAPI Entry Point for the Hot-Pot Quote Service

This module provides the HTTP interface used by the ordering front end.
It accepts order confirmations, hands them to the submission workflow and
serves the generated Excel file back by quote identifier.

Responsibilities:
    • Accept confirmations via POST /api/huoguo-quote
    • Stream exports via GET /api/huoguo-quote/{id}/excel
    • Answer CORS preflight requests on any path
    • Map workflow errors to JSON responses with CORS headers
"""

import json

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .errors import MalformedInputError, PersistenceError, QuoteRejected
from .excel_export import XLSX_MEDIA_TYPE, ExportStore, export_filename
from .logging_config import setup_logging, get_logger
from .quote_log import QuoteLog
from .workflow import QuoteWorkflow

# Initialization
# Configure logging, the shared workflow resources and the FastAPI app
setup_logging()
log = get_logger(__name__)
app = FastAPI(title="火锅外送确认单服务")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}

workflow = QuoteWorkflow(
    quote_log=QuoteLog(config.LOG_FILE),
    export_store=ExportStore(config.EXPORT_DIR, relative_to=config.DATA_DIR),
)


def get_workflow() -> QuoteWorkflow:
    """Dependency returning the process-wide workflow (overridden in tests)."""
    return workflow


def send(status_code: int, payload: dict) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=payload, headers=CORS_HEADERS)


async def read_json_body(request: Request, limit: int = None) -> dict:
    """
    Reads the request body incrementally and decodes it as a JSON object.

    An empty body decodes to {}.

    Raises:
        MalformedInputError: If the body exceeds the size cap, is not valid
            JSON, or is not a JSON object.
    """
    limit = limit or config.MAX_BODY_BYTES
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise MalformedInputError("Payload too large")

    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise MalformedInputError("Payload too large")
        chunks.append(chunk)

    raw = b"".join(chunks)
    try:
        body = json.loads(raw.decode("utf-8") or "{}")
    except ValueError as e:
        raise MalformedInputError(str(e)) from e
    if not isinstance(body, dict):
        raise MalformedInputError("请求体必须为 JSON 对象")
    return body


# Startup Event: ensure directories
@app.on_event("startup")
def on_startup():
    """
    FastAPI startup event handler.

    Creates the export directory and the quote log's parent directory so the
    first request does not pay for it.
    """
    log.info("确认单服务启动中...")
    workflow.startup()


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and unsupported methods are reported as a plain 404."""
    if exc.status_code in (404, 405):
        return send(404, {"ok": False, "message": "Not Found"})
    return send(exc.status_code, {"ok": False, "message": str(exc.detail)})


@app.options("/{path:path}")
def preflight(path: str):
    """CORS preflight: always succeeds with an empty body."""
    return Response(status_code=204, headers=CORS_HEADERS)


# API Endpoint: front end → quote workflow
@app.post(config.API_PREFIX)
async def submit_quote(request: Request, wf: QuoteWorkflow = Depends(get_workflow)):
    """
    Receives an order confirmation and runs the submission workflow.

    Returns:
        JSONResponse:
            - 200 {ok, id, serverTime, record, exportFilename?, exportBase64?}
            - 400 {ok:false, message[, reason]} for unreadable bodies or rule violations
            - 500 {ok:false, message} when the quote log cannot be written
    """
    try:
        body = await read_json_body(request)
    except MalformedInputError as e:
        return send(400, {"ok": False, "message": f"无法解析请求体：{e}"})

    try:
        outcome = await run_in_threadpool(wf.process, body)
    except QuoteRejected as e:
        return send(400, {"ok": False, "message": e.message, "reason": e.reason.value})
    except PersistenceError:
        return send(500, {"ok": False, "message": "服务器写入失败"})

    record = outcome.record
    payload = {
        "ok": True,
        "id": record.id,
        "serverTime": record.receivedAt,
        "record": record.to_payload(),
    }
    if outcome.export is not None:
        payload["exportFilename"] = outcome.export.filename
        payload["exportBase64"] = outcome.export.base64
    return send(200, payload)


# API Endpoint: Excel download
@app.get(config.API_PREFIX + "/{quote_id}/excel")
def download_excel(quote_id: str, wf: QuoteWorkflow = Depends(get_workflow)):
    """
    Streams the stored Excel export for a quote.

    The identifier is sanitized by ExportStore.locate() before any file
    access; a miss returns 404.
    """
    path = wf.export_store.locate(quote_id)
    if path is None:
        return send(404, {"ok": False, "message": "确认单不存在或尚未生成Excel"})

    return FileResponse(
        path,
        media_type=XLSX_MEDIA_TYPE,
        filename=export_filename(path.stem),
        headers={"Access-Control-Allow-Origin": "*"},
    )


def run():
    """Console entry point: serve the app with uvicorn."""
    log.info(f"Huoguo quote API listening on http://{config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
