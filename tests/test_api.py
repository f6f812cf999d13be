import base64
import io
import json

from openpyxl import load_workbook

from quote_service.errors import PersistenceError
from quote_service.excel_export import XLSX_MEDIA_TYPE

from conftest import make_payload

URL = "/api/huoguo-quote"


def test_preflight(client):
    response = client.options(URL)
    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"


def test_submit_round_trip(client, workflow):
    response = client.post(URL, json=make_payload())
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"

    body = response.json()
    assert body["ok"] is True
    assert body["id"].startswith("Q")
    assert body["serverTime"] == body["record"]["receivedAt"]
    assert body["record"]["total"] == 110
    assert body["exportFilename"] == f"{body['id']}.xlsx"

    ws = load_workbook(io.BytesIO(base64.b64decode(body["exportBase64"]))).active
    assert ws["B7"].value == 110

    logged = json.loads(workflow.quote_log.path.read_text(encoding="utf-8").splitlines()[0])
    assert logged["total"] == 110
    assert logged["id"] == body["id"]


def test_download_excel(client):
    quote_id = client.post(URL, json=make_payload()).json()["id"]

    response = client.get(f"{URL}/{quote_id}/excel")
    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert f'filename="{quote_id}.xlsx"' in response.headers["content-disposition"]
    assert load_workbook(io.BytesIO(response.content)).active["B1"].value == quote_id


def test_download_missing(client):
    response = client.get(f"{URL}/Q0/excel")
    assert response.status_code == 404
    assert response.json() == {"ok": False, "message": "确认单不存在或尚未生成Excel"}


def test_download_path_traversal(client, tmp_path):
    (tmp_path / "passwd.xlsx").write_bytes(b"not for you")
    for path in (f"{URL}/../../etc/passwd/excel", f"{URL}/..%2Fpasswd/excel", f"{URL}/%2E%2E/excel"):
        response = client.get(path)
        assert response.status_code == 404
        assert response.json()["ok"] is False


def test_rejection_is_400_with_message(client, workflow):
    response = client.post(URL, json=make_payload(customerName="John"))
    assert response.status_code == 400
    body = response.json()
    assert body["ok"] is False
    assert body["reason"] == "INVALID_NAME"
    assert body["message"] == "收货人必须为真实姓名（2-8个中文字符，可含中间点）"
    assert not workflow.quote_log.path.exists()


def test_below_minimum(client):
    items = [{"name": "锅底", "spec": "", "price": 45, "qty": 2, "subtotal": 90}]
    response = client.post(URL, json=make_payload(items=items, total=90))
    assert response.status_code == 400
    assert response.json()["message"] == "未达起送金额 100 元"


def test_malformed_body(client):
    response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("无法解析请求体：")


def test_non_object_body(client):
    response = client.post(URL, content=b"[1, 2]", headers={"Content-Type": "application/json"})
    assert response.status_code == 400


def test_oversized_body(client, workflow):
    response = client.post(URL, content=b"x" * (1024 * 1024 + 1))
    assert response.status_code == 400
    assert "Payload too large" in response.json()["message"]
    assert not workflow.quote_log.path.exists()


def test_export_failure_still_returns_200(client, workflow, monkeypatch):
    def broken_save(self, target):
        raise RuntimeError("encoder exploded")
    monkeypatch.setattr("openpyxl.workbook.workbook.Workbook.save", broken_save)

    response = client.post(URL, json=make_payload())
    assert response.status_code == 200
    body = response.json()
    assert body["id"].startswith("Q")
    assert "exportFilename" not in body
    assert "exportBase64" not in body
    assert "exportFilename" not in body["record"]
    assert workflow.quote_log.path.read_text(encoding="utf-8").count("\n") == 1


def test_persistence_failure_is_500(client, workflow, monkeypatch):
    def broken_append(record):
        raise PersistenceError("disk full")
    monkeypatch.setattr(workflow.quote_log, "append", broken_append)

    response = client.post(URL, json=make_payload())
    assert response.status_code == 500
    assert response.json() == {"ok": False, "message": "服务器写入失败"}


def test_unknown_route(client):
    for response in (client.get("/nope"), client.delete(URL), client.get(URL)):
        assert response.status_code == 404
        assert response.json() == {"ok": False, "message": "Not Found"}


def test_out_of_range_total_is_400_json(client, workflow):
    items = [{"name": "锅底", "spec": "", "price": 1e30, "qty": 1, "subtotal": 1e30}]
    response = client.post(URL, json=make_payload(items=items, total=1e30))
    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.json()["reason"] == "TOTAL_MISMATCH"
    assert not workflow.quote_log.path.exists()


def test_oversized_integer_literal_is_400(client):
    body = b'{"customerName": "\\u5f20\\u4e09", "customerContact": "13800138000", "total": ' + b"9" * 5000 + b"}"
    response = client.post(URL, content=body, headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["ok"] is False
