# tests/test_http_api.py
import json

import pytest
from fastapi.testclient import TestClient

from payments.http_api import build_app

from conftest import make_api, sign


@pytest.fixture
def client(api):
    return TestClient(build_app(api))


def _create(client, **overrides):
    body = {"orderId": "ORD-1", "amountUah": 150, "orderDesc": "Order #1", "destination": "Course"}
    body.update(overrides)
    return client.post("/api/create-invoice", json=body)


def test_health(client):
    for path in ("/health", "/mono/webhook/health"):
        r = client.get(path)
        assert r.status_code == 200
        assert r.json()["ok"] is True
        assert r.json()["ts"].endswith("Z")


def test_create_invoice_and_status(client, processor):
    r = _create(client)
    assert r.status_code == 200
    assert r.json() == {"invoiceId": "INV-9", "pageUrl": "https://pay.mbnk.biz/INV-9"}

    r = client.get("/mono/invoice/ORD-1", params={"refresh": "false"})
    assert r.status_code == 200
    body = r.json()
    assert body["invoiceId"] == "INV-9"
    assert body["localStatus"] == "created"
    assert body["status"] is None

    processor.statuses["INV-9"] = {"invoiceId": "INV-9", "status": "processing"}
    body = client.get("/mono/invoice/ORD-1").json()
    assert body["localStatus"] == "processing"
    assert body["status"] == {"invoiceId": "INV-9", "status": "processing"}


def test_create_invoice_derives_webhook_url_from_forwarded_headers(settings, ledger, processor):
    settings.base_url = ""
    client = TestClient(build_app(make_api(settings, ledger, processor)))
    r = client.post(
        "/api/create-invoice",
        json={"orderId": "ORD-1", "amountUah": "10", "orderDesc": "d", "destination": "x"},
        headers={"x-forwarded-proto": "https", "x-forwarded-host": "pay.run.app"},
    )
    assert r.status_code == 200
    assert processor.created[0].webHookUrl == "https://pay.run.app/mono/webhook"


def test_create_invoice_bad_request(client):
    r = _create(client, amountUah=0)
    assert r.status_code == 400
    assert r.json()["ok"] is False
    assert r.json()["error"] == "bad_request"
    assert r.json()["message"] == "amountUah must be > 0"

    r = client.post("/api/create-invoice", json={})
    assert r.status_code == 400
    assert r.json()["message"] == "orderId required"


def test_create_invoice_conflict(client):
    assert _create(client).status_code == 200
    r = _create(client)
    assert r.status_code == 409
    assert r.json()["orderId"] == "ORD-1"


def test_create_invoice_upstream_failure(client, processor):
    from payments.errors import UpstreamError
    processor.create_error = UpstreamError(403, {"errText": "forbidden"}, op="create")
    r = _create(client)
    assert r.status_code == 502
    assert r.json() == {"ok": False, "error": "mono_create_failed",
                        "details": {"status": 403, "data": {"errText": "forbidden"}}}


def test_order_status_not_found(client):
    r = client.get("/mono/invoice/ORD-404")
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"
    assert r.json()["orderId"] == "ORD-404"


def test_order_status_upstream_failure(client, processor):
    _create(client)
    processor.fail_status(500, {"errText": "boom"})
    r = client.get("/mono/invoice/ORD-1")
    assert r.status_code == 502
    assert r.json()["error"] == "mono_status_failed"
    assert r.json()["details"]["status"] == 500
    assert client.get("/mono/invoice/ORD-1", params={"refresh": "false"}).json()["localStatus"] == "created"


def test_invoice_by_id(client, processor):
    processor.statuses["INV-7"] = {"invoiceId": "INV-7", "status": "expired"}
    r = client.get("/mono/invoice-by-id/INV-7")
    assert r.status_code == 200
    assert r.json() == {"ok": True, "invoiceId": "INV-7", "status": {"invoiceId": "INV-7", "status": "expired"}}


def test_webhook_updates_order(client):
    _create(client)
    r = client.post("/mono/webhook", content=json.dumps({"data": {"invoiceId": "INV-9", "status": "success"}}))
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert client.get("/mono/invoice/ORD-1", params={"refresh": "false"}).json()["localStatus"] == "success"


def test_webhook_unknown_order_still_acked(client):
    r = client.post("/mono/webhook", content=b'{"reference":"nope","status":"success"}')
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_webhook_signature(signed_api):
    client = TestClient(build_app(signed_api))
    _create(client)
    raw = b'{"reference":"ORD-1","status":"success"}'

    r = client.post("/mono/webhook", content=raw, headers={"x-signature": "deadbeef"})
    assert r.status_code == 401
    assert r.json()["error"] == "bad_signature"
    assert client.get("/mono/invoice/ORD-1", params={"refresh": "false"}).json()["localStatus"] == "created"

    r = client.post("/mono/webhook", content=raw, headers={"x-sign": sign(raw)})
    assert r.status_code == 200
    assert client.get("/mono/invoice/ORD-1", params={"refresh": "false"}).json()["localStatus"] == "success"


def test_list_orders_guarded_by_admin_token(settings, ledger, processor):
    settings.admin_token = "admin"
    client = TestClient(build_app(make_api(settings, ledger, processor)))
    _create(client)

    for headers in ({}, {"x-token": "nope"}):
        r = client.get("/api/orders", headers=headers)
        assert r.status_code == 401
        assert r.json()["ok"] is False
        assert r.json()["error"] == "unauthorized"
        assert "detail" not in r.json()

    r = client.get("/api/orders", headers={"x-token": "admin"}, params={"limit": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 1
    assert body["orders"][0]["orderId"] == "ORD-1"
    assert body["orders"][0]["amount"] == 15000


@pytest.mark.parametrize("limit", ["0", "1000", "many"])
def test_list_orders_bad_limit(client, limit):
    r = client.get("/api/orders", params={"limit": limit})
    assert r.status_code == 400
    body = r.json()
    assert body["ok"] is False
    assert body["error"] == "bad_request"
    assert "limit" in body["message"]
    assert "detail" not in body


def test_create_invoice_malformed_json(client):
    r = client.post("/api/create-invoice", content=b"{not json",
                    headers={"content-type": "application/json"})
    assert r.status_code == 400
    assert r.json()["ok"] is False
    assert r.json()["error"] == "bad_request"


@pytest.mark.parametrize("amount", ["1e1000000", "9e999999"])
def test_create_invoice_huge_exponent(client, processor, amount):
    r = _create(client, amountUah=amount)
    assert r.status_code == 400
    assert r.json()["error"] == "bad_request"
    assert processor.created == []


def test_cors_for_configured_origin(settings, ledger, processor):
    settings.allowed_origins = ["https://talent.mindcore.club"]
    client = TestClient(build_app(make_api(settings, ledger, processor)))
    r = client.options(
        "/api/create-invoice",
        headers={"origin": "https://talent.mindcore.club", "access-control-request-method": "POST"},
    )
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "https://talent.mindcore.club"
