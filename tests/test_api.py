import json
import logging

import httpx
from fastapi.testclient import TestClient

from service.logging_config import JSONFormatter, configure_logging, correlation_id, report_code
from service.report_store import ReportStoreClient
from vhr.rewriter import HEADER_ID


def _store(reports: dict, status_code: int = 200) -> ReportStoreClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if status_code != 200:
            return httpx.Response(status_code, text="upstream failure")
        code = request.url.params["code"]
        if code not in reports:
            return httpx.Response(404, json={"error": "Report not found"})
        return httpx.Response(200, json=reports[code])

    return ReportStoreClient(base_url="https://store.example", anon_key="anon", transport=httpx.MockTransport(handler))


def _make_app(monkeypatch, store=None, fallback: bool = False):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:65535/0")
    monkeypatch.setenv("LOG_FORMAT", "text")
    monkeypatch.setenv("ENABLE_FALLBACK_PARSER", "true" if fallback else "false")
    from service.api import create_app
    return create_app(report_store=store)


def test_health_endpoints(monkeypatch):
    app = _make_app(monkeypatch)
    with TestClient(app) as client:
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/healthz").json() == {"status": "ok"}


def test_ready_requires_configured_store(monkeypatch):
    monkeypatch.setenv("REPORT_STORE_URL", "")
    app = _make_app(monkeypatch)
    with TestClient(app) as client:
        resp = client.get("/ready")
        assert resp.status_code == 503
        assert resp.json()["detail"]["checks"]["report_store"] is False

    app = _make_app(monkeypatch, store=_store({}))
    with TestClient(app) as client:
        resp = client.get("/ready")
        assert resp.status_code == 200
        assert resp.json()["checks"] == {"report_store": True, "redis": False}


def test_get_report_embedded(monkeypatch, embedded_html):
    store = _store({"ABC123": {"html": embedded_html, "yearMakeModel": "2007 Honda Odyssey"}})
    app = _make_app(monkeypatch, store=store)
    with TestClient(app) as client:
        resp = client.get("/reports/ABC123", headers={"X-Correlation-ID": "cid-42"})
        assert resp.status_code == 200
        assert resp.headers["X-Correlation-ID"] == "cid-42"
        body = resp.json()
        assert body["code"] == "ABC123"
        assert body["mode"] == "structured"
        assert body["source"] == "embedded"
        assert body["html"] is None
        assert body["record"]["vehicle_info"]["vin"] == "JHLRE38307C062034"
        assert body["vhr"]["headerSection"]["vehicleInformationSection"]["yearMakeModel"] == "2007 HONDA ODYSSEY EX-L"
        assert body["summary"]["status_text"] == "Problems Reported"


def test_get_report_html_mode_and_fallback(monkeypatch, fallback_html):
    store = _store({"PLAIN1": {"html": fallback_html}})

    with TestClient(_make_app(monkeypatch, store=store)) as client:
        body = client.get("/reports/PLAIN1").json()
        assert body["mode"] == "html"
        assert body["record"] is None
        assert HEADER_ID in body["html"]

    with TestClient(_make_app(monkeypatch, store=store, fallback=True)) as client:
        body = client.get("/reports/PLAIN1").json()
        assert body["mode"] == "structured"
        assert body["source"] == "fallback"
        assert body["summary"]["owner_columns"] == 3


def test_get_report_html_document(monkeypatch, embedded_html):
    store = _store({"ABC123": {"html": embedded_html}})
    with TestClient(_make_app(monkeypatch, store=store)) as client:
        resp = client.get("/reports/ABC123/html")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert "<script" not in resp.text.lower()
        assert f'id="{HEADER_ID}"' in resp.text


def test_get_report_not_found_and_upstream_failure(monkeypatch):
    with TestClient(_make_app(monkeypatch, store=_store({}))) as client:
        assert client.get("/reports/MISSING").status_code == 404
        assert client.get("/reports/MISSING/html").status_code == 404

    with TestClient(_make_app(monkeypatch, store=_store({}, status_code=500))) as client:
        resp = client.get("/reports/ABC123")
        assert resp.status_code == 502
        assert resp.json()["detail"] == "Report store unavailable"


def test_parse_endpoint(monkeypatch, fallback_html):
    with TestClient(_make_app(monkeypatch)) as client:
        resp = client.post("/reports/parse", json={"html": fallback_html, "use_fallback": True})
        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] is None
        assert body["source"] == "fallback"
        assert body["record"]["vehicle_info"]["year_make_model"] == "2007 HONDA ODYSSEY EX-L"

        resp = client.post("/reports/parse", json={"html": fallback_html})
        assert resp.json()["mode"] == "html"

        assert client.post("/reports/parse", json={"html": ""}).status_code == 422

        metrics = client.get("/metrics").json()
        assert metrics["views"]["structured_fallback"] >= 1
        assert metrics["view_latency"]["count"] >= 2


def test_view_latency_window_is_bounded(monkeypatch):
    app = _make_app(monkeypatch)
    from service.api import LATENCY_WINDOW, _view_latency

    with TestClient(app) as client:
        _view_latency.extend([0.002] * (LATENCY_WINDOW + 10))
        latency = client.get("/metrics").json()["view_latency"]
    assert _view_latency.maxlen == LATENCY_WINDOW
    assert latency["count"] == LATENCY_WINDOW
    assert latency["p95_ms"] == 2.0


def test_selected_view_is_logged(monkeypatch, fallback_html, caplog):
    api_logger = logging.getLogger("service.api")
    with TestClient(_make_app(monkeypatch)) as client:
        api_logger.addHandler(caplog.handler)
        try:
            client.post("/reports/parse", json={"html": fallback_html, "use_fallback": True})
        finally:
            api_logger.removeHandler(caplog.handler)

    [record] = [r for r in caplog.records if r.name == "service.api"]
    assert record.extra_data == {"code": None, "mode": "structured", "source": "fallback"}
    assert json.loads(JSONFormatter().format(record))["data"]["source"] == "fallback"


# ── Logging Tests ────────────────────────────────────────────────────


def test_json_formatter_includes_report_code():
    formatter = JSONFormatter()
    record = logging.LogRecord("test", logging.INFO, "", 0, "fetched report", (), None)
    token = report_code.set("ABC123")
    try:
        parsed = json.loads(formatter.format(record))
    finally:
        report_code.reset(token)
    assert parsed["message"] == "fetched report"
    assert parsed["level"] == "INFO"
    assert parsed["report_code"] == "ABC123"
    assert "timestamp" in parsed


def test_configure_logging():
    configure_logging(level="DEBUG", fmt="text")
    assert logging.getLogger().level == logging.DEBUG


def test_correlation_id():
    correlation_id.set("test-123")
    assert correlation_id.get() == "test-123"
    correlation_id.set("")
