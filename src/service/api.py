from __future__ import annotations

import logging
import time
import uuid
from collections import defaultdict, deque
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from service.logging_config import configure_logging, correlation_id, report_code
from service.report_store import ReportPayload, ReportStoreClient, ReportStoreError
from service.settings import ServiceSettings
from service.storage import RedisCache
from vhr.config import BrandConfig
from vhr.rewriter import rewrite
from vhr.selector import ReportView, select_report_view, summarize

logger = logging.getLogger(__name__)


# ── Request / Response Models ───────────────────────────────────────

class ParseRequest(BaseModel):
    html: str = Field(min_length=1)
    year_make_model: str | None = None
    use_fallback: bool | None = None


class ReportViewResponse(BaseModel):
    code: str | None = None
    mode: str
    source: str | None = None
    record: dict[str, Any] | None = None
    vhr: dict[str, Any] | None = None
    summary: dict[str, Any] | None = None
    html: str | None = None


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, bool]


# ── Metrics ─────────────────────────────────────────────────────────

LATENCY_WINDOW = 1000

_view_counters: dict[str, int] = defaultdict(int)
_view_latency: deque[float] = deque(maxlen=LATENCY_WINDOW)


def _view_response(view: ReportView, code: str | None = None) -> ReportViewResponse:
    _view_counters[f"{view.mode}_{view.source or 'raw'}"] += 1
    logger.info(
        "Report view selected: %s (%s)", view.mode, view.source or "raw",
        extra={"extra_data": {"code": code, "mode": view.mode, "source": view.source}},
    )
    if view.record is None:
        return ReportViewResponse(code=code, mode=view.mode, html=view.html)
    return ReportViewResponse(
        code=code,
        mode=view.mode,
        source=view.source,
        record=view.record.to_dict(),
        vhr=view.record.to_vhr(),
        summary=summarize(view.record).to_dict(),
    )


# ── App Factory ─────────────────────────────────────────────────────

def create_app(report_store: ReportStoreClient | None = None) -> FastAPI:
    settings = ServiceSettings()
    configure_logging(level=settings.log_level, fmt=settings.log_format)

    brand = BrandConfig(brand_name=settings.brand_name)
    cache = RedisCache(redis_url=settings.redis_url)
    store = report_store or ReportStoreClient(
        base_url=settings.report_store_url,
        anon_key=settings.report_store_anon_key,
        timeout_seconds=settings.report_store_timeout_seconds,
        cache=cache,
        cache_ttl_seconds=settings.report_cache_ttl_seconds,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await cache.connect()
        try:
            yield
        finally:
            await cache.close()

    app = FastAPI(title="Vehicle History Report API", version="1.0.0", lifespan=lifespan)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next: Any) -> Response:
        cid = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex[:12]
        correlation_id.set(cid)
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = cid
        return response

    async def _load(code: str) -> ReportPayload:
        report_code.set(code)
        try:
            payload = await store.fetch(code)
        except ReportStoreError as exc:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Report store unavailable") from exc
        if payload is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")
        return payload

    # ── Reports ─────────────────────────────────────────────────────

    @app.get("/reports/{code}", response_model=ReportViewResponse)
    async def get_report(code: str) -> ReportViewResponse:
        payload = await _load(code)
        t0 = time.monotonic()
        view = select_report_view(
            payload.html,
            hinted_vehicle_label=payload.year_make_model,
            use_fallback=settings.enable_fallback_parser,
            brand=brand,
        )
        _view_latency.append(time.monotonic() - t0)
        return _view_response(view, code=payload.code)

    @app.get("/reports/{code}/html", response_class=HTMLResponse)
    async def get_report_html(code: str) -> HTMLResponse:
        payload = await _load(code)
        return HTMLResponse(content=rewrite(payload.html, brand))

    @app.post("/reports/parse", response_model=ReportViewResponse)
    async def parse_report(req: ParseRequest) -> ReportViewResponse:
        use_fallback = settings.enable_fallback_parser if req.use_fallback is None else req.use_fallback
        t0 = time.monotonic()
        view = select_report_view(req.html, hinted_vehicle_label=req.year_make_model, use_fallback=use_fallback, brand=brand)
        _view_latency.append(time.monotonic() - t0)
        return _view_response(view)

    # ── Health ──────────────────────────────────────────────────────

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/ready", response_model=ReadinessResponse)
    async def ready() -> ReadinessResponse:
        checks = {
            "report_store": store.is_configured,
            "redis": await cache.ping(),
        }
        if not checks["report_store"]:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=ReadinessResponse(status="degraded", checks=checks).model_dump(),
            )
        return ReadinessResponse(status="ready", checks=checks)

    @app.get("/metrics")
    async def get_metrics() -> dict[str, Any]:
        latencies = sorted(_view_latency)
        return {
            "views": dict(_view_counters),
            "view_latency": {
                "count": len(latencies),
                "p50_ms": round(latencies[len(latencies) // 2] * 1000, 1) if latencies else 0,
                "p95_ms": round(latencies[int(len(latencies) * 0.95)] * 1000, 1) if latencies else 0,
            },
        }

    return app


app = create_app()
