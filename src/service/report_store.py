from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from service.storage import RedisCache

logger = logging.getLogger(__name__)

REPORT_FUNCTION_PATH = "/functions/v1/get-deep-check-report"


class ReportStoreError(RuntimeError):
    """The report store could not be reached or answered with an error."""


@dataclass
class ReportPayload:
    code: str
    html: str
    year_make_model: str | None = None

    def to_cache(self) -> dict[str, Any]:
        return {"html": self.html, "yearMakeModel": self.year_make_model}

    @classmethod
    def from_json(cls, code: str, data: Any) -> "ReportPayload | None":
        if not isinstance(data, dict):
            return None
        html = data.get("html")
        if not isinstance(html, str) or not html:
            return None
        ymm = data.get("yearMakeModel")
        return cls(code=code, html=html, year_make_model=ymm if isinstance(ymm, str) and ymm.strip() else None)


class ReportStoreClient:
    """Looks up raw third-party report HTML by its short share code."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout_seconds: float = 10.0,
        cache: RedisCache | None = None,
        cache_ttl_seconds: int = 3_600,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout_seconds = timeout_seconds
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.anon_key)

    async def fetch(self, code: str) -> ReportPayload | None:
        code = (code or "").strip()
        if not code or not self.is_configured:
            return None

        cache_key = f"report:{code}"
        if self.cache is not None:
            cached = await self.cache.get_json(cache_key)
            if cached is not None:
                return ReportPayload.from_json(code, cached)

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                resp = await client.get(
                    f"{self.base_url}{REPORT_FUNCTION_PATH}",
                    params={"code": code},
                    headers={"Authorization": f"Bearer {self.anon_key}", "Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Report store request failed for %s: %s", code, exc)
            raise ReportStoreError(str(exc)) from exc

        if resp.status_code == 404:
            return None
        if resp.is_error:
            logger.warning("Report store returned %s for %s", resp.status_code, code)
            raise ReportStoreError(f"report store returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise ReportStoreError("report store returned a non-JSON body") from exc

        payload = ReportPayload.from_json(code, data)
        if payload is not None and self.cache is not None:
            await self.cache.set_json(cache_key, payload.to_cache(), ttl_seconds=self.cache_ttl_seconds)
        return payload
