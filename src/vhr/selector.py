from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

from vhr.config import BrandConfig, ParserConfig
from vhr.data_models import VehicleHistoryRecord
from vhr.extractor import PAYLOAD_KEY, extract
from vhr.fallback_parser import parse_fallback
from vhr.rewriter import rewrite
from vhr.vhr_mapping import record_from_vhr

logger = logging.getLogger(__name__)

ViewMode = Literal["structured", "html"]
RecordSource = Literal["embedded", "fallback"]

PROBLEMS_REPORTED = "Problems Reported"
HISTORY_AVAILABLE = "History Available"


@dataclass
class ReportView:
    mode: ViewMode
    source: RecordSource | None = None
    record: VehicleHistoryRecord | None = None
    html: str | None = None

    @property
    def is_structured(self) -> bool:
        return self.mode == "structured"


@dataclass
class ReportSummary:
    status_text: str
    has_alert: bool
    last_odometer: str | None = None
    owner_count: str | None = None
    ownership_type: str | None = None
    last_state: str | None = None
    service_records: str | None = None
    owner_columns: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _has_vehicle_section(payload: dict[str, Any]) -> bool:
    header = payload[PAYLOAD_KEY].get("headerSection")
    return isinstance(header, dict) and isinstance(header.get("vehicleInformationSection"), dict)


def select_report_view(
    raw_html: str,
    hinted_vehicle_label: str | None = None,
    use_fallback: bool = False,
    brand: BrandConfig | None = None,
    config: ParserConfig | None = None,
) -> ReportView:
    """Choose between a structured record and the rewritten raw report.

    Embedded JSON wins when it carries a vehicle information object. The
    heuristic parser is only consulted when ``use_fallback`` is set. The two
    outcomes are exclusive: a structured view carries no HTML and vice versa.
    """
    payload = extract(raw_html)
    if payload is not None and _has_vehicle_section(payload):
        return ReportView(mode="structured", source="embedded", record=record_from_vhr(payload[PAYLOAD_KEY]))

    if use_fallback:
        record = parse_fallback(raw_html, hinted_vehicle_label, brand=brand, config=config)
        if record is not None and record.is_usable():
            return ReportView(mode="structured", source="fallback", record=record)

    logger.debug("no usable structured record; rendering rewritten report html")
    return ReportView(mode="html", html=rewrite(raw_html, brand))


def summarize(record: VehicleHistoryRecord) -> ReportSummary:
    """Headline status plus the compact overview values shown above the sections."""
    has_alert = record.has_branded_title() or bool(record.accident_damage_records)

    def value(name: str) -> str | None:
        row = record.overview(name)
        return row.display_value if row is not None else None

    return ReportSummary(
        status_text=PROBLEMS_REPORTED if has_alert else HISTORY_AVAILABLE,
        has_alert=has_alert,
        last_odometer=value("lastOdoReported"),
        owner_count=value("ownershipCount"),
        ownership_type=value("ownershipType"),
        last_state=value("stateRegistered"),
        service_records=value("service"),
        owner_columns=record.owner_column_count(),
    )
