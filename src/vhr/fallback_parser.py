"""Rebuild a vehicle history record from report markup without embedded JSON.

Every section comes from an independent rule; this module only wires them
together and applies the completeness gate.
"""
from __future__ import annotations

import logging

from vhr.accidents import accident_damage_records
from vhr.config import BrandConfig, ParserConfig
from vhr.data_models import VehicleHistoryRecord
from vhr.document import ReportDocument
from vhr.history_sections import default_additional_history_rows, found_additional_history_rows, title_history_rows
from vhr.ownership import parse_owner_blocks, parse_ownership_table, placeholder_owner_blocks, placeholder_ownership_rows
from vhr.text_rules import extract_identity, overview_rows, owner_count

logger = logging.getLogger(__name__)


def parse_fallback(
    raw_html: str,
    hinted_vehicle_label: str | None = None,
    brand: BrandConfig | None = None,
    config: ParserConfig | None = None,
) -> VehicleHistoryRecord | None:
    """Heuristic record from report HTML, or ``None`` when nothing was recovered.

    Synthesized placeholders (default additional-history rows, empty ownership
    table, empty owner blocks) keep the record structurally complete but do
    not count toward the completeness gate.
    """
    if not raw_html or not raw_html.strip():
        return None
    brand = brand or BrandConfig()
    cfg = config or ParserConfig()

    doc = ReportDocument.parse(raw_html)
    body = doc.body_text
    owners = owner_count(body)

    identity = extract_identity(doc.title_text, body, hinted_vehicle_label)
    overview = overview_rows(body, cfg)
    titles = title_history_rows(doc.soup, body)
    additional = found_additional_history_rows(body, brand, cfg)
    accidents = accident_damage_records(doc.soup, body, cfg)
    table = parse_ownership_table(doc.soup, owners, cfg)
    parsed_owners = parse_owner_blocks(doc.soup, cfg)

    recovered = bool(identity or overview or titles or additional or table or accidents or parsed_owners)
    if not recovered:
        logger.debug("fallback parse recovered neither identity nor any section")
        return None

    owner_blocks = parsed_owners or placeholder_owner_blocks(body, owners, cfg)
    record = VehicleHistoryRecord(
        vehicle_info=identity,
        history_overview_rows=overview,
        title_history_rows=titles,
        additional_history_rows=additional or default_additional_history_rows(brand),
        accident_damage_records=accidents,
        ownership_history_rows=table or placeholder_ownership_rows(owners, cfg),
        owner_detail_blocks=owner_blocks[: cfg.max_owner_blocks],
    )
    return record if record.is_usable() else None
