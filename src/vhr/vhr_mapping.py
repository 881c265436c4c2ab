"""Conversion between the vendor's embedded ``vhr`` payload and ``VehicleHistoryRecord``.

The embedded payload nests every display string a few levels deep
(``translatedTitle.en``, ``description.translatedTextDisplay.translatedDisplay.en.text``).
Readers here are tolerant: any level may be missing or carry a bare string.
"""
from __future__ import annotations

from typing import Any

from vhr.data_models import (
    AccidentRecord,
    CommentGroup,
    HistoryRow,
    OverviewRow,
    OwnerDetailBlock,
    OwnerRecord,
    OwnershipCell,
    OwnershipRow,
    VehicleHistoryRecord,
    VehicleInfo,
)

_STATUSES = ("Normal", "Warning", "Alert")


def _dig(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, dict):
        for key in ("en", "text", "purchaseYear", "translatedOwnerType"):
            if key in value:
                return _text(value[key])
        return ""
    return str(value)


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _translated(text: str) -> dict[str, Any]:
    return {"translatedTextDisplay": {"translatedDisplay": {"en": {"text": text}}}}


def _description_text(row: dict[str, Any]) -> str:
    nested = _dig(row, "description", "translatedTextDisplay", "translatedDisplay", "en", "text")
    return _text(nested if nested is not None else row.get("description"))


# ── vhr -> record ──────────────────────────────────────────────────


def _history_row(row: Any) -> HistoryRow | None:
    if not isinstance(row, dict):
        return None
    status = _text(_dig(row, "combinedCell", "status"))
    alert = _dig(row, "combinedCell", "translatedText")
    return HistoryRow(
        status=status if status in _STATUSES else "Normal",  # type: ignore[arg-type]
        title=_text(row.get("translatedTitle")),
        description=_description_text(row),
        alert_text=_text(alert) or None,
    )


def _comment_groups(comments: Any) -> list[CommentGroup]:
    groups: list[CommentGroup] = []
    for group in _list(_dig(comments, "commentsGroups")):
        outer = _text(_dig(group, "outerLine", "commentsTextLine", "text"))
        inner = [_text(_dig(line, "commentsTextLine", "text")) for line in _list(_dig(group, "innerLines"))]
        groups.append(CommentGroup(outer_text=outer, inner_lines=[t for t in inner if t]))
    return groups


def record_from_vhr(vhr: dict[str, Any]) -> VehicleHistoryRecord:
    header = _dig(vhr, "headerSection") or {}
    info = _dig(header, "vehicleInformationSection")
    vehicle_info = None
    if isinstance(info, dict):
        vehicle_info = VehicleInfo(
            year_make_model=_text(info.get("yearMakeModel")) or None,
            vin=_text(info.get("vin")) or None,
        )

    overview: list[OverviewRow] = []
    seen: set[str] = set()
    for row in _list(_dig(header, "historyOverview", "rows")):
        name = _text(_dig(row, "name"))
        if not name or name in seen:
            continue
        seen.add(name)
        overview.append(OverviewRow(name=name, display_text=_text(_dig(row, "text"))))

    title_rows = [r for r in map(_history_row, _list(_dig(vhr, "titleHistorySection", "rows"))) if r]
    additional_rows = [r for r in map(_history_row, _list(_dig(vhr, "additionalHistorySection", "rows"))) if r]

    accidents = []
    for item in _list(_dig(vhr, "accidentDamageSection", "accidentDamageRecords")):
        if not isinstance(item, dict):
            continue
        accidents.append(
            AccidentRecord(
                date=_text(item.get("date")),
                event_title=_text(item.get("eventTitleText")),
                comment_groups=_comment_groups(item.get("comments")),
            )
        )

    ownership = []
    for row in _list(_dig(vhr, "ownershipHistorySection", "rows")):
        if not isinstance(row, dict):
            continue
        cells = [
            OwnershipCell(text=_text(_dig(c, "translatedText")), is_empty=bool(_dig(c, "emptyCell")))
            for c in _list(row.get("cells"))
        ]
        ownership.append(OwnershipRow(row_label=_description_text(row), cells=cells))

    blocks = []
    for block in _list(_dig(vhr, "detailsSection", "ownerBlocks", "ownerBlocks")):
        tab = _dig(block, "tab") or {}
        records = [
            OwnerRecord(date_display=_text(_dig(r, "dateDisplay")), comment_groups=_comment_groups(_dig(r, "comments")))
            for r in _list(_dig(block, "records", "records"))
        ]
        blocks.append(
            OwnerDetailBlock(
                owner_label=_text(_dig(tab, "translatedOwner")),
                purchase_year=_text(_dig(tab, "purchaseYear")) or None,
                owner_type=_text(_dig(tab, "ownerType")) or None,
                records=records,
            )
        )

    return VehicleHistoryRecord(
        vehicle_info=vehicle_info,
        history_overview_rows=overview,
        title_history_rows=title_rows,
        additional_history_rows=additional_rows,
        accident_damage_records=accidents,
        ownership_history_rows=ownership,
        owner_detail_blocks=blocks,
    )


# ── record -> vhr ──────────────────────────────────────────────────


def _history_row_to_vhr(row: HistoryRow) -> dict[str, Any]:
    combined: dict[str, Any] = {"status": row.status}
    if row.alert_text:
        combined["translatedText"] = {"en": row.alert_text}
    return {
        "combinedCell": combined,
        "translatedTitle": {"en": row.title},
        "description": _translated(row.description),
    }


def _comments_to_vhr(groups: list[CommentGroup]) -> dict[str, Any]:
    return {
        "commentsGroups": [
            {
                "outerLine": {"commentsTextLine": {"text": g.outer_text}},
                "innerLines": [{"commentsTextLine": {"text": t, "alert": False}} for t in g.inner_lines],
            }
            for g in groups
        ]
    }


def record_to_vhr(record: VehicleHistoryRecord) -> dict[str, Any]:
    info = record.vehicle_info or VehicleInfo()
    vehicle: dict[str, Any] = {}
    if info.year_make_model:
        vehicle["yearMakeModel"] = info.year_make_model
    if info.vin:
        vehicle["vin"] = info.vin

    details = []
    for block in record.owner_detail_blocks:
        tab: dict[str, Any] = {
            "translatedOwner": {"en": block.owner_label},
            "ownerType": {"translatedOwnerType": {"en": block.owner_type or "Personal vehicle"}},
        }
        if block.purchase_year:
            tab["purchaseYear"] = {"purchaseYear": block.purchase_year}
        details.append(
            {
                "tab": tab,
                "records": {
                    "records": [
                        {"dateDisplay": r.date_display, "comments": _comments_to_vhr(r.comment_groups)}
                        for r in block.records
                    ]
                },
            }
        )

    return {
        "headerSection": {
            "vehicleInformationSection": vehicle,
            "historyOverview": {"rows": [{"name": r.name, "text": r.display_text} for r in record.history_overview_rows]},
        },
        "titleHistorySection": {"rows": [_history_row_to_vhr(r) for r in record.title_history_rows]},
        "additionalHistorySection": {"rows": [_history_row_to_vhr(r) for r in record.additional_history_rows]},
        "ownershipHistorySection": {
            "rows": [
                {
                    "description": _translated(row.row_label),
                    "cells": [{"translatedText": {"en": c.text}, "emptyCell": c.is_empty} for c in row.cells],
                }
                for row in record.ownership_history_rows
            ]
        },
        "accidentDamageSection": {
            "accidentDamageRecords": [
                {
                    "date": a.date,
                    "eventTitleText": {"en": a.event_title},
                    "comments": _comments_to_vhr(a.comment_groups),
                }
                for a in record.accident_damage_records
            ]
        },
        "detailsSection": {"ownerBlocks": {"ownerBlocks": details}},
    }
