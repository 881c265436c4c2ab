from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Literal


RowStatus = Literal["Normal", "Warning", "Alert"]

OVERVIEW_SUFFIXES: dict[str, str] = {
    "lastOdoReported": " Last reported odometer reading",
    "ownershipCount": " Previous owners",
    "service": " Service history records",
    "stateRegistered": "Last owned in ",
}

_STRONG_TAG = re.compile(r"</?strong>", re.IGNORECASE)


@dataclass
class VehicleInfo:
    year_make_model: str | None = None
    vin: str | None = None

    def is_present(self) -> bool:
        return bool(self.year_make_model or self.vin)


@dataclass
class OverviewRow:
    name: str
    display_text: str
    # Heuristic deductions (e.g. odometer from body text) are not authoritative.
    estimated: bool = False

    @property
    def display_value(self) -> str:
        text = _STRONG_TAG.sub("", self.display_text)
        suffix = OVERVIEW_SUFFIXES.get(self.name)
        if suffix:
            text = text.replace(suffix, "")
        return text.strip()


@dataclass
class HistoryRow:
    status: RowStatus
    title: str
    description: str
    alert_text: str | None = None

    def __post_init__(self) -> None:
        # Flagged rows must always render an explanation.
        if self.status != "Normal" and not (self.description or self.alert_text):
            self.description = self.title or "See report for details."

    @property
    def is_flagged(self) -> bool:
        return self.status in ("Alert", "Warning")


@dataclass
class CommentGroup:
    outer_text: str
    inner_lines: list[str] = field(default_factory=list)


@dataclass
class AccidentRecord:
    date: str
    event_title: str
    comment_groups: list[CommentGroup] = field(default_factory=list)


@dataclass
class OwnershipCell:
    text: str
    is_empty: bool


@dataclass
class OwnershipRow:
    row_label: str
    cells: list[OwnershipCell] = field(default_factory=list)


@dataclass
class OwnerRecord:
    date_display: str
    comment_groups: list[CommentGroup] = field(default_factory=list)


@dataclass
class OwnerDetailBlock:
    owner_label: str
    purchase_year: str | None = None
    owner_type: str | None = None
    records: list[OwnerRecord] = field(default_factory=list)


@dataclass
class VehicleHistoryRecord:
    vehicle_info: VehicleInfo | None = None
    history_overview_rows: list[OverviewRow] = field(default_factory=list)
    title_history_rows: list[HistoryRow] = field(default_factory=list)
    additional_history_rows: list[HistoryRow] = field(default_factory=list)
    accident_damage_records: list[AccidentRecord] = field(default_factory=list)
    ownership_history_rows: list[OwnershipRow] = field(default_factory=list)
    owner_detail_blocks: list[OwnerDetailBlock] = field(default_factory=list)

    def has_identity(self) -> bool:
        return self.vehicle_info is not None and self.vehicle_info.is_present()

    def has_section_data(self) -> bool:
        return any(
            (
                self.title_history_rows,
                self.additional_history_rows,
                self.ownership_history_rows,
                self.accident_damage_records,
                self.owner_detail_blocks,
                self.history_overview_rows,
            )
        )

    def is_usable(self) -> bool:
        return self.has_identity() or self.has_section_data()

    def overview(self, name: str) -> OverviewRow | None:
        return next((r for r in self.history_overview_rows if r.name == name), None)

    def has_branded_title(self) -> bool:
        return self.overview("damageBrandedTitle") is not None

    def owner_column_count(self) -> int:
        return len(self.ownership_history_rows[0].cells) if self.ownership_history_rows else 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_vhr(self) -> dict[str, Any]:
        from vhr.vhr_mapping import record_to_vhr

        return record_to_vhr(self)
