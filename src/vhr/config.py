from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass(frozen=True)
class BrandConfig:
    brand_name: str = "MintCheck"
    vendor_names: tuple[str, ...] = ("CARFAX",)
    logo_url: str = (
        "https://iawkgqbrxoctatfrjpli.supabase.co/storage/v1/object/public/assets/Logo/SVGs/logo-text/lockup-mint.svg"
    )
    logo_path_fragment: str = "lockup-mint"
    primary_color: str = "#3EB489"
    primary_dark_color: str = "#2D9970"
    text_color: str = "#1A1A1A"
    muted_color: str = "#666666"
    border_color: str = "#E5E5E5"
    background_color: str = "#F8F8F7"
    # Vendor hex -> replacement hex, matched case-insensitively.
    color_map: Dict[str, str] = field(
        default_factory=lambda: {
            "#0066cc": "#3EB489",
            "#0070c0": "#3EB489",
            "#3777bc": "#3EB489",
            "#004b8d": "#2D9970",
            "#1f3c88": "#2D9970",
        }
    )
    # Class fragments of vendor-only <div> blocks, removed by balanced scanning.
    removed_block_classes: tuple[str, ...] = (
        "buyback-guarantee",
        "carfax-logo",
        "follow-us",
        "social-links",
        "report-provided",
        "powered-by",
    )
    # ids of flat <section> blocks removed by direct open/close lookup.
    removed_section_ids: tuple[str, ...] = (
        "glossary",
        "glossary-section",
        "follow-us-section",
        "signature-section",
    )
    disclaimer: str = (
        "This vehicle history report is based on information available to {brand} at the time of the report. "
        "Not every accident or repair is reported. Use this report together with a vehicle inspection and "
        "test drive when deciding on a used vehicle."
    )
    top_disclaimer: str = (
        "Not every accident or repair is reported. This report is one tool. "
        "Always get a vehicle inspection and test drive before buying."
    )
    header_title: str = "Deep Vehicle Check"

    @property
    def disclaimer_text(self) -> str:
        return self.disclaimer.format(brand=self.brand_name)


@dataclass(frozen=True)
class ParserConfig:
    max_owner_columns: int = 15
    max_owner_blocks: int = 10
    max_placeholder_owners: int = 3
    max_owner_events: int = 8
    max_event_text_chars: int = 120
    max_owner_block_chars: int = 500
    max_accident_block_chars: int = 1500
    max_accident_inner_lines: int = 10
    max_canonical_title_chars: int = 80
    additional_history_window: int = 600
    snippet_max_chars: int = 120
    finding_max_chars: int = 100
    odometer_context_before: int = 100
    odometer_context_after: int = 120
    odometer_max_miles: int = 3_000_000
    additional_history_labels: tuple[str, ...] = (
        "Total Loss",
        "Structural Damage",
        "Airbag Deployment",
        "Odometer Rollback",
        "Accident / Damage",
        "Manufacturer Recall",
        "Fleet / Rental / Lease",
        "Service History",
    )
    ownership_placeholder_labels: tuple[str, ...] = (
        "Length of ownership",
        "Miles driven per year",
        "Vehicle use",
    )
