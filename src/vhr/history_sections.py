from __future__ import annotations

import re

from bs4 import BeautifulSoup

from vhr.config import BrandConfig, ParserConfig
from vhr.data_models import HistoryRow
from vhr.document import closest, collapse, text_lines, visible_text
from vhr.text_rules import branded_title_alert_text, branded_title_keyword

_CLEAN_TITLE = re.compile(
    r"\bno\s+(?:title\s+)?issues|\bclean\s+title|\bno\s+problems\s+reported\s+to\s+(?:the\s+)?(?:dmv|title)",
    re.IGNORECASE,
)
_TITLE_BLOCK_HINT = re.compile(r"no\s+issues|clean|title", re.IGNORECASE)
_TITLE_LINE_HINT = re.compile(r"no\s+issues|salvage|rebuilt|clean|branded|title", re.IGNORECASE)
_NUMERIC_ONLY = re.compile(r"^[\d\s]+$")

TITLE_HEADINGS = 'h1, h2, h3, h4, [class*="section"], [class*="title"]'
BRANDED_TITLE_DESCRIPTION = "Vehicle has a branded title. Have it inspected before purchase."


def _cap(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


# ── Title history ──────────────────────────────────────────────────


def clean_title_row(body_text: str) -> HistoryRow | None:
    if not _CLEAN_TITLE.search(body_text):
        return None
    return HistoryRow("Normal", "No title issues reported", "No issues reported to the DMV.")


def branded_title_row(body_text: str) -> HistoryRow | None:
    keyword = branded_title_keyword(body_text)
    if keyword is None:
        return None
    alert = branded_title_alert_text(keyword)
    return HistoryRow("Alert", alert, BRANDED_TITLE_DESCRIPTION, alert_text=alert)


def title_section_row(soup: BeautifulSoup, have_rows: bool) -> HistoryRow | None:
    """Row read from the first heading-anchored title section.

    Only emitted when nothing else was found, or when that section carries
    a branded-title alert.
    """
    for heading in soup.select(TITLE_HEADINGS):
        text = visible_text(heading).lower()
        if "title" not in text or "vehicle history report" in text:
            continue
        container = closest(heading)
        if container is None:
            continue
        block_text = visible_text(container)
        keyword = branded_title_keyword(block_text)
        if not 50 < len(block_text) < 2000:
            continue
        if not (_TITLE_BLOCK_HINT.search(block_text) or keyword):
            continue
        if have_rows and keyword is None:
            return None
        lines = text_lines(container)
        title_line = next((l for l in lines if _TITLE_LINE_HINT.search(l)), block_text[:80])
        alert = branded_title_alert_text(keyword) if keyword else None
        return HistoryRow(
            "Alert" if keyword else "Normal",
            title_line.strip()[:80],
            collapse(block_text[:200]),
            alert_text=alert,
        )
    return None


def title_history_rows(soup: BeautifulSoup, body_text: str) -> list[HistoryRow]:
    rows = [r for r in (clean_title_row(body_text), branded_title_row(body_text)) if r is not None]
    section = title_section_row(soup, have_rows=bool(rows))
    if section is not None:
        rows.append(section)
    return rows


# ── Additional history ─────────────────────────────────────────────


def _vendor_alternation(brand: BrandConfig) -> str:
    names = (brand.brand_name, *brand.vendor_names)
    return "|".join(re.escape(n) for n in names)


def _rebrand(text: str, brand: BrandConfig) -> str:
    for vendor in brand.vendor_names:
        text = re.sub(rf"\b{re.escape(vendor)}\b", brand.brand_name, text, flags=re.IGNORECASE)
    return text


def default_additional_description(label: str, brand: BrandConfig) -> str:
    if label == "Total Loss":
        return f"No total loss reported to {brand.brand_name}."
    if label == "Structural Damage":
        return (
            f"{brand.brand_name} recommends that you have this vehicle inspected by a collision repair specialist."
        )
    return ""


def describe_additional_category(label: str, window: str, brand: BrandConfig, config: ParserConfig) -> HistoryRow:
    """Synthesize one category row from the text that follows its label.

    Priority: "no X reported", then a recommendation sentence, then a positive
    finding, then a raw snippet.
    """
    names = _vendor_alternation(brand)
    no_reported = (
        re.search(rf"\bNo\s+([^.]+?)\s+reported\s+to\s+(?:{names})", window, re.IGNORECASE)
        or re.search(r"\bNo\s+([^.]+?)\s+reported", window, re.IGNORECASE)
        or re.search(r"\bNo\s+([^.]+?)\s+found", window, re.IGNORECASE)
    )
    recommend = re.search(rf"(?:{names}|We)\s+recommends?[^.]+\.", window, re.IGNORECASE) or re.search(
        r"recommends?[^.]+(?:inspection|specialist)[^.]*\.", window, re.IGNORECASE
    )
    finding = re.search(r"(?:Yes|Reported|Damage|Total\s+loss)\s+(?:reported|found|detected)", window, re.IGNORECASE)

    status = "Normal"
    alert_text = None
    if no_reported:
        description = f"No {no_reported.group(1).strip()} reported to {brand.brand_name}."
    elif recommend:
        description = _rebrand(recommend.group(0).strip(), brand)
    elif finding:
        description = _cap(collapse(window[:120]), config.finding_max_chars)
        status = "Alert"
        alert_text = f"{label} reported"
    else:
        snippet = collapse(window[:150])
        description = "" if not snippet or _NUMERIC_ONLY.match(snippet) else _cap(snippet, config.snippet_max_chars)

    description = description or default_additional_description(label, brand) or f"See report for {label}."
    return HistoryRow(status, label, _rebrand(description, brand), alert_text=alert_text)  # type: ignore[arg-type]


def found_additional_history_rows(
    body_text: str, brand: BrandConfig | None = None, config: ParserConfig | None = None
) -> list[HistoryRow]:
    """Rows for the additional-history labels that actually appear in the report."""
    brand = brand or BrandConfig()
    cfg = config or ParserConfig()
    normalized = f" {collapse(body_text)} "
    lowered = normalized.lower()

    rows: list[HistoryRow] = []
    for label in cfg.additional_history_labels:
        idx = lowered.find(f" {label.lower()} ")
        if idx == -1:
            continue
        window = normalized[idx + len(label) + 1 : idx + cfg.additional_history_window]
        rows.append(describe_additional_category(label, window, brand, cfg))
    return rows


def default_additional_history_rows(brand: BrandConfig | None = None) -> list[HistoryRow]:
    brand = brand or BrandConfig()
    return [
        HistoryRow("Normal", label, default_additional_description(label, brand))
        for label in ("Total Loss", "Structural Damage")
    ]
