"""Body-text rules, one per fact.

Each rule takes plain report text and returns a single fact (or ``None``),
so an upstream markup change breaks one rule rather than the whole parse.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import partial
from typing import Callable

from vhr.config import ParserConfig
from vhr.data_models import OverviewRow, VehicleInfo

VIN_CHARS = r"[A-HJ-NPR-Z0-9]{17}"
VIN_TOKEN = re.compile(rf"\b({VIN_CHARS})\b")
_BODY_VIN = re.compile(rf"\b(?i:VIN)[:\s]+({VIN_CHARS})\b")
_TITLE_YMM_VIN = re.compile(rf"(?i:for\s+this)\s+(.+?)\s*:\s*({VIN_CHARS})\s*$")
_TITLE_YMM_ONLY = re.compile(rf"(?i:for\s+this)\s+(.+?)(?:\s*:\s*{VIN_CHARS})?\s*$")

_SERVICE = re.compile(r"(\d+)\s*Service\s+history\s+records?", re.IGNORECASE)
_OWNERS = re.compile(r"(\d+)\s*Previous\s+owners?", re.IGNORECASE)
_PERSONAL = re.compile(r"Personal\s+vehicle", re.IGNORECASE)
_LAST_STATE = re.compile(r"(?i:Last\s+owned\s+in)\s+([A-Z]{2})\b")

_NUM = r"(?<![\d,])(\d{1,3}(?:,\d{3})+|\d{1,7})"
_MILES = re.compile(
    rf"{_NUM}\s*(?:miles?|mi)\b(?:\s+(?:last\s+reported|odometer))?"
    rf"|{_NUM}\s+last\s+reported\s+odometer"
    rf"|last\s+reported\s+odometer(?:\s+reading)?\D{{0,40}}?{_NUM}",
    re.IGNORECASE,
)
_ODOMETER_CONTEXT = re.compile(r"last\s+reported|odometer\s+reading|most\s+recent\s+odometer", re.IGNORECASE)

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")
_BRAND_NEGATION = re.compile(
    r"\bno\s+(?:[\w,/]+\s+){0,4}?(?:salvage|rebuilt|junk|branded)"
    r"|\bnot\s+(?:a\s+|an\s+)?(?:salvage|rebuilt|junk|branded)"
    r"|\bsalvage\s+reported\s+to\s+no\b",
    re.IGNORECASE,
)
_BRAND_POSITIVE = (
    re.compile(r"\b(salvage|junk|rebuilt)\s+(?:title|designation|vehicle)", re.IGNORECASE),
    re.compile(r"\btitle\s*[:\s]\s*(salvage|junk|rebuilt)\b", re.IGNORECASE),
    re.compile(r"\b(branded)\s+title\b", re.IGNORECASE),
)
BRAND_ALERT_TEXT = {
    "salvage": "Salvage title reported",
    "rebuilt": "Rebuilt title reported",
    "junk": "Junk title reported",
    "branded": "Branded title reported",
}

_ACCIDENT_REPORTED = re.compile(r"\b(?:accident|damage|collision)s?\s+reported\b", re.IGNORECASE)
_NEGATED_ACCIDENT = re.compile(
    r"\b(?:no|not|never|without)\s+(?:[\w/]+\s+){0,3}?(?:accidents?|damage|collisions?)\b", re.IGNORECASE
)
_CLAUSE_BREAK = re.compile(r"[,;:]")


def sentences(text: str) -> list[str]:
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]


# ── Identity ───────────────────────────────────────────────────────


def extract_identity(title_text: str, body_text: str, hinted_label: str | None = None) -> VehicleInfo | None:
    hint = (hinted_label or "").strip()
    year_make_model = hint
    vin = ""

    m = _TITLE_YMM_VIN.search(title_text)
    if m:
        year_make_model = m.group(1).strip()
        vin = m.group(2)
    elif title_text:
        ymm = _TITLE_YMM_ONLY.search(title_text)
        if ymm and not year_make_model:
            year_make_model = ymm.group(1).strip()
        in_title = VIN_TOKEN.search(title_text)
        if in_title:
            vin = in_title.group(1)

    if not vin:
        found = _BODY_VIN.search(body_text) or VIN_TOKEN.search(body_text)
        if found:
            vin = found.group(1)

    if not year_make_model and not vin:
        return None
    return VehicleInfo(year_make_model=year_make_model or None, vin=vin or None)


# ── Overview facts ─────────────────────────────────────────────────


def owner_count(text: str) -> int:
    m = _OWNERS.search(text)
    return int(m.group(1)) if m else 0


def service_records_fact(text: str) -> OverviewRow | None:
    m = _SERVICE.search(text)
    return OverviewRow("service", f"{m.group(1)} Service history records") if m else None


def previous_owners_fact(text: str) -> OverviewRow | None:
    m = _OWNERS.search(text)
    return OverviewRow("ownershipCount", f"{m.group(1)} Previous owners") if m else None


def ownership_type_fact(text: str) -> OverviewRow | None:
    return OverviewRow("ownershipType", "Personal vehicle") if _PERSONAL.search(text) else None


def mentions_reported_accident(text: str) -> bool:
    """True when some clause reports an accident/damage that is not itself negated.

    Only the clause leading up to each "... reported" mention is checked, so
    "Accident reported: no airbag deployment" still counts.
    """
    for sentence in sentences(text):
        for m in _ACCIDENT_REPORTED.finditer(sentence):
            breaks = [b.end() for b in _CLAUSE_BREAK.finditer(sentence, 0, m.start())]
            clause = sentence[breaks[-1] if breaks else 0 : m.end()]
            if not _NEGATED_ACCIDENT.search(clause):
                return True
    return False


def accident_reported_fact(text: str) -> OverviewRow | None:
    return OverviewRow("accidentReported", "Accident reported") if mentions_reported_accident(text) else None


@dataclass(frozen=True)
class MileageMention:
    value: str
    index: int
    in_last_reported_context: bool


def mileage_mentions(text: str, config: ParserConfig | None = None) -> list[MileageMention]:
    cfg = config or ParserConfig()
    mentions = []
    for m in _MILES.finditer(text):
        raw = next((g for g in m.groups() if g), "").strip()
        if not raw:
            continue
        miles = int(raw.replace(",", ""))
        if not 0 < miles < cfg.odometer_max_miles:
            continue
        window = text[max(0, m.start() - cfg.odometer_context_before) : m.start() + cfg.odometer_context_after]
        mentions.append(MileageMention(raw, m.start(), bool(_ODOMETER_CONTEXT.search(window))))
    return mentions


def find_last_odometer_reading(text: str, config: ParserConfig | None = None) -> str | None:
    """Best-effort odometer: the last mention in "last reported" context, else the last mention."""
    mentions = mileage_mentions(text, config)
    in_context = [m for m in mentions if m.in_last_reported_context]
    if in_context:
        return in_context[-1].value
    return mentions[-1].value if mentions else None


def odometer_fact(text: str, config: ParserConfig | None = None) -> OverviewRow | None:
    value = find_last_odometer_reading(text, config)
    if value is None:
        return None
    return OverviewRow("lastOdoReported", f"{value} Last reported odometer reading", estimated=True)


def last_state_fact(text: str) -> OverviewRow | None:
    m = _LAST_STATE.search(text)
    return OverviewRow("stateRegistered", f"Last owned in {m.group(1)}") if m else None


# ── Branded title ──────────────────────────────────────────────────


def branded_title_keyword(text: str) -> str | None:
    """Brand keyword (salvage/rebuilt/junk/branded) of the first un-negated mention."""
    for sentence in sentences(text):
        if _BRAND_NEGATION.search(sentence):
            continue
        for pattern in _BRAND_POSITIVE:
            m = pattern.search(sentence)
            if m:
                return m.group(1).lower()
    return None


def has_branded_title(text: str) -> bool:
    return branded_title_keyword(text) is not None


def branded_title_alert_text(keyword: str) -> str:
    return BRAND_ALERT_TEXT.get(keyword, BRAND_ALERT_TEXT["branded"])


def branded_title_fact(text: str) -> OverviewRow | None:
    return OverviewRow("damageBrandedTitle", "Branded title") if has_branded_title(text) else None


OverviewRule = Callable[[str], "OverviewRow | None"]


def overview_rules(config: ParserConfig | None = None) -> tuple[OverviewRule, ...]:
    return (
        service_records_fact,
        previous_owners_fact,
        ownership_type_fact,
        accident_reported_fact,
        partial(odometer_fact, config=config),
        last_state_fact,
        branded_title_fact,
    )


def overview_rows(
    text: str, config: ParserConfig | None = None, rules: tuple[OverviewRule, ...] | None = None
) -> list[OverviewRow]:
    rules = rules or overview_rules(config)
    rows: list[OverviewRow] = []
    seen: set[str] = set()
    for rule in rules:
        row = rule(text)
        if row is not None and row.name not in seen:
            seen.add(row.name)
            rows.append(row)
    return rows
