from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from vhr.config import ParserConfig
from vhr.data_models import AccidentRecord, CommentGroup
from vhr.document import closest, collapse, text_lines, visible_text
from vhr.text_rules import mentions_reported_accident

ACCIDENT_HEADINGS = 'h1, h2, h3, h4, [class*="section"], [class*="header"]'
EVENT_BLOCKS = '[class*="event"], [class*="record"], [class*="accident"]'

DATE = re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})")
_ACCIDENT_WORD = re.compile(r"accident|collision|damage|airbag", re.IGNORECASE)
_PRIMARY_TITLE = re.compile(r"(?:Damage|Accident|Collision)\s+reported|minor\s+damage|major\s+damage", re.IGNORECASE)
_SECONDARY_TITLE = re.compile(r"accident|collision|damage|reported", re.IGNORECASE)
_BULLET = re.compile(r"^[-•]\s*")

_TITLE_NOISE = re.compile(
    r"Event\s*\d+|View\s+More\s+Details|Damage\s+Severity\s+Scale|More\s+information|\d{1,2}/\d{1,2}/\d{2,4}",
    re.IGNORECASE,
)
_CANONICAL_EVENT = re.compile(r"(?:Damage|Accident|Collision|Airbag)[^.]*(?::\s*[^.]+)?", re.IGNORECASE)
_CANONICAL_FALLBACK = re.compile(r"(?:reported|minor|major|structural)[^.]*", re.IGNORECASE)

GENERIC_EVENT_TITLE = "Accident reported"


def strip_title_noise(raw_title: str) -> str:
    return collapse(_TITLE_NOISE.sub(" ", raw_title))


def canonical_event_title(raw_title: str, max_chars: int = 80) -> str:
    """Dedupe key for an event title: noise stripped, reduced to the damage clause."""
    trimmed = strip_title_noise(raw_title)
    m = _CANONICAL_EVENT.search(trimmed) or _CANONICAL_FALLBACK.search(trimmed)
    canonical = (m.group(0) if m else trimmed).strip()[:max_chars]
    return canonical.lower() or "event reported"


def deduplicate_accident_records(records: list[AccidentRecord], config: ParserConfig | None = None) -> list[AccidentRecord]:
    """Collapse records sharing (date, canonical title).

    The longest raw title wins; inner detail lines from every duplicate are
    merged in first-seen order.
    """
    cfg = config or ParserConfig()
    winners: dict[tuple[str, str], AccidentRecord] = {}
    inner: dict[tuple[str, str], list[str]] = {}
    for record in records:
        key = (record.date.strip(), canonical_event_title(record.event_title, cfg.max_canonical_title_chars))
        lines = inner.setdefault(key, [])
        for group in record.comment_groups:
            lines.extend(l for l in group.inner_lines if l not in lines)
        current = winners.get(key)
        if current is None or len(record.event_title.strip()) > len(current.event_title.strip()):
            winners[key] = record

    out = []
    for key, record in winners.items():
        title = strip_title_noise(record.event_title) or GENERIC_EVENT_TITLE
        out.append(
            AccidentRecord(
                date=key[0],
                event_title=title,
                comment_groups=[CommentGroup(outer_text=title, inner_lines=inner[key][: cfg.max_accident_inner_lines])],
            )
        )
    return out


def _record_from_block(block: Tag, config: ParserConfig) -> AccidentRecord | None:
    block_text = visible_text(block)
    if not block_text or len(block_text) > config.max_accident_block_chars:
        return None
    date = DATE.search(block_text)
    if not _ACCIDENT_WORD.search(block_text) and not date:
        return None
    lines = text_lines(block)
    title = (
        next((l for l in lines if _PRIMARY_TITLE.search(l)), None)
        or next((l for l in lines if _SECONDARY_TITLE.search(l)), None)
        or lines[0]
    )
    bullets = [_BULLET.sub("", l) for l in lines if l.startswith(("-", "•"))]
    if not bullets:
        bullets = [visible_text(li) for li in block.find_all("li")]
    bullets = [b for b in bullets if b and b != title][: config.max_accident_inner_lines]
    return AccidentRecord(
        date=date.group(1) if date else "",
        event_title=title,
        comment_groups=[CommentGroup(outer_text=title, inner_lines=bullets)],
    )


def parse_accident_blocks(soup: BeautifulSoup, config: ParserConfig | None = None) -> list[AccidentRecord]:
    """Records from the first accident/damage section that yields any.

    Within a section only the innermost event blocks are read, so a summary
    wrapper and its children are not both counted.
    """
    cfg = config or ParserConfig()
    for heading in soup.select(ACCIDENT_HEADINGS):
        text = visible_text(heading).lower()
        if "accident" not in text and "damage" not in text:
            continue
        container = closest(heading)
        if container is None:
            continue
        blocks = container.select(EVENT_BLOCKS)
        leaves = [b for b in blocks if not b.select(EVENT_BLOCKS)]
        records = [r for r in (_record_from_block(b, cfg) for b in (leaves or blocks)) if r is not None]
        if records:
            return records
    return []


def accident_damage_records(soup: BeautifulSoup, body_text: str, config: ParserConfig | None = None) -> list[AccidentRecord]:
    records = deduplicate_accident_records(parse_accident_blocks(soup, config), config)
    if not records and mentions_reported_accident(body_text):
        records = [
            AccidentRecord(
                date="",
                event_title=GENERIC_EVENT_TITLE,
                comment_groups=[CommentGroup(outer_text=GENERIC_EVENT_TITLE)],
            )
        ]
    return records
