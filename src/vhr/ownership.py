from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

from vhr.config import ParserConfig
from vhr.data_models import CommentGroup, OwnerDetailBlock, OwnerRecord, OwnershipCell, OwnershipRow
from vhr.document import closest, collapse, visible_text

OWNER_HEADINGS = 'h1, h2, h3, h4, [class*="section"], [class*="owner"], [class*="Owner"]'
CHECK_ICONS = 'svg, [class*="check"], [class*="icon"]'
EMPTY_CELL_TEXT = "—"

_OWNER_COLUMN = re.compile(r"Owners?\s*\d", re.IGNORECASE)
_CHECK_TEXT = re.compile(r"✓|✔|\byes\b|check|passed", re.IGNORECASE)
_OWNER_LABEL = re.compile(r"Owners?\s*\d+(?:\s*[-–]\s*\d+)?", re.IGNORECASE)
_PURCHASE_YEAR = re.compile(r"(?:purchased|owned)\s*(?:in|from)?\s*(\d{4})", re.IGNORECASE)
_ANY_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")
_OWNER_TYPE = re.compile(r"personal|lease|rental|fleet|commercial", re.IGNORECASE)
_DATED_LINE = re.compile(r"\d{1,2}/\d{1,2}/\d{2,4}[^\n]*")
_LEADING_DATE = re.compile(r"^(\d{1,2}/\d{1,2}/\d{2,4})\s*")
_OWNER_SIGNAL = re.compile(r"Owner\s*1|Previous\s+owners", re.IGNORECASE)


def owner_columns(owner_count: int, config: ParserConfig | None = None) -> int:
    cfg = config or ParserConfig()
    return max(1, min(owner_count or 1, cfg.max_owner_columns))


def _header_cells(table: Tag) -> list[Tag]:
    thead = table.find("thead")
    if thead is not None:
        return thead.find_all("th")
    first_row = table.find("tr")
    return first_row.find_all("th") if first_row is not None else []


def _cell(td: Tag) -> OwnershipCell:
    text = collapse(visible_text(td))
    is_check = bool(_CHECK_TEXT.search(text)) or (not text and td.select_one(CHECK_ICONS) is not None)
    return OwnershipCell(text=text or ("Yes" if is_check else EMPTY_CELL_TEXT), is_empty=not text and not is_check)


def parse_ownership_table(soup: BeautifulSoup, owner_count: int, config: ParserConfig | None = None) -> list[OwnershipRow]:
    """Rows of the first table whose header names owner columns (``Owner 1``, ``Owner 2``...)."""
    cfg = config or ParserConfig()
    for table in soup.find_all("table"):
        owner_cols = sum(1 for th in _header_cells(table) if _OWNER_COLUMN.search(visible_text(th)))
        if owner_cols < 1:
            continue
        n = owner_columns(owner_count or owner_cols, cfg)
        tbody = table.find("tbody")
        rows: list[OwnershipRow] = []
        for tr in (tbody or table).find_all("tr"):
            tds = tr.find_all("td", recursive=False)
            if len(tds) < 2:
                continue
            label = collapse(visible_text(tds[0]))
            if not label or len(label) > 100:
                continue
            cells = [_cell(td) for td in tds[1 : 1 + n]]
            cells.extend(OwnershipCell(EMPTY_CELL_TEXT, True) for _ in range(n - len(cells)))
            rows.append(OwnershipRow(row_label=label, cells=cells))
        if rows:
            return rows
    return []


def placeholder_ownership_rows(owner_count: int, config: ParserConfig | None = None) -> list[OwnershipRow]:
    cfg = config or ParserConfig()
    n = owner_columns(owner_count, cfg)
    return [
        OwnershipRow(row_label=label, cells=[OwnershipCell(EMPTY_CELL_TEXT, True) for _ in range(n)])
        for label in cfg.ownership_placeholder_labels
    ]


def _owner_block(label: str, block_text: str, cfg: ParserConfig) -> OwnerDetailBlock:
    year = _PURCHASE_YEAR.search(block_text)
    purchase_year = year.group(1) if year else None
    if purchase_year is None:
        any_year = _ANY_YEAR.search(block_text)
        purchase_year = any_year.group(0) if any_year else None
    owner_type = _OWNER_TYPE.search(block_text)

    records = []
    for line in _DATED_LINE.findall(block_text)[: cfg.max_owner_events]:
        date = _LEADING_DATE.match(line)
        text = _LEADING_DATE.sub("", line).strip()[: cfg.max_event_text_chars]
        records.append(
            OwnerRecord(
                date_display=date.group(1) if date else "",
                comment_groups=[CommentGroup(outer_text=text or "Event reported")],
            )
        )
    return OwnerDetailBlock(
        owner_label=label,
        purchase_year=purchase_year,
        owner_type=owner_type.group(0).capitalize() if owner_type else None,
        records=records,
    )


def parse_owner_blocks(soup: BeautifulSoup, config: ParserConfig | None = None) -> list[OwnerDetailBlock]:
    """Owner detail blocks anchored on ``Owner N`` / ``Owners N-M`` headings."""
    cfg = config or ParserConfig()
    blocks: list[OwnerDetailBlock] = []
    seen: set[int] = set()
    for heading in soup.select(OWNER_HEADINGS):
        m = _OWNER_LABEL.search(visible_text(heading))
        if not m:
            continue
        container = closest(heading)
        if container is None or id(container) in seen:
            continue
        block_text = visible_text(container)
        if len(block_text) > cfg.max_owner_block_chars:
            continue
        if len({collapse(l) for l in _OWNER_LABEL.findall(block_text)}) > 1:
            continue
        seen.add(id(container))
        blocks.append(_owner_block(collapse(m.group(0)), block_text, cfg))
    return blocks


def placeholder_owner_blocks(body_text: str, owner_count: int, config: ParserConfig | None = None) -> list[OwnerDetailBlock]:
    """Empty "Owner N" blocks when the report mentions owners but no block was parsed."""
    cfg = config or ParserConfig()
    if owner_count <= 0 and not _OWNER_SIGNAL.search(body_text):
        return []
    n = min(owner_columns(owner_count, cfg), cfg.max_placeholder_owners)
    return [OwnerDetailBlock(owner_label=f"Owner {i + 1}") for i in range(n)]
