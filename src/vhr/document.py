from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

_SKIP_TAGS = frozenset({"script", "style", "noscript", "template", "head"})
_BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
        "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4",
        "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
        "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
    }
)
_WS = re.compile(r"\s+")
_BREAK = object()


def collapse(text: str) -> str:
    return _WS.sub(" ", text).strip()


def visible_text(el: Tag) -> str:
    """Rendered-ish text of ``el``: one line per block element, inline runs joined."""
    out: list[str] = []
    stack: list[object] = list(reversed(list(el.children)))
    while stack:
        node = stack.pop()
        if node is _BREAK:
            out.append("\n")
        elif isinstance(node, Tag):
            if node.name in _SKIP_TAGS:
                continue
            if node.name in _BLOCK_TAGS:
                out.append("\n")
                stack.append(_BREAK)
            stack.extend(reversed(list(node.children)))
        elif isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
            out.append(_WS.sub(" ", str(node)))
    lines = (line.strip() for line in "".join(out).split("\n"))
    return "\n".join(line for line in lines if line)


def text_lines(el: Tag) -> list[str]:
    return [line for line in visible_text(el).split("\n") if line]


def class_string(el: Tag) -> str:
    value = el.get("class") or []
    return " ".join(value) if isinstance(value, list) else str(value)


def is_section_container(el: Tag) -> bool:
    return el.name in ("section", "div") or "section" in class_string(el)


def closest(el: Tag, predicate: Callable[[Tag], bool] = is_section_container) -> Tag | None:
    """Nearest of ``el`` and its ancestors satisfying ``predicate``, else the parent."""
    node: Tag | None = el
    while isinstance(node, Tag) and not isinstance(node, BeautifulSoup):
        if predicate(node):
            return node
        node = node.parent
    parent = el.parent
    return parent if isinstance(parent, Tag) else None


@dataclass
class ReportDocument:
    soup: BeautifulSoup
    title_text: str
    body_text: str

    @classmethod
    def parse(cls, raw_html: str) -> "ReportDocument":
        soup = BeautifulSoup(raw_html, "html.parser")
        title = soup.find("title")
        title_text = collapse(title.get_text()) if title is not None else ""
        root = soup.body or soup
        return cls(soup=soup, title_text=title_text, body_text=visible_text(root))
