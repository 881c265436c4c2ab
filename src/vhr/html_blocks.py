"""Span-level HTML surgery on raw markup strings.

These helpers operate on the source text rather than a parsed tree so that
the untouched parts of the report survive byte for byte.
"""
from __future__ import annotations

import re

_CLASS_ATTR = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+))""", re.IGNORECASE)
_ID_ATTR = re.compile(r"""\bid\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+))""", re.IGNORECASE)

_SCRIPT_BLOCK = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_SCRIPT_UNCLOSED = re.compile(r"<script\b.*\Z", re.IGNORECASE | re.DOTALL)
_SCRIPT_STRAY_CLOSE = re.compile(r"</script\s*>", re.IGNORECASE)

_ANCHOR_PAIR = re.compile(r"<a\b[^>]*>(.*?)</a\s*>", re.IGNORECASE | re.DOTALL)
_ANCHOR_STRAY = re.compile(r"<a\b[^>]*>|</a\s*>", re.IGNORECASE)


def _tag_pattern(tag: str) -> re.Pattern[str]:
    # Matches both opening and closing tags of exactly this element name.
    return re.compile(rf"<(/?){re.escape(tag)}(?=[\s/>])[^>]*>", re.IGNORECASE)


def _attr_value(pattern: re.Pattern[str], tag_text: str) -> str:
    m = pattern.search(tag_text)
    if not m:
        return ""
    return next((g for g in m.groups() if g is not None), "")


def find_balanced_end(html: str, tag: str, open_end: int) -> int:
    """Return the index just past the tag closing the element opened before ``open_end``.

    Depth starts at one for the already-consumed opening tag; every nested
    opening tag of the same element increments it and every closing tag
    decrements it. Returns -1 when the element never closes.
    """
    depth = 1
    for m in _tag_pattern(tag).finditer(html, open_end):
        if m.group(1):
            depth -= 1
            if depth == 0:
                return m.end()
        elif not m.group(0).endswith("/>"):
            depth += 1
    return -1


def remove_balanced_blocks(html: str, class_fragment: str, tag: str = "div") -> str:
    """Excise every ``<tag>`` element whose class attribute contains ``class_fragment``.

    Nested same-element children are consumed with their parent. Blocks that
    never close are left in place.
    """
    if not class_fragment:
        return html
    needle = class_fragment.lower()
    opener = _tag_pattern(tag)
    pos = 0
    while True:
        m = next(
            (
                c
                for c in opener.finditer(html, pos)
                if not c.group(1) and needle in _attr_value(_CLASS_ATTR, c.group(0)).lower()
            ),
            None,
        )
        if m is None:
            return html
        end = find_balanced_end(html, tag, m.end())
        if end == -1:
            pos = m.end()
            continue
        html = html[: m.start()] + html[end:]
        pos = m.start()


def remove_section_by_id(html: str, section_id: str) -> str:
    """Remove flat ``<section id=...>`` blocks; the first ``</section>`` closes each one."""
    opener = re.compile(r"<section\b[^>]*>", re.IGNORECASE)
    closer = re.compile(r"</section\s*>", re.IGNORECASE)
    pos = 0
    while True:
        m = next((c for c in opener.finditer(html, pos) if _attr_value(_ID_ATTR, c.group(0)) == section_id), None)
        if m is None:
            return html
        close = closer.search(html, m.end())
        if close is None:
            return html
        html = html[: m.start()] + html[close.end():]
        pos = m.start()


def strip_scripts(html: str) -> str:
    out = _SCRIPT_BLOCK.sub("", html)
    # An unterminated <script> swallows the rest of the document in a browser.
    out = _SCRIPT_UNCLOSED.sub("", out)
    return _SCRIPT_STRAY_CLOSE.sub("", out)


def unwrap_anchors(html: str) -> str:
    """Replace ``<a ...>inner</a>`` with ``inner`` until no anchor tags remain."""
    while True:
        out = _ANCHOR_PAIR.sub(r"\1", html)
        if out == html:
            break
        html = out
    return _ANCHOR_STRAY.sub("", html)
