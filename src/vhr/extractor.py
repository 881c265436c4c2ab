from __future__ import annotations

import json
import logging
import re
from typing import Any

from vhr.data_models import VehicleHistoryRecord
from vhr.vhr_mapping import record_from_vhr

logger = logging.getLogger(__name__)

EXACT_MARKER = "window.__INITIAL__DATA__"
_FLEXIBLE_MARKER = re.compile(r"\bwindow\s*\.\s*__INITIAL__DATA__\s*=\s*")
PAYLOAD_KEY = "vhr"


def _locate_payload_start(raw_html: str) -> int:
    idx = raw_html.find(EXACT_MARKER)
    if idx != -1:
        after = idx + len(EXACT_MARKER)
    else:
        m = _FLEXIBLE_MARKER.search(raw_html)
        if m is None:
            return -1
        after = m.end()
    return raw_html.find("{", after)


def scan_json_object(text: str, start: int) -> int:
    """Return the index of the brace closing the object opened at ``start``, or -1.

    Braces only count outside double-quoted strings; a backslash inside a
    string escapes the next character, so ``\\"`` never ends the string.
    """
    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        c = text[i]
        if escape:
            escape = False
            continue
        if c == "\\" and in_string:
            escape = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def extract(raw_html: str) -> dict[str, Any] | None:
    """Pull the embedded ``{"vhr": {...}}`` payload out of report HTML.

    Returns ``None`` when the marker is missing, the object never closes,
    the JSON is invalid, or ``vhr`` is not an object.
    """
    if not raw_html or not raw_html.strip():
        return None
    start = _locate_payload_start(raw_html)
    if start == -1:
        logger.debug("embedded report marker not found")
        return None
    end = scan_json_object(raw_html, start)
    if end == -1:
        logger.debug("embedded report payload never closes")
        return None
    try:
        parsed = json.loads(raw_html[start : end + 1])
    except ValueError as exc:
        logger.debug("embedded report payload is not valid JSON: %s", exc)
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get(PAYLOAD_KEY), dict):
        return None
    return {PAYLOAD_KEY: parsed[PAYLOAD_KEY]}


def extract_record(raw_html: str) -> VehicleHistoryRecord | None:
    payload = extract(raw_html)
    if payload is None:
        return None
    return record_from_vhr(payload[PAYLOAD_KEY])
