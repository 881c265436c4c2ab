import json

import pytest

from vhr.extractor import extract, extract_record, scan_json_object


def test_extract_end_to_end(embedded_html, vendor_vhr):
    payload = extract(embedded_html)
    assert payload == {"vhr": vendor_vhr}

    record = extract_record(embedded_html)
    assert record is not None
    assert record.vehicle_info.vin == "JHLRE38307C062034"
    assert record.vehicle_info.year_make_model == "2007 HONDA ODYSSEY EX-L"


def test_extract_braces_and_escapes_inside_strings(make_embedded_html):
    vhr = {
        "headerSection": {"vehicleInformationSection": {"vin": "JHLRE38307C062034"}},
        "note": 'curly } and { inside "quoted" text',
        "path": "C:\\",
    }
    payload = extract(make_embedded_html(vhr))
    assert payload == {"vhr": vhr}


def test_scan_json_object_escaped_quote():
    text = r'x = {"a": "he said \"}\" loudly", "b": {"c": 1}} trailing }'
    end = scan_json_object(text, text.index("{"))
    assert json.loads(text[text.index("{") : end + 1])["b"] == {"c": 1}


def test_extract_flexible_marker():
    html = '<script>window . __INITIAL__DATA__={"vhr": {"headerSection": {}}}</script>'
    assert extract(html) == {"vhr": {"headerSection": {}}}


@pytest.mark.parametrize(
    "html",
    [
        "",
        "<html><body>no payload here</body></html>",
        '<script>window.__INITIAL__DATA__ = {"vhr": {bad json}};</script>',
        '<script>window.__INITIAL__DATA__ = {"vhr": {"a": 1}</script>',
        '<script>window.__INITIAL__DATA__ = {"vhr": []};</script>',
        '<script>window.__INITIAL__DATA__ = {"other": {}};</script>',
    ],
)
def test_extract_returns_none_on_failure(html):
    assert extract(html) is None
    assert extract_record(html) is None
