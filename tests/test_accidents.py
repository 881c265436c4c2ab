from bs4 import BeautifulSoup

from vhr.accidents import (
    GENERIC_EVENT_TITLE,
    accident_damage_records,
    canonical_event_title,
    deduplicate_accident_records,
    parse_accident_blocks,
    strip_title_noise,
)
from vhr.data_models import AccidentRecord, CommentGroup

ACCIDENT_SECTION = """
<div class="section accident-section">
  <h2>Accident / Damage History</h2>
  <div class="accident-summary">
    <div class="accident-event">
      <p>Event 1</p><p>01/02/2015</p><p>Damage reported</p>
      <ul><li>Front impact</li><li>Vehicle towed</li></ul>
    </div>
    <div class="accident-event">
      <p>Event 2</p><p>05/06/2018</p><p>Accident reported: minor damage</p>
      <p>- Rear impact</p>
    </div>
  </div>
</div>
"""


def test_strip_title_noise():
    assert strip_title_noise("Event 1 01/02/2015 Accident reported View More Details") == "Accident reported"


def test_canonical_title_ignores_trailing_detail():
    assert canonical_event_title("Damage reported. Vehicle towed") == "damage reported"
    assert canonical_event_title("Damage reported. Vehicle towed from scene and repaired") == "damage reported"


def test_dedupe_keeps_longer_title_and_merges_details():
    short = AccidentRecord("01/02/2015", "Damage reported. Vehicle towed", [CommentGroup("x", ["Front impact"])])
    long = AccidentRecord(
        "01/02/2015",
        "Damage reported. Vehicle towed from scene and repaired",
        [CommentGroup("y", ["Front impact", "Airbags deployed"])],
    )
    other_day = AccidentRecord("03/04/2016", "Damage reported", [])

    out = deduplicate_accident_records([short, long, other_day])

    assert len(out) == 2
    assert out[0].event_title == "Damage reported. Vehicle towed from scene and repaired"
    assert out[0].comment_groups[0].inner_lines == ["Front impact", "Airbags deployed"]
    assert out[1].date == "03/04/2016"


def test_parse_accident_blocks_reads_innermost_events():
    soup = BeautifulSoup(ACCIDENT_SECTION, "html.parser")
    records = parse_accident_blocks(soup)

    assert [r.date for r in records] == ["01/02/2015", "05/06/2018"]
    assert records[0].event_title == "Damage reported"
    assert records[0].comment_groups[0].inner_lines == ["Front impact", "Vehicle towed"]
    assert records[1].event_title == "Accident reported: minor damage"
    assert records[1].comment_groups[0].inner_lines == ["Rear impact"]


def test_generic_record_only_for_unnegated_mention():
    soup = BeautifulSoup("<p>Accident reported</p>", "html.parser")
    records = accident_damage_records(soup, "Accident reported")
    assert [r.event_title for r in records] == [GENERIC_EVENT_TITLE]

    soup = BeautifulSoup("<p>No accidents reported</p>", "html.parser")
    assert accident_damage_records(soup, "No accidents reported") == []
