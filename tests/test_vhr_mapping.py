from vhr.data_models import HistoryRow, OwnerDetailBlock, VehicleHistoryRecord
from vhr.vhr_mapping import record_from_vhr, record_to_vhr


def test_record_from_vendor_shape(vendor_vhr):
    record = record_from_vhr(vendor_vhr)

    assert record.vehicle_info.year_make_model == "2007 HONDA ODYSSEY EX-L"
    assert [r.name for r in record.history_overview_rows] == ["ownershipCount", "lastOdoReported", "stateRegistered"]
    assert record.overview("ownershipCount").display_value == "3"

    title = record.title_history_rows[0]
    assert (title.status, title.title, title.description) == ("Normal", "Salvage / Junk", "No issues reported")

    additional = record.additional_history_rows[0]
    assert additional.status == "Alert"
    assert additional.alert_text == "Damage reported"
    assert additional.description.startswith("Front impact")

    accident = record.accident_damage_records[0]
    assert accident.event_title == "Damage reported"
    assert accident.comment_groups[0].inner_lines == ["Front impact"]

    row = record.ownership_history_rows[0]
    assert row.row_label == "Year purchased"
    assert [(c.text, c.is_empty) for c in row.cells] == [("2008", False), ("", True)]

    block = record.owner_detail_blocks[0]
    assert (block.owner_label, block.purchase_year, block.owner_type) == ("Owner 1", "2008", "Personal vehicle")
    assert block.records[0].date_display == "03/15/2008"
    assert block.records[0].comment_groups[0].outer_text == "Title issued"


def test_unknown_status_is_normal():
    vhr = {"titleHistorySection": {"rows": [{"combinedCell": {"status": "Purple"}, "translatedTitle": "Odd"}]}}
    row = record_from_vhr(vhr).title_history_rows[0]
    assert row.status == "Normal"
    assert row.title == "Odd"


def test_missing_sections_yield_unusable_record():
    record = record_from_vhr({"titleHistorySection": {"rows": "not-a-list"}})
    assert record == VehicleHistoryRecord()
    assert not record.is_usable()


def test_record_survives_vendor_shape(vendor_vhr):
    record = record_from_vhr(vendor_vhr)
    assert record_from_vhr(record_to_vhr(record)) == record
    assert record.to_vhr()["headerSection"]["vehicleInformationSection"]["vin"] == "JHLRE38307C062034"


def test_flagged_row_always_has_description():
    row = HistoryRow("Warning", "Odometer Rollback", "")
    assert row.description == "Odometer Rollback"
    assert row.is_flagged


def test_owner_type_defaults_when_exported():
    record = VehicleHistoryRecord(owner_detail_blocks=[OwnerDetailBlock("Owner 1")])
    tab = record_to_vhr(record)["detailsSection"]["ownerBlocks"]["ownerBlocks"][0]["tab"]
    assert tab["ownerType"]["translatedOwnerType"]["en"] == "Personal vehicle"
    assert "purchaseYear" not in tab
