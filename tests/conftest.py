import json

import pytest

VIN = "JHLRE38307C062034"
YEAR_MAKE_MODEL = "2007 HONDA ODYSSEY EX-L"


def embedded_report_html(vhr: dict) -> str:
    return (
        "<html><head><title>CARFAX Vehicle History Report</title></head><body>"
        f"<script>window.__INITIAL__DATA__ = {json.dumps({'vhr': vhr, 'locale': 'en_US'})};</script>"
        '<div id="root"></div></body></html>'
    )


@pytest.fixture
def vendor_vhr():
    return {
        "headerSection": {
            "vehicleInformationSection": {"yearMakeModel": YEAR_MAKE_MODEL, "vin": VIN},
            "historyOverview": {
                "rows": [
                    {"name": "ownershipCount", "text": "<strong>3</strong> Previous owners"},
                    {"name": "ownershipCount", "text": "duplicate row"},
                    {"name": "lastOdoReported", "text": "120,345 Last reported odometer reading"},
                    {"name": "stateRegistered", "text": "Last owned in TX"},
                ]
            },
        },
        "titleHistorySection": {
            "rows": [
                {
                    "combinedCell": {"status": "Normal"},
                    "translatedTitle": {"en": "Salvage / Junk"},
                    "description": {
                        "translatedTextDisplay": {"translatedDisplay": {"en": {"text": "No issues reported"}}}
                    },
                }
            ]
        },
        "additionalHistorySection": {
            "rows": [
                {
                    "combinedCell": {"status": "Alert", "translatedText": {"en": "Damage reported"}},
                    "translatedTitle": {"en": "Accident / Damage"},
                    "description": "Front impact, {curly} \"quoted\" text",
                }
            ]
        },
        "accidentDamageSection": {
            "accidentDamageRecords": [
                {
                    "date": "01/02/2015",
                    "eventTitleText": {"en": "Damage reported"},
                    "comments": {
                        "commentsGroups": [
                            {
                                "outerLine": {"commentsTextLine": {"text": "Damage reported"}},
                                "innerLines": [{"commentsTextLine": {"text": "Front impact"}}],
                            }
                        ]
                    },
                }
            ]
        },
        "ownershipHistorySection": {
            "rows": [
                {
                    "description": {
                        "translatedTextDisplay": {"translatedDisplay": {"en": {"text": "Year purchased"}}}
                    },
                    "cells": [{"translatedText": {"en": "2008"}}, {"emptyCell": True}],
                }
            ]
        },
        "detailsSection": {
            "ownerBlocks": {
                "ownerBlocks": [
                    {
                        "tab": {
                            "translatedOwner": {"en": "Owner 1"},
                            "purchaseYear": {"purchaseYear": "2008"},
                            "ownerType": {"translatedOwnerType": {"en": "Personal vehicle"}},
                        },
                        "records": {
                            "records": [
                                {
                                    "dateDisplay": "03/15/2008",
                                    "comments": {
                                        "commentsGroups": [
                                            {
                                                "outerLine": {"commentsTextLine": {"text": "Title issued"}},
                                                "innerLines": [],
                                            }
                                        ]
                                    },
                                }
                            ]
                        },
                    }
                ]
            }
        },
    }


@pytest.fixture
def make_embedded_html():
    return embedded_report_html


@pytest.fixture
def embedded_html(vendor_vhr):
    return embedded_report_html(vendor_vhr)


@pytest.fixture
def fallback_html():
    return f"""<html><head><title>Vehicle History Report for this {YEAR_MAKE_MODEL}: {VIN}</title></head>
<body>
<div class="history-overview">
  <p>3 Previous owners</p>
  <p>12 Service history records</p>
  <p>Personal vehicle</p>
  <p>Last owned in TX</p>
  <p>120,345 Last reported odometer reading</p>
</div>
<div class="section title-history">
  <h2>Title History</h2>
  <p>Guaranteed No Problem. No problems reported to the DMV regarding this vehicle's title history.</p>
</div>
<div class="section additional-history">
  <h2>Additional History</h2>
  <p>Total Loss</p>
  <p>No total loss reported to CARFAX.</p>
  <p>Structural Damage</p>
  <p>CARFAX recommends that you have this vehicle inspected by a collision repair specialist.</p>
</div>
<div class="section accident-section">
  <h2>Accident / Damage History</h2>
  <div class="accident-event">
    <p>01/02/2015</p>
    <p>Damage reported</p>
    <ul><li>Front impact</li></ul>
  </div>
</div>
</body></html>"""
