"""Test the availability decoration pipeline end to end."""
import json
from urllib.parse import parse_qs, urlparse

from verticals.availability.maps import MapEntry, MapLookup, MapResolver
from verticals.availability.models.schemas import (
    AvailabilityDocument,
    CatalogRecord,
    Claims,
    OptionType,
)
from verticals.availability.pipeline import AVAILABILITY_RULES, decorate, parse_snapshot
from verticals.availability.rules import ETAS_NOTICE, NO_LOCATION_NOTES


def snapshot(items=None, options=None, title_id="u100"):
    return AvailabilityDocument.model_validate(
        {
            "availability": {
                "title_id": title_id,
                "items": items or [],
                "request_options": options or [],
                "bound_with": [],
            }
        }
    )


def option_types(doc):
    return [o.type for o in doc.availability.request_options]


def test_missing_snapshot_yields_default_document():
    doc = decorate("u100", parse_snapshot(None), None, Claims())
    assert doc.availability.items == []
    assert doc.availability.request_options == []
    assert doc.availability.display == {
        "library": "Library",
        "current_location": "Current Location",
        "call_number": "Call Number",
        "barcode": "Barcode",
    }


def test_unparseable_snapshot_is_empty():
    assert parse_snapshot(b"<html>oops</html>").availability.items == []


def test_rule_order_is_fixed():
    names = [rule.__name__ for rule in AVAILABILITY_RULES]
    assert names == [
        "seed_display_labels",
        "substitute_hsl_scan",
        "add_streaming_video_reserve",
        "merge_archival_items",
        "append_aeon_option",
        "apply_emergency_access",
        "add_map_info",
    ]


def test_health_sciences_caller_gets_illiad_link():
    snap = snapshot(options=[{"type": "hold"}, {"type": "scan"}])
    record = CatalogRecord(
        id="u1",
        title_a=["Gray's Anatomy", "Anatomy"],
        author_a=["Gray, H."],
        issn_a=["1234-5678"],
    )
    doc = decorate(
        "u1", snap, record, Claims(homeLibrary="HEALTHSCI"), hs_illiad_url="https://hsl.example.edu"
    )

    assert option_types(doc) == ["hold", "directLink"]
    link = doc.availability.request_options[1]
    assert link.label == "Request a scan"
    assert link.sign_in_required is False
    parsed = urlparse(link.create_url)
    assert parsed.path == "/illiad.dll"
    query = parse_qs(parsed.query)
    assert query["Action"] == ["10"]
    assert query["Form"] == ["21"]
    assert query["loantitle"] == ["Gray's Anatomy; Anatomy"]
    assert query["issn"] == ["1234-5678"]
    assert "loanedition" not in query


def test_health_sciences_without_existing_scan():
    doc = decorate("u1", snapshot(), CatalogRecord(id="u1"), Claims(homeLibrary="HEALTHSCI"))
    assert option_types(doc) == ["directLink"]


def test_video_reserve_for_internet_video():
    record = CatalogRecord(id="u2", pool_f=["video"], location2_a=["INTERNET MATERIALS"])
    doc = decorate("u2", snapshot(), record, Claims(canPlaceReserve=True))
    assert option_types(doc) == ["videoReserve"]
    opt = doc.availability.request_options[0]
    assert opt.sign_in_required
    assert opt.streaming_reserve


def test_video_reserve_for_avalon_source():
    record = CatalogRecord(id="u3", source_a=["avalon"])
    doc = decorate("u3", snapshot(), record, Claims(canPlaceReserve=True))
    assert option_types(doc) == ["videoReserve"]


def test_video_reserve_requires_capability():
    record = CatalogRecord(id="u3", source_a=["Avalon"])
    doc = decorate("u3", snapshot(), record, Claims(canPlaceReserve=False))
    assert option_types(doc) == []


def test_video_pool_alone_is_not_streaming():
    record = CatalogRecord(id="u4", pool_f=["video"], location2_a=["Clemons Stacks"])
    doc = decorate("u4", snapshot(), record, Claims(canPlaceReserve=True))
    assert option_types(doc) == []


def test_archival_items_are_merged():
    stored = json.dumps(
        [
            {"barcode": "X1", "library": "Special Collections", "library_id": "SPEC-COLL",
             "call_number": "MSS 1", "special_collections_location": "Box 4"},
        ]
    )
    record = CatalogRecord(id="uva-aspace-1", sc_availability_large_single=stored)
    doc = decorate("uva-aspace-1", snapshot(title_id=""), record, Claims())

    assert doc.availability.title_id == "uva-aspace-1"
    assert [i.barcode for i in doc.availability.items] == ["X1"]
    assert doc.availability.items[0].special_collections_notes == "Box 4"


def test_archival_merge_without_stored_data_leaves_items():
    snap = snapshot(items=[{"barcode": "A"}, {"barcode": "B"}])
    doc = decorate("u100", snap, CatalogRecord(id="u100"), Claims())
    assert [i.barcode for i in doc.availability.items] == ["A", "B"]
    assert doc.availability.title_id == "u100"


def test_bad_stored_availability_contributes_nothing():
    record = CatalogRecord(id="u5", sc_availability_large_single="{not json")
    doc = decorate("u5", snapshot(items=[{"barcode": "A"}]), record, Claims())
    assert [i.barcode for i in doc.availability.items] == ["A"]


def test_aeon_option_without_location_notes():
    snap = snapshot(items=[
        {"barcode": "SC1", "library": "Special Collections", "library_id": "SPEC-COLL",
         "call_number": "PS3545 .A1", "home_location_id": "SC-STKS"},
        {"barcode": "AL1", "library": "Alderman", "library_id": "ALDERMAN"},
    ])
    record = CatalogRecord(id="u6", library_a=["Special Collections"])
    doc = decorate("u6", snap, record, Claims())

    assert option_types(doc) == ["aeon"]
    aeon = doc.availability.request_options[0]
    assert aeon.label == "Request this in Special Collections"
    assert len(aeon.item_options) == 1
    choice = aeon.item_options[0]
    assert choice.notes == NO_LOCATION_NOTES
    assert choice.barcode == "SC1"
    assert choice.label == "PS3545 .A1"
    assert choice.location == "SC-STKS"
    assert aeon.create_url.startswith("https://virginia.aeon.atlas-sys.com/logon?")


def test_aeon_notes_come_from_cleaned_local_notes():
    snap = snapshot(items=[{"barcode": "SC1", "library_id": "SPEC-COLL"}])
    record = CatalogRecord(
        id="u7",
        library_a=["Special Collections"],
        local_notes_a=[
            "SPECIAL COLLECTIONS:  Gift of the author.",
            "  Harrison Small Special Collections, copy 2 ",
        ],
    )
    doc = decorate("u7", snap, record, Claims())
    notes = doc.availability.request_options[0].item_options[0].notes
    assert notes == "Gift of the author.;\nH. Small, copy 2;\n"


def test_aeon_notes_truncated():
    snap = snapshot(items=[{"barcode": "SC1", "library_id": "SPEC-COLL"}])
    record = CatalogRecord(id="u8", library_a=["Special Collections"], local_notes_a=["x" * 2000])
    doc = decorate("u8", snap, record, Claims())
    assert len(doc.availability.request_options[0].item_options[0].notes) == 999


def test_aeon_includes_merged_archival_items():
    stored = json.dumps([{"barcode": "BOX1", "library_id": "SPEC-COLL"}])
    record = CatalogRecord(
        id="u9", library_a=["Special Collections"], sc_availability_large_single=stored
    )
    doc = decorate("u9", snapshot(items=[{"barcode": "OTHER", "library_id": "ALD"}]), record, Claims())
    barcodes = [o.barcode for o in doc.availability.request_options[0].item_options]
    # stored availability makes every item eligible
    assert barcodes == ["OTHER", "BOX1"]


def test_aeon_manuscript_form():
    record = CatalogRecord(
        id="u10",
        library_a=["Special Collections"],
        workType_a=["Manuscript"],
        author_a=["Jefferson, Thomas", "Madison, James"],
        isbn_a=["111"],
        issn_a=["222"],
    )
    doc = decorate("u10", snapshot(), record, Claims())
    query = parse_qs(urlparse(doc.availability.request_options[0].create_url).query)
    assert query["Value"] == ["GenericRequestManuscript"]
    assert query["ItemAuthor"] == ["Jefferson, Thomas; ..."]
    assert query["ItemISxN"] == ["111;222"]
    assert query["ReferenceNumber"] == ["u10"]


def test_etas_replaces_hold_in_place():
    snap = snapshot(
        items=[
            {"barcode": "C1", "library_id": "ALDERMAN"},
            {"barcode": "S1", "library_id": "SPEC-COLL"},
            {"barcode": "C2", "library_id": "CLEMONS"},
        ],
        options=[{"type": "scan"}, {"type": "hold"}, {"type": "aeon"}],
    )
    record = CatalogRecord(id="u11", hathi_etas_f=["true"], url_a=["https://x"])
    doc = decorate("u11", snap, record, Claims())

    opts = doc.availability.request_options
    assert [o.type for o in opts] == ["scan", "directLink", "aeon"]
    assert opts[1].label == "Read via HathiTrust"
    assert opts[1].create_url == "https://x"
    assert opts[1].description == ETAS_NOTICE
    assert [i.barcode for i in doc.availability.items] == ["S1"]


def test_etas_appends_when_no_hold():
    record = CatalogRecord(id="u12", hathi_etas_f=["true"])
    doc = decorate("u12", snapshot(options=[{"type": "scan"}]), record, Claims())
    assert option_types(doc) == ["scan", "directLink"]
    assert doc.availability.request_options[1].label == ""


def test_etas_never_leaves_a_hold():
    record = CatalogRecord(id="u13", hathi_etas_f=["true"], url_a=["https://x"])
    doc = decorate("u13", snapshot(options=[{"type": "hold"}]), record, Claims(canPlaceReserve=True))
    assert option_types(doc).count(OptionType.HOLD) == 0
    assert option_types(doc) == ["directLink"]


def test_map_enrichment():
    maps = MapResolver(
        maps=(MapEntry(id="M1", url="https://maps/alderman", name="Alderman 2nd floor"),),
        lookups=(
            MapLookup(call_number_range="*", location="ALD-STKS", map_id="M1"),
            MapLookup(call_number_range="A-M", location="CLEM", map_id="M1"),
        ),
    )
    snap = snapshot(items=[
        {"barcode": "1", "home_location_id": "ALD-STKS"},
        {"barcode": "2", "home_location_id": "CLEM"},
        {"barcode": "3", "home_location_id": "NOWHERE"},
    ])
    doc = decorate("u14", snap, CatalogRecord(id="u14"), Claims(), maps=maps)

    first, ranged, unknown = doc.availability.items
    assert first.map_ref.name == "Alderman 2nd floor"
    assert first.map_ref.url == "https://maps/alderman"
    assert ranged.map_ref.name == "N/A"
    assert ranged.map_ref.url is None
    assert unknown.map_ref.name == "N/A"


def test_document_serialises_wire_names():
    snap = snapshot(items=[{"barcode": "1", "special_collections_location": "Vault"}],
                    options=[{"type": "hold", "button_label": "Request"}])
    doc = decorate("u15", snap, CatalogRecord(id="u15"), Claims())
    wire = doc.model_dump(by_alias=True, exclude_none=True)
    item = wire["availability"]["items"][0]
    assert item["special_collections_location"] == "Vault"
    assert item["map"] == {"name": "N/A"}
    assert wire["availability"]["request_options"][0]["button_label"] == "Request"


def test_null_values_read_as_defaults():
    raw = json.dumps({
        "availability": {
            "title_id": "u16",
            "items": [{"barcode": "X1", "notice": None, "volume": None}],
            "request_options": [{"type": "hold", "item_options": None, "button_label": None}],
            "bound_with": None,
        }
    }).encode()
    doc = decorate("u16", parse_snapshot(raw), CatalogRecord(id="u16"), Claims())

    item = doc.availability.items[0]
    assert item.barcode == "X1"
    assert item.notice == ""
    assert item.volume == ""
    hold = doc.availability.request_options[0]
    assert hold.type == "hold"
    assert hold.item_options == []
    assert hold.label == ""
    assert doc.availability.bound_with == []


def test_null_items_list_is_empty():
    raw = b'{"availability": {"title_id": "u17", "items": null, "request_options": null}}'
    doc = parse_snapshot(raw)
    assert doc.availability.title_id == "u17"
    assert doc.availability.items == []
    assert doc.availability.request_options == []


def test_stored_availability_with_nulls_is_merged():
    stored = json.dumps([{"barcode": "B1", "library_id": "SPEC-COLL", "volume": None, "notice": None}])
    record = CatalogRecord(id="u18", sc_availability_large_single=stored)
    doc = decorate("u18", snapshot(), record, Claims())
    assert [i.barcode for i in doc.availability.items] == ["B1"]
    assert doc.availability.items[0].volume == ""


def test_item_location_note_wins_over_local_notes():
    snap = snapshot(items=[
        {"barcode": "SC1", "library_id": "SPEC-COLL", "special_collections_location": "Vault, shelf 3"},
        {"barcode": "SC2", "library_id": "SPEC-COLL"},
    ])
    record = CatalogRecord(
        id="u19",
        library_a=["Special Collections"],
        local_notes_a=["SPECIAL COLLECTIONS: Gift of the author."],
    )
    doc = decorate("u19", snap, record, Claims())
    notes = [o.notes for o in doc.availability.request_options[0].item_options]
    assert notes == ["Vault, shelf 3", "Gift of the author.;\n"]


def test_illiad_link_joins_authors_and_carries_date():
    record = CatalogRecord(
        id="u20",
        title_a=["Pathology"],
        author_a=["Robbins, S.", "Cotran, R."],
        published_date="1999",
    )
    doc = decorate("u20", snapshot(), record, Claims(homeLibrary="HEALTHSCI"), hs_illiad_url="https://hsl")
    query = parse_qs(urlparse(doc.availability.request_options[0].create_url).query)
    assert query["loanauthor"] == ["Robbins, S.; Cotran, R."]
    assert query["loandate"] == ["1999"]
    assert query["loantitle"] == ["Pathology"]
    assert "issn" not in query
