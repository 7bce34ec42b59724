"""Availability decoration rules.

Each rule takes the availability being built and the request context,
checks its trigger, and mutates the availability in place. The order in
which they run is fixed in pipeline.py.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable
from urllib.parse import urlencode

from pydantic import TypeAdapter, ValidationError

from patterns.rules_engine import RuleResult, skipped
from verticals.availability.maps import MapResolver
from verticals.availability.models.schemas import (
    SPECIAL_COLLECTIONS_ID,
    Availability,
    CatalogRecord,
    Claims,
    Item,
    ItemOption,
    OptionType,
    RequestOption,
)

logger = logging.getLogger(__name__)

HEALTH_SCIENCES_LIBRARY = "HEALTHSCI"
NO_LOCATION_NOTES = "(no location notes)"
MAX_NOTES_LENGTH = 999

DISPLAY_LABELS = {
    "library": "Library",
    "current_location": "Current Location",
    "call_number": "Call Number",
    "barcode": "Barcode",
}

ETAS_NOTICE = (
    "Use the link above to read this item online through the "
    '<a target="_blank" href="https://www.library.virginia.edu/services/etas">'
    "Emergency Temporary Access Service.</a>"
    "<p>Because of U.S. Copyright law, any item made available online through ETAS "
    "cannot be also physically circulated. Buttons above reflect any requests that "
    'can be made for this item. <a href="https://www.library.virginia.edu/news/covid-19/" '
    'target="blank">Read more about digital and physical access during COVID-19.</a></p>'
)

_SC_PREFIX = re.compile(r"^\s*SPECIAL\s+COLLECTIONS:\s+")
_SMALL_PREFIX = re.compile(r"^\s*Harrison Small Special Collections,")

_ITEM_LIST = TypeAdapter(list[Item])


@dataclass(frozen=True)
class DecorationContext:
    """Everything the rules may read. Nothing in here is mutated."""

    title_id: str
    record: CatalogRecord
    claims: Claims = field(default_factory=Claims)
    hs_illiad_url: str = ""
    aeon_url: str = "https://virginia.aeon.atlas-sys.com/logon"
    maps: MapResolver = field(default_factory=MapResolver)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def contains(values: Iterable[str], needle: str) -> bool:
    """Case-insensitive substring match against any of *values*."""
    needle = needle.lower()
    return any(needle in v.lower() for v in values)


def is_streaming_video(record: CatalogRecord) -> bool:
    """Sirsi "Internet materials" video or an Avalon-sourced record."""
    is_video_pool = bool(record.pool) and record.pool[0] == "video"
    if is_video_pool and contains(record.location, "Internet materials"):
        return True
    return contains(record.source, "Avalon")


def _encode(params: dict[str, str]) -> str:
    return urlencode(sorted(params.items()))


def openurl_query(base_url: str, record: CatalogRecord) -> str:
    """ILLiad scan request link for a health sciences patron."""
    params = {"Action": "10", "Form": "21", "loantitle": "; ".join(record.title)}
    optional = {
        "issn": "; ".join(record.issn),
        "loanauthor": "; ".join(record.author),
        "loanedition": record.edition,
        "photojournalvolume": record.volume,
        "photojournalissue": record.issue,
        "loandate": record.publication_date,
    }
    params.update({k: v for k, v in optional.items() if v})
    return f"{base_url}/illiad.dll?{_encode(params)}"


def is_manuscript(record: CatalogRecord) -> bool:
    return (
        contains(record.work_types, "manuscript")
        or contains(record.medium, "manuscript")
        or contains(record.format, "manuscript")
        or contains(record.work_types, "collection")
    )


def aeon_url(base_url: str, record: CatalogRecord) -> str:
    """Aeon logon link prefilled with the record's bibliographic data.

    Barcode, call number, location and notes are item specific and are
    filled in by the client for the chosen item.
    """
    author = ""
    if len(record.author) == 1:
        author = record.author[0]
    elif len(record.author) > 1:
        author = f"{record.author[0]}; ..."

    params = {
        "Action": "10",
        "Form": "20",
        "Value": "GenericRequestManuscript" if is_manuscript(record) else "GenericRequestMonograph",
        "ReferenceNumber": record.id,
        "ItemTitle": "; ".join(record.title),
        "ItemAuthor": author,
        "ItemDate": record.publication_date,
        "ItemISxN": ";".join(record.isbn + record.issn),
        "CallNumber": "",
        "ItemNumber": "",
        "ItemPlace": "; ".join(record.published_location),
        "ItemPublisher": "; ".join(record.publisher_name),
        "ItemEdition": record.edition,
        "ItemIssue": record.issue,
        "ItemVolume": record.volume,
        "ItemInfo2": record.copy_number,
        "Location": "",
        "ItemInfo1": "; ".join(record.description),
        "Notes": "",
        "SpecialRequest": "",
    }
    return f"{base_url}?{_encode(params)}"


def clean_local_notes(notes: Iterable[str]) -> str:
    out = ""
    for note in notes:
        note = _SC_PREFIX.sub("", note)
        note = _SMALL_PREFIX.sub("H. Small,", note)
        out += note.strip() + ";\n"
    return out[:MAX_NOTES_LENGTH]


def aeon_item_options(items: list[Item], record: CatalogRecord) -> list[ItemOption]:
    options = []
    for item in items:
        if item.library_id != SPECIAL_COLLECTIONS_ID and not record.sc_availability:
            continue

        if item.special_collections_notes:
            notes = item.special_collections_notes
        elif record.local_notes:
            notes = clean_local_notes(record.local_notes)
        else:
            notes = NO_LOCATION_NOTES

        options.append(
            ItemOption(
                barcode=item.barcode,
                label=item.call_number,
                location=item.home_location_id,
                library=item.library,
                notes=notes,
                notice=item.notice,
            )
        )
    return options


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def seed_display_labels(doc: Availability, ctx: DecorationContext) -> RuleResult:
    doc.display = dict(DISPLAY_LABELS)
    return RuleResult(True, "display_labels", "installed item field labels")


def substitute_hsl_scan(doc: Availability, ctx: DecorationContext) -> RuleResult:
    if ctx.claims.home_library != HEALTH_SCIENCES_LIBRARY:
        return skipped("hsl_scan")

    removed = doc.remove_option(OptionType.SCAN)
    doc.request_options.append(
        RequestOption(
            type=OptionType.DIRECT_LINK,
            label="Request a scan",
            description="Select a portion of this item to be scanned.",
            sign_in_required=False,
            create_url=openurl_query(ctx.hs_illiad_url, ctx.record),
        )
    )
    return RuleResult(
        True,
        "hsl_scan",
        "replaced scan option with health sciences ILLiad link",
        details={"removed_scan": removed},
    )


def add_streaming_video_reserve(doc: Availability, ctx: DecorationContext) -> RuleResult:
    if not ctx.claims.can_place_reserve:
        return skipped("video_reserve", "caller cannot place reserves")
    if not is_streaming_video(ctx.record):
        return skipped("video_reserve", "not a streaming video")

    doc.request_options.append(
        RequestOption(
            type=OptionType.VIDEO_RESERVE,
            label="Video reserve request",
            description="Request a video reserve for streaming",
            sign_in_required=True,
            streaming_reserve=True,
        )
    )
    return RuleResult(True, "video_reserve", "added streaming video reserve option")


def merge_archival_items(doc: Availability, ctx: DecorationContext) -> RuleResult:
    if not ctx.record.sc_availability:
        return skipped("archival_items", "no stored availability")

    # archival records have no inventory snapshot to supply the id
    doc.title_id = ctx.record.id
    try:
        items = _ITEM_LIST.validate_python(json.loads(ctx.record.sc_availability))
    except (ValueError, ValidationError) as exc:
        logger.error("Error parsing sc_availability_large_single for %s: %s", ctx.record.id, exc)
        items = []

    doc.items.extend(items)
    return RuleResult(
        True,
        "archival_items",
        f"merged {len(items)} stored special collections item(s)",
        details={"count": len(items)},
    )


def append_aeon_option(doc: Availability, ctx: DecorationContext) -> RuleResult:
    if not contains(ctx.record.library, "Special Collections"):
        return skipped("aeon_option", "not held by Special Collections")

    option = RequestOption(
        type=OptionType.AEON,
        label="Request this in Special Collections",
        description="",
        sign_in_required=False,
        create_url=aeon_url(ctx.aeon_url, ctx.record),
        item_options=aeon_item_options(doc.items, ctx.record),
    )
    doc.request_options.append(option)
    return RuleResult(
        True,
        "aeon_option",
        f"added Aeon request with {len(option.item_options)} item choice(s)",
    )


def apply_emergency_access(doc: Availability, ctx: DecorationContext) -> RuleResult:
    if not ctx.record.hathi_etas:
        return skipped("emergency_access")

    logger.info("ETAS FOUND. Removing request options for %s", ctx.title_id)
    option = RequestOption(
        type=OptionType.DIRECT_LINK,
        description=ETAS_NOTICE,
        sign_in_required=False,
    )
    if ctx.record.url:
        option.create_url = ctx.record.url[0]
        option.label = "Read via HathiTrust"

    replaced = doc.replace_or_append_option(OptionType.HOLD, option)
    before = len(doc.items)
    doc.items = [item for item in doc.items if item.library_id == SPECIAL_COLLECTIONS_ID]
    return RuleResult(
        True,
        "emergency_access",
        "replaced hold with HathiTrust link" if replaced else "appended HathiTrust link",
        details={"replaced_hold": replaced, "items_removed": before - len(doc.items)},
    )


def add_map_info(doc: Availability, ctx: DecorationContext) -> RuleResult:
    found = sum(1 for item in doc.items if ctx.maps.annotate(item))
    return RuleResult(
        bool(doc.items),
        "map_info",
        f"resolved maps for {found} of {len(doc.items)} item(s)",
    )
