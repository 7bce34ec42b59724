"""Availability decoration pipeline.

Combines the inventory snapshot with the catalog record and the caller's
claims. Rule order is part of the contract: the Aeon rule reads the items
merged by the archival rule, and the emergency access rule runs after
every rule that adds options so it can take over the hold slot.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from patterns.rules_engine import RuleChain
from verticals.availability.maps import MapResolver
from verticals.availability.models.schemas import (
    AvailabilityDocument,
    CatalogRecord,
    Claims,
)
from verticals.availability.rules import (
    DecorationContext,
    add_map_info,
    add_streaming_video_reserve,
    append_aeon_option,
    apply_emergency_access,
    merge_archival_items,
    seed_display_labels,
    substitute_hsl_scan,
)

logger = logging.getLogger(__name__)

AVAILABILITY_RULES = (
    seed_display_labels,
    substitute_hsl_scan,
    add_streaming_video_reserve,
    merge_archival_items,
    append_aeon_option,
    apply_emergency_access,
    add_map_info,
)

availability_chain = RuleChain("availability", AVAILABILITY_RULES)


def parse_snapshot(raw: Optional[bytes]) -> AvailabilityDocument:
    """Decode an ILS availability payload; anything unusable is an empty document."""
    if not raw:
        return AvailabilityDocument()
    try:
        return AvailabilityDocument.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        # non-Sirsi items may still get availability from the catalog
        logger.warning("Unable to parse availability snapshot: %s", exc)
        return AvailabilityDocument()


def decorate(
    title_id: str,
    snapshot: Optional[AvailabilityDocument],
    record: Optional[CatalogRecord],
    claims: Optional[Claims],
    *,
    maps: Optional[MapResolver] = None,
    hs_illiad_url: str = "",
    aeon_url: Optional[str] = None,
) -> AvailabilityDocument:
    """Run every decoration rule, in order, and return the finished document."""
    document = snapshot if snapshot is not None else AvailabilityDocument()
    context_args = {}
    if aeon_url:
        context_args["aeon_url"] = aeon_url
    context = DecorationContext(
        title_id=title_id,
        record=record if record is not None else CatalogRecord(id=title_id),
        claims=claims if claims is not None else Claims(),
        hs_illiad_url=hs_illiad_url,
        maps=maps if maps is not None else MapResolver(),
        **context_args,
    )

    outcome = availability_chain.run(document.availability, context)
    logger.info("Decorated %s with rules %s", title_id, outcome.applied_names)
    return document
